from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from music_admin.core.logger import logger
from music_admin.models.admin_models import LabelledEntity

# Ordered label fallbacks; first non-empty wins, the id itself is the last resort
DEFAULT_LABEL_FIELDS = ["full_name", "name", "title", "email"]
USER_LABEL_FIELDS = ["full_name", "name", "email"]
INSTRUCTOR_LABEL_FIELDS = ["full_name", "name", "email"]
COURSE_LABEL_FIELDS = ["title", "name"]
ROOM_LABEL_FIELDS = ["name"]

DEFAULT_ID_FIELDS = ["id"]
# Instructor records are keyed by their user account when they have one
INSTRUCTOR_ID_FIELDS = ["user_id", "id"]


def build_lookup(
    entities: Any,
    label_fields: Optional[List[str]] = None,
    id_fields: Optional[List[str]] = None,
    default: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build an id -> label map from an entity list.

    Never raises. A non-list input gives {}. Bare strings (older API) get the
    synthetic id "entity-{index}" and are their own label. Objects without an
    id are skipped. When no label field is set the label is `default`, or the
    id when no default is given.
    """
    label_fields = label_fields or DEFAULT_LABEL_FIELDS
    id_fields = id_fields or DEFAULT_ID_FIELDS
    lookup: Dict[str, str] = {}

    if not isinstance(entities, list):
        return lookup

    for index, item in enumerate(entities):
        if isinstance(item, str):
            lookup[f"entity-{index}"] = item
            continue
        if not isinstance(item, dict):
            continue

        try:
            entity = LabelledEntity.model_validate(item)
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping entity #{index} in lookup: {e.errors()[0].get('msg')}")
            continue

        entity_id = entity.first_present(id_fields)
        if not entity_id:
            continue

        label = entity.first_present(label_fields)
        lookup[entity_id] = label or (default if default is not None else entity_id)

    return lookup


def user_names(users: Any) -> Dict[str, str]:
    return build_lookup(users, USER_LABEL_FIELDS)


def user_schools(users: Any) -> Dict[str, str]:
    return build_lookup(users, ["school"], default="-")


def instructor_names(instructors: Any) -> Dict[str, str]:
    return build_lookup(instructors, INSTRUCTOR_LABEL_FIELDS, INSTRUCTOR_ID_FIELDS)


def course_titles(courses: Any) -> Dict[str, str]:
    return build_lookup(courses, COURSE_LABEL_FIELDS)


def room_names(rooms: Any) -> Dict[str, str]:
    return build_lookup(rooms, ROOM_LABEL_FIELDS)


def join_label(lookup: Dict[str, str], key: Any, fallback: str = "-") -> str:
    """Resolve one foreign key for display: label, else the raw key, else `fallback`."""
    if key is None or key == "":
        return fallback
    key = str(key)
    return lookup.get(key) or key
