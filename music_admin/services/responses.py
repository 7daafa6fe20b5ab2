from typing import Any, Optional

from music_admin.models.admin_models import ListPage


def _first_total(*candidates: Any) -> int:
    # First truthy candidate that looks like a count; 0 counts as "absent"
    for value in candidates:
        if isinstance(value, bool):
            continue
        try:
            number = int(value)
        except (TypeError, ValueError):
            continue
        if number:
            return number
    return 0


def unwrap(body: Any) -> Any:
    """Strip the `{ data: ... }` envelope from a single-record response."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def normalize_list_response(body: Any, key: Optional[str] = None) -> ListPage:
    """
    Turn any of the backend's list envelopes into one ListPage.

    Seen in the wild:
      [...]
      {"data": [...], "total": N}
      {"data": {"<key>": [...], "pagination": {"total": N}}}
      {"data": {"data": [...], "total": N}}
    Anything else is an empty page.
    """
    if isinstance(body, list):
        return ListPage(data=body, total=len(body))
    if not isinstance(body, dict):
        return ListPage()

    root_total = body.get("total")
    raw = body.get("data", body)

    if isinstance(raw, list):
        return ListPage(data=raw, total=_first_total(root_total, len(raw)))

    if not isinstance(raw, dict):
        return ListPage()

    items = None
    for candidate in (key, "data", "items"):
        if candidate and isinstance(raw.get(candidate), list):
            items = raw[candidate]
            break
    if items is None:
        return ListPage()

    pagination = raw.get("pagination")
    pagination_total = pagination.get("total") if isinstance(pagination, dict) else None
    return ListPage(data=items, total=_first_total(pagination_total, raw.get("total"), root_total))
