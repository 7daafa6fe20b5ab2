import pytest
from music_admin.services.lookup import (
    build_lookup, course_titles, instructor_names, join_label, room_names, user_names, user_schools,
)


def test_fallback_chain_applies_per_entry():
    users = [{"id": "u1", "full_name": "Jane"}, {"id": "u2", "email": "a@b.com"}]
    assert build_lookup(users) == {"u1": "Jane", "u2": "a@b.com"}


@pytest.mark.parametrize("value", [None, {}, "users", 7, {"data": [{"id": "u1"}]}])
def test_non_array_input_returns_empty_map(value):
    assert build_lookup(value) == {}


def test_empty_label_fields_are_skipped():
    users = [{"id": "u1", "full_name": "", "name": "Janie", "email": "j@x.com"}]
    assert build_lookup(users) == {"u1": "Janie"}


def test_id_is_the_last_resort_label():
    assert build_lookup([{"id": "c9"}]) == {"c9": "c9"}


def test_bare_strings_get_synthetic_ids():
    assert build_lookup(["Piano", {"id": "c2", "title": "Violin"}, "Drums"]) == {
        "entity-0": "Piano",
        "c2": "Violin",
        "entity-2": "Drums",
    }


def test_entries_without_id_or_of_odd_type_are_skipped():
    entities = [{"name": "orphan"}, 12, None, ["x"], {"id": "r1", "name": "Studio A"}]
    assert build_lookup(entities) == {"r1": "Studio A"}


def test_numeric_ids_become_string_keys():
    assert course_titles([{"id": 5, "title": "Guitar Basics"}]) == {"5": "Guitar Basics"}


def test_named_chains():
    users = [{"id": "u1", "name": "Budi", "title": "Mr", "school": "SMA 1"}, {"id": "u2"}]
    assert user_names(users) == {"u1": "Budi", "u2": "u2"}
    assert user_schools(users) == {"u1": "SMA 1", "u2": "-"}

    courses = [{"id": "c1", "name": "Piano", "title": "Piano for Kids"}]
    assert course_titles(courses) == {"c1": "Piano for Kids"}

    rooms = [{"id": "r1", "name": "Room 1", "title": "ignored"}]
    assert room_names(rooms) == {"r1": "Room 1"}


def test_instructors_are_keyed_by_user_id_when_present():
    instructors = [
        {"id": "i1", "user_id": "u7", "full_name": "Ms. Sari"},
        {"id": "i2", "email": "tono@school.id"},
    ]
    assert instructor_names(instructors) == {"u7": "Ms. Sari", "i2": "tono@school.id"}


def test_invalid_field_types_do_not_raise():
    assert build_lookup([{"id": "u1", "full_name": {"first": "A"}}, {"id": "u2", "name": "B"}]) == {"u2": "B"}


def test_join_label():
    lookup = {"c1": "Piano"}
    assert join_label(lookup, "c1") == "Piano"
    assert join_label(lookup, "c404") == "c404"
    assert join_label(lookup, None) == "-"
    assert join_label(lookup, "") == "-"
