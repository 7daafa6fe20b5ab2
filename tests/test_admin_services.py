import pytest
from unittest.mock import MagicMock
from music_admin.core.credential_store import CredentialStore
from music_admin.core.errors import BackendError
from music_admin.models.admin_models import AssignRoomInput, RevenueReport
from music_admin.services.admin_service import AdminService, UnknownResource
from music_admin.services.booking_service import BookingService
from music_admin.services.query_cache import QueryCache
from music_admin.services.report_service import ReportService, format_currency, revenue_frame


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def admin(api):
    return AdminService(client=api, cache=QueryCache(stale_time=300, gc_time=600, retry=0))


def test_list_normalizes_and_caches(admin, api):
    api.get.return_value = {"data": {"instructors": [{"id": "i1"}], "pagination": {"total": 14}}}

    page = admin.list("instructors", 1, 10)
    again = admin.list("instructors", 1, 10)

    assert page.data == [{"id": "i1"}]
    assert page.total == 14
    assert again is page
    api.get.assert_called_once_with("/admin/instructor", params={"page": 1, "limit": 10}, fallback="Failed to load instructors")


def test_mutation_invalidates_resource_lists(admin, api):
    api.get.side_effect = [{"data": [{"id": "r1"}]}, {"data": [{"id": "r1"}, {"id": "r2"}]}]
    assert len(admin.list("rooms").data) == 1

    api.post.return_value = {"data": {"id": "r2"}}
    assert admin.create("rooms", {"name": "Studio B"}) == {"id": "r2"}

    assert len(admin.list("rooms").data) == 2
    assert api.get.call_count == 2


def test_course_mutations_use_course_path(admin, api):
    admin.update("courses", "c1", {"title": "Piano II"})
    admin.delete("courses", "c1")
    api.put.assert_called_once_with("/courses/c1", json={"title": "Piano II"}, fallback="Failed to update course")
    api.delete.assert_called_once_with("/courses/c1", fallback="Failed to delete course")


def test_unknown_resource(admin):
    with pytest.raises(UnknownResource):
        admin.list("payments")


def test_assign_room_posts_payload(admin, api):
    assignment = AssignRoomInput(course_id="c1", room_id="r1", schedule={"days": ["monday"], "time": "09:00", "duration": 60})
    admin.assign_room(assignment)
    api.post.assert_called_once_with(
        "/booking/admin/assign-room",
        json={"course_id": "c1", "room_id": "r1", "schedule": {"days": ["monday"], "time": "09:00", "duration": 60}},
        fallback="Failed to assign room",
    )


def test_schedule_rows_join_labels_and_slots(admin, api):
    responses = {
        "/admin/schedules": {"data": [{"id": "s1", "course_id": "c1", "instructor_id": "u5", "room_id": "r404",
                                       "slots": [{"id": "x", "day_of_week": "monday", "start_time": "09:00", "end_time": "09:30"}]}]},
        "/admin/courses": {"data": {"courses": [{"id": "c1", "title": "Piano"}]}},
        "/admin/instructor": {"data": {"instructors": [{"id": "i1", "user_id": "u5", "full_name": "Ms. Sari"}]}},
        "/admin/rooms": {"data": []},
    }
    api.get.side_effect = lambda path, **kw: responses[path]

    row = admin.schedule_rows().data[0]

    assert row["course_title"] == "Piano"
    assert row["instructor_name"] == "Ms. Sari"
    assert row["room_name"] == "r404"
    assert row["slots"][0]["label"] == "monday 09:00 - 09:30"


def test_revenue_frame_adds_total_row():
    reports = [
        RevenueReport(period="2024-01", total_revenue=1_000_000, booking_count=4, course_revenue=800_000),
        RevenueReport(period="2024-02", total_revenue=500_000, booking_count=1, course_revenue=500_000),
    ]
    df = revenue_frame(reports)

    assert list(df["period"]) == ["2024-01", "2024-02", "TOTAL"]
    total = df.iloc[-1]
    assert total["total_revenue"] == 1_500_000
    assert total["booking_count"] == 5
    assert total["average_per_booking"] == 300_000


def test_revenue_frame_empty():
    assert revenue_frame([]).empty


def test_format_currency():
    assert format_currency(1250000) == "Rp 1.250.000"
    assert format_currency(0) == "Rp 0"


def test_report_service_parses_and_skips_bad_rows(api):
    reports = ReportService(client=api, cache=QueryCache(retry=0))
    api.get.return_value = [{"period": "2024-01", "total_revenue": 10}, {"total_revenue": "n/a"}]

    rows = reports.revenue("2024-01-01", None)

    assert [r.period for r in rows] == ["2024-01"]
    api.get.assert_called_once_with("/admin/reports/revenue", params={"from": "2024-01-01"}, fallback="Failed to load revenue report")


def test_summary_accepts_bare_or_enveloped_body(api):
    api.get.return_value = {"data": {"total_bookings": 7, "pending_bookings": 2}}
    stats = ReportService(client=api, cache=QueryCache()).summary()
    assert stats.total_bookings == 7
    assert stats.total_revenue == 0


def test_credential_store_roundtrip(tmp_path):
    store = CredentialStore(str(tmp_path / "nested" / "creds.json"))
    assert store.get_token() is None

    store.save("t1", {"email": "a@b.c"})
    store.save("t2")
    assert store.get_token() == "t2"
    assert store.get_user() == {"email": "a@b.c"}

    store.clear()
    assert store.load() == {}


def test_credential_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "creds.json"
    path.write_text("{not json")
    assert CredentialStore(str(path)).load() == {}


def test_bookings_are_found_in_the_cached_list(admin, api):
    api.get.return_value = {"data": {"bookings": [{"id": "b1", "status": "pending"}, {"id": 2, "status": "confirmed"}]}}

    assert admin.get("bookings", "b1") == {"id": "b1", "status": "pending"}
    assert admin.get("bookings", "2")["status"] == "confirmed"

    api.get.assert_called_once_with("/admin/bookings", params={"page": 1, "limit": 1000}, fallback="Failed to load bookings")


def test_missing_record_is_a_404(admin, api):
    api.get.return_value = {"data": []}
    with pytest.raises(BackendError) as exc:
        admin.get("bookings", "b404")
    assert exc.value.status_code == 404


def test_students_use_their_detail_route(admin, api):
    api.get.return_value = {"data": {"id": "s1", "full_name": "Rina"}}
    assert admin.get("students", "s1") == {"id": "s1", "full_name": "Rina"}
    api.get.assert_called_once_with("/admin/students/s1", fallback="Failed to load student")


def test_booking_actions_need_no_detail_route(admin, api):
    api.get.side_effect = lambda path, **kw: {
        "/admin/bookings": {"data": {"bookings": [{"id": "b1", "status": "pending"}]}},
    }[path]

    BookingService(admin).confirm("b1")

    assert [c.args[0] for c in api.get.call_args_list] == ["/admin/bookings"]
    api.post.assert_called_once_with("/booking/b1/confirm", fallback="Failed to confirm booking")
