import logging
import pytest
from music_admin.core.logger import logger, setup_logging
from music_admin.services.slots import normalize_slots


@pytest.fixture
def error_log(tmp_path):
    path = tmp_path / "errors.log"
    setup_logging(level="DEBUG", error_log=str(path))
    yield path
    setup_logging()


def _read(path):
    # closing the sinks flushes the file
    logger.remove()
    return path.read_text(encoding="utf-8")


def test_dropped_slot_lands_in_error_log(error_log):
    normalize_slots([{"id": "s1", "slots": [{"id": "bad", "start_time": "2024-13-45T99:00:00"}]}])

    content = _read(error_log)
    assert "WARNING" in content
    assert "Dropping slot #0 of schedule s1" in content


def test_info_stays_out_of_error_log(error_log):
    logger.info("Logged in as admin@school.id")
    logger.warning("Backend logout failed")

    content = _read(error_log)
    assert "Backend logout failed" in content
    assert "Logged in as" not in content


def test_stdlib_records_are_routed_through_loguru(error_log):
    logging.getLogger("urllib3.connectionpool").error("Connection pool is full")

    assert "Connection pool is full" in _read(error_log)
