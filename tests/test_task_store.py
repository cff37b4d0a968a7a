from datetime import datetime, timezone

import pytest

from src.database.postgres import StaleRpaTasksError
from src.database.postgres_real import PostgresDB as SqlPostgresDB
from src.database.postgres_real import _normalize_connection_string
from src.integrations.contracts.carriers import RpaTaskState, RpaTaskStatus, dump_task_map
from src.submissions.task_store import SubmissionNotFoundError, read_task_map, update_task_map

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _task(carrier, status=RpaTaskState.QUEUED):
    return RpaTaskStatus(task_id=f"{carrier}_sub_1", status=status, submitted_at=NOW)


def _submission(db):
    return db.create_submission(business_name="Peachtree Fuel Stop LLC").id


def test_update_merges_without_dropping_other_carriers(db):
    sid = _submission(db)
    update_task_map(db, sid, lambda current: {"encova": _task("encova")})

    merged = update_task_map(db, sid, lambda current: {"guard": _task("guard")})

    assert set(merged) == {"encova", "guard"}
    assert set(read_task_map(db, sid)) == {"encova", "guard"}
    assert db.get_submission(sid).rpa_tasks_version == 2


def test_empty_update_does_not_write(db):
    sid = _submission(db)

    assert update_task_map(db, sid, lambda current: {}) == {}
    assert db.get_submission(sid).rpa_tasks_version == 0


def test_lost_race_is_retried_against_fresh_state(db):
    sid = _submission(db)
    attempts = []

    def updater(current):
        attempts.append(set(current))
        if len(attempts) == 1:
            # another writer lands between our read and our write
            submission = db.get_submission(sid)
            db.update_rpa_tasks(sid, dump_task_map({"guard": _task("guard")}), submission.rpa_tasks_version)
        return {"encova": _task("encova")}

    merged = update_task_map(db, sid, updater)

    assert attempts == [set(), {"guard"}]
    assert set(merged) == {"encova", "guard"}


def test_gives_up_after_max_attempts(db):
    sid = _submission(db)

    def always_interrupted(current):
        submission = db.get_submission(sid)
        db.update_rpa_tasks(sid, {}, submission.rpa_tasks_version)
        return {"encova": _task("encova")}

    with pytest.raises(StaleRpaTasksError):
        update_task_map(db, sid, always_interrupted, max_attempts=2)


def test_unknown_submission(db):
    with pytest.raises(SubmissionNotFoundError):
        read_task_map(db, "missing")
    with pytest.raises(SubmissionNotFoundError):
        update_task_map(db, "missing", lambda current: {"encova": _task("encova")})


def test_in_memory_reads_are_copies(db):
    sid = _submission(db)
    db.get_submission(sid).rpa_tasks["encova"] = {"task_id": "x"}

    assert db.get_submission(sid).rpa_tasks == {}


def test_sql_store_compare_and_set(tmp_path):
    db = SqlPostgresDB(f"sqlite:///{tmp_path / 'dispatch.db'}")
    db.create_tables()
    assert db.ping()

    insured = db.create_insured_information({"corporationName": "Acme"}, corporation_name="Acme")
    sid = db.create_submission(business_name="Acme", insured_info_id=insured.id).id

    update_task_map(db, sid, lambda current: {"encova": _task("encova")})
    with pytest.raises(StaleRpaTasksError):
        db.update_rpa_tasks(sid, {}, expected_version=0)

    stored = db.get_submission(sid)
    assert stored.rpa_tasks_version == 1
    assert read_task_map(db, sid)["encova"].task_id == "encova_sub_1"
    assert db.get_insured_information(insured.id).data == {"corporationName": "Acme"}
    assert [s.id for s in db.list_submissions()] == [sid]


def test_normalize_connection_string():
    assert _normalize_connection_string("  psql 'postgresql://u:p@h/db'  ") == "postgresql://u:p@h/db"
    assert _normalize_connection_string('"postgresql://h/db"') == "postgresql://h/db"
