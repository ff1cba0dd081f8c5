"""
Daily audit-retention job.
"""
from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.triggers.cron import CronTrigger
from sqlmodel import select

from vozip.models import AuditLog
from vozip.scheduler import AUDIT_CLEANUP_JOB_ID, build_scheduler, parse_run_hour, run_audit_cleanup

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("value,expected", [
    ("03:00", (3, 0)),
    ("23:45", (23, 45)),
    ("25:00", (3, 0)),
    ("abc", (3, 0)),
    (None, (3, 0)),
])
def test_parse_run_hour(value, expected):
    assert parse_run_hour(value) == expected


def test_cleanup_job_is_registered(db, settings):
    scheduler = build_scheduler(db, settings)

    job = scheduler.get_job(AUDIT_CLEANUP_JOB_ID)

    assert job is not None
    assert isinstance(job.trigger, CronTrigger)
    assert job.args == (db, settings.audit_retention_days)
    assert not scheduler.running


def test_cleanup_removes_only_expired_rows(db):
    now = datetime.now(timezone.utc)
    with db.session() as session:
        session.add(AuditLog(action="LOGIN", module="AUTENTICACION", created_at=now - timedelta(days=200)))
        session.add(AuditLog(action="LOGIN", module="AUTENTICACION", created_at=now - timedelta(days=5)))
        session.commit()

    assert run_audit_cleanup(db, 90) == 1
    with db.session() as session:
        assert len(session.exec(select(AuditLog)).all()) == 1
