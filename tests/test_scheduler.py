"""
test_scheduler.py — Tests for the APScheduler follow-up job

configure_scheduler reads settings via `from .config import settings`
inside the function, so tests patch bidtracker.config.settings.

Called by: pytest
Depends on: bidtracker/scheduler.py
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.orm import Session

from bidtracker.scheduler import _job_followups, configure_scheduler, scheduler


@pytest.fixture(autouse=True)
def _clear_scheduler_jobs():
    """Remove all jobs before/after each test to prevent leakage."""
    for job in scheduler.get_jobs():
        job.remove()
    yield
    for job in scheduler.get_jobs():
        job.remove()


def _mock_settings(**overrides):
    defaults = dict(followup_emails_enabled=True, followup_hour=9, followup_timezone="America/New_York")
    defaults.update(overrides)
    return MagicMock(**defaults)


# ── configure_scheduler() ──────────────────────────────────────────────


def test_followup_job_registered():
    with patch("bidtracker.config.settings", _mock_settings(followup_hour=7)):
        configure_scheduler()
    job = scheduler.get_job("followup_emails")
    assert job is not None
    fields = {f.name: str(f) for f in job.trigger.fields}
    assert fields["hour"] == "7"
    assert fields["minute"] == "0"
    assert str(job.trigger.timezone) == "America/New_York"


def test_disabled_registers_nothing():
    with patch("bidtracker.config.settings", _mock_settings(followup_emails_enabled=False)):
        configure_scheduler()
    assert scheduler.get_jobs() == []


# ── _job_followups() ───────────────────────────────────────────────────


@pytest.fixture()
def scheduler_db(db_session: Session):
    """Patch SessionLocal so the job uses the test DB."""
    original_close = db_session.close
    db_session.close = MagicMock()
    with patch("bidtracker.database.SessionLocal", return_value=db_session):
        yield db_session
    db_session.close = original_close


@pytest.mark.asyncio
async def test_job_runs_followups_and_closes_session(scheduler_db):
    run = AsyncMock(return_value={"checked": 0})
    with patch("bidtracker.services.followup_service.run_followups", run):
        await _job_followups()
    run.assert_awaited_once_with(scheduler_db)
    scheduler_db.close.assert_called_once()


@pytest.mark.asyncio
async def test_job_failure_is_contained(scheduler_db):
    run = AsyncMock(side_effect=RuntimeError("smtp exploded"))
    with patch("bidtracker.services.followup_service.run_followups", run):
        await _job_followups()
    scheduler_db.close.assert_called_once()
