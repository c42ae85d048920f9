"""Tests for the scheduler wrapper and API error translation."""

from dispatchsync.config import Settings
from dispatchsync.domain.errors import (
    DispatchStateError,
    NotFoundError,
    TransientStoreError,
)
from dispatchsync.infrastructure.api.errors import http_error
from dispatchsync.infrastructure.scheduler.jobs import (
    ORPHAN_PURGE_JOB_ID,
    SWEEP_JOB_ID,
    SchedulerWrapper,
    init_sync_scheduler,
)


def test_jobs_are_registered():
    wrapper = SchedulerWrapper()
    init_sync_scheduler(wrapper, Settings(SWEEP_INTERVAL_MINUTES=3, ORPHAN_PURGE_INTERVAL_MINUTES=30))

    assert sorted(wrapper.job_ids()) == sorted([SWEEP_JOB_ID, ORPHAN_PURGE_JOB_ID])
    assert wrapper.running is False


def test_registering_twice_replaces_jobs():
    wrapper = SchedulerWrapper()
    settings = Settings()
    init_sync_scheduler(wrapper, settings)
    init_sync_scheduler(wrapper, settings)

    assert len(wrapper.job_ids()) == 2


def test_shutdown_without_start_is_harmless():
    wrapper = SchedulerWrapper()
    wrapper.shutdown()
    assert wrapper.running is False


def test_http_error_mapping():
    assert http_error(NotFoundError("x")).status_code == 404
    assert http_error(DispatchStateError("x")).status_code == 409
    assert http_error(TransientStoreError("x")).status_code == 503
