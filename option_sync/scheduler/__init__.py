"""Periodic execution of the sync job."""

from .apsched_adapter import APSchedulerAdapter, SYNC_JOB_ID

__all__ = ["APSchedulerAdapter", "SYNC_JOB_ID"]
