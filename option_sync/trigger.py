"""Authorised entry point shared by the HTTP trigger and the scheduler."""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from typing import Callable

from .config import AuthConfig
from .errors import StoreReadError
from .logging_conf import get_logger
from .orchestrator import Orchestrator, SyncSummary


@dataclass(frozen=True, slots=True)
class TriggerResult:
    """Status code plus the one-line message returned to the caller."""

    status_code: int
    message: str
    summary: SyncSummary | None = None

    def as_payload(self) -> dict[str, str]:
        return {"message": self.message}


class SyncTrigger:
    """Check the shared secret, then run one sync."""

    def __init__(self, auth: AuthConfig, orchestrator_factory: Callable[[], Orchestrator]) -> None:
        self.auth = auth
        self.orchestrator_factory = orchestrator_factory
        self.logger = get_logger("trigger")

    def authorize(self, authorization: str | None) -> bool:
        expected = self.auth.expected_header()
        if expected is None or authorization is None:
            return False
        return hmac.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8"))

    def handle(self, authorization: str | None) -> TriggerResult:
        if not self.authorize(authorization):
            self.logger.warning("trigger_unauthorized", header_present=authorization is not None)
            return TriggerResult(401, "Unauthorized")
        return self.run()

    def run(self) -> TriggerResult:
        try:
            summary = self.orchestrator_factory().run_sync()
        except StoreReadError as exc:
            self.logger.error("stored_options_read_failed", error=str(exc))
            return TriggerResult(500, "Error fetching stored options")
        return TriggerResult(200, summary.message(), summary)


__all__ = ["SyncTrigger", "TriggerResult"]
