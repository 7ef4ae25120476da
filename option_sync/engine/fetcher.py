"""HTTP fetching of the target page."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

import httpx
import structlog

from ..config import TargetConfig
from ..errors import FetchError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@dataclass(slots=True)
class FetchRequest:
    """Input for the fetcher."""

    url: str
    headers: dict[str, str] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Retrieve raw markup with a single blocking GET, no retries."""

    def __init__(
        self,
        target: TargetConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.target = target
        self.logger = logger or structlog.get_logger("option_sync.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=target.timeout,
            headers={"User-Agent": target.user_agent or DEFAULT_USER_AGENT},
            transport=transport,
        )

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_page(self) -> FetchResponse:
        return self.fetch(FetchRequest(url=self.target.url))

    def fetch(self, request: FetchRequest) -> FetchResponse:
        timeout = request.timeout or self.target.timeout
        try:
            response = self._client.get(request.url, headers=request.headers, timeout=timeout)
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=request.url, error=str(exc))
            raise FetchError(f"Request to {request.url} failed: {exc}", url=request.url) from exc
        if self._is_failure(response):
            self.logger.warning("fetch_bad_status", url=request.url, status_code=response.status_code)
            raise FetchError(
                f"Unexpected status {response.status_code} from {request.url}",
                url=request.url,
                status_code=response.status_code,
            )
        self.logger.debug("fetch_ok", url=str(response.url), status_code=response.status_code)
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            raw=response,
        )

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return status_code >= 400 or status_code == 0


__all__ = ["DEFAULT_USER_AGENT", "FetchRequest", "FetchResponse", "Fetcher"]
