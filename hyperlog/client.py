"""HTTP client shared by the remote commander and querier."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from hyperlog.config import settings
from hyperlog.errors import InvalidOperationError, TransportError, error_for_kind

logger = logging.getLogger(__name__)


def raise_for_error(response: httpx.Response) -> None:
    """Translate an error response from the hyperlog server into a typed error."""
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}

    detail = body.get("detail") if isinstance(body, dict) else None
    if response.status_code == 422 and not isinstance(detail, str):
        # FastAPI request-validation errors carry a list of problems.
        raise InvalidOperationError(f"request rejected by server: {detail}")

    kind = body.get("error") if isinstance(body, dict) else None
    message = detail if isinstance(detail, str) else response.text
    if kind is None:
        raise TransportError(f"server returned HTTP {response.status_code}: {message}")
    raise error_for_kind(kind)(message)


class RemoteClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout,
        )

    def request(self, method: str, url: str, **kwargs: Any) -> Any:
        logger.debug("%s %s%s", method, self.base_url, url)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"failed to reach {self.base_url}: {exc}") from exc
        raise_for_error(response)
        if not response.content:
            return None
        return response.json()

    def close(self) -> None:
        self._client.close()
