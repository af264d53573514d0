from __future__ import annotations

import logging
from typing import Any

import httpx

from academy_booking.application.exceptions import BackendContractError, BackendUnavailableError


class BackendClient:
    """Thin httpx wrapper for the academy backend. Every failure becomes a BackendUnavailableError."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self._logger = logging.getLogger(__name__)

    def close(self) -> None:
        self._client.close()

    def get_json(self, path: str, params: dict[str, Any] | None = None, token: str | None = None) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        return self._send("GET", path, params=params, headers=headers)

    def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        return self._send("POST", path, json=payload)

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            self._logger.error("Backend request timed out", extra={"path": path, "reason": str(e)})
            raise BackendUnavailableError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            self._logger.error("Backend request failed", extra={"path": path, "reason": str(e)})
            raise BackendUnavailableError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            backend_message = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    backend_message = body.get("message") or body.get("error")
            except ValueError:
                backend_message = None

            self._logger.error(
                "Backend returned error",
                extra={
                    "path": path,
                    "status": resp.status_code,
                    "reason": backend_message or resp.text[:200],
                },
            )
            raise BackendUnavailableError(
                f"{method} {path} returned {resp.status_code}",
                status_code=resp.status_code,
                backend_message=str(backend_message) if backend_message else None,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise BackendContractError(f"{method} {path} returned non-JSON body") from e
