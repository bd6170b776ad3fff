"""Async REST client for the notifications endpoints."""

from __future__ import annotations

from typing import Any

import httpx


class NotificationsApiError(RuntimeError):
    """Raised when the notifications API cannot be reached or rejects a call."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _extract_error_detail(response: httpx.Response) -> str:
    detail = response.reason_phrase or f"Request failed ({response.status_code})"
    try:
        payload = response.json()
    except ValueError:
        return detail

    if isinstance(payload, dict):
        body_detail = payload.get("detail")
        if isinstance(body_detail, str):
            return body_detail
        if isinstance(body_detail, list) and body_detail:
            return ". ".join(
                str(item.get("msg", "Validation error"))
                for item in body_detail
                if isinstance(item, dict)
            )
    return detail


class NotificationsApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=httpx.Timeout(timeout, connect=3.0)
        )
        self._headers = {"Authorization": f"Bearer {token}"}

    async def __aenter__(self) -> "NotificationsApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def list_page(
        self, *, cursor: str | None = None, limit: int = 20
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        return await self._request("GET", "/notifications/", params=params)

    async def unseen_count(self) -> int:
        body = await self._request("GET", "/notifications/unseen-count")
        return int(body["unseen_count"])

    async def mark_all_seen(self) -> int:
        body = await self._request("POST", "/notifications/mark-all-seen")
        return int(body["modified_count"])

    async def mark_read(self, notification_id: int) -> bool:
        body = await self._request("POST", f"/notifications/{notification_id}/read")
        return bool(body["success"])

    async def _request(
        self, method: str, path: str, *, params: dict[str, Any] | None = None
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, params=params, headers=self._headers
            )
        except httpx.RequestError as exc:
            raise NotificationsApiError(503, "Notifications service is unavailable.") from exc

        if response.is_error:
            raise NotificationsApiError(response.status_code, _extract_error_detail(response))
        return response.json()


__all__ = ["NotificationsApiClient", "NotificationsApiError"]
