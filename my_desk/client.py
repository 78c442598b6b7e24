"""HTTP client for the My Desk Remote Store API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx


class RemoteStoreError(RuntimeError):
    """Raised when the Remote Store answers with a non-2xx status."""

    def __init__(self, method: str, path: str, status_code: int, message: str) -> None:
        super().__init__(f"{method} {path} failed: {message}")
        self.method = method
        self.path = path
        self.status_code = status_code
        self.message = message


class RemoteClient:
    """Async wrapper around the Remote Store endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Cache-Control": "no-cache",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        kwargs: Dict[str, Any] = {}
        if payload is not None:
            kwargs["json"] = payload
        response = await self._client.request(method, path, **kwargs)
        if response.is_error:
            message = f"HTTP {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            raise RemoteStoreError(method, path, response.status_code, message)
        return response.json()

    # region Registers
    async def get_inward(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/inward")

    async def add_inward(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/inward", payload)

    async def update_inward(self, entry_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/inward/{entry_id}", patch)

    async def delete_inward(self, entry_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/inward/{entry_id}")

    async def get_outward(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/outward")

    async def add_outward(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/outward", payload)

    async def update_outward(self, entry_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/outward/{entry_id}", patch)

    async def delete_outward(self, entry_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/outward/{entry_id}")

    # endregion

    # region Attendance, tasks, profile, offices
    async def get_attendance(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/attendance")

    async def upsert_attendance(self, day: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/attendance", {"date": day, "record": record})

    async def get_tasks(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/tasks")

    async def add_task(self, task: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/tasks", task)

    async def update_task(self, task_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/tasks/{task_id}", patch)

    async def delete_task(self, task_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/tasks/{task_id}")

    async def get_profile(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/profile")

    async def save_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/api/profile", profile)

    async def get_offices(self) -> List[str]:
        return await self._request("GET", "/api/offices")

    async def save_offices(self, offices: List[str]) -> List[str]:
        return await self._request("PUT", "/api/offices", offices)

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/me")

    # endregion


__all__ = ["RemoteClient", "RemoteStoreError"]
