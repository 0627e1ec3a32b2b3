from __future__ import annotations

from typing import Any, Dict, List

from common.http_client import HttpClient

from .errors import unwrap


class UserService:
    """Administrative user management. Payloads arrive wrapped as `{"data": ...}`."""

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def list_users(self) -> List[Dict[str, Any]]:
        resp = await self._http.get("/user/all")
        return unwrap(resp, action="list users", nested=True)

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        resp = await self._http.get(f"/user/{user_id}")
        return unwrap(resp, action=f"get user {user_id}", nested=True)

    async def update_user(self, user_id: str, user_data: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._http.put(f"/user/{user_id}", user_data)
        return unwrap(resp, action=f"update user {user_id}", nested=True)

    async def delete_user(self, user_id: str) -> Any:
        resp = await self._http.delete(f"/user/{user_id}")
        return unwrap(resp, action=f"delete user {user_id}", nested=True)

    async def change_role(self, user_id: str, role: str) -> Dict[str, Any]:
        resp = await self._http.put(f"/user/{user_id}/role", {"role": role})
        return unwrap(resp, action=f"change role of {user_id}", nested=True)

    async def set_access(self, user_id: str, is_allowed: bool) -> Dict[str, Any]:
        resp = await self._http.put(f"/user/{user_id}/access", {"isAllowed": is_allowed})
        return unwrap(resp, action=f"set access of {user_id}", nested=True)

    async def stats(self) -> Dict[str, Any]:
        resp = await self._http.get("/user/stats")
        return unwrap(resp, action="user stats", nested=True)
