from __future__ import annotations

from ..models import LoginResponse
from .base import BaseClient, _validate

LOGIN_PATH = "/auth/login"


class AuthClient(BaseClient):
    async def login(self, username: str, password: str) -> LoginResponse:
        payload = {"username": username, "password": password}
        data = await self._request("POST", LOGIN_PATH, json_body=payload, is_login=True)
        return _validate(LoginResponse, data, LOGIN_PATH)
