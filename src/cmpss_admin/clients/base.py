from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from ..exceptions import ResponseShapeError
from ..models import ActionResult


class Requester(Protocol):
    async def request(self, method: str, path: str, **kwargs: Any) -> Any: ...


@dataclass
class BaseClient:
    gateway: Requester

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        return await self.gateway.request(method, path, **kwargs)

    async def _get_model(self, path: str, model: type[BaseModel]) -> Any:
        data = await self._request("GET", path)
        return _validate(model, data, path)

    async def _action(self, method: str, path: str, model: type[BaseModel], **kwargs: Any) -> Any:
        """Run a mutation; bare or empty bodies become ``ActionResult``."""
        data = await self._request(method, path, **kwargs)
        if not isinstance(data, dict) or "id" not in data:
            return ActionResult.model_validate(data if isinstance(data, dict) else {})
        return _validate(model, data, path)


def _validate(model: type[BaseModel], data: Any, path: str) -> Any:
    if not isinstance(data, dict):
        raise ResponseShapeError(
            code="INVALID_RESPONSE",
            message=f"Expected {path} response to be a JSON object",
            details=None,
            status_code=200,
            raw_payload=data,
        )
    try:
        return model.model_validate(data)
    except ModelValidationError as exc:
        raise ResponseShapeError(
            code="INVALID_RESPONSE",
            message=f"Unexpected {path} response: {exc.error_count()} validation errors",
            details=exc.errors(include_url=False),
            status_code=200,
            raw_payload=data,
        ) from exc
