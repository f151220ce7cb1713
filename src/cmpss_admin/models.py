from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int
    username: str
    role: str
    is_active: bool = True
    requires_second_factor: bool = Field(default=False, alias="require_2fa")


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    admin: Identity


class Credential(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class ActionResult(BaseModel):
    """Outcome of a mutation endpoint that answers with a bare success indicator."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    message: str | None = None
