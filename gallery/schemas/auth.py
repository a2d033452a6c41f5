from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CurrentUser(BaseModel):
    """Minimal identity fields the service returns for a signed-in viewer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class AuthState(BaseModel):
    user: Optional[CurrentUser] = None
    is_authenticated: bool = False
    # True until the first session check settles.
    loading: bool = True


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"email": "visitor@example.com", "password": "secret"}
        }
    }


class LoginResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: CurrentUser
    redirect_path: Optional[str] = None
    message: Optional[str] = None
