"""Firebase Authentication REST payloads."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _RestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TokenResponse(_RestModel):
    """Body returned by ``accounts:signInWithPassword`` and ``accounts:signUp``."""

    local_id: str
    email: str = ""
    display_name: Optional[str] = None
    id_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[str] = None


class ProfileUpdateResponse(_RestModel):
    """Body returned by ``accounts:update``."""

    local_id: str
    email: str = ""
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[str] = None


class AccountInfo(_RestModel):
    local_id: str
    email: str = ""
    display_name: Optional[str] = None
    created_at: Optional[str] = Field(default=None, description="Account creation time, epoch milliseconds")


class LookupResponse(_RestModel):
    """Body returned by ``accounts:lookup``."""

    users: List[AccountInfo] = Field(default_factory=list)


class RefreshResponse(BaseModel):
    """Body returned by the Secure Token ``token`` endpoint (snake_case keys)."""

    model_config = ConfigDict(extra="ignore")

    id_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[str] = None
    user_id: Optional[str] = None
