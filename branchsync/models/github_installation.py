"""GitHub App identity, assertion and installation token models"""

import time
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ApplicationIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_id: str
    private_key: SecretStr


class AppAssertion(BaseModel):
    """Signed application-level JWT together with its validity window."""

    model_config = ConfigDict(frozen=True)

    token: SecretStr
    issued_at: int
    expires_at: int

    def is_expired(self, now: Optional[float] = None) -> bool:
        current = int(now if now is not None else time.time())
        return current >= self.expires_at


class Installation(BaseModel):
    id: int
    account_login: str
    account_type: Optional[str] = None  # "User" or "Organization"

    @classmethod
    def from_api(cls, payload: dict) -> "Installation":
        account = payload.get("account") or {}
        return cls(
            id=payload["id"],
            account_login=account.get("login", ""),
            account_type=account.get("type"),
        )


class InstallationToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: SecretStr
    installation_id: int
    expires_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def bearer(self) -> str:
        return self.token.get_secret_value()
