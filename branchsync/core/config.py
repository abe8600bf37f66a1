"""Centralised configuration loader for the branch sync job."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from branchsync.github_exceptions import GithubConfigurationError
from branchsync.models import (
    ApplicationIdentity,
    ContentChange,
    PullRequestMetadata,
)

MAX_JWT_EXPIRATION_SECONDS = 600


class GitHubSettings(BaseModel):
    api_url: str = Field(
        default_factory=lambda: os.getenv("GITHUB_API_URL", "https://api.github.com")
    )
    app_id: Optional[str] = Field(default_factory=lambda: os.getenv("GITHUB_APP_ID"))
    private_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("GITHUB_APP_PRIVATE_KEY")
    )
    # Account login the app is installed on; falls back to repository.owner
    installation_account: Optional[str] = Field(
        default_factory=lambda: os.getenv("GITHUB_INSTALLATION_ACCOUNT")
    )
    jwt_expiration_seconds: int = Field(default=MAX_JWT_EXPIRATION_SECONDS)
    timeout_seconds: float = Field(default=30)

    @field_validator("app_id", mode="before")
    @classmethod
    def _coerce_app_id(cls, value: Any) -> Optional[str]:
        # YAML reads a bare numeric id as int
        return str(value) if value is not None else None

    @field_validator("jwt_expiration_seconds")
    @classmethod
    def _cap_expiration(cls, value: int) -> int:
        if value <= 0 or value > MAX_JWT_EXPIRATION_SECONDS:
            raise ValueError(
                f"jwt_expiration_seconds must be within 1..{MAX_JWT_EXPIRATION_SECONDS}"
            )
        return value


class RepositorySettings(BaseModel):
    owner: Optional[str] = Field(default_factory=lambda: os.getenv("GITHUB_REPO_OWNER"))
    name: Optional[str] = Field(default_factory=lambda: os.getenv("GITHUB_REPO_NAME"))
    base_branch: str = Field(default="dev")
    target_branch: str = Field(default="test")


class ChangeSettings(BaseModel):
    path: Optional[str] = Field(default=None)
    content: str = Field(default="")
    message: str = Field(default="Update content")
    initial_content: Optional[str] = Field(default=None)
    initial_message: Optional[str] = Field(default="File creation")


class PullRequestSettings(BaseModel):
    title: str = Field(default="Timely content update")
    body: str = Field(default="")
    reviewers: List[str] = Field(default_factory=list)
    assignee: Optional[str] = Field(default=None)
    label: Optional[str] = Field(default=None)


class LoggingSettings(BaseModel):
    """Logging configuration loaded from branchsync.yml."""

    # Accept either a level name (e.g. INFO, DEBUG) or numeric level as str.
    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


class Settings(BaseModel):
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    change: ChangeSettings = Field(default_factory=ChangeSettings)
    pull_request: PullRequestSettings = Field(default_factory=PullRequestSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def missing_fields(self) -> List[str]:
        required = {
            "github.app_id": self.github.app_id,
            "github.private_key": self.github.private_key,
            "repository.owner": self.repository.owner,
            "repository.name": self.repository.name,
            "change.path": self.change.path,
        }
        return [name for name, value in required.items() if not value]

    def validate_required(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise GithubConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )
        if self.repository.base_branch == self.repository.target_branch:
            raise GithubConfigurationError(
                "repository.base_branch and repository.target_branch must differ"
            )

    @property
    def installation_account(self) -> str:
        return self.github.installation_account or self.repository.owner or ""

    def identity(self) -> ApplicationIdentity:
        return ApplicationIdentity(
            app_id=self.github.app_id, private_key=self.github.private_key
        )

    def content_change(self) -> ContentChange:
        return ContentChange(
            path=self.change.path,
            content=self.change.content,
            message=self.change.message,
            initial_content=self.change.initial_content,
            initial_message=self.change.initial_message,
        )

    def pull_request_metadata(self) -> PullRequestMetadata:
        return PullRequestMetadata(**self.pull_request.model_dump())


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config at {path} must be a mapping")
        return data


def _config_path() -> Optional[Path]:
    env_path = os.getenv("BRANCHSYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser().resolve()
    for base in (Path.cwd(), *Path(__file__).resolve().parents):
        candidate = base / "config" / "branchsync.yml"
        if candidate.exists():
            return candidate
    return None


def load_settings(path: Optional[Path] = None) -> Settings:
    config_path = path or _config_path()
    raw: Dict[str, Any] = {}
    if config_path is not None:
        if not config_path.exists():
            raise GithubConfigurationError(f"Config file not found: {config_path}")
        raw = _load_yaml(config_path)
    # Blank YAML sections (e.g. "github:") load as None
    raw = {key: value for key, value in raw.items() if value is not None}
    return Settings(**raw)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
