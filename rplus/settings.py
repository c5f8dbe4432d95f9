import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rplus.config_loader import DEFAULT_CONFIG_PATH, ConfigError, load_config_file

REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class WebhookServer(BaseModel):
    addr: str = ":8080"  # "host:port" or ":port" for all interfaces
    certificate: str = ""
    certificate_key: str = ""
    pr_path: str = "/pr"
    comment_path: str = "/comment"
    secret: str = ""

    @field_validator("secret")
    @classmethod
    def _secret_required(cls, v: str) -> str:
        if not v:
            raise ValueError("webhook secret must not be empty")
        return v

    @field_validator("pr_path", "comment_path")
    @classmethod
    def _absolute_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"endpoint path must start with '/': {v!r}")
        return v

    @model_validator(mode="after")
    def _tls_pair(self) -> "WebhookServer":
        if bool(self.certificate) != bool(self.certificate_key):
            raise ValueError("certificate and certificate-key must be set together")
        if self.pr_path == self.comment_path:
            raise ValueError("pr-path and comment-path must differ")
        return self

    @property
    def tls(self) -> bool:
        return bool(self.certificate and self.certificate_key)

    def host_port(self) -> Tuple[str, int]:
        host, sep, port = self.addr.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid listen address: {self.addr!r}")
        return host or "0.0.0.0", int(port)


class Settings(BaseSettings):
    # --- GitHub ---
    repo: str  # "owner/name", e.g. "rolandshoemaker/r-plus"
    access_token: str = ""
    api_base: str = "https://api.github.com"
    request_timeout: float = Field(10.0, gt=0)  # seconds, bounds every status call

    # --- Review policy ---
    required_reviews: int = Field(1, ge=1)
    reviewers: List[str] = []  # empty: anyone's approval counts
    review_pattern: str = r"r\+"
    self_review: bool = False
    dedupe_reviewers: bool = False

    # --- Commit status ---
    status_context: str = "github/reviews"
    status_description: str = ""

    # --- Webhook listener ---
    webhook_server: WebhookServer

    log_level: str = "INFO"

    # --- Pydantic settings ---
    model_config = SettingsConfigDict(
        env_prefix="RPLUS_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("repo")
    @classmethod
    def _owner_slash_name(cls, v: str) -> str:
        if not REPO_RE.match(v or ""):
            raise ValueError(f"repo must look like 'owner/name', got {v!r}")
        return v

    @field_validator("review_pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        if not v:
            raise ValueError("review-pattern must not be empty")
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid review-pattern {v!r}: {e}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log-level {v!r}, expected one of {sorted(LOG_LEVELS)}")
        return level

    @field_validator("api_base")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def review_regex(self) -> "re.Pattern[str]":
        return re.compile(self.review_pattern)

    @property
    def reviewer_set(self) -> Optional[frozenset]:
        return frozenset(self.reviewers) if self.reviewers else None


def load_settings(path: str = DEFAULT_CONFIG_PATH) -> Settings:
    """
    Read the YAML config at `path` and overlay it on environment values.
    Any problem is reported as a ConfigError; the caller should not start serving.
    """
    data = load_config_file(path)
    try:
        settings = Settings(**data)
        settings.webhook_server.host_port()
    except ValueError as e:  # pydantic.ValidationError included
        raise ConfigError(f"Invalid config file '{path}': {e}") from e
    return settings
