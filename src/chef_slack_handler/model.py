from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MessageDetailLevel = Literal["none", "elapsed", "resources"]
CookbookDetailLevel = Literal["none", "all"]


class HandlerConfig(BaseModel):
    """Handler options, fixed once the handler is constructed."""

    model_config = ConfigDict(frozen=True)

    webhooks: list[str] = Field(
        default_factory=list, description="Ordered webhook selector names"
    )
    username: str | None = None
    icon_url: str | None = Field(None, description="Takes precedence over icon_emoji")
    icon_emoji: str | None = None
    fail_only: bool | None = None
    message_detail_level: MessageDetailLevel | None = None
    cookbook_detail_level: CookbookDetailLevel | None = None
    timeout: float = Field(15, gt=0, description="Per-target timeout in seconds")
    verify_ssl: bool = False

    @field_validator("webhooks", mode="before")
    @classmethod
    def unwrap_webhook_names(cls, v):
        # Chef attributes store the selectors as {"name": [...]}
        if v is None:
            return []
        if isinstance(v, dict):
            return v.get("name") or []
        return v


class WebhookTarget(BaseModel):
    """One resolved webhook registry entry.

    Overrides left as None fall back to the HandlerConfig defaults.
    """

    url: str | None = None
    fail_only: bool | None = None
    message_detail_level: MessageDetailLevel | None = None
    cookbook_detail_level: CookbookDetailLevel | None = None


class CookbookVersion(BaseModel):
    name: str
    version: str


class RunStatus(BaseModel):
    """Read-only view of a finished run, supplied by the host."""

    model_config = ConfigDict(frozen=True)

    success: bool
    node_name: str
    elapsed_time: int | float = 0
    updated_resources: list[str] | None = None
    exception: str | None = None

    @field_validator("exception", mode="before")
    @classmethod
    def describe_exception(cls, v: Any):
        if isinstance(v, BaseException):
            return str(v)
        return v


class TargetResult(BaseModel):
    name: str
    url_redacted: str = ""
    result: Literal["sent", "skipped", "error", "timeout"]
    http_status: int | None = None
    reason_code: str | None = None


class ReportSummary(BaseModel):
    schema_version: str = "v1"
    run_succeeded: bool
    node_name: str
    timestamp_utc: str
    notification_status: Literal["sent", "failed", "skipped"]
    targets_attempted: list[TargetResult] = Field(default_factory=list)
    reason_codes: list[str] = Field(default_factory=list)
