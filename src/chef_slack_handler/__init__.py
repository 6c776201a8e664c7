from __future__ import annotations

from .config import (
    HandlerConfigError,
    build_config,
    config_from_env,
    load_webhook_registry,
)
from .handler import SlackHandler
from .message import format_message
from .model import (
    CookbookVersion,
    HandlerConfig,
    ReportSummary,
    RunStatus,
    TargetResult,
    WebhookTarget,
)
from .redact import redact_url
from .transport import build_request_body, deliver

__all__ = [
    "CookbookVersion",
    "HandlerConfig",
    "HandlerConfigError",
    "ReportSummary",
    "RunStatus",
    "SlackHandler",
    "TargetResult",
    "WebhookTarget",
    "build_config",
    "build_request_body",
    "config_from_env",
    "deliver",
    "format_message",
    "load_webhook_registry",
    "redact_url",
]
