from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .model import HandlerConfig

TRUE_VALUES = {"true", "1", "yes", "on", "enabled"}
FALSE_VALUES = {"false", "0", "no", "off", "disabled"}
ENV_PREFIX = "SLACK_HANDLER_"

# Chef attribute path: node['chef_client']['handler']['slack']['webhooks']
REGISTRY_PATH = ("chef_client", "handler", "slack", "webhooks")


class HandlerConfigError(ValueError):
    def __init__(self, *, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def parse_optional_bool(value: str | None, label: str) -> bool | None:
    """Return None when unset so the value can still fall back to a default."""
    if value is None or not value.strip():
        return None
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise HandlerConfigError(
        code="invalid_config",
        message=f"invalid_config: {label} must be a boolean, got {value!r}",
    )


def _optional_str(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def build_config(options: Mapping[str, Any]) -> HandlerConfig:
    try:
        return HandlerConfig.model_validate(dict(options))
    except ValidationError as e:
        raise HandlerConfigError(
            code="invalid_config", message=f"invalid_config: {e}"
        ) from e


def config_from_env(environ: Mapping[str, str] | None = None) -> HandlerConfig:
    """
    Build a HandlerConfig from SLACK_HANDLER_* environment variables.

    Unset variables keep the HandlerConfig defaults.
    """
    env = os.environ if environ is None else environ
    options: dict[str, Any] = {}

    webhooks = env.get(f"{ENV_PREFIX}WEBHOOKS", "")
    options["webhooks"] = [w.strip() for w in webhooks.split(",") if w.strip()]

    for key in (
        "username",
        "icon_url",
        "icon_emoji",
        "message_detail_level",
        "cookbook_detail_level",
    ):
        value = _optional_str(env.get(f"{ENV_PREFIX}{key.upper()}"))
        if value is not None:
            options[key] = value

    options["fail_only"] = parse_optional_bool(
        env.get(f"{ENV_PREFIX}FAIL_ONLY"), f"{ENV_PREFIX}FAIL_ONLY"
    )
    verify_ssl = parse_optional_bool(
        env.get(f"{ENV_PREFIX}VERIFY_SSL"), f"{ENV_PREFIX}VERIFY_SSL"
    )
    if verify_ssl is not None:
        options["verify_ssl"] = verify_ssl

    raw_timeout = _optional_str(env.get(f"{ENV_PREFIX}TIMEOUT_SECONDS"))
    if raw_timeout is not None:
        try:
            options["timeout"] = float(raw_timeout)
        except ValueError as e:
            raise HandlerConfigError(
                code="invalid_config",
                message=(
                    f"invalid_config: {ENV_PREFIX}TIMEOUT_SECONDS must be a number, "
                    f"got {raw_timeout!r}"
                ),
            ) from e

    return build_config(options)


def load_webhook_registry(path: Path) -> dict[str, dict[str, Any]]:
    """
    Load webhook definitions from a JSON file.

    Accepts either a flat {name: {"url": ...}} object or the nested Chef
    attribute layout chef_client.handler.slack.webhooks.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise HandlerConfigError(
            code="invalid_registry",
            message=f"invalid_registry: cannot read {path}: {e}",
        ) from e

    if isinstance(data, dict) and REGISTRY_PATH[0] in data:
        for key in REGISTRY_PATH:
            if not isinstance(data, dict) or key not in data:
                raise HandlerConfigError(
                    code="invalid_registry",
                    message=f"invalid_registry: missing attribute {key}",
                )
            data = data[key]

    if not isinstance(data, dict):
        raise HandlerConfigError(
            code="invalid_registry",
            message="invalid_registry: webhook registry must be a JSON object",
        )
    return data
