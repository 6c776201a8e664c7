from __future__ import annotations

import json
import logging
import ssl
import urllib.error
import urllib.request
from typing import Any

from .model import HandlerConfig
from .redact import redact_url

logger = logging.getLogger(__name__)

HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": "ChefSlackHandler/1.0",
}


def build_request_body(
    message: str, config: HandlerConfig, attachment_text: str | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if config.username is not None:
        body["username"] = config.username
    # icon_url takes precedence over icon_emoji
    if config.icon_url:
        body["icon_url"] = config.icon_url
    elif config.icon_emoji:
        body["icon_emoji"] = config.icon_emoji
    body["text"] = message
    if attachment_text is not None:
        body["attachments"] = [{"text": attachment_text}]
    return body


def _ssl_context(verify: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def deliver(
    message: str,
    url: str,
    config: HandlerConfig,
    attachment_text: str | None = None,
) -> int | None:
    """
    POST one chat message to a webhook.

    The HTTP status is returned as-is; a non-2xx answer still counts as attempted.
    Timeouts and connection failures propagate to the caller.
    """
    logger.debug(
        f"Sending slack message {message!r} to webhook {redact_url(url)} "
        f"{'with' if attachment_text is not None else 'without'} a text attachment"
    )
    payload = json.dumps(build_request_body(message, config, attachment_text)).encode(
        "utf-8"
    )
    req = urllib.request.Request(url, data=payload, headers=HEADERS, method="POST")

    try:
        with urllib.request.urlopen(
            req, timeout=config.timeout, context=_ssl_context(config.verify_ssl)
        ) as response:
            return response.status
    except urllib.error.HTTPError as e:
        logger.info(f"Webhook {redact_url(url)} answered HTTP {e.code}")
        return e.code
