from __future__ import annotations

import logging
import urllib.error
from concurrent.futures import ThreadPoolExecutor
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from .config import build_config
from .message import (
    FAILURE_PREFIX,
    SUCCESS_PREFIX,
    effective_fail_only,
    format_message,
)
from .model import (
    CookbookVersion,
    HandlerConfig,
    ReportSummary,
    RunStatus,
    TargetResult,
    WebhookTarget,
)
from .redact import redact_url
from .transport import deliver

logger = logging.getLogger(__name__)


def _get_utc_now() -> datetime:
    return datetime.now(UTC)


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, urllib.error.URLError) and isinstance(
        exc.reason, TimeoutError
    )


class SlackHandler:
    """Post-run report handler that notifies Slack webhooks.

    report() never raises: every failure is logged and recorded in the returned
    ReportSummary so a broken webhook cannot fail the host run.
    """

    def __init__(
        self,
        config: HandlerConfig | Mapping[str, Any] | None = None,
        clock: Callable[[], datetime] = _get_utc_now,
    ) -> None:
        logger.debug("Initializing SlackHandler")
        if config is None:
            config = HandlerConfig()
        elif not isinstance(config, HandlerConfig):
            config = build_config(config)
        self.config = config
        self._clock = clock

    def report(
        self,
        run_status: RunStatus,
        webhook_registry: Mapping[str, Any],
        cookbooks: Iterable[CookbookVersion] | None = None,
    ) -> ReportSummary:
        timestamp_utc = ""
        targets_attempted: list[TargetResult] = []
        reason_codes: list[str] = []

        try:
            timestamp_utc = self._clock().strftime("%Y-%m-%dT%H:%M:%SZ")
            cookbook_list = _collect_cookbooks(cookbooks)
            for name in self.config.webhooks:
                logger.debug(f"Sending handler report to webhook {name}")
                t_result = self._report_target(
                    name, run_status, webhook_registry, cookbook_list
                )
                targets_attempted.append(t_result)
                if t_result.reason_code and t_result.reason_code not in reason_codes:
                    reason_codes.append(t_result.reason_code)
        except Exception as e:
            logger.warning(f"Failed to send message to Slack: {e}")
            if "REPORT_ERROR" not in reason_codes:
                reason_codes.append("REPORT_ERROR")

        return ReportSummary(
            run_succeeded=run_status.success,
            node_name=run_status.node_name,
            timestamp_utc=timestamp_utc,
            notification_status=_summary_status(targets_attempted, reason_codes),
            targets_attempted=targets_attempted,
            reason_codes=reason_codes,
        )

    def _report_target(
        self,
        name: str,
        run_status: RunStatus,
        webhook_registry: Mapping[str, Any],
        cookbooks: list[CookbookVersion] | None,
    ) -> TargetResult:
        # 1. Resolve
        if webhook_registry is None or name not in webhook_registry:
            logger.warning(f"Webhook {name} is not defined in the webhook registry")
            return TargetResult(
                name=name, result="error", reason_code="UNKNOWN_WEBHOOK"
            )

        raw = webhook_registry[name]
        try:
            if isinstance(raw, WebhookTarget):
                target = raw
            else:
                target = WebhookTarget.model_validate(dict(raw))
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Webhook {name} has an invalid definition: {e}")
            return TargetResult(
                name=name, result="error", reason_code="INVALID_WEBHOOK"
            )

        if not target.url:
            logger.warning(f"Webhook {name} has no url, skipping")
            return TargetResult(name=name, result="skipped", reason_code="MISSING_URL")

        redacted = redact_url(target.url)
        t_result = TargetResult(name=name, url_redacted=redacted, result="error")

        # 2-3. Decide and send, bounded by the configured timeout
        executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="slack-handler"
        )
        try:
            future = executor.submit(
                self._send, target, run_status, cookbooks, redacted
            )
            sent, t_result.http_status = future.result(timeout=self.config.timeout)
            t_result.result = "sent" if sent else "skipped"

        except Exception as e:
            if _is_timeout(e):
                t_result.result = "timeout"
                t_result.reason_code = "TIMEOUT"
                logger.warning(
                    f"Webhook {name} timed out after {self.config.timeout} seconds"
                )
            elif isinstance(e, OSError):
                t_result.reason_code = "CONNECTION_ERROR"
                logger.warning(f"Webhook {name} failed: {e}")
            else:
                t_result.reason_code = "TARGET_ERROR"
                logger.warning(f"Webhook {name} unknown error: {e}")
        finally:
            # An abandoned attempt keeps running in the worker until its socket
            # timeout; the next target does not wait for it.
            executor.shutdown(wait=False, cancel_futures=True)

        return t_result

    def _send(
        self,
        target: WebhookTarget,
        run_status: RunStatus,
        cookbooks: list[CookbookVersion] | None,
        redacted: str,
    ) -> tuple[bool, int | None]:
        if run_status.success:
            if effective_fail_only(target, self.config):
                return False, None
            message = SUCCESS_PREFIX + format_message(
                run_status, target, self.config, cookbooks
            )
            attachment = None
        else:
            message = FAILURE_PREFIX + format_message(
                run_status, target, self.config, cookbooks
            )
            attachment = run_status.exception

        logger.info(f"Sending report to Slack webhook {redacted}")
        return True, deliver(message, target.url, self.config, attachment)


def _collect_cookbooks(
    cookbooks: Iterable[CookbookVersion] | None,
) -> list[CookbookVersion] | None:
    if cookbooks is None:
        return None
    try:
        return list(cookbooks)
    except Exception as e:
        logger.warning(f"Cookbook collection unavailable: {e}")
        return None


def _summary_status(targets: list[TargetResult], reason_codes: list[str]) -> str:
    if any(t.result == "sent" for t in targets):
        return "sent"
    if "REPORT_ERROR" in reason_codes or any(
        t.result in ("error", "timeout") for t in targets
    ):
        return "failed"
    return "skipped"
