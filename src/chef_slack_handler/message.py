from __future__ import annotations

from collections.abc import Iterable

from .model import CookbookVersion, HandlerConfig, RunStatus, WebhookTarget

SUCCESS_PREFIX = " :white_check_mark: "
FAILURE_PREFIX = " :skull: "


def _resolve(override, default):
    # Only an absent override falls back; False and "none" are real values.
    return default if override is None else override


def cookbook_detail(
    level: str | None, cookbooks: Iterable[CookbookVersion] | None
) -> str:
    if level != "all" or cookbooks is None:
        return ""
    pairs = [f"{cb.name} {cb.version}" for cb in cookbooks]
    return f" using cookbooks {', '.join(pairs)}"


def run_detail(level: str | None, run_status: RunStatus) -> str:
    resources = run_status.updated_resources
    if resources is None:
        return ""
    if level == "elapsed":
        return (
            f" ({run_status.elapsed_time} seconds). "
            f"{len(resources)} resources updated"
        )
    if level == "resources":
        return (
            f" ({run_status.elapsed_time} seconds). "
            f"{len(resources)} resources updated \n {', '.join(resources)}"
        )
    return ""


def format_message(
    run_status: RunStatus,
    target: WebhookTarget,
    config: HandlerConfig,
    cookbooks: Iterable[CookbookVersion] | None = None,
) -> str:
    """
    Build the human readable run line for one webhook.

    Args:
        run_status: Finished run supplied by the host
        target: Webhook entry whose overrides win over config defaults
        config: Handler defaults
        cookbooks: Cookbook collection of the run, in iteration order

    Returns:
        str: e.g. "Chef client run succeeded on web01 (12 seconds). 2 resources updated"
    """
    outcome = "succeeded" if run_status.success else "failed"
    cookbook_level = _resolve(target.cookbook_detail_level, config.cookbook_detail_level)
    message_level = _resolve(target.message_detail_level, config.message_detail_level)

    return (
        f"Chef client run {outcome} on {run_status.node_name}"
        f"{cookbook_detail(cookbook_level, cookbooks)}"
        f"{run_detail(message_level, run_status)}"
    )


def effective_fail_only(target: WebhookTarget, config: HandlerConfig) -> bool:
    return bool(_resolve(target.fail_only, config.fail_only))
