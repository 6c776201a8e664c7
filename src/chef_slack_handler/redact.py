from urllib.parse import urlparse


def redact_url(url: str | None) -> str:
    """
    Redacts a webhook URL to the format: <scheme>://<domain>/***<last4chars>
    Example: https://hooks.slack.com/services/T000/B000/abcd1234 -> https://hooks.slack.com/***1234

    Slack webhook paths carry the token, so only the host survives.
    """
    if not url:
        return ""

    full_str = url.strip()
    last4 = full_str[-4:] if len(full_str) > 4 else full_str

    try:
        parsed = urlparse(full_str)
    except ValueError:
        # Unparseable input, keep only the tail
        return f"***{last4}" if len(full_str) > 4 else "***"

    if not parsed.netloc:
        return f"***{last4}" if len(full_str) > 4 else "***"

    scheme = parsed.scheme or "https"
    return f"{scheme}://{parsed.netloc}/***{last4}"
