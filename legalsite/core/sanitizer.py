import re

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.\w+")
_IPV4_RE = re.compile(r"\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.)\d{1,3}\b")
_PHONE_RE = re.compile(r"\+\d[\d\s()-]{7,}\d|\b\d{3}[\s-]?\d{3}[\s-]?\d{4}\b")
_HEX_KEY_RE = re.compile(r"\b[a-fA-F0-9]{32,}\b")
_SECRET_PAIR_RE = re.compile(
    r'(password|passwd|pwd|secret|type_the_word)["\']?\s*[:=]\s*["\']?[^"\'&\s,}]+',
    flags=re.IGNORECASE,
)


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Contact submissions carry names, emails and phone numbers; none of those
    should reach the log sink verbatim.
    """
    if not isinstance(message, str):
        return str(message)

    # user@example.com -> u***@example.com
    message = _EMAIL_RE.sub(
        lambda m: m.group()[0] + "***@" + m.group().split("@")[1],
        message,
    )

    # 192.168.1.100 -> 192.168.1.***
    message = _IPV4_RE.sub(r"\1***", message)

    message = _PHONE_RE.sub("[PHONE_REDACTED]", message)
    message = _HEX_KEY_RE.sub("[API_KEY_REDACTED]", message)
    message = _SECRET_PAIR_RE.sub(r"\1=[REDACTED]", message)

    return message
