from __future__ import annotations

import logging
import re
from typing import Any


_BEARER_RE = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._:\-]+")
_SECRET_FIELD_RE = re.compile(
    r"(?i)\b(password|token|access_token|secret)(\s*[=:]\s*)(\"[^\"]*\"|'[^']*'|[^\s,;&]+)"
)


def mask_secrets(text: str) -> str:
    """Mask bearer credentials and `password=`-style values in a string.

    Nothing of the secret is kept, not even a prefix.
    """

    if not text:
        return text

    text = _BEARER_RE.sub(r"\1***", text)
    text = _SECRET_FIELD_RE.sub(r"\1\2***", text)
    return text


class MaskSecretsFilter(logging.Filter):
    """Logging filter to mask credentials in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except Exception:  # pragma: no cover
            message = str(getattr(record, "msg", ""))

        masked = mask_secrets(str(message))

        # Replace the formatted message and clear args to avoid double formatting.
        record.msg = masked
        record.args = ()

        for key in ("authorization", "token", "password"):
            if hasattr(record, key):
                value: Any = getattr(record, key)
                if isinstance(value, str):
                    setattr(record, key, "***")

        return True
