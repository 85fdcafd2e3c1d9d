"""Logging setup for year-in-review.

Log records pass through :class:`SecretRedactingFilter` so that GitLab and
GitHub credentials never reach the terminal, even when request headers or
URLs end up in a debug message.
"""

import logging
import re
from typing import ClassVar

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'

# Third-party loggers that only speak up on problems
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def redact(text: str) -> str:
    """Replace every known credential shape in ``text``."""
    for pattern, replacement in SecretRedactingFilter.SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Filter that redacts GitLab and GitHub secrets from log messages."""

    SECRET_PATTERNS: ClassVar[list[tuple[re.Pattern[str], str]]] = [
        (re.compile(r"gh[pous]_[a-zA-Z0-9]{20,}"), "[REDACTED_GH_TOKEN]"),
        (re.compile(r"github_pat_[a-zA-Z0-9_]+"), "[REDACTED_GH_PAT]"),
        # personal, deploy, OAuth and runner tokens
        (re.compile(r"gl(pat|dt|oas|rt)-[a-zA-Z0-9_\-]{20,}"), "[REDACTED_GL_TOKEN]"),
        (re.compile(r"Bearer\s+[a-zA-Z0-9_\-\.]+"), "Bearer [REDACTED]"),
        (re.compile(r"(Authorization:\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(PRIVATE-TOKEN:\s*)[^\s,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
        (re.compile(r"(token[=:]\s*)(?!\[REDACTED)[^\s&,\]]+", re.IGNORECASE), r"\1[REDACTED]"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(str(record.msg))
        if record.args:
            record.args = tuple(
                self._redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True

    def _redact(self, text: str) -> str:
        return redact(text)


def setup_logging(verbose: bool = False, json_format: bool = False) -> None:
    """Configure the root logger.

    Args:
        verbose: Log at DEBUG instead of INFO.
        json_format: Emit one JSON object per line.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=JSON_FORMAT if json_format else TEXT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    redaction_filter = SecretRedactingFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, SecretRedactingFilter) for f in handler.filters):
            handler.addFilter(redaction_filter)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
