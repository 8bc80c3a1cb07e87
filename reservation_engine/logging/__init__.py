"""Structured logging configuration using structlog.

Everything goes to stdout as one JSON object per line. Payment secrets
and connection-string passwords are scrubbed both from structlog event
dicts and from records emitted by the client libraries themselves.
"""

import logging
import re
import sys

import structlog

_REDACTIONS = [
    # Stripe secret and restricted keys, e.g. sk_test_51H..., rk_live_...
    (re.compile(r"\b(?:sk|rk)_(?:test|live)_[A-Za-z0-9]{8,}"), "<STRIPE_KEY_REDACTED>"),
    # PaymentIntent client secrets handed back by capture
    (re.compile(r"\b(pi_[A-Za-z0-9]+)_secret_[A-Za-z0-9]+"), r"\1_secret_<REDACTED>"),
    # postgresql+asyncpg://user:pw@host, redis://:pw@host
    (re.compile(r"(\w[\w+.-]*://[^:/@\s]*:)[^@\s]+@"), r"\1***@"),
]

# Client libraries that log connection or request details on their own loggers
_LIBRARY_LOGGERS = ("stripe", "sqlalchemy.engine", "redis", "asyncpg")


def redact(text: str) -> str:
    """Scrub payment secrets and DSN passwords from a string."""
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Filter that redacts secrets from stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg and isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            record.args = tuple(
                redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


def _redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: dict
) -> dict:
    """Structlog processor applying the same redaction to event values."""
    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = redact(value)
    return event_dict


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the engine and its client libraries."""
    level = getattr(logging, log_level.upper())
    secret_filter = SecretRedactingFilter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(secret_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in _LIBRARY_LOGGERS:
        logging.getLogger(logger_name).addFilter(secret_filter)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
