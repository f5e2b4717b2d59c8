"""Database resilience helpers.

``retry_on_transient`` re-runs a whole unit of work when the store reports a
dropped connection, a deadlock, or a serialization failure. The wrapped
callable must own its transaction (``transaction.atomic`` inside), because a
failed transaction cannot be resumed, only replayed.
"""

import functools
import logging

from django.conf import settings
from django.db import InterfaceError, OperationalError, connection

from .exceptions import InternalError

logger = logging.getLogger("sellerportal.db")

TRANSIENT_MARKERS = (
    "closed",
    "connection",
    "deadlock",
    "could not serialize",
    "serialization failure",
    "lock wait timeout",
    "database is locked",
)


def is_transient(exc: Exception) -> bool:
    if isinstance(exc, InterfaceError):
        return True
    if isinstance(exc, OperationalError):
        message = str(exc).lower()
        return any(marker in message for marker in TRANSIENT_MARKERS)
    return False


def retry_on_transient(func=None, *, retries: int | None = None):
    """Decorator: replay ``func`` after transient store failures.

    ``retries`` defaults to ``settings.DB_TRANSIENT_RETRIES`` (1). Inside an
    enclosing atomic block nothing is replayed; the error propagates so the
    outermost transaction can roll back.
    """

    def decorator(inner):
        @functools.wraps(inner)
        def wrapper(*args, **kwargs):
            max_retries = retries
            if max_retries is None:
                max_retries = int(getattr(settings, "DB_TRANSIENT_RETRIES", 1))
            attempt = 0
            while True:
                try:
                    return inner(*args, **kwargs)
                except (InterfaceError, OperationalError) as exc:
                    if not is_transient(exc) or connection.in_atomic_block:
                        raise
                    if attempt >= max_retries:
                        logger.error(
                            "db.transient_exhausted",
                            extra={"event": "db.transient_exhausted", "func": inner.__name__, "attempts": attempt + 1},
                        )
                        raise InternalError() from exc
                    attempt += 1
                    logger.warning(
                        "db.transient_retry",
                        extra={
                            "event": "db.transient_retry",
                            "func": inner.__name__,
                            "attempt": attempt,
                            "error": str(exc),
                        },
                    )
                    # Drop the broken connection; Django reconnects on next use
                    connection.close()

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
