"""Retry S3 calls, reconnecting the client between attempts."""

from s3wrapper.exceptions import S3NotFoundError

import logging


logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 5


class RetryPolicy:
    """Run an S3 operation with a fixed attempt budget.

    Each failed attempt reconnects the client. Once the budget is spent
    the operation runs one last time unguarded, so the caller sees the
    real error instead of a generic "gave up". There is no backoff.
    Errors in ``permanent_errors`` are not retried at all.
    """

    def __init__(self, attempts=DEFAULT_ATTEMPTS, permanent_errors=(S3NotFoundError,)):
        if attempts < 0:
            raise ValueError(f"attempts must be >= 0, got {attempts}")
        self.attempts = attempts
        self.permanent_errors = tuple(permanent_errors)

    def call(self, client, operation, *args, **kwargs):
        name = getattr(operation, "__name__", repr(operation))
        for attempt in range(1, self.attempts + 1):
            try:
                return operation(*args, **kwargs)
            except self.permanent_errors:
                raise
            except Exception:
                logger.warning(
                    "S3 %s failed (attempt %d/%d), reconnecting",
                    name,
                    attempt,
                    self.attempts,
                    exc_info=True,
                )
                client.reconnect()
        # Last try, outside the guard
        return operation(*args, **kwargs)

    def __repr__(self):
        return f"<RetryPolicy attempts={self.attempts}>"


DEFAULT_POLICY = RetryPolicy()
