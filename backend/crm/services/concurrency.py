# Overview: Retry helper for transient database failures.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError

from ..extensions import db

logger = logging.getLogger(__name__)


def run_with_retry(func, *, session=None, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on transient failures.

    Only OperationalError (lost connections, lock timeouts) is retried.
    Integrity and data errors are deterministic and propagate immediately.
    """
    session = session or db.session
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            delay = backoff_base * (2 ** attempt)
            logger.warning(
                "Database operation failed (attempt %d/%d): %s; retrying in %.2fs",
                attempt + 1, attempts, exc, delay,
            )
            time.sleep(delay)
