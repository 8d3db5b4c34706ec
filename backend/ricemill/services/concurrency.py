# Overview: Locking and retry helpers shared by every check-then-commit service.

from __future__ import annotations

import logging
import time

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..errors import RiceMillError

log = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, so the guarded UPDATE
    statements in stock/godown/sequence services carry the real guarantee.
    """
    return query.with_for_update()


def _default_attempts() -> int:
    if has_app_context():
        return int(current_app.config.get("LOCK_RETRY_ATTEMPTS", 3))
    return 3


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute one unit of work with retry on concurrency-related failures.

    Retries on OperationalError (locked database, deadlocks) and
    StaleDataError (version_id conflicts). Business errors roll the session
    back and propagate untouched; they are never retried.
    """
    attempts = attempts or _default_attempts()
    for attempt in range(attempts):
        try:
            return func()
        except RiceMillError:
            db.session.rollback()
            raise
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                log.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            log.warning("Concurrency conflict (attempt %d/%d): %s", attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
