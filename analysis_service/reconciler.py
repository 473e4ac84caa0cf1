"""The one place an analysis result is written to storage.

Webhook deliveries, inline worker replies and manual re-application all end
up in ``apply_analysis_result``. Writes are replace-not-merge, so applying the
same result twice leaves the same rows behind.
"""
from __future__ import annotations
import logging
from typing import Any, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from . import repository
from .errors import ReconciliationError
from .models import FAILED, PENDING, TERMINAL_STATUSES, CanonicalTopic, Submission

logger = logging.getLogger(__name__)


@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_fixed(0.2),
    retry=retry_if_exception_type(SQLAlchemyError),
)
def _write_failed(db: Session, submission_id: str) -> None:
    try:
        repository.set_status(db, submission_id, FAILED)
    except SQLAlchemyError:
        db.rollback()
        raise


def mark_failed(db: Session, submission_id: str) -> bool:
    """Best-effort terminal write. Returns False if storage stayed unavailable."""
    try:
        _write_failed(db, submission_id)
    except SQLAlchemyError:
        logger.exception("could not mark submission %s as failed", submission_id)
        return False
    logger.info("submission %s -> %s", submission_id, FAILED)
    return True


def apply_analysis_result(
    db: Session,
    submission_id: str,
    status: str,
    topics: Sequence[CanonicalTopic],
    feedback: Optional[Any] = None,
) -> Submission:
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"cannot reconcile to status {status!r}")

    sub = repository.require_submission(db, submission_id)
    if sub.ai_analysis_status == PENDING:
        # result for a submission that was never dispatched, e.g. manual apply
        logger.warning("submission %s: result applied while still %s", submission_id, PENDING)
    try:
        if topics:
            repository.replace_weak_topics(db, sub.student_id, sub.assignment_id, topics)
        repository.store_result(db, submission_id, status, feedback)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("reconciliation failed for submission %s", submission_id)
        mark_failed(db, submission_id)
        raise ReconciliationError(f"could not apply result for {submission_id}") from e

    logger.info(
        "submission %s -> %s (%d topics for student=%s assignment=%s)",
        submission_id, status, len(topics), sub.student_id, sub.assignment_id,
    )
    return repository.require_submission(db, submission_id)
