from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import repository
from .errors import InvalidPayload, ReconciliationError, WorkerError
from .models import COMPLETED, FAILED, PROCESSING, Submission
from .reaper import schedule_reaper
from .reconciler import apply_analysis_result, mark_failed
from .results import apply_worker_result
from .schemas import AnalysisRequest, WorkerResult
from .settings import settings

logger = logging.getLogger(__name__)


async def post_to_worker(
    request: AnalysisRequest, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Optional[Dict[str, Any]]:
    """Send one analysis request. Returns the reply body when it is a JSON object."""
    headers = {"Content-Type": "application/json"}
    if settings.worker_api_key:
        headers["Authorization"] = f"Bearer {settings.worker_api_key}"

    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout_seconds, transport=transport) as client:
            r = await client.post(settings.worker_url, json=request.model_dump(by_alias=True), headers=headers)
            r.raise_for_status()
    except httpx.HTTPError as e:
        raise WorkerError(f"worker request failed: {e}") from e

    if not r.content:
        return None
    try:
        body = r.json()
    except ValueError:
        logger.debug("worker reply for %s is not JSON, waiting for callback", request.submission_id)
        return None
    return body if isinstance(body, dict) else None


def _apply_inline_reply(db: Session, submission_id: str, body: Dict[str, Any]) -> None:
    try:
        reply = WorkerResult.model_validate(body)
    except ValidationError:
        logger.warning("ignoring malformed inline reply for submission %s", submission_id)
        return
    if not reply.carries_result():
        return
    try:
        apply_worker_result(db, submission_id, reply.status, reply.feedback, reply.weak_topics)
    except InvalidPayload as e:
        logger.warning("ignoring inline reply for submission %s: %s", submission_id, e)
    except ReconciliationError:
        # already marked failed by the reconciler
        pass
    except Exception:
        logger.exception("inline reply for submission %s could not be applied", submission_id)
        db.rollback()
        mark_failed(db, submission_id)


def _degraded(db: Session, sub: Submission, reason: str) -> None:
    logger.warning("submission %s: %s", sub.id, reason)
    if not settings.simulate_missing_files:
        mark_failed(db, sub.id)
        return
    feedback = {"simulated": True, "reason": reason}
    try:
        apply_analysis_result(db, sub.id, COMPLETED, [], feedback)
    except ReconciliationError:
        pass


async def dispatch_analysis(
    db: Session,
    submission_id: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    schedule: Optional[Callable[[str], Any]] = None,
) -> str:
    """Start one analysis attempt and return the submission's status afterwards.

    Every call is an independent attempt; re-dispatching a submission that is
    already processing simply races the earlier attempt.
    """
    sub = repository.require_submission(db, submission_id)

    # visible as in-progress before the worker call starts
    repository.set_status(db, submission_id, PROCESSING)
    logger.info("submission %s -> %s", submission_id, PROCESSING)

    assignment_url = repository.get_assignment_file_url(db, sub.assignment_id)
    if not assignment_url:
        _degraded(db, sub, "assignment reference file missing")
        return repository.require_submission(db, submission_id).ai_analysis_status
    if not sub.file_url:
        _degraded(db, sub, "submission file missing")
        return repository.require_submission(db, submission_id).ai_analysis_status

    request = AnalysisRequest(
        submission_id=sub.id,
        student_id=sub.student_id,
        assignment_id=sub.assignment_id,
        assignment_pdf_url=assignment_url,
        student_submission_pdf_url=sub.file_url,
        direct_analysis=True,
        callback_url=settings.callback_url,
    )
    try:
        body = await post_to_worker(request, transport)
    except WorkerError as e:
        logger.error("submission %s: %s", submission_id, e)
        mark_failed(db, submission_id)
        return FAILED

    try:
        if body is not None:
            _apply_inline_reply(db, submission_id, body)
    finally:
        (schedule or schedule_reaper)(submission_id)
    return repository.require_submission(db, submission_id).ai_analysis_status
