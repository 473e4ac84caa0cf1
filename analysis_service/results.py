"""Map a worker result body onto a reconciler call.

Shared by the webhook, the dispatcher's inline reply path and the manual
apply endpoint so all three interpret payloads identically.
"""
from __future__ import annotations
import logging
from dataclasses import asdict
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from .errors import InvalidPayload
from .models import COMPLETED, FAILED, CanonicalTopic, Submission
from .normalizer import normalize_feedback, normalize_topics, parse_feedback
from .reconciler import apply_analysis_result

logger = logging.getLogger(__name__)

STATUS_ALIASES = {
    "completed": COMPLETED,
    "complete": COMPLETED,
    "done": COMPLETED,
    "success": COMPLETED,
    "failed": FAILED,
    "error": FAILED,
    "failure": FAILED,
}


def resolve_status(raw: Optional[str]) -> str:
    if raw is None or str(raw).strip() == "":
        return COMPLETED
    status = STATUS_ALIASES.get(str(raw).strip().lower())
    if status is None:
        raise InvalidPayload(f"Unsupported status: {raw}")
    return status


def extract_topics(feedback: Any, weak_topics: Any) -> Tuple[List[CanonicalTopic], Any]:
    """Pick the topic source and the feedback blob to keep on the submission.

    An explicit non-empty ``weakTopics`` list wins; otherwise ``feedback`` is
    normalized. The two sources are never concatenated.
    """
    blob = parse_feedback(feedback)
    if isinstance(weak_topics, list) and weak_topics:
        topics = normalize_topics(weak_topics)
        if blob is None:
            blob = {"weakTopics": [asdict(t) for t in topics]}
        return topics, blob
    return normalize_feedback(feedback), blob


def apply_worker_result(
    db: Session,
    submission_id: str,
    status: Optional[str],
    feedback: Any = None,
    weak_topics: Any = None,
) -> Submission:
    target = resolve_status(status)
    topics, blob = extract_topics(feedback, weak_topics)
    logger.debug("submission %s: %d topics extracted", submission_id, len(topics))
    return apply_analysis_result(db, submission_id, target, topics, blob)
