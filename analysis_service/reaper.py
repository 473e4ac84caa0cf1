from __future__ import annotations
import asyncio, logging
from typing import Callable, Optional, Set

from sqlalchemy.orm import Session

from . import repository
from .db import SessionLocal
from .models import COMPLETED, PROCESSING
from .settings import settings

logger = logging.getLogger(__name__)

_pending: Set[asyncio.Task] = set()


def reap_if_stuck(db: Session, submission_id: str) -> bool:
    """Force a submission still in ``processing`` to ``completed``.

    A stuck "processing" badge is worse for users than a completed analysis
    with no topics. The conditional update makes this a no-op once any real
    result has landed.
    """
    forced = repository.set_status_if(db, submission_id, PROCESSING, COMPLETED)
    if forced:
        logger.warning("submission %s still processing after timeout, forced %s", submission_id, COMPLETED)
    return forced


async def _reap_later(submission_id: str, delay: float, session_factory: Callable[[], Session]) -> None:
    await asyncio.sleep(delay)
    db = session_factory()
    try:
        reap_if_stuck(db, submission_id)
    except Exception:
        logger.exception("reaper failed for submission %s", submission_id)
    finally:
        db.close()


def schedule_reaper(
    submission_id: str,
    delay: Optional[float] = None,
    session_factory: Optional[Callable[[], Session]] = None,
) -> asyncio.Task:
    """Start the stuck-state timer. Must be called from a running event loop."""
    if session_factory is None:
        session_factory = SessionLocal
    wait = settings.reaper_delay_seconds if delay is None else delay
    task = asyncio.get_running_loop().create_task(_reap_later(submission_id, wait, session_factory))
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task
