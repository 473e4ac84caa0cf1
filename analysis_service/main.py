import json, logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .settings import settings
from .db import SessionLocal, init_db
from .dispatcher import dispatch_analysis
from .errors import InvalidPayload, ReconciliationError, SubmissionNotFound
from .reconciler import mark_failed
from .repository import get_submission, list_weak_topics
from .results import apply_worker_result
from .schemas import DispatchOut, ManualResultIn, SubmissionOut, WeakTopicOut, WorkerResult
from .security import verify_signature

logger = logging.getLogger(__name__)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@asynccontextmanager
async def lifespan(_app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    yield

app = FastAPI(title="Submission Analysis Service", version="1.0.0", lifespan=lifespan)

def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

@app.post("/v1/submissions/{submission_id}/analyze", response_model=DispatchOut, response_model_by_alias=True)
async def analyze_submission(submission_id: str, db: Session = Depends(get_db)):
    try:
        status = await dispatch_analysis(db, submission_id)
    except SubmissionNotFound:
        raise HTTPException(status_code=404, detail="Submission not found")
    return DispatchOut(submission_id=submission_id, status=status)

@app.get("/v1/submissions/{submission_id}", response_model=SubmissionOut)
def read_submission(submission_id: str, db: Session = Depends(get_db)):
    sub = get_submission(db, submission_id)
    if sub is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    return SubmissionOut(**asdict(sub))

@app.get("/v1/students/{student_id}/weak-topics", response_model=List[WeakTopicOut])
def read_weak_topics(student_id: str, assignment_id: Optional[str] = None, db: Session = Depends(get_db)):
    return [WeakTopicOut(**asdict(t)) for t in list_weak_topics(db, student_id, assignment_id)]

# Called by the analysis worker once it has a result. The worker never
# retries, so every failure path below leaves the submission terminal.
@app.post("/v1/webhook/analysis")
async def analysis_webhook(request: Request, db: Session = Depends(get_db)):
    raw = await request.body()
    if settings.webhook_hmac_secret and not verify_signature(
        settings.webhook_hmac_secret, raw, request.headers.get("X-Signature")
    ):
        logger.warning("webhook rejected: bad signature")
        return _error("Invalid signature", 401)

    try:
        data = json.loads(raw) if raw else None
    except ValueError:
        data = None
    if not isinstance(data, dict):
        return _error("Request body must be a JSON object", 400)
    try:
        body = WorkerResult.model_validate(data)
    except ValidationError:
        return _error("Invalid webhook payload", 400)
    if not body.submission_id:
        logger.warning("webhook rejected: missing submissionId")
        return _error("Missing submissionId in request body", 400)

    submission_id = body.submission_id
    logger.info("webhook received for submission %s (status=%s)", submission_id, body.status)
    try:
        apply_worker_result(db, submission_id, body.status, body.feedback, body.weak_topics)
    except InvalidPayload as e:
        return _error(str(e), 400)
    except SubmissionNotFound:
        return _error("Submission not found", 404)
    except ReconciliationError:
        return _error("Failed to process webhook", 500)
    except Exception:
        logger.exception("webhook processing failed for submission %s", submission_id)
        db.rollback()
        mark_failed(db, submission_id)
        return _error("Failed to process webhook", 500)

    return {"success": True, "message": "Webhook processed successfully"}

# Hand-load a known worker result, e.g. one copied from the worker's run log.
@app.post("/v1/admin/submissions/{submission_id}/apply", response_model=SubmissionOut)
def apply_manual_result(submission_id: str, body: ManualResultIn, db: Session = Depends(get_db)):
    try:
        sub = apply_worker_result(db, submission_id, body.status, body.feedback, body.weak_topics)
    except InvalidPayload as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SubmissionNotFound:
        raise HTTPException(status_code=404, detail="Submission not found")
    except ReconciliationError:
        raise HTTPException(status_code=500, detail="Storage error, submission marked failed")
    return SubmissionOut(**asdict(sub))
