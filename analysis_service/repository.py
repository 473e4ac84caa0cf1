from __future__ import annotations
import json, uuid
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import text
from sqlalchemy.orm import Session

from .errors import SubmissionNotFound
from .models import PENDING, CanonicalTopic, Submission, WeakTopic

_SUBMISSION_COLUMNS = (
    "id, assignment_id, student_id, content_text, file_url, "
    "ai_analysis_status, ai_feedback, submitted_at"
)

def _dump(value: Any) -> Optional[str]:
    return json.dumps(value, ensure_ascii=False) if value is not None else None

def _row_to_submission(row: Dict[str, Any]) -> Submission:
    return Submission(
        id=row["id"],
        assignment_id=row["assignment_id"],
        student_id=row["student_id"],
        content_text=row["content_text"],
        file_url=row["file_url"],
        ai_analysis_status=row["ai_analysis_status"],
        ai_feedback=json.loads(row["ai_feedback"]) if row["ai_feedback"] else None,
        submitted_at=str(row["submitted_at"]) if row["submitted_at"] is not None else None,
    )

# --- collaborator tables: seeded by the classroom app, read here -----------

def insert_assignment(db: Session, assignment_id: str, title: str, file_url: Optional[str]) -> None:
    db.execute(
        text("INSERT INTO assignments (id, title, file_url) VALUES (:id, :title, :file_url)"),
        {"id": assignment_id, "title": title, "file_url": file_url},
    )
    db.commit()

def insert_submission(
    db: Session,
    submission_id: str,
    assignment_id: str,
    student_id: str,
    content_text: Optional[str] = None,
    file_url: Optional[str] = None,
) -> Submission:
    db.execute(
        text("""INSERT INTO submissions (id, assignment_id, student_id, content_text, file_url, ai_analysis_status)
                 VALUES (:id, :assignment_id, :student_id, :content_text, :file_url, :status)"""),
        {
            "id": submission_id,
            "assignment_id": assignment_id,
            "student_id": student_id,
            "content_text": content_text,
            "file_url": file_url,
            "status": PENDING,
        },
    )
    db.commit()
    return require_submission(db, submission_id)

def get_assignment_file_url(db: Session, assignment_id: str) -> Optional[str]:
    row = db.execute(
        text("SELECT file_url FROM assignments WHERE id=:id"), {"id": assignment_id}
    ).mappings().first()
    return row["file_url"] if row else None

# --- submissions ------------------------------------------------------------

def get_submission(db: Session, submission_id: str) -> Optional[Submission]:
    row = db.execute(
        text(f"SELECT {_SUBMISSION_COLUMNS} FROM submissions WHERE id=:id"), {"id": submission_id}
    ).mappings().first()
    return _row_to_submission(dict(row)) if row else None

def require_submission(db: Session, submission_id: str) -> Submission:
    sub = get_submission(db, submission_id)
    if sub is None:
        raise SubmissionNotFound(submission_id)
    return sub

def set_status(db: Session, submission_id: str, status: str) -> None:
    db.execute(
        text("UPDATE submissions SET ai_analysis_status=:status WHERE id=:id"),
        {"id": submission_id, "status": status},
    )
    db.commit()

def set_status_if(db: Session, submission_id: str, expected: str, status: str) -> bool:
    """Compare-and-set on the status column. Returns True if the row changed."""
    res = db.execute(
        text("""UPDATE submissions SET ai_analysis_status=:status
                 WHERE id=:id AND ai_analysis_status=:expected"""),
        {"id": submission_id, "status": status, "expected": expected},
    )
    db.commit()
    return res.rowcount == 1

def store_result(db: Session, submission_id: str, status: str, feedback: Any = None) -> None:
    # no commit: part of the reconciler's unit of work
    if feedback is None:
        db.execute(
            text("UPDATE submissions SET ai_analysis_status=:status WHERE id=:id"),
            {"id": submission_id, "status": status},
        )
    else:
        db.execute(
            text("UPDATE submissions SET ai_analysis_status=:status, ai_feedback=:feedback WHERE id=:id"),
            {"id": submission_id, "status": status, "feedback": _dump(feedback)},
        )

# --- weak topics ------------------------------------------------------------

def replace_weak_topics(
    db: Session, student_id: str, assignment_id: str, topics: Sequence[CanonicalTopic]
) -> None:
    # no commit: part of the reconciler's unit of work
    pair = {"student_id": student_id, "assignment_id": assignment_id}
    db.execute(
        text("DELETE FROM student_weak_topics WHERE student_id=:student_id AND assignment_id=:assignment_id"),
        pair,
    )
    for position, topic in enumerate(topics):
        db.execute(
            text("""INSERT INTO student_weak_topics
                     (id, student_id, assignment_id, topic_name, confidence_score, ai_explanation, position)
                     VALUES (:id, :student_id, :assignment_id, :name, :score, :explanation, :position)"""),
            {
                **pair,
                "id": uuid.uuid4().hex,
                "name": topic.name,
                "score": topic.score,
                "explanation": topic.explanation,
                "position": position,
            },
        )

def list_weak_topics(db: Session, student_id: str, assignment_id: Optional[str] = None) -> List[WeakTopic]:
    sql = """SELECT id, student_id, assignment_id, topic_name, confidence_score, ai_explanation, created_at
             FROM student_weak_topics WHERE student_id=:student_id"""
    params: Dict[str, Any] = {"student_id": student_id}
    if assignment_id is not None:
        sql += " AND assignment_id=:assignment_id"
        params["assignment_id"] = assignment_id
    rows = db.execute(text(sql + " ORDER BY assignment_id ASC, position ASC"), params).mappings().all()
    return [
        WeakTopic(
            id=r["id"],
            student_id=r["student_id"],
            assignment_id=r["assignment_id"],
            topic_name=r["topic_name"],
            confidence_score=r["confidence_score"],
            ai_explanation=r["ai_explanation"],
            created_at=str(r["created_at"]) if r["created_at"] is not None else None,
        )
        for r in rows
    ]
