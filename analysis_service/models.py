from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

STATUSES = (PENDING, PROCESSING, COMPLETED, FAILED)
TERMINAL_STATUSES = (COMPLETED, FAILED)

@dataclass
class Submission:
    id: str
    assignment_id: str
    student_id: str
    content_text: Optional[str]
    file_url: Optional[str]
    ai_analysis_status: str      # pending|processing|completed|failed
    ai_feedback: Optional[Any]
    submitted_at: Optional[str]

@dataclass
class WeakTopic:
    id: str
    student_id: str
    assignment_id: str
    topic_name: Optional[str]
    confidence_score: Optional[float]
    ai_explanation: Optional[str]
    created_at: Optional[str]

@dataclass(frozen=True)
class CanonicalTopic:
    name: str
    score: float
    explanation: str
