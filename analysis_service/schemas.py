from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

class WorkerResult(BaseModel):
    """Result body sent by the worker, either to the webhook or inline."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    submission_id: Optional[str] = Field(None, alias="submissionId")
    status: Optional[str] = None
    feedback: Any = None
    weak_topics: Any = Field(None, alias="weakTopics")

    def carries_result(self) -> bool:
        return self.feedback not in (None, "") or bool(self.weak_topics)

class ManualResultIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: Optional[str] = None
    feedback: Any = None
    weak_topics: Optional[List[Any]] = Field(None, alias="weakTopics")

class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submission_id: str = Field(..., alias="submissionId")
    student_id: str = Field(..., alias="studentId")
    assignment_id: str = Field(..., alias="assignmentId")
    assignment_pdf_url: str = Field(..., alias="assignmentPdfUrl")
    student_submission_pdf_url: str = Field(..., alias="studentSubmissionPdfUrl")
    direct_analysis: bool = Field(True, alias="directAnalysis")
    callback_url: str = Field(..., alias="callbackUrl")

class DispatchOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submission_id: str = Field(..., alias="submissionId")
    status: str

class SubmissionOut(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    ai_analysis_status: str
    ai_feedback: Any = None
    submitted_at: Optional[str] = None

class WeakTopicOut(BaseModel):
    id: str
    assignment_id: str
    topic_name: Optional[str] = None
    confidence_score: Optional[float] = None
    ai_explanation: Optional[str] = None
