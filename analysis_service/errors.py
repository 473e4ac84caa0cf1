class AnalysisError(Exception):
    pass

class SubmissionNotFound(AnalysisError, LookupError):
    def __init__(self, submission_id: str):
        super().__init__(f"Submission {submission_id} not found")
        self.submission_id = submission_id

class WorkerError(AnalysisError):
    """The analysis worker could not be reached or answered with an error status."""

class ReconciliationError(AnalysisError):
    """Storage failed while applying a result; the submission was marked failed."""

class InvalidPayload(AnalysisError, ValueError):
    pass
