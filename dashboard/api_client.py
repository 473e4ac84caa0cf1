from __future__ import annotations
import requests
from typing import Any, Dict, List, Optional, Tuple
from dashboard.config import REQUEST_TIMEOUT, ANALYSIS_API_URL

def _url(path: str) -> str:
    return ANALYSIS_API_URL.rstrip("/") + path

def trigger_analysis(submission_id: str) -> Tuple[bool, Optional[str]]:
    try:
        resp = requests.post(_url(f"/v1/submissions/{submission_id}/analyze"), timeout=REQUEST_TIMEOUT)
        if resp.status_code >= 400:
            return False, f"{resp.status_code} {resp.text[:200]}"
        return True, None
    except requests.RequestException as e:
        return False, str(e)

def fetch_submission(submission_id: str) -> Optional[Dict[str, Any]]:
    try:
        resp = requests.get(_url(f"/v1/submissions/{submission_id}"), timeout=REQUEST_TIMEOUT)
        if resp.status_code >= 400:
            return None
        return resp.json()
    except (requests.RequestException, ValueError):
        return None

def fetch_status(submission_id: str) -> Optional[str]:
    sub = fetch_submission(submission_id)
    return sub.get("ai_analysis_status") if sub else None

def fetch_weak_topics(student_id: str, assignment_id: Optional[str] = None) -> List[Dict[str, Any]]:
    params = {"assignment_id": assignment_id} if assignment_id else None
    try:
        resp = requests.get(_url(f"/v1/students/{student_id}/weak-topics"), params=params, timeout=REQUEST_TIMEOUT)
        if resp.status_code >= 400:
            return []
        return resp.json()
    except (requests.RequestException, ValueError):
        return []
