from __future__ import annotations
import pandas as pd
import streamlit as st
from dashboard.config import APP_TITLE
from dashboard.api_client import trigger_analysis, fetch_submission, fetch_weak_topics
from dashboard.state import poll_until_terminal, is_active

STATUS_LABELS = {
    "pending": "Pending",
    "processing": "Analyzing…",
    "completed": "Analysis complete",
    "failed": "Analysis failed",
}

st.set_page_config(page_title=APP_TITLE, layout="wide")
st.title(APP_TITLE)

with st.sidebar:
    st.header("Submission")
    submission_id = st.text_input("Submission ID").strip()

if not submission_id:
    st.caption("Enter a submission ID to see its analysis.")
    st.stop()

sub = fetch_submission(submission_id)
if sub is None:
    st.error("Submission not found or the analysis service is unreachable.")
    st.stop()

status = sub["ai_analysis_status"]
label = "Re-analyze" if status in ("completed", "failed") else "Analyze"
if st.button(label, type="primary", disabled=status == "processing"):
    ok, err = trigger_analysis(submission_id)
    if not ok:
        st.error(f"Could not start analysis: {err}")
    else:
        st.rerun()

if is_active(status):
    with st.spinner("Waiting for the analysis worker…"):
        status = poll_until_terminal(submission_id) or status
    if not is_active(status):
        st.rerun()

st.metric("Status", STATUS_LABELS.get(status, status))
if status == "failed":
    st.error("The analysis did not finish. Use Re-analyze to try again.")

topics = fetch_weak_topics(sub["student_id"], sub["assignment_id"])
if topics:
    st.subheader("Weak topics")
    df = pd.DataFrame(topics)[["topic_name", "confidence_score", "ai_explanation"]]
    df.columns = ["Topic", "Score", "Explanation"]
    st.dataframe(df, use_container_width=True, hide_index=True)
elif status == "completed":
    st.info("No weak topics were identified.")

feedback = sub.get("ai_feedback")
if isinstance(feedback, dict) and feedback.get("summary"):
    st.subheader("Summary")
    st.write(feedback["summary"])
