import json

import pytest

from analysis_service.models import CanonicalTopic
from analysis_service.normalizer import normalize_feedback, normalize_topic, parse_feedback


def test_plain_string_becomes_single_fallback_topic():
    assert normalize_feedback("not json") == [CanonicalTopic("Identified Topic", 50, "not json")]


def test_weak_topics_array_passthrough():
    value = {"weakTopics": [{"name": "A", "score": 3, "explanation": "x"}]}
    assert normalize_feedback(value) == [CanonicalTopic("A", 3, "x")]


def test_json_string_is_parsed_before_extraction():
    raw = json.dumps({"weakTopics": [{"name": "Deadlocks", "score": 1, "explanation": "..."}], "summary": "s"})
    assert normalize_feedback(raw) == [CanonicalTopic("Deadlocks", 1, "...")]


def test_bare_array_is_used_as_topic_list():
    value = [
        {"topic_name": "Paging", "confidence_score": 2, "ai_explanation": "fixed-size blocks"},
        {"topicName": "TLB", "confidenceScore": "4", "aiExplanation": "caches translations"},
    ]
    assert normalize_feedback(value) == [
        CanonicalTopic("Paging", 2, "fixed-size blocks"),
        CanonicalTopic("TLB", 4, "caches translations"),
    ]


def test_topic_elements_fall_back_per_field():
    assert normalize_topic({}) == CanonicalTopic("Topic", 50, "Identified by AI")
    assert normalize_topic({"name": "", "score": "high"}) == CanonicalTopic("Topic", 50, "Identified by AI")


def test_zero_score_is_kept():
    assert normalize_topic({"name": "A", "score": 0}).score == 0


def test_single_object_synthesizes_one_topic():
    value = {"topic": "Semaphores", "confidenceScore": 10, "description": "wrong usage"}
    assert normalize_feedback(value) == [CanonicalTopic("Semaphores", 10, "wrong usage")]


def test_object_without_explanation_is_serialized():
    value = {"grade": "F"}
    [topic] = normalize_feedback(value)
    assert topic.name == "Identified Topic"
    assert topic.score == 50
    assert json.loads(topic.explanation) == value


def test_non_list_weak_topics_is_treated_as_object():
    [topic] = normalize_feedback({"weakTopics": "none", "name": "Scheduling"})
    assert topic.name == "Scheduling"


def test_json_scalar_string_becomes_explanation():
    assert normalize_feedback('"needs work on paging"') == [
        CanonicalTopic("Identified Topic", 50, "needs work on paging")
    ]
    assert normalize_feedback("42") == [CanonicalTopic("Identified Topic", 50, "42")]


def test_default_score_override():
    assert normalize_feedback("oops", default_score=75)[0].score == 75


@pytest.mark.parametrize("value", [None, "", "null", [], {"weakTopics": []}])
def test_absent_or_empty_feedback_yields_no_topics(value):
    assert normalize_feedback(value) == []


@pytest.mark.parametrize(
    "value",
    [
        "{broken json",
        "[1, 2",
        {"weakTopics": [None, 1, "text", {"score": float("nan")}, ["nested"]]},
        {"nested": {"deep": [1, {"x": None}]}},
        [[["a"]]],
        3.5,
        True,
        object(),
        {"name": object()},
    ],
)
def test_normalizer_never_raises(value):
    topics = normalize_feedback(value)
    assert isinstance(topics, list)
    assert all(isinstance(t, CanonicalTopic) for t in topics)


def test_none_elements_are_skipped():
    assert normalize_feedback([None, {"name": "A"}]) == [CanonicalTopic("A", 50, "Identified by AI")]


def test_parse_feedback_keeps_raw_string_on_parse_failure():
    assert parse_feedback("not json") == {"rawFeedback": "not json"}
    assert parse_feedback('{"summary": "ok"}') == {"summary": "ok"}
    assert parse_feedback({"summary": "ok"}) == {"summary": "ok"}
    assert parse_feedback(None) is None


def test_scores_are_floats_without_a_range_limit():
    assert normalize_topic({"name": "A", "score": 10**20}).score == 1e20
    assert isinstance(normalize_topic({"name": "A", "score": 3}).score, float)
    # too large for a float at all
    assert normalize_topic({"name": "A", "score": 10**400}).score == 50


def test_deeply_nested_json_string_falls_back():
    deep = "[" * 100_000 + "]" * 100_000
    [topic] = normalize_feedback(deep)
    assert topic.name == "Identified Topic"
    assert topic.explanation == deep
    assert parse_feedback(deep) == {"rawFeedback": deep}
