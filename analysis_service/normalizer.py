"""Turn whatever the analysis worker sends as "feedback" into canonical topics.

The worker is a no-code integration and its payload shape drifts: feedback
may arrive as a JSON string, an already decoded object or list, plain prose,
or not at all. Everything downstream only ever sees ``CanonicalTopic``.
"""
from __future__ import annotations
import json, logging, math
from typing import Any, Iterable, List, Mapping, Optional

from .models import CanonicalTopic
from .settings import settings

logger = logging.getLogger(__name__)

FALLBACK_TOPIC_NAME = "Identified Topic"
ITEM_TOPIC_NAME = "Topic"
ITEM_EXPLANATION = "Identified by AI"

TOPIC_LIST_KEY = "weakTopics"

# synonyms accepted on a single topic element, in lookup order
ITEM_NAME_KEYS = ("name", "topic_name", "topicName")
ITEM_SCORE_KEYS = ("score", "confidence_score", "confidenceScore")
ITEM_EXPLANATION_KEYS = ("explanation", "ai_explanation", "aiExplanation")

# keys used when a whole feedback object describes one topic
OBJECT_NAME_KEYS = ("topic", "name")
OBJECT_SCORE_KEYS = ("score", "confidenceScore")
OBJECT_EXPLANATION_KEYS = ("explanation", "description")

_MISSING = object()


def _first(obj: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = obj.get(key)
        if value is not None and value != "":
            return value
    return _MISSING


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _as_score(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    # stored in a REAL column; ints past 64 bits would not bind
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _pick_score(obj: Mapping[str, Any], keys: Iterable[str], default: float) -> float:
    for key in keys:
        score = _as_score(obj.get(key))
        if score is not None:
            return score
    return default


def _fallback(explanation: Any, default_score: float) -> CanonicalTopic:
    return CanonicalTopic(FALLBACK_TOPIC_NAME, default_score, _as_text(explanation))


def normalize_topic(item: Any, default_score: Optional[float] = None) -> Optional[CanonicalTopic]:
    """Normalize one element of a topic list. ``None`` elements yield ``None``."""
    score_default = settings.default_topic_score if default_score is None else default_score
    if item is None:
        return None
    if not isinstance(item, Mapping):
        return CanonicalTopic(ITEM_TOPIC_NAME, score_default, _as_text(item))

    name = _first(item, ITEM_NAME_KEYS)
    explanation = _first(item, ITEM_EXPLANATION_KEYS)
    return CanonicalTopic(
        name=_as_text(name) if name is not _MISSING else ITEM_TOPIC_NAME,
        score=_pick_score(item, ITEM_SCORE_KEYS, score_default),
        explanation=_as_text(explanation) if explanation is not _MISSING else ITEM_EXPLANATION,
    )


def normalize_topics(items: Iterable[Any], default_score: Optional[float] = None) -> List[CanonicalTopic]:
    topics = (normalize_topic(item, default_score) for item in items)
    return [t for t in topics if t is not None]


def _from_object(obj: Mapping[str, Any], default_score: float) -> CanonicalTopic:
    name = _first(obj, OBJECT_NAME_KEYS)
    explanation = _first(obj, OBJECT_EXPLANATION_KEYS)
    return CanonicalTopic(
        name=_as_text(name) if name is not _MISSING else FALLBACK_TOPIC_NAME,
        score=_pick_score(obj, OBJECT_SCORE_KEYS, default_score),
        explanation=_as_text(explanation) if explanation is not _MISSING else _as_text(obj),
    )


def _normalize(value: Any, default_score: float) -> List[CanonicalTopic]:
    if value is None or value == "":
        return []

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (ValueError, RecursionError):
            return [_fallback(value, default_score)]
        if value is None:
            return []

    if isinstance(value, Mapping):
        topic_list = value.get(TOPIC_LIST_KEY)
        if isinstance(topic_list, list):
            return normalize_topics(topic_list, default_score)
        return [_from_object(value, default_score)]

    if isinstance(value, (list, tuple)):
        return normalize_topics(value, default_score)

    return [_fallback(value, default_score)]


def normalize_feedback(value: Any, default_score: Optional[float] = None) -> List[CanonicalTopic]:
    """Convert a raw worker feedback value into a list of canonical topics.

    Never raises: anything that cannot be interpreted becomes a single
    "Identified Topic" carrying the raw value as its explanation.
    """
    score_default = settings.default_topic_score if default_score is None else default_score
    try:
        return _normalize(value, score_default)
    except Exception:
        logger.exception("feedback normalization failed, using fallback topic")
        try:
            return [_fallback(value, score_default)]
        except Exception:
            return [CanonicalTopic(FALLBACK_TOPIC_NAME, score_default, "")]


def parse_feedback(value: Any) -> Any:
    """Return the blob stored on the submission for display."""
    if isinstance(value, str):
        if value == "":
            return None
        try:
            return json.loads(value)
        except (ValueError, RecursionError):
            return {"rawFeedback": value}
    return value
