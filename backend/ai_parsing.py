"""
Parsing and normalization of free-form AI responses.

The model is asked for JSON but does not always honor the exact schema, so
everything coming back is treated as untrusted and coerced into bounded,
typed values here.
"""
import json
import math
import re
from typing import Any, Callable, Optional, Sequence

from models import Recommendation, RecommendResponse, TaskEstimate

MAX_RECOMMENDATIONS = 3

ESTIMATE_RAW_MIN = 1
ESTIMATE_RAW_MAX = 10000
ESTIMATE_MIN_MINUTES = 5
ESTIMATE_MAX_MINUTES = 240

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


class AIResponseError(ValueError):
    """Base class for AI responses that cannot be turned into a usable result."""


class ParseError(AIResponseError):
    """Raw text could not be parsed as JSON, fenced or not."""


class SchemaError(AIResponseError):
    """Parsed JSON does not have the expected top-level shape."""


class NoValidResultsError(AIResponseError):
    """Parsed JSON had the right shape but no entry survived validation."""


# Text extraction utilities

def _is_finite_number(value: Any) -> bool:
    # bool is an int subclass but never counts as a number here
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def to_non_empty_string(value: Any) -> str:
    """Return a trimmed string, a stringified finite number, or "" if absent."""
    if isinstance(value, str):
        return value.strip()
    if _is_finite_number(value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return ""


def to_finite_number(value: Any) -> Optional[float]:
    """Return a finite number from a number or numeric string, else None."""
    if _is_finite_number(value):
        return value
    if isinstance(value, str) and value.strip() != "":
        text = value.strip()
        # float() also takes "1_000" and non-ASCII digits like "２"
        if not text.isascii() or "_" in text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
        return num if math.isfinite(num) else None
    return None


def clamp_int(value: Any, min_value: int, max_value: int) -> Optional[int]:
    """
    Truncate value to an int and return it if it lies in [min_value, max_value].

    Out-of-range values yield None; they are not pulled to the nearest bound.
    """
    num = to_finite_number(value)
    if num is None:
        return None
    result = math.trunc(num)
    if result < min_value or result > max_value:
        return None
    return result


def round_to_five_minutes(value: float) -> int:
    """Round to the nearest multiple of 5, halves rounding up."""
    return int(math.floor(value / 5 + 0.5)) * 5


# JSON recovery

def parse_lenient_json(text: str) -> Any:
    """
    Parse text that should be JSON but may be wrapped in a ```json fence.

    Raises ParseError if neither the raw text nor the unfenced text parses.
    """
    trimmed = text.strip()
    # ValueError covers JSONDecodeError and over-long integer literals;
    # RecursionError comes from very deeply nested arrays or objects
    try:
        return json.loads(trimmed)
    except (ValueError, RecursionError):
        pass

    unfenced = _LEADING_FENCE.sub("", trimmed, count=1)
    unfenced = _TRAILING_FENCE.sub("", unfenced, count=1).strip()
    try:
        return json.loads(unfenced)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"AI response is not valid JSON: {e}") from e


# Estimate normalization

def _first_present(obj: dict, *keys: str) -> Any:
    """Return the value of the first key whose value is not None."""
    for key in keys:
        value = obj.get(key)
        if value is not None:
            return value
    return None


def normalize_estimate(raw: Any) -> TaskEstimate:
    """
    Turn an untrusted parsed estimate into a TaskEstimate.

    Never raises: fields that are missing or malformed come back as None.
    """
    if not isinstance(raw, dict):
        return TaskEstimate(estimated_time=None, energy_level=None)

    estimated = clamp_int(
        _first_present(raw, "estimated_time", "estimatedTime"),
        ESTIMATE_RAW_MIN,
        ESTIMATE_RAW_MAX,
    )
    estimated_time = None
    if estimated is not None:
        rounded = round_to_five_minutes(max(ESTIMATE_MIN_MINUTES, estimated))
        estimated_time = min(max(rounded, ESTIMATE_MIN_MINUTES), ESTIMATE_MAX_MINUTES)

    energy_level = clamp_int(_first_present(raw, "energy_level", "energyLevel"), 1, 3)

    confidence = raw.get("confidence")
    if _is_finite_number(confidence):
        confidence = float(min(max(confidence, 0), 1))
    else:
        confidence = None

    reason = raw.get("reason")
    reason = reason.strip() if isinstance(reason, str) else None

    return TaskEstimate(
        estimated_time=estimated_time,
        energy_level=energy_level,
        confidence=confidence,
        reason=reason,
    )


# Recommendation normalization

def _field(key: str) -> Callable[[dict], str]:
    return lambda rec: to_non_empty_string(rec.get(key))


def _nested_task_id(rec: dict) -> str:
    task = rec.get("task")
    if isinstance(task, dict):
        return to_non_empty_string(task.get("id"))
    return ""


# Tried in order; the first non-empty result wins.
TASK_ID_EXTRACTORS = (
    _field("taskId"),
    _field("taskID"),
    _field("task_id"),
    _field("id"),
    _nested_task_id,
)

REASON_EXTRACTORS = (
    _field("reason"),
    _field("why"),
    _field("message"),
    _field("comment"),
)

ORDINAL_KEYS = ("taskNo", "task_no", "ordinal", "index", "rank", "taskId", "id")


def _first_non_empty(rec: dict, extractors: Sequence[Callable[[dict], str]]) -> str:
    for extract in extractors:
        value = extract(rec)
        if value:
            return value
    return ""


def _find_ordinal(rec: dict) -> Optional[float]:
    for key in ORDINAL_KEYS:
        num = to_finite_number(rec.get(key))
        if num is not None:
            return num
    return None


def _task_id_of(task: Any) -> Optional[str]:
    if isinstance(task, dict):
        return task.get("id")
    return getattr(task, "id", None)


def normalize_recommendations(
    raw: Any,
    valid_task_ids: set[str] | frozenset[str],
    tasks_in_order: Sequence[Any],
) -> RecommendResponse:
    """
    Validate AI recommendations against the tasks that were offered to it.

    Args:
        raw: Parsed JSON, expected to look like {"recommendations": [...]}
        valid_task_ids: Ids the model was allowed to pick from
        tasks_in_order: The same tasks in prompt order, used to resolve
            1-based positions the model sometimes returns instead of ids

    Raises:
        SchemaError: raw is not an object or has no recommendations list
        NoValidResultsError: no entry references a known task
    """
    if not isinstance(raw, dict):
        raise SchemaError("AI response is not an object")

    recs = raw.get("recommendations")
    if not isinstance(recs, list):
        raise SchemaError("AI response missing recommendations[]")

    normalized: list[Recommendation] = []

    for rec in recs:
        if not isinstance(rec, dict):
            continue

        task_id = _first_non_empty(rec, TASK_ID_EXTRACTORS)
        reason = _first_non_empty(rec, REASON_EXTRACTORS)
        if not reason:
            continue

        # Model returned a position like 1 instead of the real id, or only a
        # taskNo with no id at all
        if task_id not in valid_task_ids:
            ordinal = _find_ordinal(rec)
            if ordinal is not None:
                idx = math.trunc(ordinal) - 1
                if 0 <= idx < len(tasks_in_order):
                    task_id = _task_id_of(tasks_in_order[idx]) or task_id

        if task_id not in valid_task_ids:
            continue

        normalized.append(Recommendation(task_id=task_id, reason=reason))
        if len(normalized) >= MAX_RECOMMENDATIONS:
            break

    if not normalized:
        raise NoValidResultsError("AI response did not include valid recommendations")

    return RecommendResponse(recommendations=normalized)
