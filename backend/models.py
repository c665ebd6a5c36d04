import math
import re
from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def parse_int_or_none(value: Any) -> Optional[int]:
    """Loose int parsing for form input: "", None and garbage become None, "30min" becomes 30."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group()) if match else None


class Task(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    estimated_time: Optional[int] = None  # Minutes
    energy_level: Optional[int] = None  # 1 (light) to 3 (heavy)
    is_completed: bool = False
    created_at: str  # ISO format datetime string

class TaskCreate(BaseModel):
    title: Any = ""
    description: Any = None
    estimated_time: Optional[int] = None
    energy_level: Optional[int] = None
    auto_estimate: Any = True

    @field_validator("estimated_time", "energy_level", mode="before")
    @classmethod
    def _loose_int(cls, value: Any) -> Optional[int]:
        return parse_int_or_none(value)

class TaskUpdate(BaseModel):
    is_completed: Optional[StrictBool] = None

class CandidateTask(BaseModel):
    """A task as sent by the client for recommendation; only id is required."""
    id: str
    title: str = ""
    description: Optional[str] = None
    estimated_time: Optional[int] = None
    energy_level: Optional[int] = None
    is_completed: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_numeric_id(cls, value: Any) -> Any:
        # Clients may send numeric ids; 1.0 renders as "1"
        if isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

class RecommendRequest(BaseModel):
    mood: Any = ""
    tasks: Optional[list[CandidateTask]] = None

class TaskEstimate(BaseModel):
    estimated_time: Optional[int] = None  # 5-240, multiple of 5
    energy_level: Optional[int] = None  # 1-3
    confidence: Optional[float] = None  # 0.0-1.0
    reason: Optional[str] = None

class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="taskId")
    reason: str

class RecommendResponse(BaseModel):
    recommendations: list[Recommendation] = []
