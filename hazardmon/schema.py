# hazardmon/schema.py
from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal[
    "earthquake", "conflict", "weather", "disaster", "political",
    "health", "violence", "user_report", "info",
]
Severity = Literal["critical", "high", "medium", "low", "info"]
SourceHealth = Literal["connecting", "live", "degraded", "error"]

CATEGORIES: Tuple[str, ...] = (
    "earthquake", "conflict", "weather", "disaster", "political",
    "health", "violence", "user_report", "info",
)
SEVERITIES: Tuple[str, ...] = ("critical", "high", "medium", "low", "info")

# higher = more urgent
SEVERITY_RANK: Dict[str, int] = {s: len(SEVERITIES) - i for i, s in enumerate(SEVERITIES)}


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: Category = "info"
    severity: Severity = "medium"
    location: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None  # (lat, lon)
    detail: str = ""
    source_name: str
    external_url: Optional[str] = None
    occurred_at: int = 0  # epoch millis

    magnitude: Optional[float] = None
    depth_km: Optional[float] = None
    fatalities: Optional[int] = Field(default=None, ge=0)
    is_user_submitted: bool = False

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class Counts(BaseModel):
    total: int = 0
    critical: int = 0
    conflict: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_source: Dict[str, int] = Field(default_factory=dict)
