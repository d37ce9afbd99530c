"""
Interaction telemetry models.

TimeInteraction, Context, Activity and Feedback nodes hang off a Block and
record how and when it was used. They are append-only and informational.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ActionType(str, Enum):
    """User action recorded by a time trace."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    VIEW = "VIEW"


class DaySegment(str, Enum):
    """Coarse segment of the day."""

    EARLY_MORNING = "EARLY_MORNING"
    MORNING = "MORNING"
    MIDDAY = "MIDDAY"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"
    NIGHT = "NIGHT"


class Season(str, Enum):
    """Northern-hemisphere season of the interaction."""

    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"
    WINTER = "WINTER"


class ChangeType(str, Enum):
    """Classification of a block edit."""

    TITLE_EDIT = "TITLE_EDIT"
    CONTENT_EDIT = "CONTENT_EDIT"
    MAJOR_EXPANSION = "MAJOR_EXPANSION"
    MAJOR_REDUCTION = "MAJOR_REDUCTION"
    MINOR_EDIT = "MINOR_EDIT"


class TimeSnapshot(BaseModel):
    """Time features of a single interaction."""

    hour: int
    minute: int
    day_of_week: int = Field(..., description="0 = Sunday ... 6 = Saturday")
    day_segment: DaySegment
    season: Season
    is_weekend: bool
    is_work_hours: bool


class TimeMetadata(BaseModel):
    """Running interaction statistics stored on a block."""

    model_config = {"extra": "ignore"}

    common_hours: list[int] = Field(default_factory=lambda: [0] * 24)
    common_days: list[int] = Field(default_factory=lambda: [0] * 7)
    common_segments: dict[str, int] = Field(
        default_factory=lambda: {segment.value: 0 for segment in DaySegment}
    )
    total_interactions: int = 0
    last_interaction: datetime | None = None


class ActivityMetrics(BaseModel):
    """Size deltas between two versions of a block."""

    title_length_delta: int
    content_length_delta: int
    total_length: int


class ActivityPatterns(BaseModel):
    """Direction of an edit."""

    is_expansion: bool
    is_refinement: bool


class ActivityChange(BaseModel):
    """Edit classification computed before an Activity node is written."""

    change_types: list[ChangeType]
    metrics: ActivityMetrics
    patterns: ActivityPatterns


class BlockEditStats(BaseModel):
    """Running edit statistics stored on a block."""

    model_config = {"extra": "ignore"}

    total_edits: int = 0
    last_edit_timestamp: datetime | None = None
    edit_frequency: float = 0.0
    average_edit_size: float = 0.0


class BlockActivity(BaseModel):
    """A recorded Activity node plus the block's updated edit stats."""

    id: str
    timestamp: datetime
    change: ActivityChange
    block_stats: BlockEditStats
