"""Data models for the feedback and calibration loop.

Records (feedback, usage events, finding interactions) are append-only and keyed
by a stable id so that re-submitting a record overwrites rather than duplicates.
AntiPatternCalibration is derived from interactions on demand and never stored.
"""

from typing import Any, Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from models.audit import Severity
from models.infra import InfraSpec

DiagramSource = Literal["local-parser", "llm-modify", "template"]

DiffOperationType = Literal[
    "add-node",
    "remove-node",
    "modify-node",
    "add-connection",
    "remove-connection",
    "modify-connection",
]

InteractionAction = Literal["shown", "ignored", "fixed"]

# low and info findings sit outside the calibration scale and keep their severity
CalibratedSeverity = Literal["critical", "high", "medium", "low", "info", "suppressed"]


class PlacementChange(BaseModel):
    """A tier correction made by the user on an existing node."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    node_type: str
    from_tier: str | None = None
    to_tier: str | None = None
    moved: bool = True


class DiffOperation(BaseModel):
    """One structural change between two specs.

    Node operations carry node_id/node_type, connection operations carry
    source/target. modify-* operations also carry field, old_value, new_value.
    """

    model_config = ConfigDict(frozen=True)

    type: DiffOperationType
    node_id: str | None = None
    node_type: str | None = None
    source: str | None = None
    target: str | None = None
    field: str | None = None
    old_value: Any = None
    new_value: Any = None


class SpecDiff(BaseModel):
    """Structural delta between an original and a modified spec."""

    model_config = ConfigDict(frozen=True)

    operations: list[DiffOperation] = Field(default_factory=list)
    nodes_added: int = 0
    nodes_removed: int = 0
    nodes_modified: int = 0
    connections_added: int = 0
    connections_removed: int = 0
    placement_changes: list[PlacementChange] = Field(default_factory=list)


class FeedbackRecord(BaseModel):
    """A user's response to one generated diagram."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: AwareDatetime  # retention ordering
    diagram_source: DiagramSource
    prompt: str | None = None
    original_spec: InfraSpec
    user_modified_spec: InfraSpec | None = None
    user_rating: int | None = Field(default=None, ge=1, le=5)
    spec_diff: SpecDiff = Field(default_factory=SpecDiff)
    placement_changes: list[PlacementChange] = Field(default_factory=list)
    patterns_detected: list[str] = Field(default_factory=list)
    anti_patterns_detected: list[str] = Field(default_factory=list)
    anti_patterns_ignored: list[str] = Field(default_factory=list)
    anti_patterns_fixed: list[str] = Field(default_factory=list)
    session_id: str


class ChangeCount(BaseModel):
    """Occurrence count of one diff operation type."""

    type: str
    count: int


class FeedbackSummary(BaseModel):
    """Aggregate statistics across stored feedback records."""

    total_records: int = 0
    average_rating: float | None = None
    rating_distribution: dict[int, int] = Field(default_factory=dict)
    source_distribution: dict[str, int] = Field(default_factory=dict)
    total_modifications: int = 0
    most_common_changes: list[ChangeCount] = Field(default_factory=list)


class UsageEvent(BaseModel):
    """A diagram generation or modification event."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: AwareDatetime
    event_type: Literal["parse", "llm-modify", "template"]
    prompt: str | None = None
    success: bool
    confidence: float = 0.0
    node_types: list[str] = Field(default_factory=list)
    pattern_ids: list[str] = Field(default_factory=list)
    anti_pattern_ids: list[str] = Field(default_factory=list)
    session_id: str


class AntiPatternInteraction(BaseModel):
    """A user's action on a shown finding."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: AwareDatetime
    anti_pattern_id: str
    action: InteractionAction
    session_id: str


class AntiPatternCalibration(BaseModel):
    """Aggregated ignore/fix statistics for one finding id."""

    anti_pattern_id: str
    total_shown: int = 0
    ignored_count: int = 0
    fixed_count: int = 0
    ignore_rate: float = 0.0
    fix_rate: float = 0.0
    original_severity: Severity = "medium"
    calibrated_severity: CalibratedSeverity = "medium"
    last_updated: AwareDatetime


class CalibratedFinding(BaseModel):
    """A finding together with its severity after calibration."""

    id: str
    title: str
    original_severity: str
    calibrated_severity: str
    ignore_rate: float = 0.0
    fix_rate: float = 0.0
    total_shown: int = 0
    was_calibrated: bool = False


class CoOccurrenceInsight(BaseModel):
    """Two node types that frequently appear in the same spec."""

    type_a: str
    type_b: str
    co_occurrence_count: int
    total_a: int
    total_b: int
    confidence: float  # P(B|A)
    support: int
    is_existing_relationship: bool = False


class PatternFrequencyInsight(BaseModel):
    pattern_id: str
    pattern_name: str
    count: int
    average_rating: float | None = None
    last_used: AwareDatetime


class FailedPromptInsight(BaseModel):
    keyword: str
    failure_count: int
    total_attempts: int
    failure_rate: float
    sample_prompts: list[str] = Field(default_factory=list)


class PlacementCorrection(BaseModel):
    """How often users move one node type from one tier to another."""

    node_type: str
    from_tier: str
    to_tier: str
    count: int
    correction_rate: float


class RelationshipSuggestion(BaseModel):
    source: str
    target: str
    confidence: float
    support: int
    suggested_type: Literal["recommends", "complements"]
