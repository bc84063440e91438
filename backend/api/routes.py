"""API route definitions for InfraGuard."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from models.audit import ComplianceReport, SecurityAuditResult, WhatIfResult
from models.infra import InfraSpec, NodeType
from models.learning import (
    AntiPatternCalibration,
    AntiPatternInteraction,
    CalibratedFinding,
    CoOccurrenceInsight,
    FailedPromptInsight,
    FeedbackRecord,
    FeedbackSummary,
    PatternFrequencyInsight,
    PlacementCorrection,
    RelationshipSuggestion,
    SpecDiff,
    UsageEvent,
)
from services.compliance_checker import (
    check_all_compliance,
    check_compliance,
    get_available_frameworks,
)
from services.learning_stores import LearningStores
from services.security_audit import run_security_audit
from utils.analytics_engine import (
    analyze_co_occurrences,
    analyze_failed_prompts,
    analyze_pattern_frequency,
    analyze_placement_corrections,
    mark_existing_relationships,
    suggest_new_relationships,
)
from utils.calibration_engine import (
    calibrate_findings,
    compute_false_positive_rate,
    get_suppressed_ids,
)
from utils.compliance_rules import COMPLIANCE_REQUIREMENTS
from utils.json_store import StoreError
from utils.learning_config import CalibrationConfig
from utils.security_rules import SECURITY_RULE_SEVERITIES
from utils.spec_differ import (
    compute_modification_score,
    compute_spec_diff,
    has_significant_changes,
)
from utils.what_if import analyze_what_if_add, analyze_what_if_remove

router = APIRouter()


def get_stores(request: Request) -> LearningStores:
    """Dependency returning the LearningStores built by create_app."""
    return request.app.state.stores


def get_calibration_config(request: Request) -> CalibrationConfig:
    return request.app.state.calibration_config


@router.get("/health")
async def health_check(stores: LearningStores = Depends(get_stores)) -> dict:
    """
    Lightweight endpoint for uptime checks.

    Returns:
        dict: Health status payload including the active store backend.
    """
    return {"status": "healthy", "store_backend": stores.backend}


# ============================================================================
# AUDIT ENDPOINTS
# ============================================================================


class AuditRequest(BaseModel):
    spec: InfraSpec
    spec_name: Optional[str] = None


class CalibratedAuditResponse(BaseModel):
    audit: SecurityAuditResult
    findings: list[CalibratedFinding]
    suppressed_ids: list[str]
    false_positive_rate: float


@router.post("/audit", response_model=SecurityAuditResult)
async def audit_spec(request: AuditRequest) -> SecurityAuditResult:
    """
    Run the security audit against a spec.

    Returns:
        SecurityAuditResult: Findings sorted critical first, score and summary.
    """
    return run_security_audit(request.spec, request.spec_name)


@router.post("/audit/calibrated", response_model=CalibratedAuditResponse)
async def audit_spec_calibrated(
    request: AuditRequest,
    stores: LearningStores = Depends(get_stores),
    config: CalibrationConfig = Depends(get_calibration_config),
) -> CalibratedAuditResponse:
    """
    Run the security audit and recalibrate finding severities from stored
    user interactions. Suppressed findings are listed but not returned.
    """
    result = run_security_audit(request.spec, request.spec_name)
    calibration_data = await stores.calibration.get_calibration_data()

    return CalibratedAuditResponse(
        audit=result,
        findings=calibrate_findings(result.findings, calibration_data, config),
        suppressed_ids=get_suppressed_ids(result.findings, calibration_data, config),
        false_positive_rate=compute_false_positive_rate(calibration_data),
    )


# ============================================================================
# COMPLIANCE ENDPOINTS
# ============================================================================


class ComplianceRequest(BaseModel):
    spec: InfraSpec


@router.get("/compliance/frameworks")
async def list_frameworks() -> list[dict]:
    """List supported compliance frameworks."""
    return get_available_frameworks()


@router.post("/compliance/{framework}", response_model=ComplianceReport)
async def check_framework(framework: str, request: ComplianceRequest) -> ComplianceReport:
    """
    Check a spec against one compliance framework.

    Raises:
        HTTPException: 404 if the framework is not supported.
    """
    if framework not in COMPLIANCE_REQUIREMENTS:
        raise HTTPException(status_code=404, detail=f"Unknown compliance framework '{framework}'")
    return check_compliance(request.spec, framework)


@router.post("/compliance", response_model=list[ComplianceReport])
async def check_all_frameworks(request: ComplianceRequest) -> list[ComplianceReport]:
    return check_all_compliance(request.spec)


# ============================================================================
# WHAT-IF ENDPOINTS
# ============================================================================


class WhatIfAddRequest(BaseModel):
    spec: InfraSpec
    node_type: NodeType


class WhatIfRemoveRequest(BaseModel):
    spec: InfraSpec
    node_id: str


@router.post("/what-if/add", response_model=WhatIfResult)
async def what_if_add(request: WhatIfAddRequest) -> WhatIfResult:
    return analyze_what_if_add(request.spec, request.node_type)


@router.post("/what-if/remove", response_model=WhatIfResult)
async def what_if_remove(request: WhatIfRemoveRequest) -> WhatIfResult:
    """
    Simulate removing a node. An unknown node id returns a zero-impact result.
    """
    return analyze_what_if_remove(request.spec, request.node_id)


# ============================================================================
# SPEC DIFF ENDPOINT
# ============================================================================


class SpecDiffRequest(BaseModel):
    original: InfraSpec
    modified: InfraSpec


class SpecDiffResponse(BaseModel):
    diff: SpecDiff
    has_significant_changes: bool
    modification_score: float


@router.post("/spec-diff", response_model=SpecDiffResponse)
async def diff_specs(request: SpecDiffRequest) -> SpecDiffResponse:
    diff = compute_spec_diff(request.original, request.modified)
    return SpecDiffResponse(
        diff=diff,
        has_significant_changes=has_significant_changes(diff),
        modification_score=compute_modification_score(diff, len(request.original.nodes)),
    )


# ============================================================================
# FEEDBACK ENDPOINTS
# ============================================================================


@router.post("/feedback", response_model=FeedbackRecord, status_code=201)
async def save_feedback(
    record: FeedbackRecord, stores: LearningStores = Depends(get_stores)
) -> FeedbackRecord:
    """
    Save a feedback record. Re-posting the same id overwrites the record.

    When a user-modified spec is supplied without a diff, the diff and
    placement changes are computed here.

    Raises:
        HTTPException: 500 if the record could not be persisted.
    """
    if record.user_modified_spec is not None and not record.spec_diff.operations:
        diff = compute_spec_diff(record.original_spec, record.user_modified_spec)
        record = record.model_copy(
            update={"spec_diff": diff, "placement_changes": diff.placement_changes}
        )

    try:
        await stores.feedback.save(record)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return record


@router.get("/feedback", response_model=list[FeedbackRecord])
async def list_feedback(
    session_id: Optional[str] = None, stores: LearningStores = Depends(get_stores)
) -> list[FeedbackRecord]:
    if session_id:
        return await stores.feedback.get_by_session(session_id)
    return await stores.feedback.get_all()


@router.get("/feedback/summary", response_model=FeedbackSummary)
async def feedback_summary(stores: LearningStores = Depends(get_stores)) -> FeedbackSummary:
    return await stores.feedback.get_summary()


@router.get("/feedback/{record_id}", response_model=FeedbackRecord)
async def get_feedback(
    record_id: str, stores: LearningStores = Depends(get_stores)
) -> FeedbackRecord:
    """
    Raises:
        HTTPException: 404 if no record has this id.
    """
    record = await stores.feedback.get_by_id(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Feedback record not found")
    return record


@router.delete("/feedback/{record_id}")
async def delete_feedback(record_id: str, stores: LearningStores = Depends(get_stores)) -> dict:
    """
    Raises:
        HTTPException: 404 if no record has this id, 500 if deletion failed.
    """
    try:
        deleted = await stores.feedback.delete(record_id)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Feedback record not found")
    return {"deleted": record_id}


# ============================================================================
# USAGE & INTERACTION ENDPOINTS
# ============================================================================


@router.post("/usage", status_code=202)
async def record_usage(event: UsageEvent, stores: LearningStores = Depends(get_stores)) -> dict:
    await stores.usage.save(event)
    return {"accepted": event.id}


@router.get("/usage", response_model=list[UsageEvent])
async def list_usage(
    session_id: Optional[str] = None, stores: LearningStores = Depends(get_stores)
) -> list[UsageEvent]:
    if session_id:
        return await stores.usage.get_by_session(session_id)
    return await stores.usage.get_all()


@router.post("/interactions", status_code=202)
async def record_interaction(
    interaction: AntiPatternInteraction, stores: LearningStores = Depends(get_stores)
) -> dict:
    await stores.calibration.save_interaction(interaction)
    return {"accepted": interaction.id}


@router.get("/interactions", response_model=list[AntiPatternInteraction])
async def list_interactions(
    anti_pattern_id: Optional[str] = None, stores: LearningStores = Depends(get_stores)
) -> list[AntiPatternInteraction]:
    return await stores.calibration.get_interactions(anti_pattern_id)


class CalibrationResponse(BaseModel):
    calibrations: list[AntiPatternCalibration]
    false_positive_rate: float


@router.get("/calibration", response_model=CalibrationResponse)
async def get_calibration(
    stores: LearningStores = Depends(get_stores),
    config: CalibrationConfig = Depends(get_calibration_config),
) -> CalibrationResponse:
    """
    Per-finding ignore/fix statistics derived from all stored interactions,
    with each security rule's declared severity and its calibrated severity.
    """
    calibration_data = await stores.calibration.get_calibration_data(
        SECURITY_RULE_SEVERITIES, config
    )
    return CalibrationResponse(
        calibrations=sorted(calibration_data.values(), key=lambda c: c.anti_pattern_id),
        false_positive_rate=compute_false_positive_rate(calibration_data),
    )


# ============================================================================
# ANALYTICS ENDPOINTS
# ============================================================================


class InsightsResponse(BaseModel):
    co_occurrences: list[CoOccurrenceInsight]
    pattern_frequency: list[PatternFrequencyInsight]
    failed_prompts: list[FailedPromptInsight]
    placement_corrections: list[PlacementCorrection]
    relationship_suggestions: list[RelationshipSuggestion]


def _connected_type_pairs(feedbacks: list[FeedbackRecord]) -> set[tuple[str, str]]:
    """Node type pairs already connected in at least one generated spec."""
    pairs = set()
    for fb in feedbacks:
        types = {n.id: n.type for n in fb.original_spec.nodes}
        for conn in fb.original_spec.connections:
            if conn.source in types and conn.target in types:
                pairs.add((types[conn.source], types[conn.target]))
    return pairs


@router.get("/analytics/insights", response_model=InsightsResponse)
async def get_insights(
    min_support: int = 5,
    min_confidence: float = 0.6,
    min_failures: int = 3,
    stores: LearningStores = Depends(get_stores),
) -> InsightsResponse:
    """
    Mine stored feedback and usage events for improvement insights.

    Raises:
        HTTPException: 400 if a threshold is out of range.
    """
    feedbacks = await stores.feedback.get_all()
    events = await stores.usage.get_all()

    try:
        co_occurrences = analyze_co_occurrences(feedbacks, min_support, min_confidence)
        failed_prompts = analyze_failed_prompts(events, min_failures)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    existing_pairs = _connected_type_pairs(feedbacks)
    return InsightsResponse(
        co_occurrences=mark_existing_relationships(co_occurrences, existing_pairs),
        pattern_frequency=analyze_pattern_frequency(events, feedbacks),
        failed_prompts=failed_prompts,
        placement_corrections=analyze_placement_corrections(feedbacks),
        relationship_suggestions=suggest_new_relationships(co_occurrences, existing_pairs),
    )
