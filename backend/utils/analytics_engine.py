"""Insights mined from stored feedback records and usage events.

All functions are pure: data in, insights out. Results are sorted with a
secondary key on their identifiers so that equal scores come out in a stable
order regardless of input order.
"""

import re
from collections import Counter
from datetime import datetime
from typing import Iterable

from models.learning import (
    CoOccurrenceInsight,
    FailedPromptInsight,
    FeedbackRecord,
    PatternFrequencyInsight,
    PlacementCorrection,
    RelationshipSuggestion,
    UsageEvent,
)

PROMPT_STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "with", "for", "to", "in", "of", "on",
        "add", "create", "make", "show", "build", "please",
    }
)

MAX_KEYWORDS_PER_PROMPT = 5
MAX_SAMPLE_PROMPTS = 5
RECOMMENDS_CONFIDENCE = 0.8


def _pair_key(a: str, b: str) -> tuple[str, str]:
    return (a, b) if a < b else (b, a)


def analyze_co_occurrences(
    feedbacks: list[FeedbackRecord],
    min_support: int = 5,
    min_confidence: float = 0.6,
) -> list[CoOccurrenceInsight]:
    """Find node types that are frequently used together.

    Association rule mining over the original spec of each feedback record:
    confidence is P(B|A) = count(A and B) / count(A), where A is the
    lexicographically smaller type of the pair.

    Args:
        feedbacks: Feedback records to mine.
        min_support: Minimum number of specs containing both types.
        min_confidence: Minimum conditional probability.

    Returns:
        Insights sorted by confidence, highest first.

    Raises:
        ValueError: If min_support is below 1 or min_confidence is outside [0, 1].
    """
    if min_support < 1:
        raise ValueError(f"min_support must be >= 1, got {min_support}")
    if not 0.0 <= min_confidence <= 1.0:
        raise ValueError(f"min_confidence must be between 0 and 1, got {min_confidence}")

    type_counts: Counter[str] = Counter()
    pair_counts: Counter[tuple[str, str]] = Counter()

    for fb in feedbacks:
        types = sorted({n.type for n in fb.original_spec.nodes})
        type_counts.update(types)
        for i, type_a in enumerate(types):
            for type_b in types[i + 1 :]:
                pair_counts[_pair_key(type_a, type_b)] += 1

    insights: list[CoOccurrenceInsight] = []
    for (type_a, type_b), co_count in pair_counts.items():
        if co_count < min_support:
            continue

        count_a = type_counts[type_a]
        confidence = co_count / count_a
        if confidence < min_confidence:
            continue

        insights.append(
            CoOccurrenceInsight(
                type_a=type_a,
                type_b=type_b,
                co_occurrence_count=co_count,
                total_a=count_a,
                total_b=type_counts[type_b],
                confidence=confidence,
                support=co_count,
            )
        )

    insights.sort(key=lambda i: (-i.confidence, i.type_a, i.type_b))
    return insights


def analyze_pattern_frequency(
    events: list[UsageEvent],
    feedbacks: list[FeedbackRecord],
    pattern_lookup: dict[str, str] | None = None,
) -> list[PatternFrequencyInsight]:
    """Count how often each architecture pattern was detected.

    Args:
        events: Usage events carrying pattern ids.
        feedbacks: Feedback records, used for average ratings per pattern.
        pattern_lookup: Optional mapping of pattern id to display name.

    Returns:
        Insights sorted by count, most frequent first.
    """
    pattern_lookup = pattern_lookup or {}
    counts: Counter[str] = Counter()
    last_used: dict[str, datetime] = {}

    for event in events:
        for pattern_id in event.pattern_ids:
            counts[pattern_id] += 1
            if pattern_id not in last_used or event.timestamp > last_used[pattern_id]:
                last_used[pattern_id] = event.timestamp

    ratings: dict[str, list[int]] = {}
    for fb in feedbacks:
        if fb.user_rating is None:
            continue
        for pattern_id in fb.patterns_detected:
            ratings.setdefault(pattern_id, []).append(fb.user_rating)

    insights = []
    for pattern_id, count in counts.items():
        pattern_ratings = ratings.get(pattern_id)
        insights.append(
            PatternFrequencyInsight(
                pattern_id=pattern_id,
                pattern_name=pattern_lookup.get(pattern_id, pattern_id),
                count=count,
                average_rating=(
                    sum(pattern_ratings) / len(pattern_ratings) if pattern_ratings else None
                ),
                last_used=last_used[pattern_id],
            )
        )

    insights.sort(key=lambda i: (-i.count, i.pattern_id))
    return insights


def extract_keywords(prompt: str) -> list[str]:
    """Split a prompt into at most five lowercase keywords, dropping stop words."""
    words = re.split(r"[\s,+]+", prompt.lower())
    keywords = [w for w in words if len(w) >= 2 and w not in PROMPT_STOP_WORDS]
    return keywords[:MAX_KEYWORDS_PER_PROMPT]


def analyze_failed_prompts(
    events: list[UsageEvent], min_failures: int = 3
) -> list[FailedPromptInsight]:
    """Group failing prompts by keyword.

    Args:
        events: Usage events; events without a prompt are skipped.
        min_failures: Minimum failures for a keyword to be reported.

    Returns:
        Insights sorted by failure rate, highest first.

    Raises:
        ValueError: If min_failures is below 1.
    """
    if min_failures < 1:
        raise ValueError(f"min_failures must be >= 1, got {min_failures}")

    stats: dict[str, dict] = {}

    for event in events:
        if not event.prompt:
            continue
        for keyword in extract_keywords(event.prompt):
            entry = stats.setdefault(keyword, {"failures": 0, "total": 0, "samples": []})
            entry["total"] += 1
            if not event.success:
                entry["failures"] += 1
                if len(entry["samples"]) < MAX_SAMPLE_PROMPTS:
                    entry["samples"].append(event.prompt)

    insights = [
        FailedPromptInsight(
            keyword=keyword,
            failure_count=entry["failures"],
            total_attempts=entry["total"],
            failure_rate=entry["failures"] / entry["total"] if entry["total"] else 0.0,
            sample_prompts=entry["samples"],
        )
        for keyword, entry in stats.items()
        if entry["failures"] >= min_failures
    ]

    insights.sort(key=lambda i: (-i.failure_rate, i.keyword))
    return insights


def analyze_placement_corrections(feedbacks: list[FeedbackRecord]) -> list[PlacementCorrection]:
    """Aggregate the tier corrections users made, per node type and tier pair.

    The correction rate is the correction count divided by how many nodes of
    that type appeared across all original specs.
    """
    corrections: Counter[tuple[str, str, str]] = Counter()
    type_totals: Counter[str] = Counter()

    for fb in feedbacks:
        type_totals.update(n.type for n in fb.original_spec.nodes)
        for change in fb.placement_changes:
            if not change.from_tier or not change.to_tier:
                continue
            corrections[(change.node_type, change.from_tier, change.to_tier)] += 1

    results = [
        PlacementCorrection(
            node_type=node_type,
            from_tier=from_tier,
            to_tier=to_tier,
            count=count,
            correction_rate=count / (type_totals[node_type] or 1),
        )
        for (node_type, from_tier, to_tier), count in corrections.items()
    ]

    results.sort(key=lambda r: (-r.count, r.node_type, r.from_tier, r.to_tier))
    return results


def mark_existing_relationships(
    co_occurrences: list[CoOccurrenceInsight],
    existing_pairs: Iterable[tuple[str, str]],
) -> list[CoOccurrenceInsight]:
    """Flag co-occurrences whose types are already related (direction ignored)."""
    known = {_pair_key(source, target) for source, target in existing_pairs}
    return [
        co.model_copy(
            update={"is_existing_relationship": _pair_key(co.type_a, co.type_b) in known}
        )
        for co in co_occurrences
    ]


def suggest_new_relationships(
    co_occurrences: list[CoOccurrenceInsight],
    existing_pairs: Iterable[tuple[str, str]],
) -> list[RelationshipSuggestion]:
    """Suggest relationships for co-occurring types not already related.

    Args:
        co_occurrences: Output of analyze_co_occurrences.
        existing_pairs: Known (source, target) relationships; direction is ignored.

    Returns:
        Suggestions sorted by confidence, highest first.
    """
    known = {_pair_key(source, target) for source, target in existing_pairs}

    suggestions = [
        RelationshipSuggestion(
            source=co.type_a,
            target=co.type_b,
            confidence=co.confidence,
            support=co.support,
            suggested_type="recommends" if co.confidence >= RECOMMENDS_CONFIDENCE else "complements",
        )
        for co in co_occurrences
        if _pair_key(co.type_a, co.type_b) not in known
    ]

    suggestions.sort(key=lambda s: (-s.confidence, s.source, s.target))
    return suggestions
