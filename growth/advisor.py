"""
Recommendation generator for growth stages.
"""

from typing import List

from .stages import (
    GrowthStage, Recommendation, RecommendationKind, Priority,
    STAGE_DESCRIPTIONS, DEFAULT_READY_THRESHOLD
)


def generate_recommendations(stage: GrowthStage,
                             threshold_pct: float = DEFAULT_READY_THRESHOLD) -> List[Recommendation]:
    """
    Produce advisories from a stage's progress and capital position.

    The stage is not modified; callers decide whether to attach the result.

    Args:
        stage: Stage to evaluate
        threshold_pct: Progress required to count as ready

    Returns:
        List[Recommendation]: Zero, one or two recommendations
    """
    following = stage.next_stage()
    if following is None:
        return []

    required = stage.required_capital_for_next()
    has_capital = stage.has_sufficient_capital()
    recommendations = []

    if not has_capital:
        recommendations.append(Recommendation(
            kind=RecommendationKind.INVESTMENT,
            priority=Priority.HIGH,
            title="Accumulate Capital",
            description=(
                f"You need ${required:,.0f} to advance to the next stage. "
                f"You currently have ${stage.capital_available:,.0f}."
            ),
            estimated_investment=required - stage.capital_available
        ))

    if stage.ready_to_advance(threshold_pct) and has_capital:
        recommendations.append(Recommendation(
            kind=RecommendationKind.OPERATION,
            priority=Priority.CRITICAL,
            title="Ready to Advance",
            description=(
                "All requirements are met to advance to: "
                f"{STAGE_DESCRIPTIONS[following]}"
            ),
            estimated_investment=required
        ))

    return recommendations
