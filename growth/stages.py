"""
Growth stages: the four-level business maturity state machine.

A stage tracks named indicators against targets. Progress is the share of
indicators met; once it reaches the readiness threshold the stage can be
advanced to the next level, which clears its indicators.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any

from loguru import logger

from .errors import IndicatorNotFoundError, NotReadyToAdvanceError, FinalStageError


DEFAULT_READY_THRESHOLD = 80.0


class Stage(str, Enum):
    """Business maturity levels, in order."""
    STARTUP = "STAGE_1_STARTUP"
    PROCESSING = "STAGE_2_PROCESSING"
    PRODUCTION = "STAGE_3_PRODUCTION"
    INTEGRATION = "STAGE_4_INTEGRATION"


STAGE_ORDER = (Stage.STARTUP, Stage.PROCESSING, Stage.PRODUCTION, Stage.INTEGRATION)

STAGE_DESCRIPTIONS: Dict[Stage, str] = {
    Stage.STARTUP: "Startup - Selling Specific Cuts",
    Stage.PROCESSING: "Expansion - Buying and Processing Whole Chickens",
    Stage.PRODUCTION: "Consolidation - Producing and Selling Roast Chicken",
    Stage.INTEGRATION: "Vertical Integration - Own Production",
}

# Capital needed to enter each stage
STAGE_CAPITAL: Dict[Stage, float] = {
    Stage.STARTUP: 0,
    Stage.PROCESSING: 5_000_000,
    Stage.PRODUCTION: 15_000_000,
    Stage.INTEGRATION: 50_000_000,
}


class RecommendationKind(str, Enum):
    INVESTMENT = "INVESTMENT"
    OPERATION = "OPERATION"
    PRODUCT = "PRODUCT"
    CUSTOMER = "CUSTOMER"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass
class Indicator:
    """A named metric compared against a target."""
    name: str
    current: float
    target: float
    description: str = ""

    @property
    def met(self) -> bool:
        return self.current >= self.target

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'current': self.current,
            'target': self.target,
            'description': self.description,
            'met': self.met,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Indicator":
        # 'met' is derived, so it is ignored on load
        return cls(
            name=data['name'],
            current=data['current'],
            target=data['target'],
            description=data.get('description', ""),
        )


@dataclass
class Recommendation:
    """Advisory emitted while evaluating a stage."""
    kind: RecommendationKind
    priority: Priority
    title: str
    description: str
    estimated_investment: Optional[float] = None
    estimated_return: Optional[float] = None
    term_months: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'priority': self.priority.value,
            'title': self.title,
            'description': self.description,
            'estimated_investment': self.estimated_investment,
            'estimated_return': self.estimated_return,
            'term_months': self.term_months,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recommendation":
        return cls(
            kind=RecommendationKind(data['kind']),
            priority=Priority(data['priority']),
            title=data['title'],
            description=data['description'],
            estimated_investment=data.get('estimated_investment'),
            estimated_return=data.get('estimated_return'),
            term_months=data.get('term_months'),
        )


def stage_indicators(level: Stage) -> List[Indicator]:
    """
    Build the fresh indicator set tracked at a stage.

    Args:
        level: Stage to build indicators for

    Returns:
        List[Indicator]: Indicators with current value 0
    """
    catalog = {
        Stage.STARTUP: [
            Indicator("Daily Sales", 0, 200_000, "Consistent daily sales above $200,000"),
            Indicator("Frequent Customers", 0, 20, "More than 20 customers per week"),
            Indicator("Accumulated Capital", 0, 5_000_000, "Available capital above $5M"),
        ],
        Stage.PROCESSING: [
            Indicator("Weekly Volume", 0, 100, "More than 100 chickens processed per week"),
            Indicator("Yield", 0, 85, "Processing yield of at least 85%"),
            Indicator("Available Capital", 0, 15_000_000, "Capital for the next stage above $15M"),
        ],
        Stage.PRODUCTION: [
            Indicator("Wholesale Customers", 0, 5, "More than 5 regular wholesale customers"),
            Indicator("Weekly Volume Kg", 0, 500, "More than 500 kg per week"),
            Indicator("Available Capital", 0, 50_000_000, "Capital for vertical integration above $50M"),
        ],
        Stage.INTEGRATION: [
            Indicator("Annual Demand", 0, 12_000, "Annual demand above 12,000 kg"),
            Indicator("Expected ROI", 0, 50, "Own-production ROI above 50%"),
        ],
    }
    return catalog[level]


@dataclass
class GrowthStage:
    """Current maturity level of the business and its progress."""
    id: str
    level: Stage
    started_at: datetime
    indicators: List[Indicator] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    capital_available: float = 0.0
    last_evaluated_at: datetime = field(default_factory=datetime.now)

    def progress(self) -> float:
        """Percentage (0-100) of indicators met."""
        if not self.indicators:
            return 0.0
        met = sum(1 for indicator in self.indicators if indicator.met)
        return met / len(self.indicators) * 100

    def ready_to_advance(self, threshold_pct: float = DEFAULT_READY_THRESHOLD) -> bool:
        return self.progress() >= threshold_pct

    def next_stage(self) -> Optional[Stage]:
        index = STAGE_ORDER.index(self.level)
        if index == len(STAGE_ORDER) - 1:
            return None
        return STAGE_ORDER[index + 1]

    def find_indicator(self, name: str) -> Indicator:
        for indicator in self.indicators:
            if indicator.name == name:
                return indicator
        raise IndicatorNotFoundError(name)

    def update_indicator(self, name: str, current: float) -> Indicator:
        """
        Set the current value of a tracked indicator.

        Args:
            name: Indicator name
            current: New current value

        Returns:
            Indicator: The updated indicator

        Raises:
            IndicatorNotFoundError: If the stage does not track the indicator
        """
        indicator = self.find_indicator(name)
        indicator.current = current
        logger.debug(f"Indicator '{name}' = {current} (target {indicator.target}, met={indicator.met})")
        return indicator

    def add_recommendation(self, recommendation: Recommendation) -> None:
        self.recommendations.append(recommendation)

    def advance(self, threshold_pct: float = DEFAULT_READY_THRESHOLD) -> Stage:
        """
        Move to the next stage, clearing indicators and recommendations.

        Args:
            threshold_pct: Progress required to advance

        Returns:
            Stage: The new level

        Raises:
            NotReadyToAdvanceError: If progress is below the threshold
            FinalStageError: If already at the last stage
        """
        progress = self.progress()
        if progress < threshold_pct:
            raise NotReadyToAdvanceError(progress, threshold_pct)

        following = self.next_stage()
        if following is None:
            raise FinalStageError()

        logger.info(f"Stage {self.id} advancing from {self.level.value} to {following.value}")
        self.level = following
        self.started_at = datetime.now()
        self.indicators = []
        self.recommendations = []
        return self.level

    def description(self) -> str:
        return STAGE_DESCRIPTIONS[self.level]

    def required_capital_for_next(self) -> float:
        following = self.next_stage()
        return STAGE_CAPITAL[following] if following else 0

    def has_sufficient_capital(self) -> bool:
        return self.capital_available >= self.required_capital_for_next()

    def summary(self, threshold_pct: float = DEFAULT_READY_THRESHOLD) -> Dict[str, Any]:
        return {
            'stage': self.description(),
            'level': self.level.value,
            'progress': self.progress(),
            'ready_to_advance': self.ready_to_advance(threshold_pct),
            'capital_available': self.capital_available,
            'capital_required': self.required_capital_for_next(),
            'indicators_met': sum(1 for indicator in self.indicators if indicator.met),
            'total_indicators': len(self.indicators),
            'pending_recommendations': len(self.recommendations),
        }
