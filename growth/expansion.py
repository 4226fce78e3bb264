"""
Expansion opportunities: planning vertical integration investments.

Each opportunity carries a capacity projection and a financial evaluation
used to judge viability and rank it against the others.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Any

from loguru import logger


class AssetType(str, Enum):
    """Kind of productive asset an opportunity invests in."""
    LAND = "LAND"
    SHEDS = "SHEDS"
    ANIMALS = "ANIMALS"
    EQUIPMENT = "EQUIPMENT"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class OpportunityStatus(str, Enum):
    ANALYSIS = "ANALYSIS"
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    IMPLEMENTED = "IMPLEMENTED"
    DISCARDED = "DISCARDED"


@dataclass
class CapacityProjection:
    """Projected productive capacity of an opportunity."""
    annual_capacity_kg: float
    production_time_months: float
    monthly_operating_costs: float
    estimated_monthly_sales: float
    break_even_months: float


@dataclass
class FinancialEvaluation:
    """Financial evaluation of own production against buying externally."""
    initial_investment: float
    own_production_cost: float
    external_purchase_cost: float
    estimated_savings: float
    roi_pct: float
    payback_months: float
    net_present_value: float
    internal_rate_of_return_pct: float


@dataclass
class ExpansionOpportunity:
    id: str
    name: str
    description: str
    asset_type: AssetType
    status: OpportunityStatus
    created_at: datetime
    projection: CapacityProjection
    evaluation: FinancialEvaluation
    location: Optional[str] = None
    implemented_at: Optional[datetime] = None
    notes: Optional[str] = None

    def is_financially_viable(self) -> bool:
        return (self.evaluation.roi_pct > 20
                and self.evaluation.payback_months <= 24
                and self.evaluation.estimated_savings > 0)

    def priority_score(self) -> int:
        """
        Score implementation priority from 0 to 100.

        ROI contributes up to 40 points, payback period up to 30 and
        estimated savings up to 30.

        Returns:
            int: Priority score
        """
        evaluation = self.evaluation
        score = 0

        if evaluation.roi_pct >= 50:
            score += 40
        elif evaluation.roi_pct >= 30:
            score += 30
        elif evaluation.roi_pct >= 20:
            score += 20
        else:
            score += 10

        if evaluation.payback_months <= 12:
            score += 30
        elif evaluation.payback_months <= 18:
            score += 20
        elif evaluation.payback_months <= 24:
            score += 10
        else:
            score += 5

        if evaluation.estimated_savings >= 10_000_000:
            score += 30
        elif evaluation.estimated_savings >= 5_000_000:
            score += 20
        elif evaluation.estimated_savings >= 1_000_000:
            score += 10
        else:
            score += 5

        return score

    def update_status(self, status: OpportunityStatus) -> None:
        logger.info(f"Opportunity {self.id} status {self.status.value} -> {status.value}")
        self.status = status
        if status == OpportunityStatus.IMPLEMENTED:
            self.implemented_at = datetime.now()

    def update_evaluation(self, evaluation: FinancialEvaluation) -> None:
        self.evaluation = evaluation

    def production_comparison(self) -> Dict[str, float]:
        """Compare own production cost with buying externally."""
        own = self.evaluation.own_production_cost
        external = self.evaluation.external_purchase_cost
        difference = external - own
        savings_pct = difference / external * 100 if external else 0.0

        return {
            'own_production': own,
            'external_purchase': external,
            'difference': difference,
            'savings_pct': savings_pct,
        }

    def ready_to_implement(self) -> bool:
        return self.status == OpportunityStatus.PLANNED and self.is_financially_viable()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'asset_type': self.asset_type.value,
            'status': self.status.value,
            'created_at': self.created_at.isoformat(),
            'projection': asdict(self.projection),
            'evaluation': asdict(self.evaluation),
            'location': self.location,
            'implemented_at': self.implemented_at.isoformat() if self.implemented_at else None,
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExpansionOpportunity":
        implemented_at = data.get('implemented_at')
        return cls(
            id=data['id'],
            name=data['name'],
            description=data['description'],
            asset_type=AssetType(data['asset_type']),
            status=OpportunityStatus(data['status']),
            created_at=datetime.fromisoformat(data['created_at']),
            projection=CapacityProjection(**data['projection']),
            evaluation=FinancialEvaluation(**data['evaluation']),
            location=data.get('location'),
            implemented_at=datetime.fromisoformat(implemented_at) if implemented_at else None,
            notes=data.get('notes'),
        )
