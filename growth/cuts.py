"""
Whole-unit processing: proportional cut allocation and per-run metrics.

A whole bird is split into six standard cuts. Weight and cost are
allocated with the same fixed share per cut; the sale price of each cut
comes from a caller-supplied price map or the table default.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any

from loguru import logger


class CutCategory(str, Enum):
    """Standard cuts obtained from a whole bird."""
    BREAST = "BREAST"
    WINGS = "WINGS"
    DRUMSTICKS = "DRUMSTICKS"
    THIGHS = "THIGHS"
    GIBLETS = "GIBLETS"
    CARCASS = "CARCASS"


@dataclass(frozen=True)
class CutSpec:
    """Share of the whole unit and default sale price per kg for a cut."""
    share: float
    default_price: float


STANDARD_CUTS: Dict[CutCategory, CutSpec] = {
    CutCategory.BREAST: CutSpec(share=0.26, default_price=18000),
    CutCategory.WINGS: CutSpec(share=0.10, default_price=15000),
    CutCategory.DRUMSTICKS: CutSpec(share=0.24, default_price=14000),
    CutCategory.THIGHS: CutSpec(share=0.20, default_price=14000),
    CutCategory.GIBLETS: CutSpec(share=0.08, default_price=5000),
    CutCategory.CARCASS: CutSpec(share=0.12, default_price=2000),
}

# Not normalised: whatever the table leaves over is reported, never rescaled.
TOTAL_SHARE: float = sum(spec.share for spec in STANDARD_CUTS.values())


def unallocated_share(table: Optional[Dict[CutCategory, CutSpec]] = None) -> float:
    """
    Share of the whole unit not covered by the cut table.

    Args:
        table: Cut table to inspect (default: STANDARD_CUTS)

    Returns:
        float: 1 minus the sum of shares (negative if the table over-allocates)
    """
    table = STANDARD_CUTS if table is None else table
    return 1.0 - sum(spec.share for spec in table.values())


@dataclass
class Cut:
    """A cut obtained from a processed whole unit."""
    category: CutCategory
    weight_g: float
    share_pct: float
    allocated_cost: float
    sale_price: float
    inventory_item_id: Optional[str] = None

    @property
    def weight_kg(self) -> float:
        return self.weight_g / 1000

    @property
    def value(self) -> float:
        """Sale value of the cut (weight in kg times price per kg)."""
        return self.weight_kg * self.sale_price

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'weight_g': self.weight_g,
            'share_pct': self.share_pct,
            'allocated_cost': self.allocated_cost,
            'sale_price': self.sale_price,
            'inventory_item_id': self.inventory_item_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cut":
        return cls(
            category=CutCategory(data['category']),
            weight_g=data['weight_g'],
            share_pct=data['share_pct'],
            allocated_cost=data['allocated_cost'],
            sale_price=data['sale_price'],
            inventory_item_id=data.get('inventory_item_id'),
        )


def allocate_cuts(total_weight_g: float, total_cost: float,
                  prices: Optional[Dict[CutCategory, float]] = None,
                  table: Optional[Dict[CutCategory, CutSpec]] = None) -> List[Cut]:
    """
    Split a whole unit into cuts using fixed percentages.

    Args:
        total_weight_g: Weight of the whole unit in grams
        total_cost: Purchase cost of the whole unit
        prices: Sale price per kg by category; absent categories use the default
        table: Cut table to allocate with (default: STANDARD_CUTS)

    Returns:
        List[Cut]: One cut per table entry, in table order
    """
    table = STANDARD_CUTS if table is None else table
    prices = prices or {}

    leftover = unallocated_share(table)
    if not math.isclose(leftover, 0.0, abs_tol=1e-9):
        logger.warning(f"Cut table shares leave {leftover * 100:.2f}% of the unit unallocated")

    cuts = []
    for category, spec in table.items():
        price = prices.get(category)
        if price is None:
            price = spec.default_price

        cuts.append(Cut(
            category=category,
            weight_g=total_weight_g * spec.share,
            share_pct=spec.share * 100,
            allocated_cost=total_cost * spec.share,
            sale_price=price
        ))

    logger.debug(f"Allocated {total_weight_g}g / {total_cost} into {len(cuts)} cuts")
    return cuts


@dataclass
class ProcessingRun:
    """Processing of one whole unit into cuts."""
    id: str
    processed_at: datetime
    total_weight_g: float
    total_cost: float
    cuts: List[Cut] = field(default_factory=list)
    lot_number: Optional[str] = None
    processed_by: Optional[str] = None
    processing_minutes: Optional[float] = None

    def cut_weight_total(self) -> float:
        return sum(cut.weight_g for cut in self.cuts)

    def yield_pct(self) -> float:
        """Percentage of the unit weight recovered as cuts."""
        if self.total_weight_g == 0:
            return 0.0
        return self.cut_weight_total() / self.total_weight_g * 100

    def waste_g(self) -> float:
        return self.total_weight_g - self.cut_weight_total()

    def waste_pct(self) -> float:
        return 100 - self.yield_pct()

    def value_generated(self) -> float:
        return sum(cut.value for cut in self.cuts)

    def potential_profit(self) -> float:
        return self.value_generated() - self.total_cost

    def margin_pct(self) -> float:
        if self.total_cost == 0:
            return 0.0
        return self.potential_profit() / self.total_cost * 100

    def cut_distribution(self) -> Dict[CutCategory, float]:
        """Percentage of the recovered weight each cut represents."""
        recovered = self.cut_weight_total()
        if recovered == 0:
            return {}
        return {cut.category: cut.weight_g / recovered * 100 for cut in self.cuts}

    def add_cut(self, cut: Cut) -> None:
        self.cuts.append(cut)

    def is_efficient(self, threshold_pct: float = 85.0) -> bool:
        return self.yield_pct() >= threshold_pct

    def summary(self, threshold_pct: float = 85.0) -> Dict[str, Any]:
        """
        Summarize the run for reporting.

        Args:
            threshold_pct: Yield percentage that counts as efficient

        Returns:
            Dict[str, Any]: Weight, cost, yield, value and profit figures
        """
        return {
            'id': self.id,
            'processed_at': self.processed_at,
            'total_weight_g': self.total_weight_g,
            'total_cost': self.total_cost,
            'cut_count': len(self.cuts),
            'yield_pct': self.yield_pct(),
            'value_generated': self.value_generated(),
            'potential_profit': self.potential_profit(),
            'margin_pct': self.margin_pct(),
            'efficient': self.is_efficient(threshold_pct),
        }

    @classmethod
    def standard(cls, run_id: str, total_weight_g: float, total_cost: float,
                 prices: Optional[Dict[CutCategory, float]] = None) -> "ProcessingRun":
        """Build a run using the standard cut table."""
        return cls(
            id=run_id,
            processed_at=datetime.now(),
            total_weight_g=total_weight_g,
            total_cost=total_cost,
            cuts=allocate_cuts(total_weight_g, total_cost, prices)
        )
