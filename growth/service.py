"""
Growth service: orchestrates stages, processing runs and expansion planning.

The service receives its store by injection and holds no state of its own.
"""

from datetime import datetime
from typing import Dict, List, Optional, Any

from loguru import logger
from pydantic import BaseModel, Field

from app.db_client import GrowthDB
from app.utils import generate_id
from .advisor import generate_recommendations
from .config import Settings, get_settings
from .cuts import CutCategory, ProcessingRun
from .errors import StageNotInitializedError, OpportunityNotFoundError
from .expansion import (
    ExpansionOpportunity, AssetType, OpportunityStatus,
    CapacityProjection, FinancialEvaluation
)
from .stages import GrowthStage, Stage, stage_indicators
from .stats import processing_stats, efficiency_rating, cut_breakdown


class BusinessMetrics(BaseModel):
    """Operational figures fed into a stage evaluation."""
    daily_sales: Optional[float] = Field(None, ge=0, description="Average daily sales")
    weekly_customers: Optional[int] = Field(None, ge=0, description="Frequent customers per week")
    weekly_units_processed: Optional[int] = Field(None, ge=0, description="Whole birds processed per week")
    weekly_volume_kg: Optional[float] = Field(None, ge=0, description="Kilograms sold per week")
    wholesale_customers: Optional[int] = Field(None, ge=0, description="Regular wholesale customers")
    annual_demand_kg: Optional[float] = Field(None, ge=0, description="Annual demand in kg")
    expected_roi_pct: Optional[float] = Field(None, description="Expected own-production ROI")
    capital_available: Optional[float] = Field(None, ge=0, description="Current available capital")


# Metric field -> indicator name it feeds
METRIC_INDICATORS: Dict[str, str] = {
    'daily_sales': "Daily Sales",
    'weekly_customers': "Frequent Customers",
    'weekly_units_processed': "Weekly Volume",
    'weekly_volume_kg': "Weekly Volume Kg",
    'wholesale_customers': "Wholesale Customers",
    'annual_demand_kg': "Annual Demand",
    'expected_roi_pct': "Expected ROI",
}

CAPITAL_INDICATORS = ("Accumulated Capital", "Available Capital")


class GrowthService:
    """Application service for the growth module."""

    def __init__(self, db: GrowthDB, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    # ── Stages ────────────────────────────────────────────────────

    def initialize_stage(self, level: Stage, capital_available: float) -> GrowthStage:
        """
        Start tracking a stage with its standard indicators.

        Args:
            level: Stage to start at
            capital_available: Capital on hand

        Returns:
            GrowthStage: The stored stage
        """
        stage = GrowthStage(
            id=generate_id("CREC"),
            level=level,
            started_at=datetime.now(),
            indicators=stage_indicators(level),
            capital_available=capital_available
        )
        logger.info(f"Initialized stage {stage.id} at {level.value} with capital {capital_available:,.0f}")
        return self.db.save_stage(stage)

    def current_stage(self) -> GrowthStage:
        stage = self.db.current_stage()
        if stage is None:
            raise StageNotInitializedError()
        return stage

    def update_indicator(self, name: str, value: float) -> GrowthStage:
        stage = self.current_stage()
        stage.update_indicator(name, value)
        return self.db.save_stage(stage)

    def evaluate_progress(self, metrics: Optional[BusinessMetrics] = None) -> GrowthStage:
        """
        Re-evaluate the current stage from fresh business figures.

        Metrics the stage does not track are ignored. The yield indicator is
        fed from stored processing runs and capital indicators from the
        stage's available capital. Once progress reaches the recommendation
        threshold the advisor output is appended to the stage.

        Args:
            metrics: Operational figures; omitted fields leave indicators untouched

        Returns:
            GrowthStage: The evaluated and stored stage
        """
        metrics = metrics or BusinessMetrics()
        stage = self.current_stage()
        tracked = {indicator.name for indicator in stage.indicators}

        if metrics.capital_available is not None:
            stage.capital_available = metrics.capital_available

        for field_name, indicator_name in METRIC_INDICATORS.items():
            value = getattr(metrics, field_name)
            if value is not None and indicator_name in tracked:
                stage.update_indicator(indicator_name, value)

        if "Yield" in tracked:
            stats = processing_stats(self.db.all_runs())
            stage.update_indicator("Yield", stats['average_yield_pct'])

        for indicator_name in CAPITAL_INDICATORS:
            if indicator_name in tracked:
                stage.update_indicator(indicator_name, stage.capital_available)

        progress = stage.progress()
        if progress >= self.settings.recommendation_progress_pct:
            for recommendation in generate_recommendations(stage, self.settings.ready_threshold_pct):
                stage.add_recommendation(recommendation)

        stage.last_evaluated_at = datetime.now()
        logger.info(f"Evaluated stage {stage.id}: progress {progress:.1f}%, "
                    f"{len(stage.recommendations)} recommendations")
        return self.db.save_stage(stage)

    def advance_stage(self) -> GrowthStage:
        stage = self.current_stage()
        stage.advance(self.settings.ready_threshold_pct)
        return self.db.save_stage(stage)

    def seed_indicators(self) -> GrowthStage:
        """Reload the standard indicators for the current stage's level."""
        stage = self.current_stage()
        stage.indicators = stage_indicators(stage.level)
        logger.info(f"Seeded {len(stage.indicators)} indicators for {stage.level.value}")
        return self.db.save_stage(stage)

    def stage_summary(self) -> Dict[str, Any]:
        return self.current_stage().summary(self.settings.ready_threshold_pct)

    def stage_history(self) -> List[GrowthStage]:
        return self.db.stage_history()

    def stages_at(self, level: Stage) -> List[GrowthStage]:
        return self.db.stages_by_level(level)

    # ── Processing ────────────────────────────────────────────────

    def process_whole_unit(self, weight_g: float, total_cost: float,
                           lot_number: Optional[str] = None,
                           prices: Optional[Dict[CutCategory, float]] = None,
                           processed_by: Optional[str] = None,
                           processing_minutes: Optional[float] = None) -> ProcessingRun:
        """
        Split a whole bird into standard cuts and record the run.

        Args:
            weight_g: Weight of the bird in grams
            total_cost: Purchase cost of the bird
            lot_number: Purchase lot
            prices: Sale price per kg overrides by cut
            processed_by: Operator name
            processing_minutes: Time spent processing

        Returns:
            ProcessingRun: The stored run
        """
        run = ProcessingRun.standard(generate_id("PROC"), weight_g, total_cost, prices)
        run.lot_number = lot_number
        run.processed_by = processed_by
        run.processing_minutes = processing_minutes

        logger.info(f"Processed {weight_g:,.0f}g unit (lot {lot_number or '-'}): "
                    f"yield {run.yield_pct():.1f}%, profit {run.potential_profit():,.0f}, "
                    f"efficient {run.is_efficient(self.settings.efficient_yield_pct)}")
        return self.db.save_run(run)

    def processing_statistics(self) -> Dict[str, Any]:
        stats = processing_stats(self.db.all_runs(), self.settings.efficient_yield_pct)
        stats['efficiency'] = efficiency_rating(stats['average_yield_pct'])
        return stats

    def cut_breakdown(self):
        return cut_breakdown(self.db.all_runs())

    def runs_by_lot(self, lot_number: str) -> List[ProcessingRun]:
        return self.db.runs_by_lot(lot_number)

    # ── Expansion ─────────────────────────────────────────────────

    def register_opportunity(self, name: str, description: str, asset_type: AssetType,
                             projection: CapacityProjection, evaluation: FinancialEvaluation,
                             location: Optional[str] = None,
                             notes: Optional[str] = None) -> ExpansionOpportunity:
        opportunity = ExpansionOpportunity(
            id=generate_id("EXP"),
            name=name,
            description=description,
            asset_type=asset_type,
            status=OpportunityStatus.ANALYSIS,
            created_at=datetime.now(),
            projection=projection,
            evaluation=evaluation,
            location=location,
            notes=notes
        )
        logger.info(f"Registered expansion opportunity '{name}' ({opportunity.id})")
        return self.db.save_opportunity(opportunity)

    def opportunities(self, viable_only: bool = False) -> List[ExpansionOpportunity]:
        """
        Expansion opportunities, highest priority first.

        Args:
            viable_only: Keep only financially viable opportunities

        Returns:
            List[ExpansionOpportunity]: Ranked opportunities
        """
        found = self.db.all_opportunities()
        if viable_only:
            found = [o for o in found if o.is_financially_viable()]
        return sorted(found, key=lambda o: o.priority_score(), reverse=True)

    def update_opportunity_status(self, opportunity_id: str,
                                  status: OpportunityStatus) -> ExpansionOpportunity:
        opportunity = self.db.find_opportunity(opportunity_id)
        if opportunity is None:
            raise OpportunityNotFoundError(opportunity_id)
        opportunity.update_status(status)
        return self.db.save_opportunity(opportunity)
