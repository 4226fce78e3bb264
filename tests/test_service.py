"""
Tests for the growth application service.
"""

import pytest

from growth.cuts import CutCategory
from growth.errors import (
    StageNotInitializedError, NotReadyToAdvanceError, IndicatorNotFoundError,
    OpportunityNotFoundError
)
from growth.expansion import AssetType, OpportunityStatus
from growth.service import BusinessMetrics, GrowthService
from growth.stages import Stage


class TestStageLifecycle:
    """Test stage initialization, evaluation and advancing."""

    def test_initialize(self, service):
        """Test a new stage carries its catalog and is current."""
        stage = service.initialize_stage(Stage.STARTUP, 800_000)

        assert stage.id.startswith("CREC-")
        assert [i.name for i in stage.indicators] == ["Daily Sales", "Frequent Customers", "Accumulated Capital"]
        assert service.current_stage().id == stage.id

    def test_no_stage(self, service):
        """Test operations without a stage fail clearly."""
        with pytest.raises(StageNotInitializedError, match="No growth stage"):
            service.current_stage()

        with pytest.raises(StageNotInitializedError):
            service.evaluate_progress()

    def test_update_indicator_persists(self, service):
        """Test indicator updates are saved."""
        service.initialize_stage(Stage.STARTUP, 0)

        service.update_indicator("Frequent Customers", 25)

        assert service.current_stage().find_indicator("Frequent Customers").met

    def test_update_unknown_indicator(self, service):
        """Test unknown indicators raise through the service."""
        service.initialize_stage(Stage.STARTUP, 0)

        with pytest.raises(IndicatorNotFoundError):
            service.update_indicator("Unknown", 1)

    def test_evaluate_below_recommendation_threshold(self, service):
        """Test low progress updates indicators without recommendations."""
        service.initialize_stage(Stage.STARTUP, 800_000)

        stage = service.evaluate_progress(BusinessMetrics(daily_sales=180_000, weekly_customers=25))

        assert stage.find_indicator("Daily Sales").current == 180_000
        assert stage.find_indicator("Accumulated Capital").current == 800_000
        assert stage.progress() == pytest.approx(100 / 3)
        assert stage.recommendations == []

    def test_evaluate_ignores_untracked_metrics(self, service):
        """Test metrics for other stages are skipped."""
        service.initialize_stage(Stage.STARTUP, 0)

        stage = service.evaluate_progress(BusinessMetrics(wholesale_customers=10, annual_demand_kg=20_000))

        assert stage.progress() == 0

    def test_evaluate_emits_capital_recommendation(self, service):
        """Test progress past 60% without capital recommends saving."""
        service.initialize_stage(Stage.PROCESSING, 6_000_000)
        service.process_whole_unit(2500, 20000)

        stage = service.evaluate_progress(BusinessMetrics(weekly_units_processed=120))

        assert stage.find_indicator("Yield").current == pytest.approx(100)
        assert stage.progress() == pytest.approx(200 / 3)
        assert [r.title for r in stage.recommendations] == ["Accumulate Capital"]

    def test_evaluate_appends_without_dedup(self, service):
        """Test each evaluation appends its recommendations."""
        service.initialize_stage(Stage.PROCESSING, 6_000_000)
        service.process_whole_unit(2500, 20000)
        metrics = BusinessMetrics(weekly_units_processed=120)

        service.evaluate_progress(metrics)
        stage = service.evaluate_progress(metrics)

        assert len(stage.recommendations) == 2

    def test_evaluate_ready_and_advance(self, service):
        """Test a fully met stage recommends and allows advancing."""
        service.initialize_stage(Stage.STARTUP, 0)

        stage = service.evaluate_progress(BusinessMetrics(
            daily_sales=250_000, weekly_customers=30, capital_available=6_000_000
        ))
        assert stage.capital_available == 6_000_000
        assert [r.title for r in stage.recommendations] == ["Ready to Advance"]

        advanced = service.advance_stage()

        assert advanced.level == Stage.PROCESSING
        assert advanced.indicators == []
        assert service.current_stage().level == Stage.PROCESSING

    def test_advance_not_ready(self, service):
        """Test advancing a stage below threshold fails and is not saved."""
        service.initialize_stage(Stage.STARTUP, 0)

        with pytest.raises(NotReadyToAdvanceError):
            service.advance_stage()

        assert service.current_stage().level == Stage.STARTUP

    def test_seed_after_advance(self, service):
        """Test seeding reloads the new level's catalog."""
        service.initialize_stage(Stage.STARTUP, 6_000_000)
        service.evaluate_progress(BusinessMetrics(daily_sales=250_000, weekly_customers=30))
        service.advance_stage()

        stage = service.seed_indicators()

        assert [i.name for i in stage.indicators] == ["Weekly Volume", "Yield", "Available Capital"]

    def test_history(self, service):
        """Test history and level lookups."""
        service.initialize_stage(Stage.STARTUP, 0)
        service.initialize_stage(Stage.PROCESSING, 6_000_000)

        assert [s.level for s in service.stage_history()] == [Stage.PROCESSING, Stage.STARTUP]
        assert len(service.stages_at(Stage.STARTUP)) == 1
        assert service.stage_summary()['level'] == Stage.PROCESSING.value


class TestProcessing:
    """Test whole-unit processing through the service."""

    def test_process_whole_unit(self, service):
        """Test runs are stored with lot and operator details."""
        run = service.process_whole_unit(
            2500, 20000, lot_number="LOT-001",
            prices={CutCategory.BREAST: 20000}, processed_by="Jose", processing_minutes=12
        )

        stored = service.runs_by_lot("LOT-001")
        assert [r.id for r in stored] == [run.id]
        assert stored[0].processed_by == "Jose"
        assert stored[0].cuts[0].sale_price == 20000

    def test_statistics(self, service):
        """Test statistics include an efficiency rating."""
        service.process_whole_unit(2500, 20000)
        service.process_whole_unit(2000, 16000)

        stats = service.processing_statistics()

        assert stats['total_runs'] == 2
        assert stats['average_yield_pct'] == pytest.approx(100)
        assert stats['efficiency'] == "EXCELLENT"
        assert len(service.cut_breakdown()) == 6

    def test_statistics_empty(self, service):
        """Test statistics with no runs."""
        assert service.processing_statistics()['efficiency'] == "LOW"

    def test_statistics_use_configured_efficiency(self, db_client, test_settings, make_run):
        """Test efficient runs are counted against the configured yield."""
        partial = make_run("PROC-partial")
        partial.cuts = [cut for cut in partial.cuts if cut.category != CutCategory.CARCASS]
        db_client.save_run(make_run("PROC-full"))
        db_client.save_run(partial)

        default = GrowthService(db_client, test_settings)
        strict = GrowthService(db_client, test_settings.model_copy(update={'efficient_yield_pct': 90.0}))

        assert default.processing_statistics()['efficient_runs'] == 2
        assert strict.processing_statistics()['efficient_runs'] == 1


class TestOpportunities:
    """Test expansion planning through the service."""

    def test_register_and_rank(self, service, make_opportunity):
        """Test opportunities are ranked by priority."""
        low = make_opportunity(roi_pct=10, payback_months=30, savings=100)
        high = make_opportunity(roi_pct=55, payback_months=10, savings=12_000_000)
        service.register_opportunity("Low", "low", AssetType.LAND, low.projection, low.evaluation)
        registered = service.register_opportunity(
            "High", "high", AssetType.SHEDS, high.projection, high.evaluation, location="Farm"
        )

        ranked = service.opportunities()

        assert [o.name for o in ranked] == ["High", "Low"]
        assert registered.status == OpportunityStatus.ANALYSIS
        assert [o.name for o in service.opportunities(viable_only=True)] == ["High"]

    def test_update_status(self, service, make_opportunity):
        """Test status updates persist."""
        template = make_opportunity()
        opportunity = service.register_opportunity(
            "Shed", "shed", AssetType.SHEDS, template.projection, template.evaluation
        )

        updated = service.update_opportunity_status(opportunity.id, OpportunityStatus.PLANNED)

        assert updated.ready_to_implement()
        assert service.opportunities()[0].status == OpportunityStatus.PLANNED

    def test_update_missing(self, service):
        """Test unknown opportunities raise."""
        with pytest.raises(OpportunityNotFoundError):
            service.update_opportunity_status("EXP-missing", OpportunityStatus.PLANNED)


def test_metrics_validation():
    """Test negative figures are rejected."""
    with pytest.raises(ValueError):
        BusinessMetrics(daily_sales=-1)
