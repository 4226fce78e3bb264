"""
Pytest configuration and shared fixtures for Poultry Growth tests.

Provides settings overrides, an in-memory store, the growth service and
builders for stages, runs and expansion opportunities.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import List

import pytest

import growth.config
from growth.config import reload_settings
from growth.cuts import ProcessingRun
from growth.expansion import (
    ExpansionOpportunity, AssetType, OpportunityStatus,
    CapacityProjection, FinancialEvaluation
)
from growth.service import GrowthService
from growth.stages import GrowthStage, Indicator, Stage
from app.db_client import GrowthDB


ENV_KEYS = ["DATABASE_URL", "LOG_FILE", "LOG_LEVEL"]


@pytest.fixture
def test_settings(tmp_path: Path):
    """
    Override settings for testing.
    """
    # Set environment variables for testing
    os.environ["DATABASE_URL"] = f"sqlite:///{tmp_path / 'data' / 'growth.db'}"
    os.environ["LOG_FILE"] = str(tmp_path / "logs" / "growth.log")
    os.environ["LOG_LEVEL"] = "DEBUG"

    # Reload settings to pick up test environment
    settings = reload_settings()

    yield settings

    # Cleanup environment variables
    for key in ENV_KEYS:
        if key in os.environ:
            del os.environ[key]

    # Drop the cached instance pointing at the removed tmp paths
    growth.config._settings = None


@pytest.fixture
def db_client() -> GrowthDB:
    """
    Provide an in-memory growth store.
    """
    return GrowthDB("sqlite://")


@pytest.fixture
def service(db_client: GrowthDB, test_settings) -> GrowthService:
    """
    Provide the growth service over the in-memory store.
    """
    return GrowthService(db_client, test_settings)


@pytest.fixture
def make_stage():
    """
    Build a growth stage with the given indicators.
    """
    def _make(indicators: List[Indicator], level: Stage = Stage.STARTUP,
              capital: float = 0.0, stage_id: str = "CREC-test") -> GrowthStage:
        return GrowthStage(
            id=stage_id,
            level=level,
            started_at=datetime(2024, 1, 1, 8, 0),
            indicators=indicators,
            capital_available=capital
        )

    return _make


@pytest.fixture
def make_run():
    """
    Build a standard processing run at a fixed time.
    """
    def _make(run_id: str, weight_g: float = 2500, cost: float = 20000,
              processed_at: datetime = datetime(2024, 1, 10, 9, 0),
              lot_number: str = "LOT-001") -> ProcessingRun:
        run = ProcessingRun.standard(run_id, weight_g, cost)
        run.processed_at = processed_at
        run.lot_number = lot_number
        return run

    return _make


@pytest.fixture
def make_opportunity():
    """
    Build an expansion opportunity with the given financial figures.
    """
    def _make(opportunity_id: str = "EXP-test", roi_pct: float = 35.0,
              payback_months: float = 16, savings: float = 6_000_000,
              status: OpportunityStatus = OpportunityStatus.PLANNED) -> ExpansionOpportunity:
        return ExpansionOpportunity(
            id=opportunity_id,
            name="Broiler shed",
            description="Own broiler production for 2,000 birds per cycle",
            asset_type=AssetType.SHEDS,
            status=status,
            created_at=datetime(2024, 2, 1, 10, 0),
            projection=CapacityProjection(
                annual_capacity_kg=24_000,
                production_time_months=2,
                monthly_operating_costs=3_000_000,
                estimated_monthly_sales=5_500_000,
                break_even_months=payback_months
            ),
            evaluation=FinancialEvaluation(
                initial_investment=40_000_000,
                own_production_cost=6_000,
                external_purchase_cost=8_000,
                estimated_savings=savings,
                roi_pct=roi_pct,
                payback_months=payback_months,
                net_present_value=12_000_000,
                internal_rate_of_return_pct=28.0
            )
        )

    return _make


@pytest.fixture
def sample_run(make_run) -> ProcessingRun:
    """
    A 2.5 kg bird bought for 20,000.
    """
    return make_run("PROC-sample")


@pytest.fixture
def loguru_messages():
    """
    Capture loguru records at WARNING and above.
    """
    from loguru import logger

    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
