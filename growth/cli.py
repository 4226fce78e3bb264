"""
Command-line interface for the Poultry Growth Advisor.

Provides commands for tracking growth stages, processing whole birds and
reviewing yield statistics.
"""

import sys
from typing import Optional

import click
from loguru import logger

from app.db_client import GrowthDB
from app.utils import format_currency, format_weight
from .config import get_settings
from .cuts import CutCategory
from .service import BusinessMetrics, GrowthService
from .stages import Stage, STAGE_DESCRIPTIONS


LEVEL_CHOICES = {
    '1': Stage.STARTUP,
    '2': Stage.PROCESSING,
    '3': Stage.PRODUCTION,
    '4': Stage.INTEGRATION,
}


def setup_logging() -> None:
    """Configure logging for CLI operations."""
    settings = get_settings()

    # Remove default handler
    logger.remove()

    # Add console handler
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    # Add file handler if configured
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention="30 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )


def get_service() -> GrowthService:
    """Build the growth service over the configured store."""
    return GrowthService(GrowthDB())


def _money(amount: float) -> str:
    return format_currency(amount, get_settings().currency)


def _echo_stage(service: GrowthService) -> None:
    stage = service.current_stage()
    summary = service.stage_summary()

    click.echo(f"\n🐔 Growth Stage - {summary['stage']}")
    click.echo("=" * 50)
    click.echo(f"Progress:          {summary['progress']:.0f}%")
    click.echo(f"Ready to Advance:  {summary['ready_to_advance']}")
    click.echo(f"Capital:           {_money(summary['capital_available'])}")
    click.echo(f"Capital Required:  {_money(summary['capital_required'])}")
    click.echo(f"Indicators Met:    {summary['indicators_met']}/{summary['total_indicators']}")

    for indicator in stage.indicators:
        mark = "✅" if indicator.met else "⏳"
        click.echo(f"  {mark} {indicator.name}: {indicator.current:,.0f} / {indicator.target:,.0f}")

    if stage.recommendations:
        click.echo("\n💡 Recommendations:")
        for recommendation in stage.recommendations:
            click.echo(f"  [{recommendation.priority.value}] {recommendation.title} - {recommendation.description}")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(verbose: bool) -> None:
    """Poultry Growth Advisor Command Line Interface."""
    if verbose:
        # Override log level for verbose mode
        settings = get_settings()
        settings.log_level = "DEBUG"

    setup_logging()


@main.command()
@click.argument('level', type=click.Choice(list(LEVEL_CHOICES)))
@click.option('--capital', '-c', type=float, default=0.0, help='Capital available (default: 0)')
def init(level: str, capital: float) -> None:
    """Start tracking growth at LEVEL (1-4)."""
    try:
        stage = get_service().initialize_stage(LEVEL_CHOICES[level], capital)
        click.echo(f"✅ Stage initialized: {stage.description()} ({stage.id})")

    except Exception as e:
        logger.error(f"Stage initialization failed: {e}")
        sys.exit(1)


@main.command()
@click.argument('name')
@click.argument('value', type=float)
def indicator(name: str, value: float) -> None:
    """Set indicator NAME to VALUE on the current stage."""
    try:
        stage = get_service().update_indicator(name, value)
        click.echo(f"Progress: {stage.progress():.0f}%")

    except Exception as e:
        logger.error(f"Indicator update failed: {e}")
        sys.exit(1)


@main.command()
@click.option('--daily-sales', type=float, help='Average daily sales')
@click.option('--weekly-customers', type=int, help='Frequent customers per week')
@click.option('--weekly-units', type=int, help='Whole birds processed per week')
@click.option('--weekly-kg', type=float, help='Kilograms sold per week')
@click.option('--wholesale-customers', type=int, help='Regular wholesale customers')
@click.option('--annual-demand-kg', type=float, help='Annual demand in kg')
@click.option('--expected-roi', type=float, help='Expected own-production ROI (%)')
@click.option('--capital', type=float, help='Current available capital')
def evaluate(daily_sales: Optional[float], weekly_customers: Optional[int],
             weekly_units: Optional[int], weekly_kg: Optional[float],
             wholesale_customers: Optional[int], annual_demand_kg: Optional[float],
             expected_roi: Optional[float], capital: Optional[float]) -> None:
    """Re-evaluate the current stage from business figures."""
    try:
        service = get_service()
        service.evaluate_progress(BusinessMetrics(
            daily_sales=daily_sales,
            weekly_customers=weekly_customers,
            weekly_units_processed=weekly_units,
            weekly_volume_kg=weekly_kg,
            wholesale_customers=wholesale_customers,
            annual_demand_kg=annual_demand_kg,
            expected_roi_pct=expected_roi,
            capital_available=capital
        ))
        _echo_stage(service)

    except Exception as e:
        logger.error(f"Evaluation failed: {e}")
        sys.exit(1)


@main.command()
def advance() -> None:
    """Advance the current stage to the next level."""
    try:
        stage = get_service().advance_stage()
        click.echo(f"🚀 Advanced to: {stage.description()}")
        click.echo("Run 'seed' to load the indicators for the new stage.")

    except Exception as e:
        logger.error(f"Advance failed: {e}")
        sys.exit(1)


@main.command()
def seed() -> None:
    """Load the standard indicators for the current stage."""
    try:
        stage = get_service().seed_indicators()
        click.echo(f"Loaded {len(stage.indicators)} indicators for {stage.description()}")

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        sys.exit(1)


@main.command()
@click.argument('weight_g', type=float)
@click.argument('cost', type=float)
@click.option('--lot', help='Purchase lot number')
@click.option('--operator', help='Who processed the bird')
@click.option('--minutes', type=float, help='Processing time in minutes')
@click.option('--price', '-p', multiple=True, metavar='CUT=PRICE',
              help='Sale price per kg override, e.g. BREAST=19000 (repeatable)')
def process(weight_g: float, cost: float, lot: Optional[str], operator: Optional[str],
            minutes: Optional[float], price: tuple) -> None:
    """Split a whole bird of WEIGHT_G grams bought for COST into cuts."""
    try:
        prices = {}
        for item in price:
            category, _, amount = item.partition('=')
            prices[CutCategory(category.strip().upper())] = float(amount)

        run = get_service().process_whole_unit(
            weight_g, cost, lot_number=lot, prices=prices,
            processed_by=operator, processing_minutes=minutes
        )

        click.echo(f"\n🔪 Processing Run - {run.id}")
        click.echo("=" * 50)
        for cut in run.cuts:
            click.echo(f"  {cut.category.value:<11} {format_weight(cut.weight_g):>10} "
                       f"({cut.share_pct:.0f}%)  cost {_money(cut.allocated_cost):>10}  "
                       f"value {_money(cut.value):>10}")

        summary = run.summary(get_settings().efficient_yield_pct)
        click.echo(f"\nValue Generated:  {_money(summary['value_generated'])}")
        click.echo(f"Profit:           {_money(summary['potential_profit'])}")
        click.echo(f"Margin:           {summary['margin_pct']:.1f}%")
        click.echo(f"Yield:            {summary['yield_pct']:.1f}%")
        click.echo(f"Efficient:        {summary['efficient']}")

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)


@main.command()
def stats() -> None:
    """Show aggregate yield statistics."""
    try:
        service = get_service()
        summary = service.processing_statistics()

        click.echo("\n📊 Processing Statistics")
        click.echo("=" * 50)
        click.echo(f"Runs:           {summary['total_runs']:,}")
        click.echo(f"Efficient Runs: {summary['efficient_runs']:,}")
        click.echo(f"Average Yield:  {summary['average_yield_pct']:.1f}%")
        click.echo(f"Average Profit: {_money(summary['average_profit'])}")
        click.echo(f"Efficiency:     {summary['efficiency']}")

        breakdown = service.cut_breakdown()
        if not breakdown.empty:
            click.echo("")
            click.echo(breakdown.round(0).to_string())

    except Exception as e:
        logger.error(f"Statistics failed: {e}")
        sys.exit(1)


@main.command()
def status() -> None:
    """Show the current stage, its indicators and recommendations."""
    try:
        _echo_stage(get_service())

    except Exception as e:
        logger.error(f"Failed to show status: {e}")
        sys.exit(1)


@main.command()
def history() -> None:
    """List stored stages, newest first."""
    try:
        stages = get_service().stage_history()

        click.echo("\n📜 Stage History")
        click.echo("=" * 50)
        for stage in stages:
            click.echo(f"{stage.started_at:%Y-%m-%d %H:%M}  {stage.level.value:<20} "
                       f"{stage.progress():5.0f}%  {stage.id}")

    except Exception as e:
        logger.error(f"Failed to list history: {e}")
        sys.exit(1)


@main.command()
def demo() -> None:
    """Walk through the startup and processing stages with sample data.

    Runs against a throwaway in-memory store; the configured store is not touched.
    """
    try:
        service = GrowthService(GrowthDB("sqlite://"))

        click.echo(f"\n📍 {STAGE_DESCRIPTIONS[Stage.STARTUP]}")
        click.echo("=" * 50)
        first = service.initialize_stage(Stage.STARTUP, 800_000)
        service.evaluate_progress(BusinessMetrics(daily_sales=180_000, weekly_customers=12))
        summary = service.stage_summary()
        click.echo(f"Capital:           {_money(first.capital_available)}")
        click.echo(f"Progress:          {summary['progress']:.0f}%")
        click.echo(f"Capital Required:  {_money(summary['capital_required'])}")

        click.echo(f"\n📍 {STAGE_DESCRIPTIONS[Stage.PROCESSING]}")
        click.echo("=" * 50)
        service.initialize_stage(Stage.PROCESSING, 6_000_000)
        run = service.process_whole_unit(2500, 20000, lot_number="LOT-001")
        for cut in run.cuts:
            click.echo(f"  {cut.category.value:<11} {format_weight(cut.weight_g):>10}  "
                       f"value {_money(cut.value)}")
        click.echo(f"Value Generated:   {_money(run.value_generated())}")
        click.echo(f"Profit:            {_money(run.potential_profit())}")
        click.echo(f"Margin:            {run.margin_pct():.1f}%")

        service.evaluate_progress(BusinessMetrics(weekly_units_processed=120))
        _echo_stage(service)

        stats = service.processing_statistics()
        click.echo(f"\nEfficiency: {stats['efficiency']} ({stats['average_yield_pct']:.1f}% average yield)")

    except Exception as e:
        logger.error(f"Demo failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
