"""
Aggregate yield statistics over processing runs.
"""

from typing import Dict, List, Any

import pandas as pd
from loguru import logger

from .cuts import ProcessingRun


def runs_frame(runs: List[ProcessingRun]) -> pd.DataFrame:
    """
    Build one row per processing run with its derived metrics.

    Args:
        runs: Processing runs to tabulate

    Returns:
        pd.DataFrame: Columns [id, processed_at, lot_number, total_weight_g,
                      total_cost, yield_pct, value_generated, potential_profit]
    """
    columns = [
        'id', 'processed_at', 'lot_number', 'total_weight_g',
        'total_cost', 'yield_pct', 'value_generated', 'potential_profit'
    ]
    if not runs:
        return pd.DataFrame(columns=columns)

    return pd.DataFrame([{
        'id': run.id,
        'processed_at': run.processed_at,
        'lot_number': run.lot_number,
        'total_weight_g': run.total_weight_g,
        'total_cost': run.total_cost,
        'yield_pct': run.yield_pct(),
        'value_generated': run.value_generated(),
        'potential_profit': run.potential_profit(),
    } for run in runs], columns=columns)


def processing_stats(runs: List[ProcessingRun], efficient_yield_pct: float = 85.0) -> Dict[str, Any]:
    """
    Average yield and profit across runs.

    Args:
        runs: Processing runs to aggregate
        efficient_yield_pct: Yield percentage a run needs to count as efficient

    Returns:
        Dict[str, Any]: total_runs, efficient_runs, average_yield_pct, average_profit
    """
    df = runs_frame(runs)
    if df.empty:
        return {'total_runs': 0, 'efficient_runs': 0, 'average_yield_pct': 0.0, 'average_profit': 0.0}

    stats = {
        'total_runs': len(df),
        'efficient_runs': int((df['yield_pct'] >= efficient_yield_pct).sum()),
        'average_yield_pct': float(df['yield_pct'].mean()),
        'average_profit': float(df['potential_profit'].mean()),
    }
    logger.debug(f"Processing stats: {stats}")
    return stats


def efficiency_rating(average_yield_pct: float) -> str:
    """Rate average yield as EXCELLENT, GOOD, ACCEPTABLE or LOW."""
    if average_yield_pct >= 90:
        return "EXCELLENT"
    if average_yield_pct >= 85:
        return "GOOD"
    if average_yield_pct >= 80:
        return "ACCEPTABLE"
    return "LOW"


def cut_breakdown(runs: List[ProcessingRun]) -> pd.DataFrame:
    """
    Total weight, cost and value per cut category across runs.

    Args:
        runs: Processing runs to aggregate

    Returns:
        pd.DataFrame: Indexed by category with columns
                      [weight_g, allocated_cost, value], sorted by value descending
    """
    rows = [{
        'category': cut.category.value,
        'weight_g': cut.weight_g,
        'allocated_cost': cut.allocated_cost,
        'value': cut.value,
    } for run in runs for cut in run.cuts]

    if not rows:
        return pd.DataFrame(columns=['weight_g', 'allocated_cost', 'value'])

    breakdown = pd.DataFrame(rows).groupby('category')[['weight_g', 'allocated_cost', 'value']].sum()
    return breakdown.sort_values('value', ascending=False)
