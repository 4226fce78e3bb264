"""
Poultry Growth Package

This package contains the growth-advisory core of the poultry business:
whole-unit cut allocation, stage progress tracking, recommendations and
expansion planning.

Modules:
- config: Environment configuration and settings
- errors: Domain errors
- cuts: Proportional cut allocator and processing run metrics
- stages: Four-level growth stage state machine and indicators
- advisor: Recommendation generator
- expansion: Vertical integration opportunities
- stats: Aggregate yield statistics over processing runs
- service: Application service over the growth store
- cli: Command-line interface
"""

__version__ = "0.1.0"
