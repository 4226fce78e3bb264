"""
Poultry Growth Advisor Application Package

This package contains the storage client and shared helpers used by the
growth service and command-line interface.

Modules:
- db_client: SQLAlchemy-based store for stages, processing runs and opportunities
- utils: Id generation and display formatting helpers
"""

__version__ = "0.1.0"
