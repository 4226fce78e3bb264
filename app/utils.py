"""
Utility functions for the Poultry Growth Advisor.

Common helpers used by the service and the command-line interface.
"""

import secrets
import time

import numpy as np


def generate_id(prefix: str = "CREC") -> str:
    """
    Generate a unique record id from a timestamp and random suffix.
    
    Args:
        prefix: Id prefix
        
    Returns:
        str: Id formatted as {prefix}-{timestamp base36}-{random}
    """
    timestamp = np.base_repr(time.time_ns() // 1_000_000, base=36).lower()
    return f"{prefix}-{timestamp}-{secrets.token_hex(5)}"


def format_currency(amount: float, currency: str = "COP") -> str:
    """
    Format currency amount for display.
    
    Args:
        amount: Amount to format
        currency: Currency code
        
    Returns:
        str: Formatted currency string
    """
    if currency.upper() == "COP":
        return f"${amount:,.0f}"
    elif currency.upper() == "USD":
        return f"${amount:,.2f}"
    else:
        return f"{amount:,.2f} {currency}"


def format_weight(weight_g: float) -> str:
    """
    Format a gram weight for display, switching to kg at 1000 g.
    
    Args:
        weight_g: Weight in grams
        
    Returns:
        str: Formatted weight string
    """
    if abs(weight_g) >= 1000:
        return f"{weight_g / 1000:,.2f} kg"
    return f"{weight_g:,.0f} g"
