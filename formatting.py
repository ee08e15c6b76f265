"""
Display formatting helpers for simulation results
"""


def format_number(num: float, decimals: int = 2) -> str:
    """
    Format large numbers with K, M, B suffixes

    Args:
        num: Value to format
        decimals: Digits after the decimal point

    Returns:
        Abbreviated string, e.g. 63.50M
    """
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.{decimals}f}B"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.{decimals}f}M"
    if num >= 1_000:
        return f"{num / 1_000:.{decimals}f}K"
    return f"{num:.{decimals}f}"


def format_usd(amount: float) -> str:
    """Format a USD amount with thousands separators and cents"""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def format_percent(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}%"


def format_multiplier(value: float, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}x"
