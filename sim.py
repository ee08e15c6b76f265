"""
Core Staking Yield Simulation Module

This module contains the pure calculation engine for the revenue-sharing
staking scheme. Given a snapshot of protocol, network and user parameters it
derives the holder's reward multiplier, weighted stake, share of the reward
pool and resulting APR. It also provides scenario sweeps used by the app to
chart how the yield responds to a single parameter.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, asdict, fields, replace
from typing import List, Dict, Any, Iterable, Optional


# Share of annual protocol revenue distributed to stakers
REVENUE_SHARE_RATIO = 0.8

# New-scheme stakers always get 1x
BASE_MULTIPLIER = 1.0

# Legacy lockers scale linearly from 1x at 0 years to 4x at 2 years remaining
MAX_LOCK_YEARS = 2.0
MAX_LEGACY_MULTIPLIER = 4.0
LEGACY_MULTIPLIER_SLOPE = (MAX_LEGACY_MULTIPLIER - BASE_MULTIPLIER) / MAX_LOCK_YEARS


@dataclass(frozen=True)
class SimulationInput:
    """Snapshot of protocol, network and user parameters for one simulation"""

    # Protocol parameters
    annual_revenue: float = 44_640_000  # USD revenue over one year
    token_price: float = 5.00  # USD per reward token, 0 means unknown

    # Network supply parameters
    total_base_stake: float = 10_000_000  # Tokens staked under the new 1x scheme
    total_legacy_stake: float = 63_503_414  # Tokens locked under the legacy scheme
    avg_legacy_multiplier: float = 2.0  # Supply-weighted average of legacy lockers (1-4x)

    # User parameters
    user_amount: float = 10_000  # Tokens the user stakes or locks
    user_remaining_lock_years: float = 0.0  # 0 = no time bonus, 2 = max
    user_is_legacy: bool = False  # Whether the user follows the legacy curve


@dataclass(frozen=True)
class SimulationResult:
    """Derived yield figures for one SimulationInput"""

    user_multiplier: float
    user_weighted_amount: float
    effective_network_weight: float  # Network weight after the user joins
    user_share_percent: float
    annual_revenue_share: float  # USD
    annual_token_rewards: float  # Reward tokens
    apr: float  # Percentage

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def resolve_multiplier(remaining_lock_years: float, is_legacy: bool) -> float:
    """
    Calculate the reward multiplier for a staker

    New-scheme stakers get a flat 1x regardless of lock duration. Legacy
    lockers interpolate linearly from 1x at 0 years to 4x at 2 years.
    Lock durations outside [0, 2] are clamped rather than rejected, so any
    finite input yields a multiplier in [1, 4].

    Args:
        remaining_lock_years: Years left on the user's lock
        is_legacy: Whether the user is a legacy locker

    Returns:
        Multiplier applied to the user's stake
    """
    if not is_legacy:
        return BASE_MULTIPLIER

    years = max(0.0, min(MAX_LOCK_YEARS, remaining_lock_years))
    return BASE_MULTIPLIER + LEGACY_MULTIPLIER_SLOPE * years


def total_network_weight(base_stake: float, legacy_stake: float, avg_legacy_multiplier: float) -> float:
    """
    Calculate the total weighted stake of the network

    The average legacy multiplier is taken as given; it is not clamped to
    [1, 4] and negative values propagate arithmetically.

    Args:
        base_stake: Tokens staked under the new scheme (1x)
        legacy_stake: Tokens locked under the legacy scheme
        avg_legacy_multiplier: Average multiplier across legacy lockers

    Returns:
        Sum of weighted stake across both schemes
    """
    base_weight = base_stake * BASE_MULTIPLIER
    legacy_weight = legacy_stake * avg_legacy_multiplier
    return base_weight + legacy_weight


def simulate(inputs: SimulationInput) -> SimulationResult:
    """
    Run the yield simulation for a single snapshot

    The user's own weight is always added to the network total, modelling the
    marginal effect of the user joining the pool. This keeps the denominator
    non-zero whenever the user holds any weight, and it is applied even if the
    supplied totals already include the user.

    Every division is guarded: a zero denominator yields 0, never NaN.

    Args:
        inputs: Simulation parameters

    Returns:
        SimulationResult with the user's share, rewards and APR
    """
    user_multiplier = resolve_multiplier(inputs.user_remaining_lock_years, inputs.user_is_legacy)
    user_weighted_amount = inputs.user_amount * user_multiplier

    network_weight = total_network_weight(
        inputs.total_base_stake,
        inputs.total_legacy_stake,
        inputs.avg_legacy_multiplier
    )
    effective_network_weight = network_weight + user_weighted_amount

    # Fraction of the pool owned by the user (0 only if nobody holds weight)
    user_share = user_weighted_amount / effective_network_weight if effective_network_weight != 0 else 0.0
    user_share_percent = user_share * 100

    distributed_revenue = inputs.annual_revenue * REVENUE_SHARE_RATIO
    annual_revenue_share = user_share * distributed_revenue

    annual_token_rewards = annual_revenue_share / inputs.token_price if inputs.token_price > 0 else 0.0

    user_staked_value = inputs.user_amount * inputs.token_price
    apr = (annual_revenue_share / user_staked_value) * 100 if user_staked_value > 0 else 0.0

    return SimulationResult(
        user_multiplier=user_multiplier,
        user_weighted_amount=user_weighted_amount,
        effective_network_weight=effective_network_weight,
        user_share_percent=user_share_percent,
        annual_revenue_share=annual_revenue_share,
        annual_token_rewards=annual_token_rewards,
        apr=apr
    )


def check_input_ranges(inputs: SimulationInput) -> List[str]:
    """
    Collect warnings about values outside their expected domain

    The engine accepts any finite input, so this is meant for the input
    collection layer to report suspicious values to the user. It never raises.

    Args:
        inputs: Simulation parameters to check

    Returns:
        List of warning messages, empty if everything is in range
    """
    warnings = []

    non_negative_fields = {
        'annual_revenue': 'Annual revenue',
        'token_price': 'Token price',
        'total_base_stake': 'Total base stake',
        'total_legacy_stake': 'Total legacy stake',
        'user_amount': 'User amount',
    }
    for name, label in non_negative_fields.items():
        value = getattr(inputs, name)
        if value < 0:
            warnings.append(f"{label} is negative ({value:,.2f})")

    if not BASE_MULTIPLIER <= inputs.avg_legacy_multiplier <= MAX_LEGACY_MULTIPLIER:
        warnings.append(
            f"Average legacy multiplier ({inputs.avg_legacy_multiplier:.2f}x) is outside "
            f"{BASE_MULTIPLIER:.0f}x-{MAX_LEGACY_MULTIPLIER:.0f}x"
        )

    if inputs.user_is_legacy and not 0 <= inputs.user_remaining_lock_years <= MAX_LOCK_YEARS:
        warnings.append(
            f"Remaining lock ({inputs.user_remaining_lock_years:.2f} years) is outside "
            f"0-{MAX_LOCK_YEARS:.0f} years and will be clamped"
        )

    if inputs.token_price == 0:
        warnings.append("Token price is zero, token rewards and APR are reported as 0")

    return warnings


def _result_columns() -> List[str]:
    return [f.name for f in fields(SimulationResult)]


def sweep_lock_years(inputs: SimulationInput, years: Optional[Iterable[float]] = None) -> pd.DataFrame:
    """
    Evaluate the user as a legacy locker across remaining lock durations

    Args:
        inputs: Base simulation parameters (not modified)
        years: Lock durations to evaluate, defaults to 0-2 years in 0.1 steps

    Returns:
        DataFrame with a lock_years column followed by every result field
    """
    if years is None:
        years = np.linspace(0, MAX_LOCK_YEARS, 21)

    rows = []
    for lock_years in years:
        scenario = replace(inputs, user_remaining_lock_years=float(lock_years), user_is_legacy=True)
        row = {'lock_years': float(lock_years)}
        row.update(simulate(scenario).to_dict())
        rows.append(row)

    return pd.DataFrame(rows, columns=['lock_years'] + _result_columns())


def sweep_parameter(inputs: SimulationInput, field_name: str, values: Iterable[float]) -> pd.DataFrame:
    """
    Evaluate the simulation while varying one numeric input field

    Args:
        inputs: Base simulation parameters (not modified)
        field_name: Name of the SimulationInput field to vary
        values: Values to assign to that field

    Returns:
        DataFrame with a column named after the field followed by every result field
    """
    numeric_fields = [f.name for f in fields(SimulationInput) if f.name != 'user_is_legacy']
    if field_name not in numeric_fields:
        raise ValueError(
            f"Cannot sweep '{field_name}'. Numeric input fields are: {', '.join(numeric_fields)}"
        )

    rows = []
    for value in values:
        scenario = replace(inputs, **{field_name: float(value)})
        row: Dict[str, Any] = {field_name: float(value)}
        row.update(simulate(scenario).to_dict())
        rows.append(row)

    return pd.DataFrame(rows, columns=[field_name] + _result_columns())
