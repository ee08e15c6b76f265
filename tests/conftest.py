import pytest

from sim import SimulationInput


@pytest.fixture
def reference_input():
    """January 2026 reference scenario: new-scheme staker with 10K tokens"""
    return SimulationInput(
        annual_revenue=44_640_000,
        token_price=5.00,
        total_base_stake=10_000_000,
        total_legacy_stake=63_503_414,
        avg_legacy_multiplier=2.0,
        user_amount=10_000,
        user_remaining_lock_years=0,
        user_is_legacy=False,
    )


@pytest.fixture
def snapshot_payload():
    return {
        "fetchedAt": "2026-01-15T08:30:00Z",
        "daily": 122_300.0,
        "annualized": 44_639_500.0,
        "weeklyAvg": 118_000.0,
        "monthlyTotal": 3_600_000.0,
        "allTimeTotal": 95_000_000.0,
        "source": "DefiLlama",
    }
