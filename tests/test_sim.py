import dataclasses
import math

import numpy as np
import pytest

from sim import (
    REVENUE_SHARE_RATIO,
    SimulationInput,
    SimulationResult,
    check_input_ranges,
    resolve_multiplier,
    simulate,
    sweep_lock_years,
    sweep_parameter,
    total_network_weight,
)


@pytest.mark.parametrize("years", [-5, -0.1, 0, 0.5, 1, 2, 2.5, 10])
def test_new_scheme_multiplier_ignores_lock(years):
    assert resolve_multiplier(years, False) == 1.0


@pytest.mark.parametrize(
    "years,expected",
    [
        (0, 1.0),
        (1, 2.5),
        (2, 4.0),
        (0.5, 1.75),
        (-5, 1.0),
        (10, 4.0),
    ],
)
def test_legacy_multiplier_interpolates_and_clamps(years, expected):
    assert resolve_multiplier(years, True) == expected


def test_total_network_weight():
    assert total_network_weight(10_000_000, 63_503_414, 2.0) == 137_006_828
    assert total_network_weight(0, 0, 3.0) == 0
    assert total_network_weight(5, 0, 4.0) == 5


def test_total_network_weight_does_not_clamp_average():
    # Out-of-domain averages propagate arithmetically
    assert total_network_weight(100, 10, -1.0) == 90
    assert total_network_weight(100, 10, 10.0) == 200


def test_reference_scenario(reference_input):
    result = simulate(reference_input)

    assert result.user_multiplier == 1.0
    assert result.user_weighted_amount == 10_000
    assert result.effective_network_weight == 137_016_828
    assert result.user_share_percent == pytest.approx(0.0073, abs=5e-5)
    assert result.annual_revenue_share == pytest.approx(
        10_000 / 137_016_828 * 44_640_000 * REVENUE_SHARE_RATIO
    )
    assert result.annual_revenue_share == pytest.approx(2606, rel=1e-3)
    assert result.annual_token_rewards == pytest.approx(result.annual_revenue_share / 5.0)
    assert result.apr == pytest.approx(5.21, abs=0.005)


def test_max_legacy_lock_scenario(reference_input):
    base = simulate(reference_input)
    legacy = simulate(dataclasses.replace(reference_input, user_is_legacy=True, user_remaining_lock_years=2))

    assert legacy.user_multiplier == 4.0
    assert legacy.user_weighted_amount == 40_000
    assert legacy.effective_network_weight == 137_046_828
    # User weight is small relative to the network, so APR scales almost 4x
    assert 3.99 < legacy.apr / base.apr < 4.0


def test_user_weight_always_added_to_network(reference_input):
    result = simulate(reference_input)
    network = total_network_weight(
        reference_input.total_base_stake,
        reference_input.total_legacy_stake,
        reference_input.avg_legacy_multiplier,
    )
    assert result.effective_network_weight == network + result.user_weighted_amount


def test_empty_network_gives_sole_staker_full_share(reference_input):
    inputs = dataclasses.replace(reference_input, total_base_stake=0, total_legacy_stake=0)
    result = simulate(inputs)

    assert result.user_share_percent == 100
    assert result.annual_revenue_share == pytest.approx(44_640_000 * REVENUE_SHARE_RATIO)


def test_zero_weight_everywhere_is_guarded(reference_input):
    inputs = dataclasses.replace(reference_input, total_base_stake=0, total_legacy_stake=0, user_amount=0)
    result = simulate(inputs)

    assert result.effective_network_weight == 0
    assert result.user_share_percent == 0
    assert result.annual_revenue_share == 0
    assert result.annual_token_rewards == 0
    assert result.apr == 0
    assert not any(math.isnan(v) for v in result.to_dict().values())


def test_cancelling_network_weight_is_guarded(reference_input):
    # A negative aggregate can cancel the user's weight exactly
    inputs = dataclasses.replace(reference_input, total_base_stake=-10_000, total_legacy_stake=0)
    result = simulate(inputs)

    assert result.effective_network_weight == 0
    assert result.user_share_percent == 0
    assert result.apr == 0


def test_zero_token_price(reference_input):
    result = simulate(dataclasses.replace(reference_input, token_price=0))

    assert result.annual_revenue_share > 0
    assert result.annual_token_rewards == 0
    assert result.apr == 0


def test_zero_revenue(reference_input):
    result = simulate(dataclasses.replace(reference_input, annual_revenue=0))

    assert result.user_share_percent > 0
    assert result.annual_revenue_share == 0
    assert result.apr == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"user_amount": 1},
        {"user_amount": 50_000_000},
        {"total_base_stake": 0, "total_legacy_stake": 0},
        {"user_is_legacy": True, "user_remaining_lock_years": 1.3},
        {"avg_legacy_multiplier": 4.0, "token_price": 0.01},
    ],
)
def test_share_and_apr_bounds(reference_input, overrides):
    result = simulate(dataclasses.replace(reference_input, **overrides))

    assert 0 < result.user_share_percent <= 100
    assert result.apr >= 0


def test_monotonic_in_lock_years(reference_input):
    previous = None
    for years in np.linspace(-1, 3, 41):
        result = simulate(dataclasses.replace(reference_input, user_is_legacy=True, user_remaining_lock_years=years))
        if previous is not None:
            assert result.user_multiplier >= previous.user_multiplier
            assert result.user_weighted_amount >= previous.user_weighted_amount
            assert result.user_share_percent >= previous.user_share_percent
            assert result.apr >= previous.apr
        previous = result


def test_simulate_is_deterministic_and_leaves_input_untouched(reference_input):
    snapshot = dataclasses.asdict(reference_input)

    assert simulate(reference_input) == simulate(reference_input)
    assert dataclasses.asdict(reference_input) == snapshot


def test_records_are_immutable(reference_input):
    result = simulate(reference_input)

    with pytest.raises(dataclasses.FrozenInstanceError):
        reference_input.user_amount = 1
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.apr = 0


def test_default_input_is_reference_scenario(reference_input):
    assert SimulationInput() == reference_input


def test_result_to_dict(reference_input):
    data = simulate(reference_input).to_dict()

    assert list(data) == [f.name for f in dataclasses.fields(SimulationResult)]
    assert data['user_multiplier'] == 1.0


def test_check_input_ranges_accepts_defaults():
    assert check_input_ranges(SimulationInput()) == []


def test_check_input_ranges_flags_negative_fields():
    warnings = check_input_ranges(SimulationInput(total_base_stake=-1, user_amount=-5))

    assert len(warnings) == 2
    assert any("Total base stake" in w for w in warnings)
    assert any("User amount" in w for w in warnings)


@pytest.mark.parametrize("avg", [0.5, 4.5])
def test_check_input_ranges_flags_average_multiplier(avg):
    warnings = check_input_ranges(SimulationInput(avg_legacy_multiplier=avg))

    assert len(warnings) == 1
    assert "Average legacy multiplier" in warnings[0]


def test_check_input_ranges_flags_lock_years_for_legacy_only():
    assert check_input_ranges(SimulationInput(user_remaining_lock_years=3)) == []

    warnings = check_input_ranges(SimulationInput(user_remaining_lock_years=3, user_is_legacy=True))
    assert len(warnings) == 1
    assert "clamped" in warnings[0]


def test_check_input_ranges_flags_zero_price():
    warnings = check_input_ranges(SimulationInput(token_price=0))

    assert len(warnings) == 1
    assert "Token price is zero" in warnings[0]


def test_sweep_lock_years_default_grid(reference_input):
    df = sweep_lock_years(reference_input)

    assert len(df) == 21
    assert list(df.columns) == ['lock_years'] + [f.name for f in dataclasses.fields(SimulationResult)]
    assert df['user_multiplier'].iloc[0] == 1.0
    assert df['user_multiplier'].iloc[-1] == 4.0
    assert df['apr'].is_monotonic_increasing
    # Base input is still a new-scheme staker
    assert reference_input.user_is_legacy is False


def test_sweep_lock_years_custom_grid(reference_input):
    df = sweep_lock_years(reference_input, years=[0, 1, 5])

    assert df['lock_years'].tolist() == [0.0, 1.0, 5.0]
    assert df['user_multiplier'].tolist() == [1.0, 2.5, 4.0]


def test_sweep_parameter_revenue_is_linear(reference_input):
    df = sweep_parameter(reference_input, 'annual_revenue', [0, 22_320_000, 44_640_000])

    assert df['annual_revenue'].tolist() == [0.0, 22_320_000.0, 44_640_000.0]
    assert df['apr'].iloc[0] == 0
    assert df['apr'].iloc[2] == pytest.approx(2 * df['apr'].iloc[1])
    assert df['apr'].iloc[2] == pytest.approx(simulate(reference_input).apr)


def test_sweep_parameter_base_stake_dilutes(reference_input):
    df = sweep_parameter(reference_input, 'total_base_stake', [0, 10_000_000, 100_000_000])

    assert df['apr'].is_monotonic_decreasing


@pytest.mark.parametrize("field_name", ["user_is_legacy", "not_a_field"])
def test_sweep_parameter_rejects_invalid_field(reference_input, field_name):
    with pytest.raises(ValueError, match="Cannot sweep"):
        sweep_parameter(reference_input, field_name, [1, 2])
