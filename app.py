"""
Streamlit Web Application for the Staking Yield Simulator

This application provides an interactive interface for estimating the APR a
holder would earn from the revenue-sharing staking scheme. Users adjust
protocol, network and position parameters in the sidebar and the core engine
recomputes the yield, with Altair charts showing how the APR responds to the
remaining lock duration and to protocol revenue.
"""

import logging
import os
from typing import Optional

import altair as alt
import numpy as np
import pandas as pd
import streamlit as st

from formatting import format_multiplier, format_number, format_percent, format_usd
from revenue_data import HISTORICAL_REVENUE, KNOWN_SUPPLY, RevenueSnapshot, load_live_revenue
from sim import (
    REVENUE_SHARE_RATIO,
    MAX_LOCK_YEARS,
    MAX_LEGACY_MULTIPLIER,
    SimulationInput,
    SimulationResult,
    check_input_ranges,
    simulate,
    sweep_lock_years,
    sweep_parameter,
)

logger = logging.getLogger(__name__)

# Unset means query DefiLlama directly
REVENUE_DATA_URL = os.environ.get("REVENUE_DATA_URL")

# Configure Streamlit page
st.set_page_config(
    page_title="Staking APR Simulator",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="expanded"
)

DEFAULTS = SimulationInput()

# Widget keys that mirror SimulationInput fields
INPUT_KEYS = [
    'annual_revenue',
    'token_price',
    'total_base_stake',
    'avg_legacy_multiplier',
    'user_amount',
    'user_remaining_lock_years',
    'user_is_legacy',
]


@st.cache_data(ttl=3600, show_spinner=False)
def get_live_revenue(url: Optional[str]) -> Optional[RevenueSnapshot]:
    snapshot = load_live_revenue(url=url)
    if snapshot is None:
        logger.info("Live revenue unavailable, only historical figures will be offered")
    return snapshot


def _default_value(key: str):
    value = getattr(DEFAULTS, key)
    return value if isinstance(value, bool) else float(value)


def init_session_state() -> None:
    for key in INPUT_KEYS:
        if key not in st.session_state:
            st.session_state[key] = _default_value(key)


def reset_to_defaults() -> None:
    for key in INPUT_KEYS:
        st.session_state[key] = _default_value(key)


def apply_revenue(revenue: float) -> None:
    st.session_state.annual_revenue = float(revenue)


def create_sidebar_config(live_revenue: Optional[RevenueSnapshot]) -> SimulationInput:
    """
    Create sidebar configuration interface with organized parameter groups

    Args:
        live_revenue: Current revenue estimate, or None if unavailable

    Returns:
        SimulationInput built from the current widget values
    """
    st.sidebar.title("Simulation Parameters")
    st.sidebar.markdown("Adjust parameters to explore different market scenarios")

    # REVENUE DATA
    with st.sidebar.expander("Revenue Data (Click to Apply)", expanded=True):
        st.markdown("**Actual yearly revenue from Token Terminal**")
        for data in HISTORICAL_REVENUE:
            st.button(
                f"{data['year']}: {format_usd(data['revenue'])} ({data['note']})",
                key=f"revenue_{data['year']}",
                on_click=apply_revenue,
                args=(data['revenue'],),
                use_container_width=True
            )

        if live_revenue is not None:
            st.button(
                f"2026 live estimate: {format_usd(live_revenue.annualized)}",
                key="revenue_live",
                on_click=apply_revenue,
                args=(live_revenue.annualized,),
                type="primary",
                use_container_width=True
            )
            st.caption(
                f"2026 = {live_revenue.source} daily ({format_usd(live_revenue.daily)}) x 365, "
                f"updated {live_revenue.fetched_at:%Y-%m-%d}"
            )
        else:
            st.caption("Live estimate unavailable")

    # PROTOCOL PARAMETERS
    with st.sidebar.expander("Protocol Parameters", expanded=True):
        st.number_input(
            "Annual Revenue ($)",
            min_value=0.0, max_value=500_000_000.0, step=500_000.0,
            format="%.0f",
            key='annual_revenue',
            help="Protocol revenue over one year. $1M is a bear case, $100M a bull case."
        )

        st.number_input(
            "Token Price ($)",
            min_value=0.01, max_value=100.0, step=0.01,
            format="%.2f",
            key='token_price',
            help="Price of one reward token in USD."
        )

        st.caption(
            f"Distributed to stakers ({REVENUE_SHARE_RATIO:.0%}): "
            f"{format_usd(st.session_state.annual_revenue * REVENUE_SHARE_RATIO)}"
        )

    # NETWORK SUPPLY
    with st.sidebar.expander("Network Supply", expanded=True):
        locked_percent = KNOWN_SUPPLY['legacy_locked'] / KNOWN_SUPPLY['total_supply'] * 100
        st.metric(
            "Legacy Locked (fixed)",
            format_number(KNOWN_SUPPLY['legacy_locked']),
            help="Fixed value from the protocol dashboard"
        )
        st.progress(min(1.0, locked_percent / 100))
        st.caption(
            f"{locked_percent:.1f}% of total supply ({format_number(KNOWN_SUPPLY['total_supply'])})"
        )

        st.slider(
            "New-Scheme Stake (tokens)",
            min_value=0.0, max_value=100_000_000.0, step=1_000_000.0,
            format="%.0f",
            key='total_base_stake',
            help=f"Tokens staked under the new 1x scheme. Circulating supply: "
                 f"{format_number(KNOWN_SUPPLY['circulating_supply'])}."
        )

        st.slider(
            "Avg. Legacy Multiplier",
            min_value=1.0, max_value=MAX_LEGACY_MULTIPLIER, step=0.1,
            key='avg_legacy_multiplier',
            help="Weighted average of all legacy lockers: 1x if all expire soon, 4x if all are locked for 2 years."
        )

    # YOUR POSITION
    with st.sidebar.expander("Your Position", expanded=True):
        st.number_input(
            "Your Token Amount",
            min_value=0.0, max_value=10_000_000.0, step=100.0,
            format="%.0f",
            key='user_amount',
            help="Tokens you stake or lock."
        )

        is_legacy = st.checkbox(
            "Legacy Lock Holder?",
            key='user_is_legacy',
            help="Legacy lockers get a 1x-4x multiplier based on remaining lock time. New stakers get 1x."
        )

        if is_legacy:
            st.slider(
                "Your Remaining Lock (years)",
                min_value=0.0, max_value=MAX_LOCK_YEARS, step=0.1,
                key='user_remaining_lock_years',
                help="0 years gives 1x, 2 years gives 4x."
            )

    st.sidebar.markdown("---")
    st.sidebar.button("Reset to Defaults", on_click=reset_to_defaults, use_container_width=True)

    return SimulationInput(
        annual_revenue=st.session_state.annual_revenue,
        token_price=st.session_state.token_price,
        total_base_stake=st.session_state.total_base_stake,
        total_legacy_stake=KNOWN_SUPPLY['legacy_locked'],
        avg_legacy_multiplier=st.session_state.avg_legacy_multiplier,
        user_amount=st.session_state.user_amount,
        user_remaining_lock_years=st.session_state.get('user_remaining_lock_years', 0.0),
        user_is_legacy=is_legacy
    )


def show_results(inputs: SimulationInput, result: SimulationResult) -> None:
    """Display the headline APR and the detailed breakdown"""
    col1, col2, col3 = st.columns(3)

    with col1:
        st.metric("Your Estimated APR", format_percent(result.apr))

    with col2:
        lock_label = f"{inputs.user_remaining_lock_years:.1f} years" if inputs.user_is_legacy else "new stake"
        st.metric("Multiplier", format_multiplier(result.user_multiplier), help=lock_label)

    with col3:
        st.metric("Network Share", format_percent(result.user_share_percent, 4))

    st.subheader("Detailed Breakdown")
    breakdown_df = pd.DataFrame([
        {'Metric': 'Your Weighted Amount', 'Value': f"{format_number(result.user_weighted_amount)} weighted"},
        {'Metric': 'Total Network Weight', 'Value': f"{format_number(result.effective_network_weight)} weighted"},
        {'Metric': 'Annual Revenue (Distributed)', 'Value': format_usd(inputs.annual_revenue * REVENUE_SHARE_RATIO)},
        {'Metric': 'Your Annual Earnings (USD)', 'Value': format_usd(result.annual_revenue_share)},
        {'Metric': 'Your Annual Earnings (Tokens)', 'Value': format_number(result.annual_token_rewards)},
    ])
    st.dataframe(breakdown_df, hide_index=True, use_container_width=True)
    st.caption(
        f"Total network weight = legacy x {inputs.avg_legacy_multiplier:.1f}x + new stake x 1x + your weight"
    )


def create_charts(inputs: SimulationInput, result: SimulationResult) -> None:
    """
    Create APR sensitivity charts using Altair

    Args:
        inputs: Current simulation parameters
        result: Simulation result for the current parameters
    """
    col1, col2 = st.columns(2)

    lock_df = sweep_lock_years(inputs)

    with col1:
        st.subheader("APR vs Remaining Lock")
        st.caption("Your APR as a legacy locker for each remaining lock duration, all else fixed.")

        lock_chart = alt.Chart(lock_df).mark_line(
            color='#2ca02c',
            strokeWidth=3
        ).encode(
            x=alt.X('lock_years:Q', title='Remaining Lock (years)'),
            y=alt.Y('apr:Q', title='APR (%)'),
            tooltip=[
                alt.Tooltip('lock_years:Q', title='Lock (years)', format='.1f'),
                alt.Tooltip('user_multiplier:Q', title='Multiplier', format='.2f'),
                alt.Tooltip('apr:Q', title='APR (%)', format='.2f')
            ]
        )

        if inputs.user_is_legacy:
            current_rule = alt.Chart(pd.DataFrame({'x': [inputs.user_remaining_lock_years]})).mark_rule(
                color='gray',
                strokeDash=[5, 5],
                opacity=0.7
            ).encode(x='x:Q')
            lock_chart = lock_chart + current_rule

        st.altair_chart(lock_chart.properties(height=350).interactive(), use_container_width=True)

    with col2:
        st.subheader("APR vs Annual Revenue")
        st.caption("Your APR across protocol revenue scenarios from $1M (bear) to $100M (bull).")

        revenue_values = np.linspace(1_000_000, 100_000_000, 100)
        revenue_df = sweep_parameter(inputs, 'annual_revenue', revenue_values)
        revenue_df['annual_revenue_m'] = revenue_df['annual_revenue'] / 1e6

        revenue_chart = alt.Chart(revenue_df).mark_line(
            color='#1f77b4',
            strokeWidth=3
        ).encode(
            x=alt.X('annual_revenue_m:Q', title='Annual Revenue ($ Millions)'),
            y=alt.Y('apr:Q', title='APR (%)'),
            tooltip=[
                alt.Tooltip('annual_revenue_m:Q', title='Revenue ($M)', format='.1f'),
                alt.Tooltip('apr:Q', title='APR (%)', format='.2f')
            ]
        )

        current_point = alt.Chart(pd.DataFrame({
            'annual_revenue_m': [inputs.annual_revenue / 1e6],
            'apr': [result.apr]
        })).mark_point(
            color='#d62728',
            size=100,
            filled=True
        ).encode(
            x='annual_revenue_m:Q',
            y='apr:Q'
        )

        st.altair_chart((revenue_chart + current_point).properties(height=350).interactive(),
                        use_container_width=True)

    # Data export section
    with st.expander("Export Simulation Data"):
        st.markdown("Download the lock duration sweep for further analysis")
        st.dataframe(lock_df.head(10), use_container_width=True)

        st.download_button(
            label="Download Lock Sweep (CSV)",
            data=lock_df.to_csv(index=False),
            file_name="staking_apr_lock_sweep.csv",
            mime="text/csv"
        )


def main():
    """Main Streamlit application"""

    st.title("Staking APR Simulator")
    st.markdown("""
    **Estimate your returns based on different market scenarios**

    A share of protocol revenue is distributed to stakers in proportion to their weighted stake.
    Adjust parameters in the sidebar to explore different scenarios.
    """)

    init_session_state()

    live_revenue = get_live_revenue(REVENUE_DATA_URL)
    inputs = create_sidebar_config(live_revenue)

    for warning in check_input_ranges(inputs):
        st.warning(f"⚠️ {warning}")

    result = simulate(inputs)

    show_results(inputs, result)
    create_charts(inputs, result)

    st.info(f"""
    **How this works**
    - **{REVENUE_SHARE_RATIO:.0%}** of protocol revenue is distributed to stakers
    - New-scheme stakers receive a **1x multiplier**
    - Legacy lockers receive a **1x-{MAX_LEGACY_MULTIPLIER:.0f}x bonus** based on remaining lock time
    - Your share = (Your Weight / Total Network Weight) x {REVENUE_SHARE_RATIO:.0%} of Revenue
    """)
    st.caption("Data from Token Terminal (historical) and DefiLlama (live). For educational purposes only. Not financial advice.")


if __name__ == "__main__":
    main()
