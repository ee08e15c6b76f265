"""
Protocol Revenue Data

Reference revenue figures and a live revenue source used to populate the
annual revenue input of the simulation. The live figure comes either from a
pre-generated JSON snapshot file or directly from the DefiLlama fees API.

Usage:
    python revenue_data.py                              # Print a fresh snapshot
    python revenue_data.py --output revenue-data.json   # Write snapshot file
    python revenue_data.py --url https://host/revenue-data.json
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFILLAMA_SUMMARY_URL = "https://api.llama.fi/summary/fees/{protocol}?dataType=dailyRevenue"
DEFAULT_PROTOCOL = "pendle"
DAYS_PER_YEAR = 365

# Actual (not annualized) yearly revenue from Token Terminal
HISTORICAL_REVENUE = [
    {'year': '2023', 'revenue': 191_048, 'note': 'Early phase'},
    {'year': '2024', 'revenue': 19_100_000, 'note': 'Growth year'},
    {'year': '2025', 'revenue': 44_640_000, 'note': 'Peak year (actual)'},
]

# Token supply figures from the protocol dashboard (January 2026)
KNOWN_SUPPLY = {
    'total_supply': 281_527_448,
    'legacy_locked': 63_503_414,
    'circulating_supply': 162_000_000,
}


class RevenueDataError(ValueError):
    """Raised when a revenue payload is missing fields or holds invalid amounts"""


@dataclass(frozen=True)
class RevenueSnapshot:
    """Point-in-time revenue figures, all amounts in USD"""

    fetched_at: datetime
    daily: float
    annualized: float
    weekly_avg: float
    monthly_total: float
    all_time_total: float
    source: str

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            'fetchedAt': self.fetched_at.isoformat(),
            'daily': self.daily,
            'annualized': self.annualized,
            'weeklyAvg': self.weekly_avg,
            'monthlyTotal': self.monthly_total,
            'allTimeTotal': self.all_time_total,
            'source': self.source,
        }


def _amount(payload: Dict[str, Any], key: str) -> float:
    if key not in payload or payload[key] is None:
        raise RevenueDataError(f"Missing required key: {key}")
    try:
        value = float(payload[key])
    except (TypeError, ValueError):
        raise RevenueDataError(f"Value of {key} is not numeric: {payload[key]!r}")
    if value < 0:
        raise RevenueDataError(f"Value of {key} must be non-negative, got {value}")
    return value


def parse_revenue_snapshot(payload: Dict[str, Any]) -> RevenueSnapshot:
    """
    Parse a revenue snapshot file (camelCase JSON written by this module)

    Args:
        payload: Decoded JSON object

    Returns:
        RevenueSnapshot

    Raises:
        RevenueDataError: if a key is missing or an amount is invalid
    """
    if 'fetchedAt' not in payload:
        raise RevenueDataError("Missing required key: fetchedAt")
    try:
        fetched_at = datetime.fromisoformat(str(payload['fetchedAt']).replace('Z', '+00:00'))
    except ValueError:
        raise RevenueDataError(f"Invalid fetchedAt timestamp: {payload['fetchedAt']!r}")

    return RevenueSnapshot(
        fetched_at=fetched_at,
        daily=_amount(payload, 'daily'),
        annualized=_amount(payload, 'annualized'),
        weekly_avg=_amount(payload, 'weeklyAvg'),
        monthly_total=_amount(payload, 'monthlyTotal'),
        all_time_total=_amount(payload, 'allTimeTotal'),
        source=str(payload.get('source', 'unknown')),
    )


def parse_defillama_summary(payload: Dict[str, Any], fetched_at: Optional[datetime] = None) -> RevenueSnapshot:
    """
    Build a snapshot from a DefiLlama fees summary response

    The annualized figure is the last 24h revenue times 365. Missing weekly,
    monthly or all-time totals are reported as 0.

    Args:
        payload: Decoded DefiLlama summary JSON
        fetched_at: Timestamp to record, defaults to now (UTC)

    Returns:
        RevenueSnapshot
    """
    daily = _amount(payload, 'total24h')
    weekly_total = _amount(payload, 'total7d') if payload.get('total7d') is not None else 0.0
    monthly_total = _amount(payload, 'total30d') if payload.get('total30d') is not None else 0.0
    all_time_total = _amount(payload, 'totalAllTime') if payload.get('totalAllTime') is not None else 0.0

    return RevenueSnapshot(
        fetched_at=fetched_at or datetime.now(timezone.utc),
        daily=daily,
        annualized=daily * DAYS_PER_YEAR,
        weekly_avg=weekly_total / 7,
        monthly_total=monthly_total,
        all_time_total=all_time_total,
        source='DefiLlama',
    )


def fetch_revenue_snapshot(url: str, timeout: int = 10) -> RevenueSnapshot:
    """Download and parse a revenue snapshot file"""
    response = requests.get(url, headers={'Accept': 'application/json'}, timeout=timeout)
    response.raise_for_status()
    return parse_revenue_snapshot(response.json())


def fetch_defillama_revenue(protocol: str = DEFAULT_PROTOCOL, timeout: int = 10) -> RevenueSnapshot:
    """Query DefiLlama for the protocol's daily revenue summary"""
    url = DEFILLAMA_SUMMARY_URL.format(protocol=protocol)
    logger.debug(f"Querying DefiLlama revenue summary for {protocol}")
    response = requests.get(url, headers={'Accept': 'application/json'}, timeout=timeout)
    response.raise_for_status()
    return parse_defillama_summary(response.json())


def load_live_revenue(url: Optional[str] = None,
                      protocol: str = DEFAULT_PROTOCOL,
                      timeout: int = 10) -> Optional[RevenueSnapshot]:
    """
    Load the current revenue estimate, or None if it is unavailable

    Reads the snapshot file at url when given, otherwise queries DefiLlama.
    Failures are logged and swallowed so callers can carry on with
    historical figures.

    Args:
        url: Location of a revenue snapshot JSON file
        protocol: DefiLlama protocol slug used when no url is given
        timeout: Request timeout in seconds

    Returns:
        RevenueSnapshot, or None if it could not be fetched or parsed
    """
    try:
        if url:
            snapshot = fetch_revenue_snapshot(url, timeout=timeout)
        else:
            snapshot = fetch_defillama_revenue(protocol, timeout=timeout)
    except (requests.RequestException, ValueError) as error:
        logger.warning(f"Could not fetch live revenue data: {error}")
        return None

    logger.info(
        f"Live revenue from {snapshot.source}: ${snapshot.daily:,.0f}/day "
        f"(${snapshot.annualized:,.0f} annualized)"
    )
    return snapshot


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Fetch a protocol revenue snapshot")
    parser.add_argument('--protocol', default=DEFAULT_PROTOCOL, help="DefiLlama protocol slug")
    parser.add_argument('--url', default=None, help="Read an existing snapshot file instead of DefiLlama")
    parser.add_argument('--output', default=None, help="Write the snapshot JSON to this file")
    parser.add_argument('--timeout', type=int, default=10, help="Request timeout in seconds")
    parser.add_argument('--log-level', default='INFO', help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format='%(levelname)s %(name)s: %(message)s')

    snapshot = load_live_revenue(url=args.url, protocol=args.protocol, timeout=args.timeout)
    if snapshot is None:
        return 1

    text = json.dumps(snapshot.to_json_dict(), indent=2)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(text + '\n')
        logger.info(f"Wrote revenue snapshot to {args.output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    sys.exit(main())
