"""
CLI interface for the options strategy screener.

Usage:
    python -m strategy_screener chain.csv --price 23559.15 --dte 21 --rate 0.01 --vol 0.122
    python -m strategy_screener chain.csv --config scan.yaml --top 100 --csv results.csv
    python -m strategy_screener sheet.csv --legacy-layout --policy independent --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from strategy_screener.chain import ChainSchema, ChainTable
from strategy_screener.config import (
    RANKING_METRICS,
    LoadedConfig,
    MarketParameters,
    ScreenerConfig,
    load_config,
)
from strategy_screener.policies import POLICIES
from strategy_screener.screener import StrategyScreener


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="strategy_screener",
        description="Enumerate and rank 4-leg option strategies from an options chain.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m strategy_screener chain.csv --price 100 --dte 30 --rate 0.01 --vol 0.2
  python -m strategy_screener chain.csv --config scan.yaml --top 100
  python -m strategy_screener chain.csv --price 100 --dte 30 --rate 0.01 --vol 0.2 --jobs 4 --timeout 120
  python -m strategy_screener sheet.csv --legacy-layout --price 23559.15 --dte 21 --rate 0.01 --vol 0.122

Chain layout:
  One row per chain entry with columns strike, call_bid, call_ask, put_bid and
  put_ask, or any other names mapped in the chain_schema section of --config.
  --legacy-layout reads call price from column 5, strike from column 6 and put
  price from column 7.
        """,
    )

    parser.add_argument("chain", type=str, help="Options chain CSV file")

    # Market parameters
    parser.add_argument("--price", type=float, help="Current underlying price")
    parser.add_argument("--dte", type=float, help="Days to expiration")
    parser.add_argument("--rate", type=float, help="Annual risk-free rate (e.g. 0.01)")
    parser.add_argument("--vol", type=float, help="Annualised volatility (e.g. 0.2)")

    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="YAML config with market, screener and chain_schema sections",
    )

    # Search
    parser.add_argument(
        "--policy",
        type=str,
        choices=sorted(POLICIES),
        help="Enumeration policy (default: nested_offset)",
    )
    parser.add_argument("--max-rows", type=int, help="Chain rows in the search window (default: 30)")
    parser.add_argument("--start", type=int, help="First chain row of the window (default: 0)")
    parser.add_argument("--jobs", type=int, help="Worker processes (default: 1)")
    parser.add_argument("--timeout", type=float, help="Stop evaluating after this many seconds")
    parser.add_argument(
        "--legacy-layout",
        action="store_true",
        help="Read the chain by column position (call 5, strike 6, put 7)",
    )

    # Ranking
    parser.add_argument("--metric", type=str, choices=RANKING_METRICS, help="Ranking metric")
    parser.add_argument("--top", "-n", type=int, help="Number of top results to show")
    parser.add_argument("--min-pop", type=float, help="Minimum probability of profit (0-1)")

    # Output format
    parser.add_argument("--csv", type=str, metavar="FILE", help="Output results to CSV file")
    parser.add_argument(
        "--extended",
        action="store_true",
        help="Use the extended CSV layout with strategy names and break-evens",
    )
    parser.add_argument("--json", action="store_true", help="Output results as JSON to stdout")

    # Verbosity
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")

    return parser.parse_args(argv)


def build_market(args: argparse.Namespace, loaded: LoadedConfig) -> MarketParameters:
    """Market parameters from the config file, overridden by CLI flags."""
    base = loaded.market
    values = {
        "underlying_price": args.price if args.price is not None else getattr(base, "underlying_price", None),
        "days_to_expiry": args.dte if args.dte is not None else getattr(base, "days_to_expiry", None),
        "risk_free_rate": args.rate if args.rate is not None else getattr(base, "risk_free_rate", None),
        "volatility": args.vol if args.vol is not None else getattr(base, "volatility", None),
    }
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise ValueError(f"Missing market parameters: {', '.join(missing)}")
    return MarketParameters(**values)


def build_screener_config(args: argparse.Namespace, loaded: LoadedConfig) -> ScreenerConfig:
    """Screener config from the file, overridden by CLI flags."""
    base = loaded.screener
    overrides = {
        "policy": args.policy,
        "max_rows": args.max_rows,
        "start": args.start,
        "n_jobs": args.jobs,
        "deadline_seconds": args.timeout,
        "metric": args.metric,
        "top_n": args.top,
        "min_probability": args.min_pop,
    }
    values = {f: getattr(base, f) for f in base.__dataclass_fields__}
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ScreenerConfig(**values)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)

    setup_logging(args.verbose, args.debug)

    try:
        loaded = load_config(args.config) if args.config else LoadedConfig()
        market = build_market(args, loaded)
        config = build_screener_config(args, loaded)
        schema = ChainSchema.legacy() if args.legacy_layout else loaded.schema

        chain = ChainTable.from_csv(args.chain, schema)

        if not args.json:
            print(f"Screening {len(chain)} chain rows with policy '{config.policy}'...")
            print(
                f"S0={market.underlying_price} DTE={market.days_to_expiry:g} "
                f"r={market.risk_free_rate} sigma={market.volatility}"
            )
            print()

        result = StrategyScreener(market=market, config=config).screen(chain)

        if args.json:
            print(json.dumps(result.to_json_dict(), indent=2, allow_nan=False))

        elif args.csv:
            layout = "extended" if args.extended else "standard"
            output_path = Path(args.csv)
            output_path.write_text(result.to_csv(layout))
            print(f"Results saved to {args.csv}")
            print()
            print(result.to_report())

        else:
            print(result.to_report())

        if result.timed_out:
            print("Warning: deadline reached, results are partial", file=sys.stderr)

        return 0

    except Exception as e:
        logging.exception("Error during screening")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
