"""Entry point for: python -m src.backtesting"""

import argparse
import json
import logging
import sys
from datetime import datetime


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay completed contests to evaluate the betting strategy")
    parser.add_argument("--sport", required=True, help="Sport key (e.g., basketball_nba)")
    parser.add_argument("--min-confidence", type=float, default=0.55, help="Minimum confidence to bet")
    parser.add_argument("--min-ev", type=float, default=0.02, help="Minimum expected value to bet")
    parser.add_argument("--kelly", type=float, default=0.25, help="Kelly fraction")
    parser.add_argument("--bankroll", type=float, default=1000.0, help="Starting bankroll")
    parser.add_argument("--sample-size", type=int, default=500, help="Newest N completed contests")
    parser.add_argument("--start", default=None, help="Window start (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="Window end (YYYY-MM-DD)")
    parser.add_argument("--report", default=None, help="Write an HTML report to this path")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    args = parser.parse_args()

    from src.backtesting.backtester import BacktestRunner
    from src.backtesting.report import format_summary, save_report
    from src.backtesting.types import BacktestConfig, InsufficientDataError
    from src.core.config import settings
    from src.core.database import get_engine
    from src.core.history_store import SqlHistoryStore
    from src.models.probability_model import ProbabilityModel

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    try:
        config = BacktestConfig(
            min_confidence=args.min_confidence,
            min_expected_value=args.min_ev,
            starting_bankroll=args.bankroll,
            kelly_fraction=args.kelly,
            max_stake_pct=settings.MAX_STAKE_PCT,
            min_stake=settings.MIN_STAKE,
            sample_size=args.sample_size,
            start_date=datetime.fromisoformat(args.start) if args.start else None,
            end_date=datetime.fromisoformat(args.end) if args.end else None,
        )
    except ValueError as e:
        print(f"Invalid backtest configuration: {e}")
        return 2

    runner = BacktestRunner(SqlHistoryStore(get_engine()), ProbabilityModel.from_settings())
    try:
        report = runner.run(args.sport, config)
    except InsufficientDataError as e:
        print(str(e))
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_summary(report))

    if args.report:
        path = save_report(report, args.report)
        print(f"\nReport saved: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
