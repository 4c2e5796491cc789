"""Entry point for: python -m src.service"""

import argparse
import logging
import sys


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the paper-betting cycle")
    parser.add_argument(
        "command",
        choices=["bet", "settle", "stats", "run"],
        help="bet: place new bets | settle: settle finished bets | stats: show counters | run: settle then bet",
    )
    parser.add_argument("--init-db", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    from src.core.config import settings
    from src.core.database import get_engine, init_schema
    from src.service.betting_service import BettingService

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    engine = get_engine(settings.DATABASE_URL)
    if args.init_db:
        init_schema(engine)
    service = BettingService.from_settings(settings, engine=engine)

    if args.command in ("settle", "run"):
        summary = service.settle_bets()
        print(
            f"Settled {summary.settled_count} bets "
            f"({summary.failed_count} failed, {summary.awaiting_result} awaiting results)"
        )

    if args.command in ("bet", "run"):
        placed = service.place_bets()
        avg = f"{placed.avg_odds:.2f}" if placed.avg_odds is not None else "N/A"
        print(f"Betting complete: {placed.placed_count} placed, {placed.skipped} skipped")
        print(f"   Avg odds: {avg}")
        for sport, mode in placed.modes.items():
            print(f"   {sport}: {mode.value} data")
        for sport in placed.unavailable:
            print(f"   {sport}: provider unavailable")
        if placed.failed:
            print(f"   {len(placed.failed)} bets not recorded (storage errors)")

    stats = service.get_stats()
    print(f"   Bankroll: ${stats['bankroll']:,.2f}")
    if args.command == "stats":
        print(f"   Total Bets: {stats['total_bets']}")
        print(f"   Wins: {stats['wins']} | Losses: {stats['losses']} | Pushes: {stats['pushes']}")
        print(f"   Win Rate: {stats['win_rate']:.1f}%")
        print(f"   ROI: {stats['roi']:.2f}%")
        print(f"   Total Profit: ${stats['total_profit']:,.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
