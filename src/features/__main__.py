"""Entry point for: python -m src.features"""

import argparse
import logging
import sys
from datetime import datetime

from src.core.config import settings
from src.core.database import get_engine
from src.core.history_store import SqlHistoryStore
from src.features.feature_config import get_feature_descriptions
from src.features.feature_extractor import FeatureExtractor


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect matchup features")
    parser.add_argument("--sport", required=True, help="Sport key (e.g., basketball_nba)")
    parser.add_argument("--home", required=True, help="Home team")
    parser.add_argument("--away", required=True, help="Away team")
    parser.add_argument("--as-of", default=None, help="ISO evaluation time (default: now)")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    as_of = datetime.fromisoformat(args.as_of) if args.as_of else datetime.now()
    extractor = FeatureExtractor(
        SqlHistoryStore(get_engine()),
        recent_games=settings.RECENT_FORM_GAMES,
        cache_ttl_seconds=0,
    )
    features = extractor.extract(args.home, args.away, args.sport, as_of)

    print(f"{args.home} vs {args.away} ({args.sport}) as of {as_of.isoformat()}")
    if not features.valid:
        print("No usable history, showing neutral defaults")

    descriptions = get_feature_descriptions()
    for name, value in features.numeric_values().items():
        print(f"  {name:<22} {value:>10.3f}  {descriptions.get(name, '')}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
