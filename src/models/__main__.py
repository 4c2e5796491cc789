"""Entry point for: python -m src.models"""

import argparse
import logging
import sys
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(description="Train the linear probability strategy")
    parser.add_argument("--sport", required=True, help="Sport key (e.g., basketball_nba)")
    parser.add_argument("--limit", type=int, default=None, help="Use only the newest N contests")
    parser.add_argument("--learning-rate", type=float, default=None)
    parser.add_argument("--max-epochs", type=int, default=None)
    parser.add_argument("--patience", type=int, default=None, help="Early stop patience in epochs")
    parser.add_argument("--seed", type=int, default=None, help="Weight initialisation seed")
    parser.add_argument("--output-dir", default=None, help="Where to save the trained model")
    args = parser.parse_args()

    from src.core.config import settings
    from src.core.database import get_engine
    from src.core.history_store import SqlHistoryStore
    from src.models.linear_model import LinearStrategy, build_training_samples
    from src.models.probability_model import LINEAR_ARTIFACT_NAME

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    store = SqlHistoryStore(get_engine())
    samples = build_training_samples(store, args.sport, limit=args.limit)
    print(f"Training linear strategy on {len(samples)} {args.sport} contests")

    strategy = LinearStrategy(version=settings.MODEL_VERSION, random_state=args.seed)
    result = strategy.train(
        samples,
        learning_rate=args.learning_rate,
        max_epochs=args.max_epochs,
        early_stop_patience=args.patience,
    )
    if not result.trained:
        print(f"Training skipped: {result.reason}")
        return 1

    print(
        f"  Accuracy: {result.accuracy:.3f} after {result.epochs_run} epochs "
        f"(best epoch {result.best_epoch})"
    )
    print("  Feature weights:")
    for _, row in strategy.get_feature_importance().iterrows():
        print(f"    {row['feature']:<22} {row['importance']:.4f}")

    out = Path(args.output_dir or settings.MODEL_ARTIFACTS_PATH)
    out.mkdir(parents=True, exist_ok=True)
    model_path = out / LINEAR_ARTIFACT_NAME
    strategy.save(str(model_path))
    print(f"Model saved: {model_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
