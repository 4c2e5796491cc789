"""
Chronological backtest replay.

Replays FeatureExtractor -> ProbabilityModel -> StakeSizer -> settlement over
a sample of completed contests, oldest first, against a local simulated
bankroll.

CRITICAL: No data leakage. Features for each contest are computed as of its
own start time, so neither its own result nor any later result is visible.
"""
import logging
from datetime import datetime
from typing import List, Optional

from src.backtesting.bankroll_sim import BankrollTracker, estimate_odds
from src.backtesting.metrics import (
    calculate_accuracy,
    calculate_brier_score,
    calculate_log_loss,
)
from src.backtesting.types import (
    MIN_BACKTEST_CONTESTS,
    BacktestConfig,
    BacktestReport,
    InsufficientDataError,
    SimulatedBet,
)
from src.core.history_store import HistoricalDataStore
from src.core.types import Side
from src.features.feature_extractor import FeatureExtractor
from src.ledger.ledger import classify_outcome, settlement_profit, wager_result
from src.models.probability_model import ProbabilityModel, best_expected_value
from src.strategy.kelly import StakeConfig, StakeSizer

logger = logging.getLogger(__name__)


class BacktestRunner:
    """
    Backtest engine.

    This class orchestrates one replay:
    1. Select the newest ``sample_size`` completed contests in the window
    2. Replay them oldest first
    3. Predict, filter on confidence and expected value, size the stake
    4. Settle against the final score on a local bankroll
    5. Aggregate metrics into a ``BacktestReport``
    """

    def __init__(
        self,
        store: HistoricalDataStore,
        model: ProbabilityModel,
        extractor: Optional[FeatureExtractor] = None,
    ):
        """
        Initialize backtest runner.

        Args:
            store: History store supplying the sample and the features
            model: Probability model under test
            extractor: Feature extractor (default: uncached over ``store``).
                A caching extractor may reuse a vector computed for an
                earlier meeting of the same teams.
        """
        self.store = store
        self.model = model
        self.extractor = extractor or FeatureExtractor(store, cache_ttl_seconds=0)

    def run(self, sport: str, config: Optional[BacktestConfig] = None) -> BacktestReport:
        """
        Run a backtest.

        Args:
            sport: Sport key
            config: Backtest configuration (defaults apply when omitted)

        Returns:
            BacktestReport

        Raises:
            InsufficientDataError: Fewer than 50 completed contests match
        """
        config = config or BacktestConfig()
        contests = self.store.completed_contests(
            sport,
            start=config.start_date,
            end=config.end_date,
            limit=config.sample_size,
        )
        if len(contests) < MIN_BACKTEST_CONTESTS:
            raise InsufficientDataError(len(contests))

        # Oldest first (critical for the replay order)
        contests = sorted(contests, key=lambda c: c.start_time)

        run_id = f"backtest_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        logger.info(
            "Starting backtest %s for %s: %d contests, minConf=%s, minEV=%s, kelly=%s",
            run_id, sport, len(contests), config.min_confidence,
            config.min_expected_value, config.kelly_fraction,
        )

        tracker = BankrollTracker(config.starting_bankroll)
        sizer = StakeSizer(
            StakeConfig(
                kelly_fraction=config.kelly_fraction,
                max_stake_pct=config.max_stake_pct,
                min_stake=config.min_stake,
            )
        )
        home_probs: List[float] = []
        home_wins: List[bool] = []

        for contest in contests:
            features = self.extractor.extract(
                contest.home_team, contest.away_team, sport, contest.start_time
            )
            prediction = self.model.predict(
                features,
                home_team=contest.home_team,
                away_team=contest.away_team,
                contest_id=contest.contest_id,
            )
            home_probs.append(prediction.home_prob)
            home_wins.append(contest.team_won(contest.home_team))

            if prediction.confidence < config.min_confidence:
                continue

            home_odds, away_odds = estimate_odds(
                prediction.home_prob,
                prediction.away_prob,
                contest.home_odds,
                contest.away_odds,
                config.vig,
            )
            ev = best_expected_value(
                prediction.home_prob, prediction.away_prob, home_odds, away_odds
            )
            if ev < config.min_expected_value:
                continue

            side = prediction.predicted_side
            odds = home_odds if side == Side.HOME else away_odds
            decision = sizer.size(prediction.predicted_prob, odds, tracker.current_bankroll)
            if decision.skip:
                continue

            outcome = classify_outcome(contest.home_score, contest.away_score)
            result = wager_result(side, outcome)
            profit = settlement_profit(decision.stake, odds, result)

            tracker.record(
                SimulatedBet(
                    contest_id=contest.contest_id,
                    start_time=contest.start_time,
                    home_team=contest.home_team,
                    away_team=contest.away_team,
                    selection=side,
                    predicted_winner=prediction.predicted_winner,
                    outcome=outcome,
                    result=result,
                    confidence=prediction.confidence,
                    expected_value=ev,
                    odds=odds,
                    stake=decision.stake,
                    profit=profit,
                    bankroll_after=tracker.current_bankroll + profit,
                )
            )

        max_dd, max_dd_pct = tracker.get_max_drawdown()
        report = BacktestReport(
            run_id=run_id,
            timestamp=datetime.now().isoformat(),
            sport=sport,
            config=config,
            sample_size=len(contests),
            date_range=(contests[0].start_time, contests[-1].start_time),
            contests_evaluated=len(contests),
            contests_skipped=len(contests) - tracker.total_bets,
            total_bets=tracker.total_bets,
            wins=tracker.wins,
            losses=tracker.losses,
            pushes=tracker.pushes,
            total_staked=tracker.total_staked,
            total_profit=tracker.total_profit,
            win_rate=tracker.get_win_rate(),
            roi=tracker.get_roi(),
            avg_odds=tracker.avg_odds,
            starting_bankroll=config.starting_bankroll,
            final_bankroll=tracker.current_bankroll,
            max_drawdown=max_dd,
            max_drawdown_pct=max_dd_pct,
            accuracy=calculate_accuracy(home_probs, home_wins),
            brier_score=calculate_brier_score(home_probs, home_wins),
            log_loss=calculate_log_loss(home_probs, home_wins),
            by_confidence=tracker.by_confidence,
            recent_bets=list(tracker.recent_bets),
        )
        logger.info(
            "Backtest %s complete: %d bets, ROI %.2f%%, final bankroll %.2f",
            run_id, report.total_bets, report.roi, report.final_bankroll,
        )
        return report
