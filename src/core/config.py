from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration for sports-edge-model service."""

    # Database (historical results, predictions, paper bets, bankroll state)
    DATABASE_URL: str = "sqlite:///data/predictions.db"

    # Model
    MODEL_STRATEGY: str = "heuristic"  # "heuristic" or "linear"
    MODEL_ARTIFACTS_PATH: str = "model_artifacts"
    MODEL_VERSION: str = "2.0.0"
    CONFIDENCE_FLOOR: float = 0.25
    CONFIDENCE_CEILING: float = 0.85

    # Feature extraction
    FEATURE_CACHE_TTL_SECONDS: float = 300.0
    RECENT_FORM_GAMES: int = 10

    # Staking
    KELLY_FRACTION: float = 0.25
    MAX_STAKE_PCT: float = 0.05
    MIN_STAKE: float = 1.0  # currency units
    MIN_CONFIDENCE: float = 0.55
    MIN_EXPECTED_VALUE: float = 0.02
    STARTING_BANKROLL: float = 1000.0

    # Odds provider (The Odds API)
    ODDS_API_KEY: str = ""
    ODDS_API_BASE_URL: str = "https://api.the-odds-api.com/v4"
    ODDS_API_TIMEOUT_SECONDS: float = 10.0
    ODDS_CACHE_TTL_SECONDS: float = 300.0
    RESULTS_CACHE_TTL_SECONDS: float = 3600.0
    ODDS_RATE_LIMIT_REQUESTS: int = 10
    ODDS_RATE_LIMIT_WINDOW_SECONDS: float = 60.0
    ODDS_FALLBACK_MODE: str = "off"  # "off" or "mock"
    SPORTS: str = "basketball_nba,soccer_epl,soccer_esp_la_liga"

    # App
    ENV: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"  # nosec B104
    API_PORT: int = 8002

    VERSION: str = "0.1.0"

    model_config = {"env_file": ".env"}

    @property
    def sport_keys(self) -> list[str]:
        return [s.strip() for s in self.SPORTS.split(",") if s.strip()]


settings = Settings()
