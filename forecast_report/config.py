from datetime import date
from typing import List

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Report settings loaded from environment variables."""

    DATA_PROVIDER: str = "yahoo"
    ALPHA_VANTAGE_API_KEY: str = ""
    ALPHA_VANTAGE_BASE_URL: str = "https://www.alphavantage.co/query"
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    CSV_DATA_DIR: str = "data"

    # Report scenario
    SYMBOLS: List[str] = ["AAPL", "MSFT", "GOOGL", "AMZN", "META", "NVDA"]
    DETAIL_SYMBOL: str = "AAPL"
    LOOKBACK_YEARS: int = 5
    TRAINING_END: date = date(2024, 5, 31)
    TEST_START: date = date(2024, 6, 1)
    TEST_END: date = date(2024, 6, 30)

    # Order search
    MAX_P: int = 3
    MAX_D: int = 2
    MAX_Q: int = 3
    INFORMATION_CRITERION: str = "aicc"
    MIN_TRAIN_OBSERVATIONS: int = 60
    CONFIDENCE_LEVELS: List[int] = [80, 95]

    OUTPUT_DIR: str = "reports"
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
