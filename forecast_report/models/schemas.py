from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from forecast_report.config import settings
from forecast_report.data.prices import PROVIDERS

INFORMATION_CRITERIA = ("aicc", "aic", "bic")


class ReportConfig(BaseModel):
    symbols: List[str] = Field(..., min_length=1)
    lookback_years: int = Field(5, ge=1)
    training_end: date
    test_start: date
    test_end: date
    max_p: int = Field(3, ge=0)
    max_d: int = Field(2, ge=0)
    max_q: int = Field(3, ge=0)
    criterion: str = "aicc"
    min_train_observations: int = Field(60, ge=2)
    confidence_levels: List[int] = [80, 95]
    provider: Optional[str] = None

    @field_validator("symbols")
    @classmethod
    def normalize_symbols(cls, v):
        symbols = [s.strip().upper() for s in v if s.strip()]
        if not symbols:
            raise ValueError("At least one symbol is required")
        return symbols

    @field_validator("criterion")
    @classmethod
    def validate_criterion(cls, v):
        v = v.lower()
        if v not in INFORMATION_CRITERIA:
            raise ValueError(f"criterion must be one of {INFORMATION_CRITERIA}")
        return v

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if v not in PROVIDERS:
            raise ValueError(f"provider must be one of {sorted(PROVIDERS)}")
        return v

    @field_validator("confidence_levels")
    @classmethod
    def validate_levels(cls, v):
        if not v or any(level <= 0 or level >= 100 for level in v):
            raise ValueError("confidence levels must be between 0 and 100 (exclusive)")
        return sorted(set(v))

    @model_validator(mode="after")
    def check_boundaries(self):
        if not self.training_end < self.test_start:
            raise ValueError("training_end must be before test_start")
        if not self.test_start <= self.test_end:
            raise ValueError("test_start must not be after test_end")
        return self

    @property
    def history_start(self) -> date:
        """First date of the fetched history, ``lookback_years`` before test_end."""
        try:
            return self.test_end.replace(year=self.test_end.year - self.lookback_years)
        except ValueError:
            # 29 February
            return self.test_end.replace(year=self.test_end.year - self.lookback_years, day=28)

    @classmethod
    def from_settings(cls, **overrides) -> "ReportConfig":
        values = {
            "symbols": settings.SYMBOLS,
            "lookback_years": settings.LOOKBACK_YEARS,
            "training_end": settings.TRAINING_END,
            "test_start": settings.TEST_START,
            "test_end": settings.TEST_END,
            "max_p": settings.MAX_P,
            "max_d": settings.MAX_D,
            "max_q": settings.MAX_Q,
            "criterion": settings.INFORMATION_CRITERION,
            "min_train_observations": settings.MIN_TRAIN_OBSERVATIONS,
            "confidence_levels": settings.CONFIDENCE_LEVELS,
            "provider": settings.DATA_PROVIDER,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class ConfidenceBand(BaseModel):
    lower: List[float]
    upper: List[float]


class ForecastResult(BaseModel):
    horizon: int
    dates: List[str]
    forecast: List[float]
    intervals: Dict[int, ConfidenceBand]
    trend: str  # "upward", "downward", or "flat"


class AccuracyMetrics(BaseModel):
    rmse: float
    mae: float
    mape: float


class AccuracyRecord(BaseModel):
    symbol: str
    rmse: float
    mae: float
    mape: float


class SymbolFailure(BaseModel):
    symbol: str
    stage: str
    error_type: str
    message: str


class CoefficientRow(BaseModel):
    name: str
    estimate: float
    std_error: float
    t_statistic: float
    p_value: float
