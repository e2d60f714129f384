"""Pydantic-based settings management for the GxT trading agent."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SESSION_NAMES = (
    "globex",
    "asia",
    "london",
    "ny_premarket",
    "ny_open",
    "ny_am",
    "ny_lunch",
    "ny_pm",
    "ny_close",
    "settle",
    "daily_break",
    "closed",
)


def _split_list(v: Any) -> Any:
    """Accept a JSON list, a comma-separated string, or a list."""
    if isinstance(v, str):
        if not v.strip():
            return []
        try:
            parsed = json.loads(v)
            if isinstance(parsed, list):
                return parsed
        except json.JSONDecodeError:
            pass
        return [s.strip() for s in v.split(",") if s.strip()]
    return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file.

    The agent scores multi-timeframe price action, gates the result through
    risk rules and either places a bracket order (live / simulation) or
    replays the same decision process bar-by-bar in a backtest.
    """

    # ── Mode ──────────────────────────────────────────────────────────────────
    AGENT_MODE: str = "simulation"  # "simulation" or "live"

    # ── Symbols ───────────────────────────────────────────────────────────────
    SYMBOLS: list[str] = ["SPY", "QQQ"]
    PEER_SYMBOLS: dict[str, str] = {"SPY": "QQQ", "QQQ": "SPY"}  # SMT pairs
    ANALYSIS_INTERVAL_MINUTES: int = 5
    LOOKBACK_BARS: int = 100  # Bars kept per timeframe in a snapshot

    # ── Risk ──────────────────────────────────────────────────────────────────
    MAX_DAILY_LOSS_PERCENT: float = 2.0  # Daily loss circuit breaker (% equity)
    MAX_POSITION_SIZE_PERCENT: float = 5.0  # Max notional per position (% equity)
    MIN_REWARD_RISK_RATIO: float = 2.0
    RISK_PER_TRADE_PERCENT: float = 1.0  # Equity risked per trade
    ATR_PERIOD: int = 14
    ATR_STOP_MULTIPLIER: float = 1.5  # Stop distance in ATRs
    RR_EPSILON: float = 0.005  # Float tolerance on the R:R gate
    SIM_STARTING_CAPITAL: float = 100_000.0

    # ── Scoring ───────────────────────────────────────────────────────────────
    SCORE_THRESHOLD: float = 65.0  # Min confidence (0-100) to evaluate risk
    KEY_LEVEL_PROXIMITY_PERCENT: float = 0.5  # "Near key level" distance
    DOL_MAX_DISTANCE_PERCENT: float = 1.0  # DOL farther than this fails
    BLOCKED_SESSIONS: list[str] = []  # Sessions where no new trades open

    # ── Logging ───────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/gxt.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # ── Validators ────────────────────────────────────────────────────────────

    @field_validator("SYMBOLS", mode="before")
    @classmethod
    def parse_symbols(cls, v: Any) -> list[str]:
        """Accept JSON string, comma-separated string, or list for SYMBOLS."""
        v = _split_list(v)
        if isinstance(v, list):
            return [str(s).upper() for s in v]
        return v

    @field_validator("PEER_SYMBOLS", mode="before")
    @classmethod
    def parse_peers(cls, v: Any) -> dict[str, str]:
        """Accept a JSON object, ``"SPY:QQQ,QQQ:SPY"`` or a dict."""
        if isinstance(v, str):
            if not v.strip():
                return {}
            try:
                parsed = json.loads(v)
                if isinstance(parsed, dict):
                    v = parsed
            except json.JSONDecodeError:
                pairs: dict[str, str] = {}
                for item in v.split(","):
                    if ":" not in item:
                        raise ValueError(f"PEER_SYMBOLS entry must be 'A:B', got '{item}'")
                    a, b = item.split(":", 1)
                    pairs[a.strip()] = b.strip()
                v = pairs
        if isinstance(v, dict):
            return {str(k).upper(): str(p).upper() for k, p in v.items()}
        return v

    @field_validator("BLOCKED_SESSIONS", mode="before")
    @classmethod
    def parse_blocked_sessions(cls, v: Any) -> list[str]:
        """Accept JSON string, comma-separated string, or list of session names."""
        v = _split_list(v)
        if isinstance(v, list):
            names = [str(s).lower() for s in v]
            unknown = [s for s in names if s not in SESSION_NAMES]
            if unknown:
                raise ValueError(
                    f"Unknown session(s) in BLOCKED_SESSIONS: {unknown}. "
                    f"Allowed: {SESSION_NAMES}"
                )
            return names
        return v

    @field_validator("AGENT_MODE")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        """Ensure the agent mode is valid."""
        allowed = {"simulation", "live"}
        if v.lower() not in allowed:
            raise ValueError(f"AGENT_MODE must be one of {allowed}, got '{v}'")
        return v.lower()

    @field_validator("SCORE_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0 <= v <= 100:
            raise ValueError(f"SCORE_THRESHOLD must be within [0, 100], got {v}")
        return v

    @field_validator(
        "MIN_REWARD_RISK_RATIO",
        "ATR_STOP_MULTIPLIER",
        "RISK_PER_TRADE_PERCENT",
        "MAX_POSITION_SIZE_PERCENT",
        "SIM_STARTING_CAPITAL",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def validate_atr_period(self) -> "Settings":
        """ATR needs at least two bars to produce one true range."""
        if self.ATR_PERIOD < 1:
            raise ValueError(f"ATR_PERIOD must be >= 1, got {self.ATR_PERIOD}")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
