"""Historical bar loading and no-lookahead snapshot building for backtests."""

from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_left, bisect_right
from datetime import datetime, timedelta
from pathlib import Path
from typing import Mapping

import pandas as pd
from loguru import logger

from gxt.data.indicators import bars_to_frame
from gxt.models.bar import ANALYSIS_TIMEFRAMES, TIMEFRAME_MINUTES, Bar, BarSnapshot, Timeframe

RESAMPLE_RULES: dict[Timeframe, str] = {
    Timeframe.M5: "5min",
    Timeframe.M15: "15min",
    Timeframe.H1: "1h",
    Timeframe.H4: "4h",
    Timeframe.D1: "1D",
}

OHLCV_AGG = {"open": "first", "high": "max", "low": "min", "close": "last", "volume": "sum"}


class DataUnavailableError(Exception):
    """No history is available for the requested symbol or range."""


# ── Frame helpers ─────────────────────────────────────────────────────────────


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Return an OHLCV frame with a sorted, unique, naive-UTC DatetimeIndex.

    Accepts either a DatetimeIndex or a ``timestamp``/``date``/``datetime``
    column; column names are matched case-insensitively.
    """
    df = df.rename(columns=str.lower)
    if not isinstance(df.index, pd.DatetimeIndex):
        for col in ("timestamp", "datetime", "date"):
            if col in df.columns:
                df = df.set_index(col)
                break
        else:
            raise ValueError("Frame needs a DatetimeIndex or a 'timestamp' column")

    index = pd.to_datetime(df.index)
    if index.tz is not None:
        index = index.tz_convert("UTC").tz_localize(None)
    df.index = index
    df.index.name = "timestamp"

    missing = [c for c in ("open", "high", "low", "close") if c not in df.columns]
    if missing:
        raise ValueError(f"Frame is missing columns: {missing}")
    if "volume" not in df.columns:
        df["volume"] = 0.0

    df = df[["open", "high", "low", "close", "volume"]]
    df = df[~df.index.duplicated(keep="first")].sort_index()
    return df.dropna(subset=["open", "high", "low", "close"])


def frame_to_bars(df: pd.DataFrame, timeframe: Timeframe, symbol: str) -> list[Bar]:
    return [
        Bar(
            timestamp=ts.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            timeframe=timeframe,
            symbol=symbol,
        )
        for ts, row in zip(df.index, df.itertuples(index=False))
    ]


def aggregate(bars: list[Bar], timeframe: Timeframe, symbol: str | None = None) -> list[Bar]:
    """Resample *bars* into *timeframe* bars labelled by their start time."""
    if not bars:
        return []
    symbol = symbol if symbol is not None else bars[0].symbol
    df = bars_to_frame(bars)
    out = (
        df.resample(RESAMPLE_RULES[timeframe], label="left", closed="left")
        .agg(OHLCV_AGG)
        .dropna(subset=["open"])
    )
    return frame_to_bars(out, timeframe, symbol)


# ── Per-run timeframe cache ───────────────────────────────────────────────────


class TimeframeCache:
    """Per-run store of every timeframe series, keyed by (symbol, timeframe).

    Built once per backtest run and cleared when the run ends, so concurrent
    runs never share series.
    """

    def __init__(self) -> None:
        self._series: dict[tuple[str, Timeframe], list[Bar]] = {}
        self._stamps: dict[tuple[str, Timeframe], list[datetime]] = {}

    def put(self, symbol: str, timeframe: Timeframe, bars: list[Bar]) -> None:
        self._series[(symbol, timeframe)] = bars
        self._stamps[(symbol, timeframe)] = [b.timestamp for b in bars]

    def put_all(self, symbol: str, series: Mapping[Timeframe, list[Bar]]) -> None:
        for tf, bars in series.items():
            self.put(symbol, tf, bars)

    def get(self, symbol: str, timeframe: Timeframe) -> list[Bar]:
        return self._series.get((symbol, timeframe), [])

    def clear(self) -> None:
        self._series.clear()
        self._stamps.clear()

    def __len__(self) -> int:
        return len(self._series)

    def build_snapshot(
        self,
        symbol: str,
        as_of: datetime,
        base_timeframe: Timeframe = Timeframe.M5,
        lookback: int = 100,
    ) -> BarSnapshot:
        """Snapshot of *symbol* as known at the close of the base bar at *as_of*.

        Every series is cut at ``timestamp <= as_of``. A higher-timeframe bar
        still forming at that point is rebuilt from the base bars seen so
        far, so its high/low/close never include later prices.
        """
        key = (symbol, base_timeframe)
        base = self._series.get(key, [])
        base_stamps = self._stamps.get(key, [])
        base_end = bisect_right(base_stamps, as_of)
        known_until = as_of + timedelta(minutes=TIMEFRAME_MINUTES[base_timeframe])

        bars: dict[Timeframe, list[Bar]] = {base_timeframe: base[max(0, base_end - lookback):base_end]}

        for tf in ANALYSIS_TIMEFRAMES:
            if tf == base_timeframe:
                continue
            series = self._series.get((symbol, tf), [])
            stamps = self._stamps.get((symbol, tf), [])
            end = bisect_right(stamps, as_of)
            visible = series[max(0, end - lookback - 1):end]

            if visible:
                last = visible[-1]
                if last.timestamp + timedelta(minutes=TIMEFRAME_MINUTES[tf]) > known_until:
                    start = bisect_left(base_stamps, last.timestamp)
                    partial = base[start:base_end]
                    visible = visible[:-1]
                    if partial:
                        visible.append(_forming_bar(partial, tf, last))

            bars[tf] = visible[-lookback:]

        return BarSnapshot(symbol=symbol, bars=bars, as_of=as_of)


def _forming_bar(partial: list[Bar], timeframe: Timeframe, template: Bar) -> Bar:
    return Bar(
        timestamp=template.timestamp,
        open=partial[0].open,
        high=max(b.high for b in partial),
        low=min(b.low for b in partial),
        close=partial[-1].close,
        volume=sum(b.volume for b in partial),
        timeframe=timeframe,
        symbol=template.symbol,
    )


# ── Loaders ───────────────────────────────────────────────────────────────────


class BaseHistoryLoader(ABC):
    """Source of historical bars for a backtest run."""

    @abstractmethod
    async def load(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        timeframe: Timeframe = Timeframe.M5,
    ) -> dict[Timeframe, list[Bar]]:
        """Return every analysis timeframe for *symbol* over ``[start, end]``.

        The base *timeframe* series includes extra context before *start*.
        """
        ...


class DataFrameHistoryLoader(BaseHistoryLoader):
    """History loader backed by in-memory pandas frames.

    Base-timeframe frames are resampled into the higher intraday timeframes;
    daily bars come from *daily_frames* when given, otherwise from the base
    frame.
    """

    def __init__(
        self,
        frames: Mapping[str, pd.DataFrame],
        daily_frames: Mapping[str, pd.DataFrame] | None = None,
        context_days: int = 5,
        daily_context_days: int = 180,
    ) -> None:
        self._frames = {s.upper(): normalize_frame(df) for s, df in frames.items()}
        self._daily = {s.upper(): normalize_frame(df) for s, df in (daily_frames or {}).items()}
        self.context_days = context_days
        self.daily_context_days = daily_context_days

    @classmethod
    def from_csv(
        cls,
        paths: Mapping[str, str | Path],
        daily_paths: Mapping[str, str | Path] | None = None,
        **kwargs,
    ) -> "DataFrameHistoryLoader":
        """Build a loader from CSV files with timestamp/open/high/low/close[/volume] columns."""
        frames = {symbol: pd.read_csv(path) for symbol, path in paths.items()}
        daily = {symbol: pd.read_csv(path) for symbol, path in (daily_paths or {}).items()}
        return cls(frames, daily, **kwargs)

    @property
    def symbols(self) -> list[str]:
        return sorted(self._frames)

    async def load(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        timeframe: Timeframe = Timeframe.M5,
    ) -> dict[Timeframe, list[Bar]]:
        symbol = symbol.upper()
        if symbol not in self._frames:
            raise DataUnavailableError(f"No history for {symbol}")

        frame = self._frames[symbol]
        context_start = start - timedelta(days=self.context_days)
        base = frame_to_bars(frame.loc[context_start:end], timeframe, symbol)

        result: dict[Timeframe, list[Bar]] = {timeframe: base}
        base_minutes = TIMEFRAME_MINUTES[timeframe]
        for tf in (Timeframe.M15, Timeframe.H1, Timeframe.H4):
            if TIMEFRAME_MINUTES[tf] > base_minutes:
                result[tf] = aggregate(base, tf, symbol)

        daily_start = start - timedelta(days=self.daily_context_days)
        if symbol in self._daily:
            result[Timeframe.D1] = frame_to_bars(
                self._daily[symbol].loc[daily_start:end], Timeframe.D1, symbol
            )
        else:
            result[Timeframe.D1] = aggregate(
                frame_to_bars(frame.loc[daily_start:end], timeframe, symbol), Timeframe.D1, symbol
            )

        logger.info(
            "Loaded {} {} bars for {} ({} -> {})",
            len(base),
            timeframe.value,
            symbol,
            start.date(),
            end.date(),
        )
        return result
