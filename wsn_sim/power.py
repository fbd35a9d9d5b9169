"""
Power Ledger and Battery Model.

Each device keeps an append-only log of drain changes. Usage curves and
averages are reconstructed on demand by replaying the log, so any window
(e.g. one that starts after the stabilization period) can be queried later.
"""

import threading
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple, NamedTuple, Dict, Any
from .config import TICKS_PER_HOUR, BATTERY, PEUKERT_EXPONENT
from .sim_env import ConfigurationError


@dataclass(frozen=True)
class PowerEvent:
    """A drain added (positive) or removed (negative) at a timestamp."""
    power_mA: float
    timestamp: int


class PowerLog:
    """
    Chronological, append-only log of PowerEvents for one device.

    Appends are lock-guarded: radio callbacks triggered by a peer may add or
    remove drains while the owner is being stepped.
    """

    def __init__(self, env, ticks_per_hour: int = TICKS_PER_HOUR):
        self._env = env
        self._ticks_per_hour = ticks_per_hour
        self._lock = threading.Lock()
        self._events = []

    def register_drain(self, power_mA: float):
        self._append(power_mA)

    def remove_drain(self, power_mA: float):
        self._append(-power_mA)

    def _append(self, power_mA: float):
        with self._lock:
            self._events.append(PowerEvent(power_mA, self._env.get_timestamp()))

    @property
    def events(self) -> Tuple[PowerEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def __len__(self):
        return len(self._events)

    def _replay(self) -> Tuple[np.ndarray, np.ndarray]:
        """Event timestamps and the cumulative drain level after each event."""
        events = self.events
        times = np.array([e.timestamp for e in events], dtype=np.int64)
        levels = np.cumsum([e.power_mA for e in events], dtype=float)
        return times, levels

    @staticmethod
    def _level_at(times: np.ndarray, levels: np.ndarray, ticks: np.ndarray) -> np.ndarray:
        # an event logged at tick t is active from t onwards
        idx = np.searchsorted(times, ticks, side='right') - 1
        return np.where(idx >= 0, levels[np.maximum(idx, 0)], 0.0)

    def get_power_usage(self, first: int = 0, last: Optional[int] = None,
                        sample_interval: int = 1) -> np.ndarray:
        """
        Instantaneous drain (mA) sampled at ticks first, first + interval, ...
        up to but excluding `last` (default: now).
        """
        if last is None:
            last = self._env.get_timestamp()
        ticks = np.arange(first, last, sample_interval)
        if not self._events or ticks.size == 0:
            return np.zeros(ticks.size)
        times, levels = self._replay()
        return self._level_at(times, levels, ticks)

    def get_power_usage_avg(self, first: int = 0, last: Optional[int] = None,
                            peukert: float = 1.0) -> float:
        """
        Charge drawn over [first, last) in mAh.

        Parameters:
        -----------
        first, last : int
            Window in ticks (last defaults to now)
        peukert : float
            Peukert exponent p. The effective current is (mean(I^p))^(1/p),
            so high-current bursts weigh more than their plain average.
            p = 1 gives the plain time-weighted mean.

        Returns:
        --------
        float : mAh, 0.0 for an empty window or a log with no events
        """
        if last is None:
            last = self._env.get_timestamp()
        if last <= first or not self._events:
            return 0.0
        times, levels = self._replay()

        inner = np.unique(times[(times > first) & (times < last)])
        bounds = np.concatenate(([first], inner, [last]))
        durations = np.diff(bounds)
        current = self._level_at(times, levels, bounds[:-1])
        # imbalanced remove_drain calls can push the level below zero
        current = np.clip(current, 0.0, None)

        window = last - first
        mean_p = np.sum(current ** peukert * durations) / window
        effective_mA = mean_p ** (1.0 / peukert)
        return float(effective_mA * window / self._ticks_per_hour)


# =============================================================================
# BATTERY PROJECTION
# =============================================================================

@dataclass(frozen=True)
class BatteryProfile:
    """Nameplate capacity at the rated drainage time."""
    name: str
    capacity_mAh: float
    drainage_time_h: float

    def __post_init__(self):
        if self.capacity_mAh <= 0 or self.drainage_time_h <= 0:
            raise ConfigurationError(f"Invalid battery profile: {self}")

    @classmethod
    def from_config(cls, preset: Dict[str, Any] = BATTERY) -> 'BatteryProfile':
        return cls(preset['name'], preset['capacity_mAh'], preset['drainage_time_h'])


class Lifetime(NamedTuple):
    years: int
    days: int
    hours: int

    @property
    def total_hours(self) -> int:
        return self.years * 365 * 24 + self.days * 24 + self.hours

    def __str__(self):
        return f"{self.years} years, {self.days} days and {self.hours} hours"


def project_lifetime_h(draw_mA: float, battery: BatteryProfile,
                       peukert: float = PEUKERT_EXPONENT) -> Optional[float]:
    """
    Hours until the battery is exhausted at a constant draw (Peukert's law).

        t = H * C^p / (I * H)^p

    Returns None when there is no positive draw to project from.
    """
    if draw_mA is None or not np.isfinite(draw_mA) or draw_mA <= 0:
        return None
    H = battery.drainage_time_h
    return float(H * (battery.capacity_mAh ** peukert / (draw_mA * H) ** peukert))


def lifetime_breakdown(hours: float) -> Lifetime:
    """Split whole hours into years (365 days), days and hours."""
    h = int(hours)
    return Lifetime(h // (24 * 365), (h // 24) % 365, h % 24)
