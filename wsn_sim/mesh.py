"""
Mesh Statistics Aggregator.

MeshWSN counts protocol events as they are logged and, on demand, walks the
device and connection collections to derive network-wide statistics and
battery-exhaustion projections.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass, field, asdict
from typing import Dict, Optional, Tuple
from .config import (MESH_INTERVAL, MESH_STABILIZATION_TIME, TICKS_PER_HOUR, BATTERY,
                     PEUKERT_EXPONENT, N_DEVICES, AREA_WIDTH, AREA_HEIGHT, SEED)
from .cluster import ClusterMeshDev
from .network import WSN
from .power import BatteryProfile, Lifetime, project_lifetime_h, lifetime_breakdown
from .sim_env import SimEnv, ConfigurationError
from .topology import place_devices

logger = logging.getLogger(__name__)


def _ratio(num: float, den: float) -> Optional[float]:
    return num / den if den else None


@dataclass
class MeshStatistics:
    """Derived network statistics. None means "no data" (zero denominator)."""
    transmits: int
    receives: int
    corrupted: int
    cluster_heads: int
    device_count: int
    rx_per_tx: Optional[float]
    corruption_rate: Optional[float]
    ch_rate: float
    loners: int
    connections: int
    symmetric_rate: Optional[float]
    ch_subscribers: Dict[int, int] = field(default_factory=dict)
    max_ch_subs: Optional[int] = None
    avg_ch_subs: Optional[float] = None
    useless_chs: int = 0
    avg_duty_cycle: float = 0.0
    window_h: Optional[float] = None
    avg_usage_mAh: Optional[float] = None
    max_usage_mAh: Optional[float] = None
    min_usage_mAh: Optional[float] = None
    max_draw_mA: Optional[float] = None
    min_draw_mA: Optional[float] = None
    first_death_h: Optional[float] = None
    last_death_h: Optional[float] = None

    @property
    def first_death(self) -> Optional[Lifetime]:
        return lifetime_breakdown(self.first_death_h) if self.first_death_h is not None else None

    @property
    def last_death(self) -> Optional[Lifetime]:
        return lifetime_breakdown(self.last_death_h) if self.last_death_h is not None else None

    def as_series(self) -> pd.Series:
        """Scalar metrics as a pandas Series (subscriber tally excluded)."""
        data = asdict(self)
        data.pop('ch_subscribers')
        return pd.Series(data, dtype=object)


class MeshWSN(WSN):
    """
    Clustered mesh network with event counters.

    Counters only grow, and only through the log_* calls; each real
    occurrence must be logged exactly once.
    """

    def __init__(self, env: Optional[SimEnv] = None, seed: int = SEED,
                 interval: int = MESH_INTERVAL, **kwargs):
        super().__init__(env=env, seed=seed, **kwargs)
        self.interval = interval
        self.tx_count = 0
        self.rx_count = 0
        self.corrupted_count = 0
        self.ch_count = 0

    def log_transmit(self):
        self.tx_count += 1

    def log_receive(self):
        self.rx_count += 1

    def log_corruption(self):
        self.corrupted_count += 1

    def log_cluster_head(self, device):
        self.ch_count += 1

    def step(self, timestamp: int):
        super().step(timestamp)
        if timestamp % self.interval == 0:
            self.refresh_connections()

    # -------- Statistics --------

    def _subscriber_tally(self) -> Tuple[Dict[int, int], int]:
        subscribers: Dict[int, int] = {}
        symmetric = 0
        for conn in self.connections:
            if conn.symmetric:
                symmetric += 1
            for idx in conn.endpoints():
                if self.devices[idx].is_ch():
                    subscribers[idx] = subscribers.get(idx, 0) + 1
        return subscribers, symmetric

    def _power_window(self, stabilization: int) -> Optional[Tuple[int, int]]:
        last = self.env.get_timestamp()
        if last <= stabilization:
            return None
        return stabilization, last

    def compute_statistics(self, stabilization: int = MESH_STABILIZATION_TIME,
                           battery: Optional[BatteryProfile] = None,
                           peukert: float = PEUKERT_EXPONENT) -> MeshStatistics:
        """
        Derive network statistics from counters, devices and connections.

        Parameters:
        -----------
        stabilization : int
            Ticks excluded from power averaging (start-up transients)
        battery : BatteryProfile
            Battery used for exhaustion projection (default: config.BATTERY)
        peukert : float
            Peukert exponent for averaging and projection
        """
        n = len(self.devices)
        if n == 0:
            logger.error("Statistics requested for a network without devices")
            raise ConfigurationError("network has no devices")
        if battery is None:
            battery = BatteryProfile.from_config(BATTERY)
        self.refresh_connections()

        loners = sum(1 for d in self.devices if len(d.neighbors) == 0)
        elected = [d.index for d in self.devices if d.is_ch()]
        subscribers, symmetric = self._subscriber_tally()
        total_subs = sum(subscribers.values())

        stats = MeshStatistics(
            transmits=self.tx_count,
            receives=self.rx_count,
            corrupted=self.corrupted_count,
            cluster_heads=self.ch_count,
            device_count=n,
            rx_per_tx=_ratio(self.rx_count, self.tx_count),
            corruption_rate=_ratio(self.corrupted_count, self.rx_count),
            ch_rate=self.ch_count / n,
            loners=loners,
            connections=len(self.connections),
            symmetric_rate=_ratio(symmetric, len(self.connections)),
            ch_subscribers=subscribers,
            max_ch_subs=max(subscribers.values()) if subscribers else None,
            avg_ch_subs=_ratio(total_subs, len(elected)),
            # elected heads nobody is connected to
            useless_chs=max(0, len(elected) - len(subscribers)),
            avg_duty_cycle=float(np.mean([d.radio.get_total_duty_cycle() for d in self.devices])),
        )

        window = self._power_window(stabilization)
        if window is None:
            return stats
        first, last = window
        window_h = (last - first) / TICKS_PER_HOUR
        usage = np.array([d.get_power_usage_avg(first, last, peukert) for d in self.devices])
        draw = usage / window_h

        stats.window_h = window_h
        stats.avg_usage_mAh = float(usage.mean())
        stats.max_usage_mAh = float(usage.max())
        stats.min_usage_mAh = float(usage.min())
        stats.max_draw_mA = float(draw.max())
        stats.min_draw_mA = float(draw.min())
        # highest draw dies first
        stats.first_death_h = project_lifetime_h(stats.max_draw_mA, battery, peukert)
        stats.last_death_h = project_lifetime_h(stats.min_draw_mA, battery, peukert)
        return stats

    def device_table(self, stabilization: int = MESH_STABILIZATION_TIME,
                     peukert: float = PEUKERT_EXPONENT) -> pd.DataFrame:
        """Per-device state: position, cluster role, radio activity and power."""
        self.refresh_connections()
        window = self._power_window(stabilization)
        rows = []
        for d in self.devices:
            usage = d.get_power_usage_avg(*window, peukert) if window else np.nan
            rows.append({
                'device': d.index,
                'x': d.pos[0],
                'y': d.pos[1],
                'is_ch': d.is_ch(),
                'ch': d.get_ch(),
                'neighbors': len(d.neighbors),
                'tx_count': d.radio.tx_count,
                'rx_count': d.radio.rx_count,
                'duty_cycle': d.radio.get_total_duty_cycle(),
                'tx_duty_cycle': d.radio.get_tx_duty_cycle(),
                'usage_mAh': usage,
            })
        return pd.DataFrame(rows).set_index('device')


def build_network(n_devices: int = N_DEVICES, area_width: float = AREA_WIDTH,
                  area_height: float = AREA_HEIGHT, seed: int = SEED,
                  env: Optional[SimEnv] = None, network_kwargs: Optional[dict] = None,
                  **device_kwargs) -> MeshWSN:
    """Create a MeshWSN populated with ClusterMeshDevs at random positions."""
    if n_devices < 1:
        logger.error("Refusing to build a network of %d devices", n_devices)
        raise ConfigurationError(f"need at least one device, got {n_devices}")
    network_kwargs = dict(network_kwargs or {})
    if 'interval' in device_kwargs:
        network_kwargs.setdefault('interval', device_kwargs['interval'])
    wsn = MeshWSN(env=env, seed=seed, **network_kwargs)
    for x, y in place_devices(n_devices, area_width, area_height, wsn.rng):
        ClusterMeshDev(wsn, x, y, **device_kwargs)
    logger.info("Built network: %d devices in %gx%g m", n_devices, area_width, area_height)
    return wsn
