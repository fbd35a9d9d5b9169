"""
Device Module.
A positioned sensor node owning one Radio, one Timer and one power ledger.
"""

import numpy as np
from typing import Optional, FrozenSet, Callable
from .config import SLEEP_CURRENT_mA
from .power import PowerLog
from .radio import Radio, RadioPacket
from .sim_env import Runnable


class Timer(Runnable):
    """One-shot or periodic timer firing `callback(timestamp)` on its deadline."""

    def __init__(self, device, callback: Callable[[int], None]):
        self.device = device
        self.callback = callback
        self.deadline: Optional[int] = None
        self.period = 0
        device.env.attach(self)

    @property
    def running(self) -> bool:
        return self.deadline is not None

    def start(self, delay: int, repeat: bool = False):
        self.deadline = self.device.env.get_timestamp() + max(1, delay)
        self.period = max(1, delay) if repeat else 0

    def stop(self):
        self.deadline = None
        self.period = 0

    def step(self, timestamp: int):
        if self.deadline is None or timestamp < self.deadline:
            return
        if self.period:
            self.deadline = timestamp + self.period
        else:
            self.deadline = None
        self.callback(timestamp)


class Device(Runnable):
    """
    Base sensor node.

    The device registers itself in the network's arena and is referred to by
    its integer `index` everywhere else (neighbor sets, connections).
    `step`, `radio_callback_tx`, `radio_callback_rx` and `timer_callback`
    are extension points for protocol-aware subclasses.
    """

    def __init__(self, network, x: float = 0.0, y: float = 0.0,
                 sleep_mA: float = SLEEP_CURRENT_mA):
        self.network = network
        self.env = network.env
        self.pos = np.array([x, y], dtype=float)
        self.power = PowerLog(self.env)

        self.index = network.add_device(self)
        self.env.attach(self)
        self.radio = Radio(self)
        self.timer = Timer(self, self.timer_callback)

        # MCU/radio sleep baseline, never removed
        self.register_power_drain(sleep_mA)

    def __repr__(self):
        return f"{type(self).__name__}(index={self.index}, pos=({self.pos[0]:.1f}, {self.pos[1]:.1f}))"

    def get_radio(self) -> Radio:
        return self.radio

    # -------- Position --------

    def get_distance_to(self, other: 'Device') -> float:
        return float(np.linalg.norm(self.pos - other.pos))

    def move_to(self, x: float, y: float):
        self.pos[:] = (x, y)

    # -------- Protocol hooks --------

    def step(self, timestamp: int):
        pass

    def radio_callback_tx(self, packet: RadioPacket):
        pass

    def radio_callback_rx(self, packet: RadioPacket, strength: int, corrupted: bool):
        pass

    def timer_callback(self, timestamp: int):
        pass

    def is_ch(self) -> bool:
        return False

    def get_ch(self) -> Optional[int]:
        """Index of the cluster head this device follows, if any."""
        return None

    @property
    def neighbors(self) -> FrozenSet[int]:
        return frozenset()

    # -------- Power --------

    def register_power_drain(self, power_mA: float):
        self.power.register_drain(power_mA)

    def remove_power_drain(self, power_mA: float):
        self.power.remove_drain(power_mA)

    def get_power_usage(self, first: int = 0, last: Optional[int] = None,
                        sample_interval: int = 1) -> np.ndarray:
        return self.power.get_power_usage(first, last, sample_interval)

    def get_power_usage_avg(self, first: int = 0, last: Optional[int] = None,
                            peukert: float = 1.0) -> float:
        return self.power.get_power_usage_avg(first, last, peukert)
