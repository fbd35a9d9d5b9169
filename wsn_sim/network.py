"""
Wireless Medium and Device Arena.

The WSN owns every device (indexed registry) and the current connection set,
and plays the role of the shared air: it decides which listening devices hear
a transmission, with what strength, and whether their copy is corrupted.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Dict, Set, Iterable, Tuple, Union, Optional
from .config import RADIO_RANGE, MAX_CORRUPTION_PROBABILITY, PATH_LOSS_EXPONENT, SEED
from .radio import Radio, RadioPacket, RadioState
from .sim_env import SimEnv, Runnable, ConfigurationError
from .topology import Connection, in_range, derive_connections

logger = logging.getLogger(__name__)


@dataclass
class Transmission:
    """A packet currently on air."""
    sender: Radio
    packet: RadioPacket
    end: int
    receivers: Dict[int, int] = field(default_factory=dict)  # device index -> strength
    corrupted: Set[int] = field(default_factory=set)


class WSN(Runnable):
    """
    Device arena plus radio propagation.

    Attaches itself to the environment on construction, ahead of any device,
    so packets that finish at tick t are delivered before devices step at t.
    """

    def __init__(self, env: Optional[SimEnv] = None, seed: int = SEED,
                 radio_range: float = RADIO_RANGE,
                 max_corruption: float = MAX_CORRUPTION_PROBABILITY,
                 path_loss_exponent: float = PATH_LOSS_EXPONENT):
        self.env = env if env is not None else SimEnv()
        self.rng = np.random.default_rng(seed)
        self.radio_range = radio_range
        self.max_corruption = max_corruption
        self.path_loss_exponent = path_loss_exponent

        self.devices: List = []
        self.connections: List[Connection] = []
        self._connections_supplied = False  # set_connections triples are kept as given
        self._in_flight: List[Transmission] = []

        self.env.attach(self)

    # -------- Arena --------

    def add_device(self, device) -> int:
        """Register a device and return its index handle."""
        if any(d is device for d in self.devices):
            raise ConfigurationError(f"{device!r} is already part of this network")
        self.devices.append(device)
        return len(self.devices) - 1

    def get_device(self, index: int):
        return self.devices[index]

    def get_device_count(self) -> int:
        return len(self.devices)

    def positions(self) -> np.ndarray:
        if not self.devices:
            return np.empty((0, 2))
        return np.array([d.pos for d in self.devices])

    # -------- Propagation --------

    def strength(self, distance: float) -> int:
        """Received strength 0-255, falling linearly to 0 at the range edge."""
        return int(round(255 * max(0.0, 1.0 - distance / self.radio_range)))

    def corruption_probability(self, distance: float) -> float:
        return self.max_corruption * (distance / self.radio_range) ** self.path_loss_exponent

    def start_transmission(self, radio: Radio, packet: RadioPacket, end: int):
        """
        Put a packet on air until tick `end`.

        Every device listening and in range at the start is a receiver.
        Receivers shared with another packet on air get a corrupted copy of
        both, as does a sender that was itself receiving.
        """
        sender = radio.device
        tx = Transmission(radio, packet, end)

        idx, dists = in_range(self.positions(), sender.pos, self.radio_range)
        for i, d in zip(idx, dists):
            i = int(i)
            if i == sender.index or not self.devices[i].radio.listening:
                continue
            tx.receivers[i] = self.strength(d)
            if self.rng.random() < self.corruption_probability(d):
                tx.corrupted.add(i)

        for other in self._in_flight:
            shared = tx.receivers.keys() & other.receivers.keys()
            tx.corrupted |= shared
            other.corrupted |= shared
            if sender.index in other.receivers:
                other.corrupted.add(sender.index)

        self._in_flight.append(tx)

    def step(self, timestamp: int):
        if not self.devices:
            logger.error("Network stepped at t=%d without devices", timestamp)
            raise ConfigurationError("network has no devices")
        if not self._in_flight:
            return
        done = [tx for tx in self._in_flight if tx.end <= timestamp]
        if not done:
            return
        self._in_flight = [tx for tx in self._in_flight if tx.end > timestamp]
        for tx in done:
            for i, strength in tx.receivers.items():
                radio = self.devices[i].radio
                if radio.state == RadioState.SLEEP:
                    continue
                radio.receive(tx.packet, strength, i in tx.corrupted)
            tx.sender.finish_transmit()

    # -------- Connections --------

    def _handle(self, device) -> int:
        index = device if isinstance(device, (int, np.integer)) else device.index
        if not 0 <= index < len(self.devices):
            raise ConfigurationError(f"Unknown device handle {index}")
        return int(index)

    def set_connections(self, triples: Iterable[Tuple[Union[int, object], Union[int, object], bool]]):
        """
        Replace the connection set with (device A, device B, symmetric) triples.
        Supplied triples are kept until update_connections() is called.
        """
        self.connections = [Connection(self._handle(a), self._handle(b), bool(sym))
                            for a, b, sym in triples]
        self._connections_supplied = True

    def update_connections(self):
        """Re-derive connections from the devices' cluster state."""
        self.connections = derive_connections(self.devices)
        self._connections_supplied = False
        logger.debug("t=%d: %d connections", self.env.get_timestamp(), len(self.connections))

    def refresh_connections(self):
        """Bring derived connections up to date; supplied triples are left alone."""
        if not self._connections_supplied:
            self.update_connections()

    # -------- Event hooks (overridden by the statistics aggregator) --------

    def log_transmit(self):
        pass

    def log_receive(self):
        pass

    def log_corruption(self):
        pass

    def log_cluster_head(self, device):
        pass
