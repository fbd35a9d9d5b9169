"""
Clustering Device.

Every device beacons once per round at its own slot. While searching, the
radio listens continuously to discover neighbors and cluster heads (CHs).
From ELECTION_ROUND on, an unsubscribed device whose degree beats all of its
unsubscribed neighbors elects itself CH. After the stabilization period a
subscriber only wakes around its CH's beacon and for its own beacon.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Set, Dict, FrozenSet
from .config import MESH_INTERVAL, MESH_STABILIZATION_TIME, ELECTION_ROUND, LISTEN_GUARD
from .device import Device
from .radio import RadioPacket

logger = logging.getLogger(__name__)


@dataclass
class Beacon:
    src: int
    is_ch: bool
    ch: Optional[int]
    degree: int
    offset: int  # beacon slot within the round


class ClusterMeshDev(Device):

    def __init__(self, network, x: float = 0.0, y: float = 0.0,
                 interval: int = MESH_INTERVAL,
                 stabilization: int = MESH_STABILIZATION_TIME,
                 election_round: int = ELECTION_ROUND,
                 listen_guard: int = LISTEN_GUARD, **kwargs):
        super().__init__(network, x, y, **kwargs)
        self.interval = interval
        self.stabilization = stabilization
        self.election_round = election_round
        self.listen_guard = listen_guard
        self.beacon_offset = int(network.rng.integers(0, interval))

        self._neighbors: Set[int] = set()
        self.neighbor_degree: Dict[int, int] = {}
        self.neighbor_covered: Dict[int, bool] = {}  # neighbor is CH or subscribed

        self._is_ch = False
        self.ch: Optional[int] = None
        self._ch_strength = -1
        self._ch_offset: Optional[int] = None

        self._seq = 0
        self._round = 0

        self.radio.listen()
        self.timer.start(interval, repeat=True)

    # -------- Cluster state --------

    def is_ch(self) -> bool:
        return self._is_ch

    def get_ch(self) -> Optional[int]:
        return self.ch

    @property
    def neighbors(self) -> FrozenSet[int]:
        return frozenset(self._neighbors)

    @property
    def degree(self) -> int:
        return len(self._neighbors)

    @property
    def subscribed(self) -> bool:
        return self.ch is not None

    def is_loner(self) -> bool:
        return not self._neighbors

    def become_cluster_head(self):
        if self._is_ch:
            return
        self._is_ch = True
        self.ch = None
        self._ch_offset = None
        self.radio.listen()
        logger.debug("Device %d elected CH (degree %d)", self.index, self.degree)
        self.network.log_cluster_head(self)

    def _wins_election(self) -> bool:
        if self._is_ch or self.subscribed or not self._neighbors:
            return False
        for n in self._neighbors:
            if self.neighbor_covered.get(n, False):
                continue
            deg = self.neighbor_degree.get(n, 0)
            if deg > self.degree or (deg == self.degree and n < self.index):
                return False
        return True

    # -------- Scheduling --------

    def _duty_cycling(self, timestamp: int) -> bool:
        return timestamp >= self.stabilization and self.subscribed

    def _in_listen_window(self, phase: int) -> bool:
        d = (phase - self._ch_offset) % self.interval
        return d <= self.listen_guard or d >= self.interval - self.listen_guard

    def step(self, timestamp: int):
        phase = timestamp % self.interval
        if self._duty_cycling(timestamp):
            if self._in_listen_window(phase):
                self.radio.listen()
            else:
                self.radio.sleep()
        if phase == self.beacon_offset:
            self._send_beacon()

    def timer_callback(self, timestamp: int):
        self._round += 1
        if self._round >= self.election_round and self._wins_election():
            self.become_cluster_head()

    def _send_beacon(self):
        self._seq += 1
        beacon = Beacon(self.index, self._is_ch, self.ch, self.degree, self.beacon_offset)
        self.radio.transmit(RadioPacket(src=self.index, payload=beacon, seq=self._seq))

    # -------- Radio --------

    def radio_callback_rx(self, packet: RadioPacket, strength: int, corrupted: bool):
        if corrupted or not isinstance(packet.payload, Beacon):
            return
        beacon = packet.payload
        self._neighbors.add(beacon.src)
        self.neighbor_degree[beacon.src] = beacon.degree
        self.neighbor_covered[beacon.src] = beacon.is_ch or beacon.ch is not None

        if not beacon.is_ch or self._is_ch:
            return
        if beacon.src == self.ch:
            self._ch_strength = strength
            self._ch_offset = beacon.offset
        elif self.ch is None or (strength > self._ch_strength
                                 and self.network.env.get_timestamp() < self.stabilization):
            # CHs may change only while the network is still settling
            logger.debug("Device %d subscribes to CH %d (strength %d)", self.index, beacon.src, strength)
            self.ch = beacon.src
            self._ch_strength = strength
            self._ch_offset = beacon.offset
