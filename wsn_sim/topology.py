"""
Network Topology Module.
Device placement, pairwise distances and connection derivation.
"""

import numpy as np
from scipy.spatial.distance import cdist
from typing import List, Tuple, Sequence
from dataclasses import dataclass
from .config import AREA_WIDTH, AREA_HEIGHT


@dataclass(frozen=True)
class Connection:
    """Link between two devices, referenced by their arena indices."""
    first: int
    second: int
    symmetric: bool = False

    def endpoints(self) -> Tuple[int, int]:
        return self.first, self.second


def place_devices(n_devices: int, area_width: float = AREA_WIDTH,
                  area_height: float = AREA_HEIGHT, rng: np.random.Generator = None) -> np.ndarray:
    """Uniform random positions, shape (n_devices, 2)."""
    if rng is None:
        rng = np.random.default_rng()
    xs = rng.uniform(0, area_width, n_devices)
    ys = rng.uniform(0, area_height, n_devices)
    return np.column_stack([xs, ys])


def distance_matrix(positions: np.ndarray) -> np.ndarray:
    """Euclidean distance between every pair of positions."""
    positions = np.asarray(positions, dtype=float).reshape(-1, 2)
    return cdist(positions, positions)


def in_range(positions: np.ndarray, origin: np.ndarray, radius: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Indices of positions within `radius` of `origin`, with their distances.
    Indices are returned in ascending order.
    """
    positions = np.asarray(positions, dtype=float).reshape(-1, 2)
    if positions.shape[0] == 0:
        return np.array([], dtype=int), np.array([])
    dists = cdist(np.asarray(origin, dtype=float).reshape(1, 2), positions)[0]
    idx = np.flatnonzero(dists <= radius)
    return idx, dists[idx]


def derive_connections(devices: Sequence) -> List[Connection]:
    """
    One connection per subscriber and the cluster head it follows.

    The link is symmetric when each side lists the other as a neighbor,
    i.e. both have heard each other without corruption.
    """
    connections = []
    for dev in devices:
        ch = dev.get_ch()
        if ch is None or ch == dev.index:
            continue
        head = devices[ch]
        symmetric = ch in dev.neighbors and dev.index in head.neighbors
        connections.append(Connection(dev.index, ch, symmetric))
    return connections
