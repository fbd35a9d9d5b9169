import pytest
from wsn_sim.device import Device
from wsn_sim.mesh import MeshWSN
from wsn_sim.sim_env import SimEnv


class RecordingDevice(Device):
    """Device that records its radio and timer callbacks."""

    def __init__(self, network, x=0.0, y=0.0):
        self.rx = []
        self.tx = []
        self.fired = []
        super().__init__(network, x, y, sleep_mA=0.0)

    def radio_callback_rx(self, packet, strength, corrupted):
        self.rx.append((packet, strength, corrupted))

    def radio_callback_tx(self, packet):
        self.tx.append(packet)

    def timer_callback(self, timestamp):
        self.fired.append(timestamp)


class ManualClock:
    """Stand-in clock for ledger tests that need large timestamps."""

    def __init__(self, t=0):
        self.t = t

    def get_timestamp(self):
        return self.t


@pytest.fixture
def env():
    return SimEnv()


@pytest.fixture
def mesh(env):
    # no random corruption so radio tests are deterministic
    return MeshWSN(env=env, seed=1, max_corruption=0.0, interval=20)


@pytest.fixture
def make_device(mesh):
    def _make(x=0.0, y=0.0):
        return RecordingDevice(mesh, x, y)
    return _make


@pytest.fixture
def clock():
    return ManualClock()
