"""
Radio Model.

A half-duplex transceiver with three states. Listening and transmitting
register their current with the owning device's power ledger. Time spent in
each state is charged whenever the state changes, so the duty cycle does not
depend on the order in which the environment steps its entities.
"""

import math
from enum import Enum
from dataclasses import dataclass
from typing import Any, Optional
from .config import TX_CURRENT_mA, RX_CURRENT_mA, RADIO_BITRATE, TICKS_PER_SECOND, PACKET_SIZE


class RadioState(Enum):
    SLEEP = 'sleep'
    RX = 'rx'
    TX = 'tx'


@dataclass
class RadioPacket:
    src: int
    payload: Any = None
    length: int = PACKET_SIZE  # bytes
    seq: int = 0


class Radio:
    """
    Transceiver owned by a single Device.

    The network medium decides who hears a transmission and whether the copy
    is corrupted; the radio only keeps state, power and activity counters.
    """

    def __init__(self, device, tx_mA: float = TX_CURRENT_mA, rx_mA: float = RX_CURRENT_mA,
                 bitrate: int = RADIO_BITRATE):
        self.device = device
        self.tx_mA = tx_mA
        self.rx_mA = rx_mA
        self.bitrate = bitrate

        self.state = RadioState.SLEEP
        self._resume_state = RadioState.SLEEP
        self._tx_packet: Optional[RadioPacket] = None

        self._start = self._now()
        self._since = self._start
        self.tx_ticks = 0
        self.rx_ticks = 0
        self.tx_count = 0
        self.rx_count = 0

    def _now(self) -> int:
        return self.device.env.get_timestamp()

    @property
    def busy(self) -> bool:
        return self.state == RadioState.TX

    @property
    def listening(self) -> bool:
        return self.state == RadioState.RX

    def airtime(self, packet: RadioPacket) -> int:
        """Ticks on air for a packet, at least one."""
        return max(1, math.ceil(packet.length * 8 / self.bitrate * TICKS_PER_SECOND))

    def _account(self):
        """Charge the ticks since the last state change to the current state."""
        now = self._now()
        spent = now - self._since
        if self.state == RadioState.TX:
            self.tx_ticks += spent
        elif self.state == RadioState.RX:
            self.rx_ticks += spent
        self._since = now

    # -------- State --------

    def listen(self):
        if self.state == RadioState.TX:
            self._resume_state = RadioState.RX
        elif self.state == RadioState.SLEEP:
            self._account()
            self.device.register_power_drain(self.rx_mA)
            self.state = RadioState.RX

    def sleep(self):
        if self.state == RadioState.TX:
            self._resume_state = RadioState.SLEEP
        elif self.state == RadioState.RX:
            self._account()
            self.device.remove_power_drain(self.rx_mA)
            self.state = RadioState.SLEEP

    # -------- TX --------

    def transmit(self, packet: RadioPacket) -> bool:
        """Start sending a packet. Returns False if already transmitting."""
        if self.busy:
            return False
        self._account()
        self._resume_state = self.state
        if self.state == RadioState.RX:
            self.device.remove_power_drain(self.rx_mA)
        self.device.register_power_drain(self.tx_mA)
        self.state = RadioState.TX

        self._tx_packet = packet
        self.tx_count += 1
        self.device.network.log_transmit()
        self.device.network.start_transmission(self, packet, self._now() + self.airtime(packet))
        return True

    def finish_transmit(self):
        """Called by the medium once the packet has left the air."""
        packet = self._tx_packet
        if packet is None:
            return
        self._tx_packet = None
        self._account()
        self.device.remove_power_drain(self.tx_mA)
        self.state = RadioState.SLEEP
        if self._resume_state == RadioState.RX:
            self.listen()
        self.device.radio_callback_tx(packet)

    # -------- RX --------

    def receive(self, packet: RadioPacket, strength: int, corrupted: bool):
        """Delivery of a packet heard from a peer; corrupted copies still count."""
        self.rx_count += 1
        self.device.network.log_receive()
        if corrupted:
            self.device.network.log_corruption()
        self.device.radio_callback_rx(packet, strength, corrupted)

    # -------- Duty cycle --------

    def _elapsed(self) -> int:
        self._account()
        return self._now() - self._start

    def get_total_duty_cycle(self) -> float:
        """Fraction of elapsed ticks spent transmitting or receiving."""
        elapsed = self._elapsed()
        if elapsed <= 0:
            return 0.0
        return (self.tx_ticks + self.rx_ticks) / elapsed

    def get_tx_duty_cycle(self) -> float:
        elapsed = self._elapsed()
        return self.tx_ticks / elapsed if elapsed > 0 else 0.0

    def get_rx_duty_cycle(self) -> float:
        elapsed = self._elapsed()
        return self.rx_ticks / elapsed if elapsed > 0 else 0.0
