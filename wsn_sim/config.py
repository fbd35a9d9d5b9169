"""
Configuration and Constants for the Mesh WSN Simulation.
"""

# =============================================================================
# TIME BASE
# =============================================================================

TICKS_PER_SECOND = 100  # 1 tick = 10 ms
TICKS_PER_HOUR = 3600 * TICKS_PER_SECOND

# =============================================================================
# CLUSTERING PROTOCOL TIMING (in ticks)
# =============================================================================

MESH_INTERVAL = 1 * TICKS_PER_SECOND  # one beacon round
MESH_STABILIZATION_TIME = 20 * MESH_INTERVAL
ELECTION_ROUND = 3  # rounds of neighbor discovery before the first election
LISTEN_GUARD = 2  # ticks a sleeping subscriber wakes before its CH beacon

# =============================================================================
# RADIO (CC2420-like currents)
# =============================================================================

RADIO_RANGE = 30.0  # meters
RADIO_BITRATE = 250_000  # bits per second (IEEE 802.15.4)
PACKET_SIZE = 32  # bytes
TX_CURRENT_mA = 17.4
RX_CURRENT_mA = 18.8
SLEEP_CURRENT_mA = 0.02

# Corruption probability grows with (d / range) ** PATH_LOSS_EXPONENT
MAX_CORRUPTION_PROBABILITY = 0.2
PATH_LOSS_EXPONENT = 2

# =============================================================================
# BATTERY
# =============================================================================

BATTERY_CR2032_COIN = {'name': 'CR2032 coin', 'capacity_mAh': 240.0, 'drainage_time_h': 1263.0}
BATTERY_2XE91_AA = {'name': '2x E91 AA', 'capacity_mAh': 2500.0, 'drainage_time_h': 250.0}

BATTERY = BATTERY_2XE91_AA
PEUKERT_EXPONENT = 1.15

# =============================================================================
# POPULATION
# =============================================================================

N_DEVICES = 50
AREA_WIDTH = 100  # meters
AREA_HEIGHT = 100
SIM_DURATION = 60 * MESH_INTERVAL
SEED = 42
