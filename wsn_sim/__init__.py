"""
Clustered Mesh WSN Simulation.
Discrete-tick simulation of sensor devices, their radios and batteries,
and the statistics of a cluster-head election protocol.
"""

__version__ = "0.1.0"
