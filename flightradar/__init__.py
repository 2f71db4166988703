"""
FlightRadar - live ADS-B state fusion for a local receiver.

Polls a readsb feed, keeps per-aircraft trails, coverage samples and
session statistics, and enriches selected aircraft with route info and
photos under per-aircraft throttling.
"""

__version__ = '1.0.0'
