"""
API module for FlightRadar.

Provides REST endpoints for:
- Visible aircraft, trails and enrichment selection
- Receiver coverage
- Statistics, status and polling control
"""

from flightradar.api.aircraft import aircraft_bp
from flightradar.api.coverage import coverage_bp
from flightradar.api.metrics import metrics_bp

__all__ = ['aircraft_bp', 'coverage_bp', 'metrics_bp']
