"""
Analytics module for FlightRadar.

NumPy summaries of receiver coverage and session statistics.
"""

from flightradar.analytics.coverage_analysis import (
    CoverageAnalyzer,
    CoverageSummary,
    StatisticsSummary,
    bearings_from,
    summarize_statistics,
)

__all__ = [
    'CoverageAnalyzer',
    'CoverageSummary',
    'StatisticsSummary',
    'bearings_from',
    'summarize_statistics',
]
