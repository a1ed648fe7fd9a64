"""
RingStat: shot-group statistics and multi-session aggregation for
shooting-club dashboards fed by electronic scoring hardware.
"""

__version__ = "0.1.0"
