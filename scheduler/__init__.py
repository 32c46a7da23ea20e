"""
Scheduler package for the economic calendar watch.

This package contains:
- Forecast comparison
- Day-scoped state cache
- Change detection (digest planning and poll diffing)
- Message formatting
- Notification sinks
- Dual-cadence scheduler service
"""

__version__ = "1.0.0"
