"""
Placement Tracker
Students submit placement records, recruiters verify them,
and an analytics dashboard aggregates the results.

Architecture:
- MongoDB: placement records (the only stored entity)
- services/validation_service: accept or reject payloads, all errors at once
- services/aggregation_service: pure filter/sort/statistics over record snapshots
"""

__version__ = "1.0.0"
