"""Exceptions raised by legsync.

Malformed broker input never raises; it degrades to None fields, dropped rows
or a Custom classification. These exceptions signal caller mistakes only.
"""


class LegSyncError(Exception):
    """Base class for legsync errors."""


class EmptyLegGroupError(LegSyncError, ValueError):
    """Classifier or risk calculator called with no legs."""


class ReconciliationError(LegSyncError):
    """A leg was assigned twice or never assigned during reconciliation."""
