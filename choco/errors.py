from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors raised by the dashboard core."""


class DataLoadError(DashboardError):
    """The backing data file could not be read or parsed."""


class NoDataError(DashboardError):
    """An aggregate that needs at least one row was asked about an empty table."""


class MalformedRecordError(DashboardError):
    """A raw record could not be turned into a ConsumerRecord."""
