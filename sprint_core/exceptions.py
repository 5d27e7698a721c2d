"""Exception hierarchy for the sprint dashboard."""


class DashboardError(Exception):
    """Base exception for dashboard errors."""

    pass


class IngestionError(DashboardError):
    """An uploaded file could not be turned into records."""

    pass


class RecordParseError(IngestionError):
    """The CSV parser reported a row-level error."""

    pass


class RecordReadError(IngestionError):
    """The uploaded file could not be read or decoded."""

    pass


class NothingToExportError(DashboardError):
    """No filtered records are available to export."""

    pass


class ChartDisposedError(DashboardError):
    """A chart handle was used after it was disposed."""

    pass


class UnknownFilterError(DashboardError):
    """Filter name is not one of the five filterable fields."""

    pass


class UnknownEventError(DashboardError):
    """No handler is registered for the dispatched event."""

    pass


class InvalidFilterValueError(DashboardError):
    """Filter value is not present in the current record store."""

    pass
