"""Error taxonomy for the report editor."""


class ReportEditorError(Exception):
    """Base class for report editor errors."""


class SandboxUnavailable(ReportEditorError):
    """The sandbox's internal document cannot be accessed."""


class MalformedChartState(ReportEditorError):
    """Dataset value counts disagree with the chart's label count."""


class SerializationMismatch(ReportEditorError):
    """A live chart has no matching constructor script in the markup."""


class ChartNotFound(ReportEditorError, KeyError):
    """No live chart is registered under the given id."""
