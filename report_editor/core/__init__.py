"""Core document, chart and editing model."""

from report_editor.core.chart import ChartDescriptor, ChartType, Dataset
from report_editor.core.sandbox import ChartInstance, Event, Rect, SandboxHost, Selection

__all__ = [
    "ChartType",
    "Dataset",
    "ChartDescriptor",
    "SandboxHost",
    "ChartInstance",
    "Event",
    "Rect",
    "Selection",
]
