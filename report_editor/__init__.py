"""
Report Editor: edit rendered HTML reports with live charts and export them standalone.
"""

__version__ = "0.1.0"

from report_editor.core.chart import ChartDescriptor, ChartType, Dataset
from report_editor.core.edit_mode import EditModeController, EditSession
from report_editor.core.errors import (
    ChartNotFound,
    MalformedChartState,
    ReportEditorError,
    SandboxUnavailable,
    SerializationMismatch,
)
from report_editor.core.registry import ChartRegistry
from report_editor.core.reorder import SectionReorderController
from report_editor.core.report_editor import ReportEditor
from report_editor.core.sandbox import ChartInstance, Rect, SandboxHost, Selection
from report_editor.core.theme import StyleThemeApplier
from report_editor.core.toolbar import TextFormattingToolbar


def edit_file(path, **kwargs):  # type: ignore[no-untyped-def]
    """Convenience function to open a report file in a ReportEditor."""
    return ReportEditor.from_file(path, **kwargs)


__all__ = [
    "ChartType",
    "Dataset",
    "ChartDescriptor",
    "ChartInstance",
    "SandboxHost",
    "Selection",
    "Rect",
    "ChartRegistry",
    "SectionReorderController",
    "TextFormattingToolbar",
    "StyleThemeApplier",
    "EditSession",
    "EditModeController",
    "ReportEditor",
    "ReportEditorError",
    "SandboxUnavailable",
    "MalformedChartState",
    "SerializationMismatch",
    "ChartNotFound",
    "edit_file",
    "__version__",
]
