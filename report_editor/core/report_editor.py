"""ReportEditor: load, edit and re-export a self-contained HTML report."""

import html
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from report_editor.core.chart import ChartDescriptor
from report_editor.core.edit_mode import EditModeController
from report_editor.core.errors import SandboxUnavailable
from report_editor.core.registry import ChartRegistry
from report_editor.core.reorder import SectionReorderController
from report_editor.core.sandbox import Rect, SandboxHost
from report_editor.core.theme import StyleThemeApplier
from report_editor.core.toolbar import TextFormattingToolbar


class ReportEditor:
    """Post-processing editor for an already rendered HTML report.

    ReportEditor provides:
    - A sandbox that re-runs the report's own chart construction scripts
    - Direct text editing with a selection toolbar (bold, italic, size, color)
    - Drag-and-drop reordering of top-level sections
    - A chart data editor that re-renders charts live
    - Global font, background and accent theming
    - Export back to one standalone HTML document

    Parameters
    ----------
    html : str, optional
        The report to load. Can be loaded later with ``load``.
    frame_rect : Rect, optional
        Where the sandbox is placed in the outer page, for toolbar placement.
    toolbar_offset : float
        Vertical gap between a selection and the toolbar.

    Examples
    --------
    >>> editor = ReportEditor(report_html)
    >>> editor.start_editing()
    >>> chart = editor.select_chart("revenue")
    >>> chart.set_value(0, 1, 25)
    >>> editor.update_chart(chart)
    >>> new_html = editor.save()
    """

    def __init__(
        self,
        html: Optional[str] = None,
        frame_rect: Optional[Rect] = None,
        toolbar_offset: float = 48,
    ) -> None:
        self.sandbox = SandboxHost()
        self.registry = ChartRegistry(self.sandbox)
        self.edit_mode = EditModeController(self.sandbox, self.registry)
        self.reorder = SectionReorderController(self.sandbox)
        self.toolbar = TextFormattingToolbar(
            self.sandbox,
            is_editing=lambda: self.edit_mode.is_editing,
            frame_rect=frame_rect,
            offset=toolbar_offset,
        )
        self.theme = StyleThemeApplier(self.sandbox)
        self.selected_chart: Optional[ChartDescriptor] = None
        self._original_html: Optional[str] = None
        self._document: Optional[str] = None
        self._baseline: Optional[str] = None
        self._modified = False
        if html is not None:
            self.load(html)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "ReportEditor":
        return cls(Path(path).read_text(encoding="utf-8"), **kwargs)

    @property
    def document(self) -> Optional[str]:
        """The last committed document (the known-good copy)."""
        return self._document

    @property
    def is_editing(self) -> bool:
        return self.edit_mode.is_editing

    def load(self, html: str) -> None:
        """Make ``html`` the canonical document, abandoning any edit session."""
        self._original_html = html
        self._modified = False
        self._show(html)

    def _show(self, html: str) -> None:
        self._end_session()
        self._document = html
        self.sandbox.load(html)
        self.sandbox.settle()

    def _end_session(self) -> None:
        self.toolbar.detach()
        self.reorder.disable()
        self.edit_mode.disable_editing()
        self.selected_chart = None

    def start_editing(self) -> bool:
        """Enter edit mode and wire up charts, toolbar and drag handles."""
        if self.is_editing:
            return True
        self.sandbox.settle()
        if not self.edit_mode.enable_editing():
            return False
        self.registry.discover()
        self._baseline = self.edit_mode.extract_html()
        self.registry.bind_click_handlers(self._on_chart_selected)
        self.toolbar.attach()
        self.reorder.enable()
        return True

    def _on_chart_selected(self, chart: ChartDescriptor) -> None:
        self.selected_chart = chart

    def select_chart(self, chart_id: str) -> ChartDescriptor:
        self.selected_chart = self.registry.get(chart_id)
        return self.selected_chart

    def update_chart(self, chart: ChartDescriptor) -> bool:
        """Push an edited descriptor to its live chart."""
        updated = self.registry.update(chart)
        if updated:
            self.selected_chart = chart
        return updated

    def save(self) -> Optional[str]:
        """Extract the edited document, leave edit mode and commit the result.

        Raises
        ------
        SandboxUnavailable
            If the sandbox cannot be read. The previous document is kept.
        """
        if self.edit_mode.session is None:
            return self._document
        try:
            new_html = self.edit_mode.extract_html()
        except SandboxUnavailable:
            logger.error("Save aborted; keeping the previous document")
            raise
        if new_html != self._baseline:
            self._modified = True
        self._show(new_html)
        return new_html

    def cancel(self) -> None:
        """Discard the live edits and reload the last committed document."""
        if self._document is None:
            self._end_session()
            return
        self._show(self._document)

    def toggle_edit_mode(self) -> Optional[str]:
        if self.is_editing:
            return self.save()
        self.start_editing()
        return None

    def reset(self) -> None:
        """Return to the document that was originally loaded."""
        if self._original_html is not None:
            self._show(self._original_html)
        self._modified = False

    def has_changes(self) -> bool:
        """Whether a save has committed edits since the original document was loaded."""
        return self._modified

    def to_file(self, path: Union[str, Path]) -> None:
        """Write the committed document to ``path``."""
        if self._document is None:
            raise ValueError("No document loaded")
        Path(path).write_text(self._document, encoding="utf-8")

    def _repr_html_(self) -> str:
        """Jupyter auto-display."""
        return self.to_html()

    def display(self) -> None:
        """Display in IPython/Jupyter."""
        from IPython.display import HTML
        from IPython.display import display as ipy_display

        ipy_display(HTML(self.to_html()))

    def to_html(self, height: int = 800) -> str:
        """Preview iframe holding the committed document."""
        srcdoc = html.escape(self._document or "", quote=True)
        return (
            f'<iframe class="report-editor-preview" srcdoc="{srcdoc}" '
            f'sandbox="allow-scripts" style="width:100%;height:{height}px;border:0;"></iframe>'
        )
