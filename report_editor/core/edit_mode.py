"""
Edit mode controller and document serializer.

Edit mode makes the sandbox body directly editable and injects the editor
stylesheet. ``extract_html`` is the authoritative way to read the edited
report back: it works on a deep copy of the live document, strips every
editor artifact, and writes the current state of each live chart into the
script that constructs it, so the exported document renders the same
charts with no editor present.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag
from bs4.element import Script
from loguru import logger

from report_editor.core.dom import (
    clone_document,
    element_path,
    follow_path,
    get_style,
    remove_style,
    set_style,
)
from report_editor.core.errors import SandboxUnavailable, SerializationMismatch
from report_editor.core.registry import ChartRegistry
from report_editor.core.reorder import strip_section_artifacts
from report_editor.core.sandbox import (
    ChartInstance,
    SandboxHost,
    inline_scripts,
    resolve_surface,
)
from report_editor.core.scripts import (
    ConstructorCall,
    build_constructor_script,
    find_constructor_calls,
    replace_config,
)
from report_editor.styles.editor_css import DOCTYPE, EDIT_STYLE_ID, edit_mode_css


@dataclass
class EditSession:
    """Transient state of one editing pass over a loaded document."""

    generation: int
    active: bool = True
    live_chart_handles: Dict[str, ChartInstance] = field(default_factory=dict)
    body_outline: Optional[str] = None


class EditModeController:
    """Toggles editability of the sandbox and serializes the edited document.

    State machine: view mode -> ``enable_editing`` -> edit mode -> (save or
    cancel, both handled by the caller) -> ``disable_editing`` -> view mode.
    Chart click handlers and section drag handles are enabled separately.
    """

    def __init__(self, sandbox: SandboxHost, registry: ChartRegistry) -> None:
        self._sandbox = sandbox
        self._registry = registry
        self.session: Optional[EditSession] = None

    @property
    def is_editing(self) -> bool:
        """True while a session is active on the currently loaded document."""
        session = self.session
        return (
            session is not None
            and session.active
            and session.generation == self._sandbox.generation
            and self._sandbox.is_available
        )

    def enable_editing(self) -> bool:
        doc = self._sandbox.document
        if doc is None:
            logger.warning("Sandbox unavailable; edit mode not enabled")
            return False

        body = doc.find("body")
        current = self._current_session()
        outline = current.body_outline if current is not None else get_style(body, "outline")
        body["contenteditable"] = "true"
        set_style(body, "outline", "none")

        if doc.find(id=EDIT_STYLE_ID) is None:
            style = doc.new_tag("style", attrs={"id": EDIT_STYLE_ID})
            style.string = edit_mode_css()
            doc.find("head").append(style)

        self.session = EditSession(
            generation=self._sandbox.generation,
            live_chart_handles=self._registry.handles,
            body_outline=outline,
        )
        logger.debug("Edit mode enabled")
        return True

    def _current_session(self) -> Optional[EditSession]:
        session = self.session
        if session is None or session.generation != self._sandbox.generation:
            return None
        return session

    def disable_editing(self) -> None:
        session = self._current_session()
        self.session = None
        self._registry.reset()
        doc = self._sandbox.document
        if doc is None:
            return
        _strip_editor_artifacts(doc, session)
        logger.debug("Edit mode disabled")

    def extract_html(self) -> str:
        """Serialize the live document with current chart state embedded.

        Raises
        ------
        SandboxUnavailable
            If the sandbox document cannot be read. Callers must keep their
            previous document rather than treat this as "no changes".
        """
        doc = self._sandbox.document
        if doc is None:
            logger.error("Extraction failed: sandbox document is not accessible")
            raise SandboxUnavailable("Cannot extract HTML from an inaccessible sandbox")

        clone = clone_document(doc)
        self._registry.discover()
        counterparts = {
            chart_id: _counterparts(clone, chart) for chart_id, chart in self._registry.handles.items()
        }
        _strip_editor_artifacts(clone, self._current_session())

        claimed: Set[Tuple[int, int]] = set()
        for chart_id, chart in self._registry.handles.items():
            canvas, origin = counterparts[chart_id]
            self._embed_chart(clone, chart_id, chart, canvas, origin, claimed)

        root = clone.find("html")
        return DOCTYPE + str(root)

    def _embed_chart(
        self,
        clone: BeautifulSoup,
        chart_id: str,
        chart: ChartInstance,
        canvas: Optional[Tag],
        origin: Optional[Tuple[Tag, int]],
        claimed: Set[Tuple[int, int]],
    ) -> None:
        config = chart.to_config()
        try:
            script, call = _find_constructor(clone, canvas, origin, claimed)
        except SerializationMismatch as exc:
            if chart.canvas_id is None:
                logger.warning("{}; chart has no surface id and cannot be re-embedded", exc)
                return
            logger.warning("{}; appending a constructor script", exc)
            script = clone.new_tag("script")
            script.string = Script(build_constructor_script(chart.canvas_id, config))
            clone.find("body").append(script)
            return

        claimed.add((id(script), call.index))
        script.string = Script(replace_config(script.get_text(), call, config))
        logger.debug("Rewrote constructor #{} for chart '{}'", call.index, chart_id)


def _strip_editor_artifacts(doc: BeautifulSoup, session: Optional[EditSession]) -> None:
    for style in doc.find_all(id=EDIT_STYLE_ID):
        style.decompose()
    body = doc.find("body")
    if body is None:
        return
    strip_section_artifacts(body)
    if body.has_attr("contenteditable"):
        del body["contenteditable"]
    if session is not None:
        remove_style(body, "outline")
        if session.body_outline is not None:
            set_style(body, "outline", session.body_outline)


def _counterparts(clone: BeautifulSoup, chart: ChartInstance) -> Tuple[Optional[Tag], Optional[Tuple[Tag, int]]]:
    """Find the chart's surface and constructing script in a fresh clone of the live document."""
    canvas = follow_path(clone, element_path(chart.canvas), chart.canvas.name)
    if canvas is None and chart.canvas_id:
        canvas = clone.find(id=chart.canvas_id)
    origin = None
    if chart.origin is not None:
        script = follow_path(clone, element_path(chart.origin.script), "script")
        if script is not None:
            origin = (script, chart.origin.call_index)
    return canvas, origin


def _find_constructor(
    clone: BeautifulSoup,
    canvas: Optional[Tag],
    origin: Optional[Tuple[Tag, int]],
    claimed: Set[Tuple[int, int]],
) -> Tuple[Tag, ConstructorCall]:
    """Find the constructor call in ``clone`` that builds the chart drawn on ``canvas``.

    A call matches when its target resolves to ``canvas`` in the clone, so
    id and selector targets both survive sections being moved. Otherwise the
    call the chart was originally built from is used, unless another chart
    already claimed it.
    """
    if canvas is not None:
        for script in inline_scripts(clone):
            for call in find_constructor_calls(script.get_text()):
                if (id(script), call.index) in claimed:
                    continue
                if resolve_surface(clone, call.target) is canvas:
                    return script, call

    if origin is not None:
        script, call_index = origin
        calls = find_constructor_calls(script.get_text())
        if call_index < len(calls) and (id(script), call_index) not in claimed:
            return script, calls[call_index]

    raise SerializationMismatch("No constructor script found for the chart surface")
