"""Drag-and-drop reordering of a report's top-level sections."""

from typing import List, Tuple

from bs4 import Tag
from loguru import logger

from report_editor.core.dom import (
    add_class,
    element_children,
    get_style,
    has_class,
    remove_class,
    remove_style,
    set_style,
)
from report_editor.core.sandbox import Event, Listener, SandboxHost
from report_editor.styles.editor_css import (
    DRAG_HANDLE_CLASS,
    DRAG_OVER_CLASS,
    DRAGGING_CLASS,
    POSITIONED_ATTR,
    SECTION_INDEX_ATTR,
)

_CONTAINER_TAGS = {"section", "div", "article"}
_HEADINGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_NON_CONTENT_TAGS = {"script", "style"}


def detect_sections(body: Tag) -> List[Tag]:
    """Top-level blocks of a report body, in document order.

    Containers holding a heading or more than one child element count as
    sections. When none qualify, every direct child except scripts and
    styles does, so there is always something to reorder.
    """
    children = element_children(body)
    sections = [
        child
        for child in children
        if child.name in _CONTAINER_TAGS
        and (
            child.find(_HEADINGS) is not None
            or len([c for c in element_children(child) if not _is_handle(c)]) > 1
        )
    ]
    if not sections:
        sections = [child for child in children if child.name not in _NON_CONTENT_TAGS]
    return sections


def _is_handle(tag: Tag) -> bool:
    return has_class(tag, DRAG_HANDLE_CLASS)


def strip_section_artifacts(root: Tag) -> None:
    """Remove drag handles and the markers handles leave on sections."""
    for handle in root.find_all(class_=DRAG_HANDLE_CLASS):
        handle.decompose()
    for section in root.find_all(attrs={SECTION_INDEX_ATTR: True}):
        del section[SECTION_INDEX_ATTR]
    for section in root.find_all(attrs={POSITIONED_ATTR: True}):
        del section[POSITIONED_ATTR]
        if get_style(section, "position") == "relative":
            remove_style(section, "position")
    for name in (DRAGGING_CLASS, DRAG_OVER_CLASS):
        for tag in root.find_all(class_=name):
            remove_class(tag, name)


class SectionReorderController:
    """Attaches drag handles to sections and moves sections on drop.

    Handles carry the index their section had when they were attached.
    After every move all handles are rebuilt, so an index is never trusted
    across moves.
    """

    def __init__(self, sandbox: SandboxHost) -> None:
        self._sandbox = sandbox
        self._bindings: List[Tuple[Tag, str, Listener]] = []
        self.enabled = False

    def detect_sections(self) -> List[Tag]:
        body = self._sandbox.body
        if body is None:
            return []
        return detect_sections(body)

    def enable(self) -> int:
        """Attach one drag handle per detected section. Returns the handle count."""
        doc = self._sandbox.document
        if doc is None:
            logger.warning("Sandbox unavailable; section reordering not enabled")
            return 0
        self._remove_handles()

        sections = self.detect_sections()
        for index, section in enumerate(sections):
            if get_style(section, "position") in (None, "static"):
                set_style(section, "position", "relative")
                section[POSITIONED_ATTR] = "true"

            handle = doc.new_tag(
                "div",
                attrs={
                    "class": [DRAG_HANDLE_CLASS],
                    SECTION_INDEX_ATTR: str(index),
                    "draggable": "true",
                    "contenteditable": "false",
                },
            )
            section.insert(0, handle)
            section[SECTION_INDEX_ATTR] = str(index)
            self._wire(handle, section, index)

        self.enabled = True
        logger.debug("Attached {} section drag handle(s)", len(sections))
        return len(sections)

    def disable(self) -> None:
        self._remove_handles()
        body = self._sandbox.body
        if body is not None:
            strip_section_artifacts(body)
        self.enabled = False

    def _remove_handles(self) -> None:
        for target, event_type, listener in self._bindings:
            self._sandbox.remove_event_listener(target, event_type, listener)
        self._bindings = []
        body = self._sandbox.body
        if body is not None:
            for handle in body.find_all(class_=DRAG_HANDLE_CLASS):
                handle.decompose()

    def _listen(self, target: Tag, event_type: str, listener: Listener) -> None:
        self._sandbox.add_event_listener(target, event_type, listener)
        self._bindings.append((target, event_type, listener))

    def _wire(self, handle: Tag, section: Tag, index: int) -> None:
        def on_drag_start(event: Event) -> None:
            event.data_transfer["text/plain"] = str(index)
            add_class(section, DRAGGING_CLASS)

        def on_drag_end(event: Event) -> None:
            remove_class(section, DRAGGING_CLASS)
            body = self._sandbox.body
            if body is not None:
                for tag in body.find_all(class_=DRAG_OVER_CLASS):
                    remove_class(tag, DRAG_OVER_CLASS)

        def on_drag_over(event: Event) -> None:
            event.prevent_default()
            add_class(section, DRAG_OVER_CLASS)

        def on_drag_leave(event: Event) -> None:
            remove_class(section, DRAG_OVER_CLASS)

        def on_drop(event: Event) -> None:
            event.prevent_default()
            remove_class(section, DRAG_OVER_CLASS)
            raw = event.data_transfer.get("text/plain", "")
            if not raw.strip().lstrip("-").isdigit():
                return
            self.move_section(int(raw), index)

        self._listen(handle, "dragstart", on_drag_start)
        self._listen(handle, "dragend", on_drag_end)
        self._listen(section, "dragover", on_drag_over)
        self._listen(section, "dragleave", on_drag_leave)
        self._listen(section, "drop", on_drop)

    def move_section(self, from_index: int, to_index: int) -> bool:
        """Move the section currently at ``from_index`` next to the one at ``to_index``.

        Moving forward places it right after the target, moving backward right
        before it. Returns True if the document changed.
        """
        if from_index == to_index:
            return False
        sections = self.detect_sections()
        if not (0 <= from_index < len(sections) and 0 <= to_index < len(sections)):
            logger.warning("Section move {} -> {} out of range", from_index, to_index)
            return False

        moving, target = sections[from_index], sections[to_index]
        moving.extract()
        if from_index < to_index:
            target.insert_after(moving)
        else:
            target.insert_before(moving)
        logger.debug("Moved section {} -> {}", from_index, to_index)

        if self.enabled:
            self.enable()
        return True
