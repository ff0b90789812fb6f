"""
Floating text formatting toolbar.

The toolbar is visible only while editing is active and the sandbox has a
non-collapsed selection. Its commands work on the selected text the way the
browser's rich-text commands do: the selection is split out of its text
node and wrapped, or lifted out of an existing wrapper when toggling off.
"""

from typing import Callable, Dict, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from loguru import logger

from report_editor.core.dom import element_children, get_style, set_style
from report_editor.core.sandbox import Event, Rect, SandboxHost, Selection
from report_editor.styles.colors import DEFAULT_TEXT_COLOR

# The rich-text font size command only has levels 1-7; 7 marks the
# wrapper that is then rewritten to an explicit pixel size.
_FONT_SIZE_MARKER = "7"
MIN_FONT_SIZE = 8
MAX_FONT_SIZE = 72

_STYLE_TAGS: Dict[str, Tuple[str, ...]] = {
    "bold": ("b", "strong"),
    "italic": ("i", "em"),
}
_STYLE_PROPS: Dict[str, Tuple[str, Tuple[str, ...], str]] = {
    "bold": ("font-weight", ("bold", "bolder", "600", "700", "800", "900"), "normal"),
    "italic": ("font-style", ("italic", "oblique"), "normal"),
}


def _formatting_ancestor(node: NavigableString, command: str) -> Optional[Tag]:
    tags = _STYLE_TAGS[command]
    prop, on_values, _ = _STYLE_PROPS[command]
    for parent in node.parents:
        if parent.name in ("body", "html", "[document]"):
            return None
        if parent.name in tags:
            return parent
        value = get_style(parent, prop)
        if value is not None:
            return parent if value in on_values else None
    return None


def _isolate(selection: Selection) -> NavigableString:
    """Split the selected characters into their own text node."""
    text = str(selection.node)
    before, middle, after = (
        text[: selection.start],
        text[selection.start : selection.end],
        text[selection.end :],
    )
    node = selection.node
    isolated = NavigableString(middle)
    node.replace_with(isolated)
    if before:
        isolated.insert_before(NavigableString(before))
    if after:
        isolated.insert_after(NavigableString(after))
    return isolated


def _shallow_copy(doc: BeautifulSoup, tag: Tag) -> Tag:
    attrs = {k: list(v) if isinstance(v, list) else v for k, v in tag.attrs.items()}
    return doc.new_tag(tag.name, attrs=attrs)


def _is_empty(tag: Tag) -> bool:
    return not element_children(tag) and not tag.get_text()


def _lift_out(doc: BeautifulSoup, node: NavigableString, ancestor: Tag) -> None:
    """Move ``node`` out of ``ancestor`` keeping document order.

    Content before the node stays in ``ancestor``; content after it moves to
    a copy of ``ancestor``. Wrappers between the two are copied around the
    node so formatting other than ``ancestor`` is kept.
    """
    moving = node
    parent = node.parent
    while True:
        right = _shallow_copy(doc, parent)
        for sibling in list(moving.next_siblings):
            right.append(sibling.extract())
        moving.extract()
        if parent is ancestor:
            parent.insert_after(moving)
            moving.insert_after(right)
        else:
            wrapper = _shallow_copy(doc, parent)
            wrapper.append(moving)
            parent.insert_after(wrapper)
            wrapper.insert_after(right)
            moving = wrapper
        for part in (parent, right):
            if _is_empty(part):
                part.decompose()
        if parent is ancestor:
            return
        parent = moving.parent


def _wrap(doc: BeautifulSoup, node: NavigableString, name: str, attrs=None) -> Tag:
    wrapper = doc.new_tag(name, attrs=attrs or {})
    node.wrap(wrapper)
    return wrapper


class TextFormattingToolbar:
    """Selection-following toolbar issuing inline formatting commands.

    Parameters
    ----------
    sandbox : SandboxHost
        The sandbox whose selection is tracked.
    is_editing : Callable[[], bool]
        Reports whether edit mode is active.
    frame_rect : Rect, optional
        Where the sandbox sits in the outer page.
    offset : float
        Vertical gap between the selection and the toolbar.
    """

    def __init__(
        self,
        sandbox: SandboxHost,
        is_editing: Callable[[], bool],
        frame_rect: Optional[Rect] = None,
        offset: float = 48,
    ) -> None:
        self._sandbox = sandbox
        self._is_editing = is_editing
        self.frame_rect = frame_rect or Rect()
        self.offset = offset
        self.visible = False
        self.position = (0.0, 0.0)
        self.font_size = 16
        self.text_color = DEFAULT_TEXT_COLOR
        self._attached_to = None

    def attach(self) -> None:
        doc = self._sandbox.document
        if doc is None:
            return
        self.detach()
        self._sandbox.add_event_listener(doc, "selectionchange", self._on_selection_change)
        self._attached_to = doc
        self.refresh()

    def detach(self) -> None:
        if self._attached_to is not None:
            self._sandbox.remove_event_listener(
                self._attached_to, "selectionchange", self._on_selection_change
            )
            self._attached_to = None
        self.visible = False

    def _on_selection_change(self, event: Event) -> None:
        self.refresh()

    def refresh(self) -> None:
        """Recompute visibility and position from the current selection."""
        selection = self._active_selection()
        if selection is None:
            self.visible = False
            return
        rect = selection.rect or Rect()
        self.position = (
            self.frame_rect.top + rect.top - self.offset,
            self.frame_rect.left + rect.left + rect.width / 2,
        )
        self.visible = True

    def _active_selection(self) -> Optional[Selection]:
        if not self._is_editing():
            return None
        selection = self._sandbox.selection
        if selection is None or selection.is_collapsed:
            return None
        return selection

    def query_state(self, command: str) -> bool:
        """Whether the selection is currently bold or italic."""
        selection = self._sandbox.selection
        if selection is None:
            return False
        return _formatting_ancestor(selection.node, command) is not None

    def bold(self) -> bool:
        return self._toggle("bold")

    def italic(self) -> bool:
        return self._toggle("italic")

    def _toggle(self, command: str) -> bool:
        selection = self._active_selection()
        doc = self._sandbox.document
        if selection is None or doc is None:
            return False
        rect = selection.rect
        ancestor = _formatting_ancestor(selection.node, command)
        node = _isolate(selection)
        if ancestor is None:
            _wrap(doc, node, _STYLE_TAGS[command][0])
        elif ancestor.name in _STYLE_TAGS[command]:
            _lift_out(doc, node, ancestor)
        else:
            prop, _, off_value = _STYLE_PROPS[command]
            _wrap(doc, node, "span", {"style": f"{prop}: {off_value}"})
        self._sandbox.set_selection(node, 0, len(node), rect)
        logger.debug("Toggled {} on {!r}", command, str(node))
        return True

    def set_font_size(self, px: float) -> bool:
        """Give the selection an explicit pixel font size."""
        if not MIN_FONT_SIZE <= px <= MAX_FONT_SIZE:
            raise ValueError(f"Font size must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE} px")
        self.font_size = px
        selection = self._active_selection()
        doc = self._sandbox.document
        if selection is None or doc is None:
            return False
        rect = selection.rect
        node = _isolate(selection)
        _wrap(doc, node, "font", {"size": _FONT_SIZE_MARKER})
        for font in doc.find_all("font", attrs={"size": _FONT_SIZE_MARKER}):
            del font["size"]
            set_style(font, "font-size", f"{px:g}px")
        self._sandbox.set_selection(node, 0, len(node), rect)
        return True

    def set_text_color(self, color: str) -> bool:
        self.text_color = color
        selection = self._active_selection()
        doc = self._sandbox.document
        if selection is None or doc is None:
            return False
        rect = selection.rect
        node = _isolate(selection)
        _wrap(doc, node, "font", {"color": color})
        self._sandbox.set_selection(node, 0, len(node), rect)
        return True
