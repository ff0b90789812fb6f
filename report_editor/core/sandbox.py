"""
Sandbox host: the isolated surface a report document is rendered into.

The sandbox is the only component that touches the document tree directly.
Loading replaces the tree wholesale and queues the document's inline
scripts; ``settle`` runs them, which is when chart constructor calls turn
into live ``ChartInstance`` objects. Everything else reaches the document
through ``SandboxHost.document`` and must cope with it being ``None``.
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from loguru import logger
from soupsieve import SelectorSyntaxError

from report_editor.core.dom import parse_html
from report_editor.core.errors import SandboxUnavailable
from report_editor.core.scripts import (
    ChartTarget,
    ConstructorCall,
    find_constructor_calls,
    is_javascript,
)

Listener = Callable[["Event"], None]


@dataclass
class Rect:
    """Bounding box in CSS pixels."""

    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class Selection:
    """A text selection inside one text node of the sandbox document."""

    node: NavigableString
    start: int
    end: int
    rect: Optional[Rect] = None

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    @property
    def text(self) -> str:
        return str(self.node)[self.start : self.end]


@dataclass
class Event:
    """A dispatched sandbox event."""

    type: str
    target: Any
    data_transfer: Dict[str, str] = field(default_factory=dict)
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass(eq=False)
class ScriptOrigin:
    """The script element a live chart was constructed by, and which call in it."""

    script: Tag
    call_index: int


class ChartInstance:
    """A chart the document's own scripts constructed.

    ``config`` holds the running ``type``, ``data`` and ``options``; edits
    mutate it in place and ``update`` re-renders.
    """

    def __init__(self, canvas: Tag, config: Dict[str, Any], origin: Optional[ScriptOrigin] = None):
        self.uid = uuid.uuid4().hex[:10]
        self.canvas = canvas
        self.config = config
        self.origin = origin
        self.render_count = 1

    @property
    def type(self) -> str:
        return self.config["type"]

    @property
    def data(self) -> Dict[str, Any]:
        return self.config["data"]

    @property
    def options(self) -> Dict[str, Any]:
        return self.config["options"]

    @property
    def canvas_id(self) -> Optional[str]:
        return self.canvas.get("id") or None

    def update(self) -> None:
        self.render_count += 1

    def to_config(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "data": copy.deepcopy(self.data),
            "options": copy.deepcopy(self.options),
        }

    def __repr__(self) -> str:
        return f"ChartInstance(uid={self.uid!r}, canvas_id={self.canvas_id!r}, type={self.type!r})"


def inline_scripts(doc: BeautifulSoup) -> List[Tag]:
    """Script elements the sandbox executes, in document order."""
    return [
        script
        for script in doc.find_all("script")
        if not script.get("src") and is_javascript(script.get("type"))
    ]


def resolve_surface(doc: BeautifulSoup, target: Optional[ChartTarget]) -> Optional[Tag]:
    """The element a constructor call's target refers to in ``doc``."""
    if target is None:
        return None
    if target.kind == "id":
        return doc.find(id=target.value)
    try:
        return doc.select_one(target.value)
    except SelectorSyntaxError:
        logger.warning("Invalid chart selector {!r}", target.value)
        return None


def _normalize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    config = copy.deepcopy(config)
    data = config.get("data") if isinstance(config.get("data"), dict) else {}
    if not isinstance(data.get("labels"), list):
        data["labels"] = []
    datasets = data.get("datasets") if isinstance(data.get("datasets"), list) else []
    data["datasets"] = [ds for ds in datasets if isinstance(ds, dict)]
    for ds in data["datasets"]:
        if not isinstance(ds.get("data"), list):
            ds["data"] = []
    options = config.get("options") if isinstance(config.get("options"), dict) else {}
    return {"type": config["type"], "data": data, "options": options}


class SandboxHost:
    """Owns the sandbox document, its live charts, listeners and selection."""

    def __init__(self) -> None:
        self._document: Optional[BeautifulSoup] = None
        self._detached = False
        self._scripts_pending = False
        self._charts: List[ChartInstance] = []
        self._listeners: Dict[int, Tuple[Any, Dict[str, List[Listener]]]] = {}
        self._selection: Optional[Selection] = None
        self.generation = 0

    # -- document -------------------------------------------------------

    @property
    def document(self) -> Optional[BeautifulSoup]:
        """The live document, or None when it is not accessible."""
        if self._detached:
            return None
        return self._document

    @property
    def is_available(self) -> bool:
        return self.document is not None

    @property
    def is_settled(self) -> bool:
        return self.is_available and not self._scripts_pending

    def require_document(self) -> BeautifulSoup:
        doc = self.document
        if doc is None:
            raise SandboxUnavailable("Sandbox document is not accessible")
        return doc

    @property
    def head(self) -> Optional[Tag]:
        doc = self.document
        return doc.find("head") if doc is not None else None

    @property
    def body(self) -> Optional[Tag]:
        doc = self.document
        return doc.find("body") if doc is not None else None

    def load(self, html: str) -> None:
        """Replace the sandbox content. Scripts run on the next ``settle``."""
        self._document = parse_html(html)
        self._detached = False
        self._scripts_pending = True
        self._charts = []
        self._listeners = {}
        self._selection = None
        self.generation += 1
        logger.debug("Loaded document into sandbox (generation {})", self.generation)

    def detach(self) -> None:
        """Lose access to the internal document, as when isolation blocks it."""
        self._detached = True
        self._selection = None

    def settle(self) -> int:
        """Run queued inline scripts. Returns the number of charts constructed."""
        doc = self.document
        if doc is None or not self._scripts_pending:
            return 0
        self._scripts_pending = False

        created = 0
        for script in inline_scripts(doc):
            for call in find_constructor_calls(script.get_text()):
                origin = ScriptOrigin(script, call.index)
                if self._construct(call, origin):
                    created += 1
        logger.debug("Sandbox settled with {} chart(s)", created)
        return created

    def resolve(self, target: Optional[ChartTarget]) -> Optional[Tag]:
        doc = self.document
        if doc is None:
            return None
        return resolve_surface(doc, target)

    def _construct(self, call: ConstructorCall, origin: ScriptOrigin) -> bool:
        element = self.resolve(call.target)
        if element is None:
            logger.warning("Chart constructor #{} has no resolvable surface", call.index)
            return False
        if not call.config or not call.config.get("type"):
            logger.warning("Chart constructor #{} has no static configuration", call.index)
            return False
        if self.chart_for(element) is not None:
            logger.warning("Chart surface {!r} is already in use", element.get("id"))
            return False
        self._charts.append(ChartInstance(element, _normalize_config(call.config), origin))
        return True

    # -- charts ---------------------------------------------------------

    def chart_instances(self) -> List[ChartInstance]:
        if self.document is None:
            return []
        return list(self._charts)

    def chart_for(self, element: Tag) -> Optional[ChartInstance]:
        for chart in self._charts:
            if chart.canvas is element:
                return chart
        return None

    # -- events ---------------------------------------------------------

    def add_event_listener(self, target: Any, event_type: str, listener: Listener) -> None:
        _, by_type = self._listeners.setdefault(id(target), (target, {}))
        by_type.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, target: Any, event_type: str, listener: Listener) -> None:
        entry = self._listeners.get(id(target))
        if entry is None:
            return
        listeners = entry[1].get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def remove_all_listeners(self, event_type: Optional[str] = None) -> None:
        if event_type is None:
            self._listeners = {}
            return
        for _, by_type in self._listeners.values():
            by_type.pop(event_type, None)

    def listener_count(self, target: Any = None, event_type: Optional[str] = None) -> int:
        entries = self._listeners.values()
        if target is not None:
            entries = [e for e in entries if e[0] is target]
        total = 0
        for _, by_type in entries:
            for name, listeners in by_type.items():
                if event_type is None or name == event_type:
                    total += len(listeners)
        return total

    def dispatch_event(
        self, target: Any, event_type: str, data_transfer: Optional[Dict[str, str]] = None
    ) -> Event:
        event = Event(type=event_type, target=target, data_transfer=data_transfer or {})
        if self.document is None:
            return event
        entry = self._listeners.get(id(target))
        if entry is None or entry[0] is not target:
            return event
        for listener in list(entry[1].get(event_type, [])):
            listener(event)
        return event

    # -- selection ------------------------------------------------------

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection if self.document is not None else None

    def set_selection(
        self, node: NavigableString, start: int, end: int, rect: Optional[Rect] = None
    ) -> Selection:
        if not 0 <= start <= end <= len(node):
            raise ValueError(f"Selection {start}:{end} outside a text of {len(node)} chars")
        self._selection = Selection(node, start, end, rect)
        self._notify_selection()
        return self._selection

    def select_text(self, element: Tag, text: str, rect: Optional[Rect] = None) -> Selection:
        """Select the first occurrence of ``text`` inside one text node of ``element``."""
        for node in element.find_all(string=True):
            if isinstance(node, Comment):
                continue
            position = str(node).find(text)
            if position >= 0:
                return self.set_selection(node, position, position + len(text), rect)
        raise ValueError(f"Text {text!r} not found in a single text node")

    def select_node_contents(self, element: Tag, rect: Optional[Rect] = None) -> Selection:
        nodes = [n for n in element.find_all(string=True) if not isinstance(n, Comment)]
        if len(nodes) != 1:
            raise ValueError("Selection must stay within one text node")
        return self.set_selection(nodes[0], 0, len(nodes[0]), rect)

    def clear_selection(self) -> None:
        self._selection = None
        self._notify_selection()

    def _notify_selection(self) -> None:
        doc = self.document
        if doc is not None:
            self.dispatch_event(doc, "selectionchange")
