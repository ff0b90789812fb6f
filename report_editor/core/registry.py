"""Chart instance registry: snapshots of live charts and edits pushed back to them."""

from typing import Callable, Dict, List, Optional

from bs4 import Tag
from loguru import logger

from report_editor.core.chart import ChartDescriptor, Dataset
from report_editor.core.errors import ChartNotFound, MalformedChartState
from report_editor.core.sandbox import ChartInstance, Event, SandboxHost


def _title_of(chart: ChartInstance) -> str:
    plugins = chart.options.get("plugins")
    title = plugins.get("title") if isinstance(plugins, dict) else None
    text = title.get("text") if isinstance(title, dict) else None
    if isinstance(text, list):
        return " ".join(str(part) for part in text)
    return str(text) if text else ""


def _color_copy(value):
    return list(value) if isinstance(value, list) else value


class ChartRegistry:
    """Explicit id -> live chart mapping for the sandbox's charts.

    ``discover`` is the only way handles get into the registry; nothing is
    looked up through ambient state. Ids are the chart surface's element id
    when it has one, otherwise the instance's session-local token, which does
    not survive a reload.

    Examples
    --------
    >>> registry = ChartRegistry(sandbox)
    >>> chart = registry.discover()[0]
    >>> chart.add_row("Mar")
    >>> registry.update(chart)
    """

    def __init__(self, sandbox: SandboxHost) -> None:
        self._sandbox = sandbox
        self.handles: Dict[str, ChartInstance] = {}
        self._click_bindings: List[tuple] = []

    @staticmethod
    def chart_id(chart: ChartInstance) -> str:
        return chart.canvas_id or chart.uid

    def discover(self) -> List[ChartDescriptor]:
        """Snapshot every live chart and refresh the handle mapping."""
        self.handles.clear()
        descriptors = []
        for chart in self._sandbox.chart_instances():
            chart_id = self.chart_id(chart)
            self.handles[chart_id] = chart
            descriptors.append(self._describe(chart_id, chart))
        logger.debug("Discovered {} chart(s)", len(descriptors))
        return descriptors

    def get(self, chart_id: str) -> ChartDescriptor:
        chart = self._handle(chart_id)
        if chart is None:
            raise ChartNotFound(chart_id)
        return self._describe(chart_id, chart)

    def _handle(self, chart_id: str) -> Optional[ChartInstance]:
        chart = self.handles.get(chart_id)
        if chart is None or chart not in self._sandbox.chart_instances():
            self.discover()
            chart = self.handles.get(chart_id)
        return chart

    def _describe(self, chart_id: str, chart: ChartInstance) -> ChartDescriptor:
        datasets = [
            Dataset(
                label=ds.get("label") or "",
                data=list(ds.get("data") or []),
                background_color=_color_copy(ds.get("backgroundColor")),
                border_color=_color_copy(ds.get("borderColor")),
            )
            for ds in chart.data.get("datasets", [])
        ]
        return ChartDescriptor(
            id=chart_id,
            type=chart.type,
            labels=list(chart.data.get("labels") or []),
            datasets=datasets,
            title=_title_of(chart),
        )

    def update(self, descriptor: ChartDescriptor) -> bool:
        """Push a descriptor onto its live chart and re-render it.

        Dataset fields are merged onto the existing dataset objects so
        visual properties the descriptor does not model survive. Returns
        False when the chart is no longer live.
        """
        chart = self._handle(descriptor.id)
        if chart is None:
            logger.warning("Chart '{}' is not live; update skipped", descriptor.id)
            return False

        try:
            descriptor.check()
        except MalformedChartState as exc:
            logger.warning("{}; normalizing", exc)
            descriptor.normalize()

        chart.config["type"] = descriptor.type
        chart.data["labels"] = list(descriptor.labels)
        existing = chart.data.get("datasets", [])
        merged = []
        for position, ds in enumerate(descriptor.datasets):
            target = existing[position] if position < len(existing) else {}
            target["label"] = ds.label
            target["data"] = list(ds.data)
            for key, value in (
                ("backgroundColor", ds.background_color),
                ("borderColor", ds.border_color),
            ):
                if value is not None:
                    target[key] = _color_copy(value)
            merged.append(target)
        chart.data["datasets"] = merged

        plugins = chart.options.get("plugins")
        if descriptor.title:
            if not isinstance(plugins, dict):
                plugins = chart.options["plugins"] = {}
            title = plugins.setdefault("title", {})
            title["text"] = descriptor.title
            title["display"] = True
        elif isinstance(plugins, dict) and isinstance(plugins.get("title"), dict):
            plugins["title"]["text"] = ""
            plugins["title"]["display"] = False

        chart.update()
        return True

    def bind_click_handlers(self, on_select: Callable[[ChartDescriptor], None]) -> int:
        """Call ``on_select`` with a chart's descriptor when its surface is clicked."""
        self.unbind_click_handlers()
        for chart in self._sandbox.chart_instances():
            canvas = chart.canvas

            def on_click(event: Event, canvas: Tag = canvas) -> None:
                event.stop_propagation()
                live = self._sandbox.chart_for(canvas)
                if live is None:
                    return
                chart_id = self.chart_id(live)
                self.handles[chart_id] = live
                on_select(self._describe(chart_id, live))

            self._sandbox.add_event_listener(canvas, "click", on_click)
            self._click_bindings.append((canvas, on_click))
        return len(self._click_bindings)

    def unbind_click_handlers(self) -> None:
        for canvas, listener in self._click_bindings:
            self._sandbox.remove_event_listener(canvas, "click", listener)
        self._click_bindings = []

    def reset(self) -> None:
        self.unbind_click_handlers()
        self.handles.clear()
