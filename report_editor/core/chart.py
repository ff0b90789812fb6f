"""
Chart data model used by the chart editor.

A ChartDescriptor is a normalized snapshot of one live chart. It is derived
on demand from the running chart object and only written back into the
document at save time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from report_editor.core.errors import MalformedChartState

Color = Union[str, List[str], None]


class ChartType(Enum):
    """Chart kinds the editor can switch between."""

    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    RADAR = "radar"
    POLAR_AREA = "polarArea"


def _to_number(raw: Any) -> float:
    """Parse an edited cell the way a number input does: junk becomes 0."""
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        return raw
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return 0


@dataclass
class Dataset:
    """One series of values plotted against the chart's labels."""

    label: str = ""
    data: List[float] = field(default_factory=list)
    background_color: Color = None
    border_color: Color = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "data": list(self.data),
            "backgroundColor": self.background_color,
            "borderColor": self.border_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        return cls(
            label=data.get("label") or "",
            data=list(data.get("data") or []),
            background_color=data.get("backgroundColor"),
            border_color=data.get("borderColor"),
        )


@dataclass
class ChartDescriptor:
    """Editable snapshot of a live chart.

    Every dataset holds exactly one value per label. Edit operations keep
    that invariant; ``normalize`` repairs snapshots read from charts that
    violate it.

    Parameters
    ----------
    id : str
        The chart surface's element id, or a session-local token when the
        surface has none.
    type : str
        One of the ``ChartType`` values.
    labels : List[str]
        Category labels, in display order.
    datasets : List[Dataset]
        Series, in display order.
    title : str
        Chart title ("" when the chart has none).
    """

    id: str
    type: str
    labels: List[str] = field(default_factory=list)
    datasets: List[Dataset] = field(default_factory=list)
    title: str = ""

    @property
    def is_consistent(self) -> bool:
        return all(len(ds.data) == len(self.labels) for ds in self.datasets)

    def normalize(self) -> bool:
        """Pad or truncate every dataset to the label count.

        Returns True if any dataset had to be repaired.
        """
        size = len(self.labels)
        changed = False
        for ds in self.datasets:
            if len(ds.data) < size:
                ds.data.extend([0] * (size - len(ds.data)))
                changed = True
            elif len(ds.data) > size:
                del ds.data[size:]
                changed = True
        return changed

    def check(self) -> None:
        """Raise MalformedChartState if any dataset disagrees with the label count."""
        for ds in self.datasets:
            if len(ds.data) != len(self.labels):
                raise MalformedChartState(
                    f"Chart '{self.id}' dataset '{ds.label}' has {len(ds.data)} values "
                    f"for {len(self.labels)} labels"
                )

    def set_type(self, chart_type: Union[str, ChartType]) -> None:
        self.type = ChartType(chart_type).value

    def set_title(self, title: str) -> None:
        self.title = title

    def set_label(self, index: int, value: str) -> None:
        self.labels[index] = value

    def set_value(self, dataset_index: int, index: int, raw: Any) -> None:
        """Set one cell. Non-numeric input is stored as 0."""
        data = self.datasets[dataset_index].data
        if index >= len(self.labels):
            raise IndexError(f"Row {index} out of range")
        if index >= len(data):
            data.extend([0] * (index + 1 - len(data)))
        data[index] = _to_number(raw)

    def set_dataset_label(self, dataset_index: int, label: str) -> None:
        self.datasets[dataset_index].label = label

    def set_dataset_color(self, dataset_index: int, color: str) -> None:
        """Use one color for both fill and outline."""
        ds = self.datasets[dataset_index]
        ds.background_color = color
        ds.border_color = color

    def add_row(self, label: Optional[str] = None) -> None:
        """Append a label and a zero to every dataset."""
        self.labels.append(label if label is not None else f"Label {len(self.labels) + 1}")
        for ds in self.datasets:
            ds.data.append(0)

    def remove_row(self, index: int) -> None:
        """Drop row ``index`` from the labels and from every dataset."""
        if not 0 <= index < len(self.labels):
            raise IndexError(f"Row {index} out of range")
        del self.labels[index]
        for ds in self.datasets:
            if index < len(ds.data):
                del ds.data[index]

    def add_dataset(
        self, label: Optional[str] = None, palette: Optional[Sequence[str]] = None
    ) -> Dataset:
        """Append a zero-filled dataset colored from the palette."""
        from report_editor.styles.colors import palette_color

        position = len(self.datasets)
        color = palette_color(position, palette)
        ds = Dataset(
            label=label if label is not None else f"Dataset {position + 1}",
            data=[0] * len(self.labels),
            background_color=color,
            border_color=color,
        )
        self.datasets.append(ds)
        return ds

    def remove_dataset(self, index: int) -> None:
        if len(self.datasets) <= 1:
            raise ValueError("A chart must keep at least one dataset")
        del self.datasets[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "labels": list(self.labels),
            "datasets": [ds.to_dict() for ds in self.datasets],
            "title": self.title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChartDescriptor":
        return cls(
            id=data["id"],
            type=data["type"],
            labels=list(data.get("labels", [])),
            datasets=[Dataset.from_dict(ds) for ds in data.get("datasets", [])],
            title=data.get("title", ""),
        )
