from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import altair as alt

from sprint_core.exceptions import ChartDisposedError

alt.data_transformers.disable_max_rows()

logger = logging.getLogger(__name__)

CHART_SLOTS = ("velocity", "team", "ticket_type", "epic")


def to_vega_spec(chart: "alt.Chart | alt.LayerChart") -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


@dataclass
class ChartHandle:
    """An owned chart bound to one dashboard slot.

    A handle is rebuilt, never edited: new data means a new handle, and the
    old one must be disposed first. ``refresh`` re-lays out the same chart.
    """

    slot: str
    chart: Optional["alt.Chart | alt.LayerChart"]
    spec: Dict[str, Any] = field(default_factory=dict)
    revision: int = 0
    disposed: bool = False

    def __post_init__(self) -> None:
        if not self.spec and self.chart is not None:
            self.spec = to_vega_spec(self.chart)

    def refresh(self) -> Dict[str, Any]:
        if self.disposed or self.chart is None:
            raise ChartDisposedError(f"chart {self.slot!r} has been disposed")
        self.spec = to_vega_spec(self.chart)
        self.revision += 1
        return self.spec

    def dispose(self) -> None:
        self.chart = None
        self.spec = {}
        self.disposed = True


class ChartRegistry:
    def __init__(self) -> None:
        self._handles: Dict[str, ChartHandle] = {}

    def get(self, slot: str) -> Optional[ChartHandle]:
        return self._handles.get(slot)

    def replace(self, slot: str, chart: "alt.Chart | alt.LayerChart") -> ChartHandle:
        old = self._handles.pop(slot, None)
        if old is not None:
            old.dispose()
        handle = ChartHandle(slot=slot, chart=chart)
        self._handles[slot] = handle
        logger.debug("chart %s rebuilt", slot)
        return handle

    def refresh_all(self) -> None:
        for handle in self._handles.values():
            handle.refresh()

    def dispose_all(self) -> None:
        for handle in self._handles.values():
            handle.dispose()
        self._handles.clear()

    def specs(self) -> Dict[str, Dict[str, Any]]:
        return {slot: h.spec for slot, h in self._handles.items()}
