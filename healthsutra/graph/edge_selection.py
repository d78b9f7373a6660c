"""Edge-creation interaction: pick source/target on the canvas, then commit.

States: closed -> open (idle) <-> selecting source / selecting target -> closed.
While a slot is active, the next node click fills that slot instead of
selecting the node. Endpoints of an existing link are fixed; editing a link
only changes its label and properties.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Iterable

from ..errors import GraphValidationError
from .engine import GraphEngine, property_names_to_attributes, validate_link
from .model import Link, new_edge_id


class Slot(str, Enum):
    SOURCE = "source"
    TARGET = "target"


class EdgeEditor:
    """Edge dialog state bound to a ``GraphEngine``."""

    def __init__(self, engine: GraphEngine) -> None:
        self.engine = engine
        self.is_open = False
        self.editing: Link | None = None
        self.source: str | None = None
        self.target: str | None = None
        self.selecting_for: Slot | None = None
        self.error = ""

    @property
    def cursor(self) -> str:
        return "crosshair" if self.selecting_for is not None else "default"

    def open_create(self) -> None:
        self._reset()
        self.is_open = True
        self.engine.clear_selection()

    def open_edit(self, link: Link) -> None:
        self._reset()
        self.is_open = True
        self.editing = link
        self.source = link.source_id
        self.target = link.target_id
        self.engine.clear_selection()

    def start_selecting(self, slot: Slot | str) -> bool:
        """Arm a slot; ignored when the dialog is closed or editing a link."""
        if not self.is_open or self.editing is not None:
            return False
        self.selecting_for = Slot(slot)
        return True

    def handle_node_click(self, node_id: str) -> bool:
        """Route a canvas node click; returns True if it filled a slot."""
        if self.selecting_for is None or self.editing is not None:
            self.engine.select_node(node_id)
            return False
        if self.selecting_for is Slot.SOURCE:
            self.source = node_id
        else:
            self.target = node_id
        self.selecting_for = None
        return True

    def handle_background_click(self) -> None:
        self.engine.clear_selection()
        self.selecting_for = None

    def cancel(self) -> None:
        self._reset()

    def commit(
        self,
        label: str,
        property_names: Iterable[str] = (),
        *,
        timestamp_ms: int | None = None,
    ) -> Link:
        """Validate the draft and write it to the engine.

        On failure the dialog stays open with ``error`` set and the graph is
        unchanged.
        """
        if not self.is_open:
            raise RuntimeError("edge dialog is not open")
        self.error = ""
        creating = self.editing is None
        try:
            if creating:
                draft = Link(
                    id=new_edge_id(timestamp_ms=timestamp_ms),
                    source=self.source,
                    target=self.target,
                    label=label,
                )
            else:
                draft = replace(self.editing, label=label, attributes={})
            validate_link(draft, creating=creating)
            link = replace(draft, attributes=property_names_to_attributes(property_names))
            if creating:
                self.engine.add_link(link)
            else:
                self.engine.update_link(link)
        except GraphValidationError as e:
            self.error = str(e)
            raise
        self._reset()
        return link

    def _reset(self) -> None:
        self.is_open = False
        self.editing = None
        self.source = None
        self.target = None
        self.selecting_for = None
        self.error = ""
