from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from . import editing
from .catalog import FieldCatalog
from .collector import collect
from .materializer import Materializer, materialize
from .model import TreeModel
from .presentation import PresentationTree
from ..core.events import CONDITIONS_CHANGED, DATES_INITIALIZE, EventBus
from ..core.labels import LabelProvider
from ..core.services import CoreServices

__all__ = ["ConditionsBuilder"]


class ConditionsBuilder:
    """One editing session over a condition tree.

    Holds the live presentation tree, applies edit operations to it and
    collects the canonical model on demand. Every mutation emits
    ``conditions.changed`` on the event bus; installed date inputs emit
    ``dates.initialize`` so the host can attach its date picker.
    """

    def __init__(
        self,
        catalog: FieldCatalog,
        data: Any = None,
        *,
        error: Any = None,
        services: Optional[CoreServices] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.catalog = catalog
        self.services = services
        if event_bus is not None:
            self.event_bus = event_bus
        elif services is not None:
            self.event_bus = services.event_bus
        else:
            self.event_bus = EventBus()
        self.labels = services.labels if services is not None else LabelProvider()
        self._logger = services.get_logger("ConditionsBuilder") if services is not None else logging.getLogger(
            "CondKit.ConditionsBuilder"
        )
        model = TreeModel.from_dict(data)
        self.error = error if error is not None else model.error
        self.materializer = Materializer(catalog, on_dates=self._notify_dates)
        self.tree: PresentationTree = materialize(model.data, catalog, materializer=self.materializer)
        self._logger.debug(
            "Session started with %d top-level node(s) (quantitative=%s)", len(model.data), self.tree.quantitative
        )

    @property
    def quantitative(self) -> bool:
        return self.tree.quantitative

    # --- hooks -----------------------------------------------------------
    def _notify_dates(self, token: str, roles: Tuple[str, ...]) -> None:
        self.event_bus.emit(DATES_INITIALIZE, {"row": token, "roles": roles})

    def _changed(self, action: str, key: Optional[int], result: Any) -> Any:
        if result is None or result is False:
            self._logger.debug("%s on key %s had no effect", action, key)
            return result
        self._logger.debug("%s on key %s", action, key)
        self.event_bus.emit(CONDITIONS_CHANGED, {"action": action, "key": key, "result": result})
        return result

    # --- output ----------------------------------------------------------
    def collect_data(self) -> TreeModel:
        return collect(self.tree, error=self.error)

    def to_dict(self) -> Dict[str, Any]:
        return self.collect_data().to_dict()

    def reload(self, data: Any) -> None:
        """Replace the whole tree with freshly materialized ``data``."""
        model = TreeModel.from_dict(data)
        self.tree = materialize(model.data, self.catalog, materializer=self.materializer)
        self._changed("reload", None, True)

    # --- structure -------------------------------------------------------
    def add_nested_condition(self, frame_key: int) -> Optional[int]:
        return self._changed(
            "add_nested_condition", frame_key, editing.add_nested_condition(self.tree, self.materializer, frame_key)
        )

    def add_alternative_rule(self, frame_key: int) -> Optional[int]:
        return self._changed(
            "add_alternative_rule", frame_key, editing.add_alternative_rule(self.tree, self.materializer, frame_key)
        )

    def add_top_level_group(self) -> Optional[int]:
        return self._changed("add_top_level_group", None, editing.add_top_level_group(self.tree, self.materializer))

    def remove_node(self, key: int) -> bool:
        return self._changed("remove_node", key, editing.remove_node(self.tree, key))

    # --- inputs ----------------------------------------------------------
    def change_field(self, key: int, field_name: str) -> bool:
        return self._changed("change_field", key, editing.change_field(self.tree, self.materializer, key, field_name))

    def change_operator(self, key: int, operator_name: str) -> bool:
        return self._changed(
            "change_operator", key, editing.change_operator(self.tree, self.materializer, key, operator_name)
        )

    def set_match(self, key: int, match: str) -> bool:
        return self._changed("set_match", key, editing.set_match(self.tree, key, match))

    def set_quantity(self, key: int, quantity: Optional[str]) -> bool:
        return self._changed("set_quantity", key, editing.set_quantity(self.tree, key, quantity))

    def set_value(self, key: int, value: Optional[str]) -> bool:
        return self._changed("set_value", key, editing.set_value(self.tree, key, value))

    def set_range(self, key: int, start: Optional[str], end: Optional[str]) -> bool:
        return self._changed("set_range", key, editing.set_range(self.tree, key, start, end))

    def set_boolean(self, key: int, value: bool) -> bool:
        return self._changed("set_boolean", key, editing.set_boolean(self.tree, key, value))
