from __future__ import annotations

import structlog

from scopehealth.core.models import Component

logger = structlog.get_logger(__name__)


class ComponentNotFoundError(LookupError):
    """Raised when an operation names a component id that was never registered."""

    def __init__(self, component_id: str):
        super().__init__(f"Component {component_id} not found")
        self.component_id = component_id


class ComponentRegistry:
    """
    Insertion-ordered store of registered components.

    Re-registering an id replaces the entry in place and keeps its position.
    """

    def __init__(self) -> None:
        self._components: dict[str, Component] = {}

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __len__(self) -> int:
        return len(self._components)

    def upsert(self, component: Component) -> bool:
        """Insert or replace. Returns True when the id was new."""
        is_new = component.id not in self._components
        self._components[component.id] = component
        logger.debug("registry_upsert", component_id=component.id, new=is_new)
        return is_new

    def remove(self, component_id: str) -> Component | None:
        return self._components.pop(component_id, None)

    def get(self, component_id: str) -> Component | None:
        return self._components.get(component_id)

    def require(self, component_id: str) -> Component:
        component = self._components.get(component_id)
        if component is None:
            raise ComponentNotFoundError(component_id)
        return component

    def all(self) -> list[Component]:
        return list(self._components.values())

    def ids(self) -> list[str]:
        return list(self._components)
