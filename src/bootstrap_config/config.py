"""A single named bag of bootstrap elements."""

import logging
from typing import Any

from .elements import InitElement
from .models import BindContext
from .models import ElementConfig
from .models import ElementType
from .utils import merge_all

logger = logging.getLogger(__name__)


class InitConfig:
    """Ordered collection of bootstrap elements.

    Elements keep their insertion order, but binding is grouped by kind
    in ElementType order (packages first, services last). Within a kind,
    elements are bound in insertion order and indexed from zero.

    Args:
        elements: Initial elements
    """

    def __init__(self, elements: list[InitElement] | None = None):
        self._elements: list[InitElement] = []
        self.add(*(elements or []))

    @property
    def elements(self) -> list[InitElement]:
        """Copy of the elements in insertion order."""
        return list(self._elements)

    def is_empty(self) -> bool:
        """Whether this config has no elements."""
        return not self._elements

    def add(self, *elements: InitElement) -> None:
        """Append one or more elements."""
        self._elements.extend(elements)

    def bind(self, context: BindContext) -> ElementConfig:
        """Bind all elements into one config fragment and one authentication fragment.

        Args:
            context: Context shared by all elements; each element gets a copy
                carrying its index within its kind

        Returns:
            ElementConfig whose config maps kind plural names (``packages``,
            ``files``, ...) to merged fragments. Kinds without elements are
            omitted.
        """
        config: dict[str, Any] = {}
        authentications = []

        for element_type in ElementType:
            bound = self._bind_type(element_type, context)
            if bound is None:
                continue
            config[element_type.config_key] = bound.config
            authentications.append(bound.authentication)

        return ElementConfig(config=config, authentication=merge_all(authentications))

    def _bind_type(self, element_type: ElementType, context: BindContext) -> ElementConfig | None:
        elements = [e for e in self._elements if e.element_type is element_type]
        if not elements:
            return None

        logger.debug(f"Binding {len(elements)} {element_type.value} element(s)")
        results = [element.bind(context.with_index(index)) for index, element in enumerate(elements)]

        return ElementConfig(
            config=merge_all(r.config for r in results) or {},
            authentication=merge_all(r.authentication for r in results),
        )
