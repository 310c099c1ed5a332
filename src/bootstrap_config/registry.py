"""Registry of named configs and config sets."""

import logging
from typing import Any

from .attach import attach_document
from .config import InitConfig
from .elements import InitElement
from .exceptions import ConfigError
from .exceptions import DuplicateNameError
from .exceptions import UnknownReferenceError
from .models import AttachOptions
from .models import BindContext
from .models import RenderedDocument
from .models import Resource
from .models import StackInfo
from .utils import merge_all

logger = logging.getLogger(__name__)

CONFIG_SETS_KEY = "configSets"
DEFAULT_CONFIG_SET = "default"
DEFAULT_CONFIG = "config"


class ConfigSetRegistry:
    """Named configs and the config sets that run them.

    Configs are registered by name; config sets are ordered lists of
    config names invoked together at bootstrap time. Rendering binds every
    non-empty config and drops empty ones, including their config set
    references.

    Args:
        config_sets: Initial config set definitions (name -> config names)
        configs: Initial configs (name -> InitConfig)
    """

    def __init__(
        self,
        config_sets: dict[str, list[str]] | None = None,
        configs: dict[str, InitConfig] | None = None,
    ):
        self._configs: dict[str, InitConfig] = {}
        self._config_sets: dict[str, list[str]] = {}

        for name, config in (configs or {}).items():
            self.add_config(name, config)
        for name, config_names in (config_sets or {}).items():
            self.add_config_set(name, config_names)

    # ===== Construction =====

    @classmethod
    def from_elements(cls, *elements: InitElement) -> "ConfigSetRegistry":
        """Registry with a single config built from the given elements."""
        return cls.from_config(InitConfig(list(elements)))

    @classmethod
    def from_config(cls, config: InitConfig) -> "ConfigSetRegistry":
        """Registry running one config named ``config`` from the ``default`` set."""
        return cls(
            config_sets={DEFAULT_CONFIG_SET: [DEFAULT_CONFIG]},
            configs={DEFAULT_CONFIG: config},
        )

    @classmethod
    def from_config_sets(
        cls, config_sets: dict[str, list[str]], configs: dict[str, InitConfig]
    ) -> "ConfigSetRegistry":
        return cls(config_sets=config_sets, configs=configs)

    # ===== Registration =====

    @property
    def configs(self) -> dict[str, InitConfig]:
        return dict(self._configs)

    @property
    def config_sets(self) -> dict[str, list[str]]:
        return {name: list(members) for name, members in self._config_sets.items()}

    def add_config(self, name: str, config: InitConfig) -> None:
        """Register a config under a name.

        Raises:
            DuplicateNameError: If a config with this name exists
            ConfigError: If the name collides with the config sets key
        """
        if name in self._configs:
            raise DuplicateNameError("config", name)
        if name == CONFIG_SETS_KEY:
            raise ConfigError(f"'{CONFIG_SETS_KEY}' is reserved and cannot be used as a config name")
        self._configs[name] = config
        logger.info(f"Added config '{name}'")

    def add_config_set(self, name: str, config_names: list[str] | None = None) -> None:
        """Register a config set referencing configs in the given order.

        Raises:
            DuplicateNameError: If a config set with this name exists
            UnknownReferenceError: If any referenced config is not registered
        """
        config_names = list(config_names or [])
        if name in self._config_sets:
            raise DuplicateNameError("config set", name)

        unknown = [c for c in config_names if c not in self._configs]
        if unknown:
            raise UnknownReferenceError(name, unknown)

        self._config_sets[name] = config_names
        logger.info(f"Added config set '{name}': {config_names}")

    # ===== Rendering =====

    def render(self, scope: StackInfo, options: AttachOptions) -> RenderedDocument:
        """Bind all non-empty configs into one document.

        Args:
            scope: Enclosing stack identity, passed to every element
            options: Attach options supplying platform and principal

        Returns:
            RenderedDocument with ``configSets`` and one entry per non-empty config
        """
        non_empty = {name: c for name, c in self._configs.items() if not c.is_empty()}
        for name in [n for n in self._configs if n not in non_empty]:
            logger.debug(f"Eliding empty config '{name}'")

        context = BindContext(platform=options.platform, principal=options.principal, scope=scope)
        bound = {name: config.bind(context) for name, config in non_empty.items()}

        document: dict[str, Any] = {
            CONFIG_SETS_KEY: {
                set_name: [c for c in members if c in non_empty]
                for set_name, members in self._config_sets.items()
            }
        }
        for name, result in bound.items():
            document[name] = result.config

        return RenderedDocument(
            config=document,
            authentication=merge_all(result.authentication for result in bound.values()),
        )

    def attach(self, resource: Resource, options: AttachOptions, scope: StackInfo | None = None) -> str:
        """Render and attach to a resource.

        The document reflects the registry at call time; later mutations are
        not seen. Nothing is emitted if rendering fails.

        Args:
            resource: Resource receiving the metadata
            options: Attach options
            scope: Enclosing stack identity (default: pseudo parameters)

        Returns:
            Fingerprint of the rendered document
        """
        if not isinstance(resource, Resource):
            raise ConfigError(f"resource must provide logical_id and add_metadata(), got {type(resource).__name__}")
        scope = scope or StackInfo()
        document = self.render(scope, options)
        return attach_document(document, resource, options, scope)
