"""YAML declarations and rendered document output.

A declaration file describes configs and config sets:

    configSets:
      default: [setup, run]
    configs:
      setup:
        - {type: package, manager: yum, name: nginx}
      run:
        - {type: command, command: "echo hello", key: "010"}

Element entries are dispatched on ``type`` to the matching element class;
the remaining keys are passed as keyword arguments.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from .attach import AUTHENTICATION_METADATA_KEY
from .attach import INIT_METADATA_KEY
from .config import InitConfig
from .elements import InitCommand
from .elements import InitElement
from .elements import InitFile
from .elements import InitGroup
from .elements import InitPackage
from .elements import InitService
from .elements import InitSource
from .elements import InitUser
from .exceptions import ConfigFileError
from .exceptions import ElementError
from .models import ElementType
from .models import RenderedDocument
from .registry import ConfigSetRegistry

logger = logging.getLogger(__name__)

# Fields that become document keys; YAML would otherwise hand over ints (010 is octal 8)
KEY_FIELDS = ("name", "key", "path", "target_directory")

ELEMENT_CLASSES: dict[ElementType, type[InitElement]] = {
    ElementType.PACKAGE: InitPackage,
    ElementType.GROUP: InitGroup,
    ElementType.USER: InitUser,
    ElementType.SOURCE: InitSource,
    ElementType.FILE: InitFile,
    ElementType.COMMAND: InitCommand,
    ElementType.SERVICE: InitService,
}


def element_from_dict(data: dict[str, Any]) -> InitElement:
    """Build an element from a declaration entry.

    Raises:
        ConfigFileError: If the type is unknown or the fields don't fit
    """
    if not isinstance(data, dict) or "type" not in data:
        raise ConfigFileError(f"Element declaration needs a 'type': {data!r}")

    fields = dict(data)
    type_name = fields.pop("type")
    try:
        element_type = ElementType(type_name)
    except ValueError as e:
        known = ", ".join(t.value for t in ElementType)
        raise ConfigFileError(f"Unknown element type '{type_name}' (expected one of: {known})") from e

    for name in KEY_FIELDS:
        if name in fields and fields[name] is not None and not isinstance(fields[name], str):
            raise ConfigFileError(f"Field '{name}' of {type_name} element must be a string, got {fields[name]!r}")

    try:
        return ELEMENT_CLASSES[element_type](**fields)
    except (TypeError, ElementError) as e:
        raise ConfigFileError(f"Invalid fields for {type_name} element: {e}") from e


def registry_from_dict(data: dict[str, Any]) -> ConfigSetRegistry:
    """Build a registry from a parsed declaration.

    Configs are registered before config sets, so config sets may reference
    any config in the same declaration.
    """
    if not isinstance(data, dict):
        raise ConfigFileError(f"Declaration root must be a mapping, got {type(data).__name__}")

    configs = _section(data, "configs")
    config_sets = _section(data, "configSets")

    registry = ConfigSetRegistry()
    for name, entries in configs.items():
        _require_str_name("config", name)
        entries = entries or []
        if not isinstance(entries, list):
            raise ConfigFileError(f"Config '{name}' must be a list of elements, got {type(entries).__name__}")
        registry.add_config(name, InitConfig([element_from_dict(entry) for entry in entries]))

    for name, config_names in config_sets.items():
        _require_str_name("config set", name)
        config_names = config_names or []
        if not isinstance(config_names, list) or not all(isinstance(c, str) for c in config_names):
            raise ConfigFileError(f"Config set '{name}' must be a list of config names, got {config_names!r}")
        registry.add_config_set(name, config_names)
    return registry


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigFileError(f"'{key}' must be a mapping, got {type(section).__name__}")
    return section


def _require_str_name(kind: str, name: Any) -> None:
    if not isinstance(name, str):
        raise ConfigFileError(f"{kind.capitalize()} name must be a string, got {name!r}")


def load_registry(path: Path) -> ConfigSetRegistry:
    """Load a registry from a YAML declaration file.

    Raises:
        ConfigFileError: If the file can't be read or parsed
        ConfigError: If the declaration is inconsistent (duplicates, unknown references)
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(f"Failed to read declaration from {path}: {e}") from e

    registry = registry_from_dict(data or {})
    logger.info(f"Loaded {len(registry.configs)} config(s) from {path}")
    return registry


def document_to_dict(document: RenderedDocument) -> dict[str, Any]:
    """Rendered document in the metadata layout it is attached with."""
    result: dict[str, Any] = {INIT_METADATA_KEY: document.config}
    if document.authentication is not None:
        result[AUTHENTICATION_METADATA_KEY] = document.authentication
    return result


def write_document(path: Path, document: RenderedDocument) -> None:
    """Write a rendered document as YAML.

    Raises:
        ConfigFileError: If write fails
    """
    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w") as f:
            yaml.safe_dump(document_to_dict(document), f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(f"Failed to write document to {path}: {e}") from e
