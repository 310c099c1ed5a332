"""bootstrap-config: Assemble machine bootstrap configuration documents.

This library builds a declarative bootstrap document from named configs
(ordered bags of elements: packages, groups, users, sources, files,
commands and services) grouped into named config sets, and renders it
into one merged document plus an authentication document.

Public API:
    ConfigSetRegistry: Named configs and config sets; renders and attaches
    InitConfig: Ordered collection of bootstrap elements
    InitPackage, InitGroup, InitUser, InitSource, InitFile, InitCommand,
        InitService: Bootstrap elements
    AttachOptions, BindContext, StackInfo: Rendering inputs
    Platform, ElementType: Enums for platform family and element kind
    deep_merge, merge_all: Set-merging fragment utilities
    fingerprint: Short content hash of a rendered document
    load_registry, write_document: YAML declarations and output
    ConfigError and subclasses: Exception types

Example:
    ```python
    from bootstrap_config import AttachOptions, ConfigSetRegistry, InitConfig
    from bootstrap_config import InitCommand, InitPackage, InitService, Platform

    registry = ConfigSetRegistry()
    registry.add_config("web", InitConfig([
        InitPackage.yum("nginx"),
        InitService.enable("nginx"),
    ]))
    registry.add_config("smoke", InitConfig([InitCommand.shell_command("curl -f localhost")]))
    registry.add_config_set("default", ["web", "smoke"])

    # Principal, resource and user data are supplied by the caller
    options = AttachOptions(platform=Platform.LINUX, principal=role, user_data=user_data)
    fingerprint = registry.attach(instance, options)
    ```
"""

from .attach import fingerprint
from .config import InitConfig
from .elements import InitCommand
from .elements import InitElement
from .elements import InitFile
from .elements import InitGroup
from .elements import InitPackage
from .elements import InitService
from .elements import InitSource
from .elements import InitUser
from .exceptions import ConfigError
from .exceptions import ConfigFileError
from .exceptions import DuplicateNameError
from .exceptions import ElementError
from .exceptions import MergeConflictError
from .exceptions import UnknownReferenceError
from .loader import load_registry
from .loader import write_document
from .models import AttachOptions
from .models import BindContext
from .models import ElementConfig
from .models import ElementType
from .models import Platform
from .models import RenderedDocument
from .models import StackInfo
from .registry import ConfigSetRegistry
from .utils import deep_merge
from .utils import merge_all

__version__ = "0.1.0"

__all__ = [
    "ConfigSetRegistry",
    "InitConfig",
    "InitElement",
    "InitPackage",
    "InitGroup",
    "InitUser",
    "InitSource",
    "InitFile",
    "InitCommand",
    "InitService",
    "AttachOptions",
    "BindContext",
    "ElementConfig",
    "ElementType",
    "Platform",
    "RenderedDocument",
    "StackInfo",
    "deep_merge",
    "merge_all",
    "fingerprint",
    "load_registry",
    "write_document",
    "ConfigError",
    "ConfigFileError",
    "DuplicateNameError",
    "ElementError",
    "MergeConflictError",
    "UnknownReferenceError",
]
