"""Data models for bootstrap-config."""

from dataclasses import dataclass
from dataclasses import replace
from enum import Enum
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from .exceptions import ConfigError


class Platform(Enum):
    """Operating system family of the machine being bootstrapped.

    Selects element rendering and the shell dialect of startup commands.
    """

    LINUX = "linux"
    WINDOWS = "windows"


class ElementType(Enum):
    """The seven bootstrap element kinds.

    Definition order is binding order. SERVICE must stay last: service
    restarts reference packages, files, users and commands that have to
    exist by the time services are managed.
    """

    PACKAGE = "package"
    GROUP = "group"
    USER = "user"
    SOURCE = "source"
    FILE = "file"
    COMMAND = "command"
    SERVICE = "service"

    @property
    def config_key(self) -> str:
        """Key this kind's merged fragment is stored under in a config."""
        return f"{self.value}s"


@runtime_checkable
class Principal(Protocol):
    """Credential principal that elements and attach may grant permissions to."""

    name: str

    def grant(self, actions: list[str], resources: list[str]) -> None: ...


@runtime_checkable
class Resource(Protocol):
    """Resource the rendered document is attached to as metadata."""

    logical_id: str

    def add_metadata(self, key: str, value: Any) -> None: ...


@runtime_checkable
class UserData(Protocol):
    """Startup script of the machine; attach appends commands to it."""

    def add_commands(self, *commands: str) -> None: ...


@dataclass(frozen=True)
class StackInfo:
    """Identity of the stack enclosing the attached resource.

    Defaults are the CloudFormation pseudo parameters, resolved at deploy time.
    """

    region: str = "${AWS::Region}"
    stack_name: str = "${AWS::StackName}"
    stack_id: str = "${AWS::StackId}"


@dataclass(frozen=True)
class BindContext:
    """Values handed to an element when it is bound.

    Attributes:
        platform: Target platform family
        principal: Principal the element may grant permissions to
        scope: Enclosing stack identity
        index: Zero-based position among same-kind elements of one config
    """

    platform: Platform
    principal: Principal
    scope: StackInfo
    index: int = 0

    def with_index(self, index: int) -> "BindContext":
        return replace(self, index=index)


@dataclass(frozen=True)
class ElementConfig:
    """Config and authentication fragments produced by binding.

    Either side may be None when nothing was contributed.
    """

    config: dict[str, Any] | None = None
    authentication: dict[str, Any] | None = None


@dataclass(frozen=True)
class AttachOptions:
    """Options controlling how a registry is rendered and attached.

    Attributes:
        platform: Target platform family (selects the shell dialect)
        principal: Principal passed to every element; attach also grants it
            permission to describe and signal the stack
        user_data: Startup script commands are appended to
        config_sets: Config sets to run at bootstrap (default: ["default"])
        ignore_failures: Always signal success regardless of exit code
        print_log: Dump the bootstrap log after running
        embed_fingerprint: Add a fingerprint comment to the startup script
    """

    platform: Platform
    principal: Principal
    user_data: UserData
    config_sets: list[str] | None = None
    ignore_failures: bool = False
    print_log: bool = True
    embed_fingerprint: bool = True

    def __post_init__(self):
        if not isinstance(self.principal, Principal):
            raise ConfigError(f"principal must provide name and grant(), got {type(self.principal).__name__}")
        if not isinstance(self.user_data, UserData):
            raise ConfigError(f"user_data must provide add_commands(), got {type(self.user_data).__name__}")

    @property
    def selected_config_sets(self) -> list[str]:
        return list(self.config_sets) if self.config_sets else ["default"]


@dataclass(frozen=True)
class RenderedDocument:
    """Result of rendering a registry.

    Attributes:
        config: The ``configSets`` slot plus one entry per non-empty config
        authentication: Merged authentication fragment, if any config had one
    """

    config: dict[str, Any]
    authentication: dict[str, Any] | None = None
