"""Bootstrap elements.

Each element renders one provisioning directive. Elements are immutable;
``bind`` is called once per attach with a BindContext and returns the
element's config fragment and, where the element needs credentials, an
authentication fragment.

The set of kinds is closed (see ElementType). Configs group and order
elements by ``element_type``, never by class.
"""

import json
from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any
from typing import ClassVar

from .exceptions import ElementError
from .models import BindContext
from .models import ElementConfig
from .models import ElementType
from .models import Platform


class InitElement(ABC):
    """Base class for bootstrap elements."""

    element_type: ClassVar[ElementType]

    @abstractmethod
    def bind(self, context: BindContext) -> ElementConfig:
        """Render this element for the given context."""


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop None values and empty collections."""
    return {k: v for k, v in values.items() if v is not None and v != [] and v != {}}


def _as_tuple(value: Any) -> tuple:
    """Coerce a sequence field to a tuple; a bare string is one item, not characters."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


def _require_platform(context: BindContext, platform: Platform, what: str) -> None:
    if context.platform is not platform:
        raise ElementError(f"{what} is only supported on {platform.value}, not {context.platform.value}")


def _default_key(key: str | None, index: int) -> str:
    # Zero padded so the bootstrap tool's alphabetical ordering matches declaration order
    return str(key) if key else f"{index:03d}"


@dataclass(frozen=True)
class InitPackage(InitElement):
    """Install a package with a package manager.

    ``msi`` and ``rpm`` packages are keyed installers: ``name`` is the
    installer location and ``key`` the entry name (defaults to the index).
    """

    element_type: ClassVar[ElementType] = ElementType.PACKAGE

    manager: str
    name: str
    versions: tuple[str, ...] = ()
    key: str | None = None

    KEYED_MANAGERS: ClassVar[frozenset[str]] = frozenset({"msi", "rpm"})

    def __post_init__(self):
        object.__setattr__(self, "versions", _as_tuple(self.versions))

    @classmethod
    def yum(cls, name: str, *versions: str) -> "InitPackage":
        return cls("yum", name, versions)

    @classmethod
    def apt(cls, name: str, *versions: str) -> "InitPackage":
        return cls("apt", name, versions)

    @classmethod
    def python(cls, name: str, *versions: str) -> "InitPackage":
        return cls("python", name, versions)

    @classmethod
    def rubygems(cls, name: str, *versions: str) -> "InitPackage":
        return cls("rubygems", name, versions)

    @classmethod
    def rpm(cls, location: str, key: str | None = None) -> "InitPackage":
        return cls("rpm", location, key=key)

    @classmethod
    def msi(cls, location: str, key: str | None = None) -> "InitPackage":
        return cls("msi", location, key=key)

    def bind(self, context: BindContext) -> ElementConfig:
        if self.manager == "msi":
            _require_platform(context, Platform.WINDOWS, "MSI packages")
        else:
            _require_platform(context, Platform.LINUX, f"'{self.manager}' packages")

        if self.manager in self.KEYED_MANAGERS:
            return ElementConfig(config={self.manager: {_default_key(self.key, context.index): self.name}})
        return ElementConfig(config={self.manager: {self.name: list(self.versions)}})


@dataclass(frozen=True)
class InitGroup(InitElement):
    """Create a Linux group."""

    element_type: ClassVar[ElementType] = ElementType.GROUP

    name: str
    gid: int | None = None

    def bind(self, context: BindContext) -> ElementConfig:
        _require_platform(context, Platform.LINUX, "Groups")
        body = {"gid": str(self.gid)} if self.gid is not None else {}
        return ElementConfig(config={self.name: body})


@dataclass(frozen=True)
class InitUser(InitElement):
    """Create a Linux user."""

    element_type: ClassVar[ElementType] = ElementType.USER

    name: str
    uid: int | None = None
    groups: tuple[str, ...] = ()
    home_dir: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "groups", _as_tuple(self.groups))

    def bind(self, context: BindContext) -> ElementConfig:
        _require_platform(context, Platform.LINUX, "Users")
        body = _compact(
            {
                "uid": str(self.uid) if self.uid is not None else None,
                "groups": list(self.groups),
                "homeDir": self.home_dir,
            }
        )
        return ElementConfig(config={self.name: body})


@dataclass(frozen=True)
class InitSource(InitElement):
    """Download an archive and extract it into a directory.

    Sources read from a bucket grant the principal read access to the
    object and add bucket credentials to the authentication fragment.
    """

    element_type: ClassVar[ElementType] = ElementType.SOURCE

    AUTH_NAME: ClassVar[str] = "S3AccessCreds"

    target_directory: str
    url: str | None = None
    bucket: str | None = None
    object_key: str | None = None

    def __post_init__(self):
        if (self.url is None) == (self.bucket is None):
            raise ElementError("InitSource needs exactly one of url or bucket")
        if self.bucket is not None and not self.object_key:
            raise ElementError("InitSource from a bucket needs an object key")

    @classmethod
    def from_url(cls, target_directory: str, url: str) -> "InitSource":
        return cls(target_directory, url=url)

    @classmethod
    def from_s3_object(cls, target_directory: str, bucket: str, key: str) -> "InitSource":
        return cls(target_directory, bucket=bucket, object_key=key)

    def bind(self, context: BindContext) -> ElementConfig:
        if self.bucket is None:
            return ElementConfig(config={self.target_directory: self.url})

        context.principal.grant(["s3:GetObject"], [f"arn:aws:s3:::{self.bucket}/{self.object_key}"])
        url = f"https://s3.{context.scope.region}.amazonaws.com/{self.bucket}/{self.object_key}"
        authentication = {
            self.AUTH_NAME: {
                "type": "S3",
                "roleName": context.principal.name,
                "buckets": [self.bucket],
            }
        }
        return ElementConfig(config={self.target_directory: url}, authentication=authentication)


@dataclass(frozen=True)
class InitFile(InitElement):
    """Write a file, from inline content or from a URL.

    On Linux, mode, owner and group default to ``000644``, ``root`` and
    ``root``. They are not rendered on Windows.
    """

    element_type: ClassVar[ElementType] = ElementType.FILE

    path: str
    content: str | dict[str, Any] | None = field(default=None, hash=False)
    url: str | None = None
    mode: str | None = None
    owner: str | None = None
    group: str | None = None
    encoding: str | None = None

    def __post_init__(self):
        if (self.content is None) == (self.url is None):
            raise ElementError(f"InitFile '{self.path}' needs exactly one of content or url")

    @classmethod
    def from_string(cls, path: str, content: str, **options: Any) -> "InitFile":
        return cls(path, content=content, **options)

    @classmethod
    def from_object(cls, path: str, obj: dict[str, Any], **options: Any) -> "InitFile":
        # Round-trip through JSON so only serializable content is accepted
        return cls(path, content=json.loads(json.dumps(obj)), **options)

    @classmethod
    def from_url(cls, path: str, url: str, **options: Any) -> "InitFile":
        return cls(path, url=url, **options)

    def bind(self, context: BindContext) -> ElementConfig:
        body: dict[str, Any] = {
            "source": self.url,
            "encoding": self.encoding,
        }
        if context.platform is Platform.LINUX:
            body["mode"] = self.mode or "000644"
            body["owner"] = self.owner or "root"
            body["group"] = self.group or "root"
        body = _compact(body)
        # Empty content ("" or {}) is still content
        if self.content is not None:
            body = {"content": self.content, **body}
        return ElementConfig(config={self.path: body})


@dataclass(frozen=True)
class InitCommand(InitElement):
    """Run a command.

    Commands run in alphabetical order of their key; the key defaults to
    the zero-padded index so commands run in declaration order.
    """

    element_type: ClassVar[ElementType] = ElementType.COMMAND

    command: str | tuple[str, ...]
    key: str | None = None
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict, hash=False)
    test: str | None = None
    ignore_errors: bool = False
    wait_after_completion: int | None = None

    def __post_init__(self):
        if not isinstance(self.command, str):
            object.__setattr__(self, "command", tuple(self.command))
        if not self.command:
            raise ElementError("InitCommand needs a non-empty command")
        object.__setattr__(self, "env", MappingProxyType(dict(self.env or {})))

    @classmethod
    def shell_command(cls, command: str, **options: Any) -> "InitCommand":
        return cls(command, **options)

    @classmethod
    def argv_command(cls, argv: list[str], **options: Any) -> "InitCommand":
        return cls(tuple(argv), **options)

    def bind(self, context: BindContext) -> ElementConfig:
        if self.wait_after_completion is not None:
            _require_platform(context, Platform.WINDOWS, "waitAfterCompletion")

        command = self.command if isinstance(self.command, str) else list(self.command)
        body = _compact(
            {
                "command": command,
                "cwd": self.cwd,
                "env": dict(self.env),
                "test": self.test,
                "ignoreErrors": True if self.ignore_errors else None,
                "waitAfterCompletion": self.wait_after_completion,
            }
        )
        return ElementConfig(config={_default_key(self.key, context.index): body})


@dataclass(frozen=True)
class InitService(InitElement):
    """Enable, start or restart a service.

    Rendered under ``sysvinit`` on Linux and ``windows`` on Windows. The
    service restarts whenever one of the listed files, sources, packages
    or commands changes.
    """

    element_type: ClassVar[ElementType] = ElementType.SERVICE

    name: str
    enabled: bool = True
    ensure_running: bool = True
    files: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    packages: dict[str, list[str]] = field(default_factory=dict, hash=False)
    commands: tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("files", "sources", "commands"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))
        packages = {manager: _as_tuple(names) for manager, names in (self.packages or {}).items()}
        object.__setattr__(self, "packages", MappingProxyType(packages))

    @classmethod
    def enable(cls, name: str, **options: Any) -> "InitService":
        return cls(name, **options)

    @classmethod
    def disable(cls, name: str) -> "InitService":
        return cls(name, enabled=False, ensure_running=False)

    def bind(self, context: BindContext) -> ElementConfig:
        manager = "windows" if context.platform is Platform.WINDOWS else "sysvinit"
        body = _compact(
            {
                "enabled": self.enabled,
                "ensureRunning": self.ensure_running,
                "files": list(self.files),
                "sources": list(self.sources),
                "packages": {k: list(v) for k, v in self.packages.items()},
                "commands": list(self.commands),
            }
        )
        return ElementConfig(config={manager: {self.name: body}})
