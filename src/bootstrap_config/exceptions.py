"""Exceptions for bootstrap-config."""


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Error reading or writing a declaration or document file."""

    pass


class ElementError(ConfigError):
    """A bootstrap element was given invalid arguments or an unsupported platform."""

    pass


class DuplicateNameError(ConfigError):
    """A config or config set with the same name is already registered."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Registry already contains a {kind} named '{name}'")


class UnknownReferenceError(ConfigError):
    """A config set references configs that are not registered.

    All offending names are reported together, in declared order.
    """

    def __init__(self, config_set: str, names: list[str]):
        self.config_set = config_set
        self.names = list(names)
        joined = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(f"Unknown configs referenced in definition of '{config_set}': {joined}")


class MergeConflictError(ConfigError):
    """Two fragments hold incompatible types for the same key."""

    def __init__(self, key: str, existing, incoming):
        self.key = key
        super().__init__(
            f"Incompatible types for key '{key}': cannot merge {type(incoming).__name__} "
            f"{incoming!r} into {type(existing).__name__} {existing!r}"
        )
