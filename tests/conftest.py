"""Shared fixtures: in-memory stand-ins for principal, resource and startup script."""

from dataclasses import dataclass
from dataclasses import field
from typing import Any

import pytest
from bootstrap_config import AttachOptions
from bootstrap_config import BindContext
from bootstrap_config import Platform
from bootstrap_config import StackInfo


@dataclass
class FakePrincipal:
    name: str = "InstanceRole"
    grants: list[tuple[list[str], list[str]]] = field(default_factory=list)

    def grant(self, actions: list[str], resources: list[str]) -> None:
        self.grants.append((actions, resources))


@dataclass
class FakeResource:
    logical_id: str = "Instance"
    metadata: dict[str, Any] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value
        self.calls.append(key)


@dataclass
class FakeUserData:
    commands: list[str] = field(default_factory=list)

    def add_commands(self, *commands: str) -> None:
        self.commands.extend(commands)


@pytest.fixture
def principal():
    return FakePrincipal()


@pytest.fixture
def resource():
    return FakeResource()


@pytest.fixture
def user_data():
    return FakeUserData()


@pytest.fixture
def scope():
    return StackInfo(region="eu-west-1", stack_name="web-stack", stack_id="arn:stack/web-stack/1")


@pytest.fixture
def linux_options(principal, user_data):
    return AttachOptions(platform=Platform.LINUX, principal=principal, user_data=user_data)


@pytest.fixture
def windows_options(principal, user_data):
    return AttachOptions(platform=Platform.WINDOWS, principal=principal, user_data=user_data)


@pytest.fixture
def linux_context(principal, scope):
    return BindContext(platform=Platform.LINUX, principal=principal, scope=scope)


@pytest.fixture
def windows_context(principal, scope):
    return BindContext(platform=Platform.WINDOWS, principal=principal, scope=scope)
