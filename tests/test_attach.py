"""Tests for fingerprinting and attachment."""

import pytest
from bootstrap_config import AttachOptions
from bootstrap_config import ConfigError
from bootstrap_config import ConfigSetRegistry
from bootstrap_config import ElementError
from bootstrap_config import InitConfig
from bootstrap_config import InitPackage
from bootstrap_config import InitSource
from bootstrap_config import Platform
from bootstrap_config import RenderedDocument
from bootstrap_config import fingerprint
from bootstrap_config.attach import AUTHENTICATION_METADATA_KEY
from bootstrap_config.attach import INIT_METADATA_KEY
from bootstrap_config.attach import SIGNAL_ACTIONS
from bootstrap_config.attach import resource_locator
from bootstrap_config.attach import startup_commands


class TestFingerprint:
    """Test fingerprint function."""

    def test_fixed_length_hex(self):
        """Test fingerprints are 16 hex characters."""
        value = fingerprint(RenderedDocument(config={"configSets": {}}))
        assert len(value) == 16
        int(value, 16)

    def test_deterministic(self):
        """Test equal documents have equal fingerprints regardless of key order."""
        a = RenderedDocument(config={"configSets": {"default": ["x"]}, "x": {"commands": {}}})
        b = RenderedDocument(config={"x": {"commands": {}}, "configSets": {"default": ["x"]}})
        assert fingerprint(a) == fingerprint(b)

    def test_changes_with_config(self):
        """Test any change to the config payload changes the fingerprint."""
        a = RenderedDocument(config={"x": {"packages": {"yum": {"nginx": []}}}})
        b = RenderedDocument(config={"x": {"packages": {"yum": {"httpd": []}}}})
        assert fingerprint(a) != fingerprint(b)

    def test_changes_with_authentication(self):
        """Test a change only in authentication changes the fingerprint."""
        config = {"x": {"sources": {"/opt": "url"}}}
        a = RenderedDocument(config=config, authentication={"creds": {"buckets": ["a"]}})
        b = RenderedDocument(config=config, authentication={"creds": {"buckets": ["b"]}})
        assert fingerprint(a) != fingerprint(b)

    def test_registry_fingerprint_stable(self, scope, linux_options):
        """Test rendering the same registry twice yields the same fingerprint."""
        registry = ConfigSetRegistry.from_elements(InitPackage.yum("nginx"))
        first = fingerprint(registry.render(scope, linux_options))
        second = fingerprint(registry.render(scope, linux_options))
        assert first == second


class TestStartupCommands:
    """Test startup_commands function."""

    LOCATOR = "--region r --stack s --resource Instance"

    def test_linux_defaults(self, linux_options):
        """Test Linux commands forward the real exit code and dump the log."""
        commands = startup_commands(linux_options, self.LOCATOR, "abc123")
        assert commands == [
            "# fingerprint: abc123",
            "(",
            "  set +e",
            f"  /opt/aws/bin/cfn-init -v {self.LOCATOR} -c default",
            f"  /opt/aws/bin/cfn-signal -e $? {self.LOCATOR}",
            "  cat /var/log/cfn-init.log >&2",
            ")",
        ]

    def test_windows_defaults(self, windows_options):
        """Test Windows commands forward $LASTEXITCODE and type the log."""
        commands = startup_commands(windows_options, self.LOCATOR, "abc123")
        assert commands == [
            "# fingerprint: abc123",
            f"cfn-init.exe -v {self.LOCATOR} -c default",
            f"cfn-signal.exe -e $LASTEXITCODE {self.LOCATOR}",
            "type C:\\cfn\\log\\cfn-init.log",
        ]

    @pytest.mark.parametrize("platform", [Platform.LINUX, Platform.WINDOWS])
    def test_ignore_failures_signals_success(self, platform, principal, user_data):
        """Test ignore_failures always signals a literal zero."""
        options = AttachOptions(platform=platform, principal=principal, user_data=user_data, ignore_failures=True)
        signal = [c for c in startup_commands(options, self.LOCATOR, "f") if "cfn-signal" in c]
        assert len(signal) == 1
        assert " -e 0 " in signal[0]

    def test_no_fingerprint_no_log(self, principal, user_data):
        """Test fingerprint comment and log dump can be disabled."""
        options = AttachOptions(
            platform=Platform.LINUX,
            principal=principal,
            user_data=user_data,
            embed_fingerprint=False,
            print_log=False,
        )
        commands = startup_commands(options, self.LOCATOR, "f")
        assert not any(c.startswith("#") for c in commands)
        assert not any("cfn-init.log" in c for c in commands)

    def test_selected_config_sets(self, principal, user_data):
        """Test selected config sets are passed comma separated."""
        options = AttachOptions(
            platform=Platform.LINUX, principal=principal, user_data=user_data, config_sets=["base", "app"]
        )
        commands = startup_commands(options, self.LOCATOR, "f")
        assert f"  /opt/aws/bin/cfn-init -v {self.LOCATOR} -c base,app" in commands


class TestAttach:
    """Test ConfigSetRegistry.attach."""

    def test_resource_locator(self, resource, scope):
        """Test the locator names region, stack and resource."""
        assert resource_locator(resource, scope) == "--region eu-west-1 --stack web-stack --resource Instance"

    def test_attach_emits_in_order(self, resource, scope, linux_options, principal, user_data):
        """Test attach writes metadata, grants, writes authentication and appends commands."""
        registry = ConfigSetRegistry.from_elements(InitSource.from_s3_object("/opt/app", "artifacts", "app.tgz"))

        result = registry.attach(resource, linux_options, scope)

        assert resource.calls == [INIT_METADATA_KEY, AUTHENTICATION_METADATA_KEY]
        assert resource.metadata[INIT_METADATA_KEY]["configSets"] == {"default": ["config"]}
        assert resource.metadata[AUTHENTICATION_METADATA_KEY]["S3AccessCreds"]["buckets"] == ["artifacts"]
        # Element grant happens while binding, before the signal grant
        assert principal.grants == [
            (["s3:GetObject"], ["arn:aws:s3:::artifacts/app.tgz"]),
            (SIGNAL_ACTIONS, [scope.stack_id]),
        ]
        assert user_data.commands[0] == f"# fingerprint: {result}"
        assert len(result) == 16

    def test_attach_without_authentication(self, resource, scope, linux_options):
        """Test no authentication metadata is written when there is none."""
        ConfigSetRegistry.from_elements(InitPackage.yum("nginx")).attach(resource, linux_options, scope)
        assert resource.calls == [INIT_METADATA_KEY]

    def test_attach_default_scope(self, resource, linux_options, user_data):
        """Test attach falls back to pseudo parameter stack identity."""
        ConfigSetRegistry.from_elements(InitPackage.yum("nginx")).attach(resource, linux_options)
        assert any("--region ${AWS::Region} --stack ${AWS::StackName}" in c for c in user_data.commands)

    def test_fingerprint_tracks_document_changes(self, resource, scope, linux_options, user_data):
        """Test the embedded fingerprint changes when the document changes."""
        config = InitConfig([InitPackage.yum("nginx")])
        registry = ConfigSetRegistry.from_config(config)

        first = registry.attach(resource, linux_options, scope)
        again = registry.attach(resource, linux_options, scope)
        config.add(InitPackage.yum("git"))
        changed = registry.attach(resource, linux_options, scope)

        assert first == again
        assert first != changed
        fingerprint_lines = [c for c in user_data.commands if c.startswith("# fingerprint:")]
        assert fingerprint_lines == [f"# fingerprint: {f}" for f in (first, again, changed)]

    def test_failed_render_emits_nothing(self, resource, scope, windows_options, principal, user_data):
        """Test a bind failure leaves resource, principal and startup script untouched."""
        registry = ConfigSetRegistry.from_elements(InitPackage.yum("nginx"))

        with pytest.raises(ElementError):
            registry.attach(resource, windows_options, scope)

        assert resource.calls == []
        assert principal.grants == []
        assert user_data.commands == []


class TestCollaborators:
    """Test collaborators are checked against their protocols."""

    def test_principal_must_grant(self, user_data):
        with pytest.raises(ConfigError, match="principal must provide name and grant"):
            AttachOptions(platform=Platform.LINUX, principal="InstanceRole", user_data=user_data)

    def test_user_data_must_add_commands(self, principal):
        with pytest.raises(ConfigError, match="user_data must provide add_commands"):
            AttachOptions(platform=Platform.LINUX, principal=principal, user_data=["#!/bin/bash"])

    def test_resource_checked_before_rendering(self, scope, linux_options, principal, user_data):
        """Test an invalid resource is rejected before anything is emitted."""
        registry = ConfigSetRegistry.from_elements(InitSource.from_s3_object("/opt/app", "artifacts", "app.tgz"))

        with pytest.raises(ConfigError, match="resource must provide logical_id and add_metadata"):
            registry.attach(object(), linux_options, scope)

        assert principal.grants == []
        assert user_data.commands == []
