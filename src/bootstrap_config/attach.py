"""Fingerprinting and attachment of a rendered document.

Attaching writes the document to the resource's metadata, lets the
principal describe and signal the stack, and appends commands to the
startup script that run the bootstrap tool and report its exit status.
"""

import hashlib
import json
import logging

from .models import AttachOptions
from .models import Platform
from .models import RenderedDocument
from .models import Resource
from .models import StackInfo

logger = logging.getLogger(__name__)

INIT_METADATA_KEY = "AWS::CloudFormation::Init"
AUTHENTICATION_METADATA_KEY = "AWS::CloudFormation::Authentication"
SIGNAL_ACTIONS = ["cloudformation:DescribeStackResource", "cloudformation:SignalResource"]
FINGERPRINT_LENGTH = 16


def fingerprint(document: RenderedDocument) -> str:
    """Short content hash of a rendered document.

    Canonical JSON (sorted keys, compact separators) of the config payload
    and authentication, hashed with SHA-256 and truncated to
    FINGERPRINT_LENGTH hex characters.
    """
    canonical = json.dumps(
        {"config": document.config, "authentication": document.authentication},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def resource_locator(resource: Resource, scope: StackInfo) -> str:
    """Arguments identifying where the metadata lives and where to signal."""
    return f"--region {scope.region} --stack {scope.stack_name} --resource {resource.logical_id}"


def startup_commands(options: AttachOptions, locator: str, document_fingerprint: str) -> list[str]:
    """Build the startup script commands for the target platform.

    Args:
        options: Attach options (platform, config sets and flags)
        locator: Output of resource_locator
        document_fingerprint: Fingerprint of the rendered document

    Returns:
        Commands in execution order
    """
    commands = []
    config_sets = ",".join(options.selected_config_sets)

    if options.embed_fingerprint:
        # '#' starts a comment in both bash and PowerShell
        commands.append(f"# fingerprint: {document_fingerprint}")

    if options.platform is Platform.WINDOWS:
        exit_code = "0" if options.ignore_failures else "$LASTEXITCODE"
        commands.append(f"cfn-init.exe -v {locator} -c {config_sets}")
        commands.append(f"cfn-signal.exe -e {exit_code} {locator}")
        if options.print_log:
            commands.append("type C:\\cfn\\log\\cfn-init.log")
    else:
        exit_code = "0" if options.ignore_failures else "$?"
        # Subshell without errexit so the real exit code reaches cfn-signal
        commands.append("(")
        commands.append("  set +e")
        commands.append(f"  /opt/aws/bin/cfn-init -v {locator} -c {config_sets}")
        commands.append(f"  /opt/aws/bin/cfn-signal -e {exit_code} {locator}")
        if options.print_log:
            commands.append("  cat /var/log/cfn-init.log >&2")
        commands.append(")")

    return commands


def attach_document(
    document: RenderedDocument, resource: Resource, options: AttachOptions, scope: StackInfo
) -> str:
    """Emit a rendered document to its collaborators.

    Side effects, in order:
    1. Config payload written as resource metadata
    2. Describe/signal permissions granted to the principal on the stack
    3. Authentication written as resource metadata, if present
    4. Bootstrap commands appended to the startup script

    Returns:
        Fingerprint of the document
    """
    document_fingerprint = fingerprint(document)

    resource.add_metadata(INIT_METADATA_KEY, document.config)
    options.principal.grant(list(SIGNAL_ACTIONS), [scope.stack_id])
    if document.authentication is not None:
        resource.add_metadata(AUTHENTICATION_METADATA_KEY, document.authentication)

    locator = resource_locator(resource, scope)
    options.user_data.add_commands(*startup_commands(options, locator, document_fingerprint))

    logger.info(
        f"Attached bootstrap config to '{resource.logical_id}' "
        f"(fingerprint {document_fingerprint}, config sets {options.selected_config_sets})"
    )
    return document_fingerprint
