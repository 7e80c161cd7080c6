"""Bundle builders reading a pre-signed bundle manifest.

Constructing the protocol-specific transactions happens elsewhere; these
builders only load the result, either from a JSON file or from the stdout
of an external builder command.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from typing import Any, List

from distarb.common.config import Settings, parse_bundle_manifest, read_bundle_manifest
from distarb.common.errors import InputValidationError
from distarb.common.models import BundleManifest
from distarb.execution.interface import BuiltBundle, BundleBuilder

log = logging.getLogger(__name__)


def split_command(command: str) -> List[str]:
    """Split a builder command line into argv; ``ValueError`` if unusable."""
    argv = shlex.split(command)
    if not argv:
        raise ValueError("builder command is empty")
    return argv


def _built(manifest: BundleManifest) -> BuiltBundle:
    bundle = manifest.to_bundle()
    log.info("Loaded bundle with %d transactions, expected profit %d wei", len(bundle), manifest.expected_profit)
    return BuiltBundle(bundle=bundle, expected_profit=manifest.expected_profit)


def bundle_from_manifest(payload: Any) -> BuiltBundle:
    """Turn a decoded manifest into a Bundle plus expected profit."""
    try:
        manifest = parse_bundle_manifest(payload)
    except ValueError as exc:
        raise InputValidationError(f"invalid bundle manifest: {exc}", stage="build") from exc
    return _built(manifest)


class ManifestBundleBuilder(BundleBuilder):
    async def build(self, settings: Settings) -> BuiltBundle:
        path = settings.bundle_manifest_path
        if not path:
            raise InputValidationError("no bundle manifest configured", stage="build")
        try:
            manifest = read_bundle_manifest(path)
        except (OSError, ValueError) as exc:
            raise InputValidationError(f"failed to load bundle manifest {path}: {exc}", stage="build") from exc
        return _built(manifest)


class CommandBundleBuilder(BundleBuilder):
    """Runs the configured builder command and parses its stdout as a manifest.

    The child is killed if it outlives the timeout or the run is cancelled.
    """

    def __init__(self, timeout_seconds: float = 120.0) -> None:
        self.timeout_seconds = timeout_seconds

    async def build(self, settings: Settings) -> BuiltBundle:
        command = settings.builder_command
        if not command:
            raise InputValidationError("no builder command configured", stage="build")
        try:
            argv = split_command(command)
        except ValueError as exc:
            raise InputValidationError(f"cannot parse builder command: {exc}", stage="build") from exc
        log.info("Running builder command: %s", argv[0])
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except OSError as exc:
            raise InputValidationError(f"failed to start builder command: {exc}", stage="build") from exc
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise InputValidationError(f"builder command timed out after {self.timeout_seconds:.0f}s", stage="build") from exc
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
        if proc.returncode != 0:
            detail = stderr.decode("utf-8", "replace").strip()[-500:]
            raise InputValidationError(f"builder command exited with {proc.returncode}: {detail}", stage="build")
        try:
            payload = json.loads(stdout.decode("utf-8"))
        except ValueError as exc:
            raise InputValidationError(f"builder command produced an invalid manifest: {exc}", stage="build") from exc
        return bundle_from_manifest(payload)


def builder_for(settings: Settings) -> BundleBuilder:
    if settings.builder_command:
        return CommandBundleBuilder()
    return ManifestBundleBuilder()


__all__ = ["split_command", "bundle_from_manifest", "ManifestBundleBuilder", "CommandBundleBuilder", "builder_for"]
