"""Trigger discovery and execution.

A trigger is an executable in the triggers directory. It receives the watch
params as positional arguments and reports its condition through its exit
code: 0 means the condition holds (and stdout should carry a JSON object),
anything else means "not yet". Stderr is diagnostic only.

Each trigger may ship a sidecar with the same base name
(``gh-pr-merged.yaml``, ``.yml`` or ``.json``) describing it::

    description: Fires when a GitHub pull request is merged
    args:
      - name: repo
        description: owner/name
      - name: pr
        description: Pull request number
    defaultInterval: 5m
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from vigil.watches.process import kill_process_group
from vigil.watches.types import Trigger, TriggerMetadata, TriggerOutcome

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_TIMEOUT = 30.0

SIDECAR_SUFFIXES = (".yaml", ".yml", ".json")


def _is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


class TriggerRunner:
    """Runs trigger executables from a directory and lists them."""

    def __init__(
        self, triggers_dir: Path, timeout: float = DEFAULT_TRIGGER_TIMEOUT
    ) -> None:
        self._triggers_dir = triggers_dir
        self._timeout = timeout

    @property
    def triggers_dir(self) -> Path:
        return self._triggers_dir

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> Path | None:
        """Resolve a trigger name to its executable path.

        The exact file name wins; otherwise a file whose name minus its
        extension matches (``check-npm`` -> ``check-npm.sh``).
        """
        if not name or name.startswith(".") or "/" in name or os.sep in name:
            return None
        if not self._triggers_dir.is_dir():
            return None

        exact = self._triggers_dir / name
        if exact.suffix not in SIDECAR_SUFFIXES and _is_executable_file(exact):
            return exact

        for candidate in sorted(self._triggers_dir.iterdir()):
            if candidate.stem == name and self._is_trigger_file(candidate):
                return candidate
        return None

    def exists(self, name: str) -> bool:
        return self.resolve(name) is not None

    def get(self, name: str) -> Trigger | None:
        path = self.resolve(name)
        if path is None:
            return None
        canonical = path.stem if path.suffix else path.name
        return Trigger(
            name=canonical, path=path, metadata=self._load_metadata(canonical)
        )

    def list(self) -> list[Trigger]:
        """List available triggers, sorted by name."""
        if not self._triggers_dir.is_dir():
            return []

        triggers: list[Trigger] = []
        seen: set[str] = set()
        for path in sorted(self._triggers_dir.iterdir()):
            if not self._is_trigger_file(path):
                continue
            name = path.stem if path.suffix else path.name
            if name in seen:
                logger.warning(
                    "duplicate_trigger_name",
                    extra={"trigger.name": name, "file.path": str(path)},
                )
                continue
            seen.add(name)
            triggers.append(
                Trigger(name=name, path=path, metadata=self._load_metadata(name))
            )
        return triggers

    def _is_trigger_file(self, path: Path) -> bool:
        if path.name.startswith("."):
            return False
        if path.suffix in SIDECAR_SUFFIXES:
            return False
        return _is_executable_file(path)

    def _load_metadata(self, name: str) -> TriggerMetadata | None:
        for suffix in SIDECAR_SUFFIXES:
            sidecar = self._triggers_dir / f"{name}{suffix}"
            if not sidecar.is_file():
                continue
            try:
                text = sidecar.read_text(encoding="utf-8")
                data: Any = (
                    json.loads(text) if suffix == ".json" else yaml.safe_load(text)
                )
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(
                    "trigger_sidecar_invalid",
                    extra={"file.path": str(sidecar), "error.message": str(e)},
                )
                return None
            if data is None:
                data = {}
            if not isinstance(data, dict):
                logger.warning(
                    "trigger_sidecar_invalid",
                    extra={
                        "file.path": str(sidecar),
                        "error.message": "sidecar must be a mapping",
                    },
                )
                return None
            return TriggerMetadata.from_dict(name, data)
        return None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, name: str, params: list[str]) -> TriggerOutcome:
        """Run a trigger once and interpret its result.

        Never raises for trigger problems: missing binaries, spawn failures
        and timeouts come back as ``TriggerOutcome.error``.
        """
        path = await asyncio.to_thread(self.resolve, name)
        if path is None:
            return TriggerOutcome.fault(f"Trigger not found or not executable: {name}")

        try:
            proc = await asyncio.create_subprocess_exec(
                str(path),
                *params,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            return TriggerOutcome.fault(f"Failed to execute trigger: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except TimeoutError:
            await kill_process_group(proc)
            return TriggerOutcome.fault(
                f"Trigger timed out after {self._timeout:g}s: {name}"
            )

        stderr_text = _decode(stderr).strip()
        if stderr_text:
            logger.debug(
                "trigger_stderr",
                extra={
                    "trigger.name": name,
                    "process.exit_code": proc.returncode,
                    "process.stderr": stderr_text[:2000],
                },
            )

        if proc.returncode != 0:
            return TriggerOutcome.not_fired()

        return _parse_fired_output(_decode(stdout))


def _parse_fired_output(stdout: str) -> TriggerOutcome:
    text = stdout.strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return TriggerOutcome(
            fired=True,
            payload={},
            error=f"Trigger fired but output was not valid JSON: {text[:500]!r}",
        )
    if not isinstance(payload, dict):
        return TriggerOutcome(
            fired=True,
            payload={},
            error=f"Trigger fired but output was not a JSON object: {text[:500]!r}",
        )
    return TriggerOutcome(fired=True, payload=payload)
