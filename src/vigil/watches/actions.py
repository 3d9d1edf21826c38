"""Action execution for fired watches.

When a watch fires, its prompt template is filled in from the trigger
payload and handed to the action command (``claude -p`` by default). Every
invocation is appended to the watch's transcript under ``logs/`` and the
final WatchResult is written to ``results/{watch_id}.json``.
"""

import asyncio
import json
import logging
import os
import re
import shlex
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from vigil.watches.process import kill_process_group
from vigil.watches.types import ActionOutcome, WatchAction, WatchResult

logger = logging.getLogger(__name__)

DEFAULT_ACTION_COMMAND = ("claude", "-p")
DEFAULT_ACTION_ARGS = ("--permission-mode=dontAsk",)
DEFAULT_ACTION_TIMEOUT = 30.0

# Exit codes reported when the process never produced one of its own
EXIT_CODE_SPAWN_FAILED = 127
EXIT_CODE_TIMED_OUT = 124

_PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, dict | list):
        return json.dumps(value)
    return str(value)


def interpolate_prompt(template: str, variables: dict[str, Any]) -> str:
    """Replace ``{{key}}`` placeholders with values from ``variables``.

    Unknown placeholders are left as-is so the reader can see what the
    trigger did not supply.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return _stringify(variables[key])

    return _PLACEHOLDER_PATTERN.sub(replace, template)


class ActionRunner:
    """Runs action processes and persists their results."""

    def __init__(
        self,
        logs_dir: Path,
        results_dir: Path,
        command: list[str] | tuple[str, ...] = DEFAULT_ACTION_COMMAND,
        extra_args: list[str] | tuple[str, ...] = DEFAULT_ACTION_ARGS,
        timeout: float = DEFAULT_ACTION_TIMEOUT,
        default_cwd: Path | None = None,
        login_shell: bool = False,
    ) -> None:
        if not command:
            raise ValueError("action command must not be empty")
        self._logs_dir = logs_dir
        self._results_dir = results_dir
        self._command = list(command)
        self._extra_args = list(extra_args)
        self._timeout = timeout
        self._default_cwd = default_cwd
        self._login_shell = login_shell

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir

    @property
    def results_dir(self) -> Path:
        return self._results_dir

    def transcript_path(self, watch_id: str) -> Path:
        return self._logs_dir / f"{watch_id}.log"

    def result_path(self, watch_id: str) -> Path:
        return self._results_dir / f"{watch_id}.json"

    def build_argv(self, prompt: str) -> list[str]:
        argv = [*self._command, prompt, *self._extra_args]
        if not self._login_shell:
            return argv
        # Login shells load the user's profile (PATH, keychain agents, ...)
        shell = os.environ.get("SHELL") or "/bin/sh"
        return [shell, "-l", "-c", shlex.join(argv)]

    async def run(
        self,
        watch_id: str,
        action: WatchAction,
        trigger_payload: dict[str, Any],
    ) -> ActionOutcome:
        """Run the action for a fired watch.

        Process failures are returned as data: a non-zero exit keeps its exit
        code, while spawn failures and timeouts also set ``error``. A transcript
        that cannot be written is logged and skipped.
        """
        prompt = interpolate_prompt(action.prompt_template, trigger_payload)
        cwd = str(action.working_directory or self._default_cwd or Path.cwd())
        transcript = self.transcript_path(watch_id)

        await self._append(
            transcript,
            f"\n=== Action started at {datetime.now(UTC).isoformat()} ===\n"
            f"Prompt: {prompt}\n"
            f"CWD: {cwd}\n\n",
        )

        logger.info(
            "action_executing",
            extra={
                "watch.id": watch_id,
                "action.prompt_preview": prompt[:50],
                "action.cwd": cwd,
            },
        )

        stdout, stderr, exit_code, error = await self._execute(
            self.build_argv(prompt), cwd
        )

        output = stdout
        if stderr:
            output += f"[stderr] {stderr}"
        await self._append(
            transcript,
            f"{output}\n=== Action completed with exit code {exit_code} ===\n",
        )

        outcome = ActionOutcome(
            prompt=prompt,
            working_directory=cwd,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            completed_at=datetime.now(UTC),
            error=error,
        )

        if error:
            logger.warning(
                "action_execution_failed",
                extra={"watch.id": watch_id, "error.message": error},
            )
        else:
            logger.info(
                "action_completed",
                extra={"watch.id": watch_id, "process.exit_code": exit_code},
            )
        return outcome

    async def _execute(
        self, argv: list[str], cwd: str
    ) -> tuple[str, str, int, str | None]:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            message = f"Failed to start action: {e}"
            return "", message, EXIT_CODE_SPAWN_FAILED, message

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except TimeoutError:
            await kill_process_group(proc)
            message = f"Action timed out after {self._timeout:g}s"
            return "", message, EXIT_CODE_TIMED_OUT, message

        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            proc.returncode if proc.returncode is not None else 1,
            None,
        )

    def persist_result(self, result: WatchResult) -> Path:
        """Write the result file for a fired watch, replacing any previous one."""
        path = self.result_path(result.watch_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.tmp")
        tmp_path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
        logger.info(
            "result_written",
            extra={"watch.id": result.watch_id, "file.path": str(path)},
        )
        return path

    async def _append(self, path: Path, text: str) -> None:
        # The transcript is a convenience copy; the result file is the record
        try:
            await asyncio.to_thread(_append_text, path, text)
        except OSError as e:
            logger.warning(
                "transcript_write_failed",
                extra={"file.path": str(path), "error.message": str(e)},
            )


def _append_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(text)


def read_results(results_dir: Path) -> list[WatchResult]:
    """Read pending result files (the archive subdirectory is ignored)."""
    if not results_dir.is_dir():
        return []

    results: list[WatchResult] = []
    for path in sorted(results_dir.glob("*.json")):
        try:
            results.append(WatchResult.from_dict(json.loads(path.read_text())))
        except (OSError, ValueError, KeyError) as e:
            logger.warning(
                "result_file_invalid",
                extra={"file.path": str(path), "error.message": str(e)},
            )
    return results
