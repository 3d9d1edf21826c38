"""Watch types.

Public types:
- WatchStatus: Lifecycle state of a watch
- WatchAction: Prompt template + working directory run when a watch fires
- Watch: A persisted watch record
- TriggerOutcome: Result of polling a trigger once (not persisted)
- ActionOutcome: Result of running an action once
- WatchResult: The durable artifact written when a watch fires
- TriggerArg, TriggerMetadata, Trigger: Trigger discovery
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class WatchStatus(str, Enum):
    """Lifecycle state of a watch.

    ``active`` is the only non-terminal state; a watch moves to exactly one of
    the terminal states and never leaves it.
    """

    ACTIVE = "active"
    FIRED = "fired"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not WatchStatus.ACTIVE


@dataclass
class WatchAction:
    """Action to run when a watch fires."""

    prompt_template: str
    working_directory: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"prompt": self.prompt_template}
        if self.working_directory:
            data["cwd"] = self.working_directory
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchAction":
        return cls(
            prompt_template=data.get("prompt", ""),
            working_directory=data.get("cwd"),
        )


@dataclass
class Watch:
    """A registered watch."""

    id: str
    trigger: str
    params: list[str]
    action: WatchAction
    created_at: datetime
    expires_at: datetime
    interval: str
    status: WatchStatus = WatchStatus.ACTIVE
    last_checked_at: datetime | None = None
    fired_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status is WatchStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape exposed by the control surface."""

        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "trigger": self.trigger,
            "params": list(self.params),
            "action": self.action.to_dict(),
            "status": self.status.value,
            "createdAt": iso(self.created_at),
            "expiresAt": iso(self.expires_at),
            "interval": self.interval,
            "lastCheck": iso(self.last_checked_at),
            "firedAt": iso(self.fired_at),
        }


@dataclass
class TriggerOutcome:
    """Result of executing a trigger once.

    ``fired`` is the condition; ``error`` is reserved for execution faults,
    except for the "fired but stdout was not a JSON object" case where it
    carries a warning next to ``fired=True``.
    """

    fired: bool
    payload: dict[str, Any] | None = None
    error: str | None = None

    @property
    def is_fault(self) -> bool:
        return self.error is not None and not self.fired

    @classmethod
    def not_fired(cls) -> "TriggerOutcome":
        return cls(fired=False, payload=None)

    @classmethod
    def fault(cls, message: str) -> "TriggerOutcome":
        return cls(fired=False, payload=None, error=message)


@dataclass
class ActionOutcome:
    """Result of running an action process."""

    prompt: str
    working_directory: str
    exit_code: int
    stdout: str
    stderr: str
    completed_at: datetime
    # Set for execution faults (spawn failure, timeout), not for non-zero exits
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "prompt": self.prompt,
            "cwd": self.working_directory,
            "exitCode": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "completedAt": self.completed_at.isoformat(),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionOutcome":
        return cls(
            prompt=data["prompt"],
            working_directory=data["cwd"],
            exit_code=int(data["exitCode"]),
            stdout=data.get("stdout", ""),
            stderr=data.get("stderr", ""),
            completed_at=datetime.fromisoformat(data["completedAt"]),
            error=data.get("error"),
        )


@dataclass
class WatchResult:
    """Result file written when a watch fires."""

    watch_id: str
    trigger: str
    params: list[str]
    trigger_payload: dict[str, Any]
    action: ActionOutcome
    fired_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "watchId": self.watch_id,
            "trigger": self.trigger,
            "params": list(self.params),
            "triggerPayload": self.trigger_payload,
            "action": self.action.to_dict(),
            "firedAt": self.fired_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchResult":
        return cls(
            watch_id=data["watchId"],
            trigger=data["trigger"],
            params=list(data.get("params", [])),
            trigger_payload=data.get("triggerPayload") or {},
            action=ActionOutcome.from_dict(data["action"]),
            fired_at=datetime.fromisoformat(data["firedAt"]),
        )


@dataclass
class TriggerArg:
    """A documented positional argument of a trigger."""

    name: str
    description: str = ""


@dataclass
class TriggerMetadata:
    """Descriptive sidecar for a trigger executable."""

    name: str
    description: str | None = None
    args: list[TriggerArg] = field(default_factory=list)
    default_interval: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "TriggerMetadata":
        """Build metadata from a parsed sidecar.

        Accepts both ``defaultInterval`` and ``default_interval``. The
        canonical name always comes from the executable, not the sidecar.
        """
        raw_args = data.get("args") or []
        args: list[TriggerArg] = []
        for raw in raw_args:
            if isinstance(raw, dict) and raw.get("name"):
                args.append(
                    TriggerArg(
                        name=str(raw["name"]),
                        description=str(raw.get("description") or ""),
                    )
                )
            elif isinstance(raw, str):
                args.append(TriggerArg(name=raw))

        description = data.get("description")
        default_interval = data.get("defaultInterval", data.get("default_interval"))
        return cls(
            name=name,
            description=str(description) if description is not None else None,
            args=args,
            default_interval=str(default_interval) if default_interval else None,
        )


@dataclass
class Trigger:
    """A discovered trigger executable, with metadata when a sidecar exists."""

    name: str
    path: Path
    metadata: TriggerMetadata | None = None

    @property
    def description(self) -> str | None:
        return self.metadata.description if self.metadata else None

    @property
    def default_interval(self) -> str | None:
        return self.metadata.default_interval if self.metadata else None

    @property
    def usage(self) -> str | None:
        if self.metadata is None or not self.metadata.args:
            return None
        arg_str = " ".join(f"<{arg.name}>" for arg in self.metadata.args)
        return f"{self.name} {arg_str}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.metadata is None:
            return data
        if self.metadata.description:
            data["description"] = self.metadata.description
        if self.metadata.args:
            data["args"] = [
                {"name": arg.name, "description": arg.description}
                for arg in self.metadata.args
            ]
        if self.metadata.default_interval:
            data["defaultInterval"] = self.metadata.default_interval
        return data
