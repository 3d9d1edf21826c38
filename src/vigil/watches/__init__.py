"""Watch subsystem: poll a trigger until it fires, then run an action.

Public API:
- WatchStore: SQLite-backed CRUD for watch records
- TriggerRunner: Discovers and executes trigger executables
- ActionRunner: Runs the action for a fired watch and writes its result
- WatchScheduler: Polling loop plus expiry sweep
- WatchControl: Register, list, inspect and cancel watches
- WatchRuntime: Wires the above together from configuration

Types:
- Watch, WatchAction, WatchStatus: The persisted watch record
- TriggerOutcome, ActionOutcome, WatchResult: Per-run outcomes
- Trigger, TriggerMetadata, TriggerArg: Trigger discovery
"""

from vigil.watches.actions import ActionRunner, interpolate_prompt, read_results
from vigil.watches.control import Registration, WatchControl
from vigil.watches.errors import (
    InvalidDurationError,
    TriggerNotFoundError,
    WatchError,
    WatchNotActiveError,
    WatchNotFoundError,
    WatchValidationError,
)
from vigil.watches.runtime import WatchRuntime
from vigil.watches.scheduler import WatchScheduler
from vigil.watches.store import WatchStore
from vigil.watches.triggers import TriggerRunner
from vigil.watches.types import (
    ActionOutcome,
    Trigger,
    TriggerArg,
    TriggerMetadata,
    TriggerOutcome,
    Watch,
    WatchAction,
    WatchResult,
    WatchStatus,
)

__all__ = [
    "ActionOutcome",
    "ActionRunner",
    "InvalidDurationError",
    "Registration",
    "Trigger",
    "TriggerArg",
    "TriggerMetadata",
    "TriggerNotFoundError",
    "TriggerOutcome",
    "TriggerRunner",
    "Watch",
    "WatchAction",
    "WatchControl",
    "WatchError",
    "WatchNotActiveError",
    "WatchNotFoundError",
    "WatchResult",
    "WatchRuntime",
    "WatchScheduler",
    "WatchStatus",
    "WatchStore",
    "WatchValidationError",
    "interpolate_prompt",
    "read_results",
]
