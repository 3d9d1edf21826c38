"""Daemon process management.

Example:
    from vigil.service import acquire_pid_file, remove_pid_file

    acquire_pid_file(pid_path)
    try:
        await runtime.scheduler.run()
    finally:
        remove_pid_file(pid_path)
"""

from vigil.service.pid import (
    DaemonAlreadyRunningError,
    ProcessInfo,
    acquire_pid_file,
    get_process_info,
    is_process_alive,
    read_pid_file,
    remove_pid_file,
    send_signal,
    wait_for_exit,
    write_pid_file,
)
from vigil.service.runtime import (
    RuntimeState,
    create_runtime_state_from_config,
    read_runtime_state,
    remove_runtime_state,
    write_runtime_state,
)

__all__ = [
    "DaemonAlreadyRunningError",
    "ProcessInfo",
    "RuntimeState",
    "acquire_pid_file",
    "create_runtime_state_from_config",
    "get_process_info",
    "is_process_alive",
    "read_pid_file",
    "read_runtime_state",
    "remove_pid_file",
    "remove_runtime_state",
    "send_signal",
    "wait_for_exit",
    "write_pid_file",
]
