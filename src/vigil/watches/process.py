"""Subprocess helpers shared by trigger and action execution."""

import asyncio
import contextlib
import os
import signal


async def kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """Kill a process started with ``start_new_session=True`` and reap it.

    The whole process group is signalled so background jobs of a shell
    script, or the command a login shell wraps, do not outlive a timeout.
    """
    # Already gone: the group has no members left
    with contextlib.suppress(ProcessLookupError):
        os.killpg(proc.pid, signal.SIGKILL)
    await proc.wait()
