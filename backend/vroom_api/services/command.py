"""
Vroom Route API — External Command Abstraction
===============================================

What:  Describes and runs one external process invocation.
How:   ExternalCommand is an immutable argv + working directory.
       CommandRunner is the interface VroomService talks to; SubprocessRunner
       is the real implementation built on asyncio subprocesses.
Who:   VroomService builds an ExternalCommand per request and hands it to
       its runner. Tests substitute a recording runner and never spawn.

Execution contract (SubprocessRunner):
    1. Spawn argv directly (no shell) with cwd set to the command's directory
    2. stderr is merged into stdout; there is no separate diagnostics capture
    3. Read until the stream closes, then wait for the exit
    4. Line terminators are dropped, so the lines come back concatenated
    5. The exit code is logged but not interpreted

    The process handle is always reaped. If reading is interrupted (error
    or request cancellation) the child is killed first.
"""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from typing import Tuple

from pydantic import BaseModel, Field

from vroom_api.exceptions import ExecutionError

logger = logging.getLogger(__name__)


class ExternalCommand(BaseModel):
    """
    One process invocation: argument vector plus working directory.

    args[0] may be relative; it is resolved against cwd when spawned.
    """
    args: Tuple[str, ...] = Field(description="Argument vector, program first")
    cwd: str = Field(description="Working directory for the process")

    model_config = {"frozen": True}

    @property
    def command_line(self) -> str:
        """Space-joined argv, as written to the log."""
        return " ".join(self.args)


class CommandRunner(ABC):
    """
    Interface for running an ExternalCommand and collecting its output.

    Contract:
        - run() returns the merged stdout/stderr text with line terminators removed
        - Failure to start the process is reported as ExecutionError
        - The exit status never turns into an error on its own
    """

    @abstractmethod
    async def run(self, command: ExternalCommand) -> str:
        ...


class SubprocessRunner(CommandRunner):
    """
    Runs commands with asyncio.create_subprocess_exec.

    Each call owns its own child process; concurrent calls share nothing.
    There is no timeout: a slow process holds its request until it exits.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    async def run(self, command: ExternalCommand) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *command.args,
                cwd=command.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except (OSError, ValueError) as e:
            # ValueError: argv the OS cannot accept, e.g. an embedded NUL byte
            logger.error("Failed to start '%s' in %s: %s", command.args[0], command.cwd, e)
            raise ExecutionError(
                message=str(e),
                context={"args": list(command.args), "cwd": command.cwd},
            ) from e

        try:
            raw = await process.stdout.read()
            returncode = await process.wait()
        finally:
            if process.returncode is None:
                logger.warning("Killing unfinished process %d", process.pid)
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        logger.debug("Process %d exited with code %d", process.pid, returncode)
        return self.join_lines(raw.decode(self.encoding, errors="replace"))

    @staticmethod
    def join_lines(text: str) -> str:
        """Concatenate lines, dropping \\n, \\r and \\r\\n terminators."""
        return text.replace("\r", "").replace("\n", "")
