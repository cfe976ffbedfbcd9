"""
Vroom Route API — Vroom Service (Route Request Handler)
========================================================

What:  Turns a RouteRequest into a VROOM invocation and returns its JSON.
How:   Validate → build command → run → parse. Each step is a separate
       method so tests can exercise it without spawning anything.
Who:   Called by GET /route through the get_vroom_service dependency.
When:  Once per HTTP request; the service itself holds no per-request state.

Preconditions (checked in this order, each a distinct error):
    1. Binary exists         → BinaryNotFoundError
    2. Binary is executable  → BinaryNotExecutableError
    3. At least 2 locations  → ValidationError

Command line:
    ./<binary name> [-s] [-e] [-g] loc=<loc1>&loc=<loc2>&...&loc=<locN>

    The locations are joined verbatim (no URL encoding). argv is handed to the
    OS without a shell, so the joined string reaches VROOM as one argument.
"""

import json
import logging
import time
from typing import Any, List, Optional

from fastapi import Request

from vroom_api.exceptions import (
    BinaryNotExecutableError,
    BinaryNotFoundError,
    ExecutionError,
    ValidationError,
)
from vroom_api.schemas.route import RouteRequest, VroomBinary
from vroom_api.services.command import CommandRunner, ExternalCommand, SubprocessRunner

logger = logging.getLogger(__name__)

MIN_LOCATIONS = 2


def _reject_constant(name: str) -> Any:
    """NaN, Infinity and -Infinity are accepted by json.loads but are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


class VroomService:
    """
    Validates routing requests and runs the VROOM binary for them.

    Dependencies are fixed at construction:
        binary: Immutable descriptor of the executable (from configuration)
        runner: Process runner; SubprocessRunner unless a test injects another
    """

    def __init__(self, binary: VroomBinary, runner: Optional[CommandRunner] = None):
        self.binary = binary
        self.runner = runner or SubprocessRunner()

    def check_binary(self) -> None:
        """Raises if the configured binary is missing or not executable."""
        if not self.binary.exists():
            logger.error("Vroom binary file doesn't exist: %s", self.binary.path)
            raise BinaryNotFoundError(self.binary.path)
        if not self.binary.is_executable():
            logger.error("Cannot execute Vroom binary file: %s", self.binary.path)
            raise BinaryNotExecutableError(self.binary.path)

    def validate_request(self, request: RouteRequest) -> None:
        if len(request.locations) < MIN_LOCATIONS:
            logger.error("Zero or one location sent")
            raise ValidationError(
                message="Must send more than one location",
                field="loc",
                context={"count": len(request.locations)},
            )

    def build_arguments(self, request: RouteRequest) -> List[str]:
        """
        Build the VROOM argument vector for a request.

        Order is fixed: program, -s, -e, -g, then the single loc= argument.
        """
        args = ["./" + self.binary.name]
        if request.start_at_first:
            args.append("-s")
        if request.end_at_last:
            args.append("-e")
        if request.include_geometry:
            args.append("-g")
        args.append("loc=" + "&loc=".join(request.locations))
        return args

    def build_command(self, request: RouteRequest) -> ExternalCommand:
        return ExternalCommand(
            args=tuple(self.build_arguments(request)),
            cwd=self.binary.directory,
        )

    @staticmethod
    def parse_output(output: str) -> Any:
        """
        Parse VROOM's output as a JSON document and return it unchanged.

        Raises:
            ExecutionError: The output is not valid JSON (message is the
                            parser's own error text). Non-standard
                            constants such as NaN count as invalid.
        """
        try:
            return json.loads(output, parse_constant=_reject_constant)
        except ValueError as e:
            raise ExecutionError(
                message=str(e),
                context={"output": output[:500]},
            ) from e

    async def solve(self, request: RouteRequest) -> Any:
        """
        Run VROOM for one request and return the parsed JSON document.

        The millisecond timestamp taken on entry tags both log lines so the
        command and its output can be matched up under concurrent load.

        Raises:
            BinaryNotFoundError, BinaryNotExecutableError, ValidationError:
                Precondition failed; nothing was spawned.
            ExecutionError: The process could not start or printed non-JSON.
        """
        run_id = int(time.time() * 1000)

        self.check_binary()
        self.validate_request(request)

        command = self.build_command(request)
        logger.info("Run (%d): %s", run_id, command.command_line)

        output = await self.runner.run(command)
        logger.info("Output (%d): %s", run_id, output)

        return self.parse_output(output)


def get_vroom_service(request: Request) -> VroomService:
    """
    FastAPI dependency returning the service built by create_app().

    Tests replace it through app.dependency_overrides.
    """
    return request.app.state.vroom_service
