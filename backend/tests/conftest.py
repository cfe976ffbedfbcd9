"""
Vroom Route API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixtures:
    ├── write_script: Factory writing an executable /bin/sh script into tmp_path
    ├── fake_vroom: Executable stand-in for VROOM that echoes its argv and cwd
    ├── non_executable_binary: A file without any execute bit
    ├── recording_runner: CommandRunner that records commands and never spawns
    ├── build_app: Factory creating an app for a given binary (and runner)
    └── client_for: Async context manager giving an HTTPX client for an app

Real-process tests rely on a POSIX /bin/sh.
"""

import os
import stat
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any app imports
os.environ["VROOM_BINLOCATION"] = "/nonexistent/vroom"
os.environ["LOG_LEVEL"] = "WARNING"

from vroom_api.config import Settings  # noqa: E402
from vroom_api.main import create_app  # noqa: E402
from vroom_api.schemas.route import VroomBinary  # noqa: E402
from vroom_api.services.command import CommandRunner, ExternalCommand  # noqa: E402
from vroom_api.services.vroom_service import VroomService, get_vroom_service  # noqa: E402


EMPTY_SOLUTION = '{"code":0,"routes":[]}'

# Prints its own invocation as JSON: program name, remaining args, physical cwd
ECHO_SCRIPT = """#!/bin/sh
printf '{"code":0,"prog":"%s","args":"%s","cwd":"%s"}\\n' "$0" "$*" "$(pwd -P)"
"""


class RecordingRunner(CommandRunner):
    """Returns canned output and remembers every command it was asked to run."""

    def __init__(self, output: str = EMPTY_SOLUTION):
        self.output = output
        self.commands: List[ExternalCommand] = []

    async def run(self, command: ExternalCommand) -> str:
        self.commands.append(command)
        return self.output


@pytest.fixture
def write_script(tmp_path):
    """
    Factory: write_script(body, name="vroom", subdir="bin") -> Path

    The script is created with mode 0755 in its own directory under tmp_path.
    """
    def _write(body: str, name: str = "vroom", subdir: str = "bin") -> Path:
        directory = tmp_path / subdir
        directory.mkdir(parents=True, exist_ok=True)
        script = directory / name
        script.write_text(body)
        script.chmod(0o755)
        return script

    return _write


@pytest.fixture
def fake_vroom(write_script) -> Path:
    return write_script(ECHO_SCRIPT)


@pytest.fixture
def non_executable_binary(tmp_path) -> Path:
    binary = tmp_path / "vroom-noexec"
    binary.write_text(ECHO_SCRIPT)
    binary.chmod(stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH)
    return binary


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def build_app():
    """
    Factory: build_app(binary_path, runner=None) -> FastAPI

    With a runner, the route's VroomService dependency is overridden so no
    process is ever spawned.
    """
    def _build(binary_path, runner: Optional[CommandRunner] = None):
        app = create_app(Settings(vroom_binlocation=str(binary_path), log_level="WARNING"))
        if runner is not None:
            service = VroomService(binary=VroomBinary(path=str(binary_path)), runner=runner)
            app.dependency_overrides[get_vroom_service] = lambda: service
        return app

    return _build


@pytest.fixture
def client_for():
    """
    Usage:
        async with client_for(app) as client:
            response = await client.get("/route", params=...)
    """
    @asynccontextmanager
    async def _client(app, raise_app_exceptions: bool = True):
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    return _client
