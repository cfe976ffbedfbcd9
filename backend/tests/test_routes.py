"""
Vroom Route API — HTTP Endpoint Tests
======================================

What:  Tests for GET /route and GET /health through the full ASGI stack.
How:   HTTPX AsyncClient over ASGITransport; most tests use a recording runner,
       the end-to-end ones run the fake VROOM script.
"""

import asyncio
import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from vroom_api.services.vroom_service import get_vroom_service

LOCATIONS = [("loc", "1,2"), ("loc", "3,4"), ("loc", "5,6")]


class TestRouteEndpoint:

    @pytest.mark.asyncio
    async def test_returns_vroom_document(self, fake_vroom, recording_runner, build_app, client_for):
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"code": 0, "routes": []}

    @pytest.mark.asyncio
    async def test_default_flags(self, fake_vroom, recording_runner, build_app, client_for):
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            await client.get("/route", params=LOCATIONS)

        command = recording_runner.commands[0]
        assert command.args == ("./vroom", "-s", "loc=1,2&loc=3,4&loc=5,6")
        assert Path(command.cwd) == fake_vroom.parent

    @pytest.mark.asyncio
    async def test_query_flags_map_to_arguments(self, fake_vroom, recording_runner, build_app, client_for):
        app = build_app(fake_vroom, recording_runner)
        params = LOCATIONS + [
            ("startAtFirst", "false"),
            ("endAtLast", "true"),
            ("includeGeometry", "true"),
        ]

        async with client_for(app) as client:
            response = await client.get("/route", params=params)

        assert response.status_code == 200
        assert recording_runner.commands[0].args == (
            "./vroom", "-e", "-g", "loc=1,2&loc=3,4&loc=5,6",
        )

    @pytest.mark.asyncio
    async def test_single_location_rejected(self, fake_vroom, recording_runner, build_app, client_for):
        """One location is not a route; nothing should be spawned."""
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params={"loc": "1,2"})

        assert response.status_code == 400
        assert response.json() == {"message": "Must send more than one location"}
        assert recording_runner.commands == []

    @pytest.mark.asyncio
    async def test_no_locations_rejected(self, fake_vroom, recording_runner, build_app, client_for):
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route")

        assert response.status_code == 400
        assert response.json() == {"message": "Must send more than one location"}

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path, recording_runner, build_app, client_for):
        app = build_app(tmp_path / "vroom", recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS)

        assert response.status_code == 400
        assert response.json() == {"message": "Vroom binary file doesn't exist"}
        assert recording_runner.commands == []

    @pytest.mark.asyncio
    async def test_non_executable_binary(self, non_executable_binary, recording_runner, build_app, client_for):
        app = build_app(non_executable_binary, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS)

        assert response.status_code == 400
        assert response.json() == {"message": "Cannot execute Vroom binary file"}

    @pytest.mark.asyncio
    async def test_non_json_output(self, fake_vroom, recording_runner, build_app, client_for):
        recording_runner.output = "ERROR: bad input"
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS)

        assert response.status_code == 400
        assert response.json()["message"].startswith("Expecting value")

    @pytest.mark.asyncio
    async def test_malformed_boolean_is_bad_request(self, fake_vroom, recording_runner, build_app, client_for):
        """Unparseable query values fall back to the generic bad-request message."""
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS + [("includeGeometry", "maybe")])

        assert response.status_code == 400
        assert response.json() == {"message": "Bad request"}
        assert recording_runner.commands == []

    @pytest.mark.asyncio
    async def test_unexpected_error_exposes_message(self, fake_vroom, build_app, client_for):
        """Anything not mapped to an app error still yields a 400 with its message.

        The client re-raises app exceptions, so this also checks that nothing
        escapes the stack after the response is sent.
        """
        service = MagicMock()
        service.solve = AsyncMock(side_effect=RuntimeError("boom"))

        app = build_app(fake_vroom)
        app.dependency_overrides[get_vroom_service] = lambda: service

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS, headers={"X-Request-ID": "boom01"})

        assert response.status_code == 400
        assert response.json() == {"message": "boom"}
        assert response.headers["X-Request-ID"] == "boom01"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_access_logged(self, fake_vroom, build_app, client_for, caplog):
        service = MagicMock()
        service.solve = AsyncMock(side_effect=RuntimeError("boom"))

        app = build_app(fake_vroom)
        app.dependency_overrides[get_vroom_service] = lambda: service

        with caplog.at_level(logging.INFO, logger="vroom_api.access"):
            async with client_for(app) as client:
                await client.get("/route", params=LOCATIONS)

        access_lines = [r.getMessage() for r in caplog.records if r.name == "vroom_api.access"]
        assert any("/route" in line and "400" in line for line in access_lines)

    @pytest.mark.asyncio
    async def test_non_standard_json_constant_is_rejected(self, fake_vroom, recording_runner, build_app, client_for):
        recording_runner.output = '{"code":0,"summary":{"cost":NaN}}'
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            response = await client.get("/route", params=LOCATIONS)

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid JSON constant: NaN"}

    @pytest.mark.asyncio
    async def test_request_id_header(self, fake_vroom, recording_runner, build_app, client_for):
        app = build_app(fake_vroom, recording_runner)

        async with client_for(app) as client:
            generated = await client.get("/route", params=LOCATIONS)
            supplied = await client.get("/route", params=LOCATIONS, headers={"X-Request-ID": "abc123"})

        assert len(generated.headers["X-Request-ID"]) == 8
        assert supplied.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_unknown_path_uses_message_body(self, fake_vroom, build_app, client_for):
        app = build_app(fake_vroom)

        async with client_for(app) as client:
            response = await client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {"message": "Not Found"}


class TestRouteEndToEnd:

    @pytest.mark.asyncio
    async def test_nul_byte_location_is_bad_request(self, fake_vroom, build_app, client_for):
        """A NUL cannot be passed in argv; the spawn failure maps to a 400."""
        app = build_app(fake_vroom)

        async with client_for(app) as client:
            response = await client.get("/route", params=[("loc", "1\x002"), ("loc", "3,4")])

        assert response.status_code == 400
        assert "null byte" in response.json()["message"]
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_runs_fake_vroom(self, fake_vroom, build_app, client_for):
        app = build_app(fake_vroom)

        async with client_for(app) as client:
            response = await client.get(
                "/route",
                params=LOCATIONS + [("includeGeometry", "true")],
            )

        assert response.status_code == 200
        document = response.json()
        assert document["prog"] == "./vroom"
        assert document["args"] == "-s -g loc=1,2&loc=3,4&loc=5,6"
        assert Path(document["cwd"]) == fake_vroom.parent.resolve()

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_independent(self, fake_vroom, write_script, build_app, client_for):
        """A failing request must not disturb the ones running next to it."""
        broken = write_script("#!/bin/sh\necho 'ERROR: bad input'\n", subdir="broken")
        good_app = build_app(fake_vroom)
        broken_app = build_app(broken)

        async with client_for(good_app) as good, client_for(broken_app) as bad:
            responses = await asyncio.gather(
                good.get("/route", params=LOCATIONS),
                bad.get("/route", params=LOCATIONS),
                good.get("/route", params=LOCATIONS),
            )

        assert [r.status_code for r in responses] == [200, 400, 200]
        assert responses[0].json()["code"] == 0
        assert responses[2].json()["code"] == 0


class TestHealthEndpoint:

    @pytest.mark.asyncio
    async def test_healthy_with_executable_binary(self, fake_vroom, build_app, client_for):
        app = build_app(fake_vroom)

        async with client_for(app) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["binary"] == "available"

    @pytest.mark.asyncio
    async def test_unhealthy_when_binary_missing(self, tmp_path, build_app, client_for):
        app = build_app(tmp_path / "vroom")

        async with client_for(app) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["binary"] == "missing"

    @pytest.mark.asyncio
    async def test_unhealthy_when_binary_not_executable(self, non_executable_binary, build_app, client_for):
        app = build_app(non_executable_binary)

        async with client_for(app) as client:
            response = await client.get("/health")

        assert response.json()["binary"] == "not_executable"
