"""
Test file for the request pipeline

Tests the exception guard, the auth check state machine, the logging
relay, and the fixed order of the interceptor chain.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from fastapi.testclient import TestClient

from user_api.handlers import (
    AuthCheck,
    ExceptionGuard,
    RequestLogging,
    RequestPipeline,
    build_interceptors,
)

MISSING = {"error": "Unauthorized: Missing or invalid token."}
INVALID = {"error": "Unauthorized: Invalid or expired token."}


class TestAuthCheck:

    def test_no_header(self, client):
        response = client.get("/user")
        assert response.status_code == 401
        assert response.json() == MISSING

    @pytest.mark.parametrize("header", ["", "   ", "Basic YWRtaW46cGFzc3dvcmQ=", "bearer abc", "Token abc"])
    def test_malformed_header(self, client, header):
        response = client.get("/user", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.json() == MISSING

    def test_garbage_token(self, client):
        response = client.get("/user", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 401
        assert response.json() == INVALID

    def test_expired_token(self, client, app):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = app.state.authenticator.issue_token("admin", issued_at=issued)

        response = client.get("/user", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == INVALID

    def test_valid_token(self, client, auth_headers):
        response = client.get("/user", headers=auth_headers)
        assert response.status_code == 200

    def test_rejection_skips_handler(self, client, store):
        """A rejected request never reaches route dispatch"""
        response = client.post("/user", json={"username": "alice", "email": "alice@contoso.com"})
        assert response.status_code == 401
        assert len(store) == 0

    def test_login_path_bypasses_auth_case_insensitively(self, client):
        response = client.post("/LOGIN", json={"username": "admin", "password": "password"})
        # no route for the upper-case path, but the auth check let it through
        assert response.status_code == 404

    def test_claims_available_to_handlers(self, app, client, auth_headers):
        async def whoami(request: Request):
            return {"user": request.state.token_claims["sub"]}

        app.add_api_route("/whoami", whoami)
        response = client.get("/whoami", headers=auth_headers)
        assert response.json() == {"user": "admin"}


class TestExceptionGuard:

    def test_unhandled_exception_becomes_generic_500(self, app, auth_headers, caplog):
        async def explode():
            raise RuntimeError("secret internal detail")

        app.add_api_route("/explode", explode)
        client = TestClient(app)

        with caplog.at_level(logging.ERROR, logger="user_api.handlers.pipeline"):
            response = client.get("/explode", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error."}
        assert "secret internal detail" not in response.text
        assert "secret internal detail" in caplog.text


class TestRequestLogging:

    def test_logs_request_and_response(self, client, auth_headers, caplog):
        with caplog.at_level(logging.INFO, logger="user_api.handlers.pipeline"):
            client.get("/user", headers=auth_headers)

        assert "HTTP Request: GET /user" in caplog.text
        assert "HTTP Response: 200 []" in caplog.text

    @pytest.mark.parametrize("body,status_code,media_type", [
        (b"\x00\x01\xfe\xffbinary", 200, "application/octet-stream"),
        (b'{"k": "v"}', 418, "application/json"),
        (b"", 204, None),
        ("café ☃".encode("utf-8"), 202, "text/plain; charset=utf-8"),
    ])
    def test_relays_response_unchanged(self, app, auth_headers, body, status_code, media_type):
        async def fixed():
            return Response(content=body, status_code=status_code, media_type=media_type,
                            headers={"X-Custom": "kept"})

        app.add_api_route("/fixed", fixed)
        response = TestClient(app).get("/fixed", headers=auth_headers)

        assert response.status_code == status_code
        assert response.content == body
        assert response.headers["X-Custom"] == "kept"

    def test_relays_repeated_headers(self, app, auth_headers):
        async def cookies():
            response = JSONResponse({"ok": True})
            response.set_cookie("a", "1")
            response.set_cookie("b", "2")
            return response

        app.add_api_route("/cookies", cookies)
        response = TestClient(app).get("/cookies", headers=auth_headers)

        set_cookies = response.headers.get_list("set-cookie")
        assert len(set_cookies) == 2
        assert set_cookies[0].startswith("a=1")
        assert set_cookies[1].startswith("b=2")
        assert response.json() == {"ok": True}

    def test_streamed_body_is_buffered_and_relayed(self, app, auth_headers):
        async def chunks():
            for part in [b"one,", b"two,", b"three"]:
                yield part

        async def stream():
            return StreamingResponse(chunks(), media_type="text/plain")

        app.add_api_route("/stream", stream)
        response = TestClient(app).get("/stream", headers=auth_headers)
        assert response.content == b"one,two,three"


class TestPipelineOrder:
    """Interceptors run in list order around a bare app"""

    def build(self, interceptors):
        app = FastAPI()

        @app.get("/ping")
        async def ping():
            return PlainTextResponse("pong")

        app.add_middleware(RequestPipeline, interceptors=interceptors)
        return TestClient(app)

    def test_first_interceptor_is_outermost(self):
        calls = []

        def recorder(name):
            async def interceptor(request, call_next):
                calls.append(f"{name}:before")
                response = await call_next(request)
                calls.append(f"{name}:after")
                return response
            return interceptor

        client = self.build([recorder("outer"), recorder("middle"), recorder("inner")])
        assert client.get("/ping").text == "pong"
        assert calls == [
            "outer:before", "middle:before", "inner:before",
            "inner:after", "middle:after", "outer:after",
        ]

    def test_guard_catches_failures_from_later_interceptors(self):
        async def broken(request, call_next):
            raise ValueError("boom")

        client = self.build([ExceptionGuard(), broken])
        response = client.get("/ping")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error."}

    def test_short_circuit_skips_later_interceptors(self):
        reached = []

        async def deny(request, call_next):
            return JSONResponse({"error": "nope"}, status_code=403)

        async def later(request, call_next):
            reached.append(True)
            return await call_next(request)

        client = self.build([deny, later])
        assert client.get("/ping").status_code == 403
        assert reached == []

    def test_standard_chain_order(self, authenticator):
        interceptors = build_interceptors(authenticator)
        assert [type(i) for i in interceptors] == [ExceptionGuard, AuthCheck, RequestLogging]
