"""
Request pipeline for the User Management API.

Every request passes through an ordered chain of interceptors before it
reaches route dispatch:

    ExceptionGuard -> AuthCheck -> RequestLogging -> route handler

An interceptor is an async callable taking the request and a handle to the
rest of the chain. It either awaits the handle and returns (possibly after
inspecting) the downstream response, or returns its own response without
calling it. The chain is folded inside a single Starlette middleware so the
order is exactly the list order and does not depend on how middleware
registration stacks up.
"""

import logging
from typing import Awaitable, Callable, List, Sequence

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .auth import TokenAuthenticator

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]
Interceptor = Callable[[Request, CallNext], Awaitable[Response]]

LOGIN_PATH = "/login"
BEARER_PREFIX = "Bearer "

INTERNAL_ERROR = "Internal server error."
MISSING_TOKEN = "Unauthorized: Missing or invalid token."
INVALID_TOKEN = "Unauthorized: Invalid or expired token."


class ExceptionGuard:
    """
    Outermost stage: turns any failure downstream into a generic 500.

    The exception detail goes to the server log only.
    """

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                f"Unhandled exception on {request.method} {request.url.path}: {e}"
            )
            return JSONResponse(
                content={"error": INTERNAL_ERROR},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )


class AuthCheck:
    """
    Rejects requests without a valid bearer token.

    The login endpoint is the only path let through unauthenticated. For any
    other path the Authorization header must read ``Bearer <token>`` and the
    token must verify. On success the claims are left on
    ``request.state.token_claims`` for handlers.
    """

    def __init__(self, authenticator: TokenAuthenticator):
        self.authenticator = authenticator

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        if request.url.path.lower() == LOGIN_PATH:
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.strip() or not auth_header.startswith(BEARER_PREFIX):
            return self._reject(MISSING_TOKEN)

        token = auth_header[len(BEARER_PREFIX):].strip()
        claims = self.authenticator.verify_token(token)
        if claims is None:
            return self._reject(INVALID_TOKEN)

        request.state.token_claims = claims
        return await call_next(request)

    @staticmethod
    def _reject(message: str) -> Response:
        return JSONResponse(
            content={"error": message},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class RequestLogging:
    """
    Innermost stage: logs the request line and the full response.

    The response body is buffered so it can be logged, then relayed with the
    same status, headers and bytes.
    """

    async def __call__(self, request: Request, call_next: CallNext) -> Response:
        logger.info(f"HTTP Request: {request.method} {request.url.path}")

        response = await call_next(request)

        chunks = []
        async for chunk in response.body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
        body = b"".join(chunks)

        logger.info(
            f"HTTP Response: {response.status_code} {body.decode('utf-8', errors='replace')}"
        )

        relayed = Response(
            content=body,
            status_code=response.status_code,
            background=response.background,
        )
        # repeated headers such as Set-Cookie must survive
        relayed.raw_headers = list(response.raw_headers)
        return relayed


def build_interceptors(authenticator: TokenAuthenticator) -> List[Interceptor]:
    """The standard chain, outermost first."""
    return [
        ExceptionGuard(),
        AuthCheck(authenticator),
        RequestLogging(),
    ]


def _bind(interceptor: Interceptor, call_next: CallNext) -> CallNext:
    async def handle(request: Request) -> Response:
        return await interceptor(request, call_next)

    return handle


class RequestPipeline(BaseHTTPMiddleware):
    """
    Runs a fixed, ordered list of interceptors around the application.

    The first interceptor in the list sees the request first and the
    response last.
    """

    def __init__(self, app: ASGIApp, interceptors: Sequence[Interceptor]):
        super().__init__(app)
        self.interceptors = list(interceptors)

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        handler = call_next
        for interceptor in reversed(self.interceptors):
            handler = _bind(interceptor, handler)
        return await handler(request)
