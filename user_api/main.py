"""
User Management API - Main FastAPI Application

This FastAPI application exposes CRUD operations over an in-memory
collection of user records, protected by bearer-token authentication.

Every request runs through the request pipeline (exception guard, auth
check, logging) before reaching the routes below.

Endpoints:
- POST /login - Exchange the admin credentials for a bearer token
- GET /user - List users
- GET /user/{user_id} - Get one user
- POST /user - Create user
- PUT /user/{user_id} - Replace username and email of a user
- DELETE /user/{user_id} - Delete user
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import UserApiSettings, get_settings
from .handlers import RequestPipeline, TokenAuthenticator, build_interceptors, get_authenticator
from .models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    User,
    UserActionResponse,
    UserPayload,
)
from .services import UserStore, validate_user

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

router = APIRouter()


def get_user_store(request: Request) -> UserStore:
    """FastAPI dependency returning the application's user store."""
    return request.app.state.user_store


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        content=ErrorResponse(error=message).model_dump(),
        status_code=status_code,
    )


@router.post("/login")
async def login(
    credentials: LoginRequest,
    authenticator: TokenAuthenticator = Depends(get_authenticator),
):
    """
    Exchange credentials for a bearer token.

    Returns:
        200 with message and token, or 401 with an empty body
    """
    token = authenticator.login(credentials.username, credentials.password)
    if token is None:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)

    return JSONResponse(
        content=LoginResponse(token=token).model_dump(),
        status_code=status.HTTP_200_OK,
    )


@router.get("/user")
async def list_users(store: UserStore = Depends(get_user_store)):
    """List all users."""
    users = store.get_all()
    logger.debug(f"Returning {len(users)} users")
    return JSONResponse(
        content=[user.model_dump() for user in users],
        status_code=status.HTTP_200_OK,
    )


@router.get("/user/{user_id}")
async def get_user(user_id: int, store: UserStore = Depends(get_user_store)):
    """Get one user by id, or 404."""
    user = store.get_by_id(user_id)
    if user is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return JSONResponse(content=user.model_dump(), status_code=status.HTTP_200_OK)


@router.post("/user")
async def create_user(payload: UserPayload, store: UserStore = Depends(get_user_store)):
    """
    Create a new user.

    The validator runs before the store is touched; any id in the body is
    ignored and a fresh one is assigned.

    Returns:
        201 with the created user and a Location header, or 400 with the
        validation error
    """
    result = validate_user(payload, store)
    if not result.is_valid:
        logger.info(f"Rejected new user {payload.username!r}: {result.error}")
        return error_response(result.error, status.HTTP_400_BAD_REQUEST)

    user_id = store.add(payload)
    if user_id is None:
        return error_response("Failed to create user.", status.HTTP_400_BAD_REQUEST)

    created = User(id=user_id, username=payload.username, email=payload.email)
    logger.info(f"User created: {created.username} (id={user_id})")

    return JSONResponse(
        content=created.model_dump(),
        status_code=status.HTTP_201_CREATED,
        headers={"Location": f"/user/{user_id}"},
    )


@router.put("/user/{user_id}")
async def update_user(
    user_id: int, payload: UserPayload, store: UserStore = Depends(get_user_store)
):
    """
    Replace the username and email of an existing user.

    Existence is checked before validation, so an unknown id is a 404 even
    when the body is also invalid. The user's own current values do not
    count as collisions.
    """
    if store.get_by_id(user_id) is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    result = validate_user(payload, store, user_id=user_id)
    if not result.is_valid:
        logger.info(f"Rejected update of user {user_id}: {result.error}")
        return error_response(result.error, status.HTTP_400_BAD_REQUEST)

    if not store.update(user_id, payload):
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    logger.info(f"User updated: {user_id}")
    return JSONResponse(
        content=UserActionResponse(message="User updated successfully.", id=user_id).model_dump(),
        status_code=status.HTTP_200_OK,
    )


@router.delete("/user/{user_id}")
async def delete_user(user_id: int, store: UserStore = Depends(get_user_store)):
    """Delete a user by id, or 404."""
    if not store.delete(user_id):
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    logger.info(f"User deleted: {user_id}")
    return JSONResponse(
        content=UserActionResponse(message="User deleted successfully.", id=user_id).model_dump(),
        status_code=status.HTTP_200_OK,
    )


# Exception handlers
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Map unparseable bodies and parameters to the standard 400 error shape."""
    logger.info(f"Malformed request on {request.method} {request.url.path}: {exc.errors()}")
    from_body = any(error.get("loc", ("",))[0] == "body" for error in exc.errors())
    message = "Invalid request body." if from_body else "Invalid request parameters."
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Convert framework HTTP errors (unknown route, wrong method) to the error shape."""
    return JSONResponse(
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        status_code=exc.status_code,
        headers=exc.headers,
    )


def create_app(
    settings: Optional[UserApiSettings] = None, store: Optional[UserStore] = None
) -> FastAPI:
    """
    Build the application with its services.

    Args:
        settings: Configuration; read from the environment when omitted
        store: User store to serve; a fresh empty store when omitted

    Returns:
        FastAPI: Application with the request pipeline installed
    """
    settings = settings or get_settings()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(
        title="User Management API",
        description="CRUD over in-memory user records with bearer-token authentication",
        version=__version__,
    )

    app.state.settings = settings
    app.state.user_store = store if store is not None else UserStore()
    app.state.authenticator = TokenAuthenticator(settings)

    app.include_router(router)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_middleware(
        RequestPipeline,
        interceptors=build_interceptors(app.state.authenticator),
    )

    logger.info(f"User Management API initialized (issuer={settings.jwt_issuer})")
    return app


app = create_app()


def run():
    """Serve the application with uvicorn on the configured address."""
    import uvicorn

    config = get_settings()
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
