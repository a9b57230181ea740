"""
Account and session endpoints.

Flow:
1. POST /register creates an account
2. POST /login checks credentials and issues a session token, returned in
   the body and set as an HttpOnly cookie
3. Protected endpoints accept the token as a Bearer header or the cookie
4. POST /logout clears the cookie

Every login failure returns the same 401 so callers cannot probe which
emails are registered.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from ...core.auth.service import EmailAlreadyExistsError, RegistrationInvalidError
from ...core.timestamps import isoformat_utc
from ..dependencies import AuthServiceDep, CurrentUser, SessionManagerDep, SettingsDep
from ..errors import ApiError, success_response

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_json(request: Request) -> Any:
    """Request body as JSON, or None if it is missing or malformed."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(request: Request, auth: AuthServiceDep) -> JSONResponse:
    payload = await _read_json(request)

    try:
        # bcrypt is deliberately slow; keep it off the event loop
        user = await run_in_threadpool(auth.register, payload)
    except RegistrationInvalidError as e:
        raise ApiError(400, "AUTH_INVALID_INPUT", "Invalid input data", details=e.field_errors)
    except EmailAlreadyExistsError:
        raise ApiError(409, "AUTH_EMAIL_EXISTS", "An account with this email already exists")
    except Exception as e:
        logger.error("Registration failed", extra={"error": str(e)})
        raise ApiError(
            500,
            "AUTH_REGISTRATION_FAILED",
            "Registration failed. Please try again.",
            debug=str(e),
        )

    return success_response(
        {
            "user": {
                "id": user.id,
                "email": user.email,
                "createdAt": isoformat_utc(user.created_at),
            },
            "message": "Account created successfully",
        },
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", summary="Sign in with email and password")
async def login(
    request: Request,
    auth: AuthServiceDep,
    sessions: SessionManagerDep,
    settings: SettingsDep,
) -> JSONResponse:
    payload = await _read_json(request)

    result = await run_in_threadpool(auth.authorize, payload)
    if not result.ok:
        raise ApiError(401, "AUTH_INVALID_CREDENTIALS", "Invalid email or password")

    session = sessions.issue(result.user)

    response = success_response({
        "user": result.user.to_dict(),
        "token": session.token,
        "expiresAt": isoformat_utc(session.expires_at),
    })
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.token,
        max_age=sessions.max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/logout", summary="Clear the session cookie")
async def logout(settings: SettingsDep) -> JSONResponse:
    response = success_response({"message": "Signed out"})
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return response


@router.get("/session", summary="Current signed-in user")
async def current_session(user: CurrentUser) -> JSONResponse:
    return success_response({"user": user.to_dict()})
