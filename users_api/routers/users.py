from __future__ import annotations

import json
import math
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from users_api.repositories.json_storage import StorageError
from users_api.services.user_service import (
    UserService,
    UserNotFoundError,
    UserValidationError,
)

router = APIRouter(prefix="/api/users", tags=["users"])

USER_NOT_FOUND = "User Not Found"
NAME_REQUIRED = "Name is a required field"
INVALID_JSON = "Invalid JSON"
PERSIST_FAILED = "Failed to persist changes"


class InvalidJSONError(ValueError):
    """Raised when the request body is not valid JSON."""


def _get_user_service(request: Request) -> UserService:
    svc = getattr(getattr(request.app, "state", None), "user_service", None)
    if not svc:
        raise RuntimeError("UserService not configured")
    return svc


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


def _parse_id(value: str) -> int | None:
    if not (value.isascii() and value.isdecimal()):
        return None
    return int(value)


def _reject_constant(token: str) -> Any:
    raise InvalidJSONError(f"{token} is not valid JSON")


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise InvalidJSONError(f"{token} is out of range")
    return value


async def _read_payload(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError as exc:
        raise InvalidJSONError(INVALID_JSON) from exc


@router.get("")
def list_users(request: Request):
    svc = _get_user_service(request)
    return JSONResponse(svc.list_all())


@router.get("/{user_id}")
def get_user(user_id: str, request: Request):
    svc = _get_user_service(request)
    uid = _parse_id(user_id)
    if uid is None:
        return _message(404, USER_NOT_FOUND)
    try:
        user = svc.get_by_id(uid)
    except UserNotFoundError:
        return _message(404, USER_NOT_FOUND)
    return JSONResponse(user)


@router.post("")
async def create_user(request: Request):
    svc = _get_user_service(request)
    try:
        payload = await _read_payload(request)
        user = await run_in_threadpool(svc.create, payload)
    except InvalidJSONError:
        return _message(400, INVALID_JSON)
    except UserValidationError:
        return _message(400, NAME_REQUIRED)
    except StorageError:
        return _message(500, PERSIST_FAILED)
    return JSONResponse(user, status_code=201)


@router.put("/{user_id}")
async def update_user(user_id: str, request: Request):
    svc = _get_user_service(request)
    uid = _parse_id(user_id)
    if uid is None:
        return _message(404, USER_NOT_FOUND)
    try:
        payload = await _read_payload(request)
    except InvalidJSONError:
        # unknown id is reported before a malformed body
        try:
            await run_in_threadpool(svc.get_by_id, uid)
        except UserNotFoundError:
            return _message(404, USER_NOT_FOUND)
        return _message(400, INVALID_JSON)
    try:
        user = await run_in_threadpool(svc.update, uid, payload)
    except UserNotFoundError:
        return _message(404, USER_NOT_FOUND)
    except UserValidationError:
        return _message(400, NAME_REQUIRED)
    except StorageError:
        return _message(500, PERSIST_FAILED)
    return JSONResponse(user)


@router.delete("/{user_id}")
async def delete_user(user_id: str, request: Request):
    svc = _get_user_service(request)
    uid = _parse_id(user_id)
    if uid is None:
        return _message(404, USER_NOT_FOUND)
    try:
        await run_in_threadpool(svc.delete, uid)
    except UserNotFoundError:
        return _message(404, USER_NOT_FOUND)
    except StorageError:
        return _message(500, PERSIST_FAILED)
    return Response(status_code=204)
