# projecthub/responses.py
#
# Every endpoint answers with the same envelope:
#   {success, message?, data?, error?}  (+ pagination on list endpoints)

from __future__ import annotations

import math
from typing import Any

from fastapi import HTTPException


def ok(data: Any = None, message: str | None = None, **extra: Any) -> dict:
    body: dict = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def pagination(page: int, limit: int, total: int | None = None) -> dict:
    info = {"page": page, "limit": limit}
    if total is not None:
        info["total"] = total
        info["totalPages"] = math.ceil(total / limit) if limit else 0
    return info


def error_body(message: str, error: str | None = None, **extra: Any) -> dict:
    body: dict = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    body.update(extra)
    return body


def fail(status_code: int, message: str, **extra: Any) -> HTTPException:
    """HTTPException whose detail is rendered as the envelope by main.py."""
    if extra:
        return HTTPException(status_code=status_code, detail={"message": message, **extra})
    return HTTPException(status_code=status_code, detail=message)
