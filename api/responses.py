"""
Uniform response envelope.

success: {"ok": true,  "status": 200, "data": {...}}
error:   {"ok": false, "status": 401, "error": {"code": ..., "message": ..., "details"?: ...}}
"""
from __future__ import annotations

from typing import Any

from flask import jsonify


def success_body(status: int, data: Any) -> dict:
    return {"ok": True, "status": status, "data": data}


def error_body(status: int, code: str, message: str, details: Any = None) -> dict:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"ok": False, "status": status, "error": error}


def success_response(status: int, data: Any):
    return jsonify(success_body(status, data)), status


def error_response(status: int, code: str, message: str, details: Any = None):
    return jsonify(error_body(status, code, message, details)), status
