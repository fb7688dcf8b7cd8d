"""JSend envelopes returned by the JSON API."""

from __future__ import annotations

from http import HTTPStatus

from flask import g, jsonify


def success(data: dict | None = None, status: int = HTTPStatus.OK, message: str | None = None):
    payload: dict = {"status": "success", "data": data or {}}
    if message:
        payload["message"] = message
    return jsonify(payload), status


def fail(code: str, message: str, status: int = HTTPStatus.BAD_REQUEST, data: dict | None = None):
    payload = {
        "status": "fail",
        "code": code,
        "message": message,
        "data": data or {},
        "request_id": g.get("request_id"),
    }
    return jsonify(payload), status


def error(message: str, status: int = HTTPStatus.INTERNAL_SERVER_ERROR, code: str = "error"):
    payload = {
        "status": "error",
        "code": code,
        "message": message,
        "request_id": g.get("request_id"),
    }
    return jsonify(payload), status
