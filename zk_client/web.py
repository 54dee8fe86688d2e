"""
FastAPI application for browsing and editing a coordination tree.

Point it at an ensemble through environment variables, then inspect nodes,
create paths and wait for deletions over HTTP:

* ``ZKC_BACKEND``: ``memory`` (default) or ``kazoo``
* ``ZKC_HOSTS``: kazoo connection string (default ``127.0.0.1:2181``)
* ``ZKC_API_HOST`` / ``ZKC_API_PORT``: HTTP bind address
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .backends import create_client
from .client import CoordinationClient
from .config import CreateMode
from .exceptions import (
    BadArgumentsError,
    BadVersionError,
    KeeperError,
    NodeExistsError,
    NoNodeError,
    NotEmptyError,
    WaitTimeoutError,
)

app = FastAPI(title="zk-client tree inspector", version="0.1.0")
_LOGGER = logging.getLogger(__name__)

_client: CoordinationClient | None = None

_STATUS_BY_ERROR: tuple[tuple[type[KeeperError], int], ...] = (
    (BadArgumentsError, 400),
    (NoNodeError, 404),
    (NodeExistsError, 409),
    (NotEmptyError, 409),
    (BadVersionError, 409),
)


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value if value else default


def _parse_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {name} must be an integer.") from exc


def _build_client() -> CoordinationClient:
    backend = _get_env("ZKC_BACKEND", "memory").lower()
    if backend == "kazoo":
        return create_client(backend="kazoo", hosts=_get_env("ZKC_HOSTS", "127.0.0.1:2181"))
    if backend != "memory":
        raise RuntimeError("ZKC_BACKEND must be memory or kazoo.")
    return create_client(backend="memory")


def set_client(client: CoordinationClient | None) -> None:
    """Serve an already-built client instead of one built from the environment."""
    global _client
    _client = client


def _require_client() -> CoordinationClient:
    if _client is None:
        raise HTTPException(status_code=503, detail="Coordination client not started.")
    return _client


@app.exception_handler(KeeperError)
def keeper_error_handler(request: Request, exc: KeeperError) -> JSONResponse:
    status = 502
    for error_type, error_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = error_status
            break
    code = exc.code
    if isinstance(code, int):
        code = int(code)
    elif code is not None:
        code = str(code)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "code": code, "detail": str(exc)},
    )


@app.exception_handler(ValueError)
def path_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "ValueError", "code": None, "detail": str(exc)})


@app.on_event("startup")
def on_startup() -> None:
    global _client
    if _client is not None:
        return
    _client = _build_client()


@app.on_event("shutdown")
def on_shutdown() -> None:
    global _client
    client = _client
    if client is None:
        return
    try:
        client.close()
    finally:
        _client = None


@app.get("/")
def root() -> dict[str, Any]:
    client = _require_client()
    state = client.state()
    return {
        "message": "zk-client tree inspector is running.",
        "state": None if state is None else state.value,
        "connected": client.connected,
    }


@app.get("/stats")
def stats() -> dict[str, Any]:
    return _require_client().stats()


@app.get("/nodes")
def node_get(path: str) -> dict[str, Any]:
    client = _require_client()
    data, stat = client.get(path)
    return {
        "path": path,
        "data": data.decode("utf-8", errors="replace"),
        "stat": stat.as_dict(),
        "children": client.children(path),
    }


@app.put("/nodes")
def node_create(path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    payload = payload or {}
    try:
        mode = CreateMode(payload.get("mode", CreateMode.PERSISTENT.value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown create mode {payload.get('mode')!r}.") from exc
    created = _require_client().create(path, str(payload.get("data", "")), mode=mode)
    return {"path": created}


@app.post("/paths")
def path_ensure(path: str) -> dict[str, Any]:
    _require_client().ensure_path(path)
    return {"path": path}


@app.delete("/nodes")
def node_remove(path: str) -> dict[str, Any]:
    _require_client().remove_tree(path)
    return {"removed": path}


@app.post("/wait")
def wait_deleted(path: str, timeout: float = 30.0) -> dict[str, Any]:
    try:
        _require_client().wait_until_deleted(path, timeout=timeout)
    except WaitTimeoutError as exc:
        raise HTTPException(status_code=408, detail=str(exc)) from exc
    return {"deleted": path}


def main(port: int) -> int:
    host = _get_env("ZKC_API_HOST", "127.0.0.1")
    port = _parse_int("ZKC_API_PORT", port)
    _LOGGER.info("Starting tree inspector host=%s port=%s", host, port)
    uvicorn.run("zk_client.web:app", host=host, port=port, reload=False)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Serve the coordination tree inspector.")
    parser.add_argument("--port", type=int, default=8000, help="The port number to use")
    args = parser.parse_args()
    raise SystemExit(main(args.port))
