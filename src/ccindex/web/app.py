"""FastAPI application exposing the ClearCase adapter over HTTP."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from ccindex.clearcase.detector import RepositoryDetector
from ccindex.clearcase.repository import ClearCaseRepository
from ccindex.clearcase.vobs import VobRegistry
from ccindex.config import AppConfig
from ccindex.errors import ClearCaseError, ClientUnavailableError

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="ccindex", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.default_repo = None
app.state.registry = None


class DetectPayload(BaseModel):
    path: Path


class RepoPayload(BaseModel):
    repo: Path | None = None


class HistoryPayload(RepoPayload):
    path: Path


class AnnotatePayload(RepoPayload):
    path: Path
    revision: str | None = None


class RevisionPayload(RepoPayload):
    path: Path
    revision: str


def _get_registry() -> VobRegistry:
    if app.state.registry is None:
        app.state.registry = VobRegistry(AppConfig().make_resolver())
    return app.state.registry


def _resolve_repo_path(repo: Path | None) -> Path:
    if repo is None and app.state.default_repo is not None:
        return Path(app.state.default_repo)
    return AppConfig().resolve_repo_path(repo)


def _open_repository(repo: Path | None) -> ClearCaseRepository:
    directory = _resolve_repo_path(repo)
    if not directory.is_dir():
        raise HTTPException(status_code=404, detail=f"Repository not found: {directory}")
    registry = _get_registry()
    return ClearCaseRepository(
        AppConfig().make_handle(directory, registry.resolver), registry=registry
    )


def _element_path(repository: ClearCaseRepository, path: Path) -> Path:
    """Anchor a request path at the repository root unless it is absolute."""
    path = Path(path)
    if not path.is_absolute():
        path = repository.directory / path
    return path


def _bad_path(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def _client_error(exc: ClearCaseError) -> HTTPException:
    LOGGER.error("ClearCase request failed: %s", exc)
    status = 503 if isinstance(exc, ClientUnavailableError) else 502
    return HTTPException(status_code=status, detail=str(exc))


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.get("/health")
async def health() -> dict[str, Any]:
    working = await asyncio.to_thread(_get_registry().resolver.is_working)
    return {"status": "ok", "client_working": working}


@app.get("/vobs")
async def list_vobs() -> dict[str, List[str]]:
    vobs = await asyncio.to_thread(_get_registry().get_all_vobs)
    return {"vobs": sorted(vobs)}


@app.post("/detect")
async def detect(payload: DetectPayload) -> dict[str, Any]:
    registry = _get_registry()
    detector = RepositoryDetector(registry.resolver, registry)
    found = await asyncio.to_thread(detector.is_repository_for, payload.path)
    return {"path": str(payload.path), "clearcase": found}


@app.post("/history")
async def history(payload: HistoryPayload) -> dict[str, Any]:
    repository = _open_repository(payload.repo)
    path = _element_path(repository, payload.path)
    try:
        result = await asyncio.to_thread(repository.get_history, path)
    except ValueError as exc:
        raise _bad_path(exc) from exc
    except ClearCaseError as exc:
        raise _client_error(exc) from exc

    return {
        "path": str(payload.path),
        "entries": [
            {
                "event": entry.event,
                "date": entry.date.isoformat(),
                "author": entry.author,
                "revision": entry.revision,
                "message": entry.message,
            }
            for entry in result
        ],
    }


@app.post("/annotate")
async def annotate(payload: AnnotatePayload) -> dict[str, Any]:
    repository = _open_repository(payload.repo)
    try:
        annotation = await asyncio.to_thread(
            repository.annotate, _element_path(repository, payload.path), payload.revision
        )
    except ClearCaseError as exc:
        raise _client_error(exc) from exc

    return {
        "file": annotation.filename,
        "lines": [
            {"line": number, "revision": line.revision, "author": line.author}
            for number, line in enumerate(annotation.lines, start=1)
        ],
    }


def _read_revision(repository: ClearCaseRepository, path: Path, revision: str) -> bytes | None:
    blob = repository.get_revision(path, revision)
    if blob is None:
        return None
    with blob:
        return blob.read()


@app.post("/revision")
async def revision(payload: RevisionPayload) -> Response:
    repository = _open_repository(payload.repo)
    try:
        content = await asyncio.to_thread(
            _read_revision, repository, _element_path(repository, payload.path), payload.revision
        )
    except ValueError as exc:
        raise _bad_path(exc) from exc
    if content is None:
        raise HTTPException(
            status_code=404,
            detail=f"Revision not available: {payload.path}@@{payload.revision}",
        )
    return Response(content=content, media_type="application/octet-stream")


@app.post("/update")
async def update_view(payload: RepoPayload) -> dict[str, Any]:
    repository = _open_repository(payload.repo)
    try:
        ok = await asyncio.to_thread(repository.update)
    except ClearCaseError as exc:
        raise _client_error(exc) from exc
    return {"status": "ok" if ok else "incomplete", "repo": str(repository.directory)}
