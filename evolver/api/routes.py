"""REST API routes for evolutionary music sessions."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from pydantic import Field, ValidationError

from evolver.errors import CollaboratorError, InvalidInputError
from evolver.models.base import CamelModel
from evolver.models.emotion import EmotionalVector
from evolver.models.generation import Generation, MutableField
from evolver.models.session import SessionSettings, UserFeedback
from evolver.services.randomness import make_rng
from evolver.services.session_service import (
    SessionManager,
    SessionStore,
    create_session,
    export_creative_log,
    export_generation_code,
    export_session,
    load_session,
)

log = logging.getLogger(__name__)

session_store = SessionStore()


class StartSessionRequest(CamelModel):
    prompt: str
    mood: EmotionalVector
    settings: Optional[SessionSettings] = None
    seed: Optional[int] = None
    use_ai: bool = False
    use_mock: bool = False
    model_name: Optional[str] = None


class EvolveRequest(CamelModel):
    feedback: Optional[str] = None


class AutonomousRequest(CamelModel):
    generations: Optional[int] = Field(default=None, description="Defaults to the session's generationsToRun")


class SettingsUpdate(CamelModel):
    autonomy_level: Optional[float] = None
    generations_to_run: Optional[int] = None
    creative_temperature: Optional[float] = None
    allow_branching: Optional[bool] = None


class CurrentRequest(CamelModel):
    generation_id: str


class FeedbackRequest(CamelModel):
    rating: Optional[int] = None
    emotional_response: Optional[str] = None
    locked_elements: Optional[list[MutableField]] = None
    suggestions: list[str] = Field(default_factory=list)


class PlayRequest(CamelModel):
    generation_id: Optional[str] = None


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def _session_summary(manager: SessionManager) -> dict:
    session = manager.session
    return {
        "id": session.id,
        "initialPrompt": session.initial_prompt,
        "currentGeneration": session.current_generation,
        "generationCount": len(session.generations),
        "lastUpdateTime": session.last_update_time.isoformat(),
    }


def _get_manager(session_id: str) -> SessionManager:
    manager = session_store.get_session(session_id)
    if manager is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return manager


def _get_generation(manager: SessionManager, generation_id: str) -> Generation:
    try:
        return manager.get_generation(generation_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Generation not found")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Evolver Music Session API",
        description="REST API for evolving parametric music one generation at a time",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict to specific domains
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/api/sessions")
    async def start_session(request: StartSessionRequest) -> dict:
        """Create a session and its root generation."""
        manager = SessionManager(
            create_session(settings=request.settings),
            make_rng(request.seed),
            use_ai=request.use_ai or request.use_mock,
            use_mock=request.use_mock,
            model_name=request.model_name,
        )
        try:
            await manager.start(request.prompt, request.mood)
        except CollaboratorError as e:
            raise HTTPException(status_code=502, detail=str(e))

        session_store.save_session(manager)
        return _dump(manager.session)

    @app.get("/api/sessions")
    async def list_sessions() -> dict:
        """List all sessions (most recently updated first)."""
        return {"sessions": [_session_summary(m) for m in session_store.list_sessions()]}

    @app.post("/api/sessions/import")
    async def import_session(file: UploadFile = File(...)) -> dict:
        """Restore a session from an exported JSON file."""
        try:
            session = load_session(await file.read())
        except (ValidationError, InvalidInputError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid session file: {e}")

        manager = SessionManager(session)
        session_store.save_session(manager)
        return _session_summary(manager)

    @app.get("/api/sessions/{session_id}")
    async def get_session(session_id: str) -> dict:
        return _dump(_get_manager(session_id).session)

    @app.post("/api/sessions/{session_id}/evolve")
    async def evolve(session_id: str, request: EvolveRequest) -> dict:
        """Evolve the current generation, optionally steered by feedback text."""
        manager = _get_manager(session_id)
        try:
            generation = await manager.evolve_current(request.feedback)
        except InvalidInputError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except CollaboratorError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return _dump(generation)

    @app.post("/api/sessions/{session_id}/autonomous")
    async def run_autonomous(session_id: str, request: AutonomousRequest) -> dict:
        manager = _get_manager(session_id)
        try:
            generations = await manager.run_autonomous(request.generations)
        except InvalidInputError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except CollaboratorError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {"generations": [_dump(g) for g in generations]}

    @app.patch("/api/sessions/{session_id}/settings")
    async def update_settings(session_id: str, request: SettingsUpdate) -> dict:
        manager = _get_manager(session_id)
        try:
            settings = manager.update_settings(**request.model_dump(exclude_unset=True))
        except (InvalidInputError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _dump(settings)

    @app.put("/api/sessions/{session_id}/current")
    async def set_current(session_id: str, request: CurrentRequest) -> dict:
        """Navigate to another generation; the next evolve branches from it."""
        manager = _get_manager(session_id)
        _get_generation(manager, request.generation_id)
        return _dump(manager.set_current(request.generation_id))

    @app.post("/api/sessions/{session_id}/generations/{generation_id}/feedback")
    async def add_feedback(session_id: str, generation_id: str, request: FeedbackRequest) -> dict:
        manager = _get_manager(session_id)
        _get_generation(manager, generation_id)
        try:
            feedback = UserFeedback(generation_id=generation_id, **request.model_dump())
            generation = manager.add_feedback(feedback)
        except (InvalidInputError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"generation": _dump(generation), "memory": _dump(manager.session.memory)}

    @app.get("/api/sessions/{session_id}/tree")
    async def generation_tree(session_id: str) -> dict:
        """Parent id (or "root") mapped to child generation ids."""
        tree = _get_manager(session_id).generation_tree()
        return {parent: [g.id for g in children] for parent, children in tree.items()}

    @app.get("/api/sessions/{session_id}/generations/{generation_id}")
    async def get_generation(session_id: str, generation_id: str) -> dict:
        return _dump(_get_generation(_get_manager(session_id), generation_id))

    @app.get("/api/sessions/{session_id}/generations/{generation_id}/lineage")
    async def get_lineage(session_id: str, generation_id: str) -> dict:
        manager = _get_manager(session_id)
        _get_generation(manager, generation_id)
        return {"lineage": [g.id for g in manager.lineage(generation_id)]}

    @app.get("/api/sessions/{session_id}/generations/{generation_id}/code")
    async def get_generation_code(session_id: str, generation_id: str) -> PlainTextResponse:
        generation = _get_generation(_get_manager(session_id), generation_id)
        return PlainTextResponse(export_generation_code(generation), media_type="text/javascript")

    @app.get("/api/sessions/{session_id}/log")
    async def get_creative_log(session_id: str) -> PlainTextResponse:
        session = _get_manager(session_id).session
        return PlainTextResponse(export_creative_log(session), media_type="text/markdown")

    @app.get("/api/sessions/{session_id}/export")
    async def export(session_id: str) -> Response:
        session = _get_manager(session_id).session
        return Response(
            export_session(session),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{session.id}.json"'},
        )

    @app.post("/api/sessions/{session_id}/diff")
    async def compute_diff(
        session_id: str,
        from_generation_id: str = Form(...),
        to_generation_id: str = Form(...),
    ) -> dict:
        """Leaf-level parameter changes between two generations."""
        manager = _get_manager(session_id)
        _get_generation(manager, from_generation_id)
        _get_generation(manager, to_generation_id)
        return _dump(manager.diff(from_generation_id, to_generation_id))

    @app.post("/api/sessions/{session_id}/play")
    async def play(session_id: str, request: PlayRequest) -> dict:
        manager = _get_manager(session_id)
        if request.generation_id is not None:
            _get_generation(manager, request.generation_id)
        try:
            generation = await manager.play(request.generation_id)
        except InvalidInputError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"status": "playing", "generationId": generation.id}

    @app.post("/api/sessions/{session_id}/stop")
    async def stop(session_id: str) -> dict:
        _get_manager(session_id).stop()
        return {"status": "stopped"}

    @app.get("/api/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "sessions": len(session_store.sessions)}

    return app
