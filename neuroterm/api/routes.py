from __future__ import annotations

import logging
import random
from uuid import UUID

import redis
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status

from neuroterm.actions import submit_line
from neuroterm.api.deps import get_redis, get_riddle_provider, get_rng, get_settings
from neuroterm.api.models import SubmitLineRequest, TerminalView
from neuroterm.boot import play_boot_sequence
from neuroterm.lock import SessionBusyError
from neuroterm.riddles.provider import RiddleProvider
from neuroterm.session_store import (
    SessionNotFoundError,
    create_session,
    delete_session,
    get_session,
    require_session,
)
from neuroterm.settings import TerminalSettings
from neuroterm.websocket_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID, r: redis.Redis = Depends(get_redis)) -> None:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        await websocket.close(code=4404)
        return

    sid = str(session_id)
    await hub.attach(session, websocket)
    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.detach(sid, websocket)
    except Exception:
        await hub.detach(sid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/session", response_model=TerminalView, status_code=status.HTTP_201_CREATED)
async def create_session_route(
    background_tasks: BackgroundTasks,
    r: redis.Redis = Depends(get_redis),
    settings: TerminalSettings = Depends(get_settings),
    rng: random.Random = Depends(get_rng),
) -> TerminalView:
    session = create_session(r=r, ttl_s=settings.session_ttl_s)
    logger.info("session created session=%s", session.session_id)

    background_tasks.add_task(
        play_boot_sequence,
        r=r,
        session_id=session.session_id,
        boot_generation=session.boot_generation,
        settings=settings,
        rng=rng,
    )
    return TerminalView.from_session(session)


@router.get("/session/{session_id}", response_model=TerminalView)
async def get_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> TerminalView:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return TerminalView.from_session(session)


@router.delete("/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Response:
    try:
        require_session(r=r, session_id=session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    delete_session(r=r, session_id=session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/session/{session_id}/input", response_model=TerminalView)
async def submit_line_route(
    session_id: UUID,
    payload: SubmitLineRequest,
    background_tasks: BackgroundTasks,
    r: redis.Redis = Depends(get_redis),
    riddles: RiddleProvider = Depends(get_riddle_provider),
    settings: TerminalSettings = Depends(get_settings),
    rng: random.Random = Depends(get_rng),
) -> TerminalView:
    try:
        result = await submit_line(
            r=r,
            session_id=session_id,
            line=payload.line,
            riddles=riddles,
            settings=settings,
            rng=rng,
        )
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    if result.rebooted:
        background_tasks.add_task(
            play_boot_sequence,
            r=r,
            session_id=session_id,
            boot_generation=result.session.boot_generation,
            settings=settings,
            rng=rng,
        )
    return TerminalView.from_session(result.session)
