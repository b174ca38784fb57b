from collections.abc import Awaitable, Callable

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ...core.errors import InvalidTransitionError, KioskError, SubmissionInProgressError, http_status_for
from ...dependencies import get_session_controller
from ...schemas import (
    BootstrapRequest,
    Coordinates,
    FieldUpdate,
    RatingRequest,
    SessionView,
    SignatureUpdate,
    SignOutRequest,
)
from ...services.positioning import StaticPositionProvider
from ...services.sessions import SessionController

router = APIRouter()


async def _run(controller: SessionController, action: Callable[[], Awaitable[object]]) -> SessionView:
    try:
        await action()
    except (KioskError, httpx.HTTPError) as exc:
        if isinstance(exc, (InvalidTransitionError, SubmissionInProgressError)):
            detail = exc.message
        else:
            # the controller keeps the user-facing message for failed actions
            detail = controller.last_error or "Record backend unavailable."
        raise HTTPException(status_code=http_status_for(exc), detail=detail) from exc
    return controller.snapshot()


def _apply(controller: SessionController, action: Callable[[], None]) -> SessionView:
    try:
        action()
    except KioskError as exc:
        raise HTTPException(status_code=http_status_for(exc), detail=exc.message) from exc
    return controller.snapshot()


@router.get("/", response_model=SessionView)
async def get_session(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return controller.snapshot()


@router.post("/bootstrap", response_model=SessionView, status_code=status.HTTP_202_ACCEPTED)
async def bootstrap_session(
    payload: BootstrapRequest,
    background_tasks: BackgroundTasks,
    controller: SessionController = Depends(get_session_controller),
) -> SessionView:
    """Load the facility directory and detect the nearest facility in the background."""
    coordinates = None
    if payload.latitude is not None and payload.longitude is not None:
        coordinates = Coordinates(latitude=payload.latitude, longitude=payload.longitude)
    background_tasks.add_task(controller.bootstrap, StaticPositionProvider(coordinates))
    return controller.snapshot()


@router.put("/fields/{field_id}", response_model=SessionView)
async def update_field(
    field_id: str,
    payload: FieldUpdate,
    controller: SessionController = Depends(get_session_controller),
) -> SessionView:
    return _apply(controller, lambda: controller.update_field(field_id, payload.value))


@router.put("/signature", response_model=SessionView)
async def update_signature(
    payload: SignatureUpdate,
    controller: SessionController = Depends(get_session_controller),
) -> SessionView:
    return _apply(controller, lambda: controller.set_signature(payload.signature))


@router.delete("/signature", response_model=SessionView)
async def clear_signature(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return _apply(controller, controller.clear_signature)


@router.post("/sign-in", response_model=SessionView)
async def submit_sign_in(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return await _run(controller, controller.submit_sign_in)


@router.post("/sign-out/start", response_model=SessionView)
async def start_sign_out(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return _apply(controller, controller.request_sign_out)


@router.post("/sign-out/cancel", response_model=SessionView)
async def cancel_sign_out(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return _apply(controller, controller.cancel_sign_out)


@router.post("/sign-out", response_model=SessionView)
async def submit_sign_out(
    payload: SignOutRequest,
    controller: SessionController = Depends(get_session_controller),
) -> SessionView:
    return await _run(controller, lambda: controller.submit_sign_out(payload.visitor_name))


@router.post("/rating", response_model=SessionView)
async def submit_rating(
    payload: RatingRequest,
    controller: SessionController = Depends(get_session_controller),
) -> SessionView:
    return await _run(controller, lambda: controller.submit_rating(payload.rating))


@router.post("/done", response_model=SessionView)
async def finish(controller: SessionController = Depends(get_session_controller)) -> SessionView:
    return _apply(controller, controller.finish)
