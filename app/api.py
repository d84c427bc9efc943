"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.schemas import (
    ControllerReadingView,
    ControllerUpdate,
    ControllerView,
    CoordinatesView,
    PaginatedTicks,
    SensorView,
)
from services.codec import DecodeError
from services.queries import QueryService, build_default_query_service

router = APIRouter()


def get_queries() -> QueryService:
    return build_default_query_service()


@router.get(
    "/api/controllers",
    response_model=List[ControllerView],
    summary="List known controllers.",
)
async def list_controllers(
    queries: QueryService = Depends(get_queries),
) -> List[ControllerView]:
    return queries.list_controllers()


@router.get(
    "/api/controllers/{controller_id}",
    response_model=ControllerView,
    summary="Fetch a controller with its label and view URL.",
)
async def get_controller(
    controller_id: str,
    queries: QueryService = Depends(get_queries),
) -> ControllerView:
    try:
        return queries.get_controller(controller_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Controller {controller_id} not found.",
        ) from exc


@router.api_route(
    "/api/controllers/{controller_id}",
    methods=["PUT", "POST"],
    response_model=ControllerView,
    summary="Set the label of a controller.",
)
async def put_controller(
    controller_id: str,
    update: ControllerUpdate,
    queries: QueryService = Depends(get_queries),
) -> ControllerView:
    try:
        label = update.resolved_label()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return queries.set_controller_label(controller_id, label)


@router.get(
    "/api/controllers/{controller_id}/sensors",
    response_model=List[SensorView],
    summary="List sensors of a controller with last tick time and coordinates.",
)
async def get_controller_sensors(
    controller_id: str,
    queries: QueryService = Depends(get_queries),
) -> List[SensorView]:
    return queries.list_sensors(controller_id)


@router.get(
    "/api/controllers/{controller_id}/readings",
    response_model=List[ControllerReadingView],
    summary="Page through per-batch aggregates of a controller, newest first.",
)
async def get_controller_readings(
    controller_id: str,
    start_index: int = Query(0, ge=0),
    stop_index: Optional[int] = Query(None, ge=0),
    queries: QueryService = Depends(get_queries),
) -> List[ControllerReadingView]:
    return queries.controller_readings(controller_id, start_index, stop_index)


@router.get(
    "/api/sensors/{sensor_id}/ticks",
    response_model=PaginatedTicks,
    summary="Page through ticks of a sensor by position or by time range.",
)
async def get_sensor_ticks(
    sensor_id: int,
    start_index: Optional[int] = Query(None, ge=0, description="Newest-first position."),
    stop_index: Optional[int] = Query(None, ge=0, description="Inclusive; omit to read to the end."),
    start: Optional[int] = Query(None, description="Range start, epoch seconds, inclusive."),
    end: Optional[int] = Query(None, description="Range end, epoch seconds, inclusive."),
    queries: QueryService = Depends(get_queries),
) -> PaginatedTicks:
    by_time = start is not None or end is not None
    by_rank = start_index is not None or stop_index is not None
    try:
        if by_time and by_rank:
            raise ValueError("Use either start_index/stop_index or start/end, not both.")
        if by_time:
            if start is None or end is None:
                raise ValueError("Both start and end are required for a time range.")
            return queries.ticks_by_time_range(sensor_id, start, end)
        return queries.ticks_by_rank(sensor_id, start_index or 0, stop_index)
    except DecodeError:
        raise
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/api/sensors/{sensor_id}/coordinates",
    response_model=CoordinatesView,
    summary="Fetch the coordinates of a sensor.",
)
async def get_sensor_coordinates(
    sensor_id: int,
    queries: QueryService = Depends(get_queries),
) -> CoordinatesView:
    try:
        return queries.get_sensor_coordinates(sensor_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sensor {sensor_id} has no coordinates.",
        ) from exc


@router.put(
    "/api/sensors/{sensor_id}/coordinates",
    response_model=CoordinatesView,
    summary="Set the coordinates of a sensor.",
)
async def put_sensor_coordinates(
    sensor_id: int,
    coordinates: CoordinatesView = Body(...),
    queries: QueryService = Depends(get_queries),
) -> CoordinatesView:
    if not coordinates.lat or not coordinates.lng:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Both lat and lng are required.",
        )
    return queries.set_sensor_coordinates(sensor_id, coordinates.lat, coordinates.lng)


@router.get("/api/logs", response_class=PlainTextResponse, summary="Recent raw transmissions.")
@router.get("/api/log", response_class=PlainTextResponse, include_in_schema=False)
async def get_logs(
    queries: QueryService = Depends(get_queries),
) -> PlainTextResponse:
    return PlainTextResponse("\n".join(queries.recent_logs()))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
