"""FastAPI application exposing the timesheet builder as a local JSON API."""

from __future__ import annotations

import datetime
import io
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict

from .config import TimesheetSettings
from .errors import ActivityNotFoundError, TimesheetError
from .exporter import default_export_filename
from .models import SourceFile
from .paths import get_db_path
from .services import ActivityQuery, TimesheetServices

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ActivityCreate(BaseModel):
    date: datetime.date
    start_time: str
    duration: str
    task: str
    collaborator: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ActivityUpdate(BaseModel):
    task: Optional[str] = None
    duration: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TimesheetSettings] = None,
    services: Optional[TimesheetServices] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    if services is None:
        services = TimesheetServices(
            Path(db_path or get_db_path()), settings or TimesheetSettings()
        )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        yield

    app = FastAPI(title="Timesheet Builder", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.services = services

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current: TimesheetServices = request.app.state.services
        return {
            "database_path": str(current.db_path),
            "day_start": current.settings.day_start,
            "lunch_break_minutes": current.settings.lunch_break_minutes,
            "fallback_period": "{}/{}".format(*current.settings.fallback_period),
            "default_collaborator": current.settings.default_collaborator,
        }

    @app.get("/api/activities")
    def list_activities(
        request: Request,
        date: Optional[str] = Query(
            default=None, description="Date or date prefix (YYYY-MM-DD, YYYY-MM)."
        ),
        task: Optional[str] = Query(default=None, description="Case-insensitive task text."),
        collaborator: Optional[str] = Query(default=None, description="Exact collaborator."),
        sort_by: str = Query(default="date"),
        order: str = Query(default="asc"),
    ) -> Dict[str, Any]:
        query = ActivityQuery(
            date_filter=date,
            task_filter=task,
            collaborator_filter=collaborator,
            sort_by=sort_by,
            order=order,
        )
        try:
            activities = request.app.state.services.list_activities(query)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "count": len(activities),
            "activities": [activity.to_dict() for activity in activities],
        }

    @app.post("/api/activities", status_code=201)
    def create_activity(payload: ActivityCreate, request: Request) -> Dict[str, Any]:
        try:
            activity = request.app.state.services.add_activity(
                day=payload.date,
                start_time=payload.start_time,
                duration=payload.duration,
                task=payload.task,
                collaborator=payload.collaborator,
            )
        except TimesheetError as exc:
            raise _http_error(exc) from exc
        return activity.to_dict()

    @app.get("/api/activities/{activity_id}")
    def get_activity(activity_id: str, request: Request) -> Dict[str, Any]:
        try:
            return request.app.state.services.get_activity(activity_id).to_dict()
        except TimesheetError as exc:
            raise _http_error(exc) from exc

    @app.patch("/api/activities/{activity_id}")
    def update_activity(
        activity_id: str, payload: ActivityUpdate, request: Request
    ) -> Dict[str, Any]:
        updates = payload.model_dump(exclude_unset=True)
        if not updates:
            raise HTTPException(status_code=400, detail="Nothing to update")
        try:
            activity = request.app.state.services.update_activity(activity_id, **updates)
        except TimesheetError as exc:
            raise _http_error(exc) from exc
        return activity.to_dict()

    @app.delete("/api/activities/{activity_id}", status_code=204)
    def delete_activity(activity_id: str, request: Request) -> Response:
        try:
            request.app.state.services.delete_activity(activity_id)
        except TimesheetError as exc:
            raise _http_error(exc) from exc
        return Response(status_code=204)

    @app.delete("/api/activities")
    def clear_activities(request: Request) -> Dict[str, Any]:
        return {"deleted": request.app.state.services.clear_activities()}

    @app.get("/api/statistics")
    def statistics(request: Request) -> Dict[str, Any]:
        return request.app.state.services.statistics().to_dict()

    @app.get("/api/overlaps")
    def overlaps(request: Request) -> Dict[str, Any]:
        pairs = request.app.state.services.overlaps()
        return {
            "overlaps": [
                {"activity": current.to_dict(), "next_activity": following.to_dict()}
                for current, following in pairs
            ]
        }

    @app.get("/api/day-markers")
    def day_markers(request: Request) -> Dict[str, Any]:
        markers = request.app.state.services.day_markers()
        return {"day_markers": [item.to_dict() for item in markers.values()]}

    @app.post("/api/import")
    def import_files(
        request: Request,
        files: List[UploadFile] = File(...),
        collaborator: Optional[str] = Form(default=None),
    ):
        sources: list[SourceFile] = []
        for upload in files:
            sources.append(SourceFile(name=upload.filename or "", content=upload.file.read()))
        result = request.app.state.services.import_files(sources, collaborator)
        return JSONResponse(
            status_code=200 if result.success else 400, content=result.to_dict()
        )

    @app.get("/api/export")
    def export(
        request: Request,
        date: Optional[str] = Query(default=None, description="Only export matching dates."),
    ) -> Response:
        current: TimesheetServices = request.app.state.services
        activities = current.list_activities(ActivityQuery(date_filter=date))
        buffer = io.BytesIO()
        try:
            current.export(buffer, activities)
        except TimesheetError as exc:
            raise _http_error(exc) from exc
        filename = default_export_filename(activities)
        return Response(
            content=buffer.getvalue(),
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app


def _http_error(exc: TimesheetError) -> HTTPException:
    if isinstance(exc, ActivityNotFoundError):
        return HTTPException(status_code=404, detail="Activity not found")
    return HTTPException(status_code=400, detail=str(exc))
