"""FastAPI app exposing aggregation triggers and the admin polling surface."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import pendulum
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from ..config import AggregationSettings, Config
from ..db import PostgresStore, Store, create_connection_pool
from ..models.log import AGGREGATION, CRYPTO_AGGREGATION
from ..models.settings import Frequency
from ..pipeline import AggregationOrchestrator, RunOptions, Scheduler

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


class ScheduleUpdate(BaseModel):
    """Body of a schedule save."""

    enabled: bool = Field(..., description="Whether scheduled runs are enabled")
    frequency: Frequency = Field(..., description="Interval between scheduled runs")


def error_response(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": str(error) or "An unknown error occurred",
            "timestamp": pendulum.now("UTC").isoformat(),
        },
    )


async def read_options(request: Request) -> Dict[str, Any]:
    """Parse the JSON body of a trigger request; anything unusable means no options."""
    body: Any = {}
    if "application/json" in request.headers.get("content-type", ""):
        try:
            body = await request.json()
        except ValueError as e:
            logger.info("No JSON body or error parsing it: %s", e)
            body = {}
    return body if isinstance(body, dict) else {}


def create_app(
    store: Store,
    orchestrator: Optional[AggregationOrchestrator] = None,
    scheduler: Optional[Scheduler] = None,
    settings: Optional[AggregationSettings] = None,
    lifespan=None,
) -> FastAPI:
    """
    Build the HTTP app around an injected store.

    Args:
        store: Store shared by every request
        orchestrator: Pipeline to run (built from ``settings`` when omitted)
        scheduler: Schedule/cooldown guard (built around the orchestrator when omitted)
        settings: Aggregation tuning
        lifespan: Optional lifespan context that owns the store's resources
    """
    orchestrator = orchestrator or AggregationOrchestrator(store, settings=settings)
    scheduler = scheduler or Scheduler(store, orchestrator)

    app = FastAPI(title="Sentro Aggregation Service", lifespan=lifespan)
    app.state.store = store
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        for key, value in CORS_HEADERS.items():
            response.headers[key] = value
        return response

    @app.options("/{full_path:path}")
    async def preflight(full_path: str) -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    async def trigger(request: Request, event_type: str):
        body = await read_options(request)
        try:
            options = RunOptions.model_validate(body)
        except ValidationError as e:
            logger.warning("Ignoring invalid run options: %s", e)
            options = RunOptions()

        try:
            skip = await run_in_threadpool(scheduler.guard_manual_run, event_type)
            if skip is not None:
                return skip
            summary = await run_in_threadpool(orchestrator.run_sync, options, event_type)
            return summary.to_response()
        except Exception as e:
            logger.error("%s failed with error: %s", event_type, e)
            return error_response(e)

    @app.post("/aggregate")
    async def aggregate(request: Request):
        """Run the general aggregation."""
        return await trigger(request, AGGREGATION)

    @app.post("/fetch-crypto-news")
    async def fetch_crypto_news(request: Request):
        """Run the crypto news aggregation."""
        return await trigger(request, CRYPTO_AGGREGATION)

    @app.post("/scheduled-aggregation")
    async def scheduled_aggregation(request: Request):
        """Scheduler tick; ``{"manual": true}`` ignores the schedule and cooldown."""
        body = await read_options(request)
        try:
            return await run_in_threadpool(
                scheduler.check_and_run_sync, body.get("manual") is True
            )
        except Exception as e:
            logger.error("Scheduled aggregation check failed with error: %s", e)
            return error_response(e)

    @app.get("/logs")
    def get_logs(
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
    ):
        logs = store.get_logs(status=status, event_type=event_type, limit=limit, offset=offset)
        return [log.model_dump(mode="json") for log in logs]

    @app.get("/schedule")
    def get_schedule():
        return store.get_schedule().model_dump(mode="json")

    @app.api_route("/schedule", methods=["PUT", "POST"])
    def save_schedule(update: ScheduleUpdate):
        schedule = scheduler.save_schedule(update.enabled, update.frequency)
        return schedule.model_dump(mode="json")

    @app.get("/status")
    def get_status():
        return store.get_status().model_dump(mode="json")

    @app.get("/health")
    def health():
        return {"status": "alive", "service": "sentro"}

    return app


def create_app_from_config(config: Config) -> FastAPI:
    """Build the app with a Postgres store whose pool lives as long as the app."""
    pool = create_connection_pool(config.get_db_config())
    store = PostgresStore(pool)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            store.close()

    return create_app(store, settings=config.config.aggregation, lifespan=lifespan)
