import logging
import uvicorn
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Depends, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from utils.logging import app_logger, get_request_stats
from utils.request_middleware import ScheduleLoggingMiddleware, SCHEDULE_SOURCE_HEADER, FALLBACK_DAYS_HEADER

from agents.planner_agent import PlannerAgent
from models.schedule_models import ScheduleGenerateRequest, ScheduleResponse
from scheduling.errors import InvalidRequest
from scheduling.service import generate_schedule

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.planner_agent = PlannerAgent()
    logger.info("PlannerAgent initialized")

    yield

    app_logger.log_periodic_stats()
    logger.info("Study scheduler shutting down")


app = FastAPI(
    title="Study Scheduler API",
    description="Generates day-by-day study schedules from topics, priorities and a daily time budget",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(ScheduleLoggingMiddleware, slow_request_threshold_ms=1000, log_periodic_stats_interval=300)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:8080"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    logger.warning(f"Rejected schedule request: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "errors": exc.problems}
    )


def get_planner_agent(request: Request) -> PlannerAgent:
    return request.app.state.planner_agent


@app.post("/schedule/generate", response_model=ScheduleResponse)
async def create_schedule(
    body: ScheduleGenerateRequest,
    response: Response,
    planner: PlannerAgent = Depends(get_planner_agent)
):
    schedule = await run_in_threadpool(generate_schedule, body, planner)

    response.headers[SCHEDULE_SOURCE_HEADER] = "ai" if schedule.ai_generated else "fallback"
    response.headers[FALLBACK_DAYS_HEADER] = str(schedule.fallback_days)

    return ScheduleResponse(
        **schedule.model_dump(),
        title=body.title,
        user_id=body.user_id,
        stats=schedule.summary()
    )

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "message": "Study Scheduler API is running",
        "timestamp": datetime.now().isoformat(),
        "stats": get_request_stats()
    }

@app.get("/")
async def root():
    return {
        "message": "Study Scheduler API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
        "schedules": {
            "generate": "/schedule/generate"
        }
    }


if __name__ == "__main__":
    uvicorn.run("api_server.main:app", host="0.0.0.0", port=8000, reload=True)
