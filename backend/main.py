from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
import uuid
import os
import logging
import anthropic
from dotenv import load_dotenv

import ai_client
import database
from ai_debug import log_ai_debug
from ai_parsing import AIResponseError
from models import TaskCreate, TaskUpdate, RecommendRequest, RecommendResponse
from database import (
    get_all_tasks,
    create_task_db,
    set_task_completed_db,
    delete_task_db,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Failures that mean "the AI round-trip didn't work", as opposed to bugs
AI_FAILURES = (ai_client.AIUnavailableError, anthropic.APIError, AIResponseError)

@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Startup; looked up on the module so tests can stub it out
    database.init_db()
    yield
    # Shutdown (nothing to do)

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/tasks")
def get_tasks(include_completed: str = Query("0", alias="includeCompleted")) -> dict:
    return {"tasks": get_all_tasks(include_completed=include_completed == "1")}


@app.post("/tasks", status_code=201)
async def create_task(task_data: TaskCreate) -> dict:
    """Create a task, filling in missing estimates from the AI unless auto_estimate is false."""
    title = task_data.title.strip() if isinstance(task_data.title, str) else ""
    if not title:
        raise HTTPException(status_code=400, detail="title is required")

    description = task_data.description.strip() if isinstance(task_data.description, str) else None
    auto_estimate = task_data.auto_estimate if isinstance(task_data.auto_estimate, bool) else True

    estimated_time = task_data.estimated_time
    energy_level = task_data.energy_level

    if auto_estimate and (estimated_time is None or energy_level is None):
        try:
            estimate = await ai_client.estimate_task_meta(title, description)
            if estimated_time is None:
                estimated_time = estimate.estimated_time
            if energy_level is None:
                energy_level = estimate.energy_level
        except AI_FAILURES as e:
            # No estimate is fine; the task is still created
            logger.warning("Task estimate unavailable: %s", e)

    task = create_task_db(
        str(uuid.uuid4()),
        title,
        description,
        estimated_time,
        energy_level
    )
    return {"task": task}


@app.patch("/tasks/{task_id}")
def update_task(task_id: str, task_data: TaskUpdate) -> dict:
    if task_data.is_completed is None:
        raise HTTPException(status_code=400, detail="is_completed is required")
    result = set_task_completed_db(task_id, task_data.is_completed)
    if not result:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"task": result}


@app.delete("/tasks/{task_id}")
def delete_task(task_id: str) -> dict:
    if not delete_task_db(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return {"ok": True}


@app.post("/recommend")
async def recommend(request: RecommendRequest) -> RecommendResponse:
    """Recommend up to 3 tasks for the user's mood."""
    mood = request.mood.strip() if isinstance(request.mood, str) else ""
    if not mood:
        raise HTTPException(status_code=400, detail="mood is required")

    if request.tasks:
        candidates = request.tasks
    else:
        candidates = get_all_tasks()

    if not candidates:
        return RecommendResponse(recommendations=[])

    tasks_for_prompt = [
        {
            "id": t.id,
            "title": t.title,
            "description": t.description,
            "estimated_time": t.estimated_time,
            "energy_level": t.energy_level,
            "is_completed": t.is_completed,
        }
        for t in candidates
    ]

    try:
        return await ai_client.recommend_tasks(mood, tasks_for_prompt)
    except AI_FAILURES as e:
        message = str(e)
        log_ai_debug("recommend_error", message=message)
        logger.warning("Recommendation failed: %s", message)
        raise HTTPException(status_code=500, detail=message)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
