"""
Anthropic-backed AI features: task estimation and mood-based recommendations.
"""
import logging
import os
from typing import Optional

import anthropic
from dotenv import load_dotenv

from ai_debug import log_ai_debug
from ai_parsing import normalize_estimate, normalize_recommendations, parse_lenient_json
from models import RecommendResponse, TaskEstimate
from prompts import build_estimate_prompt, build_recommend_prompt

load_dotenv()

logger = logging.getLogger(__name__)

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))

ESTIMATE_MAX_TOKENS = 512
RECOMMEND_MAX_TOKENS = 1024

_client: Optional[anthropic.AsyncAnthropic] = None


class AIUnavailableError(RuntimeError):
    """The AI service is not configured."""


def get_client() -> anthropic.AsyncAnthropic:
    """Return the shared Anthropic client, creating it on first use."""
    global _client
    if not ANTHROPIC_API_KEY or ANTHROPIC_API_KEY == "your-api-key-here":
        raise AIUnavailableError("ANTHROPIC_API_KEY is not configured")
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=ANTHROPIC_API_KEY, timeout=AI_TIMEOUT_SECONDS)
    return _client


async def generate_text(prompt: str, max_tokens: int = RECOMMEND_MAX_TOKENS) -> str:
    """Send a single user prompt and return the text of the reply."""
    client = get_client()
    response = await client.messages.create(
        model=ANTHROPIC_MODEL,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )
    return "".join(block.text for block in response.content if block.type == "text")


async def estimate_task_meta(title: str, description: Optional[str] = None) -> TaskEstimate:
    """
    Ask the model for a duration and energy estimate of a task.

    Raises AIUnavailableError, anthropic.APIError or ParseError; callers on the
    task-creation path treat all of them as "no estimate".
    """
    prompt = build_estimate_prompt(title.strip(), (description or "").strip())
    response_text = await generate_text(prompt, max_tokens=ESTIMATE_MAX_TOKENS)

    log_ai_debug(
        "task_estimate_raw_response",
        responseChars=len(response_text),
        responsePreview=response_text[:2000],
    )

    parsed = parse_lenient_json(response_text)
    normalized = normalize_estimate(parsed)

    log_ai_debug("task_estimate_normalized", **normalized.model_dump())
    return normalized


async def recommend_tasks(mood: str, tasks: list[dict]) -> RecommendResponse:
    """
    Ask the model which of the given tasks suit the user's mood.

    tasks must be non-empty dicts with at least an "id"; their order is the
    order shown to the model and is used to resolve 1-based positions.
    """
    valid_ids = {task["id"] for task in tasks}

    log_ai_debug(
        "recommend_request",
        moodPreview=mood[:200],
        tasksCount=len(tasks),
        hasNullEstimatedTime=any(t.get("estimated_time") is None for t in tasks),
        hasNullEnergyLevel=any(t.get("energy_level") is None for t in tasks),
    )

    prompt = build_recommend_prompt(mood, tasks)
    response_text = await generate_text(prompt, max_tokens=RECOMMEND_MAX_TOKENS)

    log_ai_debug(
        "recommend_raw_response",
        responseChars=len(response_text),
        responsePreview=response_text[:4000],
    )

    parsed = parse_lenient_json(response_text)

    log_ai_debug(
        "recommend_parsed_response",
        parsedType=type(parsed).__name__,
        parsedKeys=list(parsed.keys())[:20] if isinstance(parsed, dict) else [],
    )

    result = normalize_recommendations(parsed, valid_ids, tasks)
    logger.info("Recommended %d of %d tasks", len(result.recommendations), len(tasks))
    return result
