# Prompt templates for the AI features.
# Values are inserted JSON-quoted so user text can't break out of its field.
# estimated_time is in minutes; energy_level is 1 (light) to 3 (heavy).
import json

ESTIMATE_PROMPT = """You are an assistant that estimates how long a task takes and how much energy it needs.
Estimate estimated_time (minutes) and energy_level (1-3) for the task below and respond with JSON only.

# Constraints
- JSON only (no text before or after)
- estimated_time is an integer from 5 to 240, rounded to 5-minute units
- energy_level is an integer from 1 to 3

# Input
title: {title}
description: {description}

# Output schema
{schema}
"""

ESTIMATE_SCHEMA_EXAMPLE = {
    "estimated_time": 15,
    "energy_level": 2,
    "confidence": 0.6,
    "reason": "short explanation",
}

RECOMMEND_PROMPT = """You are a skilled task management assistant.
Based on the user's current mood and their list of incomplete tasks below, pick at most 3 tasks they should do right now and respond in JSON only.

# Constraints
- Output JSON only (no text before or after).
- Put objects inside a `recommendations` array.
- Each object must include `taskId` and `reason` (why it is recommended plus a word of encouragement).
- `taskId` must be an `id` from the task list, copied exactly. Never make up a new id.
- When the user feels low, prefer easy or short tasks. When they feel motivated, prefer heavier tasks.

# User's mood
{mood}

# Task list
{task_list}

# Output schema (example)
{schema}
"""

RECOMMEND_SCHEMA_EXAMPLE = {
    "recommendations": [
        {"taskId": "uuid", "reason": "reason (with some encouragement)"},
        {"taskNo": 1, "reason": "(taskNo is fine if the taskId is hard to copy)"},
    ]
}


def build_estimate_prompt(title: str, description: str) -> str:
    return ESTIMATE_PROMPT.format(
        title=json.dumps(title, ensure_ascii=False),
        description=json.dumps(description, ensure_ascii=False),
        schema=json.dumps(ESTIMATE_SCHEMA_EXAMPLE, ensure_ascii=False),
    )


def build_recommend_prompt(mood: str, tasks: list[dict]) -> str:
    """Tasks are numbered from 1 so the model can fall back to taskNo."""
    numbered = [{"no": idx, **task} for idx, task in enumerate(tasks, start=1)]
    return RECOMMEND_PROMPT.format(
        mood=json.dumps(mood, ensure_ascii=False),
        task_list=json.dumps(numbered, ensure_ascii=False),
        schema=json.dumps(RECOMMEND_SCHEMA_EXAMPLE, ensure_ascii=False),
    )
