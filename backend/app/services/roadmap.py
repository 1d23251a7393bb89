"""
Healing Roadmap Assembler
=========================
Builds a personalised 4-week plan from a user's recent entries.

Flow:
    1. Fetch concurrently: latest 30 mood entries, 30 stress entries,
       14 sleep entries and up to 10 favorited affirmations.
    2. Summarise each kind (averages rounded to one decimal place).
    3. Render the fixed prompt template and send it to the text
       generation service with the fixed system instruction.
    4. Pull the first balanced {...} object out of the reply and parse it.
       If that fails, return the fallback roadmap with the raw reply kept
       under ``rawResponse``.

generate_for_user() never raises: a disabled feature flag, a store
failure or a failed completion all come back as

    {"success": False, "message": "Failed to generate roadmap", "error": "..."}

Nothing is cached; every call re-reads entries and re-generates.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from supabase import Client

from app.config import Settings, get_settings
from app.db.supabase import get_supabase_client
from app.services.affirmations import AffirmationService
from app.services.entry_store import EntryStore
from app.services.statistics import list_value_frequency, most_common, sleep_duration_hours
from app.services.text_generation import TextGenerationService, get_text_generation_service

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MOOD_SAMPLE_SIZE = 30
STRESS_SAMPLE_SIZE = 30
SLEEP_SAMPLE_SIZE = 14
FAVORITE_AFFIRMATION_LIMIT = 10
RECENT_LIMIT = 5
NOTE_PREVIEW_CHARS = 100

FAILURE_MESSAGE = "Failed to generate roadmap"
UNPARSEABLE_ANALYSIS = "Unable to parse AI response"

SYSTEM_PROMPT = (
    "You are a compassionate mental health assistant that creates personalized "
    "healing roadmaps. Provide specific, actionable advice based on the user's data."
)

_RESPONSE_FORMAT = """\
{
    "analysis": "Brief analysis of the user's current state",
    "weeklyThemes": ["Theme 1", "Theme 2", ...],
    "weeklyGoals": ["Goal 1", "Goal 2", ...],
    "dailyPractices": ["Practice 1", "Practice 2", ...],
    "resources": [{"type": "book", "title": "...", "author": "...", "why": "..."}, ...],
    "affirmations": ["Custom affirmation 1", "Custom affirmation 2", ...]
  }"""


def _round1(value: float) -> float:
    return round(value, 1)


def _preview(note: Optional[str]) -> Optional[str]:
    return note[:NOTE_PREVIEW_CHARS] if note else note


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

def calculate_mood_stats(entries: list[dict]) -> Optional[dict]:
    """Summary of mood entries supplied newest first. None when empty."""
    if not entries:
        return None

    scores = [float(e["mood_score"]) for e in entries]
    return {
        "total_entries": len(entries),
        "average_mood_score": _round1(sum(scores) / len(scores)),
        "most_common_mood": most_common(e["mood"] for e in entries),
        "mood_distribution": dict(Counter(e["mood"] for e in entries)),
        "recent_moods": [
            {
                "date": e.get("created_at"),
                "mood": e["mood"],
                "score": e["mood_score"],
                "note": _preview(e.get("note")),
            }
            for e in entries[:RECENT_LIMIT]
        ],
    }


def calculate_stress_stats(entries: list[dict]) -> Optional[dict]:
    if not entries:
        return None

    levels = [float(e["stress_level"]) for e in entries]
    top = list_value_frequency(entries, "stressors", limit=5)
    return {
        "total_entries": len(entries),
        "average_stress_level": _round1(sum(levels) / len(levels)),
        "top_stressors": [{"stressor": s.value, "count": s.count} for s in top],
        "recent_stressors": [
            {
                "date": e.get("created_at"),
                "stress_level": e["stress_level"],
                "main_stressor": (e.get("stressors") or ["unknown"])[0],
                "coping_methods": e.get("coping_methods") or [],
            }
            for e in entries[:RECENT_LIMIT]
        ],
    }


def calculate_sleep_stats(entries: list[dict]) -> Optional[dict]:
    if not entries:
        return None

    durations = [sleep_duration_hours(e["sleep_time"], e["wake_time"]) for e in entries]
    qualities = [float(e["quality"]) for e in entries]
    interruptions = [float(e.get("interruptions") or 0) for e in entries]
    n = len(entries)
    return {
        "total_entries": n,
        "average_duration": _round1(sum(durations) / n),
        "average_quality": _round1(sum(qualities) / n),
        "average_interruptions": _round1(sum(interruptions) / n),
        "recent_sleep": [
            {
                "date": e.get("sleep_time"),
                "duration": _round1(duration),
                "quality": e["quality"],
                "note": _preview(e.get("note")),
            }
            for e, duration in zip(entries[:RECENT_LIMIT], durations)
        ],
    }


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def create_prompt(
    mood_stats: Optional[dict],
    stress_stats: Optional[dict],
    sleep_stats: Optional[dict],
    affirmations: list[dict],
) -> str:
    lines = ["Create a personalized 4-week healing roadmap based on the following user data:", ""]

    if mood_stats:
        recent = ", ".join(f"{m['mood']} ({m['score']})" for m in mood_stats["recent_moods"])
        lines += [
            f"MOOD DATA (last {MOOD_SAMPLE_SIZE} entries):",
            f"- Average mood score: {mood_stats['average_mood_score']}/10",
            f"- Most common mood: {mood_stats['most_common_mood']}",
            f"- Recent moods: {recent}",
            "",
        ]

    if stress_stats:
        top = ", ".join(f"{s['stressor']} ({s['count']}x)" for s in stress_stats["top_stressors"])
        lines += [
            f"STRESS DATA (last {STRESS_SAMPLE_SIZE} entries):",
            f"- Average stress level: {stress_stats['average_stress_level']}/10",
            f"- Top stressors: {top}",
            "",
        ]

    if sleep_stats:
        lines += [
            f"SLEEP DATA (last {SLEEP_SAMPLE_SIZE} nights):",
            f"- Average sleep duration: {sleep_stats['average_duration']} hours",
            f"- Average sleep quality: {sleep_stats['average_quality']}/5",
            f"- Average interruptions: {sleep_stats['average_interruptions']} per night",
            "",
        ]

    if affirmations:
        lines.append(f"FAVORITE AFFIRMATIONS (user's top {len(affirmations)}):")
        lines += [f'{i}. "{a["text"]}"' for i, a in enumerate(affirmations, start=1)]
        lines.append("")

    lines += [
        "",
        "Based on this data, create a detailed 4-week healing roadmap that includes:",
        "1. A brief analysis of the user's current state",
        "2. Weekly themes focused on improving mood, reducing stress, and enhancing sleep",
        "3. Specific daily practices or exercises",
        "4. Recommended resources (books, apps, techniques)",
        "5. Progress tracking suggestions",
        "",
        "Format the response as a JSON object with the following structure:",
        _RESPONSE_FORMAT,
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring of *text*, or None.

    Braces inside JSON string literals (including escaped quotes) are
    ignored when balancing.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


def fallback_roadmap(raw_response: str) -> dict:
    return {
        "analysis": UNPARSEABLE_ANALYSIS,
        "weeklyThemes": [],
        "weeklyGoals": [],
        "dailyPractices": [],
        "resources": [],
        "affirmations": [],
        "rawResponse": raw_response,
    }


def parse_roadmap_response(raw_response: str) -> dict:
    """Parse the roadmap object out of free text, falling back on failure."""
    candidate = extract_json_object(raw_response or "")
    if candidate is not None:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            logger.warning("Roadmap reply held unparseable JSON: %s", candidate[:200])
        else:
            if isinstance(parsed, dict):
                return parsed
    return fallback_roadmap(raw_response)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

def failure_result(error: str) -> dict:
    return {"success": False, "message": FAILURE_MESSAGE, "error": error}


class RoadmapService:
    def __init__(
        self,
        db: Client | None = None,
        generator: TextGenerationService | None = None,
        settings: Settings | None = None,
    ) -> None:
        db = db or get_supabase_client()
        self._settings = settings or get_settings()
        self._generator = generator or get_text_generation_service()
        self._mood = EntryStore("mood", db)
        self._stress = EntryStore("stress", db)
        self._sleep = EntryStore("sleep", db)
        self._affirmations = AffirmationService(db)

    async def _fetch(self, user_id: str):
        return await asyncio.gather(
            asyncio.to_thread(self._mood.find, user_id, order_by="created_at", limit=MOOD_SAMPLE_SIZE),
            asyncio.to_thread(self._stress.find, user_id, order_by="created_at", limit=STRESS_SAMPLE_SIZE),
            asyncio.to_thread(self._sleep.find, user_id, order_by="sleep_time", limit=SLEEP_SAMPLE_SIZE),
            asyncio.to_thread(self._affirmations.favorites, user_id, FAVORITE_AFFIRMATION_LIMIT),
        )

    async def generate_for_user(self, user_id: str) -> dict:
        if not self._settings.enable_ai_roadmap:
            logger.debug("Skipping roadmap for user %s: AI roadmap disabled", user_id)
            return failure_result("AI roadmap generation is disabled")

        try:
            mood_entries, stress_entries, sleep_entries, favorites = await self._fetch(user_id)

            stats = {
                "mood_stats": calculate_mood_stats(mood_entries),
                "stress_stats": calculate_stress_stats(stress_entries),
                "sleep_stats": calculate_sleep_stats(sleep_entries),
            }
            prompt = create_prompt(
                stats["mood_stats"], stats["stress_stats"], stats["sleep_stats"], favorites
            )
            reply = await self._generator.generate(SYSTEM_PROMPT, prompt)
        except Exception as exc:
            # A failed roadmap must not surface as a 500; the caller gets
            # the structured failure instead.
            logger.exception("Roadmap generation failed for user %s", user_id)
            return failure_result(str(exc))

        roadmap = parse_roadmap_response(reply)
        logger.info("Generated roadmap for user %s", user_id)
        return {
            "success": True,
            "data": {
                **roadmap,
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "stats": stats,
            },
        }


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: RoadmapService | None = None


def get_roadmap_service() -> RoadmapService:
    global _default_service
    if _default_service is None:
        _default_service = RoadmapService()
    return _default_service
