# pulse/coach.py
import json
import re
import time
import warnings
from typing import Any, Dict, List, Optional, Tuple

warnings.filterwarnings("ignore", category=FutureWarning)

import google.generativeai as genai
from openai import OpenAI

from pulse import config
from pulse.chat_store import get_messages
from pulse.checkins import list_stress_entries
from pulse.habits import list_habits, progress
from pulse.journal import list_entries
from pulse.log import get_logger

log = get_logger("coach")

FALLBACK_REPLY = "I paused for a moment. Ask again."

GREETINGS = {"hi", "hello", "hey", "hi pulse", "hello pulse", "hey pulse"}
ABOUT_TRIGGERS = {
    "who are you",
    "what are you",
    "tell me about yourself",
    "what is peace pulse",
    "what can you do",
}

GREETING_REPLY = "Hey, I'm here. How are you feeling right now?"
ABOUT_REPLY = (
    "I'm the Peace Pulse companion. I help you notice how you're doing, "
    "reflect on it, and turn it into small, doable steps for your day."
)

SYSTEM_INSTRUCTION = """
You are the Peace Pulse wellness companion.

Tone:
- Warm, calm and brief. Never clinical, never preachy.
- 2-5 sentences by default. Ask at most ONE question per reply.

Use what you know about the user (habits, recent journal mood, stress) to keep
advice concrete. Do not diagnose. If the user mentions self-harm, encourage
them to contact local emergency services or a crisis line.

When you recommend concrete actions, end your reply with one line:
TASKS: {"tasks": [{"title": "<short action>", "category": "<mindfulness|health|reflection|exercise|learning>"}]}
Omit the TASKS line when you are not recommending actions.
""".strip()

# a trailing task block: "TASKS: {...}", a fenced ```json {...}``` block, or a bare {"tasks": ...} object
_TASK_BLOCKS = (
    re.compile(r"^\s*TASKS:\s*(\{.*\})\s*$", re.MULTILINE | re.DOTALL),
    re.compile(r"```(?:json)?\s*(\{.*\})\s*```\s*$", re.DOTALL),
    re.compile(r"(\{\s*\"tasks\"\s*:.*\})\s*$", re.DOTALL),
)


# -------------------------
# Gemini (lazy init, env-config)
# -------------------------
_gemini_model = None


def _ensure_gemini():
    global _gemini_model
    if _gemini_model is not None:
        return
    if not config.GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY is missing")
    genai.configure(api_key=config.GEMINI_API_KEY)
    _gemini_model = genai.GenerativeModel(config.GEMINI_MODEL)


def _gemini_generate(text: str) -> str:
    _ensure_gemini()
    resp = _gemini_model.generate_content(
        text,
        generation_config={"temperature": 0.4, "max_output_tokens": 600},
    )
    return (getattr(resp, "text", "") or "").strip()


# -------------------------
# OpenAI (lazy init, env-config)
# -------------------------
_openai_client: Optional[OpenAI] = None


def _ensure_openai():
    global _openai_client
    if _openai_client is not None:
        return
    if not config.OPENAI_API_KEY:
        raise RuntimeError("OPENAI_API_KEY is missing")
    _openai_client = OpenAI(api_key=config.OPENAI_API_KEY)


def _openai_generate(text: str) -> str:
    _ensure_openai()
    resp = _openai_client.responses.create(
        model=config.OPENAI_MODEL,
        input=text,
    )
    return (getattr(resp, "output_text", "") or "").strip()


# -------------------------
# LLM call router (primary from env, the other as fallback)
# -------------------------
def call_llm(prompt: str) -> str:
    primary = config.MODEL_PROVIDER
    fallback = "gemini" if primary == "openai" else "openai"

    def _call(provider: str) -> str:
        if provider == "openai":
            return _openai_generate(prompt)
        if provider == "gemini":
            return _gemini_generate(prompt)
        raise RuntimeError(f"Unknown provider: {provider}")

    try:
        out = _call(primary)
        if out:
            return out
        raise RuntimeError("Empty response from model")
    except Exception as e:
        log.warning("%s failed, falling back to %s: %s", primary, fallback, e)
        time.sleep(0.5)
        try:
            return _call(fallback) or FALLBACK_REPLY
        except Exception as e2:
            log.error("Both providers failed: %s", e2)
            return FALLBACK_REPLY


# -------------------------
# Prompt helpers
# -------------------------
def build_wellness_context(user_id: str) -> Dict[str, Any]:
    habits = list_habits(user_id)
    entries = list_entries(user_id)[:3]
    stress = list_stress_entries(user_id)[:1]
    return {
        "habits": [h["name"] for h in habits],
        "progress": progress(habits),
        "recent_moods": [e["mood"] for e in entries if e.get("mood")],
        "latest_stress": stress[0]["stress_level"] if stress else None,
    }


def format_prompt(context: Dict[str, Any], history: List[Dict[str, Any]], text: str) -> str:
    parts: List[str] = [f"SYSTEM:\n{SYSTEM_INSTRUCTION}"]

    p = context.get("progress") or {}
    facts = [
        f"Habits: {', '.join(context.get('habits') or []) or 'none yet'}",
        f"Done today: {p.get('completed', 0)} of {p.get('total', 0)}",
    ]
    if context.get("recent_moods"):
        facts.append(f"Recent journal stress moods: {', '.join(context['recent_moods'])}")
    if context.get("latest_stress") is not None:
        facts.append(f"Latest stress level (1-10): {context['latest_stress']}")
    parts.append("CONTEXT:\n" + "\n".join(facts))

    for m in history:
        content = (m.get("message") or "").strip()
        if not content:
            continue
        role = "USER" if m.get("is_user") else "ASSISTANT"
        parts.append(f"{role}:\n{content}")

    parts.append(f"USER:\n{text}")
    parts.append("ASSISTANT:\n")
    return "\n\n".join(parts)


def split_tasks(reply: str) -> Tuple[str, List[Dict[str, str]]]:
    """Strip a trailing task block from a reply and parse the tasks it lists."""
    reply = reply or ""
    m = None
    for pattern in _TASK_BLOCKS:
        m = pattern.search(reply)
        if m:
            break
    if not m:
        return reply.strip(), []

    visible = reply[: m.start()].strip()
    try:
        data = json.loads(m.group(1))
    except json.JSONDecodeError:
        log.warning("Could not parse coach tasks: %s", m.group(1)[:200])
        return visible, []

    raw = data.get("tasks") if isinstance(data, dict) else None
    if not isinstance(raw, list):
        log.warning("Coach tasks block has no task list: %s", m.group(1)[:200])
        return visible, []

    tasks = []
    for t in raw:
        if not isinstance(t, dict):
            continue
        title = t.get("title")
        if not isinstance(title, str) or not title.strip():
            continue
        category = t.get("category")
        if not isinstance(category, str) or not category.strip():
            category = "health"
        tasks.append({"title": title.strip(), "category": category.strip()})
    return visible, tasks


# -------------------------
# Main entry
# -------------------------
def coach_reply(user_id: str, text: str) -> Tuple[str, List[Dict[str, str]]]:
    """
    Reply to one user message. Returns the visible reply and any tasks the
    coach proposed. Greetings and "about" questions never reach the model.
    """
    normalized = (text or "").strip().lower().rstrip("?.!")
    if not normalized:
        return "Say one sentence. How are you doing today?", []
    if normalized in GREETINGS:
        return GREETING_REPLY, []
    if normalized in ABOUT_TRIGGERS:
        return ABOUT_REPLY, []

    try:
        context = build_wellness_context(user_id)
    except Exception:
        log.exception("Could not build wellness context for %s", user_id)
        context = {}

    # the current message is already stored; keep it out of history
    history = get_messages(user_id, limit=13)[:-1]
    reply = call_llm(format_prompt(context, history, text.strip()))
    return split_tasks(reply)
