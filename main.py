# main.py
from __future__ import annotations

from contextlib import asynccontextmanager, closing
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Tuple

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from pulse import config
from pulse.analysis import analyze_entry
from pulse.chat_store import add_message, clear_messages, get_messages
from pulse.checkins import add_sleep_entry, add_stress_entry, list_sleep_entries, list_stress_entries
from pulse.coach import FALLBACK_REPLY, coach_reply
from pulse.db import connect, normalize_user
from pulse.graph import build_graph
from pulse.habits import (
    add_habit,
    add_pinned_task,
    daily_completions,
    delete_habit,
    list_habits,
    pin_habit,
    pinned_tasks,
    progress,
    rename_habit,
    streak_summary,
    toggle_habit,
    unpin_habit,
)
from pulse.journal import PROMPTS, add_entry, delete_entry, filter_entries, get_entry, list_entries, update_entry
from pulse.layout import DEFAULT_HEIGHT, DEFAULT_WIDTH, GraphSettings, layout_graph
from pulse.log import get_logger, setup_logging
from pulse.models import DateRange, DialPart, init_db, migrate_db
from pulse.settings import get_settings, update_settings
from pulse.suggestions import (
    clear_chat_suggestions,
    list_chat_suggestions,
    register_chat_suggestions,
    remove_chat_suggestion,
)
from pulse.timepicker import decrement, dial, increment, set_part
from pulse.todos import add_todos, delete_todo, list_todos, toggle_todo

setup_logging()
log = get_logger("api")


# -------------------------
# Startup
# -------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    migrate_db()
    log.info("Peace Pulse backend ready (env=%s)", config.ENV)
    yield


app = FastAPI(title="Peace Pulse Backend", version=config.APP_VERSION, lifespan=lifespan)

# -------------------------
# CORS
# -------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# Validation errors
# -------------------------
@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # rejected input is left out; NaN or Infinity would not serialise
    errors = [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


# -------------------------
# Helpers
# -------------------------
def current_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    return normalize_user(x_user_id)


def not_found(e: LookupError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e.args[0] if e.args else e))


def invalid(e: ValueError) -> dict:
    return {"ok": False, "error": str(e)}


def habits_overview(user: str) -> dict:
    habits = list_habits(user)
    return {
        "habits": habits,
        "pinned_tasks": pinned_tasks(habits),
        "progress": progress(habits),
        "streak": streak_summary(habits),
    }


# -------------------------
# Health
# -------------------------
@app.get("/")
def root():
    return {"ok": True, "status": f"{config.APP_NAME} backend is running"}


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/health/full")
def full_health():
    try:
        with closing(connect()) as conn:
            conn.execute("SELECT 1")
        return {"ok": True, "db": "ok"}
    except Exception as e:
        log.exception("Health check failed")
        return {"ok": False, "error": str(e)}


@app.get("/debug/version")
def debug_version():
    return {
        "service": config.APP_NAME,
        "version": config.APP_VERSION,
        "cors_origins": config.CORS_ORIGINS,
        "ts": datetime.now(timezone.utc).isoformat(),
    }


# -------------------------
# Everything at once (initial client load)
# -------------------------
@app.get("/wellness")
def wellness(user: str = Depends(current_user)):
    return {
        "user": user,
        **habits_overview(user),
        "todos": list_todos(user),
        "journal_entries": list_entries(user),
        "stress_entries": list_stress_entries(user),
        "sleep_entries": list_sleep_entries(user),
        "chat_messages": get_messages(user),
        "chat_suggestions": list_chat_suggestions(user),
        "settings": get_settings(user),
    }


# -------------------------
# Habits + pinned tasks
# -------------------------
class HabitCreatePayload(BaseModel):
    name: str
    category: str = "health"


class PinnedTaskPayload(BaseModel):
    name: str


class HabitRenamePayload(BaseModel):
    name: str


@app.get("/habits")
def get_habits(user: str = Depends(current_user)):
    return habits_overview(user)


@app.post("/habits")
def create_habit(payload: HabitCreatePayload, user: str = Depends(current_user)):
    try:
        habit = add_habit(user, payload.name, payload.category)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "habit": habit}


@app.post("/habits/pinned")
def create_pinned_task(payload: PinnedTaskPayload, user: str = Depends(current_user)):
    try:
        habit = add_pinned_task(user, payload.name)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "habit": habit}


@app.get("/habits/completions")
def get_habit_completions(days: int = Query(default=30, ge=1, le=366), user: str = Depends(current_user)):
    return {"days": daily_completions(user, days)}


@app.post("/habits/{habit_id}/toggle")
def toggle_habit_route(habit_id: int, user: str = Depends(current_user)):
    try:
        habit = toggle_habit(user, habit_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "habit": habit}


@app.post("/habits/{habit_id}/rename")
def rename_habit_route(habit_id: int, payload: HabitRenamePayload, user: str = Depends(current_user)):
    try:
        habit = rename_habit(user, habit_id, payload.name)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "habit": habit}


@app.post("/habits/{habit_id}/pin")
def pin_habit_route(habit_id: int, user: str = Depends(current_user)):
    try:
        habit = pin_habit(user, habit_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "habit": habit}


@app.post("/habits/{habit_id}/unpin")
def unpin_habit_route(habit_id: int, user: str = Depends(current_user)):
    try:
        habit = unpin_habit(user, habit_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "habit": habit}


@app.delete("/habits/{habit_id}")
def delete_habit_route(habit_id: int, user: str = Depends(current_user)):
    try:
        delete_habit(user, habit_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "id": str(habit_id)}


# -------------------------
# Todos
# -------------------------
class TodoItem(BaseModel):
    title: str
    category: Optional[str] = None


class TodosAddPayload(BaseModel):
    todos: List[TodoItem]


@app.get("/todos")
def get_todos(user: str = Depends(current_user)):
    return {"todos": list_todos(user)}


@app.post("/todos")
def create_todos(payload: TodosAddPayload, user: str = Depends(current_user)):
    added = add_todos(user, [t.model_dump() for t in payload.todos])
    return {"ok": True, "added": added}


@app.post("/todos/{todo_id}/toggle")
def toggle_todo_route(todo_id: int, user: str = Depends(current_user)):
    try:
        todo = toggle_todo(user, todo_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "todo": todo}


@app.delete("/todos/{todo_id}")
def delete_todo_route(todo_id: int, user: str = Depends(current_user)):
    try:
        delete_todo(user, todo_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "id": str(todo_id)}


# -------------------------
# Journal
# -------------------------
class JournalCreatePayload(BaseModel):
    content: str
    title: Optional[str] = None
    prompt: Optional[str] = None


class JournalUpdatePayload(BaseModel):
    title: str
    content: str


MAX_CANVAS = 10_000
Coordinate = Annotated[float, Field(ge=-MAX_CANVAS, le=MAX_CANVAS)]


class LayoutPayload(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    settings: GraphSettings = Field(default_factory=GraphSettings)
    width: float = Field(default=DEFAULT_WIDTH, gt=0, le=MAX_CANVAS)
    height: float = Field(default=DEFAULT_HEIGHT, gt=0, le=MAX_CANVAS)
    pinned: Dict[str, Tuple[Coordinate, Coordinate]] = Field(default_factory=dict)
    show_links: bool = True


def with_tags(entry: dict) -> dict:
    return {**entry, **analyze_entry(entry["content"], entry["title"]).as_dict()}


@app.get("/journal")
def get_journal(
    search: str = "",
    date_range: DateRange = "all",
    category: str = "all",
    sentiment: str = "all",
    mood: str = "all",
    user: str = Depends(current_user),
):
    entries = filter_entries(
        list_entries(user),
        search_term=search,
        date_range=date_range,
        category=category,
        sentiment=sentiment,
        mood=mood,
    )
    return {"entries": [with_tags(e) for e in entries]}


@app.get("/journal/prompts")
def get_journal_prompts():
    return {"prompts": PROMPTS}


@app.post("/journal")
def create_journal_entry(payload: JournalCreatePayload, user: str = Depends(current_user)):
    title = payload.title
    if not (title or "").strip() and payload.prompt:
        title = payload.prompt
    try:
        entry = add_entry(user, title, payload.content)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "entry": with_tags(entry)}


@app.get("/journal/graph")
def get_journal_graph(show_links: bool = True, user: str = Depends(current_user)):
    return build_graph(list_entries(user), show_links=show_links).as_dict()


@app.post("/journal/graph/layout")
def layout_journal_graph(payload: LayoutPayload, user: str = Depends(current_user)):
    graph = build_graph(list_entries(user), show_links=payload.show_links)
    try:
        positions = layout_graph(graph, payload.settings, payload.width, payload.height, payload.pinned)
    except LookupError as e:
        return {"ok": False, "error": str(e.args[0] if e.args else e)}

    out = graph.as_dict()
    for node in out["nodes"]:
        node["x"], node["y"] = positions[node["id"]]
        node["radius"] = payload.settings.node_size
    out.update(ok=True, width=payload.width, height=payload.height, settings=payload.settings.model_dump())
    return out


@app.get("/journal/{entry_id}")
def get_journal_entry(entry_id: int, user: str = Depends(current_user)):
    try:
        entry = get_entry(user, entry_id)
    except LookupError as e:
        raise not_found(e)
    return {"entry": with_tags(entry)}


@app.put("/journal/{entry_id}")
def update_journal_entry(entry_id: int, payload: JournalUpdatePayload, user: str = Depends(current_user)):
    try:
        entry = update_entry(user, entry_id, payload.title, payload.content)
    except LookupError as e:
        raise not_found(e)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "entry": with_tags(entry)}


@app.delete("/journal/{entry_id}")
def delete_journal_entry(entry_id: int, user: str = Depends(current_user)):
    try:
        delete_entry(user, entry_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "id": str(entry_id)}


# -------------------------
# Chat + suggestions
# -------------------------
class ChatSend(BaseModel):
    message: Optional[str] = None


class SuggestionsPayload(BaseModel):
    tasks: List[TodoItem]


@app.get("/chat")
def read_chat(user: str = Depends(current_user)):
    return {"messages": get_messages(user)}


@app.post("/chat")
def send_chat(payload: ChatSend, user: str = Depends(current_user)):
    text = (payload.message or "").strip()
    if not text:
        return {"ok": False, "error": "message required"}

    add_message(user, text, is_user=True)
    try:
        reply, tasks = coach_reply(user, text)
    except Exception:
        log.exception("Coach reply failed for %s", user)
        reply, tasks = FALLBACK_REPLY, []
    add_message(user, reply, is_user=False)

    added: List[str] = []
    if tasks:
        try:
            added = register_chat_suggestions(user, tasks)
        except Exception:
            log.exception("Could not register chat suggestions for %s", user)

    return {
        "ok": True,
        "assistant_message": reply,
        "suggested": added,
        "messages": get_messages(user),
    }


@app.post("/chat/clear")
def clear_chat(user: str = Depends(current_user)):
    clear_messages(user)
    return {"ok": True, "messages": []}


@app.get("/suggestions")
def get_suggestions(user: str = Depends(current_user)):
    return {"suggestions": list_chat_suggestions(user)}


@app.post("/suggestions")
def add_suggestions(payload: SuggestionsPayload, user: str = Depends(current_user)):
    added = register_chat_suggestions(user, [t.model_dump() for t in payload.tasks])
    return {"ok": True, "added": added}


@app.post("/suggestions/clear")
def clear_suggestions(user: str = Depends(current_user)):
    clear_chat_suggestions(user)
    return {"ok": True}


@app.delete("/suggestions/{suggestion_id}")
def delete_suggestion(suggestion_id: int, user: str = Depends(current_user)):
    try:
        remove_chat_suggestion(user, suggestion_id)
    except LookupError as e:
        raise not_found(e)
    return {"ok": True, "id": str(suggestion_id)}


# -------------------------
# Stress + sleep check-ins
# -------------------------
class StressPayload(BaseModel):
    stress_level: int
    note: str = ""


class SleepPayload(BaseModel):
    bed_time: str
    wake_time: str
    sleep_quality: int
    sleep_duration: Optional[float] = None
    notes: str = ""


@app.get("/stress")
def get_stress(user: str = Depends(current_user)):
    return {"stress_entries": list_stress_entries(user)}


@app.post("/stress")
def create_stress(payload: StressPayload, user: str = Depends(current_user)):
    try:
        entry = add_stress_entry(user, payload.stress_level, payload.note)
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "entry": entry}


@app.get("/sleep")
def get_sleep(user: str = Depends(current_user)):
    return {"sleep_entries": list_sleep_entries(user)}


@app.post("/sleep")
def create_sleep(payload: SleepPayload, user: str = Depends(current_user)):
    try:
        entry = add_sleep_entry(
            user,
            payload.bed_time,
            payload.wake_time,
            payload.sleep_quality,
            duration=payload.sleep_duration,
            notes=payload.notes,
        )
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "entry": entry}


# -------------------------
# Settings
# -------------------------
class SettingsPayload(BaseModel):
    notifications: Optional[bool] = None
    sound: Optional[bool] = None
    reminder_time: Optional[str] = None


@app.get("/settings")
def read_settings(user: str = Depends(current_user)):
    return {"settings": get_settings(user)}


@app.post("/settings")
def write_settings(payload: SettingsPayload, user: str = Depends(current_user)):
    try:
        settings = update_settings(user, **payload.model_dump())
    except ValueError as e:
        return invalid(e)
    return {"ok": True, "settings": settings}


# -------------------------
# Time-of-day dial
# -------------------------
class TimeAdjustPayload(BaseModel):
    value: str = ""
    part: DialPart = "hour"
    action: Literal["set", "increment", "decrement"] = "set"
    n: Optional[int] = None


@app.get("/time/dial")
def get_time_dial(part: DialPart = "hour", value: str = "", active: DialPart = "hour"):
    return dial(part, value, active)


@app.post("/time/adjust")
def adjust_time(payload: TimeAdjustPayload):
    if payload.action == "increment":
        return {"value": increment(payload.value, payload.part), "mode": payload.part}
    if payload.action == "decrement":
        return {"value": decrement(payload.value, payload.part), "mode": payload.part}

    limit = 24 if payload.part == "hour" else 60
    if payload.n is None or not 0 <= payload.n < limit:
        return {"ok": False, "error": f"n must be 0..{limit - 1}"}
    # picking an hour hands over to the minute dial
    mode = "minute" if payload.part == "hour" else payload.part
    return {"value": set_part(payload.value, payload.part, payload.n), "mode": mode}
