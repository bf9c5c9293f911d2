"""
FastAPI application, the finbox entry point.

Serves the inbox state, the copilot operations and a health check:
  - /api/health                 liveness + memory/disk checks
  - /api/v1/conversations       inbox list and threads
  - /api/v1/inbox/*             agent actions on the active conversation
  - /api/v1/ai/*                one-shot AI operations (GatewayResult JSON)
  - /api/v1/copilot/*           chained suggestion / follow-up flows
  - /api/v1/settings, /export   local persistence

AI endpoints always answer 200 with {"success": ..., "data"|"error": ...};
the error text is meant to be shown to the agent as-is.
"""

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import fields
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finbox import __version__, sample_data
from finbox.config import get_config
from finbox.copilot import Copilot, Suggestion
from finbox.gateway.base import GenerationConfig
from finbox.gateway.gateway import AIGateway
from finbox.health import build_health_report, unhealthy_report
from finbox.inbox import InboxSession
from finbox.storage.json_store import DEFAULT_SETTINGS, JsonStore, export_filename


# ---------------------------------------------------------------------------
# Globals, initialized at startup
# ---------------------------------------------------------------------------
gateway: AIGateway | None = None
copilot: Copilot | None = None
store: JsonStore | None = None
session: InboxSession | None = None
started_at: float = time.monotonic()

logger = logging.getLogger(__name__)


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global gateway, copilot, store, session, started_at

    cfg = get_config()
    _setup_logging(cfg)
    started_at = time.monotonic()

    gateway = AIGateway.from_config(cfg)
    copilot = Copilot(gateway)
    store = JsonStore(cfg["storage"]["path"])
    session = InboxSession(copilot, store=store)
    if store.load_conversations() is None:
        session.persist()

    logger.info(
        "finbox started, listening on %s:%s, provider %s (%s)",
        cfg["server"]["host"],
        cfg["server"]["port"],
        gateway.provider.name,
        gateway.provider.model,
    )
    logger.info("Storage: %s", store.path)
    logger.info(
        "Retry policy: %d attempts, %.1fs backoff, %.1fs warm-up",
        gateway.policy.max_attempts, gateway.policy.base_delay, gateway.policy.warmup_delay,
    )
    if gateway.provider.credential_error():
        logger.warning("Gateway: %s", gateway.provider.credential_error())

    yield

    session.persist()
    logger.info("finbox shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="finbox",
    description="Support inbox with an AI copilot.",
    version=__version__,
    lifespan=lifespan,
)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


async def _json_body(request: Request) -> dict | None:
    """Parsed JSON object body, {} when empty, None when malformed."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _is_transcript(value) -> bool:
    """A list of {sender, content} dicts."""
    return isinstance(value, list) and all(
        isinstance(m, dict) and "sender" in m and "content" in m for m in value
    )


def _messages_from(body: dict) -> list[dict] | None:
    """`messages` from the body, defaulting to the active conversation."""
    messages = body.get("messages")
    if messages is None:
        return session.active.context()
    return messages if _is_transcript(messages) else None


def _text_field(body: dict, key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health():
    """Health check. 503 when the report itself cannot be built."""
    try:
        cfg = get_config()
        report = build_health_report(
            started_at,
            environment=cfg.get("app", {}).get("environment", "development"),
            version=str(cfg.get("app", {}).get("version", "1.0.0")),
            api_ok=gateway is not None and not gateway.provider.credential_error(),
            data_dir=Path(cfg["storage"]["path"]).parent,
        )
    except Exception as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(unhealthy_report(e), status_code=503)
    return JSONResponse(report, status_code=200)


@app.get("/api/v1/info")
async def api_info():
    """What this instance talks to. API keys are never echoed."""
    cfg = get_config()
    return JSONResponse({
        "name": "finbox",
        "version": str(cfg.get("app", {}).get("version", "1.0.0")),
        "gateway": {
            "provider": gateway.provider.name if gateway else None,
            "model": gateway.provider.model if gateway else None,
            "authenticated": gateway.provider.has_api_key if gateway else False,
            "context_window": gateway.context_window if gateway else None,
        },
        "generation": cfg.get("generation", {}),
        "retry": cfg.get("retry", {}),
    })


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------

@app.get("/api/v1/conversations")
async def list_conversations():
    return JSONResponse({
        "conversations": [c.to_dict() for c in session.conversations],
        "count": len(session.conversations),
    })


@app.get("/api/v1/conversations/{conv_id}")
async def get_conversation(conv_id: int):
    if session.active.id == conv_id:
        return JSONResponse(session.active.to_dict())
    try:
        return JSONResponse(session.get_conversation(conv_id).to_dict())
    except KeyError:
        return JSONResponse({"error": f"Conversation {conv_id} not found"}, status_code=404)


# ---------------------------------------------------------------------------
# Inbox actions
# ---------------------------------------------------------------------------

@app.get("/api/v1/inbox")
async def inbox_state():
    return JSONResponse(session.snapshot())


@app.post("/api/v1/inbox/select")
async def inbox_select(request: Request):
    body = await _json_body(request)
    if body is None or not isinstance(body.get("conversation_id"), int):
        return _bad_request("conversation_id (int) is required")
    try:
        session.select_conversation(body["conversation_id"])
    except KeyError:
        return JSONResponse(
            {"error": f"Conversation {body['conversation_id']} not found"}, status_code=404,
        )
    return JSONResponse(session.snapshot())


@app.post("/api/v1/inbox/composer")
async def inbox_composer(request: Request):
    body = await _json_body(request)
    text = _text_field(body or {}, "text")
    if text is None:
        return _bad_request("text (string) is required")
    session.add_to_composer(text)
    return JSONResponse(session.snapshot())


@app.post("/api/v1/inbox/rephrase")
async def inbox_rephrase(request: Request):
    body = await _json_body(request)
    tone = _text_field(body or {}, "tone")
    if not tone:
        return _bad_request("tone (string) is required")
    result = await session.rephrase_composer(tone)
    return JSONResponse({
        "result": result.to_dict() if result else None,
        "inbox": session.snapshot(),
    })


@app.post("/api/v1/inbox/summarize")
async def inbox_summarize():
    result = await session.summarize()
    return JSONResponse({"result": result.to_dict(), "inbox": session.snapshot()})


@app.post("/api/v1/inbox/send")
async def inbox_send(request: Request):
    body = await _json_body(request)
    text = _text_field(body or {}, "text")
    if not text or not text.strip():
        return _bad_request("text (non-empty string) is required")
    result = await session.send_message(text)
    return JSONResponse({"result": result.to_dict(), "inbox": session.snapshot()})


@app.post("/api/v1/inbox/reply-with-ai")
async def inbox_reply_with_ai():
    result = await session.reply_with_ai()
    return JSONResponse({"result": result.to_dict(), "inbox": session.snapshot()})


@app.post("/api/v1/inbox/video-call")
async def inbox_video_call():
    session.suggest_video_call()
    return JSONResponse(session.snapshot())


@app.post("/api/v1/inbox/dismiss-error")
async def inbox_dismiss_error():
    session.dismiss_error()
    return JSONResponse(session.snapshot())


# ---------------------------------------------------------------------------
# One-shot AI operations
# ---------------------------------------------------------------------------

@app.post("/api/v1/ai/generate")
async def ai_generate(request: Request):
    body = await _json_body(request)
    if body is None:
        return _bad_request("Request body must be a JSON object")
    prompt = _text_field(body, "prompt")
    if prompt is None:
        return _bad_request("prompt (string) is required")
    context = body.get("context") or []
    options = body.get("options") or {}
    if not _is_transcript(context):
        return _bad_request("context must be a list of {sender, content}")
    if not isinstance(options, dict):
        return _bad_request("options must be an object")
    unknown = set(options) - {f.name for f in fields(GenerationConfig)}
    if unknown:
        return _bad_request(f"Unknown generation option(s): {', '.join(sorted(unknown))}")
    result = await gateway.invoke(prompt, context, **options)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/summarize")
async def ai_summarize(request: Request):
    body = await _json_body(request)
    messages = _messages_from(body) if body is not None else None
    if messages is None:
        return _bad_request("messages must be a list of {sender, content}")
    result = await copilot.summarize(messages)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/rephrase")
async def ai_rephrase(request: Request):
    body = await _json_body(request)
    text = _text_field(body or {}, "text")
    tone = _text_field(body or {}, "tone")
    if text is None or tone is None:
        return _bad_request("text and tone (strings) are required")
    result = await copilot.rephrase(text, tone)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/advise")
async def ai_advise(request: Request):
    body = await _json_body(request)
    response = _text_field(body or {}, "response")
    if response is None:
        return _bad_request("response (string) is required")
    result = await copilot.advise(response)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/internal-content")
async def ai_internal_content(request: Request):
    body = await _json_body(request)
    text = _text_field(body or {}, "text")
    if text is None:
        return _bad_request("text (string) is required")
    result = await copilot.detect_internal_content(text)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/sentiment")
async def ai_sentiment(request: Request):
    body = await _json_body(request)
    messages = _messages_from(body) if body is not None else None
    if messages is None:
        return _bad_request("messages must be a list of {sender, content}")
    result = await copilot.sentiment(messages)
    return JSONResponse(result.to_dict())


@app.post("/api/v1/ai/tags")
async def ai_tags(request: Request):
    body = await _json_body(request)
    messages = _messages_from(body) if body is not None else None
    if messages is None:
        return _bad_request("messages must be a list of {sender, content}")
    result = await copilot.suggest_tags(messages)
    return JSONResponse(result.to_dict())


# ---------------------------------------------------------------------------
# Copilot flows
# ---------------------------------------------------------------------------

@app.get("/api/v1/copilot/suggestion")
async def copilot_suggestion():
    """Suggested reply for the active conversation, with advice and internal check."""
    outcome = await copilot.suggest(session.active, sample_data.knowledge_base())
    if isinstance(outcome, Suggestion):
        return JSONResponse({"success": True, "data": outcome.to_dict()})
    return JSONResponse(outcome.to_dict())


@app.post("/api/v1/copilot/follow-up")
async def copilot_follow_up(request: Request):
    body = await _json_body(request)
    question = _text_field(body or {}, "question")
    if question is None:
        return _bad_request("question (string) is required")
    result = await copilot.follow_up(question, session.active)
    return JSONResponse(result.to_dict())


# ---------------------------------------------------------------------------
# Settings & export
# ---------------------------------------------------------------------------

@app.get("/api/v1/settings")
async def get_settings():
    return JSONResponse(store.load_settings())


@app.post("/api/v1/settings")
async def update_settings(request: Request):
    body = await _json_body(request)
    if body is None:
        return _bad_request("Request body must be a JSON object")
    unknown = set(body) - set(DEFAULT_SETTINGS)
    if unknown:
        return _bad_request(f"Unknown setting(s): {', '.join(sorted(unknown))}")
    settings = {**store.load_settings(), **body}
    if not store.save_settings(settings):
        return JSONResponse({"error": "Could not save settings"}, status_code=500)
    return JSONResponse(settings)


@app.get("/api/v1/export")
async def export():
    """Download every conversation as conversations_<date>.json."""
    data = [c.to_dict() for c in session.conversations]
    return JSONResponse(
        data,
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
