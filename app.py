"""
Job Application Assistant – Flask web application.

Routes:
  /api/health                            GET  – liveness + Ollama reachability
  /api/ollama/models                     GET  – installed Ollama models (cached)
  /api/applications/matching             POST – CV ↔ application matching score
  /api/applications/matching/bulk        POST – matching for many applications
  /api/applications/suggestions          POST – next-action suggestions
  /api/applications/follow-up-email      POST – follow-up email draft
  /api/documents/analyze                 POST – CV analysis
  /api/documents/generate                POST – CV / cover-letter generation
  /api/offers/parse                      POST – structured data from a pasted offer

Every AI route answers 200 with {"data", "status", "fallback"} – a model that
is down or replies with garbage yields the feature's fallback, never an error.
Missing or malformed input records give a 400.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from flask import Blueprint, Flask, current_app, request, jsonify, g

import config
from job_assist import assistants
from job_assist.cache import TTLCache
from job_assist.completion import OllamaClient, ServiceUnavailableError
from job_assist.models import Activity, Application, Company, Document
from job_assist.pipeline import PreconditionError

# ── Logging ────────────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Silence werkzeug's per-request spam
logging.getLogger("werkzeug").setLevel(logging.WARNING)

# Also write WARNING and ERROR to error_log file
try:
    file_handler = logging.FileHandler(config.ERROR_LOG_FILE, encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(file_handler)
except OSError as e:
    logger.warning("Could not create error log file %s: %s", config.ERROR_LOG_FILE, e)

_MODELS_CACHE_KEY = "ollama_models"

# Endpoints to never log (polled by the UI)
_SILENT_PREFIXES = ("/api/health", "/api/ollama/models")

api = Blueprint("api", __name__, url_prefix="/api")


def create_app(client=None, models_cache: Optional[TTLCache] = None) -> Flask:
    """
    Build the Flask app. `client` is the completion service (an OllamaClient
    by default); `models_cache` holds the installed-model list.
    """
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.extensions["completion_client"] = client or OllamaClient()
    app.extensions["models_cache"] = models_cache or TTLCache(config.MODELS_CACHE_TTL)
    app.register_blueprint(api)
    app.register_error_handler(PreconditionError, _handle_precondition)
    app.before_request(_before_request)
    app.after_request(_after_request)
    return app


# ── Request logging ────────────────────────────────────────────

def _before_request():
    g.req_start = time.time()


def _after_request(response):
    path = request.path
    if any(path.startswith(p) for p in _SILENT_PREFIXES) and request.method == "GET":
        return response
    elapsed = round((time.time() - getattr(g, "req_start", time.time())) * 1000)
    status = response.status_code
    method = request.method
    if status >= 400:
        logger.warning("%s %s → %d (%dms)", method, path, status, elapsed)
    else:
        logger.info("%s %s → %d (%dms)", method, path, status, elapsed)
    return response


# ── Error handlers ─────────────────────────────────────────────

def _handle_precondition(exc):
    """Missing or unusable input records – nothing was sent to the model."""
    logger.warning("Precondition failed: %s", exc)
    return jsonify({"error": str(exc)}), 400


class _BadRequest(ValueError):
    pass


@api.errorhandler(_BadRequest)
def _handle_bad_request(exc):
    return jsonify({"error": str(exc)}), 400


# ╭──────────────────────────────────────────────────────────────╮
# │  Service routes                                              │
# ╰──────────────────────────────────────────────────────────────╯

@api.route("/health")
def api_health():
    client = current_app.extensions["completion_client"]
    return jsonify({"status": "ok", "ollama": client.is_available()})


@api.route("/ollama/models")
def api_ollama_models():
    """List installed Ollama models; a successful lookup is cached."""
    cache: TTLCache = current_app.extensions["models_cache"]
    models = cache.get(_MODELS_CACHE_KEY)
    if models is not None:
        return jsonify({"available": True, "models": models, "default": config.OLLAMA_MODEL})

    client = current_app.extensions["completion_client"]
    try:
        models = client.list_models()
    except ServiceUnavailableError as exc:
        logger.warning("Ollama model fetch failed: %s", exc)
        return jsonify({"available": False, "models": [], "default": config.OLLAMA_MODEL})

    cache.set(_MODELS_CACHE_KEY, models)
    return jsonify({"available": True, "models": models, "default": config.OLLAMA_MODEL})


# ╭──────────────────────────────────────────────────────────────╮
# │  AI routes                                                   │
# ╰──────────────────────────────────────────────────────────────╯

@api.route("/applications/matching", methods=["POST"])
def api_matching():
    """Body: {"application": {...}, "cv": {...}, "model"?: str}"""
    data = _body()
    result = assistants.score_matching(
        _application(data.get("application")),
        _document(data.get("cv")),
        client=_client(), model=_model(data),
    )
    return jsonify(result.to_dict())


@api.route("/applications/matching/bulk", methods=["POST"])
def api_matching_bulk():
    """
    Body: {"applications": [{...}, ...], "cv": {...}, "model"?: str}
    Each application gets its own pipeline; they run side by side.
    """
    data = _body()
    raw_apps = data.get("applications")
    if not isinstance(raw_apps, list) or not raw_apps:
        raise _BadRequest("applications must be a non-empty list")
    if not all(isinstance(item, dict) for item in raw_apps):
        raise _BadRequest("every application must be an object")
    applications = [_application(item) for item in raw_apps]
    cv = _document(data.get("cv"))
    if cv is None:
        raise PreconditionError("No CV found. Add a CV to compute a matching score.")

    client, model = _client(), _model(data)
    results: list[Optional[dict]] = [None] * len(applications)
    workers = max(1, min(config.AI_BULK_WORKERS, len(applications)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(assistants.score_matching, app_, cv, client=client, model=model): idx
            for idx, app_ in enumerate(applications)
        }
        for future in as_completed(futures):
            idx = futures[future]
            entry = future.result().to_dict()
            entry["id"] = applications[idx].application_id
            results[idx] = entry

    fallbacks = sum(1 for r in results if r["fallback"])
    logger.info("Bulk matching – %d applications, %d fallbacks", len(results), fallbacks)
    return jsonify({"results": results, "total": len(results)})


@api.route("/applications/suggestions", methods=["POST"])
def api_suggestions():
    """Body: {"application": {...}, "company"?: {...}, "activities"?: [...], "model"?: str}"""
    data = _body()
    result = assistants.suggest_next_steps(
        _application(data.get("application")),
        _activities(data.get("activities")),
        client=_client(), model=_model(data),
        company=_company(data.get("company")),
    )
    return jsonify(result.to_dict())


@api.route("/applications/follow-up-email", methods=["POST"])
def api_follow_up_email():
    """Body: {"application": {...}, "company"?: {...}, "model"?: str}"""
    data = _body()
    result = assistants.draft_follow_up_email(
        _application(data.get("application")),
        client=_client(), model=_model(data),
        company=_company(data.get("company")),
    )
    return jsonify(result.to_dict())


@api.route("/documents/analyze", methods=["POST"])
def api_analyze_document():
    """Body: {"document": {...}, "model"?: str}"""
    data = _body()
    result = assistants.analyze_cv(
        _document(data.get("document")),
        client=_client(), model=_model(data),
    )
    return jsonify(result.to_dict())


@api.route("/documents/generate", methods=["POST"])
def api_generate_document():
    """Body: {"type": "cv"|"cover_letter", "title"?, "context"?, "user_profile"?, "model"?}"""
    data = _body()
    doc_type = (data.get("type") or "").strip()
    context = _text(data.get("context"), "context")
    result = assistants.generate_document(
        doc_type,
        client=_client(), model=_model(data),
        context=context,
        user_profile=_text(data.get("user_profile"), "user_profile"),
    )
    payload = result.to_dict()
    title = _text(data.get("title"), "title").strip()
    payload["data"] = {
        "type": doc_type,
        "title": title or assistants.default_document_title(doc_type, context),
        "content": result.value["content"],
    }
    return jsonify(payload)


@api.route("/offers/parse", methods=["POST"])
def api_parse_offer():
    """Body: {"text": str, "model"?: str}"""
    data = _body()
    result = assistants.parse_offer(
        _text(data.get("text"), "text"),
        client=_client(), model=_model(data),
    )
    return jsonify(result.to_dict())


# ── helpers ────────────────────────────────────────────────────

def _client():
    return current_app.extensions["completion_client"]


def _body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise _BadRequest("Request body must be a JSON object")
    return data


def _model(data: dict) -> str:
    return _text(data.get("model"), "model").strip() or config.OLLAMA_MODEL


def _text(value, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _BadRequest(f"{name} must be a string")
    return value


def _object(value, name: str) -> Optional[dict]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise _BadRequest(f"{name} must be an object")
    return value


def _application(value) -> Optional[Application]:
    value = _object(value, "application")
    if value is None:
        return None
    try:
        return Application.from_dict(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise _BadRequest(f"Invalid application: {exc}") from exc


def _company(value) -> Optional[Company]:
    value = _object(value, "company")
    try:
        return Company.from_dict(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise _BadRequest(f"Invalid company: {exc}") from exc


def _document(value) -> Optional[Document]:
    value = _object(value, "document")
    if value is None:
        return None
    try:
        return Document.from_dict(value)
    except (ValueError, TypeError, AttributeError) as exc:
        raise _BadRequest(f"Invalid document: {exc}") from exc


def _activities(value) -> list[Activity]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _BadRequest("activities must be a list")
    try:
        return [Activity.from_dict(_object(item, "activity")) for item in value]
    except (ValueError, TypeError, AttributeError) as exc:
        raise _BadRequest(f"Invalid activity: {exc}") from exc


app = create_app()


# ── Startup ────────────────────────────────────────────────────

def _print_startup_banner():
    """Log useful info on startup."""
    client = app.extensions["completion_client"]
    ollama_ok = client.is_available()
    banner = [
        f"  Ollama:     {config.OLLAMA_BASE_URL} ({'reachable' if ollama_ok else 'UNREACHABLE – AI features will use fallbacks'})",
        f"  Model:      {config.OLLAMA_MODEL}",
        "",
        "  Server:     http://localhost:5000",
        "",
    ]
    for line in banner:
        logger.info(line)


if __name__ == "__main__":
    import os
    # Only print banner in the reloader child process (avoids printing twice)
    if os.environ.get("WERKZEUG_RUN_MAIN") == "true" or not app.debug:
        _print_startup_banner()
    app.run(debug=True, host="0.0.0.0", port=5000)
