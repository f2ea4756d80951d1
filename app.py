import traceback
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import (
    Blueprint,
    Flask,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)
from jinja2 import StrictUndefined

from gendocs.ai import LineItemGenerator
from gendocs.config import Settings, load_settings
from gendocs.errors import GenDocsError, GenerationError, GenerationInProgress, ValidationError
from gendocs.logging import get_logger
from gendocs.models import format_money, line_total
from gendocs.shell import AppState
from gendocs.storage import FileKeyValueStore, KeyValueStore

log = get_logger("app")

TEMPLATE_DIR = Path(__file__).resolve().parent / "gendocs" / "templates"

bp = Blueprint("gendocs", __name__)


def _state() -> AppState:
    return current_app.extensions["gendocs"]


def _error_response(e: Exception):
    if isinstance(e, GenerationInProgress):
        return jsonify(ok=False, error=str(e)), 409
    if isinstance(e, ValidationError):
        return jsonify(ok=False, error=str(e)), 400
    if isinstance(e, GenerationError):
        return jsonify(ok=False, error="Sorry, there was an error generating the items. Please try again."), 502
    log.error("Unhandled error: %s\n%s", e, traceback.format_exc())
    return jsonify(ok=False, error=str(e)), 500


def _payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


# ----------------------------
# HTML views
# ----------------------------
def _render_active():
    state = _state()
    view = state.active_view
    if view == "customers":
        return render_template("customers.html", customers=state.customers.list())
    if view == "creator":
        state.creator.select_default_customer(state.customers.list())
        return render_template(
            "creator.html",
            customers=state.customers.list(),
            draft=state.creator,
        )
    return render_template("dashboard.html", board=state.dashboard())


@bp.get("/")
def index():
    return _render_active()


@bp.get("/<any(dashboard, customers, creator):view>")
def navigate(view: str):
    _state().navigate(view)
    return _render_active()


@bp.post("/customers")
def customers_submit():
    state = _state()
    try:
        customer = state.customers.add_customer(
            request.form.get("name", ""),
            request.form.get("email", ""),
            request.form.get("address", ""),
        )
        flash(f"Added {customer.name}.", "info")
    except ValidationError as e:
        flash(str(e), "error")
    return redirect(url_for("gendocs.navigate", view="customers"))


def _apply_draft_form(state: AppState) -> None:
    form = request.form
    creator = state.creator
    if "type" in form:
        creator.set_type(form["type"])
    if "customer_id" in form:
        creator.set_customer(form["customer_id"])
    if "ai_prompt" in form:
        creator.set_prompt(form["ai_prompt"])
    for it in list(creator.line_items):
        fields = ("description", "quantity", "unitPrice")
        updates = {f: form[f"item-{it.id}-{f}"] for f in fields if f"item-{it.id}-{f}" in form}
        if updates:
            creator.update_line_item_fields(it.id, updates)


@bp.post("/creator")
def creator_submit():
    state = _state()
    action = request.form.get("action", "update")
    try:
        _apply_draft_form(state)
        if action == "add_item":
            state.creator.add_line_item()
        elif action.startswith("remove:"):
            state.creator.remove_line_item(action.split(":", 1)[1])
        elif action == "generate":
            state.generate_line_items()
        elif action == "discard":
            state.creator.reset()
        elif action == "save":
            doc = state.save_document()
            flash(f"{doc.type.value} saved.", "info")
            return redirect(url_for("gendocs.index"))
    except GenerationInProgress as e:
        flash(str(e), "error")
    except GenerationError:
        flash("Sorry, there was an error generating the items. Please try again.", "error")
    except ValidationError as e:
        flash(str(e), "error")
    return redirect(url_for("gendocs.navigate", view="creator"))


# ----------------------------
# JSON API
# ----------------------------
@bp.get("/health")
def health():
    return jsonify({"ok": True})


@bp.get("/api/state")
def api_state():
    state = _state()
    return jsonify(
        ok=True,
        activeView=state.active_view,
        customers=[c.to_json() for c in state.customers.list()],
        documents=[d.to_json() for d in state.documents.value],
        draft=state.creator.to_json(),
    )


@bp.post("/api/view")
def api_view():
    view = _state().navigate(str(_payload().get("view") or ""))
    return jsonify(ok=True, activeView=view)


@bp.get("/api/customers")
def api_customers():
    return jsonify(ok=True, items=[c.to_json() for c in _state().customers.list()])


@bp.post("/api/customers")
def api_add_customer():
    payload = _payload()
    try:
        customer = _state().customers.add_customer(
            str(payload.get("name") or ""),
            str(payload.get("email") or ""),
            str(payload.get("address") or ""),
        )
        return jsonify(ok=True, customer=customer.to_json()), 201
    except Exception as e:
        return _error_response(e)


@bp.get("/api/documents")
def api_documents():
    return jsonify(ok=True, **_state().dashboard().to_json())


@bp.get("/api/draft")
def api_draft():
    state = _state()
    state.creator.select_default_customer(state.customers.list())
    return jsonify(ok=True, draft=state.creator.to_json())


@bp.post("/api/draft")
def api_update_draft():
    state = _state()
    payload = _payload()
    try:
        if "type" in payload:
            state.creator.set_type(payload["type"])
        if "customerId" in payload:
            state.creator.set_customer(str(payload["customerId"] or ""))
        if "prompt" in payload:
            state.creator.set_prompt(str(payload["prompt"] or ""))
        return jsonify(ok=True, draft=state.creator.to_json())
    except Exception as e:
        return _error_response(e)


@bp.post("/api/draft/items")
def api_add_item():
    item = _state().creator.add_line_item()
    return jsonify(ok=True, item=item.to_json()), 201


@bp.patch("/api/draft/items/<item_id>")
def api_update_item(item_id: str):
    creator = _state().creator
    item = next((it for it in creator.line_items if it.id == item_id), None)
    if item is None:
        return jsonify(ok=False, error="Line item not found."), 404
    try:
        item = creator.update_line_item_fields(item_id, _payload()) or item
        return jsonify(ok=True, item=item.to_json(), lineTotal=line_total(item))
    except Exception as e:
        return _error_response(e)


@bp.delete("/api/draft/items/<item_id>")
def api_remove_item(item_id: str):
    creator = _state().creator
    creator.remove_line_item(item_id)
    return jsonify(ok=True, draft=creator.to_json())


@bp.post("/api/draft/generate")
def api_generate():
    state = _state()
    try:
        applied = state.generate_line_items()
        return jsonify(ok=True, applied=applied, draft=state.creator.to_json())
    except Exception as e:
        return _error_response(e)


@bp.post("/api/draft/save")
def api_save():
    state = _state()
    try:
        doc = state.save_document()
        return jsonify(ok=True, document=doc.to_json(), activeView=state.active_view), 201
    except Exception as e:
        return _error_response(e)


@bp.post("/api/draft/discard")
def api_discard():
    creator = _state().creator
    creator.reset()
    return jsonify(ok=True, draft=creator.to_json())


# ----------------------------
# App factory
# ----------------------------
def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[KeyValueStore] = None,
    generator: Optional[LineItemGenerator] = None,
) -> Flask:
    """Build the Flask app; raises ConfigurationError when the API key is missing."""
    settings = settings or load_settings()
    store = store or FileKeyValueStore(settings.storage_dir)
    generator = generator or LineItemGenerator.from_settings(settings)

    app = Flask(__name__, template_folder=str(TEMPLATE_DIR))
    app.json.sort_keys = False
    app.secret_key = settings.secret_key
    app.jinja_env.undefined = StrictUndefined
    app.jinja_env.filters["money"] = format_money
    app.jinja_env.globals["line_total"] = line_total

    app.extensions["gendocs"] = AppState(store, generator)

    @app.context_processor
    def _inject_view():
        return {"active_view": app.extensions["gendocs"].active_view}

    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    # Run:  GEMINI_API_KEY=... python app.py
    load_dotenv()
    try:
        settings = load_settings()
    except GenDocsError as e:
        log.critical("Refusing to start: %s", e)
        raise SystemExit(1)
    create_app(settings).run(host=settings.host, port=settings.port, threaded=True)
