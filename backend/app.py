import logging
import os
from datetime import datetime, timezone

from flask import Blueprint, Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv

import llm_service
from exceptions import JournalInputError
from journal_service import analyze_journal_entry
from llm_service import utf8_safe
from models import db, JournalEntry
from sentiment_service import analyze, mood_band, mood_label, needs_crisis_support

# Load .env locally; on a host, env vars are injected automatically.
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///mindnest.db"
DEFAULT_LOG_LEVEL = "INFO"

logger = logging.getLogger(__name__)

bp = Blueprint("journal", __name__)


def _entry_text() -> str:
    """
    'text' field of the JSON body, as submitted.

    Lone surrogates (valid in JSON escapes, not in UTF-8) are replaced so
    the entry can be stored.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    text = data.get("text")
    if not isinstance(text, str) or not text.strip():
        raise JournalInputError("Missing 'text'")
    return utf8_safe(text)


@bp.errorhandler(JournalInputError)
def _bad_input(e):
    logger.info("Rejected journal payload: %s", e)
    return jsonify({"error": str(e)}), 400


def _not_found():
    return jsonify({"error": "Not found"}), 404


# ---------- Routes ----------

@bp.route("/health")
def health():
    """Simple health check + DB connectivity test."""
    db_ok = True
    try:
        with db.engine.connect() as conn:
            conn.execute(db.text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        db_ok = False
    return jsonify({
        "ok": True,
        "db_ok": db_ok,
        "llm_configured": llm_service.is_configured(),
        "time": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }), 200


@bp.route("/journal", methods=["POST"])
def handle_journal():
    """Analyze one journal entry (Gemini, else heuristic) and save it."""
    text = _entry_text()

    result, source = analyze_journal_entry(text)

    j = JournalEntry(
        text=text,
        reflection=result.reflection,
        mood_score=result.mood_score,
        source=source,
    )
    db.session.add(j)
    db.session.commit()
    logger.info("Saved journal entry id=%s source=%s mood=%.2f", j.id, source, result.mood_score)

    return jsonify({
        "id": j.id,
        "reflection": result.reflection,
        "moodScore": result.mood_score,
        "source": source,
        "crisis": needs_crisis_support(result.mood_score),
    }), 201


@bp.route("/analyze", methods=["POST"])
def preview_analysis():
    """Heuristic-only analysis; nothing is stored."""
    result = analyze(_entry_text())
    payload = result.to_dict()
    payload["band"] = mood_band(result.mood_score)
    return jsonify(payload), 200


@bp.route("/entries", methods=["GET"])
def list_entries():
    """List all saved entries (latest first)."""
    items = (
        JournalEntry.query
        .order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
        .all()
    )
    return jsonify([it.to_dict() for it in items]), 200


@bp.route("/entries/<int:entry_id>", methods=["GET"])
def get_entry(entry_id: int):
    it = db.session.get(JournalEntry, entry_id)
    if not it:
        return _not_found()
    return jsonify(it.to_dict()), 200


@bp.route("/entries/<int:entry_id>", methods=["DELETE"])
def delete_entry(entry_id: int):
    """Delete a single entry by id."""
    it = db.session.get(JournalEntry, entry_id)
    if not it:
        return _not_found()
    db.session.delete(it)
    db.session.commit()
    return jsonify({"ok": True, "deleted": entry_id}), 200


def _mood_series():
    items = (
        JournalEntry.query
        .order_by(JournalEntry.created_at.asc(), JournalEntry.id.asc())
        .all()
    )
    return [
        {
            "date": it.created_at.strftime("%Y-%m-%d"),
            "moodScore": float(it.mood_score),
            "createdAt": it.created_at_ms(),
        }
        for it in items
    ]


@bp.route("/mood-data", methods=["GET"])
def mood_data():
    """Mood score per entry, oldest first."""
    return jsonify(_mood_series()), 200


@bp.route("/dashboard", methods=["GET"])
def dashboard():
    """Entry count, average mood and per-day averages."""
    series = _mood_series()

    days = {}
    for point in series:
        day = days.setdefault(point["date"], [])
        day.append(point["moodScore"])
    daily = [
        {"date": date, "mood": sum(scores) / len(scores), "entries": len(scores)}
        for date, scores in days.items()
    ]

    average = sum(p["moodScore"] for p in series) / len(series) if series else 0
    return jsonify({
        "totalEntries": len(series),
        "averageMood": average,
        "moodLabel": mood_label(average),
        "daily": daily,
    }), 200


def create_app(config=None) -> Flask:
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    app = Flask(__name__)

    # --- Database config (DATABASE_URL in prod, local SQLite otherwise) ---
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["LOG_LEVEL"] = log_level
    if config:
        app.config.update(config)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    # --- CORS (allow the deployed frontend origin if provided) ---
    frontend_origin = os.getenv("FRONTEND_ORIGIN")
    if frontend_origin:
        CORS(app, resources={r"/*": {"origins": [frontend_origin]}})
    else:
        # Dev fallback: allow all
        CORS(app)

    app.register_blueprint(bp)

    logger.info("App initialised (log_level=%s, llm_configured=%s)", log_level, llm_service.is_configured())
    return app


if __name__ == "__main__":
    create_app().run(
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        debug=True
    )
