# main.py – picks API (Flask) + optional Telegram bot (python-telegram-bot webhook), Gunicorn with 1 worker

import os
import threading
import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify, request
from telegram import Update
from telegram.ext import Application, CommandHandler

import tip_engine
from sources import FootballApiError

# ---------- LOGGING ----------
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
log = logging.getLogger("picks-bot")

# ---------- ENV ----------
TOKEN = os.getenv("TELEGRAM_TOKEN", "")
PUBLIC_URL = os.getenv("PUBLIC_URL", "").rstrip("/")
SECRET_PATH = "/" + os.getenv("SECRET_PATH", "webhook").lstrip("/")
SECRET_TOKEN = os.getenv("TELEGRAM_SECRET", "")
PORT = int(os.getenv("PORT", "10000"))


# ---------- BOT COMMANDS ----------
async def on_start(update: Update, _):
    await update.message.reply_text(
        "⚽ Daily football picks\n"
        "/tip – today's most confident picks\n"
        "/stats – track record of past picks\n"
        "/status – is the bot up"
    )

async def on_status(update: Update, _):
    await update.message.reply_text(f"✅ Up. Picks per day: {tip_engine.PICKS_COUNT}")

async def on_tip(update: Update, _):
    try:
        # the selector does blocking HTTP, keep it off the bot loop
        text = await asyncio.to_thread(tip_engine.suggest_today)
    except FootballApiError as e:
        log.warning("/tip: fixture data unavailable (%s)", e)
        text = "Sorry, fixture data is unavailable right now. Try again later."
    await update.message.reply_text(text)

async def on_stats(update: Update, _):
    stats = await asyncio.to_thread(tip_engine.settle_history)
    await update.message.reply_text(tip_engine.format_stats(stats))

async def on_error(update, context):
    log.error("bot handler failed: %s", context.error, exc_info=context.error)


def build_bot(token: str) -> Optional[Application]:
    if not token:
        log.info("TELEGRAM_TOKEN not set – bot disabled, API only")
        return None
    bot_app = Application.builder().token(token).build()
    for name, handler in (("start", on_start), ("status", on_status), ("tip", on_tip), ("stats", on_stats)):
        bot_app.add_handler(CommandHandler(name, handler))
    bot_app.add_error_handler(on_error)
    return bot_app

application = build_bot(TOKEN)


# ---------- FLASK ----------
app = Flask(__name__)

@app.get("/healthz")
def healthz():
    return "OK", 200

@app.get("/api/picks")
def api_picks():
    count = request.args.get("count", default=tip_engine.PICKS_COUNT, type=int)
    if count < 0:
        return jsonify({"error": "count must be 0 or more"}), 400
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    try:
        predictions = tip_engine.publish_today(count=count)
    except FootballApiError as e:
        log.exception("GET /api/picks 500 – data source failed: %s", e)
        return jsonify({"error": "Failed to generate predictions", "details": str(e)}), 500
    body = {"date": today, "predictions": predictions, "source": "live"}
    if not predictions:
        body["message"] = "No fixture cleared the confidence threshold today."
    log.info("GET /api/picks 200 – %d picks", len(predictions))
    return jsonify(body), 200

@app.get("/api/stats")
def api_stats():
    stats = tip_engine.settle_history()
    return jsonify(asdict(stats)), 200

@app.post(SECRET_PATH)
def telegram_webhook():
    if application is None:
        return "telegram disabled", 404

    sent = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
    if SECRET_TOKEN and sent != SECRET_TOKEN:
        log.warning("webhook 403 – bad secret token")
        return "forbidden", 403

    payload = request.get_json(silent=True, force=True)
    if not payload:
        log.warning("webhook 400 – empty body")
        return "no json", 400

    try:
        update = Update.de_json(payload, application.bot)
    except Exception as e:
        log.exception("webhook 500 – undecodable update: %s", e)
        return "error", 500
    asyncio.run_coroutine_threadsafe(application.process_update(update), _loop)
    log.info("webhook – queued update %s", update.update_id)
    return "ok", 200


# ---------- BOT LOOP (background thread) ----------
_loop = asyncio.new_event_loop()
_bot_thread: Optional[threading.Thread] = None

async def _boot_bot():
    await application.initialize()
    if PUBLIC_URL:
        hook = PUBLIC_URL + SECRET_PATH
        await application.bot.set_webhook(
            url=hook,
            secret_token=SECRET_TOKEN or None,
            allowed_updates=["message"],
            drop_pending_updates=True,
        )
        log.info("webhook registered at %s", hook)
    await application.start()
    log.info("bot started")

def _serve_bot():
    asyncio.set_event_loop(_loop)
    _loop.run_until_complete(_boot_bot())
    _loop.run_forever()

def start_bot():
    global _bot_thread
    if application is None or _bot_thread is not None:
        return
    _bot_thread = threading.Thread(target=_serve_bot, name="bot-loop", daemon=True)
    _bot_thread.start()

start_bot()

# gunicorn -w 1 -k gthread -b 0.0.0.0:$PORT main:app
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT)
