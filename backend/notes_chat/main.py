import logging

from fastapi import FastAPI

from notes_chat.api import auth, chat, notes
from notes_chat.api.error_handlers import register_error_handlers
from notes_chat.config import get_config

logging.basicConfig(
    level=get_config().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Notes Chat API")
register_error_handlers(app)

app.include_router(auth.router)
app.include_router(notes.router)
app.include_router(chat.router)


@app.get("/health")
def health():
    return {"ok": True}
