"""Entry point for running the API with uvicorn."""

import os

import uvicorn
from dotenv import load_dotenv


def run() -> None:
    load_dotenv()
    # PORT=8080 notes-chat
    uvicorn.run(
        "notes_chat.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    run()
