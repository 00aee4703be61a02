"""Chat endpoint: forwards the conversation to the inference API and relays the stream."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials
from starlette.concurrency import run_in_threadpool

from notes_chat.api.deps import get_inference_client, get_notes_store
from notes_chat.chat.context import assemble_system_prompt
from notes_chat.chat.inference import InferenceClient
from notes_chat.chat.relay import StreamRelay
from notes_chat.config import get_config
from notes_chat.errors import Unauthorized
from notes_chat.models.chat import ChatRequest
from notes_chat.storage.notes_store import NotesStore
from notes_chat.utils.jwt_auth import bearer, resolve_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}


@router.post("/chat")
async def chat(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    store: NotesStore = Depends(get_notes_store),
    inference: InferenceClient = Depends(get_inference_client),
):
    """
    Stream an assistant reply for the posted conversation.

    **Request Body:**
    - `messages`: ordered list of `{role, content}` pairs
    - `systemContext`: `"notes-assistant"` grounds the reply in the caller's
      ten most recent notes; anything else uses a generic prompt

    **Response:** plain-text stream of the reply as it is generated.
    Errors: `401 {"error": "Unauthorized"}`, `500 {"error": "Internal error"}`.
    """
    try:
        user_id = resolve_user_id(creds)

        payload = ChatRequest.model_validate(await request.json())
        logger.info(
            f"Chat request from {user_id}: {len(payload.messages)} messages, "
            f"context={payload.system_context!r}"
        )

        system_prompt = await run_in_threadpool(
            assemble_system_prompt,
            store,
            user_id,
            payload.system_context,
            get_config().app_base_url,
        )
        outbound = [{"role": "system", "content": system_prompt}]
        outbound.extend(m.model_dump() for m in payload.messages)

        stream = await inference.open_stream(outbound)
    except Unauthorized:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})
    except Exception:
        logger.exception("Chat request failed")
        return JSONResponse(status_code=500, content={"error": "Internal error"})

    relay = StreamRelay(stream)
    return StreamingResponse(
        relay.iter_chunks(),
        media_type="text/plain; charset=utf-8",
        headers={"Access-Control-Allow-Origin": "*"},
    )


@router.options("/chat")
async def chat_preflight() -> Response:
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)
