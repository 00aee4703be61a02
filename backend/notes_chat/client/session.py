"""Client-side chat conversation state.

A :class:`ChatSession` owns the in-memory message list of one chat panel and
moves between ``idle``, ``submitting``, ``streaming`` and ``error``. The
network side is an injected :class:`~notes_chat.client.transport.ChatTransport`,
so tests can drive it with a fake. Nothing here is persisted.

Must be used from inside a running asyncio event loop.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from notes_chat.chat.context import NOTES_ASSISTANT_CONTEXT
from notes_chat.client.transport import ChatTransport
from notes_chat.errors import NetworkError, ProviderError

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "Hi! I'm your notes assistant. I can find and summarize any information "
    "that you've saved. How can I help you today?"
)
ERROR_MESSAGE = "Failed to send message. Please try again."
MAX_INPUT_LENGTH = 1000
ERROR_CLEAR_DELAY_SECONDS = 5.0


class ChatState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    STREAMING = "streaming"
    ERROR = "error"


@dataclass
class ChatMessage:
    id: str
    role: str
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def _welcome() -> ChatMessage:
    return ChatMessage(id="welcome", role="assistant", content=WELCOME_MESSAGE)


def _new_id() -> str:
    return uuid.uuid4().hex


class ChatSession:
    def __init__(
        self,
        transport: ChatTransport,
        *,
        system_context: Optional[str] = NOTES_ASSISTANT_CONTEXT,
        error_clear_delay: float = ERROR_CLEAR_DELAY_SECONDS,
    ):
        self.transport = transport
        self.system_context = system_context
        self.error_clear_delay = error_clear_delay

        self.messages: List[ChatMessage] = [_welcome()]
        self.state = ChatState.IDLE
        self.error: Optional[str] = None
        self.online = True
        self.draft = ""

        self._task: Optional[asyncio.Task] = None
        self._error_timer: Optional[asyncio.TimerHandle] = None

    # --- derived flags the UI binds to ---

    @property
    def busy(self) -> bool:
        return self.state in (ChatState.SUBMITTING, ChatState.STREAMING)

    @property
    def can_submit(self) -> bool:
        return self.online and not self.busy and bool(self.draft.strip())

    @property
    def can_clear(self) -> bool:
        return not self.busy and len(self.messages) > 1

    # --- actions ---

    def set_draft(self, text: str) -> None:
        self.draft = text[:MAX_INPUT_LENGTH]

    def set_online(self, online: bool) -> None:
        # the draft survives going offline
        self.online = online

    def submit(self, text: Optional[str] = None) -> bool:
        """Send the draft (or ``text``). Returns False when submission is not allowed."""
        if text is not None:
            self.set_draft(text)
        if not self.can_submit:
            return False

        self.messages.append(ChatMessage(id=_new_id(), role="user", content=self.draft))
        self.draft = ""
        self._start_turn()
        return True

    def retry(self) -> bool:
        """Resend the last request, dropping a trailing assistant reply."""
        if self.busy or not self.online:
            return False
        if not any(m.role == "user" for m in self.messages):
            return False
        if self.messages[-1].role == "assistant":
            self.messages.pop()
        self._start_turn()
        return True

    def stop(self) -> bool:
        """Abort the in-flight request; text received so far is kept."""
        if not self.busy:
            return False
        self.state = ChatState.IDLE
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def clear(self) -> bool:
        if not self.can_clear:
            return False
        self.messages = [_welcome()]
        self.dismiss_error()
        return True

    def dismiss_error(self) -> None:
        if self._error_timer is not None:
            self._error_timer.cancel()
            self._error_timer = None
        self.error = None
        if self.state is ChatState.ERROR:
            self.state = ChatState.IDLE

    async def wait(self) -> None:
        """Wait for the current turn to finish (or be stopped)."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    # --- internals ---

    def _start_turn(self) -> None:
        self.dismiss_error()
        self.state = ChatState.SUBMITTING
        payload = [m.to_payload() for m in self.messages]
        self._task = asyncio.get_running_loop().create_task(self._run_turn(payload))

    async def _run_turn(self, payload: List[Dict[str, str]]) -> None:
        assistant: Optional[ChatMessage] = None
        stream = self.transport.stream(payload, self.system_context)
        try:
            async for chunk in stream:
                if assistant is None:
                    assistant = ChatMessage(id=_new_id(), role="assistant", content="")
                    self.messages.append(assistant)
                    self.state = ChatState.STREAMING
                assistant.content += chunk
        except (NetworkError, ProviderError) as exc:
            logger.warning("Chat turn failed: %s", exc)
            self._fail()
            return
        except Exception:
            logger.exception("Chat turn failed unexpectedly")
            self._fail()
            return
        finally:
            # closes the connection when stopped mid-stream
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        self.state = ChatState.IDLE

    def _fail(self) -> None:
        self.state = ChatState.ERROR
        self.error = ERROR_MESSAGE
        self._error_timer = asyncio.get_running_loop().call_later(
            self.error_clear_delay, self.dismiss_error
        )
