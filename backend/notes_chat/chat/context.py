"""System prompt assembly for the chat endpoint.

Only the ``notes-assistant`` context ever reads the user's notes; every other
context gets the static generic prompt and no note data at all.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from notes_chat.storage.notes_store import ContextNote, NotesStore

NOTES_ASSISTANT_CONTEXT = "notes-assistant"

GENERIC_SYSTEM_PROMPT = "You are a helpful assistant."

NO_NOTES_SENTENCE = "The user has not created any notes yet."

NOTES_ASSISTANT_PROMPT = (
    "You are a helpful notes assistant. You help the user find and summarize "
    "information from the notes they have saved. Answer using the notes below "
    "when they are relevant.\n"
    "Whenever you reference a note, always cite it with a markdown link using "
    "its title and link, for example [Note title](link).\n\n"
    "The user's most recent notes:\n\n"
)


def format_date(epoch_ms: int) -> str:
    """Short en-US date, e.g. ``1/15/2025`` (UTC)."""
    d = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return f"{d.month}/{d.day}/{d.year}"


def note_link(base_url: str, note_id: str) -> str:
    return f"{base_url.rstrip('/')}/?noteId={note_id}"


def build_notes_context(notes: Sequence[ContextNote], base_url: str) -> str:
    if not notes:
        return NO_NOTES_SENTENCE

    blocks = []
    for index, note in enumerate(notes, start=1):
        blocks.append(
            f"Note {index}:\n"
            f"Title: {note.title}\n"
            f"Created: {format_date(note.created_at)}\n"
            f"Updated: {format_date(note.updated_at)}\n"
            f"Link: {note_link(base_url, note.id)}\n"
            f"Content: {note.body}..."
        )
    return "\n\n".join(blocks)


def build_system_prompt(
    system_context: Optional[str],
    notes: Sequence[ContextNote],
    base_url: str,
) -> str:
    if system_context != NOTES_ASSISTANT_CONTEXT:
        return GENERIC_SYSTEM_PROMPT
    return NOTES_ASSISTANT_PROMPT + build_notes_context(notes, base_url)


def assemble_system_prompt(
    store: NotesStore,
    owner_id: str,
    system_context: Optional[str],
    base_url: str,
) -> str:
    """Build the system prompt, reading notes only for the assistant context."""
    if system_context != NOTES_ASSISTANT_CONTEXT:
        return GENERIC_SYSTEM_PROMPT
    notes = store.get_recent_notes_for_context(owner_id)
    return build_system_prompt(system_context, notes, base_url)
