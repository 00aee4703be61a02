import json
import logging
import os
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from notes_chat.errors import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CONTEXT_NOTES_LIMIT = 10
CONTEXT_BODY_CHARS = 300


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _safe_user_dir(base_dir: Path, user_id: str) -> Path:
    # owner ids become directory names; keep them strict to avoid path issues
    if not user_id or any(ch in user_id for ch in "/\\") or ".." in user_id:
        raise ValueError("Invalid user_id")
    return base_dir / "users" / user_id / "notes"


def _note_path(base_dir: Path, user_id: str, note_id: str) -> Path:
    return _safe_user_dir(base_dir, user_id) / f"{note_id}.json"


def _normalize_note_id(note_id: Any) -> str:
    try:
        return str(uuid.UUID(str(note_id)))
    except ValueError:
        raise NotFoundError("Note not found")


def _atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)


@dataclass(frozen=True)
class Note:
    id: str
    owner_id: str
    title: str
    body: str
    created_at: int
    updated_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "body": self.body,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class ContextNote:
    """A note trimmed down for prompt injection."""

    id: str
    title: str
    body: str
    created_at: int
    updated_at: int


class Access(Enum):
    GRANTED = "granted"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def require_ownership(record: Optional[Note], caller_id: str) -> Access:
    if record is None:
        return Access.NOT_FOUND
    if not caller_id or record.owner_id != caller_id:
        return Access.FORBIDDEN
    return Access.GRANTED


def _validated_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title cannot be empty")
    return cleaned


class NotesStore:
    """Owner-scoped notes kept as one JSON document per note.

    Layout: ``<base_dir>/users/<owner_id>/notes/<note_id>.json``. The owner
    directory doubles as the by-owner index; lookups by id alone search every
    owner directory so that a foreign note is reported as forbidden rather
    than missing.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def list_notes_for_owner(self, owner_id: str) -> list[Note]:
        if not owner_id:
            return []
        try:
            notes_dir = _safe_user_dir(self.base_dir, owner_id)
        except ValueError:
            return []
        if not notes_dir.exists():
            return []
        out: list[Note] = []
        for p in notes_dir.glob("*.json"):
            note = self._load(p)
            if note is not None:
                out.append(note)
        out.sort(key=lambda n: (n.created_at, n.updated_at, n.id), reverse=True)
        return out

    def get_note(self, owner_id: str, note_id: str) -> Note:
        return self._owned(owner_id, note_id)

    def create_note(self, owner_id: str, title: str, body: str) -> Note:
        clean_title = _validated_title(title)
        now = _now_ms()
        note = Note(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=clean_title,
            body=body,
            created_at=now,
            updated_at=now,
        )
        _atomic_write_json(_note_path(self.base_dir, owner_id, note.id), note.to_dict())
        logger.info("Note %s created by %s", note.id, owner_id)
        return note

    def update_note(self, owner_id: str, note_id: str, title: str, body: str) -> Note:
        existing = self._owned(owner_id, note_id)
        clean_title = _validated_title(title)

        # updated_at must move forward even when the clock has not
        updated = Note(
            id=existing.id,
            owner_id=existing.owner_id,
            title=clean_title,
            body=body,
            created_at=existing.created_at,
            updated_at=max(_now_ms(), existing.updated_at + 1),
        )
        _atomic_write_json(_note_path(self.base_dir, owner_id, existing.id), updated.to_dict())
        logger.info("Note %s updated by %s", existing.id, owner_id)
        return updated

    def delete_note(self, owner_id: str, note_id: str) -> None:
        existing = self._owned(owner_id, note_id)
        try:
            _note_path(self.base_dir, owner_id, existing.id).unlink()
        except FileNotFoundError:
            # removed by a concurrent delete after the ownership check
            raise NotFoundError("Note not found") from None
        logger.info("Note %s deleted by %s", existing.id, owner_id)

    def get_recent_notes_for_context(
        self, owner_id: str, limit: int = CONTEXT_NOTES_LIMIT
    ) -> list[ContextNote]:
        limit = max(0, min(limit, CONTEXT_NOTES_LIMIT))
        recent = self.list_notes_for_owner(owner_id)[:limit]
        return [
            ContextNote(
                id=n.id,
                title=n.title,
                body=n.body[:CONTEXT_BODY_CHARS],
                created_at=n.created_at,
                updated_at=n.updated_at,
            )
            for n in recent
        ]

    # --- internals ---

    def _owned(self, owner_id: str, note_id: str) -> Note:
        nid = _normalize_note_id(note_id)
        record = self._find(nid)
        access = require_ownership(record, owner_id)
        if access is Access.NOT_FOUND:
            raise NotFoundError("Note not found")
        if access is Access.FORBIDDEN:
            logger.warning("User %s denied access to note %s", owner_id, nid)
            raise AuthorizationError("Not authorized to access this note")
        return record

    def _find(self, note_id: str) -> Optional[Note]:
        users_dir = self.base_dir / "users"
        if not users_dir.exists():
            return None
        for p in users_dir.glob(f"*/notes/{note_id}.json"):
            return self._load(p)
        return None

    def _load(self, path: Path) -> Optional[Note]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            created_at = raw.get("created_at")
            if created_at is None:
                created_at = int(path.stat().st_mtime * 1000)
                logger.warning("Note file %s has no created_at; using file mtime", path)
            return Note(
                id=raw["id"],
                owner_id=raw["owner_id"],
                title=raw["title"],
                body=raw.get("body", ""),
                created_at=int(created_at),
                updated_at=int(raw.get("updated_at") or created_at),
            )
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Skipping unreadable note file %s", path)
            return None
