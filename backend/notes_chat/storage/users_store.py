from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from notes_chat.storage.notes_store import _atomic_write_json, _safe_user_dir

logger = logging.getLogger(__name__)


class UserExistsError(Exception):
    pass


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    hashed_password: str
    created_at: str


class UsersStore:
    """Credentials for the built-in token issuer, one ``user.json`` per user."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _user_path(self, user_id: str) -> Path:
        # sibling of the user's notes directory
        return _safe_user_dir(self.base_dir, user_id).parent / "user.json"

    def get(self, user_id: str) -> Optional[UserRecord]:
        p = self._user_path(user_id)
        if not p.exists():
            return None
        raw = json.loads(p.read_text(encoding="utf-8"))
        return UserRecord(
            user_id=raw["user_id"],
            hashed_password=raw["hashed_password"],
            created_at=raw["created_at"],
        )

    def create(self, user_id: str, hashed_password: str) -> UserRecord:
        p = self._user_path(user_id)
        if p.exists():
            raise UserExistsError(user_id)

        rec = UserRecord(
            user_id=user_id,
            hashed_password=hashed_password,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        _atomic_write_json(p, asdict(rec))
        logger.info("Registered user %s", user_id)
        return rec
