from notes_chat.chat.inference import InferenceClient
from notes_chat.config import get_config
from notes_chat.storage.notes_store import NotesStore
from notes_chat.storage.users_store import UsersStore


def get_notes_store() -> NotesStore:
    return NotesStore(get_config().data_dir)


def get_users_store() -> UsersStore:
    return UsersStore(get_config().data_dir)


def get_inference_client() -> InferenceClient:
    return InferenceClient.from_config(get_config())
