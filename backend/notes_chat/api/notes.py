from uuid import UUID

from fastapi import APIRouter, Depends, Response

from notes_chat.api.deps import get_notes_store
from notes_chat.models.notes import NoteOut, NoteWrite
from notes_chat.storage.notes_store import NotesStore
from notes_chat.utils.jwt_auth import get_current_user

router = APIRouter(prefix="/notes", tags=["notes"])

# Store errors (ValidationError, NotFoundError, AuthorizationError) are mapped
# to HTTP responses by notes_chat.api.error_handlers.


@router.get("", response_model=list[NoteOut])
def list_notes(
    user_id: str = Depends(get_current_user),
    store: NotesStore = Depends(get_notes_store),
) -> list[NoteOut]:
    return [NoteOut(**n.to_dict()) for n in store.list_notes_for_owner(user_id)]


@router.post("", response_model=NoteOut, status_code=201)
def create_note(
    payload: NoteWrite,
    user_id: str = Depends(get_current_user),
    store: NotesStore = Depends(get_notes_store),
) -> NoteOut:
    note = store.create_note(owner_id=user_id, title=payload.title, body=payload.body)
    return NoteOut(**note.to_dict())


@router.get("/{note_id}", response_model=NoteOut)
def get_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    store: NotesStore = Depends(get_notes_store),
) -> NoteOut:
    note = store.get_note(owner_id=user_id, note_id=str(note_id))
    return NoteOut(**note.to_dict())


@router.put("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: UUID,
    payload: NoteWrite,
    user_id: str = Depends(get_current_user),
    store: NotesStore = Depends(get_notes_store),
) -> NoteOut:
    updated = store.update_note(
        owner_id=user_id, note_id=str(note_id), title=payload.title, body=payload.body
    )
    return NoteOut(**updated.to_dict())


@router.delete("/{note_id}", status_code=204)
def delete_note(
    note_id: UUID,
    user_id: str = Depends(get_current_user),
    store: NotesStore = Depends(get_notes_store),
) -> Response:
    store.delete_note(owner_id=user_id, note_id=str(note_id))
    return Response(status_code=204)
