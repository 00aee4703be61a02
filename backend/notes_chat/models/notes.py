from pydantic import BaseModel, Field


class NoteWrite(BaseModel):
    # emptiness after trimming is checked by the store, not here
    title: str = Field(max_length=200)
    body: str = ""


class NoteOut(BaseModel):
    id: str
    owner_id: str
    title: str
    body: str
    created_at: int
    updated_at: int
