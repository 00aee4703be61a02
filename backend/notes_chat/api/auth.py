from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from notes_chat.api.deps import get_users_store
from notes_chat.models.auth import LoginRequest, RegisterRequest, TokenResponse
from notes_chat.storage.users_store import UserExistsError, UsersStore
from notes_chat.utils.auth_hash import hash_password, verify_password
from notes_chat.utils.jwt_auth import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, users: UsersStore = Depends(get_users_store)):
    try:
        users.create(req.user_id, hash_password(req.password))  # never store plaintext
    except UserExistsError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
    return {"user_id": req.user_id}


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, users: UsersStore = Depends(get_users_store)):
    rec = users.get(req.user_id)
    # same answer for unknown user and wrong password
    if rec is None or not verify_password(req.password, rec.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return TokenResponse(access_token=create_access_token(subject=req.user_id))
