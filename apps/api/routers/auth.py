"""
Authentication router: anonymous sessions for per-user report history.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context
from services.reports import ensure_user
from services.session_token import create_session_token

router = APIRouter()


class AnonymousSessionResponse(BaseModel):
    user_id: str
    session_token: str
    session_expires_at: int


class CurrentUserResponse(BaseModel):
    user_id: str
    anonymous: bool = True
    created_at: Optional[str] = None


@router.post("/anonymous", response_model=AnonymousSessionResponse)
async def create_anonymous_session(db: AsyncSession = Depends(get_db)):
    """Create a new anonymous user and return its session token."""
    user_id = str(uuid.uuid4())
    await ensure_user(db, user_id)
    await db.commit()

    session = create_session_token(user_id, anonymous=True)
    return AnonymousSessionResponse(
        user_id=user_id,
        session_token=session["token"],
        session_expires_at=session["expires_at"],
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Return the user behind the current session."""
    result = await db.execute(select(User).where(User.id == auth.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return CurrentUserResponse(
        user_id=user.id,
        anonymous=bool(user.is_anonymous),
        created_at=user.created_at.isoformat() if user.created_at else None,
    )
