from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from oliver.db import get_db_session
from oliver.exceptions import NotAuthenticated
from oliver.logging_config import get_logger
from oliver.models.user import User
from oliver.utils.jwt import decode_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user or raise NotAuthenticated."""
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Sessão expirada")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected token: {e}")
        raise NotAuthenticated("Token inválido")

    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticated("Token inválido")

    user = (await db.execute(select(User).filter(User.id == user_id))).scalar_one_or_none()
    if user is None or not user.is_active:
        raise NotAuthenticated()
    return user
