import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from contacts_app import crud, models, schemas
from contacts_app.config import get_settings
from contacts_app.db import get_db

logger = logging.getLogger(__name__)

ACCESS_SCOPE = "access"
RECOVERY_SCOPE = "recovery"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def create_token(
    user_id: str,
    scope: str = ACCESS_SCOPE,
    expires_delta: Optional[timedelta] = None,
    recovery: bool = False,
) -> tuple[str, datetime]:
    """
    Створює підписаний JWT токен.

    :param user_id: Ідентифікатор користувача, записується в `sub`.
    :param scope: `access` для звичайної сесії або `recovery` для посилання
        скидання пароля.
    :param expires_delta: Час дії токену. За замовчуванням береться з налаштувань.
    :param recovery: Позначає сесію, відкриту через посилання відновлення.
    :return: Закодований токен і момент закінчення його дії.
    """
    settings = get_settings()
    if expires_delta is None:
        minutes = (
            settings.recovery_token_expire_minutes
            if scope == RECOVERY_SCOPE
            else settings.access_token_expire_minutes
        )
        expires_delta = timedelta(minutes=minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {
        "sub": user_id,
        "scope": scope,
        "jti": str(uuid.uuid4()),
        "exp": expire,
    }
    if recovery:
        to_encode["amr"] = RECOVERY_SCOPE
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt, expire


def verify_token(token: str, scope: str = ACCESS_SCOPE) -> Optional[dict]:
    """
    Перевіряє підпис, строк дії та призначення токену.

    :return: Payload токену, якщо він дійсний, інакше None.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("scope") != scope or not payload.get("sub") or not payload.get("jti"):
        return None
    return payload


def issue_session(user: models.User, recovery: bool = False) -> schemas.Session:
    token, expire = create_token(user.id, recovery=recovery)
    expires_in = get_settings().access_token_expire_minutes * 60
    return schemas.Session(
        access_token=token,
        expires_in=expires_in,
        expires_at=expire,
        user=schemas.User.model_validate(user),
        recovery=recovery,
    )


def get_token_payload(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> dict:
    payload = verify_token(token)
    if payload is None or crud.is_token_revoked(db, payload["jti"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def get_current_user(
    payload: dict = Depends(get_token_payload), db: Session = Depends(get_db)
) -> models.User:
    """
    Отримує поточного користувача за bearer токеном.

    :raises HTTPException: 401, якщо токен недійсний, відкликаний,
        або користувача вже не існує.
    """
    user = crud.get_user(db, payload["sub"])
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
