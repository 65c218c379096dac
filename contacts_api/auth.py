import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from contacts_api import config, crud, models
from contacts_api.db import get_db

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_verification_token() -> str:
    """
    Генерує одноразовий непрозорий токен для підтвердження електронної пошти.

    :return: Токен у вигляді hex-рядка.
    """
    return uuid.uuid4().hex


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Створює JWT токен доступу.

    Кожен токен отримує унікальний ``jti``, тож два логіни поспіль дають різні токени.

    :param data: Дані, які будуть закодовані в токен (ідентифікатор користувача у полі ``sub``).
    :param expires_delta: Час дії токену, за замовчуванням ``ACCESS_TOKEN_EXPIRE_MINUTES``.
    :return: Закодований JWT токен.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Перевіряє підпис і термін дії JWT токену.

    :param token: Токен для перевірки.
    :return: Payload токену, якщо він дійсний, інакше None.
    """
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Отримує поточного користувача за bearer токеном.

    Токен має бути дійсним і збігатися з сесією, збереженою для користувача,
    тобто після logout або повторного логіну старий токен більше не приймається.

    :param token: Токен з заголовка ``Authorization``.
    :param db: Сесія бази даних.
    :return: Користувач, якому належить токен.
    :raises HTTPException: 401, якщо токен відсутній, недійсний або не активний.
    """
    if not token:
        raise _unauthorized()
    payload = verify_token(token)
    if payload is None:
        raise _unauthorized()
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized()
    user = crud.get_user(db, user_id)
    if user is None or user.token != token:
        logger.debug("Rejected token for user id %s", user_id)
        raise _unauthorized()
    return user
