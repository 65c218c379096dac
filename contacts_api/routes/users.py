import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contacts_api import auth, avatars, crud, mailer, models, schemas
from contacts_api.db import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.post("/signup", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def signup(body: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Реєструє нового користувача та надсилає лист для підтвердження email.

    Користувач зберігається до відправки листа, тому при помилці SMTP запис
    лишається в базі, а лист можна надіслати повторно через ``POST /verify``.

    :param body: Email та пароль нового користувача.
    :param db: Сесія бази даних.
    :return: Публічний профіль створеного користувача.
    :raises HTTPException: 409, якщо email вже зайнятий; 500, якщо лист не надіслано.
    """
    verification_token = auth.generate_verification_token()
    try:
        user = crud.create_user(
            db,
            body,
            hashed_password=auth.hash_password(body.password),
            verification_token=verification_token,
            avatar_url=avatars.gravatar_url(body.email),
        )
    except ValueError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email in use")
    logger.info("User %s signed up", user.email)

    try:
        mailer.send_verification_email(user.email, verification_token)
    except mailer.MailerError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification email",
        )
    return {"user": user}


@router.get("/verify/{token}", response_model=schemas.MessageResponse)
def verify_email(token: str, db: Session = Depends(get_db)):
    """
    Підтверджує email користувача за токеном з листа.

    :param token: Токен підтвердження.
    :param db: Сесія бази даних.
    :return: Повідомлення про успішне підтвердження.
    :raises HTTPException: 404, якщо токен невідомий; 400, якщо email вже підтверджено.
    """
    user = crud.get_user_by_verification_token(db, token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.verify:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification has already been passed")
    crud.mark_verified(db, user)
    logger.info("User %s verified", user.email)
    return {"message": "Verification successful"}


@router.post("/verify", response_model=schemas.MessageResponse)
def resend_verification(body: schemas.EmailRequest, db: Session = Depends(get_db)):
    """
    Генерує новий токен підтвердження і повторно надсилає лист.

    :param body: Email користувача.
    :param db: Сесія бази даних.
    :raises HTTPException: 404, якщо користувача немає; 400, якщо email вже підтверджено.
    """
    user = crud.get_user_by_email(db, body.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.verify:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification has already been passed")

    verification_token = auth.generate_verification_token()
    crud.set_verification_token(db, user, verification_token)
    try:
        mailer.send_verification_email(user.email, verification_token)
    except mailer.MailerError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification email",
        )
    return {"message": "Verification email sent"}


@router.post("/login", response_model=schemas.TokenResponse)
def login(body: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Логін користувача за електронною поштою та паролем.

    Для відсутнього користувача і неправильного пароля повертається однакова
    помилка. Новий токен замінює попередню сесію користувача.

    :param body: Email та пароль.
    :param db: Сесія бази даних.
    :return: JWT токен та публічний профіль.
    :raises HTTPException: 401 для неправильних облікових даних; 403, якщо email не підтверджено.
    """
    user = crud.get_user_by_email(db, body.email)
    if user is None or not auth.verify_password(body.password, user.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Email or password is wrong")
    if not user.verify:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Email is not verified")

    token = auth.create_access_token(data={"sub": str(user.id)})
    crud.set_token(db, user, token)
    logger.info("User %s logged in", user.email)
    return {"token": token, "user": user}


@router.get("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: models.User = Depends(auth.get_current_user), db: Session = Depends(get_db)):
    user = crud.get_user(db, current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized")
    crud.set_token(db, user, None)
    logger.info("User %s logged out", user.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current", response_model=schemas.UserProfile)
def current(current_user: models.User = Depends(auth.get_current_user)):
    return current_user


@router.patch("/", response_model=schemas.UserResponse)
def change_subscription(
    body: schemas.SubscriptionUpdate,
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    """
    Змінює тарифний план поточного користувача.

    Недопустиме значення відхиляється валідацією тіла запиту з кодом 400
    ще до звернення до бази.

    :param body: Новий план: starter, pro або business.
    :raises HTTPException: 404, якщо користувач зник.
    """
    user = crud.update_subscription(db, current_user.id, body.subscription)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"user": user}


@router.patch("/avatars", response_model=schemas.AvatarResponse)
def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: models.User = Depends(auth.get_current_user),
    db: Session = Depends(get_db),
):
    """
    Оновлює аватар користувача.

    Зображення обрізається до квадрата 250x250 і зберігається під іменем,
    що містить id користувача та час завантаження.

    :param avatar: Завантажений файл у полі ``avatar``.
    :param current_user: Поточний користувач.
    :return: URL нового аватара.
    """
    if avatar is None or not avatar.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    try:
        image, image_format = avatars.normalize_image(avatar.file.read())
    except avatars.InvalidImageError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported image file")
    finally:
        avatar.file.close()

    try:
        avatar_url = avatars.store_avatar(
            image, avatars.avatar_filename(current_user.id, avatar.filename, image_format)
        )
    except avatars.AvatarStorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save image")

    try:
        user = crud.update_avatar(db, current_user.id, avatar_url)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update avatar for user %s", current_user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update avatar")
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"avatar_url": avatar_url}
