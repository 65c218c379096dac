from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contacts_api import models, schemas


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_verification_token(db: Session, token: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.verification_token == token).first()


def create_user(
    db: Session,
    user: schemas.UserCreate,
    hashed_password: str,
    verification_token: str,
    avatar_url: str,
) -> models.User:
    """
    Зберігає нового непідтвердженого користувача з підпискою starter.

    :param db: Сесія бази даних.
    :param user: Дані реєстрації.
    :param hashed_password: Хеш пароля.
    :param verification_token: Токен для підтвердження email.
    :param avatar_url: Початковий URL аватара.
    :return: Створений користувач.
    :raises ValueError: Якщо email вже зареєстрований.
    """
    if get_user_by_email(db, user.email):
        raise ValueError("Email in use")
    db_user = models.User(
        email=user.email,
        password=hashed_password,
        subscription=models.Subscription.starter,
        avatar_url=avatar_url,
        verify=False,
        verification_token=verification_token,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Email in use")
    db.refresh(db_user)
    return db_user


def mark_verified(db: Session, user: models.User) -> models.User:
    user.verify = True
    db.commit()
    db.refresh(user)
    return user


def set_verification_token(db: Session, user: models.User, token: str) -> models.User:
    user.verification_token = token
    db.commit()
    db.refresh(user)
    return user


def set_token(db: Session, user: models.User, token: Optional[str]) -> models.User:
    user.token = token
    db.commit()
    db.refresh(user)
    return user


def update_subscription(db: Session, user_id: int, subscription: models.Subscription) -> Optional[models.User]:
    user = get_user(db, user_id)
    if user is None:
        return None
    user.subscription = subscription
    db.commit()
    db.refresh(user)
    return user


def update_avatar(db: Session, user_id: int, avatar_url: str) -> Optional[models.User]:
    user = get_user(db, user_id)
    if user is None:
        return None
    user.avatar_url = avatar_url
    db.commit()
    db.refresh(user)
    return user


def _contacts_query(db: Session, owner_id: Optional[int]):
    query = db.query(models.Contact)
    if owner_id is not None:
        query = query.filter(models.Contact.owner_id == owner_id)
    return query


def get_contacts(
    db: Session,
    skip: int = 0,
    limit: int = 20,
    favorite: Optional[bool] = None,
    owner_id: Optional[int] = None,
) -> List[models.Contact]:
    query = _contacts_query(db, owner_id)
    if favorite is not None:
        query = query.filter(models.Contact.favorite == favorite)
    return query.order_by(models.Contact.id).offset(skip).limit(limit).all()


def get_contact(db: Session, contact_id: int, owner_id: Optional[int] = None) -> Optional[models.Contact]:
    return _contacts_query(db, owner_id).filter(models.Contact.id == contact_id).first()


def create_contact(db: Session, contact: schemas.ContactCreate, user_id: Optional[int]) -> models.Contact:
    data = contact.model_dump(exclude_none=True)
    db_contact = models.Contact(**data, owner_id=user_id)
    db.add(db_contact)
    db.commit()
    db.refresh(db_contact)
    return db_contact


def update_contact(
    db: Session,
    contact_id: int,
    contact: schemas.ContactUpdate,
    owner_id: Optional[int] = None,
) -> Optional[models.Contact]:
    db_contact = get_contact(db, contact_id, owner_id)
    if db_contact is None:
        return None
    for field, value in contact.model_dump(exclude_none=True).items():
        setattr(db_contact, field, value)
    db.commit()
    db.refresh(db_contact)
    return db_contact


def delete_contact(db: Session, contact_id: int, owner_id: Optional[int] = None) -> Optional[models.Contact]:
    db_contact = get_contact(db, contact_id, owner_id)
    if db_contact is None:
        return None
    db.delete(db_contact)
    db.commit()
    return db_contact


def update_favorite(
    db: Session,
    contact_id: int,
    favorite: bool,
    owner_id: Optional[int] = None,
) -> Optional[models.Contact]:
    db_contact = get_contact(db, contact_id, owner_id)
    if db_contact is None:
        return None
    db_contact.favorite = favorite
    db.commit()
    db.refresh(db_contact)
    return db_contact
