from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from contacts_api import config, crud, models, schemas
from contacts_api.auth import get_current_user
from contacts_api.db import get_db
from contacts_api.rate_limit import contacts_rate_limit

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _owner_scope(user: models.User) -> Optional[int]:
    return user.id if config.CONTACTS_SCOPED_TO_OWNER else None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


@router.get("", response_model=List[schemas.Contact], dependencies=[Depends(contacts_rate_limit)])
def list_contacts(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    favorite: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Повертає сторінку контактів.

    Кількість запитів обмежена ``RATE_LIMIT_TIMES`` за ``RATE_LIMIT_SECONDS``,
    якщо ліміт увімкнено.

    :param page: Номер сторінки, починаючи з 1.
    :param limit: Кількість контактів на сторінці.
    :param favorite: Якщо задано, повертаються лише обрані або лише необрані контакти.
    """
    return crud.get_contacts(
        db,
        skip=(page - 1) * limit,
        limit=limit,
        favorite=favorite,
        owner_id=_owner_scope(current_user),
    )


@router.get("/{contact_id}", response_model=schemas.Contact)
def get_contact(contact_id: int, db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    contact = crud.get_contact(db, contact_id, owner_id=_owner_scope(current_user))
    if contact is None:
        raise _not_found()
    return contact


@router.post("", response_model=schemas.Contact, status_code=status.HTTP_201_CREATED)
def create_contact(
    contact: schemas.ContactCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Створює новий контакт, власником якого стає поточний користувач.

    :param contact: Ім'я (3-30 символів), email, телефон (від 8 символів) та необов'язковий прапорець favorite.
    :return: Створений контакт.
    """
    return crud.create_contact(db=db, contact=contact, user_id=current_user.id)


@router.put("/{contact_id}", response_model=schemas.Contact)
def update_contact(
    contact_id: int,
    contact: schemas.ContactUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    updated = crud.update_contact(db, contact_id, contact, owner_id=_owner_scope(current_user))
    if updated is None:
        raise _not_found()
    return updated


@router.delete("/{contact_id}", response_model=schemas.MessageResponse)
def delete_contact(contact_id: int, db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    deleted = crud.delete_contact(db, contact_id, owner_id=_owner_scope(current_user))
    if deleted is None:
        raise _not_found()
    return {"message": "Contact deleted"}


@router.patch("/{contact_id}/favorite", response_model=schemas.Contact)
def update_favorite(
    contact_id: int,
    body: schemas.FavoriteUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """
    Змінює лише прапорець favorite контакту.

    :raises HTTPException: 400, якщо поле favorite відсутнє; 404, якщо контакту немає.
    """
    contact = crud.update_favorite(db, contact_id, body.favorite, owner_id=_owner_scope(current_user))
    if contact is None:
        raise _not_found()
    return contact
