from typing import List, Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from contacts_app import models, schemas

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    """
    Створює нового користувача з хешованим паролем.

    :raises ValueError: Якщо користувач з таким email вже існує.
    """
    email = user.email.strip().lower()
    if get_user_by_email(db, email):
        raise ValueError("User already exists")
    db_user = models.User(email=email, password=get_password_hash(user.password))
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("User already exists")
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    db_user = get_user_by_email(db, email)
    if not db_user or not verify_password(password, db_user.password):
        return None
    return db_user


def update_user_password(db: Session, user: models.User, password: str) -> models.User:
    user.password = get_password_hash(password)
    db.commit()
    db.refresh(user)
    return user


def revoke_token(db: Session, jti: str) -> None:
    if is_token_revoked(db, jti):
        return
    db.add(models.RevokedToken(jti=jti))
    db.commit()


def is_token_revoked(db: Session, jti: str) -> bool:
    return db.query(models.RevokedToken).filter(models.RevokedToken.jti == jti).first() is not None


def get_contacts(db: Session, user_id: str) -> List[models.Contact]:
    return db.query(models.Contact).filter(models.Contact.user_id == user_id).all()


def create_contacts(db: Session, contacts: List[schemas.ContactCreate]) -> List[models.Contact]:
    """
    Додає контакти одним комітом і повертає збережені рядки
    разом з призначеними `id` та `created_at`.
    """
    db_contacts = [models.Contact(**contact.model_dump()) for contact in contacts]
    db.add_all(db_contacts)
    db.commit()
    for db_contact in db_contacts:
        db.refresh(db_contact)
    return db_contacts


def update_contact(
    db: Session, contact_id: str, patch: schemas.ContactUpdate, user_id: str
) -> List[models.Contact]:
    """
    Оновлює контакт користувача.

    :return: Список оновлених рядків: порожній, якщо контакт не знайдено
        або він належить іншому користувачу.
    :raises ValueError: Якщо зміни порушують обмеження таблиці; транзакцію відкочено.
    """
    db_contact = (
        db.query(models.Contact)
        .filter(models.Contact.id == contact_id, models.Contact.user_id == user_id)
        .first()
    )
    if db_contact is None:
        return []
    for field, value in patch.model_dump(exclude_unset=True).items():
        setattr(db_contact, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Contact violates table constraints")
    db.refresh(db_contact)
    return [db_contact]


def delete_contact(db: Session, contact_id: str, user_id: str) -> int:
    deleted = (
        db.query(models.Contact)
        .filter(models.Contact.id == contact_id, models.Contact.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
