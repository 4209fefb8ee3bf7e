import logging
from typing import List, Optional
from urllib.parse import urlsplit

from fastapi import FastAPI, BackgroundTasks, Depends, HTTPException, Query, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from contacts_app import auth, crud, db, models, schemas
from contacts_app.config import configure_logging, get_settings
from contacts_app.db import get_db

logger = logging.getLogger(__name__)

RLS_VIOLATION = "new row violates row-level security policy for table \"contacts\""


def parse_eq_filter(value: Optional[str], column: str) -> str:
    """
    Розбирає фільтр виду `eq.<значення>` з query-параметра.

    :raises HTTPException: 400, якщо фільтр відсутній або має інший оператор.
    """
    if not value or not value.startswith("eq.") or len(value) == 3:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Filter '{column}=eq.<value>' is required",
        )
    return value[3:]


def is_allowed_redirect(redirect_to: str, site_url: str) -> bool:
    """
    Перевіряє, що посилання зі скиданням пароля веде на сайт клієнта.

    Схема та хост (з портом) мають збігатися точно, шлях має починатися
    зі шляху `site_url`.
    """
    target = urlsplit(redirect_to)
    site = urlsplit(site_url)
    if (target.scheme, target.netloc) != (site.scheme, site.netloc):
        return False
    site_path = site.path.rstrip("/")
    return target.path == site_path or target.path.startswith(f"{site_path}/")


def send_password_reset_email(email: str, link: str, background_tasks: BackgroundTasks):
    """
    Додає задачу на відправку листа з посиланням для скидання пароля.

    :param email: Електронна пошта користувача.
    :param link: Посилання на сторінку оновлення пароля з токеном відновлення.
    :param background_tasks: Фонові задачі для відправки email.
    """
    background_tasks.add_task(_send_password_reset_email, email, link)


def _send_password_reset_email(email: str, link: str):
    message = f"Click here to reset your password: {link}"
    logger.info("Password reset email to %s: %s", email, message)


async def http_exception_handler(request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=422, content={"message": message})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Contacts Platform", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    models.Base.metadata.create_all(bind=db.engine)

    register_auth_routes(app)
    register_contact_routes(app)
    return app


def register_auth_routes(app: FastAPI):

    @app.post("/auth/signup", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
    def register_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
        """
        Реєструє нового користувача.

        :raises HTTPException: 409, якщо користувач уже існує.
        """
        try:
            new_user = crud.create_user(db, user)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
        logger.info("Registered user %s", new_user.id)
        return new_user

    @app.post("/auth/token", response_model=schemas.Session)
    def login_user(user: schemas.UserLogin, db: Session = Depends(get_db)):
        """
        Логін користувача за допомогою електронної пошти та пароля.

        :return: Сесія з токеном доступу та даними користувача.
        :raises HTTPException: 400, якщо облікові дані невірні.
        """
        db_user = crud.authenticate_user(db, user.email, user.password)
        if not db_user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid login credentials")
        return auth.issue_session(db_user)

    @app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
    def logout_user(payload: dict = Depends(auth.get_token_payload), db: Session = Depends(get_db)):
        crud.revoke_token(db, payload["jti"])
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/auth/user", response_model=schemas.User)
    def read_current_user(current_user: models.User = Depends(auth.get_current_user)):
        return current_user

    @app.put("/auth/user", response_model=schemas.User)
    def update_current_user(
        body: schemas.PasswordUpdate,
        db: Session = Depends(get_db),
        current_user: models.User = Depends(auth.get_current_user),
    ):
        """
        Змінює пароль поточного користувача.

        Працює і для сесії відновлення, відкритої через посилання з листа,
        тому старий пароль не запитується.
        """
        user = crud.update_user_password(db, current_user, body.password)
        logger.info("Password updated for user %s", user.id)
        return user

    @app.post("/auth/recover", response_model=schemas.Message)
    def recover_password(
        body: schemas.RecoverRequest,
        background_tasks: BackgroundTasks,
        db: Session = Depends(get_db),
    ):
        """
        Відправляє лист зі скиданням пароля.

        Відповідь однакова незалежно від того, чи існує користувач,
        щоб не розкривати зареєстровані адреси.
        """
        settings = get_settings()
        redirect_to = body.redirect_to or f"{settings.site_url}/update-password"
        if not is_allowed_redirect(redirect_to, settings.site_url):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="redirect_to is not allowed")

        user = crud.get_user_by_email(db, body.email)
        if user is not None:
            token, _ = auth.create_token(user.id, scope=auth.RECOVERY_SCOPE)
            link = f"{redirect_to}#access_token={token}&type=recovery"
            send_password_reset_email(user.email, link, background_tasks)
        else:
            logger.info("Password reset requested for unknown email")
        return schemas.Message(message="Recovery email sent")

    @app.post("/auth/verify", response_model=schemas.Session)
    def verify_recovery(body: schemas.VerifyRequest, db: Session = Depends(get_db)):
        """
        Обмінює одноразовий токен відновлення на сесію відновлення.

        :raises HTTPException: 401, якщо токен недійсний, прострочений або вже використаний.
        """
        if body.type != auth.RECOVERY_SCOPE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported verification type")
        payload = auth.verify_token(body.token, scope=auth.RECOVERY_SCOPE)
        if payload is None or crud.is_token_revoked(db, payload["jti"]):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired or is invalid")
        user = crud.get_user(db, payload["sub"])
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
        crud.revoke_token(db, payload["jti"])
        return auth.issue_session(user, recovery=True)


def register_contact_routes(app: FastAPI):

    @app.get("/rest/contacts", response_model=List[schemas.Contact])
    def get_contacts(
        user_id: Optional[str] = Query(None),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(auth.get_current_user),
    ):
        """
        Повертає контакти поточного користувача.

        Фільтр `user_id=eq.<id>` необов'язковий; рядки інших користувачів
        ніколи не повертаються.
        """
        if user_id is not None and parse_eq_filter(user_id, "user_id") != current_user.id:
            return []
        return crud.get_contacts(db=db, user_id=current_user.id)

    @app.post("/rest/contacts", response_model=List[schemas.Contact], status_code=status.HTTP_201_CREATED)
    def create_contacts(
        contacts: List[schemas.ContactCreate],
        db: Session = Depends(get_db),
        current_user: models.User = Depends(auth.get_current_user),
    ):
        """
        Створює контакти та повертає вставлені рядки.

        :raises HTTPException: 403, якщо хоча б один рядок належить іншому користувачу.
        """
        if any(contact.user_id != current_user.id for contact in contacts):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=RLS_VIOLATION)
        return crud.create_contacts(db=db, contacts=contacts)

    @app.patch("/rest/contacts", response_model=List[schemas.Contact])
    def update_contact(
        patch: schemas.ContactUpdate,
        id: Optional[str] = Query(None),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(auth.get_current_user),
    ):
        contact_id = parse_eq_filter(id, "id")
        try:
            return crud.update_contact(db=db, contact_id=contact_id, patch=patch, user_id=current_user.id)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    @app.delete("/rest/contacts", status_code=status.HTTP_204_NO_CONTENT)
    def delete_contact(
        id: Optional[str] = Query(None),
        db: Session = Depends(get_db),
        current_user: models.User = Depends(auth.get_current_user),
    ):
        contact_id = parse_eq_filter(id, "id")
        deleted = crud.delete_contact(db=db, contact_id=contact_id, user_id=current_user.id)
        logger.info("Deleted %d contact(s) for user %s", deleted, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("contacts_app.main:app", reload=True)
