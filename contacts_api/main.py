import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from contacts_api import config, models
from contacts_api.db import engine
from contacts_api.errors import register_exception_handlers
from contacts_api.logging_config import setup_logging
from contacts_api.rate_limit import close_rate_limiter, init_rate_limiter
from contacts_api.routes import contacts, users

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Створює та налаштовує FastAPI застосунок.

    Налаштовує логування, створює таблиці, CORS, роздачу аватарів як статики,
    обробники помилок і роутери. Обмеження частоти запитів підключається
    до Redis при старті, якщо воно увімкнене.

    :return: Готовий до запуску застосунок.
    """
    setup_logging(config.LOG_LEVEL)

    models.Base.metadata.create_all(bind=engine)

    app = FastAPI(title="Contacts API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(contacts.router)
    app.include_router(users.router)

    os.makedirs(config.AVATARS_DIR, exist_ok=True)
    app.mount("/avatars", StaticFiles(directory=config.AVATARS_DIR), name="avatars")

    @app.on_event("startup")
    async def startup():
        if config.RATE_LIMIT_ENABLED:
            await init_rate_limiter()
        logger.info("Contacts API started")

    @app.on_event("shutdown")
    async def shutdown():
        if config.RATE_LIMIT_ENABLED:
            await close_rate_limiter()

    return app


app = create_app()
