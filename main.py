import logfire

from dotenv import load_dotenv

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from contextlib import asynccontextmanager

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from middleware.error_handling import register_exception_handlers

from models.users import User
from models.posts import Post, Comment

from routers import auth, users, posts

from storage.base import BlogStore
from storage.memory import MemoryStore
from storage.mongo import MongoStore

from utils.config import Settings, check_security_configuration, get_settings
from utils.logger import configure_logging, instrument_libraries


# Load environment variables first
load_dotenv()


def create_app(store: Optional[BlogStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Args:
        store (Optional[BlogStore]): Store to serve from. When omitted, the lifespan
            connects to MongoDB (or uses an in-memory store if `USE_MEMORY_STORE` is set).
        settings (Optional[Settings]): Settings to use. Defaults to the environment.
    """
    settings = settings or get_settings()
    check_security_configuration(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logfire.info("Starting Blog API...")
        client = None

        if app.state.store is None and settings.use_memory_store:
            app.state.store = MemoryStore()
            logfire.warning("Using in-memory store, data will not survive a restart")
        elif app.state.store is None:
            client = AsyncIOMotorClient(
                settings.database_connection_string, tz_aware=True
            )  # * Connect to MongoDB

            await init_beanie(
                database=client[settings.database_name],
                document_models=[User, Post, Comment],
            )
            app.state.store = MongoStore()
            logfire.info("Database initialized successfully")

        yield

        logfire.info("Shutting down Blog API...")
        if client is not None:
            client.close()
        logfire.info("Application shutdown complete")

    app = FastAPI(
        title="Blog API",
        description="A REST API for a blog system with users, posts, comments and JWT authentication.",
        docs_url="/api-docs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(posts.router)

    instrument_libraries(app, settings)
    return app


configure_logging(get_settings())

app = create_app()
