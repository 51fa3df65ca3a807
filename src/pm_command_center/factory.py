"""Dependency injection factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pm_command_center.assistant.dispatcher import ActionDispatcher
from pm_command_center.assistant.responses import Message
from pm_command_center.assistant.session import ConversationSession
from pm_command_center.config import Config
from pm_command_center.storage.repository import TaskRepository, YamlWorkspaceRepository
from pm_command_center.task_store import TaskStore
from pm_command_center.websocket.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

# Global config instance for dependency injection
_config: Config | None = None

# Global workspace singletons
_repository: TaskRepository | None = None
_task_store: TaskStore | None = None
_session: ConversationSession | None = None
_connection_manager: ConnectionManager | None = None


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_repository() -> TaskRepository:
    """Get or create the persistence backend."""
    global _repository
    if _repository is None:
        config = get_config()
        _repository = YamlWorkspaceRepository(config.storage_path, config.latency_scale)
    return _repository


def get_connection_manager() -> ConnectionManager:
    """Get or create ConnectionManager singleton."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager


def get_task_store() -> TaskStore:
    """Get or create TaskStore singleton, wired to broadcast task notifications."""
    global _task_store
    if _task_store is None:
        _task_store = TaskStore(get_repository())
        _task_store.add_listener(get_connection_manager().publish)
    return _task_store


def get_session() -> ConversationSession:
    """Get or create the assistant conversation, wired to broadcast new messages."""
    global _session
    if _session is None:
        config = get_config()
        _session = ConversationSession(
            ActionDispatcher(get_task_store()),
            response_delay=config.response_delay,
        )
        connection_manager = get_connection_manager()

        def publish_message(message: Message) -> None:
            connection_manager.publish({"type": "message", "message": message.to_dict()})

        _session.subscribe(publish_message)
    return _session


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - hydrate the store, drain writes on shutdown."""
    logger.info("[Lifespan] Loading tasks...")
    store = get_task_store()
    await store.init()
    get_session()
    try:
        yield
    finally:
        logger.info(f"[Lifespan] Flushing {store.pending_writes} pending writes...")
        await get_session().wait_idle()
        await store.flush()


def create_app() -> FastAPI:
    """Create FastAPI application (composition root)."""
    from pm_command_center.api.assistant import router as assistant_router
    from pm_command_center.api.docs import router as docs_router
    from pm_command_center.api.tasks import router as tasks_router
    from pm_command_center.api.websocket import router as ws_router

    app = FastAPI(
        title="PM Command Center",
        description="Task workspace with an assistant command interpreter",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(tasks_router, prefix="/api")
    app.include_router(assistant_router, prefix="/api")
    app.include_router(docs_router, prefix="/api")
    app.include_router(ws_router)  # WebSocket at /ws

    return app
