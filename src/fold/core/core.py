from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fold.config import Config
from fold.core.db import Base, create_engine

if TYPE_CHECKING:
    from fold.core.modules.upload.client import StorageClient

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct database access."""

    def __init__(self, db: async_sessionmaker[AsyncSession]) -> None:
        self.db = db
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from fold.core.modules.account.service import AccountService  # noqa: PLC0415
    from fold.core.modules.auth.service import AuthService  # noqa: PLC0415
    from fold.core.modules.rate_limit.service import RateLimitService  # noqa: PLC0415
    from fold.core.modules.session.service import SessionService  # noqa: PLC0415
    from fold.core.modules.upload.service import UploadService  # noqa: PLC0415
    from fold.core.modules.user.service import UserService  # noqa: PLC0415
    from fold.core.modules.verification.service import VerificationService  # noqa: PLC0415

    user: UserService
    account: AccountService
    session: SessionService
    verification: VerificationService
    rate_limit: RateLimitService
    auth: AuthService
    upload: UploadService

    def __init__(self, db: async_sessionmaker[AsyncSession]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - auth builds on the record services
        service_configs = [
            ("user", "fold.core.modules.user.service", "UserService"),
            ("account", "fold.core.modules.account.service", "AccountService"),
            ("session", "fold.core.modules.session.service", "SessionService"),
            ("verification", "fold.core.modules.verification.service", "VerificationService"),
            ("rate_limit", "fold.core.modules.rate_limit.service", "RateLimitService"),
            ("auth", "fold.core.modules.auth.service", "AuthService"),
            ("upload", "fold.core.modules.upload.service", "UploadService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(db)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, storage client, and all service instances.

    Long-lived clients are built once here. Pass ``storage_client`` to
    substitute the Appwrite client (tests use an in-memory fake).
    """

    config: Config
    engine: AsyncEngine
    db: async_sessionmaker[AsyncSession]
    storage_client: StorageClient
    services: Services

    def __init__(self, config: Config, storage_client: StorageClient | None = None) -> None:
        from fold.core.modules.memory import models as _memory_models  # noqa: F401, PLC0415  # register seed tables
        from fold.core.modules.upload.client import AppwriteStorageClient  # noqa: PLC0415

        self.config = config
        self.engine = create_engine(config.database_url)
        self.db = async_sessionmaker(self.engine, expire_on_commit=False)
        self.storage_client = storage_client or AppwriteStorageClient(
            endpoint=config.appwrite_endpoint,
            project_id=config.appwrite_project_id,
            api_key=config.appwrite_api_key,
            bucket_id=config.appwrite_bucket_id,
        )
        self.services = Services(self.db)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Create missing tables, then start all services."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await self.services.start_all()
        logger.debug("core_started", tables=sorted(Base.metadata.tables))

    async def on_stop(self) -> None:
        """Stop services and dispose the connection pool on shutdown."""
        await self.services.stop_all()
        await self.engine.dispose()
