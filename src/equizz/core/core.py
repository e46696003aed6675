from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from equizz.config import Config


class Service:
    """Base class for services with direct database access."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
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

    from equizz.core.modules.academic.service import AcademicService  # noqa: PLC0415
    from equizz.core.modules.access.service import AccessService  # noqa: PLC0415
    from equizz.core.modules.analysis.service import AnalysisService  # noqa: PLC0415
    from equizz.core.modules.quiz.service import QuizService  # noqa: PLC0415
    from equizz.core.modules.session.service import SessionService  # noqa: PLC0415
    from equizz.core.modules.submission.service import SubmissionService  # noqa: PLC0415
    from equizz.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    session: SessionService
    access: AccessService
    academic: AcademicService
    quiz: QuizService
    submission: SubmissionService
    analysis: AnalysisService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._database = database

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - user must start before session (default admin)
        service_configs = [
            ("user", "equizz.core.modules.user.service", "UserService"),
            ("session", "equizz.core.modules.session.service", "SessionService"),
            ("access", "equizz.core.modules.access.service", "AccessService"),
            ("academic", "equizz.core.modules.academic.service", "AcademicService"),
            ("quiz", "equizz.core.modules.quiz.service", "QuizService"),
            ("submission", "equizz.core.modules.submission.service", "SubmissionService"),
            ("analysis", "equizz.core.modules.analysis.service", "AnalysisService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(database)
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
        # Reverse order so background tasks stop before the services they depend on
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, database, and all service instances.

    `database` may be supplied directly (tests pass an in-memory double);
    otherwise a MongoDB client is created from `config.database_url`.
    """

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    database: AsyncDatabase[dict[str, Any]]
    services: Services

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self.config = config
        if database is None:
            # tz_aware so stored datetimes compare with utils.now()
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
        else:
            self.mongo_client = None
        self.database = database
        self.services = Services(self.database)
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
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
