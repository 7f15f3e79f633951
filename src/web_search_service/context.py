"""Explicitly constructed service graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import Engine

from .core.config import ServiceSettings
from .core.logger import get_logger
from .core.metrics import ServiceMetrics
from .search.cache import ResultCache
from .search.database import create_db_engine
from .search.history import SearchHistoryLog
from .search.intent import IntentClassifier
from .search.orchestrator import FallbackOrchestrator
from .search.registry import ProviderRegistry
from .search.service import SearchService

logger = get_logger("context")


@dataclass
class ServiceContext:
    """Everything a request needs, owned in one place.

    Build one per process (or per test) with ``from_settings``; nothing in
    the package keeps hidden global state.
    """

    settings: ServiceSettings
    engine: Engine
    cache: ResultCache
    history: SearchHistoryLog
    registry: ProviderRegistry
    classifier: IntentClassifier
    orchestrator: FallbackOrchestrator
    service: SearchService
    metrics: ServiceMetrics = field(default_factory=ServiceMetrics)

    @classmethod
    def from_settings(
        cls,
        settings: ServiceSettings | None = None,
        registry: ProviderRegistry | None = None,
        engine: Engine | None = None,
    ) -> ServiceContext:
        """Wire the service graph.

        Args:
            settings: Service settings (read from the environment if None)
            registry: Provider registry (built from settings if None)
            engine: Database engine (created from settings if None)
        """
        settings = settings or ServiceSettings.from_env()
        engine = engine or create_db_engine(settings.resolved_database_url)
        registry = registry or ProviderRegistry.from_settings(settings)
        metrics = ServiceMetrics()

        cache = ResultCache(engine, enabled=settings.cache_enabled)
        history = SearchHistoryLog(engine)
        classifier = IntentClassifier()
        orchestrator = FallbackOrchestrator(
            registry,
            classifier,
            routing_mode=settings.routing_mode,
            sequential_providers=settings.sequential_providers,
            max_retries=settings.max_retries,
            retry_delay_ms=settings.retry_delay,
            request_timeout=settings.request_timeout_seconds,
        )
        service = SearchService(
            orchestrator,
            cache,
            history,
            metrics=metrics,
            time_sensitive_ttl_ms=settings.cache_ttl_time_sensitive,
            general_ttl_ms=settings.cache_ttl_general,
            single_flight=settings.single_flight,
        )

        logger.info(
            "Service context ready (providers configured: %s)",
            ", ".join(p.name for p in registry.configured()) or "none",
        )
        return cls(
            settings=settings,
            engine=engine,
            cache=cache,
            history=history,
            registry=registry,
            classifier=classifier,
            orchestrator=orchestrator,
            service=service,
            metrics=metrics,
        )

    def close(self) -> None:
        self.engine.dispose()
