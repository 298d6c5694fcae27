"""
Entity Admin Engine

Composition root: owns the registry, API client, caches, schema transformer
and data access orchestrator, and hands out entity sessions.
"""

import logging
from typing import Optional

import httpx

from entity_admin.config.settings import settings
from entity_admin.schemas.entity import EntityConfiguration
from entity_admin.services.api_client import ApiClient, TokenProvider
from entity_admin.services.data_access import DataAccessOrchestrator
from entity_admin.services.entity_registry import EntityRegistry
from entity_admin.services.entity_session import EntitySession
from entity_admin.services.result_cache import ResultCache
from entity_admin.services.schema_transformer import SchemaTransformer

logger = logging.getLogger(__name__)


class EntityAdminEngine:
    """Wires the engine's components together for one remote admin API."""

    def __init__(
        self,
        api_client: ApiClient,
        registry: Optional[EntityRegistry] = None,
        cache: Optional[ResultCache] = None,
        schema_endpoint_template: Optional[str] = None,
    ):
        self.api_client = api_client
        self.registry = registry if registry is not None else EntityRegistry()
        self.cache = cache or ResultCache()
        self.transformer = SchemaTransformer(self.registry, api_client, schema_endpoint_template)
        self.orchestrator = DataAccessOrchestrator(api_client)

    @classmethod
    def from_settings(
        cls,
        token_provider: Optional[TokenProvider] = None,
        registry: Optional[EntityRegistry] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "EntityAdminEngine":
        """Build an engine against settings.API_BASE_URL."""
        client = ApiClient(
            base_url=settings.API_BASE_URL,
            timeout=settings.API_TIMEOUT_SECONDS,
            token_provider=token_provider,
            transport=transport,
        )
        logger.info(f"Entity admin engine targeting {settings.API_BASE_URL}")
        return cls(client, registry=registry)

    def register(self, config: EntityConfiguration) -> None:
        self.registry.register(config)

    async def resolve(self, slug: str) -> EntityConfiguration:
        return await self.transformer.resolve_configuration(slug)

    def session(self, slug: str, initial_page_size: Optional[int] = None) -> EntitySession:
        """A new, not yet started, session. Use ``async with`` or ``await session.start()``."""
        return EntitySession(
            slug,
            transformer=self.transformer,
            orchestrator=self.orchestrator,
            cache=self.cache,
            initial_page_size=initial_page_size,
        )

    async def open_session(self, slug: str, initial_page_size: Optional[int] = None) -> EntitySession:
        session = self.session(slug, initial_page_size)
        await session.start()
        return session

    async def aclose(self) -> None:
        self.cache.clear()
        await self.api_client.aclose()

    async def __aenter__(self) -> "EntityAdminEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
