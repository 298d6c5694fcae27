"""
Entity Registry

Maps entity slugs to their configurations. Registration replaces the whole
mapping entry under a lock, so readers never see a half-written configuration.
"""

import logging
from threading import Lock
from typing import Dict, List, Optional

from entity_admin.schemas.entity import EntityConfiguration

logger = logging.getLogger(__name__)


class EntityRegistry:
    """
    Registry of statically defined entity configurations.

    The composition root owns an instance and passes it to the schema
    transformer and session factory.
    """

    def __init__(self, configs: Optional[List[EntityConfiguration]] = None):
        self._entities: Dict[str, EntityConfiguration] = {}
        self._lock = Lock()
        for config in configs or []:
            self.register(config)

    def register(self, config: EntityConfiguration) -> None:
        """Store ``config`` under its slug, overwriting any previous entry."""
        with self._lock:
            replaced = config.slug in self._entities
            self._entities[config.slug] = config
        logger.info(f"{'Re-registered' if replaced else 'Registered'} entity: {config.slug}")

    def get(self, slug: str) -> Optional[EntityConfiguration]:
        """Return the configuration for ``slug`` or None if it is not registered."""
        with self._lock:
            return self._entities.get(slug)

    def has(self, slug: str) -> bool:
        with self._lock:
            return slug in self._entities

    def unregister(self, slug: str) -> bool:
        """Remove ``slug``. Returns False if it was not registered."""
        with self._lock:
            removed = self._entities.pop(slug, None) is not None
        if removed:
            logger.info(f"Unregistered entity: {slug}")
        return removed

    def all(self) -> List[EntityConfiguration]:
        """All registered configurations in registration order."""
        with self._lock:
            return list(self._entities.values())

    def slugs(self) -> List[str]:
        with self._lock:
            return list(self._entities.keys())

    def __contains__(self, slug: str) -> bool:
        return self.has(slug)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)


# Default registry for application code that does not build its own
_registry = EntityRegistry()


def get_default_registry() -> EntityRegistry:
    return _registry


def register_entity(config: EntityConfiguration) -> None:
    """Register a configuration in the default registry."""
    _registry.register(config)


def get_entity_config(slug: str) -> Optional[EntityConfiguration]:
    """Look up a configuration in the default registry."""
    return _registry.get(slug)
