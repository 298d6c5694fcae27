"""
Built-in entity configurations.
"""

from typing import List

from entity_admin.schemas.entity import EntityConfiguration
from entity_admin.services.entity_registry import EntityRegistry

from .users import build_users_config


def builtin_entities() -> List[EntityConfiguration]:
    return [build_users_config()]


def register_builtin_entities(registry: EntityRegistry) -> EntityRegistry:
    """Register every built-in configuration in ``registry``."""
    for config in builtin_entities():
        registry.register(config)
    return registry


__all__ = ['build_users_config', 'builtin_entities', 'register_builtin_entities']
