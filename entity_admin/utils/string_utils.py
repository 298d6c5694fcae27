# Utility helpers for consistent string manipulation across the codebase

import re

__all__ = ["canonical_key", "pluralize"]


def canonical_key(name: str) -> str:
    """Return a canonical key for column ids derived from a header.

    The key is:
      * lower-cased
      * whitespace condensed to a single underscore
      * hyphens converted to underscores
      * leading/trailing whitespace removed
      * non-alphanumeric characters (except underscore) stripped

    "Created At" and "created-at" both become ``created_at``.
    """
    if not isinstance(name, str):
        raise TypeError("canonical_key expects a string input")

    key = name.strip().lower()
    key = re.sub(r"[\s\-]+", "_", key)
    key = re.sub(r"[^a-z0-9_]", "", key)

    return key


def pluralize(name: str) -> str:
    """Naive plural used when a schema omits pluralName."""
    return f"{name}s"
