"""Storage module for persisting registry state."""

from folio.storage.database import RegistryDatabase, get_registry_db

__all__ = ["RegistryDatabase", "get_registry_db"]
