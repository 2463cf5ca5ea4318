from .offline_store import OfflineCatalogStore
from .postgrest_store import PostgrestCatalogStore

__all__ = ["OfflineCatalogStore", "PostgrestCatalogStore"]
