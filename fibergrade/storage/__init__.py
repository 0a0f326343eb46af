# fibergrade/storage/__init__.py
from .image_cache import ImageCache, is_data_url, to_data_url
from .kv_store import InMemoryStore, KeyValueStore

__all__ = ["ImageCache", "InMemoryStore", "KeyValueStore", "is_data_url", "to_data_url"]
