from flask import current_app

from .base import ScoreStorage

EXTENSION_KEY = 'tiedrop.storage'


def build_storage(app) -> ScoreStorage:
    backend = (app.config.get('STORAGE_BACKEND') or 'sql').lower()
    if backend == 'memory':
        from .memory import MemoryStorage
        return MemoryStorage()
    if backend == 'sql':
        from .sql import SqlStorage
        return SqlStorage()
    if backend == 'mongo':
        from pymongo import MongoClient
        from .mongo import MongoStorage
        client = MongoClient(app.config['MONGO_URI'])
        return MongoStorage(client[app.config.get('MONGO_DB_NAME') or 'tiedrop'])
    raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}")


def get_storage() -> ScoreStorage:
    return current_app.extensions[EXTENSION_KEY]
