from pymongo import MongoClient

_client = None
_db = None
_store = None


def init_mongo(app):
    global _client, _db
    mongo_uri = app.config["MONGO_URI"]
    _client = MongoClient(mongo_uri)

    # get_default_database() extracts the DB name from the URI (e.g. /splitledger)
    _db = _client.get_default_database(default="splitledger")

    app.logger.info("[MongoDB] Connected to database: %s", _db.name)
    return _db


def get_db():
    """Get the database instance. Must be called after init_mongo."""
    return _db


def get_client():
    """Get the MongoDB client instance. Must be called after init_mongo."""
    return _client


def set_store(store):
    global _store
    _store = store


def get_store():
    """Get the ledger store the services read and write through."""
    if _store is None:
        raise RuntimeError("Store not initialized. Call create_app first.")
    return _store


class _DBProxy:
    def __getattr__(self, name):
        if _db is None:
            raise RuntimeError("Database not initialized. Call init_mongo first.")
        return getattr(_db, name)

    def __getitem__(self, name):
        if _db is None:
            raise RuntimeError("Database not initialized. Call init_mongo first.")
        return _db[name]

    def __bool__(self):
        return _db is not None


db = _DBProxy()
