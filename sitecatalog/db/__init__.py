from sitecatalog.db.database import (
    Base,
    build_engine,
    commit_or_flush,
    create_tables,
    get_db,
    init_db,
    storage_errors,
    transaction,
)

__all__ = [
    "Base",
    "build_engine",
    "commit_or_flush",
    "create_tables",
    "get_db",
    "init_db",
    "storage_errors",
    "transaction",
]
