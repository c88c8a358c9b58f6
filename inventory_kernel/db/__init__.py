"""Database layer - engine, base classes, types."""

from inventory_kernel.db.base import Base, TrackedBase, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_config,
    init_engine_from_url,
    session_scope,
)
from inventory_kernel.db.types import Cost, PayloadHash, Quantity

__all__ = [
    "init_engine_from_url",
    "init_engine_from_config",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "Quantity",
    "Cost",
    "PayloadHash",
]
