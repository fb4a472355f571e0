"""autotable: records persisted to SQLite with self-reconciling schemas."""

__version__ = "0.1.0"

from autotable.collection import RecordCollection
from autotable.config import AutotableConfig
from autotable.errors import (
    AutotableError,
    CodecError,
    ConfigurationError,
    JsonError,
    MissingColumnError,
    MissingTableError,
    NotFoundError,
    SchemaRepairableError,
    StateError,
    StoreError,
)
from autotable.introspect import Attribute, attributes_of
from autotable.manager import Manager
from autotable.model import Record
from autotable.storage import Store, close_all_stores, close_store, open_store, open_stores
from autotable.types import (
    UNSAVED_ID,
    Field,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    JsonCodable,
    Width,
)

__all__ = [
    "__version__",
    "Record",
    "RecordCollection",
    "Manager",
    "Field",
    "Width",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "Float64",
    "JsonCodable",
    "UNSAVED_ID",
    "Attribute",
    "attributes_of",
    "AutotableConfig",
    "Store",
    "open_store",
    "close_store",
    "close_all_stores",
    "open_stores",
    "AutotableError",
    "ConfigurationError",
    "NotFoundError",
    "StoreError",
    "SchemaRepairableError",
    "MissingTableError",
    "MissingColumnError",
    "CodecError",
    "StateError",
    "JsonError",
]
