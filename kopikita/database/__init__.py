"""Schema description cache."""

from kopikita.database.schema import SchemaCache

__all__ = ["SchemaCache"]
