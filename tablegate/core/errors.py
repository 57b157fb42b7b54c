from typing import Iterable, Optional


class TableGateError(Exception):
    """Base exception for engine errors."""

    status_code = 500


class StorageUnavailable(TableGateError):
    """No connection could be obtained, or the catalog could not be read."""


class QueryRejected(TableGateError):
    """The database refused a statement (syntax, missing object)."""


class UnknownTable(QueryRejected):
    """The table is not in the database catalog."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Unknown table: {table_name}")


class StorageRejected(TableGateError):
    """The database refused a mutation (constraint violation etc.)."""


class ColumnMismatch(TableGateError):
    """Payload columns do not match the target table."""

    status_code = 400

    def __init__(
        self,
        missing: Optional[Iterable[str]] = None,
        unexpected: Optional[Iterable[str]] = None,
    ):
        self.missing = list(missing or [])
        self.unexpected = list(unexpected or [])

        parts = []
        if self.missing:
            parts.append(f"Missing required columns: {', '.join(self.missing)}")
        if self.unexpected:
            parts.append(f"Invalid columns: {', '.join(self.unexpected)}")
        super().__init__("; ".join(parts) or "No columns given")


class NoPrimaryKey(TableGateError):
    """The table declares no primary key, so rows cannot be targeted."""

    status_code = 400

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"No primary key found for table {table_name}")
