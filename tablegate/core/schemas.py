from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Values a client may send for a single column
Scalar = Optional[Union[bool, int, float, str]]

# Column name -> value, shaped by whatever table it was read from
Row = Dict[str, Any]


# =========================
# CATALOG
# =========================
class TableInfo(BaseModel):
    name: str
    columns: List[str]
    primary_key: Optional[str] = None


# =========================
# READS
# =========================
class TableSnapshot(BaseModel):
    """One table and every row in it, as returned by /all-data."""

    table_name: str = Field(alias="tableName")
    rows: List[Row] = Field(default_factory=list, alias="data")

    model_config = ConfigDict(populate_by_name=True)


# =========================
# MUTATIONS
# =========================
class CreateDataRequest(BaseModel):
    table_name: str = Field(alias="tableName", min_length=1)
    data: Dict[str, Scalar]

    model_config = ConfigDict(populate_by_name=True)


class UpdateDataRequest(BaseModel):
    table_name: str = Field(alias="tableName", min_length=1)
    id: Union[int, str]
    data: Dict[str, Scalar]

    model_config = ConfigDict(populate_by_name=True)


class DeleteDataRequest(BaseModel):
    table_name: str = Field(alias="tableName", min_length=1)
    id: Union[int, str]

    model_config = ConfigDict(populate_by_name=True)


class MutationResult(BaseModel):
    table_name: str
    operation: str
    # Zero for an update/delete whose identifier matched nothing
    affected_rows: int


class MessageResponse(BaseModel):
    message: str
