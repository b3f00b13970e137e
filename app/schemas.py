from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ConnectionRequest(BaseModel):
    """
    Bare connection descriptor as sent by the dashboard.

    Fields are optional at the schema level so that missing values surface
    as the gateway's own 400 "Missing required fields" rather than a 422.
    `type` is accepted as an alias of `engine`.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    engine: Optional[str] = Field(default=None, alias="type")
    host: Optional[str] = None
    port: Optional[Union[int, str]] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None

    def descriptor_fields(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
        }


class QuerySqlRequest(ConnectionRequest):
    sql: Optional[str] = None
    # Anything non-numeric (or non-finite) resolves to the fallback cap
    limit: Optional[Any] = None


class ColumnsRequest(ConnectionRequest):
    table: Optional[str] = None

    def descriptor_fields(self) -> Dict[str, Any]:
        return {**super().descriptor_fields(), "table": self.table}


class FilterRuleModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field: Optional[str] = None
    op: Optional[str] = None
    value: Optional[Any] = None
    value2: Optional[Any] = None


class TableQueryRequest(ColumnsRequest):
    columns: Optional[List[str]] = None
    limit: Optional[Any] = None
    filters: List[FilterRuleModel] = Field(default_factory=list)


class ColumnModel(BaseModel):
    name: str
    type: str
    nullable: bool


class ColumnsResponse(BaseModel):
    columns: List[ColumnModel] = Field(default_factory=list)


class PingResponse(BaseModel):
    ok: bool
    message: str


class ErrorResponse(BaseModel):
    error: str
    code: Optional[str] = None
