"""
Data source configuration domain model.
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class DataSourceConfig(BaseModel):
    """
    Domain model for the data source connection.

    The DSN is either an ODBC connection string
    ("DRIVER={ODBC Driver 18 for SQL Server};SERVER=...;UID=...;PWD=...")
    or a SQLite URL ("sqlite:///reports.db").
    """

    model_config = ConfigDict(frozen=True)

    dsn: SecretStr = Field(SecretStr(""), description="Data source name / connection string")
    connect_timeout: int = Field(30, description="Seconds to wait when connecting", ge=1, le=600)

    @field_validator("dsn", mode="before")
    @classmethod
    def coerce_dsn(cls, v):
        if v is None:
            return ""
        return v

    def get_dsn(self) -> str:
        """Get the plain text DSN."""
        return self.dsn.get_secret_value()  # pylint: disable=no-member

    def problems(self) -> Dict[str, str]:
        problems: Dict[str, str] = {}
        if not self.get_dsn().strip():
            problems["dsn"] = "must not be empty"
        return problems
