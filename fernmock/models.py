"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with wire aliases and JSON-safe values."""
        return self.model_dump(by_alias=True, mode="json")


class MockRequest(CamelModel):
    """An inbound request as recorded by the ledger."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    method: str
    path: str
    query: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    received_at: datetime = Field(default_factory=datetime.now)

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def json(self) -> Any:
        """Decode the body as JSON; raises ValueError when it is not JSON."""
        return json.loads(self.body.decode("utf-8"))


class MockResponse(CamelModel):
    """A response produced by a handler or registered as a canned response."""

    status_code: int = 200
    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    delay: float = Field(default=0.0, ge=0.0)


class ConnectorStatus(str, Enum):
    """Lifecycle status of a PM connector."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class HealthStatus(str, Enum):
    """Result of the most recent connection test."""

    HEALTHY = "HEALTHY"
    UNHEALTHY = "UNHEALTHY"
    UNKNOWN = "UNKNOWN"


class FieldMapping(CamelModel):
    """Maps a field of the external PM tool onto a Fern requirement field."""

    id: str
    source_path: str
    target_field: str
    transform_type: str = "DIRECT"
    transform_config: Any = None
    is_active: bool = True
    order: int = 0


class PMConnector(CamelModel):
    """A configured link from Fern to an external PM tool."""

    id: str
    name: str
    type: str
    base_url: str = Field(alias="baseURL")
    status: ConnectorStatus = ConnectorStatus.INACTIVE
    health_status: HealthStatus = HealthStatus.UNKNOWN
    last_health_check: datetime | None = None
    sync_interval: str = "DAILY"
    last_sync_at: datetime | None = None
    next_sync_at: datetime | None = None
    requirement_count: int = 0
    has_credentials: bool = False
    can_manage: bool = True


class JiraProject(CamelModel):
    """A JIRA project as returned by /rest/api/2/project."""

    id: str
    key: str
    name: str
    project_type_key: str = "software"


class JiraUser(CamelModel):
    account_id: str
    email_address: str
    display_name: str


class JiraFieldSchema(BaseModel):
    type: str
    items: str | None = None
    system: str | None = None


class JiraField(CamelModel):
    """A JIRA field definition as returned by /rest/api/2/field."""

    id: str
    name: str
    custom: bool = False
    navigable: bool = True
    searchable: bool = True
    clause_names: list[str] = Field(default_factory=list)
    field_schema: JiraFieldSchema = Field(alias="schema")

    def to_json_dict(self) -> dict[str, Any]:
        data = super().to_json_dict()
        # omitempty on the schema's optional keys
        data["schema"] = self.field_schema.model_dump(exclude_none=True)
        return data
