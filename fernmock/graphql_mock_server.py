"""
Copyright (c) 2025 Eric C. Mumford (@heymumford)
This file is part of Fern Mocks, licensed under the MIT License.
See LICENSE file for details.
"""

"""
Mock server for the Fern PM-connector GraphQL API.

This module emulates the connector-management operations of the Fern GraphQL
API (create/read/update connectors and their field mappings) over a single
POST endpoint. It does not parse GraphQL: the operation is chosen by name,
either from the request's ``operationName`` or from the name of the first
top-level operation definition in the query text, and its arguments are read
from ``variables``.
"""

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from fernmock.base_mock_server import BaseMockServer
from fernmock.core.config import ServerConfig
from fernmock.core.logging import get_logger
from fernmock.exceptions import (
    MalformedRequestError,
    MethodNotAllowedError,
    NotFoundError,
    UnknownOperationError,
)
from fernmock.models import (
    ConnectorStatus,
    FieldMapping,
    HealthStatus,
    MockRequest,
    MockResponse,
    PMConnector,
)

logger = get_logger("fernmock.graphql_mock_server")

# Requirement count reported after every sync
MOCK_REQUIREMENT_COUNT = 42

SYNC_INTERVALS = {
    "HOURLY": timedelta(hours=1),
    "DAILY": timedelta(days=1),
    "WEEKLY": timedelta(weeks=1),
}

# Block strings, plain strings and comments, matched left to right
_IGNORED_TEXT = re.compile(r'"""(?:\\"""|[^"]|"(?!""))*"""|"(?:\\.|[^"\\\n])*"|#[^\n]*')
_OPERATION_DEFINITION = re.compile(r"\b(query|mutation|subscription)\s+([_A-Za-z][_0-9A-Za-z]*)")
_CURSOR = re.compile(r"^cursor_(\d+)$")
_CONNECTOR_ID = re.compile(r"^conn_(\d+)$")


def operation_name_from_query(query: str) -> str | None:
    """
    Return the name of the first top-level operation definition in a query.

    Comments and string literals are ignored and only definitions at brace
    depth zero count, so a name mentioned in a comment, a string, a fragment
    body or a selection set never matches.

    Args:
        query: GraphQL document text

    Returns:
        The operation name, or None for anonymous or unparsable documents
    """
    text = _IGNORED_TEXT.sub("", query)
    depth = 0
    position = 0
    for match in _OPERATION_DEFINITION.finditer(text):
        segment = text[position:match.start()]
        depth += segment.count("{") - segment.count("}")
        position = match.start()
        if depth == 0:
            return match.group(2)
    return None


def _require(variables: dict[str, Any], key: str, kind: type) -> Any:
    value = variables.get(key)
    if not isinstance(value, kind):
        raise MalformedRequestError(f"Missing or invalid variable '{key}'")
    return value


def _string_or_default(variables: dict[str, Any], key: str, default: str) -> str:
    value = variables.get(key)
    return value if isinstance(value, str) and value else default


def _order_or_default(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default


class GraphQLMockServer(BaseMockServer):
    """Mock server for the Fern PM-connector GraphQL API."""

    name = "graphql"
    routes = [
        ("POST", "/", "Operations dispatched by name"),
    ]

    def __init__(self, server_config: ServerConfig | None = None):
        """Initialize the mock server with no connectors."""
        self.connectors: list[PMConnector] = []
        self.mappings: dict[str, list[FieldMapping]] = {}
        self._next_connector_number = 1
        self.operations: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
            "GetPMConnectors": self._handle_get_connectors,
            "CreatePMConnector": self._handle_create_connector,
            "SetPMConnectorCredentials": self._handle_set_credentials,
            "TestPMConnection": self._handle_test_connection,
            "SyncPMConnector": self._handle_sync_connector,
            "GetConnectorMappings": self._handle_get_mappings,
            "UpdateFieldMappings": self._handle_update_mappings,
        }
        super().__init__(server_config)

    # Public helpers for scenario setup and assertions

    def add_connector(self, connector: PMConnector | dict[str, Any]) -> PMConnector:
        """
        Add a pre-existing connector.

        Args:
            connector: Connector record or its JSON form

        Returns:
            The stored connector

        Raises:
            ValueError: If a connector with the same id already exists
        """
        if isinstance(connector, dict):
            connector = PMConnector.model_validate(connector)

        with self._lock:
            if self._find_connector(connector.id) is not None:
                raise ValueError(f"Connector {connector.id} already exists")
            self.connectors.append(connector)
            # Keep generated ids ahead of any seeded conn_<n>
            match = _CONNECTOR_ID.match(connector.id)
            if match:
                self._next_connector_number = max(
                    self._next_connector_number, int(match.group(1)) + 1
                )
        logger.info(f"Added connector {connector.id}")
        return connector

    def get_connectors(self) -> list[PMConnector]:
        with self._lock:
            return list(self.connectors)

    def get_connector(self, connector_id: str) -> PMConnector | None:
        with self._lock:
            return self._find_connector(connector_id)

    def get_mappings(self, connector_id: str) -> list[FieldMapping]:
        with self._lock:
            return list(self.mappings.get(connector_id, []))

    def reset(self) -> None:
        """Clear connectors, mappings and the request log; ids keep increasing."""
        with self._lock:
            self.connectors = []
            self.mappings = {}
            super().reset()

    # Request pipeline

    def _format_error(self, message: str) -> dict[str, Any]:
        return {"errors": [{"message": message}]}

    def _route(self, request: MockRequest) -> MockResponse | None:
        if request.method != "POST":
            canned = self._canned_response(request)
            if canned is not None:
                return canned
            raise MethodNotAllowedError("Method not allowed")

        try:
            payload = request.json()
        except ValueError:
            raise MalformedRequestError("Invalid request body") from None
        if not isinstance(payload, dict):
            raise MalformedRequestError("Invalid request body")

        operation = self._resolve_operation(payload)
        handler = self.operations.get(operation or "")
        if handler is None:
            raise UnknownOperationError("Unknown operation")

        variables = payload.get("variables") or {}
        if not isinstance(variables, dict):
            raise MalformedRequestError("Invalid request body")

        logger.debug(f"Dispatching GraphQL operation {operation}")
        return self._json({"data": handler(variables)})

    def _resolve_operation(self, payload: dict[str, Any]) -> str | None:
        operation_name = payload.get("operationName")
        if isinstance(operation_name, str) and operation_name:
            return operation_name
        query = payload.get("query")
        if isinstance(query, str):
            return operation_name_from_query(query)
        return None

    def _find_connector(self, connector_id: str) -> PMConnector | None:
        return next((c for c in self.connectors if c.id == connector_id), None)

    def _get_connector_or_404(self, connector_id: str) -> PMConnector:
        connector = self._find_connector(connector_id)
        if connector is None:
            raise NotFoundError("Connector not found")
        return connector

    def _connector_node(self, connector: PMConnector) -> dict[str, Any]:
        node = connector.to_json_dict()
        node["fieldMappings"] = [m.to_json_dict() for m in self.mappings.get(connector.id, [])]
        return node

    # Operations

    def _handle_get_connectors(self, variables: dict[str, Any]) -> dict[str, Any]:
        total = len(self.connectors)

        start = 0
        after = variables.get("after")
        if after is not None:
            match = _CURSOR.match(after) if isinstance(after, str) else None
            if match is None:
                raise MalformedRequestError(f"Invalid cursor '{after}'")
            start = int(match.group(1)) + 1

        end = total
        first = variables.get("first")
        if first is not None:
            if not isinstance(first, int) or first < 0:
                raise MalformedRequestError("Variable 'first' must be a non-negative integer")
            end = min(start + first, total)

        edges = [
            {"node": self._connector_node(self.connectors[i]), "cursor": f"cursor_{i}"}
            for i in range(start, end)
        ]
        return {
            "pmConnectors": {
                "edges": edges,
                "pageInfo": {
                    "hasNextPage": end < total,
                    "endCursor": edges[-1]["cursor"] if edges else None,
                },
                "totalCount": total,
            }
        }

    def _handle_create_connector(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector_input = _require(variables, "input", dict)

        connector = PMConnector(
            id=f"conn_{self._next_connector_number}",
            name=_require(connector_input, "name", str),
            type=_require(connector_input, "type", str),
            base_url=_require(connector_input, "baseURL", str),
            sync_interval=_string_or_default(connector_input, "syncInterval", "DAILY"),
        )
        self._next_connector_number += 1
        self.connectors.append(connector)

        logger.info(f"Created connector {connector.id} ({connector.name})")
        return {"createPMConnector": connector.to_json_dict()}

    def _handle_set_credentials(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector = self._get_connector_or_404(_require(variables, "connectorID", str))
        connector.has_credentials = True
        return {"setPMConnectorCredentials": connector.to_json_dict()}

    def _handle_test_connection(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector = self._get_connector_or_404(_require(variables, "id", str))
        connector.health_status = HealthStatus.HEALTHY
        connector.last_health_check = datetime.now(timezone.utc)
        return {"testPMConnection": HealthStatus.HEALTHY.value}

    def _handle_sync_connector(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector = self._get_connector_or_404(_require(variables, "id", str))

        now = datetime.now(timezone.utc)
        connector.last_sync_at = now
        interval = SYNC_INTERVALS.get(connector.sync_interval)
        connector.next_sync_at = now + interval if interval else None
        connector.requirement_count = MOCK_REQUIREMENT_COUNT
        connector.status = ConnectorStatus.ACTIVE

        return {
            "syncPMConnector": {
                "id": connector.id,
                "status": "COMPLETED",
                "itemsProcessed": MOCK_REQUIREMENT_COUNT,
                "itemsFailed": 0,
            }
        }

    def _handle_get_mappings(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector = self._get_connector_or_404(_require(variables, "id", str))
        mappings = self.mappings.get(connector.id, [])
        return {
            "pmConnector": {
                "id": connector.id,
                "fieldMappings": [m.to_json_dict() for m in mappings],
            }
        }

    def _handle_update_mappings(self, variables: dict[str, Any]) -> dict[str, Any]:
        connector = self._get_connector_or_404(_require(variables, "connectorID", str))
        mappings_input = _require(variables, "mappings", list)

        mappings = []
        for i, mapping_input in enumerate(mappings_input):
            if not isinstance(mapping_input, dict):
                raise MalformedRequestError(f"Mapping {i} must be an object")
            is_active = mapping_input.get("isActive")
            mappings.append(
                FieldMapping(
                    id=f"mapping_{i + 1}",
                    source_path=_require(mapping_input, "sourcePath", str),
                    target_field=_require(mapping_input, "targetField", str),
                    transform_type=_string_or_default(mapping_input, "transformType", "DIRECT"),
                    transform_config=mapping_input.get("transformConfig"),
                    is_active=is_active if isinstance(is_active, bool) else True,
                    order=_order_or_default(mapping_input.get("order"), i),
                )
            )

        self.mappings[connector.id] = mappings

        # A connector is only active with both credentials and mappings
        if connector.has_credentials and mappings:
            connector.status = ConnectorStatus.ACTIVE
        elif not mappings:
            connector.status = ConnectorStatus.INACTIVE

        logger.info(f"Replaced {len(mappings)} field mappings on {connector.id}")
        return {
            "updateFieldMappings": {
                "id": connector.id,
                "fieldMappings": [m.to_json_dict() for m in mappings],
            }
        }
