"""HTTP client for the studio REST API.

    client = StudioClient("http://localhost:3000", user_id="u-123")
    node = client.get_node("web-search")

Every non-2xx response is raised as an ApiError subclass whose message is
the server's ``error`` string, or a generic message when it sent none.
"""

from __future__ import annotations

import logging
import os
from typing import Any
from urllib.parse import quote

import httpx

from studio.errors import (
    ApiError,
    AuthError,
    ConflictError,
    NetworkOrServerError,
    NotFoundError,
    PermissionDeniedError,
)
from studio.models.graph import ForkResult, Graph, GraphInfo
from studio.models.library import (
    Document,
    DocumentChunk,
    Library,
    LibraryCreate,
    LibraryUpdate,
    ProcessingStatusReport,
    SearchResult,
)
from studio.models.namespace import Namespace, NamespaceCreate, StateValue
from studio.models.neuron import NeuronInfo
from studio.models.node import NodeDefinition, NodeList
from studio.models.tool import ToolListing

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("STUDIO_API_URL", "http://localhost:3000")
API_PREFIX = "/api/v1"


def _segment(value: Any) -> str:
    """Escape one URL path segment."""
    return quote(str(value), safe="")

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    401: AuthError,
    403: PermissionDeniedError,
    404: NotFoundError,
    409: ConflictError,
}


def error_from_response(response: httpx.Response, fallback: str) -> ApiError:
    """Build the ApiError for a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = fallback
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        message = body["error"]

    error_class = _STATUS_ERRORS.get(response.status_code, NetworkOrServerError)
    return error_class(message, status_code=response.status_code)


class StudioClient:
    """Thin wrapper over the studio REST endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        user_id: str | None = None,
        token: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the studio host
            timeout: HTTP request timeout in seconds
            user_id: Sent as ``X-User-Id`` when given
            token: Sent as a bearer token when given
            transport: Custom httpx transport (tests use MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_id = user_id
        self.token = token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self.base_url}{API_PREFIX}{path}"
        logger.debug("%s %s", method, url)
        try:
            with httpx.Client(
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            ) as client:
                response = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise NetworkOrServerError(
                f"Failed to connect to server at {self.base_url}: {e}"
            ) from e

        if not response.is_success:
            raise error_from_response(response, fallback)
        return response

    def _json(self, method: str, path: str, fallback: str, **kwargs: Any) -> Any:
        return self._request(method, path, fallback, **kwargs).json()

    # --- tools and neurons ---

    def list_tools(self, source: str | None = None) -> ToolListing:
        """Available tools, optionally filtered by ``source`` (global/custom)."""
        params = {"source": source} if source else None
        data = self._json("GET", "/tools", "Failed to fetch tools", params=params)
        return ToolListing.model_validate(data)

    def list_neurons(self) -> list[NeuronInfo]:
        data = self._json("GET", "/neurons", "Failed to fetch neurons")
        return [NeuronInfo.model_validate(n) for n in data.get("neurons", [])]

    # --- graphs ---

    def list_graphs(self, graph_type: str | None = None) -> list[GraphInfo]:
        params = {"graphType": graph_type} if graph_type else None
        data = self._json("GET", "/graphs", "Failed to fetch graphs", params=params)
        return [GraphInfo.model_validate(g) for g in data.get("graphs", [])]

    def create_graph(self, graph: Graph) -> Graph:
        data = self._json("POST", "/graphs", "Failed to create graph", json=graph.to_wire())
        return Graph.model_validate(data)

    def get_graph(self, graph_id: str) -> Graph:
        data = self._json("GET", f"/graphs/{_segment(graph_id)}", "Failed to fetch graph")
        return Graph.model_validate(data)

    def update_graph(self, graph: Graph) -> Graph:
        """Write back a graph's editable fields (name, nodes, edges, ...)."""
        body = graph.to_wire()
        payload = {
            key: body[key]
            for key in ("name", "description", "tags", "nodes", "edges", "config", "graphType")
            if key in body
        }
        data = self._json(
            "PATCH",
            f"/graphs/{_segment(graph.graph_id)}",
            "Failed to save graph",
            json=payload,
        )
        return Graph.model_validate(data)

    def fork_graph(
        self,
        graph_id: str,
        new_graph_id: str | None = None,
        name: str | None = None,
    ) -> ForkResult:
        body: dict[str, str] = {}
        if new_graph_id:
            body["newGraphId"] = new_graph_id
        if name:
            body["name"] = name
        data = self._json(
            "POST",
            f"/graphs/{_segment(graph_id)}/fork",
            "Failed to fork graph",
            json=body,
        )
        return ForkResult.model_validate(data)

    def delete_graph(self, graph_id: str) -> None:
        self._request("DELETE", f"/graphs/{_segment(graph_id)}", "Failed to delete graph")

    # --- nodes ---

    def list_nodes(
        self,
        query: str | None = None,
        tags: list[str] | None = None,
        owner: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> NodeList:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if query:
            params["q"] = query
        if tags:
            params["tags"] = ",".join(tags)
        if owner:
            params["owner"] = owner
        data = self._json("GET", "/nodes", "Failed to fetch nodes", params=params)
        return NodeList.model_validate(data)

    def get_node(self, node_id: str) -> NodeDefinition:
        data = self._json("GET", f"/nodes/{_segment(node_id)}", "Failed to fetch node")
        return NodeDefinition.model_validate(data)

    def create_node(self, payload: dict[str, Any]) -> NodeDefinition:
        data = self._json("POST", "/nodes", "Failed to create node", json=payload)
        return NodeDefinition.model_validate(data)

    def update_node(self, node_id: str, payload: dict[str, Any]) -> NodeDefinition:
        """Full replace of a node's editable fields."""
        data = self._json(
            "PUT",
            f"/nodes/{_segment(node_id)}",
            "Failed to update node",
            json=payload,
        )
        return NodeDefinition.model_validate(data)

    # --- libraries ---

    def list_libraries(self) -> list[Library]:
        data = self._json("GET", "/libraries", "Failed to fetch libraries")
        return [Library.model_validate(lib) for lib in data.get("libraries", [])]

    def create_library(self, library: LibraryCreate) -> Library:
        data = self._json("POST", "/libraries", "Failed to create library", json=library.to_wire())
        return Library.model_validate(data.get("library", data))

    def get_library(self, library_id: str) -> Library:
        data = self._json("GET", f"/libraries/{_segment(library_id)}", "Failed to fetch library")
        return Library.model_validate(data.get("library", data))

    def update_library(self, library_id: str, update: LibraryUpdate) -> Library:
        data = self._json(
            "PATCH",
            f"/libraries/{_segment(library_id)}",
            "Failed to update library",
            json=update.to_wire(),
        )
        return Library.model_validate(data.get("library", data))

    def delete_library(self, library_id: str) -> None:
        self._request("DELETE", f"/libraries/{_segment(library_id)}", "Failed to delete library")

    def add_document(
        self,
        library_id: str,
        title: str,
        content: str | None = None,
        url: str | None = None,
    ) -> Document:
        """Add a text or URL document; processing continues on the server."""
        body: dict[str, Any] = {"title": title, "sourceType": "url" if url else "text"}
        if content is not None:
            body["content"] = content
        if url is not None:
            body["source"] = url
        data = self._json(
            "POST",
            f"/libraries/{_segment(library_id)}/documents",
            "Failed to add document",
            json=body,
        )
        return Document.model_validate(data.get("document", data))

    def upload_document(
        self,
        library_id: str,
        filename: str,
        content: bytes,
        mime_type: str = "application/octet-stream",
    ) -> Document:
        files = {"file": (filename, content, mime_type)}
        data = self._json(
            "POST",
            f"/libraries/{_segment(library_id)}/upload",
            "Failed to upload file",
            files=files,
        )
        return Document.model_validate(data.get("document", data))

    def delete_document(self, library_id: str, document_id: str) -> None:
        self._request(
            "DELETE",
            f"/libraries/{_segment(library_id)}/documents",
            "Failed to delete document",
            params={"documentId": document_id},
        )

    def get_document_chunks(self, library_id: str, document_id: str) -> list[DocumentChunk]:
        data = self._json(
            "GET",
            f"/libraries/{_segment(library_id)}/documents/{_segment(document_id)}/chunks",
            "Failed to fetch chunks",
        )
        return [DocumentChunk.model_validate(c) for c in data.get("chunks", [])]

    def get_document_full(self, library_id: str, document_id: str) -> dict[str, Any]:
        return self._json(
            "GET",
            f"/libraries/{_segment(library_id)}/documents/{_segment(document_id)}/full",
            "Failed to fetch document",
        )

    def download_document_file(self, library_id: str, document_id: str) -> bytes:
        response = self._request(
            "GET",
            f"/libraries/{_segment(library_id)}/documents/{_segment(document_id)}/file",
            "Failed to download file",
        )
        return response.content

    def get_processing_status(self, library_id: str, document_id: str) -> ProcessingStatusReport:
        data = self._json(
            "GET",
            f"/libraries/{_segment(library_id)}/documents/{_segment(document_id)}/process",
            "Failed to fetch processing status",
        )
        return ProcessingStatusReport.model_validate(data)

    def reprocess_document(self, library_id: str, document_id: str) -> ProcessingStatusReport:
        data = self._json(
            "POST",
            f"/libraries/{_segment(library_id)}/documents/{_segment(document_id)}/process",
            "Failed to start processing",
        )
        return ProcessingStatusReport.model_validate(data)

    def search_library(self, library_id: str, query: str, limit: int = 5) -> list[SearchResult]:
        data = self._json(
            "POST",
            f"/libraries/{_segment(library_id)}/search",
            "Search failed",
            json={"query": query, "limit": limit},
        )
        return [SearchResult.model_validate(r) for r in data.get("results", [])]

    # --- state namespaces ---

    def list_namespaces(self) -> list[Namespace]:
        data = self._json("GET", "/state/namespaces", "Failed to list namespaces")
        return [Namespace.model_validate(ns) for ns in data.get("namespaces", [])]

    def create_namespace(self, namespace: str, description: str | None = None) -> Namespace:
        # raises pydantic.ValidationError before any request for a bad name
        body = NamespaceCreate(namespace=namespace, description=description)
        data = self._json(
            "POST", "/state/namespaces", "Failed to create namespace", json=body.to_wire()
        )
        return Namespace.model_validate(data)

    def get_namespace(self, namespace: str) -> Namespace:
        data = self._json(
            "GET",
            f"/state/namespaces/{_segment(namespace)}",
            "Failed to fetch namespace",
        )
        return Namespace.model_validate(data)

    def delete_namespace(self, namespace: str) -> None:
        self._request(
            "DELETE",
            f"/state/namespaces/{_segment(namespace)}",
            "Failed to delete namespace",
        )

    def list_values(self, namespace: str) -> dict[str, Any]:
        data = self._json(
            "GET", f"/state/namespaces/{_segment(namespace)}/values", "Failed to fetch values"
        )
        return data.get("values", {})

    def get_value(self, namespace: str, key: str) -> Any:
        data = self._json(
            "GET",
            f"/state/namespaces/{_segment(namespace)}/values/{_segment(key)}",
            "Failed to fetch value",
        )
        return data.get("value")

    def set_value(
        self,
        namespace: str,
        key: str,
        value: Any,
        description: str | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        entry = StateValue(key=key, value=value, description=description, ttl_seconds=ttl_seconds)
        body = entry.model_dump(mode="json", by_alias=True, exclude_none=True)
        body["value"] = entry.value
        self._request(
            "POST",
            f"/state/namespaces/{_segment(namespace)}/values",
            "Failed to set value",
            json=body,
        )

    def update_value(
        self,
        namespace: str,
        key: str,
        value: Any,
        description: str | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        body: dict[str, Any] = {"value": value}
        if description is not None:
            body["description"] = description
        if ttl_seconds is not None:
            body["ttlSeconds"] = ttl_seconds
        self._request(
            "PUT",
            f"/state/namespaces/{_segment(namespace)}/values/{_segment(key)}",
            "Failed to update value",
            json=body,
        )

    def delete_value(self, namespace: str, key: str) -> None:
        self._request(
            "DELETE",
            f"/state/namespaces/{_segment(namespace)}/values/{_segment(key)}",
            "Failed to delete value",
        )
