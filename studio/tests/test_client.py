"""Tests for the REST client, using an in-memory httpx transport."""

import json

import httpx
import pytest
from pydantic import ValidationError

from studio.errors import (
    AuthError,
    ConflictError,
    NetworkOrServerError,
    NotFoundError,
    PermissionDeniedError,
)
from studio.sdk.client import StudioClient


def _client(handler, **kwargs):
    return StudioClient(
        "http://studio.test",
        user_id="u-1",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestRequests:
    """Test request shapes and response parsing."""

    def test_list_nodes(self):
        """Query parameters and headers should be sent; camelCase parsed."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["headers"] = request.headers
            return httpx.Response(200, json={
                "nodes": [{"nodeId": "web-search", "name": "Web Search", "isSystem": True}],
                "total": 1,
                "availableTags": ["research"],
            })

        result = _client(handler, token="secret").list_nodes(query="web", tags=["research", "web"])

        assert seen["path"] == "/api/v1/nodes"
        assert seen["params"] == {"limit": "50", "offset": "0", "q": "web", "tags": "research,web"}
        assert seen["headers"]["X-User-Id"] == "u-1"
        assert seen["headers"]["Authorization"] == "Bearer secret"
        assert result.nodes[0].node_id == "web-search"
        assert result.nodes[0].is_system
        assert result.available_tags == ["research"]

    def test_update_node_uses_put(self):
        """Node updates are full replaces."""
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"nodeId": "n1", "name": "N"})

        node = _client(handler).update_node("n1", {"name": "N", "steps": []})
        assert seen["method"] == "PUT"
        assert seen["path"] == "/api/v1/nodes/n1"
        assert seen["body"] == {"name": "N", "steps": []}
        assert node.node_id == "n1"

    def test_get_library_wrapped(self):
        """Library responses may be wrapped in a ``library`` key."""

        def handler(request):
            return httpx.Response(200, json={"library": {"libraryId": "lib1", "name": "Docs"}})

        assert _client(handler).get_library("lib1").library_id == "lib1"

    def test_delete_document_param(self):
        """The document id should travel as a query parameter."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"success": True})

        _client(handler).delete_document("lib1", "doc9")
        assert seen["path"] == "/api/v1/libraries/lib1/documents"
        assert seen["params"] == {"documentId": "doc9"}

    def test_fork_graph_body(self):
        """Fork options should be sent in camelCase."""
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={
                "graphId": "my-fork",
                "parentGraphId": "default-agent",
                "name": "Mine",
            })

        result = _client(handler).fork_graph("default-agent", new_graph_id="my-fork", name="Mine")
        assert seen["body"] == {"newGraphId": "my-fork", "name": "Mine"}
        assert result.parent_graph_id == "default-agent"

    def test_library_documents(self):
        """Document and search calls should hit their library sub-paths."""
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            if request.url.path.endswith("/search"):
                assert json.loads(request.content) == {"query": "refunds", "limit": 3}
                return httpx.Response(200, json={
                    "results": [{"id": "c1", "text": "Refunds take 5 days", "score": 0.92}],
                })
            if request.url.path.endswith("/upload"):
                assert b"faq.txt" in request.content
            return httpx.Response(200, json={
                "document": {"documentId": "d1", "title": "FAQ", "processingStatus": "pending"},
            })

        client = _client(handler)
        doc = client.add_document("lib1", "FAQ", url="https://example.com/faq")
        assert doc.is_processing
        client.upload_document("lib1", "faq.txt", b"Q: refunds?", "text/plain")
        results = client.search_library("lib1", "refunds", limit=3)
        assert results[0].score == 0.92

        assert seen == [
            ("POST", "/api/v1/libraries/lib1/documents"),
            ("POST", "/api/v1/libraries/lib1/upload"),
            ("POST", "/api/v1/libraries/lib1/search"),
        ]

    def test_create_namespace_invalid_name(self):
        """Invalid namespace names should fail before any request."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(201, json={})

        with pytest.raises(ValidationError):
            _client(handler).create_namespace("1bad name")
        assert calls == []

    def test_path_segments_escaped(self):
        """Ids should not be able to add path segments or a query string."""
        seen = []

        def handler(request):
            seen.append((request.url.raw_path, dict(request.url.params)))
            if request.url.path.startswith("/api/v1/libraries"):
                return httpx.Response(200, json={"libraryId": "lib1", "name": "Docs"})
            return httpx.Response(200, json={"key": "k", "value": 1})

        client = _client(handler)
        client.get_value("crm", "a/b?c")
        client.get_library("../graphs")

        assert seen == [
            (b"/api/v1/state/namespaces/crm/values/a%2Fb%3Fc", {}),
            (b"/api/v1/libraries/..%2Fgraphs", {}),
        ]


class TestErrors:
    """Test status code to exception mapping."""

    @pytest.mark.parametrize(
        "status, error_class",
        [
            (401, AuthError),
            (403, PermissionDeniedError),
            (404, NotFoundError),
            (409, ConflictError),
            (400, NetworkOrServerError),
        ],
    )
    def test_status_mapping(self, status, error_class):
        """The server's error string becomes the message."""

        def handler(request):
            return httpx.Response(status, json={"error": "Nope"})

        with pytest.raises(error_class) as exc_info:
            _client(handler).get_node("n1")
        assert exc_info.value.message == "Nope"
        assert exc_info.value.status_code == status

    def test_fallback_message(self):
        """Without a JSON error body the operation's message is used."""

        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(NetworkOrServerError) as exc_info:
            _client(handler).get_node("n1")
        assert str(exc_info.value) == "Failed to fetch node"

    def test_connection_failure(self):
        """Transport errors should surface as NetworkOrServerError."""

        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(NetworkOrServerError) as exc_info:
            _client(handler).list_graphs()
        assert exc_info.value.status_code is None
