"""Tests for document status polling."""

from studio.errors import NetworkOrServerError
from studio.models.library import Library, ProcessingStatusReport
from studio.sdk.polling import DocumentStatusPoller


def _library(*statuses):
    return Library.model_validate({
        "libraryId": "lib1",
        "name": "Docs",
        "documents": [
            {"documentId": f"d{i}", "title": f"Doc {i}", "processingStatus": status}
            for i, status in enumerate(statuses)
        ],
    })


class FakeClient:
    """Serves canned processing statuses and libraries."""

    def __init__(self, statuses, refreshed=None, fail=()):
        self.statuses = statuses
        self.refreshed = refreshed
        self.fail = set(fail)
        self.status_calls = []
        self.library_calls = 0

    def get_processing_status(self, library_id, document_id):
        self.status_calls.append(document_id)
        if document_id in self.fail:
            raise NetworkOrServerError("Failed to fetch processing status", status_code=500)
        return ProcessingStatusReport(
            document_id=document_id,
            processing_status=self.statuses[document_id],
        )

    def get_library(self, library_id):
        self.library_calls += 1
        return self.refreshed


class TestPollOnce:
    """Test a single polling round."""

    def test_no_change(self):
        """Unchanged statuses report no updates."""
        client = FakeClient({"d0": "processing"})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        assert poller.poll_once(_library("processing").documents) is False

    def test_change_detected(self):
        """A changed status reports an update."""
        client = FakeClient({"d0": "completed"})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        assert poller.poll_once(_library("pending").documents) is True

    def test_finished_documents_skipped(self):
        """Completed and failed documents are not polled."""
        client = FakeClient({})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        assert poller.poll_once(_library("completed", "failed").documents) is False
        assert client.status_calls == []

    def test_errors_ignored(self):
        """A failing status call should not stop the round."""
        client = FakeClient({"d1": "completed"}, fail={"d0"})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        assert poller.poll_once(_library("processing", "processing").documents) is True
        assert client.status_calls == ["d0", "d1"]


class TestRun:
    """Test the polling loop."""

    def test_refreshes_until_done(self):
        """A change should refresh the library and notify once."""
        done = _library("completed")
        client = FakeClient({"d0": "completed"}, refreshed=done)
        updates = []
        poller = DocumentStatusPoller(client, "lib1", interval=0, on_update=updates.append)

        result = poller.run(_library("processing"))

        assert result is done
        assert updates == [done]
        assert client.library_calls == 1

    def test_nothing_pending(self):
        """A library with no pending documents makes no calls."""
        client = FakeClient({})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        library = _library("completed")
        assert poller.run(library) is library
        assert client.status_calls == []

    def test_stop_before_run(self):
        """A stopped poller returns without polling."""
        client = FakeClient({"d0": "completed"})
        poller = DocumentStatusPoller(client, "lib1", interval=0)
        poller.stop()
        assert poller.stopped
        poller.run(_library("processing"))
        assert client.status_calls == []
