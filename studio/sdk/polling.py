"""Polling of document processing status.

Chunking and embedding run on the server. While any document of a library
is ``pending`` or ``processing`` the poller asks for its status every few
seconds and refreshes the library when something changed.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from studio.errors import StudioError
from studio.models.library import Document, Library
from studio.sdk.client import StudioClient

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 3.0


class DocumentStatusPoller:
    """Watch one library until its documents finish processing."""

    def __init__(
        self,
        client: StudioClient,
        library_id: str,
        interval: float = POLL_INTERVAL_SECONDS,
        on_update: Callable[[Library], None] | None = None,
    ) -> None:
        self.client = client
        self.library_id = library_id
        self.interval = interval
        self.on_update = on_update
        self._stop = threading.Event()

    def poll_once(self, documents: list[Document]) -> bool:
        """Check each in-progress document; True if any status changed.

        Polling errors are ignored; the next round tries again.
        """
        has_updates = False
        for doc in documents:
            if not doc.is_processing:
                continue
            try:
                report = self.client.get_processing_status(self.library_id, doc.document_id)
            except (StudioError, ValueError) as e:
                logger.debug("ignoring status poll failure for %s: %s", doc.document_id, e)
                continue
            if report.processing_status != doc.processing_status:
                has_updates = True
        return has_updates

    def run(self, library: Library) -> Library:
        """Poll until nothing is in progress or ``stop`` is called.

        Returns the most recently fetched library.
        """
        pending = library.pending_documents()
        while pending and not self._stop.wait(self.interval):
            if not self.poll_once(pending):
                continue
            try:
                library = self.client.get_library(self.library_id)
            except (StudioError, ValueError) as e:
                logger.debug("ignoring library refresh failure for %s: %s", self.library_id, e)
                continue
            if self.on_update is not None:
                self.on_update(library)
            pending = library.pending_documents()
        return library

    def start(self, library: Library) -> threading.Thread:
        """Run the poller on a daemon thread."""
        thread = threading.Thread(target=self.run, args=(library,), daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()
