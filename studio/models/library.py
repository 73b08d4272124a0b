"""Knowledge libraries and their documents.

Chunking, embedding and OCR happen on the backend; these models only
describe what the REST API returns.
"""

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from studio.models.base import StudioModel


class ProcessingStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


# statuses the poller keeps watching
IN_PROGRESS_STATUSES = frozenset({ProcessingStatus.pending, ProcessingStatus.processing})


class DocumentSourceType(str, Enum):
    file = "file"
    url = "url"
    text = "text"
    api = "api"
    conversation = "conversation"


class LibraryAccess(str, Enum):
    private = "private"
    shared = "shared"
    public = "public"


class Document(StudioModel):
    model_config = ConfigDict(extra="allow")

    document_id: str
    title: str
    source_type: DocumentSourceType = DocumentSourceType.text
    source: str | None = None
    mime_type: str | None = None
    file_size: int | None = None
    chunk_count: int = 0
    char_count: int = 0
    added_at: str | None = None
    added_by: str | None = None
    processing_status: ProcessingStatus | None = None
    processing_error: str | None = None

    @property
    def is_processing(self) -> bool:
        return self.processing_status in IN_PROGRESS_STATUSES


class Library(StudioModel):
    model_config = ConfigDict(extra="allow")

    library_id: str
    name: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    access: LibraryAccess = LibraryAccess.private
    embedding_model: str | None = None
    chunk_size: int | None = None
    chunk_overlap: int | None = None
    documents: list[Document] = Field(default_factory=list)
    document_count: int = 0
    total_chunks: int = 0
    total_size: int = 0
    search_count: int = 0
    last_search_at: str | None = None
    last_updated_at: str | None = None
    created_at: str | None = None
    is_owned: bool = False
    can_write: bool = False

    def pending_documents(self) -> list[Document]:
        """Documents whose processing has not finished yet."""
        return [doc for doc in self.documents if doc.is_processing]


class LibraryCreate(StudioModel):
    name: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    access: LibraryAccess = LibraryAccess.private
    chunk_size: int | None = None
    chunk_overlap: int | None = None


class LibraryUpdate(StudioModel):
    name: str | None = None
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    access: LibraryAccess | None = None


class DocumentChunk(StudioModel):
    model_config = ConfigDict(extra="allow")

    id: str
    text: str
    chunk_index: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResult(StudioModel):
    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProcessingStatusReport(StudioModel):
    """Response of ``GET .../documents/:id/process``."""

    model_config = ConfigDict(extra="allow")

    document_id: str | None = None
    processing_status: ProcessingStatus
    processing_error: str | None = None
    chunk_count: int | None = None
