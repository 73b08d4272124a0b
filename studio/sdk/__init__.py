"""SDK for talking to a studio host."""

from studio.sdk.client import StudioClient
from studio.sdk.polling import DocumentStatusPoller

__all__ = ["StudioClient", "DocumentStatusPoller"]
