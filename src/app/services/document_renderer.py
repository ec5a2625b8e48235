"""Document Renderer Interface

Turns quote and invoice presentation models into PDF bytes.
"""
from abc import ABC, abstractmethod
from typing import Optional
from .document_dtos import QuoteDocumentData, InvoiceDocumentData


class DocumentRenderError(Exception):
    """Raised when a document cannot be rendered"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DocumentRenderer(ABC):

    @abstractmethod
    async def render_quote(self, data: QuoteDocumentData) -> bytes:
        """Render a quote PDF"""
        pass

    @abstractmethod
    async def render_invoice(self, data: InvoiceDocumentData) -> bytes:
        """Render an invoice PDF"""
        pass
