"""HTTP Document Renderer

Posts quote and invoice presentation models to the PDF render service and
returns the rendered bytes.
"""
import asyncio
import logging
from typing import Optional
import httpx
from pydantic import BaseModel
from src.app.services.document_dtos import InvoiceDocumentData, QuoteDocumentData
from src.app.services.document_renderer import DocumentRenderer, DocumentRenderError

logger = logging.getLogger(__name__)


class HttpDocumentRenderer(DocumentRenderer):
    """HTTP implementation of DocumentRenderer using httpx"""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _retry_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute HTTP request with exponential backoff retry"""
        for attempt in range(self.max_retries):
            try:
                return await self.client.request(method, url, **kwargs)
            except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as e:
                if attempt < self.max_retries - 1:
                    delay = 2 ** attempt
                    logger.warning(
                        f"Render request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Render request failed after {self.max_retries} attempts: {e}")

        raise DocumentRenderError(f"Render service unavailable after {self.max_retries} attempts")

    async def _render(self, kind: str, data: BaseModel) -> bytes:
        response = await self._retry_request(
            "POST",
            f"{self.base_url}/render/{kind}",
            json=data.model_dump(mode="json", by_alias=True),
            headers={"Accept": "application/pdf"},
        )
        if response.status_code >= 400:
            raise DocumentRenderError(
                f"Render service returned {response.status_code} for {kind}",
                status_code=response.status_code,
            )
        if not response.content:
            raise DocumentRenderError(f"Render service returned an empty {kind} document")
        return response.content

    async def render_quote(self, data: QuoteDocumentData) -> bytes:
        return await self._render("quote", data)

    async def render_invoice(self, data: InvoiceDocumentData) -> bytes:
        return await self._render("invoice", data)

    async def close(self):
        """Close the HTTP client connection"""
        await self.client.aclose()
