"""
Document export collaborators.

The signed voucher PDF is rendered by a separate document service and
stored in object storage. Both are reached over HTTP with httpx.
"""

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from goldbook.app.core.config import settings
from goldbook.app.core.exceptions import DocumentExportError
from goldbook.app.core.reliability import CircuitBreaker, CircuitOpenError

logger = logging.getLogger("goldbook")

PDF_CONTENT_TYPE = "application/pdf"


class DocumentExporter(Protocol):
    async def render(
        self, voucher: Any, customer: Any, sales_signature: str, customer_signature: str
    ) -> bytes:
        ...


class ObjectStorage(Protocol):
    async def upload(self, data: bytes, file_name: str, content_type: str = PDF_CONTENT_TYPE) -> str:
        ...


def voucher_document(voucher: Any, customer: Any) -> Dict[str, Any]:
    """Voucher, customer and rows in the shape the renderer consumes."""
    return {
        "voucher": {
            "id": voucher.id,
            "voucher_type": getattr(voucher.voucher_type, "value", voucher.voucher_type),
            "date": voucher.date.isoformat(),
            "rows": list(voucher.rows or []),
            "total_net": voucher.total_net,
            "total_kwd": voucher.total_kwd,
        },
        "customer": {
            "account_no": customer.account_no,
            "name": customer.name,
            "phone": customer.phone,
            "civil_id": customer.civil_id,
        },
    }


class HttpDocumentExporter:
    """Renders voucher PDFs through the document service."""

    def __init__(self, renderer_url: str = None, timeout: float = None):
        self.renderer_url = renderer_url or settings.document_renderer_url
        self.timeout = timeout or settings.http_timeout_seconds

    async def render(
        self, voucher: Any, customer: Any, sales_signature: str, customer_signature: str
    ) -> bytes:
        payload = voucher_document(voucher, customer)
        payload["signatures"] = {
            "sales": sales_signature,
            "customer": customer_signature,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.renderer_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Rendering voucher %s failed: %r", voucher.id, e)
            raise DocumentExportError("Document rendering failed", details={"voucher_id": voucher.id})

        return response.content


class HttpObjectStorage:
    """
    Stores files in a bucket over HTTP.

    Uploads are PUT to {upload_url}/{bucket}/{file_name}; files are served
    from {public_url}/file/{bucket}/{file_name}.
    """

    def __init__(
        self,
        upload_url: str = None,
        public_url: str = None,
        bucket: str = None,
        token: Optional[str] = None,
        timeout: float = None,
        circuit_breaker: CircuitBreaker = None,
    ):
        self.upload_url = (upload_url or settings.storage_upload_url).rstrip("/")
        self.public_url = (public_url or settings.storage_public_url).rstrip("/")
        self.bucket = bucket or settings.storage_bucket
        self.token = token if token is not None else settings.storage_token
        self.timeout = timeout or settings.http_timeout_seconds
        self.circuit_breaker = circuit_breaker or storage_circuit_breaker

    async def _put(self, data: bytes, file_name: str, content_type: str) -> None:
        headers = {"Content-Type": content_type}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.put(
                f"{self.upload_url}/{self.bucket}/{file_name}", content=data, headers=headers
            )
            response.raise_for_status()

    async def upload(self, data: bytes, file_name: str, content_type: str = PDF_CONTENT_TYPE) -> str:
        try:
            await self.circuit_breaker.call(self._put, data, file_name, content_type)
        except CircuitOpenError:
            raise DocumentExportError("Object storage is unavailable", details={"file_name": file_name})
        except httpx.HTTPError as e:
            logger.error("Uploading %s failed: %r", file_name, e)
            raise DocumentExportError("Document upload failed", details={"file_name": file_name})

        return f"{self.public_url}/file/{self.bucket}/{file_name}"


# Shared across requests so repeated storage failures open the circuit
storage_circuit_breaker = CircuitBreaker(
    failure_threshold=settings.storage_failure_threshold,
    reset_timeout=settings.storage_reset_timeout,
)


def get_document_exporter() -> DocumentExporter:
    """FastAPI dependency for the document exporter."""
    return HttpDocumentExporter()


def get_object_storage() -> ObjectStorage:
    """FastAPI dependency for object storage."""
    return HttpObjectStorage()
