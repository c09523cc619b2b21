"""
Voucher Finalization Service.

Signs a voucher: renders the signed document, stores it and attaches its
URL to the voucher. A voucher can be finalized once.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession

from goldbook.app.core.exceptions import ValidationError, VoucherAlreadyFinalizedError
from goldbook.app.models.voucher import Voucher
from goldbook.app.services.audit import log_event, AuditAction
from goldbook.app.services.customer_store import CustomerStore
from goldbook.app.services.document_export import DocumentExporter, ObjectStorage, PDF_CONTENT_TYPE
from goldbook.app.services.voucher_store import VoucherStore

logger = logging.getLogger("goldbook")


def document_file_name(voucher_id: int) -> str:
    return f"voucher-{voucher_id}.pdf"


async def finalize_voucher(
    db: AsyncSession,
    voucher_id: int,
    sales_signature: str,
    customer_signature: str,
    exporter: DocumentExporter,
    storage: ObjectStorage,
) -> Voucher:
    """
    Finalize a voucher with both signatures.

    Flow:
    1. Validate signatures
    2. Load voucher and customer (NotFoundError if absent)
    3. Refuse an already finalized voucher
    4. Render the signed document
    5. Upload it to object storage
    6. Attach the URL (once) and audit

    Returns:
        The finalized voucher
    """
    if not sales_signature or not customer_signature:
        raise ValidationError(
            "Both signatures are required",
            details={
                "sales_signature": bool(sales_signature),
                "customer_signature": bool(customer_signature),
            }
        )

    vouchers = VoucherStore(db)
    voucher = await vouchers.require(voucher_id)
    customer = await CustomerStore(db).require(voucher.customer_id)

    if voucher.pdf_url:
        raise VoucherAlreadyFinalizedError(voucher_id)

    document = await exporter.render(voucher, customer, sales_signature, customer_signature)
    file_name = document_file_name(voucher_id)
    url = await storage.upload(document, file_name, PDF_CONTENT_TYPE)

    voucher = await vouchers.attach_document_url(voucher_id, url)
    logger.info("Voucher %s finalized: %s", voucher_id, url)

    await log_event(
        db=db,
        action=AuditAction.VOUCHER_FINALIZED,
        entity="voucher",
        entity_id=voucher_id,
        metadata={"pdf_url": url, "size_bytes": len(document)},
    )

    return voucher
