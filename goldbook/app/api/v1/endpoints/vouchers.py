"""
Voucher API Endpoints.

Issuing, previewing, listing and finalizing Invoice and Receipt vouchers.
Vouchers cannot be edited once issued.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from goldbook.app.db.session import get_db
from goldbook.app.domain.vouchers.calculator import (
    parse_voucher_type, compute_rows, compute_totals, total_weight_after_discount, reconcile_totals
)
from goldbook.app.schemas.customer import CustomerResponse
from goldbook.app.schemas.voucher import (
    VoucherCreate, VoucherPreviewRequest, VoucherPreviewResponse,
    VoucherResponse, VoucherDetailResponse, VoucherListResponse,
    VoucherFinalizeRequest, VoucherFinalizeResponse
)
from goldbook.app.services.customer_store import CustomerStore
from goldbook.app.services.document_export import (
    DocumentExporter, ObjectStorage, get_document_exporter, get_object_storage
)
from goldbook.app.services.voucher_finalization import finalize_voucher
from goldbook.app.services.voucher_store import VoucherStore
from goldbook.app.schemas.audit import AuditEntryResponse, AuditTrailResponse
from goldbook.app.services.audit import log_event, get_audit_trail, AuditAction

router = APIRouter(prefix="/vouchers", tags=["Vouchers"])


@router.post("", response_model=VoucherResponse, status_code=status.HTTP_201_CREATED)
async def create_voucher(
    voucher_data: VoucherCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Issue a voucher for a customer.

    Row figures and totals are computed server-side.
    """
    voucher = await VoucherStore(db).create_voucher(voucher_data)

    # Audit log
    await log_event(
        db=db,
        action=AuditAction.VOUCHER_CREATED,
        entity="voucher",
        entity_id=voucher.id,
        metadata={
            "customer_id": voucher.customer_id,
            "voucher_type": voucher.voucher_type.value,
            "total_net": voucher.total_net,
            "total_kwd": voucher.total_kwd
        }
    )

    return VoucherResponse.model_validate(voucher)


@router.post("/preview", response_model=VoucherPreviewResponse)
async def preview_voucher(preview: VoucherPreviewRequest):
    """Compute rows and totals of a draft voucher without issuing it."""
    voucher_type = parse_voucher_type(preview.voucher_type)
    rows = compute_rows(voucher_type, preview.rows)
    total_net, total_kwd = compute_totals(rows)

    return VoucherPreviewResponse(
        voucher_type=voucher_type,
        rows=rows,
        total_net=total_net,
        total_kwd=total_kwd,
        total_weight_after_discount=total_weight_after_discount(rows)
    )


@router.get("", response_model=VoucherListResponse)
async def list_vouchers(db: AsyncSession = Depends(get_db)):
    """List all vouchers by date."""
    vouchers = await VoucherStore(db).list_all()

    return VoucherListResponse(
        vouchers=[VoucherResponse.model_validate(voucher) for voucher in vouchers],
        total=len(vouchers)
    )


@router.get("/customer/{customer_id}", response_model=VoucherListResponse)
async def list_customer_vouchers(
    customer_id: int,
    db: AsyncSession = Depends(get_db)
):
    """List the vouchers of one customer by date."""
    await CustomerStore(db).require(customer_id)
    vouchers = await VoucherStore(db).list_by_customer(customer_id)

    return VoucherListResponse(
        vouchers=[VoucherResponse.model_validate(voucher) for voucher in vouchers],
        total=len(vouchers)
    )


@router.get("/{voucher_id}", response_model=VoucherDetailResponse)
async def get_voucher(
    voucher_id: int,
    db: AsyncSession = Depends(get_db)
):
    """
    Get a voucher with its customer.

    `totals_consistent` is false when the stored totals no longer match
    the stored rows.
    """
    voucher = await VoucherStore(db).require(voucher_id)
    customer = await CustomerStore(db).get(voucher.customer_id)

    response = VoucherDetailResponse.model_validate(voucher)
    return response.model_copy(update={
        "customer": CustomerResponse.model_validate(customer) if customer else None,
        "totals_consistent": reconcile_totals(voucher) is None,
    })


@router.get("/{voucher_id}/audit", response_model=AuditTrailResponse)
async def get_voucher_audit(
    voucher_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Issue and finalization events of a voucher, newest first."""
    await VoucherStore(db).require(voucher_id)
    entries = await get_audit_trail(db, entity="voucher", entity_id=voucher_id)

    return AuditTrailResponse(
        entries=[AuditEntryResponse.model_validate(entry) for entry in entries],
        total=len(entries)
    )


@router.post("/{voucher_id}/finalize", response_model=VoucherFinalizeResponse)
async def finalize(
    voucher_id: int,
    signatures: VoucherFinalizeRequest,
    db: AsyncSession = Depends(get_db),
    exporter: DocumentExporter = Depends(get_document_exporter),
    storage: ObjectStorage = Depends(get_object_storage)
):
    """
    Sign a voucher and store its document.

    Requires both the sales and the customer signature. A voucher can be
    finalized once; later attempts return 409.
    """
    voucher = await finalize_voucher(
        db,
        voucher_id,
        signatures.sales_signature,
        signatures.customer_signature,
        exporter,
        storage,
    )

    return VoucherFinalizeResponse(
        voucher_id=voucher.id,
        pdf_url=voucher.pdf_url,
        finalized_at=voucher.finalized_at
    )
