"""
Failure Injection Tests.

Validates resilience against remote collaborator failures.
"""

import httpx
import pytest
from types import SimpleNamespace
from datetime import date

from goldbook.app.core.exceptions import DocumentExportError, VoucherAlreadyFinalizedError
from goldbook.app.core.reliability import CircuitBreaker, CircuitOpenError
from goldbook.app.models.customer import Customer
from goldbook.app.models.voucher import Voucher
from goldbook.app.models.enums import VoucherType
from goldbook.app.services.document_export import HttpDocumentExporter, HttpObjectStorage
from goldbook.app.services.voucher_store import VoucherStore


@pytest.mark.asyncio
async def test_circuit_breaker_activates():
    """Test that circuit breaker opens after threshold failures."""
    cb = CircuitBreaker(failure_threshold=2, reset_timeout=1)

    async def failing_func():
        raise ValueError("Boom")

    # Fail 1
    with pytest.raises(ValueError):
        await cb.call(failing_func)

    # Fail 2 (Threshold reached)
    with pytest.raises(ValueError):
        await cb.call(failing_func)

    # Call 3 (Should be CircuitOpenError)
    with pytest.raises(CircuitOpenError):
        await cb.call(failing_func)


@pytest.mark.asyncio
async def test_circuit_breaker_recovers(mocker):
    cb = CircuitBreaker(failure_threshold=1, reset_timeout=30)
    clock = mocker.patch("goldbook.app.core.reliability.time.time", return_value=1000.0)

    async def failing_func():
        raise ValueError("Boom")

    async def working_func():
        return "ok"

    with pytest.raises(ValueError):
        await cb.call(failing_func)
    assert cb.state == "OPEN"

    clock.return_value = 1031.0
    assert await cb.call(working_func) == "ok"
    assert cb.state == "CLOSED"
    assert cb.failures == 0


@pytest.mark.asyncio
async def test_storage_failure_opens_circuit(mocker):
    cb = CircuitBreaker(failure_threshold=2, reset_timeout=60)
    storage = HttpObjectStorage(
        upload_url="http://storage.test/upload", public_url="http://storage.test",
        bucket="vouchers", token="secret", circuit_breaker=cb,
    )
    put = mocker.patch.object(storage, "_put", side_effect=httpx.ConnectError("refused"))

    for _ in range(2):
        with pytest.raises(DocumentExportError) as exc_info:
            await storage.upload(b"%PDF", "voucher-1.pdf")
        assert exc_info.value.message == "Document upload failed"

    with pytest.raises(DocumentExportError) as exc_info:
        await storage.upload(b"%PDF", "voucher-1.pdf")
    assert exc_info.value.message == "Object storage is unavailable"
    assert put.call_count == 2


@pytest.mark.asyncio
async def test_storage_upload_url(mocker):
    storage = HttpObjectStorage(
        upload_url="http://storage.test/upload/", public_url="https://cdn.test/",
        bucket="vouchers", token="secret", circuit_breaker=CircuitBreaker(),
    )
    put = mocker.patch(
        "httpx.AsyncClient.put",
        return_value=httpx.Response(200, request=httpx.Request("PUT", "http://storage.test")),
    )

    url = await storage.upload(b"%PDF", "voucher-7.pdf")

    assert url == "https://cdn.test/file/vouchers/voucher-7.pdf"
    args, kwargs = put.call_args
    assert args[0] == "http://storage.test/upload/vouchers/voucher-7.pdf"
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["content"] == b"%PDF"


@pytest.mark.asyncio
async def test_renderer_error_is_upstream_failure(mocker):
    voucher = SimpleNamespace(
        id=1, voucher_type=VoucherType.INVOICE, date=date(2024, 1, 5),
        rows=[], total_net=0.0, total_kwd=0.0,
    )
    customer = SimpleNamespace(account_no="1001", name="Ahmad", phone="1", civil_id="2")
    mocker.patch(
        "httpx.AsyncClient.post",
        return_value=httpx.Response(500, request=httpx.Request("POST", "http://renderer.test")),
    )

    exporter = HttpDocumentExporter(renderer_url="http://renderer.test")

    with pytest.raises(DocumentExportError):
        await exporter.render(voucher, customer, "sig-a", "sig-b")


@pytest.mark.asyncio
async def test_renderer_returns_document(mocker):
    voucher = SimpleNamespace(
        id=1, voucher_type=VoucherType.RECEIPT, date=date(2024, 1, 5),
        rows=[{"description": "Scrap"}], total_net=4.0, total_kwd=20.0,
    )
    customer = SimpleNamespace(account_no="1001", name="Ahmad", phone="1", civil_id="2")
    post = mocker.patch(
        "httpx.AsyncClient.post",
        return_value=httpx.Response(200, content=b"%PDF-1.4", request=httpx.Request("POST", "http://renderer.test")),
    )

    document = await HttpDocumentExporter(renderer_url="http://renderer.test").render(
        voucher, customer, "sig-a", "sig-b"
    )

    assert document == b"%PDF-1.4"
    payload = post.call_args.kwargs["json"]
    assert payload["voucher"]["voucher_type"] == "REC"
    assert payload["voucher"]["date"] == "2024-01-05"
    assert payload["customer"]["account_no"] == "1001"
    assert payload["signatures"] == {"sales": "sig-a", "customer": "sig-b"}


@pytest.mark.asyncio
async def test_document_url_is_attached_once(db_session):
    customer = Customer(account_no="1001", name="Ahmad", phone="1", civil_id="2")
    db_session.add(customer)
    await db_session.commit()
    voucher = Voucher(
        customer_id=customer.id, voucher_type=VoucherType.INVOICE, date=date(2024, 1, 5),
        rows=[], total_net=0.0, total_kwd=0.0,
    )
    db_session.add(voucher)
    await db_session.commit()

    store = VoucherStore(db_session)
    finalized = await store.attach_document_url(voucher.id, "https://files.test/a.pdf")
    assert finalized.pdf_url == "https://files.test/a.pdf"
    assert finalized.finalized_at is not None

    with pytest.raises(VoucherAlreadyFinalizedError):
        await store.attach_document_url(voucher.id, "https://files.test/b.pdf")

    stored = await store.get(voucher.id)
    assert stored.pdf_url == "https://files.test/a.pdf"
