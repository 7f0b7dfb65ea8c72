"""Receiving: quantity guard, status guards and progress reporting"""

import io

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from apps.lifecycle.schemas import CompleteRequestPayload, ReviewItemPayload
from apps.lifecycle.service import LifecycleService
from apps.receipts.schemas import ReceiptCreate
from apps.receipts.service import ReceiptService
from apps.requests.schemas import PurchaseRequestCreate, RequestItemInput
from apps.requests.service import RequestService
from apps.storage.service import StorageService
from models.item_receipt import ItemReceipt
from settings.config import get_settings


async def approved_request(db, notifier, world, products, quantity=10, statuses=None):
    payload = PurchaseRequestCreate(items=[RequestItemInput(productId=p.id, quantity=quantity) for p in products])
    request = await RequestService.create_request(db, notifier, world.alice, payload)
    for item, status in zip(list(request.items), statuses or ["approved"] * len(products)):
        payload = ReviewItemPayload(
            status=status,
            suspensionReason="Waiting for budget" if status == "suspended" else None,
        )
        await LifecycleService.review_item(db, notifier, world.admin, item.id, payload)
    return await RequestService.load_request(db, request.id)


def receipt(quantity, rejected=0, **extra):
    return ReceiptCreate(quantityReceived=quantity, rejectedQuantity=rejected, invoiceNumber="NF-1001", **extra)


class TestQuantityGuard:

    async def test_eight_then_three_fails_then_two_succeeds(self, db, session_factory, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        request_id, item_id = request.id, request.items[0].id

        first = await ReceiptService.create_receipt(db, notifier, world.admin, request_id, item_id, receipt(8))
        assert first.quantity_received == 8
        assert first.receipt_condition == "good"
        assert first.received_by == world.admin.id

        # Separate session, as a separate HTTP request would have
        async with session_factory() as other:
            with pytest.raises(HTTPException) as exc:
                await ReceiptService.create_receipt(other, notifier, world.admin, request_id, item_id, receipt(3))
        assert exc.value.status_code == 400
        assert "Ordered: 10, already received: 8, attempting: 3" in exc.value.detail

        receipts = await ReceiptService.list_item_receipts(db, world.admin, request_id, item_id)
        assert sum(r.net_quantity for r in receipts) == 8

        await ReceiptService.create_receipt(db, notifier, world.admin, request_id, item_id, receipt(2))
        status = await ReceiptService.get_receiving_status(db, world.admin, request_id)
        assert status["items"][0]["quantity_received"] == 10
        assert status["items"][0]["quantity_pending"] == 0
        assert status["items"][0]["status"] == "complete"

    async def test_rejected_units_do_not_count(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        item_id = request.items[0].id

        await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, item_id, receipt(10, rejected=4, receiptCondition="partial_damage")
        )
        # 6 net so far, 4 more fit
        await ReceiptService.create_receipt(db, notifier, world.admin, request.id, item_id, receipt(4))

        status = await ReceiptService.get_receiving_status(db, world.admin, request.id)
        assert status["items"][0]["quantity_received"] == 10

    def test_rejected_cannot_exceed_received(self):
        with pytest.raises(ValueError):
            receipt(2, rejected=3)

    async def test_receipt_publishes_event(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        item_id = request.items[0].id
        await ReceiptService.create_receipt(db, notifier, world.admin, request.id, item_id, receipt(1))
        assert notifier.events[-1] == f"item-received:{item_id}"

    async def test_unknown_supplier_is_rejected(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(
                db, notifier, world.admin, request.id, request.items[0].id, receipt(1, supplierId=9999)
            )
        assert exc.value.status_code == 404

    async def test_receipt_does_not_change_statuses(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        item_id = request.items[0].id
        await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, item_id, receipt(10, supplierId=world.supplier.id)
        )
        request = await RequestService.load_request(db, request.id)
        assert request.status == "approved"
        assert request.items[0].status == "approved"


class TestStatusGuards:

    async def test_pending_request_cannot_receive(self, db, notifier, world):
        payload = PurchaseRequestCreate(items=[RequestItemInput(productId=world.cable.id, quantity=5)])
        request = await RequestService.create_request(db, notifier, world.alice, payload)
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(
                db, notifier, world.admin, request.id, request.items[0].id, receipt(1)
            )
        assert exc.value.status_code == 409

    async def test_rejected_item_cannot_receive(self, db, notifier, world):
        request = await approved_request(
            db, notifier, world, [world.cable, world.drill], statuses=["approved", "rejected"]
        )
        assert request.status == "partial"
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(
                db, notifier, world.admin, request.id, request.items[1].id, receipt(1)
            )
        assert exc.value.status_code == 409

    async def test_requester_cannot_register_receipts(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(
                db, notifier, world.alice, request.id, request.items[0].id, receipt(1)
            )
        assert exc.value.status_code == 403

    async def test_completed_request_still_receives_approved_items(self, db, notifier, world):
        request = await approved_request(
            db, notifier, world, [world.cable, world.drill], statuses=["approved", "suspended"]
        )
        request_id, approved_id, suspended_id = request.id, request.items[0].id, request.items[1].id
        await LifecycleService.complete_request(db, notifier, world.admin, request_id, CompleteRequestPayload())

        created = await ReceiptService.create_receipt(
            db, notifier, world.admin, request_id, approved_id, receipt(10)
        )
        assert created.quantity_received == 10
        assert notifier.events[-1] == f"item-received:{approved_id}"

        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(db, notifier, world.admin, request_id, suspended_id, receipt(1))
        assert exc.value.status_code == 409

    async def test_suspended_item_cannot_receive(self, db, notifier, world):
        request = await approved_request(
            db, notifier, world, [world.cable, world.drill], statuses=["approved", "suspended"]
        )
        assert request.items[1].status == "suspended"
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.create_receipt(
                db, notifier, world.admin, request.id, request.items[1].id, receipt(1)
            )
        assert exc.value.status_code == 409


class TestReporting:

    async def test_over_delivery_is_reported_not_raised(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable, world.drill], quantity=5)
        cable_item, drill_item = request.items

        # Historical row recorded before the guard existed
        db.add(ItemReceipt(
            request_item_id=cable_item.id,
            quantity_received=7,
            rejected_quantity=0,
            received_by=world.admin.id,
            invoice_number="LEGACY-1",
        ))
        await db.commit()

        status = await ReceiptService.get_receiving_status(db, world.admin, request.id)
        by_item = {i["item_id"]: i for i in status["items"]}
        assert by_item[cable_item.id]["status"] == "over_delivered"
        assert by_item[cable_item.id]["quantity_pending"] == -2
        assert by_item[drill_item.id]["status"] == "pending"
        assert by_item[drill_item.id]["last_received_at"] is None
        assert status["summary"] == {
            "total_items": 2,
            "complete_items": 0,
            "partial_items": 0,
            "pending_items": 1,
            "over_delivered_items": 1,
        }

    async def test_only_approved_items_are_tracked(self, db, notifier, world):
        request = await approved_request(
            db, notifier, world, [world.cable, world.drill], statuses=["approved", "rejected"]
        )
        status = await ReceiptService.get_receiving_status(db, world.admin, request.id)
        assert [i["item_id"] for i in status["items"]] == [request.items[0].id]
        assert status["request_status"] == "partial"

    async def test_receipts_summary(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable, world.drill])
        cable_item, drill_item = request.items
        await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, cable_item.id, receipt(4, rejected=1, supplierId=world.supplier.id)
        )
        await ReceiptService.create_receipt(db, notifier, world.admin, request.id, drill_item.id, receipt(3))

        summary = await ReceiptService.get_receipts_summary(db, world.admin, request.id)
        assert summary["total_receipts"] == 2
        assert summary["total_quantity"] == 7
        assert summary["total_rejected"] == 1
        assert summary["unique_suppliers"] == 1
        assert summary["first_receipt_date"] is not None
        assert summary["last_receipt_date"] is not None

    async def test_other_requester_cannot_read_receipts(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.list_item_receipts(db, world.bob, request.id, request.items[0].id)
        assert exc.value.status_code == 403


class TestInvoice:

    async def test_invoice_saved_to_local_upload_dir(self, db, notifier, world, tmp_path, monkeypatch):
        monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(tmp_path))
        request = await approved_request(db, notifier, world, [world.cable])
        created = await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, request.items[0].id, receipt(1)
        )

        upload = UploadFile(
            file=io.BytesIO(b"%PDF-1.4 invoice"),
            filename="nf.pdf",
            headers=Headers({"content-type": "application/pdf"}),
        )
        updated = await ReceiptService.attach_invoice(db, world.admin, created.id, upload)
        assert updated.attachment_path.startswith(str(tmp_path))
        assert updated.attachment_path.endswith(".pdf")
        with open(updated.attachment_path, "rb") as fh:
            assert fh.read() == b"%PDF-1.4 invoice"

    async def test_invoice_type_is_checked(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        created = await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, request.items[0].id, receipt(1)
        )
        upload = UploadFile(
            file=io.BytesIO(b"MZ"),
            filename="virus.exe",
            headers=Headers({"content-type": "application/octet-stream"}),
        )
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.attach_invoice(db, world.admin, created.id, upload)
        assert exc.value.status_code == 400

    async def test_invoice_download_is_owner_or_admin(self, db, notifier, world, tmp_path, monkeypatch):
        monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(tmp_path))
        request = await approved_request(db, notifier, world, [world.cable])
        created = await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, request.items[0].id, receipt(1)
        )
        upload = UploadFile(
            file=io.BytesIO(b"\x89PNG scan"),
            filename="scan.png",
            headers=Headers({"content-type": "image/png"}),
        )
        await ReceiptService.attach_invoice(db, world.admin, created.id, upload)

        owned = await ReceiptService.get_invoice(db, world.alice, created.id)
        assert owned.attachment_path.endswith(".png")
        name = ReceiptService.invoice_download_name(owned)
        assert name.startswith("NF_NF-1001_")
        assert name.endswith(".png")
        assert (await ReceiptService.get_invoice(db, world.admin, created.id)).id == created.id

        with pytest.raises(HTTPException) as exc:
            await ReceiptService.get_invoice(db, world.bob, created.id)
        assert exc.value.status_code == 403

    async def test_missing_invoice_is_not_found(self, db, notifier, world):
        request = await approved_request(db, notifier, world, [world.cable])
        created = await ReceiptService.create_receipt(
            db, notifier, world.admin, request.id, request.items[0].id, receipt(1)
        )
        with pytest.raises(HTTPException) as exc:
            await ReceiptService.get_invoice(db, world.alice, created.id)
        assert exc.value.status_code == 404

        with pytest.raises(HTTPException) as exc:
            await ReceiptService.get_invoice(db, world.alice, 999999)
        assert exc.value.status_code == 404

    async def test_s3_invoice_redirects_to_presigned_url(self, monkeypatch):
        seen = {}

        async def fake_presign(url, download_name, expires_in=300):
            seen["args"] = (url, download_name)
            return "https://bucket.s3.amazonaws.com/receipts/1/invoice.pdf?X-Amz-Signature=abc"

        monkeypatch.setattr(StorageService, "generate_presigned_get_url", staticmethod(fake_presign))
        response = await StorageService.download_response(
            "https://bucket.s3.amazonaws.com/receipts/1/invoice.pdf", "NF_1_20260101.pdf"
        )
        assert response.status_code == 307
        assert response.headers["location"].endswith("X-Amz-Signature=abc")
        assert seen["args"] == ("https://bucket.s3.amazonaws.com/receipts/1/invoice.pdf", "NF_1_20260101.pdf")

    async def test_local_file_gone_is_not_found(self, tmp_path):
        with pytest.raises(HTTPException) as exc:
            await StorageService.download_response(str(tmp_path / "gone.pdf"), "gone.pdf")
        assert exc.value.status_code == 404
