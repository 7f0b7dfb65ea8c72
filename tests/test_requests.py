"""Purchase request and item management"""

import pytest
from fastapi import HTTPException

from apps.lifecycle.schemas import ReviewItemPayload
from apps.lifecycle.service import LifecycleService
from apps.requests.schemas import (
    PurchaseRequestCreate,
    PurchaseRequestOut,
    PurchaseRequestUpdate,
    RequestItemInput,
    RequestItemUpdate,
)
from apps.requests.service import RequestService


def create_payload(*pairs, observations=None):
    return PurchaseRequestCreate(
        items=[RequestItemInput(productId=p.id, quantity=q) for p, q in pairs],
        observations=observations,
    )


class TestCreate:

    @pytest.mark.parametrize("count", [1, 2, 3])
    async def test_round_trip(self, db, notifier, world, count):
        products = [world.cable, world.drill, world.gloves][:count]
        created = await RequestService.create_request(
            db, notifier, world.alice, create_payload(*[(p, i + 1) for i, p in enumerate(products)])
        )

        fetched = await RequestService.get_request(db, world.alice, created.id)
        assert fetched.status == "pending"
        assert fetched.priority == "normal"
        assert fetched.requester_id == world.alice.id
        assert fetched.sector_id == world.engineering.id
        assert len(fetched.items) == count
        assert all(i.status == "pending" for i in fetched.items)
        assert [i.quantity for i in fetched.items] == list(range(1, count + 1))
        assert notifier.events == [f"new-request:{created.id}"]

    async def test_serializes_with_camel_case_aliases(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 3)))
        data = PurchaseRequestOut.model_validate(created).model_dump(by_alias=True)
        assert data["requesterId"] == world.alice.id
        assert data["items"][0]["productId"] == world.cable.id
        assert data["items"][0]["product"]["name"] == "Cable"
        assert data["sector"]["name"] == "Engineering"

    async def test_duplicate_products_rejected(self, db, notifier, world):
        with pytest.raises(HTTPException) as exc:
            await RequestService.create_request(
                db, notifier, world.alice, create_payload((world.cable, 1), (world.cable, 2))
            )
        assert exc.value.status_code == 400

    async def test_product_from_another_sector_rejected(self, db, notifier, world):
        with pytest.raises(HTTPException) as exc:
            await RequestService.create_request(db, notifier, world.alice, create_payload((world.paper, 1)))
        assert exc.value.status_code == 400

    async def test_unavailable_product_rejected(self, db, notifier, world):
        with pytest.raises(HTTPException) as exc:
            await RequestService.create_request(db, notifier, world.alice, create_payload((world.retired, 1)))
        assert exc.value.status_code == 400

    def test_empty_request_rejected_by_schema(self):
        with pytest.raises(ValueError):
            PurchaseRequestCreate(items=[])

    def test_zero_quantity_rejected_by_schema(self):
        with pytest.raises(ValueError):
            RequestItemInput(productId=1, quantity=0)


class TestVisibility:

    async def test_requesters_list_only_their_own(self, db, notifier, world):
        await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        await RequestService.create_request(db, notifier, world.bob, create_payload((world.drill, 1)))

        mine, meta = await RequestService.list_requests(db, world.alice, page=1, size=20)
        assert meta["total"] == 1
        assert mine[0].requester_id == world.alice.id

        everything, meta = await RequestService.list_requests(db, world.admin, page=1, size=20)
        assert meta["total"] == 2

    async def test_admin_filters(self, db, notifier, world):
        await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        await RequestService.create_request(db, notifier, world.carol, create_payload((world.paper, 1)))

        finance, meta = await RequestService.list_requests(
            db, world.admin, page=1, size=20, sector_id=world.finance.id
        )
        assert meta["total"] == 1
        assert finance[0].requester_id == world.carol.id

        approved, meta = await RequestService.list_requests(db, world.admin, page=1, size=20, status_filter="approved")
        assert meta["total"] == 0

    async def test_pagination_meta(self, db, notifier, world):
        for _ in range(3):
            await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        page, meta = await RequestService.list_requests(db, world.alice, page=2, size=2)
        assert len(page) == 1
        assert meta == {"page": 2, "size": 2, "total": 3, "total_pages": 2}

    async def test_other_requester_cannot_read(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        with pytest.raises(HTTPException) as exc:
            await RequestService.get_request(db, world.bob, created.id)
        assert exc.value.status_code == 403


class TestUpdateAndDelete:

    async def test_owner_updates_observations(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        updated = await RequestService.update_request(
            db, world.alice, created.id, PurchaseRequestUpdate(observations="Urgent for Monday")
        )
        assert updated.observations == "Urgent for Monday"

    async def test_requester_cannot_set_admin_notes(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        with pytest.raises(HTTPException) as exc:
            await RequestService.update_request(db, world.alice, created.id, PurchaseRequestUpdate(adminNotes="x"))
        assert exc.value.status_code == 403

    async def test_owner_deletes_pending_request(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        request_id = created.id
        await RequestService.delete_request(db, world.alice, request_id)
        with pytest.raises(HTTPException) as exc:
            await RequestService.get_request(db, world.alice, request_id)
        assert exc.value.status_code == 404

    async def test_reviewed_request_cannot_be_deleted_by_owner(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        await LifecycleService.review_item(
            db, notifier, world.admin, created.items[0].id, ReviewItemPayload(status="approved")
        )
        with pytest.raises(HTTPException) as exc:
            await RequestService.delete_request(db, world.alice, created.id)
        assert exc.value.status_code == 409


class TestItems:

    async def test_add_item_while_pending(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        item = await RequestService.add_item(
            db, world.alice, created.id, RequestItemInput(productId=world.drill.id, quantity=4)
        )
        assert item.status == "pending"
        assert item.quantity == 4
        items = await RequestService.list_items(db, world.alice, created.id)
        assert [i.product_id for i in items] == [world.cable.id, world.drill.id]

    async def test_add_duplicate_product_conflicts(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        with pytest.raises(HTTPException) as exc:
            await RequestService.add_item(
                db, world.alice, created.id, RequestItemInput(productId=world.cable.id, quantity=1)
            )
        assert exc.value.status_code == 409

    async def test_update_item_quantity(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        item = await RequestService.update_item(
            db, world.alice, created.id, created.items[0].id, RequestItemUpdate(quantity=7)
        )
        assert item.quantity == 7

    async def test_reviewed_item_quantity_is_frozen(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        item_id = created.items[0].id
        await LifecycleService.review_item(db, notifier, world.admin, item_id, ReviewItemPayload(status="approved"))
        with pytest.raises(HTTPException) as exc:
            await RequestService.update_item(db, world.alice, created.id, item_id, RequestItemUpdate(quantity=9))
        assert exc.value.status_code == 409

    async def test_last_item_cannot_be_deleted(self, db, notifier, world):
        created = await RequestService.create_request(db, notifier, world.alice, create_payload((world.cable, 1)))
        with pytest.raises(HTTPException) as exc:
            await RequestService.delete_item(db, world.alice, created.id, created.items[0].id)
        assert exc.value.status_code == 409

    async def test_deleting_the_pending_item_recomputes_status(self, db, notifier, world):
        created = await RequestService.create_request(
            db, notifier, world.alice, create_payload((world.cable, 1), (world.drill, 1))
        )
        request_id = created.id
        first_id, second_id = [i.id for i in created.items]
        await LifecycleService.review_item(db, notifier, world.admin, first_id, ReviewItemPayload(status="approved"))

        await RequestService.delete_item(db, world.alice, request_id, second_id)
        request = await RequestService.load_request(db, request_id)
        assert request.status == "approved"
        assert [i.id for i in request.items] == [first_id]
