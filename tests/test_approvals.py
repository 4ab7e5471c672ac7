"""
Approval and rejection tests.

Verifies:
- Approvals update inventory, request status, audit log and notification together
- Failed approvals leave every collection untouched
- Concurrent approvals of one request commit exactly once
- Transient commit conflicts are retried
"""

import asyncio
from datetime import datetime

import pytest

from inventory_tracker.core.exceptions import (
    AlreadyProcessedError,
    InsufficientStockError,
    InventoryItemNotFoundError,
    RequestNotFoundError,
    StalePlanError,
    TransactionConflictError,
)
from inventory_tracker.db.document_store import (
    ACTION_LOGS_COLLECTION,
    ADDITION_REQUESTS_COLLECTION,
    INVENTORY_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    REMOVAL_REQUESTS_COLLECTION,
)
from inventory_tracker.domains.approvals.engine import ApprovalEngine
from inventory_tracker.domains.approvals.precheck import PrecheckService
from inventory_tracker.domains.approvals.service import ApprovalService
from inventory_tracker.models.approval import UnitResolution
from inventory_tracker.models.request import LineItem, RequestKind, RequestStatus


def quantity_of(store, item_id):
    return store.snapshot(INVENTORY_COLLECTION, item_id)["quantity"]


def assert_nothing_written(store, collection, request_id):
    assert store.snapshot(collection, request_id)["status"] == "pending"
    assert store.all(ACTION_LOGS_COLLECTION) == []
    assert store.all(NOTIFICATIONS_COLLECTION) == []


# =============================================================================
# APPROVE
# =============================================================================


class TestApprove:

    async def test_simple_removal(self, store, admin, user, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])

        outcome = await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert outcome.conflict is None
        assert outcome.result.status is RequestStatus.APPROVED
        assert outcome.result.items == [{"id": "milk", "name": "Milk", "quantity": 8, "unit": "L"}]
        assert quantity_of(store, "milk") == 8
        assert isinstance(store.snapshot(INVENTORY_COLLECTION, "milk")["last_updated"], datetime)

        request = store.snapshot(REMOVAL_REQUESTS_COLLECTION, "r1")
        assert request["status"] == "approved"
        assert request["admin_id"] == admin.id
        assert request["admin_name"] == admin.name
        assert isinstance(request["processed_timestamp"], datetime)

        [log] = store.all(ACTION_LOGS_COLLECTION)
        assert log["action_type"] == "approve_removal_request"
        assert log["request_id"] == "r1"
        assert log["details"]["approved_items"][0]["name"] == "Milk"

        [notification] = store.all(NOTIFICATIONS_COLLECTION)
        assert notification["user_id"] == user.id
        assert notification["type"] == "request_approved"
        assert notification["is_read"] is False
        assert notification["message"] == (
            "Your removal request for 2 L of Milk has been approved. Inventory updated."
        )
        assert notification["approved_items"] == [{"name": "Milk", "quantity": 2, "unit": "L"}]

    async def test_insufficient_stock_changes_nothing(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 1, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])

        with pytest.raises(InsufficientStockError) as exc_info:
            await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert exc_info.value.message == "Insufficient stock for Milk. Requested: 2, Available: 1."
        assert exc_info.value.status_code == 422
        assert quantity_of(store, "milk") == 1
        assert_nothing_written(store, REMOVAL_REQUESTS_COLLECTION, "r1")

    async def test_removal_to_exactly_zero(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 2, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])

        await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert quantity_of(store, "milk") == 0

    async def test_one_failing_line_rolls_back_the_batch(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_item("eggs", "Eggs", 3, "piece")
        seed_request("r1", "removal", [
            {"name": "Milk", "quantity": 2, "unit": "L"},
            {"name": "Eggs", "quantity": 6, "unit": "piece"},
        ])

        with pytest.raises(InsufficientStockError):
            await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert quantity_of(store, "milk") == 10
        assert quantity_of(store, "eggs") == 3
        assert_nothing_written(store, REMOVAL_REQUESTS_COLLECTION, "r1")

    async def test_conversion_on_addition(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("a1", "addition", [{"name": "Milk", "quantity": 500, "unit": "mL", "subcategory": "dairy"}])

        await ApprovalService(store).approve_request(RequestKind.ADDITION, "a1", admin)

        assert quantity_of(store, "milk") == pytest.approx(10.5)
        assert store.snapshot(INVENTORY_COLLECTION, "milk")["unit"] == "L"

    async def test_new_item_is_created(self, store, admin, seed_request):
        seed_request("a1", "addition", [
            {"name": "Red Onions", "quantity": 3, "unit": "kg", "subcategory": "vegetables"},
        ])

        outcome = await ApprovalService(store).approve_request(RequestKind.ADDITION, "a1", admin)

        item = store.snapshot(INVENTORY_COLLECTION, "red_onions")
        assert item["name"] == "Red Onions"
        assert item["normalized_name"] == "red onions"
        assert item["quantity"] == 3
        assert item["unit"] == "kg"
        assert item["subcategory"] == "vegetables"
        assert item["category"] == "cooler"
        assert outcome.result.items[0]["id"] == "red_onions"

        [notification] = store.all(NOTIFICATIONS_COLLECTION)
        assert notification["message"] == "Your addition request for 3 kg of Red Onions has been approved."
        assert "approved_items" not in notification

    async def test_several_lines_on_one_item(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [
            {"name": "Milk", "quantity": 2, "unit": "L"},
            {"name": "milk", "quantity": 500, "unit": "mL"},
        ])

        outcome = await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert quantity_of(store, "milk") == 7.5
        assert len(outcome.result.items) == 1
        [notification] = store.all(NOTIFICATIONS_COLLECTION)
        assert notification["message"].startswith("Your removal request for 2 items")

    async def test_quantities_are_rounded(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 0.1, "L")
        seed_request("a1", "addition", [{"name": "Milk", "quantity": 0.2, "unit": "L", "subcategory": "dairy"}])

        await ApprovalService(store).approve_request(RequestKind.ADDITION, "a1", admin)

        assert quantity_of(store, "milk") == 0.3

    async def test_legacy_single_item_request(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [], requested_item={"name": "Milk", "quantity_to_remove": 4, "unit": "L"})

        await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert quantity_of(store, "milk") == 6

    async def test_legacy_item_gets_normalized_name(self, store, admin, seed_item, seed_request):
        seed_item("legacy", "Tomato Paste", 3, "can", normalized=False)
        seed_request("a1", "addition", [{"name": "Tomato Paste", "quantity": 2, "unit": "can", "subcategory": "canned"}])

        await ApprovalService(store).approve_request(RequestKind.ADDITION, "a1", admin)

        item = store.snapshot(INVENTORY_COLLECTION, "legacy")
        assert item["quantity"] == 5
        assert item["normalized_name"] == "tomato paste"

    async def test_missing_request(self, store, admin):
        with pytest.raises(RequestNotFoundError):
            await ApprovalService(store).approve_request(RequestKind.ADDITION, "missing", admin)

    async def test_removal_of_unknown_item(self, store, admin, seed_request):
        seed_request("r1", "removal", [{"name": "Caviar", "quantity": 1, "unit": "kg"}])

        with pytest.raises(InventoryItemNotFoundError):
            await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert_nothing_written(store, REMOVAL_REQUESTS_COLLECTION, "r1")

    async def test_second_approval_is_refused(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        service = ApprovalService(store)
        await service.approve_request(RequestKind.REMOVAL, "r1", admin)

        with pytest.raises(AlreadyProcessedError) as exc_info:
            await service.approve_request(RequestKind.REMOVAL, "r1", admin)

        assert exc_info.value.message == "Request has already been approved."
        assert quantity_of(store, "milk") == 8


# =============================================================================
# UNIT CONFLICTS
# =============================================================================


class TestUnitConflict:

    async def test_conflict_halts_before_any_write(self, store, admin, seed_item, seed_request):
        seed_item("flour", "Flour", 3, "bag")
        seed_request("a1", "addition", [
            {"name": "Sugar", "quantity": 2, "unit": "kg", "subcategory": "dry"},
            {"name": "Flour", "quantity": 5, "unit": "kg", "subcategory": "dry"},
        ])

        outcome = await ApprovalService(store).approve_request(RequestKind.ADDITION, "a1", admin)

        assert outcome.result is None
        assert outcome.conflict.item.name == "Flour"
        assert outcome.conflict.existing_unit == "bag"
        assert store.snapshot(INVENTORY_COLLECTION, "sugar") is None
        assert quantity_of(store, "flour") == 3
        assert_nothing_written(store, ADDITION_REQUESTS_COLLECTION, "a1")

    async def test_keep_existing_unit(self, store, admin, seed_item, seed_request):
        seed_item("flour", "Flour", 3, "bag")
        seed_request("a1", "addition", [{"name": "Flour", "quantity": 5, "unit": "kg", "subcategory": "dry"}])

        outcome = await ApprovalService(store).approve_request(
            RequestKind.ADDITION, "a1", admin, {"Flour": UnitResolution.KEEP_EXISTING}
        )

        assert outcome.conflict is None
        item = store.snapshot(INVENTORY_COLLECTION, "flour")
        assert item["quantity"] == 8
        assert item["unit"] == "bag"

    async def test_use_incoming_unit(self, store, admin, seed_item, seed_request):
        seed_item("flour", "Flour", 3, "bag")
        seed_request("a1", "addition", [{"name": "Flour", "quantity": 5, "unit": "kg", "subcategory": "dry"}])

        await ApprovalService(store).approve_request(
            RequestKind.ADDITION, "a1", admin, {"flour": UnitResolution.USE_INCOMING}
        )

        item = store.snapshot(INVENTORY_COLLECTION, "flour")
        assert item["quantity"] == 8
        assert item["unit"] == "kg"

    async def test_removal_conflict_can_be_resolved(self, store, admin, seed_item, seed_request):
        seed_item("beans", "Beans", 12, "can")
        seed_request("r1", "removal", [{"name": "Beans", "quantity": 2, "unit": "case"}])
        service = ApprovalService(store)

        outcome = await service.approve_request(RequestKind.REMOVAL, "r1", admin)
        assert outcome.conflict.existing_unit == "can"

        await service.approve_request(RequestKind.REMOVAL, "r1", admin, {"beans": UnitResolution.KEEP_EXISTING})
        assert quantity_of(store, "beans") == 10


    async def test_repeated_new_item_resolved_in_one_batch(self, store, admin, seed_request):
        seed_request("a1", "addition", [
            {"name": "Milk", "quantity": 1, "unit": "case", "subcategory": "dairy"},
            {"name": "milk", "quantity": 2, "unit": "L", "subcategory": "dairy"},
        ])
        service = ApprovalService(store)

        outcome = await service.approve_request(RequestKind.ADDITION, "a1", admin)
        assert outcome.conflict.existing_unit == "case"
        assert store.snapshot(INVENTORY_COLLECTION, "milk") is None

        outcome = await service.approve_request(
            RequestKind.ADDITION, "a1", admin, {"milk": UnitResolution.KEEP_EXISTING}
        )

        assert outcome.result.status is RequestStatus.APPROVED
        item = store.snapshot(INVENTORY_COLLECTION, "milk")
        assert item["quantity"] == 3
        assert item["unit"] == "case"

    async def test_item_without_stored_unit_takes_incoming_unit(self, store, admin, seed_request):
        store.seed(INVENTORY_COLLECTION, "yeast", {"name": "Yeast", "normalized_name": "yeast", "quantity": 4})
        seed_request("a1", "addition", [{"name": "Yeast", "quantity": 1, "unit": "kg", "subcategory": "dry"}])
        service = ApprovalService(store)

        outcome = await service.approve_request(RequestKind.ADDITION, "a1", admin)
        assert outcome.conflict.existing_unit == ""

        await service.approve_request(RequestKind.ADDITION, "a1", admin, {"yeast": UnitResolution.USE_INCOMING})

        item = store.snapshot(INVENTORY_COLLECTION, "yeast")
        assert item["quantity"] == 5
        assert item["unit"] == "kg"


# =============================================================================
# PLAN VS. CURRENT STATE
# =============================================================================


class TestEngineRereads:

    async def test_unit_changed_after_precheck(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        items = [LineItem(name="Milk", quantity=2, unit="L")]
        precheck = await PrecheckService(store).precheck(RequestKind.REMOVAL, items)

        seed_item("milk", "Milk", 10, "bottle")

        with pytest.raises(StalePlanError):
            await ApprovalEngine(store).approve(RequestKind.REMOVAL, "r1", precheck.plan, admin)
        assert_nothing_written(store, REMOVAL_REQUESTS_COLLECTION, "r1")

    async def test_stock_read_inside_transaction(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        precheck = await PrecheckService(store).precheck(
            RequestKind.REMOVAL, [LineItem(name="Milk", quantity=2, unit="L")]
        )

        seed_item("milk", "Milk", 1, "L")

        with pytest.raises(InsufficientStockError):
            await ApprovalEngine(store).approve(RequestKind.REMOVAL, "r1", precheck.plan, admin)

    async def test_planned_create_on_item_that_appeared(self, store, admin, seed_item, seed_request):
        seed_request("a1", "addition", [{"name": "Red Onions", "quantity": 3, "unit": "kg", "subcategory": "vegetables"}])
        precheck = await PrecheckService(store).precheck(
            RequestKind.ADDITION, [LineItem(name="Red Onions", quantity=3, unit="kg", subcategory="vegetables")]
        )

        seed_item("red_onions", "Red Onions", 1, "kg")

        await ApprovalEngine(store).approve(RequestKind.ADDITION, "a1", precheck.plan, admin)

        assert quantity_of(store, "red_onions") == 4


# =============================================================================
# CONCURRENCY
# =============================================================================


class TestConcurrency:

    async def test_double_approval_race(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        service = ApprovalService(store)

        results = await asyncio.gather(
            service.approve_request(RequestKind.REMOVAL, "r1", admin),
            service.approve_request(RequestKind.REMOVAL, "r1", admin),
            return_exceptions=True,
        )

        committed = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, AlreadyProcessedError)]
        assert len(committed) == 1
        assert len(refused) == 1
        assert quantity_of(store, "milk") == 8
        assert len(store.all(ACTION_LOGS_COLLECTION)) == 1
        assert len(store.all(NOTIFICATIONS_COLLECTION)) == 1

    async def test_two_removals_compete_for_stock(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 6, "unit": "L"}])
        seed_request("r2", "removal", [{"name": "Milk", "quantity": 6, "unit": "L"}])
        service = ApprovalService(store)

        results = await asyncio.gather(
            service.approve_request(RequestKind.REMOVAL, "r1", admin),
            service.approve_request(RequestKind.REMOVAL, "r2", admin),
            return_exceptions=True,
        )

        committed = [r for r in results if not isinstance(r, Exception)]
        refused = [r for r in results if isinstance(r, InsufficientStockError)]
        assert len(committed) == 1
        assert len(refused) == 1
        assert quantity_of(store, "milk") == 4
        statuses = sorted(
            store.snapshot(REMOVAL_REQUESTS_COLLECTION, request_id)["status"] for request_id in ("r1", "r2")
        )
        assert statuses == ["approved", "pending"]
        assert len(store.all(ACTION_LOGS_COLLECTION)) == 1

    async def test_transient_conflict_is_retried(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        store.fail_next_commits = 2

        await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert store.commit_attempts == 3
        assert quantity_of(store, "milk") == 8
        assert len(store.all(NOTIFICATIONS_COLLECTION)) == 1

    async def test_gives_up_after_max_attempts(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])
        store.fail_next_commits = 100

        with pytest.raises(TransactionConflictError):
            await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert store.commit_attempts == 5
        assert quantity_of(store, "milk") == 10
        assert_nothing_written(store, REMOVAL_REQUESTS_COLLECTION, "r1")

    async def test_domain_errors_are_not_retried(self, store, admin, seed_item, seed_request):
        seed_item("milk", "Milk", 1, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])

        with pytest.raises(InsufficientStockError):
            await ApprovalService(store).approve_request(RequestKind.REMOVAL, "r1", admin)

        assert store.commit_attempts == 1


# =============================================================================
# REJECT
# =============================================================================


class TestReject:

    async def test_reject_with_notes(self, store, admin, user, seed_item, seed_request):
        seed_item("milk", "Milk", 10, "L")
        seed_request("r1", "removal", [{"name": "Milk", "quantity": 2, "unit": "L"}])

        result = await ApprovalService(store).reject_request(RequestKind.REMOVAL, "r1", admin, "Not needed")

        assert result.status is RequestStatus.REJECTED
        assert quantity_of(store, "milk") == 10

        request = store.snapshot(REMOVAL_REQUESTS_COLLECTION, "r1")
        assert request["status"] == "rejected"
        assert request["admin_notes"] == "Not needed"
        assert request["admin_id"] == admin.id

        [log] = store.all(ACTION_LOGS_COLLECTION)
        assert log["action_type"] == "reject_removal_request"
        assert log["details"]["reason"] == "Not needed"
        assert log["details"]["rejected_items"][0]["name"] == "Milk"

        [notification] = store.all(NOTIFICATIONS_COLLECTION)
        assert notification["user_id"] == user.id
        assert notification["type"] == "request_rejected"
        assert notification["message"] == (
            "Your removal request for 1 item(s) has been rejected. Notes: Not needed"
        )

    async def test_reject_without_notes(self, store, admin, seed_request):
        seed_request("a1", "addition", [{"name": "Milk", "quantity": 1, "unit": "L", "subcategory": "dairy"}])

        await ApprovalService(store).reject_request(RequestKind.ADDITION, "a1", admin, "   ")

        request = store.snapshot(ADDITION_REQUESTS_COLLECTION, "a1")
        assert request["admin_notes"] == "No specific reason provided."

    async def test_cannot_reject_twice(self, store, admin, seed_request):
        seed_request("a1", "addition", [{"name": "Milk", "quantity": 1, "unit": "L", "subcategory": "dairy"}])
        service = ApprovalService(store)
        await service.reject_request(RequestKind.ADDITION, "a1", admin)

        with pytest.raises(AlreadyProcessedError):
            await service.reject_request(RequestKind.ADDITION, "a1", admin)
        with pytest.raises(AlreadyProcessedError):
            await service.approve_request(RequestKind.ADDITION, "a1", admin)

    async def test_reject_missing_request(self, store, admin):
        with pytest.raises(RequestNotFoundError):
            await ApprovalService(store).reject_request(RequestKind.REMOVAL, "missing", admin)
