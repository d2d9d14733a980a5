"""
Tests for audited mutations.
"""
import logging
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from bson import json_util

from mongo_repository.models.audit import AuditRecord
from mongo_repository.repositories.audited import AuditedRepository
from mongo_repository.services.audit_service import reset_current_actor, set_current_actor
from sample_entities import Order


class AuditedOrderRepository(AuditedRepository[Order]):
    entity_type = Order


@pytest.fixture
def repository(client_factory, mongo_options, registry):
    return AuditedOrderRepository(options=mongo_options, client_factory=client_factory, registry=registry)


@pytest.fixture
def orders(client_factory):
    return client_factory.collection("Shop", "Orders")


@pytest.fixture
def audits(client_factory):
    return client_factory.collection("Shop", "OrderAudit")


@pytest.mark.asyncio
async def test_add_with_audit_records_post_image(repository, audits):
    order = await repository.add_with_audit(Order(id="o-1", number=" 1001 "), audit_description="order 1001")

    assert order.number == "1001"
    assert len(audits.documents) == 1
    record = audits.documents[0]
    assert record["operation"] == "Add order 1001"
    assert record["collection"] == "Shop.Orders"
    assert record["old_item"] is None
    assert json_util.loads(record["new_item"])["number"] == "1001"
    assert record["operated_by"] == "system"
    assert isinstance(record["operated_at"], datetime)


@pytest.mark.asyncio
async def test_operation_label_without_description_is_trimmed(repository, audits):
    await repository.add_with_audit(Order(id="o-1", number="1"))

    assert audits.documents[0]["operation"] == "Add"


@pytest.mark.asyncio
async def test_update_with_audit_fetches_prior_state(repository, orders, audits):
    await repository.add(Order(id="o-1", number="1", status="open"))

    await repository.update_with_audit(Order(id="o-1", number="1", status="paid"))

    record = audits.documents[0]
    assert record["operation"] == "Update"
    assert json_util.loads(record["old_item"])["status"] == "open"
    assert json_util.loads(record["new_item"])["status"] == "paid"
    assert orders.calls["find_one"] == 1


@pytest.mark.asyncio
async def test_update_with_audit_uses_supplied_old_entity(repository, orders, audits):
    await repository.add(Order(id="o-1", number="1", status="open"))
    old = Order(id="o-1", number="1", status="draft")

    await repository.update_with_audit(Order(id="o-1", number="1", status="paid"), old_entity=old)

    assert orders.calls["find_one"] == 0
    assert json_util.loads(audits.documents[0]["old_item"])["status"] == "draft"


@pytest.mark.asyncio
async def test_delete_with_audit_of_missing_id_writes_nothing(repository, audits):
    assert await repository.delete_with_audit("missing") is None
    assert audits.documents == []


@pytest.mark.asyncio
async def test_delete_with_audit_records_pre_image(repository, orders, audits):
    await repository.add(Order(id="o-1", number="1", customer="alice"))
    snapshot = dict(orders.documents[0])

    removed = await repository.delete_with_audit("o-1")

    assert removed.customer == "alice"
    assert orders.documents == []
    assert len(audits.documents) == 1
    record = audits.documents[0]
    assert record["operation"] == "Delete Order with Id: o-1"
    assert json_util.loads(record["old_item"]) == snapshot
    assert record["new_item"] is None


@pytest.mark.asyncio
async def test_supplied_audit_record_only_gets_images_and_context(repository, audits):
    supplied = AuditRecord(operation="Manual correction", operated_by="support-bot")

    await repository.add_with_audit(Order(id="o-1", number="1"), audit=supplied, audit_description="ignored")

    record = audits.documents[0]
    assert record["operation"] == "Manual correction"
    assert record["operated_by"] == "support-bot"
    assert record["collection"] == "Shop.Orders"
    assert record["new_item"] is not None
    assert record["operated_at"] is not None


@pytest.mark.asyncio
async def test_actor_comes_from_context(repository, audits):
    token = set_current_actor("alice")
    try:
        await repository.add_with_audit(Order(id="o-1", number="1"))
    finally:
        reset_current_actor(token)

    assert audits.documents[0]["operated_by"] == "alice"


@pytest.mark.asyncio
async def test_audit_persistence_failure_does_not_fail_mutation(repository, orders, audits, caplog):
    audits.fail_inserts = True

    with caplog.at_level(logging.ERROR, logger="MongoRepository"):
        order = await repository.add_with_audit(Order(id="o-1", number="1"))

    assert order.id == "o-1"
    assert len(orders.documents) == 1
    assert audits.documents == []
    assert any("Failed to write audit record" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_audit_provider_failure_does_not_fail_mutation(client_factory, mongo_options, registry, orders, audits):
    provider = MagicMock()
    provider.audit_shell_for.side_effect = RuntimeError("no actor")
    repository = AuditedOrderRepository(
        options=mongo_options, client_factory=client_factory, registry=registry, audit_service=provider
    )

    removed = await repository.delete_with_audit("missing")
    await repository.add_with_audit(Order(id="o-1", number="1"))

    assert removed is None
    assert len(orders.documents) == 1
    assert audits.documents == []
    provider.audit_shell_for.assert_called_once_with("Add", AuditRecord)
