"""MessageApplicationService: store, cache and event pipeline."""

import pytest

from app.common.exceptions.exceptions import TenantRequiredError
from app.infra.persistence.cache_manager import CacheKeys
from app.message.exceptions import InvalidSortFieldError
from app.security.tenant_context import TenantContext


async def create(service, tenant, conversation_id="c1", content="hello", **kwargs):
    return await service.create_message(
        tenant, conversation_id=conversation_id, sender_id="u1", content=content, **kwargs
    )


# =============================================================================
# create_message
# =============================================================================

async def test_create_saves_caches_and_publishes(message_service, tenant, repository, redis, transport):
    message = await create(message_service, tenant, metadata={"k": "v"})

    assert message.id
    assert message.tenant_id == "tenant-a"
    assert repository.get_call_count("save") == 1
    assert redis.ttls[CacheKeys.message("tenant-a", message.id)] == 3600

    assert len(transport.published) == 1
    record = transport.published[0]
    assert record.value["type"] == "message.created"
    assert record.value["payload"]["id"] == message.id
    assert record.key == "c1"


async def test_create_assigns_unique_ids(message_service, tenant):
    first = await create(message_service, tenant)
    second = await create(message_service, tenant)
    assert first.id != second.id


async def test_create_invalidates_cached_conversation_pages(message_service, tenant, redis):
    await message_service.get_messages_by_conversation(tenant, "c1", 1, 10)
    await message_service.get_messages_by_conversation(tenant, "c1", 2, 5)
    assert CacheKeys.conversation_page("tenant-a", "c1", 2, 5) in redis.store

    await create(message_service, tenant)

    assert CacheKeys.conversation_page("tenant-a", "c1", 1, 10) not in redis.store
    assert CacheKeys.conversation_page("tenant-a", "c1", 2, 5) not in redis.store


async def test_create_fails_when_store_fails(message_service, tenant, repository, transport):
    repository.configure_failure("save", "mongo down")

    with pytest.raises(ConnectionError):
        await create(message_service, tenant)

    assert transport.published == []


async def test_create_succeeds_when_publish_fails(message_service, tenant, repository, transport):
    transport.configure_failure("publish", "broker down")

    message = await create(message_service, tenant)

    assert (message.tenant_id, message.id) in repository.messages


async def test_create_succeeds_when_cache_fails(message_service, tenant, redis, transport):
    redis.fail_all()

    message = await create(message_service, tenant)

    assert message.content == "hello"
    assert len(transport.published) == 1


async def test_create_requires_tenant(message_service):
    with pytest.raises(TenantRequiredError):
        await create(message_service, TenantContext())


# =============================================================================
# get_message_by_id
# =============================================================================

async def test_get_reads_through_cache(message_service, tenant, repository):
    message = await create(message_service, tenant)
    repository.clear()  # forget calls, keep nothing in the store

    cached = await message_service.get_message_by_id(tenant, message.id)

    assert cached == message
    assert repository.get_call_count("find_by_id") == 0


async def test_get_populates_cache_on_miss(message_service, tenant, repository, redis):
    message = await create(message_service, tenant)
    redis.clear()

    first = await message_service.get_message_by_id(tenant, message.id)
    second = await message_service.get_message_by_id(tenant, message.id)

    assert first == second == message
    assert repository.get_call_count("find_by_id") == 1


async def test_get_missing_returns_none(message_service, tenant):
    assert await message_service.get_message_by_id(tenant, "nope") is None


async def test_get_is_tenant_isolated(message_service, tenant, other_tenant):
    message = await create(message_service, tenant)
    assert await message_service.get_message_by_id(other_tenant, message.id) is None


# =============================================================================
# update_message
# =============================================================================

async def test_update_applies_changes_and_publishes(message_service, tenant, transport):
    message = await create(message_service, tenant, metadata={"a": 1})

    updated = await message_service.update_message(tenant, message.id, content="edited", metadata={"b": 2})

    assert updated.content == "edited"
    assert updated.metadata == {"a": 1, "b": 2}
    assert updated.timestamp == message.timestamp
    assert transport.published[-1].value["type"] == "message.updated"
    assert (await message_service.get_message_by_id(tenant, message.id)).content == "edited"


async def test_update_without_changes_keeps_content(message_service, tenant):
    message = await create(message_service, tenant)
    updated = await message_service.update_message(tenant, message.id)
    assert updated.content == "hello"


async def test_update_missing_returns_none(message_service, tenant, transport):
    assert await message_service.update_message(tenant, "nope", content="x") is None
    assert transport.published == []


async def test_update_other_tenant_returns_none(message_service, tenant, other_tenant):
    message = await create(message_service, tenant)
    assert await message_service.update_message(other_tenant, message.id, content="x") is None


# =============================================================================
# delete_message
# =============================================================================

async def test_delete_removes_invalidates_and_publishes(message_service, tenant, repository, redis, transport):
    message = await create(message_service, tenant)

    assert await message_service.delete_message(tenant, message.id) is True

    assert repository.messages == {}
    assert CacheKeys.message("tenant-a", message.id) not in redis.store
    event = transport.published[-1].value
    assert event["type"] == "message.deleted"
    assert event["payload"] == {"id": message.id, "conversationId": "c1", "tenantId": "tenant-a"}
    assert await message_service.get_message_by_id(tenant, message.id) is None


async def test_delete_missing_returns_false(message_service, tenant):
    assert await message_service.delete_message(tenant, "nope") is False


# =============================================================================
# get_messages_by_conversation
# =============================================================================

async def test_listing_paginates_newest_first(message_service, tenant):
    created = [await create(message_service, tenant, content=f"m{i}") for i in range(3)]

    result = await message_service.get_messages_by_conversation(tenant, "c1", 1, 2)

    assert [m.id for m in result.data] == [created[2].id, created[1].id]
    assert result.pagination.total_items == 3
    assert result.pagination.total_pages == 2


async def test_listing_past_last_page_is_empty(message_service, tenant):
    for i in range(42):
        await create(message_service, tenant, content=f"m{i}")

    result = await message_service.get_messages_by_conversation(tenant, "c1", 6, 10)

    assert result.data == []
    assert (result.pagination.page, result.pagination.limit) == (6, 10)
    assert (result.pagination.total_items, result.pagination.total_pages) == (42, 5)


async def test_listing_coerces_page_and_limit(message_service, tenant, repository):
    result = await message_service.get_messages_by_conversation(tenant, "c1", 0, -5)

    assert (result.pagination.page, result.pagination.limit) == (1, 10)
    assert repository.get_last_call("find_by_conversation_id").args[2:4] == (1, 10)


async def test_listing_is_cached(message_service, tenant, repository, redis):
    await create(message_service, tenant)

    first = await message_service.get_messages_by_conversation(tenant, "c1", 1, 10, "timestamp", "asc")
    second = await message_service.get_messages_by_conversation(tenant, "c1", 1, 10, "timestamp", "asc")

    assert first == second
    assert repository.get_call_count("find_by_conversation_id") == 1
    key = CacheKeys.conversation_page("tenant-a", "c1", 1, 10, "timestamp", "asc")
    assert redis.ttls[key] == 300
    assert key in redis.sets[CacheKeys.conversation_index("tenant-a", "c1")]


async def test_listing_rejects_unknown_sort_field(message_service, tenant):
    with pytest.raises(InvalidSortFieldError):
        await message_service.get_messages_by_conversation(tenant, "c1", 1, 10, "password")


async def test_listing_is_tenant_isolated(message_service, tenant, other_tenant):
    await create(message_service, tenant)

    result = await message_service.get_messages_by_conversation(other_tenant, "c1", 1, 10)

    assert result.data == []
    assert result.pagination.total_items == 0
    assert result.pagination.total_pages == 0


async def test_listing_falls_back_to_store_when_cache_down(message_service, tenant, redis):
    await create(message_service, tenant)
    redis.fail_all()

    result = await message_service.get_messages_by_conversation(tenant, "c1", 1, 10)

    assert result.pagination.total_items == 1
