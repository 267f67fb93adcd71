"""MessageSearchIndex: mapping, writes, query construction and pagination math."""

import pytest

from app.common.exceptions.exceptions import SearchIndexError
from app.infra.search.message_index import (
    MESSAGE_MAPPING,
    MessageSearchIndex,
    build_index_settings,
    extract_total,
)
from app.message.entity import Message
from app.message.pagination import total_pages


def doc(message_id="m1", content="hello world", conversation_id="c1", tenant_id="tenant-a"):
    return Message.create(
        id=message_id, conversation_id=conversation_id, sender_id="u1", content=content, tenant_id=tenant_id
    ).to_dict()


async def test_ensure_index_creates_once(search_index, es):
    assert await search_index.ensure_index() is True
    assert await search_index.ensure_index() is False

    assert es.indices.get_call_count("create") == 1
    created = es.indices.get_last_call("create").kwargs
    assert created["index"] == "messages"
    assert created["mappings"] == MESSAGE_MAPPING


async def test_ensure_index_wraps_failures(search_index, es):
    es.indices.configure_failure("exists", "connection refused")

    with pytest.raises(SearchIndexError):
        await search_index.ensure_index()


def test_mapping_fields():
    properties = MESSAGE_MAPPING["properties"]
    for keyword_field in ("id", "conversationId", "senderId", "tenantId"):
        assert properties[keyword_field] == {"type": "keyword"}
    assert properties["content"]["type"] == "text"
    assert properties["content"]["analyzer"] == "standard"
    assert properties["content"]["fields"]["ngram"]["analyzer"] == "ngram_analyzer"
    assert properties["content"]["fields"]["keyword"]["type"] == "keyword"
    assert properties["timestamp"]["type"] == "date"
    assert properties["metadata"] == {"type": "object", "enabled": True}


def test_settings_define_ngram_analysis():
    settings = build_index_settings(shards=3, replicas=2)

    assert settings["number_of_shards"] == 3
    assert settings["number_of_replicas"] == 2
    assert settings["max_ngram_diff"] == 15
    assert settings["analysis"]["analyzer"]["ngram_analyzer"] == {
        "type": "custom",
        "tokenizer": "standard",
        "filter": ["lowercase", "ngram_filter"],
    }
    assert settings["analysis"]["filter"]["ngram_filter"] == {"type": "ngram", "min_gram": 2, "max_gram": 15}


async def test_writes_refresh_immediately(search_index, es):
    await search_index.index_document(doc())
    await search_index.update_document("m1", {"content": "changed"})
    await search_index.delete_document("m1")

    assert es.get_last_call("index").kwargs["refresh"] is True
    assert es.get_last_call("update").kwargs["refresh"] is True
    assert es.get_last_call("delete").kwargs["refresh"] is True
    assert es.docs() == {}


async def test_update_of_missing_document_raises(search_index):
    with pytest.raises(SearchIndexError):
        await search_index.update_document("missing", {"content": "x"})


async def test_search_builds_filtered_fuzzy_query(search_index, es):
    await search_index.search("c1", "tenant-a", "hello", page=3, limit=20)

    call = es.get_last_call("search").kwargs
    must = call["query"]["bool"]["must"]
    assert {"term": {"conversationId": "c1"}} in must
    assert {"term": {"tenantId": "tenant-a"}} in must
    multi_match = next(c["multi_match"] for c in must if "multi_match" in c)
    assert multi_match == {"query": "hello", "fields": ["content", "content.ngram"], "fuzziness": "AUTO"}
    assert call["sort"] == [{"timestamp": {"order": "desc"}}]
    assert (call["from_"], call["size"]) == (40, 20)


async def test_search_maps_hits_to_messages(search_index):
    for i in range(3):
        await search_index.index_document(doc(message_id=f"m{i}", content=f"hello {i}"))

    page = await search_index.search("c1", "tenant-a", "hello", page=2, limit=2)

    assert len(page.data) == 1
    assert page.pagination.total_items == 3
    assert page.pagination.total_pages == 2


async def test_search_past_last_page_is_empty(search_index):
    for i in range(42):
        await search_index.index_document(doc(message_id=f"m{i}", content=f"hello {i}"))

    page = await search_index.search("c1", "tenant-a", "hello", page=6, limit=10)

    assert page.data == []
    assert (page.pagination.page, page.pagination.limit) == (6, 10)
    assert (page.pagination.total_items, page.pagination.total_pages) == (42, 5)


async def test_search_accepts_integer_totals(search_index, es):
    es.total_as_int = True
    await search_index.index_document(doc())

    page = await search_index.search("c1", "tenant-a", "hello", page=1, limit=10)

    assert page.pagination.total_items == 1


@pytest.mark.parametrize("total,limit,expected", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5), (42, 10, 5)])
def test_total_pages(total, limit, expected):
    assert total_pages(total, limit) == expected


def test_extract_total_shapes():
    assert extract_total({"total": 7}) == 7
    assert extract_total({"total": {"value": 4, "relation": "eq"}}) == 4
    assert extract_total({}) == 0


async def test_ping_reports_failures(search_index, es):
    assert await search_index.ping() is True
    es.configure_failure("ping")
    assert await search_index.ping() is False
