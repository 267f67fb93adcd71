# =============================================================================
# File: app/infra/search/message_index.py
# Description: Elasticsearch index of messages (mapping, writes, search)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List

from app.common.exceptions.exceptions import SearchIndexError
from app.message.entity import Message
from app.message.pagination import PaginatedMessages

log = logging.getLogger("message_service.infra.search.message_index")

MESSAGE_MAPPING: Dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "conversationId": {"type": "keyword"},
        "senderId": {"type": "keyword"},
        "tenantId": {"type": "keyword"},
        "content": {
            "type": "text",
            "analyzer": "standard",
            "fields": {
                "keyword": {"type": "keyword"},
                "ngram": {"type": "text", "analyzer": "ngram_analyzer"},
            },
        },
        "timestamp": {"type": "date"},
        "metadata": {"type": "object", "enabled": True},
    }
}

MESSAGE_ANALYSIS: Dict[str, Any] = {
    "analyzer": {
        "ngram_analyzer": {
            "type": "custom",
            "tokenizer": "standard",
            "filter": ["lowercase", "ngram_filter"],
        }
    },
    "filter": {
        "ngram_filter": {
            "type": "ngram",
            "min_gram": 2,
            "max_gram": 15,
        }
    },
}

MAX_NGRAM_DIFF = 15


def build_index_settings(shards: int, replicas: int) -> Dict[str, Any]:
    return {
        "number_of_shards": shards,
        "number_of_replicas": replicas,
        "max_ngram_diff": MAX_NGRAM_DIFF,
        "analysis": MESSAGE_ANALYSIS,
    }


def build_search_query(conversation_id: str, tenant_id: str, term: str) -> Dict[str, Any]:
    """Exact conversation and tenant filters plus a fuzzy match on content and its n-grams."""
    return {
        "bool": {
            "must": [
                {"term": {"conversationId": conversation_id}},
                {"term": {"tenantId": tenant_id}},
                {
                    "multi_match": {
                        "query": term,
                        "fields": ["content", "content.ngram"],
                        "fuzziness": "AUTO",
                    }
                },
            ]
        }
    }


def extract_total(hits: Dict[str, Any]) -> int:
    """hits.total is an int on old clusters and {"value": n, "relation": ...} on current ones."""
    total = hits.get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total or 0)


class MessageSearchIndex:
    """
    Secondary full-text index of messages.

    Writes refresh the index immediately so a document is searchable as
    soon as the call returns. Every client failure is re-raised as
    SearchIndexError.
    """

    def __init__(self, client, index_name: str = "messages", shards: int = 1, replicas: int = 1):
        self._client = client
        self._index = index_name
        self._shards = shards
        self._replicas = replicas

    @property
    def index_name(self) -> str:
        return self._index

    async def ensure_index(self) -> bool:
        """
        Create the index with the message mapping unless it already exists.

        Returns:
            True if the index was created, False if it was already there
        """
        try:
            exists = await self._client.indices.exists(index=self._index)
            if exists:
                log.info(f"Index '{self._index}' already exists")
                return False

            log.info(f"Index '{self._index}' does not exist, creating...")
            await self._client.indices.create(
                index=self._index,
                mappings=MESSAGE_MAPPING,
                settings=build_index_settings(self._shards, self._replicas),
            )
            log.info(f"Successfully created index: {self._index}")
            return True
        except Exception as e:
            log.error(f"Failed to ensure index '{self._index}': {e}", exc_info=True)
            raise SearchIndexError(f"Search index initialization failed: {e}") from e

    async def index_document(self, message: Dict[str, Any]) -> None:
        message_id = message.get("id")
        try:
            await self._client.index(index=self._index, id=message_id, document=message, refresh=True)
            log.debug(f"Indexed message: {message_id}")
        except Exception as e:
            log.error(f"Failed to index message {message_id}: {e}")
            raise SearchIndexError(f"Message indexing failed: {e}") from e

    async def update_document(self, message_id: str, partial: Dict[str, Any]) -> None:
        try:
            await self._client.update(index=self._index, id=message_id, doc=partial, refresh=True)
            log.debug(f"Updated message {message_id} with fields: {', '.join(partial.keys())}")
        except Exception as e:
            log.error(f"Failed to update message {message_id}: {e}")
            raise SearchIndexError(f"Message update failed: {e}") from e

    async def delete_document(self, message_id: str) -> None:
        try:
            await self._client.delete(index=self._index, id=message_id, refresh=True)
            log.debug(f"Deleted message: {message_id}")
        except Exception as e:
            log.error(f"Failed to delete message {message_id}: {e}")
            raise SearchIndexError(f"Message deletion failed: {e}") from e

    async def search(
            self,
            conversation_id: str,
            tenant_id: str,
            term: str,
            page: int,
            limit: int,
    ) -> PaginatedMessages:
        """Newest-first page of the conversation's messages matching term."""
        try:
            response = await self._client.search(
                index=self._index,
                query=build_search_query(conversation_id, tenant_id, term),
                sort=[{"timestamp": {"order": "desc"}}],
                from_=(page - 1) * limit,
                size=limit,
            )
        except Exception as e:
            log.error(f"Search failed for conversation {conversation_id}: {e}")
            raise SearchIndexError(f"Message search failed: {e}") from e

        hits = response["hits"]
        messages: List[Message] = [Message.from_dict(hit["_source"]) for hit in hits.get("hits", [])]
        total = extract_total(hits)

        log.debug(f"Search '{term}' in {conversation_id}: {len(messages)} of {total} hits")
        return PaginatedMessages.build(messages, page, limit, total)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            log.error(f"Elasticsearch ping failed: {e}")
            return False
