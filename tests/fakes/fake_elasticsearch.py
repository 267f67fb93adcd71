# =============================================================================
# File: tests/fakes/fake_elasticsearch.py
# Description: In-memory stand-in for AsyncElasticsearch
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, List, Optional

from tests.fakes.call_recorder import CallRecorder


class FakeIndices(CallRecorder):
    """The `client.indices` namespace: exists / create."""

    def __init__(self):
        super().__init__()
        self.created: Dict[str, Dict[str, Any]] = {}

    async def exists(self, index: str) -> bool:
        self._record_call("exists", index=index)
        self._check_failure("exists")
        return index in self.created

    async def create(self, index: str, mappings: Dict[str, Any], settings: Dict[str, Any]) -> Dict[str, Any]:
        self._record_call("create", index=index, mappings=mappings, settings=settings)
        self._check_failure("create")
        self.created[index] = {"mappings": mappings, "settings": settings}
        return {"acknowledged": True, "index": index}


class FakeElasticsearch(CallRecorder):
    """
    Documents live in `documents[index][id]`.

    search() understands the query MessageSearchIndex builds: every `term`
    clause must match exactly and the `multi_match` query must appear
    (case-insensitively) in the content. Results are sorted newest first.
    """

    def __init__(self):
        super().__init__()
        self.indices = FakeIndices()
        self.documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.total_as_int = False
        self.closed = False

    def clear(self) -> None:
        super().clear()
        self.indices.clear()
        self.indices.created.clear()
        self.documents.clear()

    def docs(self, index: str = "messages") -> Dict[str, Dict[str, Any]]:
        return self.documents.setdefault(index, {})

    async def index(self, index: str, id: str, document: Dict[str, Any], refresh: Any = None) -> Dict[str, Any]:
        self._record_call("index", index=index, id=id, document=document, refresh=refresh)
        self._check_failure("index")
        self.docs(index)[id] = dict(document)
        return {"_id": id, "result": "created"}

    async def update(self, index: str, id: str, doc: Dict[str, Any], refresh: Any = None) -> Dict[str, Any]:
        self._record_call("update", index=index, id=id, doc=doc, refresh=refresh)
        self._check_failure("update")
        if id not in self.docs(index):
            raise LookupError(f"document_missing_exception: [{id}]")
        self.docs(index)[id].update(doc)
        return {"_id": id, "result": "updated"}

    async def delete(self, index: str, id: str, refresh: Any = None) -> Dict[str, Any]:
        self._record_call("delete", index=index, id=id, refresh=refresh)
        self._check_failure("delete")
        if self.docs(index).pop(id, None) is None:
            raise LookupError(f"not_found: [{id}]")
        return {"_id": id, "result": "deleted"}

    async def search(
        self,
        index: str,
        query: Dict[str, Any],
        sort: Optional[List[Dict[str, Any]]] = None,
        from_: int = 0,
        size: int = 10,
    ) -> Dict[str, Any]:
        self._record_call("search", index=index, query=query, sort=sort, from_=from_, size=size)
        self._check_failure("search")

        clauses = query.get("bool", {}).get("must", [])
        terms = [c["term"] for c in clauses if "term" in c]
        text = next((c["multi_match"]["query"] for c in clauses if "multi_match" in c), "")

        matched = [
            doc for doc in self.docs(index).values()
            if all(doc.get(field) == value for term in terms for field, value in term.items())
            and text.lower() in str(doc.get("content", "")).lower()
        ]
        matched.sort(key=lambda doc: doc.get("timestamp", ""), reverse=True)

        page = matched[from_:from_ + size]
        total: Any = len(matched) if self.total_as_int else {"value": len(matched), "relation": "eq"}
        return {
            "hits": {
                "total": total,
                "hits": [{"_id": doc.get("id"), "_source": dict(doc)} for doc in page],
            }
        }

    async def ping(self) -> bool:
        self._record_call("ping")
        self._check_failure("ping")
        return True

    async def close(self) -> None:
        self.closed = True
