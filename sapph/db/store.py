"""Document-store abstraction the repositories are written against.

The service only needs a small surface from its database: keyed reads and
writes, a conditional create, partial updates, filtered queries and a
snapshot stream. ``MongoDocumentStore`` provides it on top of Motor.
Documents are plain dicts; ``query`` yields ``(id, document)`` pairs with the
identity split out of the body.
"""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

DOCUMENT_ID = "_id"

Snapshot = Tuple[str, Dict[str, Any]]
OrderBy = Sequence[Tuple[str, int]]

_OPERATORS: Dict[str, Optional[str]] = {
    "==": None,
    "array-contains": None,
    "!=": "$ne",
    "<": "$lt",
    "<=": "$lte",
    ">": "$gt",
    ">=": "$gte",
    "in": "$in",
    "not-in": "$nin",
}


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: Any

    def to_mongo(self) -> Dict[str, Any]:
        operator = _OPERATORS[self.op]
        value = list(self.value) if self.op in ("in", "not-in") else self.value
        if operator is None:
            # Mongo equality on an array field already means "contains"
            return {self.field: value}
        return {self.field: {operator: value}}


def where(field: str, op: str, value: Any) -> Predicate:
    if op not in _OPERATORS:
        raise ValueError(f"unsupported query operator: {op!r}")
    return Predicate(field=field, op=op, value=value)


def build_filter(predicates: Sequence[Predicate]) -> Dict[str, Any]:
    clauses = [predicate.to_mongo() for predicate in predicates]
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class DocumentStore(abc.ABC):
    """Keyed document access with filtered queries."""

    @abc.abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document body or None when absent."""

    @abc.abstractmethod
    async def set(
        self,
        collection: str,
        doc_id: str,
        document: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        """Write a document, replacing it unless ``merge`` is set."""

    @abc.abstractmethod
    async def create(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> bool:
        """Insert only if ``doc_id`` is free. Returns False when it already exists."""

    @abc.abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any],
        *,
        increments: Optional[Mapping[str, int]] = None,
        removals: Sequence[str] = (),
    ) -> bool:
        """Apply a partial update (dotted paths allowed). False when the document is missing."""

    @abc.abstractmethod
    async def update_where(
        self,
        collection: str,
        predicates: Sequence[Predicate],
        changes: Mapping[str, Any],
    ) -> int:
        """Apply ``changes`` to every matching document; returns the match count."""

    @abc.abstractmethod
    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        *,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Snapshot]:
        """Return matching ``(id, document)`` pairs."""

    @abc.abstractmethod
    async def delete_where(self, collection: str, predicates: Sequence[Predicate]) -> int:
        """Delete every matching document; returns the deleted count."""

    async def subscribe(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        *,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
        interval: float = 1.0,
    ) -> AsyncIterator[List[Snapshot]]:
        """Yield the query result whenever it changes, starting with the current one."""

        previous: Optional[List[Snapshot]] = None
        while True:
            snapshot = await self.query(collection, predicates, order_by=order_by, limit=limit)
            if snapshot != previous:
                previous = snapshot
                yield snapshot
            await asyncio.sleep(interval)


def _split(document: Mapping[str, Any]) -> Snapshot:
    body = dict(document)
    doc_id = body.pop(DOCUMENT_ID)
    return str(doc_id), body


def _body(document: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in document.items() if key != DOCUMENT_ID}


class MongoDocumentStore(DocumentStore):
    """DocumentStore backed by a Motor database; document ids map to ``_id``."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self._database

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self._database[name]

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = await self.collection(collection).find_one({DOCUMENT_ID: doc_id})
        return _split(doc)[1] if doc else None

    async def set(
        self,
        collection: str,
        doc_id: str,
        document: Mapping[str, Any],
        *,
        merge: bool = False,
    ) -> None:
        payload = _body(document)
        coll = self.collection(collection)
        if not merge:
            await coll.replace_one({DOCUMENT_ID: doc_id}, {**payload, DOCUMENT_ID: doc_id}, upsert=True)
        elif payload:
            await coll.update_one({DOCUMENT_ID: doc_id}, {"$set": payload}, upsert=True)
        else:
            await self.create(collection, doc_id, {})

    async def create(self, collection: str, doc_id: str, document: Mapping[str, Any]) -> bool:
        try:
            await self.collection(collection).insert_one({**_body(document), DOCUMENT_ID: doc_id})
        except DuplicateKeyError:
            return False
        return True

    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any],
        *,
        increments: Optional[Mapping[str, int]] = None,
        removals: Sequence[str] = (),
    ) -> bool:
        operations: Dict[str, Any] = {}
        if changes:
            operations["$set"] = _body(changes)
        if increments:
            operations["$inc"] = dict(increments)
        if removals:
            operations["$unset"] = {path: "" for path in removals}
        coll = self.collection(collection)
        if not operations:
            return await coll.count_documents({DOCUMENT_ID: doc_id}, limit=1) > 0
        result = await coll.update_one({DOCUMENT_ID: doc_id}, operations)
        return result.matched_count > 0

    async def update_where(
        self,
        collection: str,
        predicates: Sequence[Predicate],
        changes: Mapping[str, Any],
    ) -> int:
        if not changes:
            return 0
        result = await self.collection(collection).update_many(
            build_filter(predicates),
            {"$set": _body(changes)},
        )
        return result.matched_count

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        *,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Snapshot]:
        cursor = self.collection(collection).find(build_filter(predicates))
        if order_by:
            cursor = cursor.sort(list(order_by))
        if limit:
            cursor = cursor.limit(int(limit))
        results: List[Snapshot] = []
        async for doc in cursor:
            results.append(_split(doc))
        return results

    async def delete_where(self, collection: str, predicates: Sequence[Predicate]) -> int:
        if not predicates:
            raise ValueError("refusing to delete without predicates")
        result = await self.collection(collection).delete_many(build_filter(predicates))
        return result.deleted_count


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "DOCUMENT_ID",
    "DocumentStore",
    "MongoDocumentStore",
    "OrderBy",
    "Predicate",
    "Snapshot",
    "build_filter",
    "where",
]
