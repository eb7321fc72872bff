"""Document-level diff for a collection whose hashes disagree."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from replcheck.models.cluster_time import LogicalTimestamp
from replcheck.models.diff import DiffResult, DocumentPair
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


def canonical_form(value: Any) -> tuple[Any, ...]:
    """Hashable encoding of *value* that keeps field order and value types.

    Two values encode equally only when their BSON encodings would match:
    ``1``, ``1.0`` and ``True`` differ, as do documents listing the same
    fields in a different order, and an ObjectId differs from its hex string.
    """
    if isinstance(value, Mapping):
        return ("object", tuple((key, canonical_form(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple)):
        return ("array", tuple(canonical_form(item) for item in value))
    value_type = type(value)
    return (f"{value_type.__module__}.{value_type.__qualname__}", repr(value))


def _id_key(doc: dict[str, Any]) -> tuple[Any, ...]:
    return canonical_form(doc.get("_id"))


class DiffEngine:
    """Reads one collection from two nodes at the same snapshot and compares them."""

    async def diff(
        self,
        primary: NodeSession,
        secondary: NodeSession,
        db_name: str,
        collection_uuid: UUID,
        read_at: LogicalTimestamp,
    ) -> DiffResult:
        """Partition the collection's documents by where and how they differ.

        Documents are paired by ``_id``.  Results follow the primary's
        ordering, with secondary-only documents in the secondary's ordering.
        """
        primary_docs = await primary.snapshot_find(db_name, collection_uuid, read_at)
        secondary_docs = await secondary.snapshot_find(db_name, collection_uuid, read_at)
        return self.compare(primary_docs, secondary_docs)

    @staticmethod
    def compare(primary_docs: list[dict[str, Any]], secondary_docs: list[dict[str, Any]]) -> DiffResult:
        secondary_by_id = {_id_key(doc): doc for doc in secondary_docs}
        primary_ids: set[tuple[Any, ...]] = set()

        different: list[DocumentPair] = []
        missing_on_secondary: list[dict[str, Any]] = []
        for doc in primary_docs:
            key = _id_key(doc)
            primary_ids.add(key)
            other = secondary_by_id.get(key)
            if other is None:
                missing_on_secondary.append(doc)
            elif canonical_form(other) != canonical_form(doc):
                different.append(DocumentPair(primary=doc, secondary=other))

        missing_on_primary = [doc for doc in secondary_docs if _id_key(doc) not in primary_ids]

        logger.debug(
            "Collection diff: %d different, %d missing on primary, %d missing on secondary",
            len(different),
            len(missing_on_primary),
            len(missing_on_secondary),
        )
        return DiffResult(
            docs_with_different_contents=different,
            docs_missing_on_primary=missing_on_primary,
            docs_missing_on_secondary=missing_on_secondary,
        )
