"""Per-collection content hash records."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class HashRecord(BaseModel):
    """Content hash of one collection on one node at one cluster time."""

    model_config = ConfigDict(frozen=True)

    uuid: UUID = Field(..., description="Catalog-stable collection identity.")
    name: str = Field(..., description="Collection name at the time of the read.")
    host: str = Field(..., description="Node the hash was read from.")
    hash: str = Field(..., description="Content hash reported by the node.")
