"""Document-level diff between a primary and one secondary."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentPair(BaseModel):
    """The two versions of a document whose ``_id`` exists on both nodes."""

    model_config = ConfigDict(frozen=True)

    primary: dict[str, Any] = Field(..., description="Document as read on the primary.")
    secondary: dict[str, Any] = Field(..., description="Document as read on the secondary.")


class DiffResult(BaseModel):
    """Partition of a mismatched collection's documents."""

    model_config = ConfigDict(frozen=True)

    docs_with_different_contents: list[DocumentPair] = Field(
        default_factory=list,
        description="Documents present on both nodes with different contents.",
    )
    docs_missing_on_primary: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Documents present only on the secondary.",
    )
    docs_missing_on_secondary: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Documents present only on the primary.",
    )

    @property
    def is_empty(self) -> bool:
        return not (
            self.docs_with_different_contents or self.docs_missing_on_primary or self.docs_missing_on_secondary
        )
