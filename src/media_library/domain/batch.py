"""Atomic batch write operations."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class BatchOpKind(str, Enum):
    """Kind of mutation staged inside a batch."""

    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class BatchOp:
    """A single record mutation applied as part of an atomic batch."""

    kind: BatchOpKind
    table: str
    record_id: UUID
    data: dict[str, object] = field(default_factory=dict)

    @classmethod
    def set(cls, table: str, record_id: UUID, data: dict[str, object]) -> "BatchOp":
        return cls(BatchOpKind.SET, table, record_id, data)

    @classmethod
    def update(
        cls, table: str, record_id: UUID, data: dict[str, object]
    ) -> "BatchOp":
        return cls(BatchOpKind.UPDATE, table, record_id, data)

    @classmethod
    def delete(cls, table: str, record_id: UUID) -> "BatchOp":
        return cls(BatchOpKind.DELETE, table, record_id)

    def to_payload(self) -> dict[str, object]:
        """Serialize the op for the record store's batch function."""
        return {
            "op": self.kind.value,
            "table": self.table,
            "id": str(self.record_id),
            "data": self.data,
        }


LIBRARY_TABLE = "library_images"
AVATAR_TABLE = "avatars"
CATEGORY_TABLE = "categories"
