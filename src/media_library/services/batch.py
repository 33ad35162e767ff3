"""Atomic batch write port."""

import logging
from typing import Protocol

from media_library.domain.batch import BatchOp
from media_library.domain.errors import RecordWriteError

logger = logging.getLogger(__name__)


class BatchWriter(Protocol):
    """Interface for atomic multi-record writes."""

    def commit(self, ops: list[BatchOp]) -> None:
        """Apply every op or none of them."""


def commit_batch(writer: BatchWriter, ops: list[BatchOp], action: str) -> None:
    """Commit a batch, surfacing any failure as a record write error."""
    if not ops:
        return
    try:
        writer.commit(ops)
    except RecordWriteError:
        logger.exception("Batch commit failed", extra={"action": action})
        raise
    except Exception as exc:
        logger.exception("Batch commit failed", extra={"action": action})
        raise RecordWriteError(f"Could not {action}.") from exc
