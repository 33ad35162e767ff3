"""Supabase implementation of atomic batch writes.

PostgREST applies each table call in its own transaction, so batches go
through the `apply_record_batch` database function, which runs every op in a
single transaction and raises (rolling back) on the first failure.
"""

from dataclasses import dataclass

from supabase import Client

from media_library.domain.batch import BatchOp
from media_library.domain.errors import RecordWriteError
from media_library.services.batch import BatchWriter

BATCH_FUNCTION = "apply_record_batch"


@dataclass
class SupabaseBatchWriter(BatchWriter):
    """Commits batches through a transactional database function."""

    client: Client

    def commit(self, ops: list[BatchOp]) -> None:
        """Apply every op or none of them."""
        if not ops:
            return
        try:
            self.client.rpc(
                BATCH_FUNCTION, {"ops": [op.to_payload() for op in ops]}
            ).execute()
        except Exception as exc:
            raise RecordWriteError("Batch commit failed") from exc
