"""Batch writes shared by the stores."""

from typing import Any, Iterable, Mapping

from finance_dashboard.audit import AuditLogger
from finance_dashboard.services.storage import KeyValueStorageInterface, StorageError


async def write_batch(
    storage: KeyValueStorageInterface,
    audit_logger: AuditLogger,
    operation: str,
    updates: Mapping[str, Any],
    removals: Iterable[str] = (),
) -> None:
    """
    Apply one store operation's writes as a single batch.

    A storage failure is recorded as a system error and re-raised.

    Raises:
        StorageError: If the backend could not apply the batch
    """
    removals = list(removals)
    try:
        storage.write_batch(updates, removals)
    except StorageError as e:
        await audit_logger.log_error(
            error_type="storage_error",
            error_message=str(e),
            details={"operation": operation, "keys": sorted(updates) + sorted(removals)},
        )
        raise
