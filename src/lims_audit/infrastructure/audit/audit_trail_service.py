"""Audit Trail Service.

This module builds History rows for entity mutations and hands them to the
history store. Inserts are recorded without a payload; updates and deletes
are diffed field by field and only recorded when something changed.

Security Impact:
    - Every persisted mutation of an audited table names its acting user
    - Failures are raised, never swallowed: the audit write must be atomic
      with the business mutation it describes, so the caller's transaction
      is expected to roll back on any AuditError
    - Field values are written to the History payload only, never to logs

Architecture:
    - Infrastructure component depending only on domain ports and services
    - ReferenceTablePort resolves the per-table retention flag
    - HistoryPort persists the built record inside the caller's transaction
    - Synchronous, no retries, no shared mutable state
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, Union

from lims_audit.domain.audit_models import Activity, History, ReferenceTable, coerce_activity
from lims_audit.domain.ports import (
    AuditFailureError,
    HistoryPort,
    MissingActorError,
    MissingSubjectError,
    ReferenceTablePort,
    RetentionUnconfiguredError,
)
from lims_audit.domain.services.change_detector import ChangeDetector
from lims_audit.infrastructure.audit.changelog_format import encode_changes
from lims_audit.infrastructure.config_manager import AuditConfig

logger = logging.getLogger(__name__)


class AuditTrailService:
    """Builds and persists History rows for audited entity mutations.

    Parameters:
        reference_tables: Directory resolving the retention flag per table
        history_store: Persistence collaborator for History rows
        change_detector: Diff engine (a default ChangeDetector if omitted)
        audit_config: Audit settings (payload encoding)
        clock: Callable returning the current time

    Example Usage:
        ```python
        service = AuditTrailService(adapter, adapter)
        service.save_new_history(sample, sys_user_id="1", table_name="sample")
        service.save_history(updated, persisted, "1", Activity.UPDATE, "sample")
        ```
    """

    def __init__(
        self,
        reference_tables: ReferenceTablePort,
        history_store: HistoryPort,
        change_detector: Optional[ChangeDetector] = None,
        audit_config: Optional[AuditConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.reference_tables = reference_tables
        self.history_store = history_store
        self.change_detector = change_detector or ChangeDetector()
        self.audit_config = audit_config or AuditConfig()
        self._clock = clock

    def save_new_history(
        self,
        new_entity: Any,
        sys_user_id: Optional[str],
        table_name: Optional[str]
    ) -> Optional[str]:
        """Record the insert of a new entity.

        Parameters:
            new_entity: The inserted entity
            sys_user_id: Acting user identifier (required)
            table_name: Audited table name

        Returns:
            Identifier of the stored History row, or None if history is not
            kept for the table

        Raises:
            RetentionUnconfiguredError: If the table has no retention flag
            MissingActorError: If sys_user_id is empty
            MissingSubjectError: If the entity or table name is missing
            AuditFailureError: If building or persisting the record fails
        """
        reference_table = self._resolve_retention(table_name, "save_new_history")
        if reference_table is None:
            return None

        self._require_actor(sys_user_id, table_name, "save_new_history")

        if new_entity is None or table_name is None:
            logger.debug("NO CHANGES: entity or table name is missing")
            raise MissingSubjectError(
                "Either new object or table name is missing in save_new_history()",
                table_name=table_name,
                missing=[
                    name for name, value in (("new_entity", new_entity), ("table_name", table_name))
                    if value is None
                ]
            )

        try:
            history = History(
                reference_id=new_entity.string_id,
                sys_user_id=sys_user_id,
                reference_table=reference_table.id,
                timestamp=getattr(new_entity, "last_updated", None) or self._clock(),
                activity=Activity.INSERT,
            )
            return self._insert(history, table_name)
        except Exception as e:
            logger.error(
                f"Error occurred logging INSERT on {table_name}: {e}",
                exc_info=True
            )
            raise AuditFailureError(
                "Error occurred logging INSERT",
                table_name=table_name,
                operation="save_new_history"
            ) from e

    def save_history(
        self,
        new_entity: Optional[Any],
        existing_entity: Any,
        sys_user_id: Optional[str],
        activity: Union[Activity, str, None],
        table_name: Optional[str]
    ) -> Optional[str]:
        """Record the update or delete of an existing entity.

        Nothing is written when the diff finds no changed fields.

        Parameters:
            new_entity: Updated entity (required for updates, None for deletes)
            existing_entity: Persisted state before the mutation
            sys_user_id: Acting user identifier (required)
            activity: Activity.UPDATE or Activity.DELETE (or their codes)
            table_name: Audited table name

        Returns:
            Identifier of the stored History row, or None if nothing was stored

        Raises:
            RetentionUnconfiguredError: If the table has no retention flag
            MissingActorError: If sys_user_id is empty
            MissingSubjectError: If a required snapshot, activity or table name is missing
            AuditFailureError: If diffing or persisting the record fails
        """
        reference_table = self._resolve_retention(table_name, "save_history")
        if reference_table is None:
            return None

        self._require_actor(sys_user_id, table_name, "save_history")

        try:
            activity = coerce_activity(activity)
        except ValueError:
            logger.debug(f"Unknown audit activity {activity!r}")
            activity = None
        missing = []
        if new_entity is None and activity == Activity.UPDATE:
            missing.append("new_entity")
        if existing_entity is None:
            missing.append("existing_entity")
        if activity is None:
            missing.append("activity")
        if table_name is None:
            missing.append("table_name")
        if missing:
            logger.debug(f"NO CHANGES: missing {', '.join(missing)}")
            raise MissingSubjectError(
                "New object, existing object, table name or event is missing in save_history()",
                table_name=table_name,
                missing=missing
            )

        try:
            changes = self.change_detector.compute_changes(existing_entity, new_entity, table_name)
            if not changes:
                logger.debug(f"NO CHANGES: no changed fields on {table_name}")
                return None

            if activity == Activity.DELETE:
                reference_id = existing_entity.string_id
            else:
                reference_id = new_entity.string_id if new_entity is not None else None

            history = History(
                reference_id=reference_id,
                sys_user_id=sys_user_id,
                reference_table=reference_table.id,
                timestamp=self._clock(),
                activity=activity,
                changes=encode_changes(changes, self.audit_config.payload_encoding),
            )
            return self._insert(history, table_name)
        except Exception as e:
            logger.error(
                f"Error in audit trail save_history() on {table_name}: {e}",
                exc_info=True
            )
            raise AuditFailureError(
                "Error in audit trail save_history()",
                table_name=table_name,
                operation="save_history"
            ) from e

    def _resolve_retention(self, table_name: Optional[str], operation: str) -> Optional[ReferenceTable]:
        """Reference table of an audited table, or None if history is disabled for it."""
        reference_table = None
        if table_name is not None:
            reference_table = self.reference_tables.get_reference_table_by_name(table_name)

        if reference_table is not None and reference_table.keep_history is False:
            logger.debug(f"NO CHANGES: keep_history is disabled for {table_name}")
            return None
        if reference_table is None or reference_table.keep_history is None:
            logger.debug(f"NO CHANGES: reference table {table_name} has no retention flag")
            raise RetentionUnconfiguredError(
                f"Reference table '{table_name}' has no retention flag configured ({operation})",
                table_name=table_name
            )
        return reference_table

    @staticmethod
    def _require_actor(sys_user_id: Optional[str], table_name: Optional[str], operation: str) -> None:
        if not sys_user_id:
            logger.debug("NO CHANGES: sys_user_id is missing")
            raise MissingActorError(
                f"System user id is missing in {operation}() for table {table_name}",
                table_name=table_name
            )

    def _insert(self, history: History, table_name: str) -> str:
        history_id = self.history_store.insert(history)
        logger.info(
            f"Recorded {history.activity.name} history {history_id} for "
            f"{table_name} {history.reference_id}",
            extra={
                "table_name": table_name,
                "activity": history.activity.value,
                "reference_id": history.reference_id,
            }
        )
        return history_id
