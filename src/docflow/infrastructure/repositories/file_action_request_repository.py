"""SQLAlchemy repository for file action requests.

Implements FileActionRequestRepositoryPort on top of the
``file_action_request`` table. Every write commits on its own so that bulk
operations never share a transaction between two requests.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.file_action_request import FileActionRequestModel
from ...domain.file_action_requests import (
    FileActionRequest,
    FileActionRequestStatus,
    FileActionType,
    FileActionRequestRepositoryPort,
    FileActionRequestFilter,
    Pagination,
    Page,
    WriteOutcome,
    PendingRequestConflictError,
)

logger = logging.getLogger(__name__)

# Columns written by update_if_status. Snapshot, identity and requested_at
# are never rewritten after insert.
_MUTABLE_COLUMNS = (
    "status",
    "approver_id",
    "decision_comment",
    "execution_note",
    "decided_at",
    "executed_at",
    "updated_at",
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; all stored values are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_entity(row: FileActionRequestModel) -> FileActionRequest:
    """Map a database row to the domain aggregate."""
    return FileActionRequest(
        id=row.id,
        type=FileActionType(row.type),
        status=FileActionRequestStatus(row.status),
        file_id=row.file_id,
        file_name=row.file_name,
        source_folder_id=row.source_folder_id,
        target_folder_id=row.target_folder_id,
        requester_id=row.requester_id,
        designated_approver_id=row.designated_approver_id,
        approver_id=row.approver_id,
        reason=row.reason,
        decision_comment=row.decision_comment,
        execution_note=row.execution_note,
        snapshot_folder_id=row.snapshot_folder_id,
        snapshot_file_state=row.snapshot_file_state,
        requested_at=_aware(row.requested_at),
        decided_at=_aware(row.decided_at),
        executed_at=_aware(row.executed_at),
        updated_at=_aware(row.updated_at),
    )


class SqlAlchemyFileActionRequestRepository(FileActionRequestRepositoryPort):
    """Repository for file_action_request database operations."""

    def __init__(self, db: Session):
        """Initialize repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def save(self, request: FileActionRequest) -> FileActionRequest:
        row = FileActionRequestModel(
            id=request.id,
            type=request.type.value,
            status=request.status.value,
            file_id=request.file_id,
            file_name=request.file_name,
            source_folder_id=request.source_folder_id,
            target_folder_id=request.target_folder_id,
            requester_id=request.requester_id,
            designated_approver_id=request.designated_approver_id,
            approver_id=request.approver_id,
            reason=request.reason,
            decision_comment=request.decision_comment,
            execution_note=request.execution_note,
            snapshot_folder_id=request.snapshot_folder_id,
            snapshot_file_state=request.snapshot_file_state,
            requested_at=request.requested_at,
            decided_at=request.decided_at,
            executed_at=request.executed_at,
            updated_at=request.updated_at,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # Only the pending-per-file index can be violated by a fresh uuid4 row
            logger.info(
                f"Pending request conflict for file {request.file_id}: {e.orig}",
                extra={"file_action_request_id": str(request.id)},
            )
            raise PendingRequestConflictError(request.file_id) from e
        except Exception:
            self.db.rollback()
            raise

        return request

    def update_if_status(
        self,
        request: FileActionRequest,
        expected_status: FileActionRequestStatus,
    ) -> WriteOutcome:
        """Compare-and-set on status.

        Issues a single ``UPDATE ... WHERE id = :id AND status = :expected``.
        Zero affected rows means either the row is gone or another writer
        already moved it out of expected_status.
        """
        values = {column: getattr(request, column) for column in _MUTABLE_COLUMNS}
        values["status"] = request.status.value

        stmt = (
            update(FileActionRequestModel)
            .where(
                and_(
                    FileActionRequestModel.id == request.id,
                    FileActionRequestModel.status == expected_status.value,
                )
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if result.rowcount == 1:
            return WriteOutcome.APPLIED

        exists = self.db.execute(
            select(FileActionRequestModel.id).where(FileActionRequestModel.id == request.id)
        ).first()
        return WriteOutcome.CONFLICT if exists else WriteOutcome.NOT_FOUND

    def find_by_id(self, request_id: UUID) -> Optional[FileActionRequest]:
        row = self.db.execute(
            select(FileActionRequestModel).where(FileActionRequestModel.id == request_id)
        ).scalar_one_or_none()
        return to_entity(row) if row else None

    def find_pending_by_file_id(self, file_id: UUID) -> Optional[FileActionRequest]:
        row = self.db.execute(
            select(FileActionRequestModel).where(
                and_(
                    FileActionRequestModel.file_id == file_id,
                    FileActionRequestModel.status == FileActionRequestStatus.PENDING.value,
                )
            )
        ).scalars().first()
        return to_entity(row) if row else None

    def find_by_filter(
        self,
        filter: FileActionRequestFilter,
        pagination: Pagination,
    ) -> Page[FileActionRequest]:
        conditions = _filter_conditions(filter)

        count_query = select(func.count()).select_from(FileActionRequestModel)
        query = select(FileActionRequestModel)
        if conditions:
            count_query = count_query.where(and_(*conditions))
            query = query.where(and_(*conditions))

        total = self.db.execute(count_query).scalar_one()

        sort_column = getattr(FileActionRequestModel, pagination.sort_field)
        if pagination.sort_order == "asc":
            query = query.order_by(sort_column.asc(), FileActionRequestModel.id.asc())
        else:
            query = query.order_by(sort_column.desc(), FileActionRequestModel.id.desc())

        query = query.offset(pagination.offset).limit(pagination.page_size)
        rows = self.db.execute(query).scalars().all()

        return Page(
            items=[to_entity(row) for row in rows],
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=total,
        )

    def count_by_status(self) -> Dict[FileActionRequestStatus, int]:
        counts = {status: 0 for status in FileActionRequestStatus}
        rows = self.db.execute(
            select(FileActionRequestModel.status, func.count())
            .group_by(FileActionRequestModel.status)
        ).all()
        for status_value, count in rows:
            counts[FileActionRequestStatus(status_value)] = count
        return counts

    def find_pending_requested_before(self, cutoff: datetime) -> List[FileActionRequest]:
        rows = self.db.execute(
            select(FileActionRequestModel)
            .where(
                and_(
                    FileActionRequestModel.status == FileActionRequestStatus.PENDING.value,
                    FileActionRequestModel.requested_at < cutoff,
                )
            )
            .order_by(FileActionRequestModel.requested_at.asc())
        ).scalars().all()
        return [to_entity(row) for row in rows]

    def find_approved_decided_before(self, cutoff: datetime) -> List[FileActionRequest]:
        rows = self.db.execute(
            select(FileActionRequestModel)
            .where(
                and_(
                    FileActionRequestModel.status == FileActionRequestStatus.APPROVED.value,
                    FileActionRequestModel.decided_at < cutoff,
                )
            )
            .order_by(FileActionRequestModel.decided_at.asc())
        ).scalars().all()
        return [to_entity(row) for row in rows]


def _filter_conditions(filter: FileActionRequestFilter) -> list:
    conditions = []
    if filter.status is not None:
        conditions.append(FileActionRequestModel.status == filter.status.value)
    if filter.type is not None:
        conditions.append(FileActionRequestModel.type == filter.type.value)
    if filter.requester_id is not None:
        conditions.append(FileActionRequestModel.requester_id == filter.requester_id)
    if filter.file_id is not None:
        conditions.append(FileActionRequestModel.file_id == filter.file_id)
    if filter.designated_approver_id is not None:
        conditions.append(
            FileActionRequestModel.designated_approver_id == filter.designated_approver_id
        )
    if filter.requested_from is not None:
        conditions.append(FileActionRequestModel.requested_at >= filter.requested_from)
    if filter.requested_to is not None:
        conditions.append(FileActionRequestModel.requested_at <= filter.requested_to)
    return conditions
