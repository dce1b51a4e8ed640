from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salescoach.application.interfaces import CatalogStoreInterface, RecordingStoreInterface
from salescoach.domain.models import (
    KnowledgeBase,
    ManagerReview,
    Recording,
    SalesProcess,
)
from salescoach.models import KnowledgeBaseRow, ManagerReviewRow, RecordingRow, SalesProcessRow
from salescoach.models.recording import utc_now

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class RemoteStoreError(RuntimeError):
    """Raised when the remote authoritative store rejects an operation."""


def recording_to_values(recording: Recording) -> dict[str, Any]:
    """Flatten a domain recording into column values."""

    return {
        "id": recording.id,
        "user_id": recording.user_id,
        "client_name": recording.client_name,
        "meeting_date": recording.meeting_date,
        "duration": recording.duration,
        "status": recording.status.value,
        "process_type": recording.process_type,
        "uploaded_at": recording.uploaded_at,
        "completed_at": recording.completed_at,
        "transcription": recording.transcription.to_wire() if recording.transcription else None,
        "analysis": recording.analysis.to_wire() if recording.analysis else None,
        "error_message": recording.error,
    }


def review_from_row(row: ManagerReviewRow) -> ManagerReview:
    return ManagerReview(
        reviewer_id=row.reviewer_id,
        reviewer_name=row.reviewer_name,
        rating=row.rating,
        comments=row.comments,
        key_takeaways=row.key_takeaways,
        action_items=row.action_items,
        reviewed_at=row.reviewed_at,
    )


def recording_from_row(row: RecordingRow, *, include_review: bool = True) -> Recording:
    review = row.review if include_review else None
    return Recording(
        id=row.id,
        user_id=row.user_id,
        client_name=row.client_name,
        meeting_date=row.meeting_date,
        duration=row.duration,
        status=row.status,
        process_type=row.process_type,
        uploaded_at=row.uploaded_at,
        completed_at=row.completed_at,
        transcription=row.transcription,
        analysis=row.analysis,
        error=row.error_message,
        manager_review=review_from_row(review) if review is not None else None,
    )


def process_from_row(row: SalesProcessRow) -> SalesProcess:
    return SalesProcess(
        id=row.id,
        name=row.name,
        steps=row.steps or [],
        created_by=row.created_by,
        created_at=row.created_at,
    )


class SQLAlchemyRecordingStore(RecordingStoreInterface):
    """SQLAlchemy implementation of the remote recording store"""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    async def upsert(self, recording: Recording) -> None:
        values = recording_to_values(recording)
        statement = pg_insert(RecordingRow).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[RecordingRow.id],
            set_={
                **{key: statement.excluded[key] for key in values if key != "id"},
                "updated_at": utc_now(),
            },
        )
        try:
            async with self._session_scope() as session:
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to upsert recording {recording.id}: {exc}") from exc

    async def list_for_owner(self, owner_id: str) -> List[Recording]:
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    select(RecordingRow)
                    .options(selectinload(RecordingRow.review))
                    .where(RecordingRow.user_id == owner_id)
                    .order_by(RecordingRow.uploaded_at.desc())
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to list recordings for {owner_id}: {exc}") from exc
        return [recording_from_row(row) for row in rows]

    async def get(self, owner_id: str, recording_id: str) -> Optional[Recording]:
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    select(RecordingRow)
                    .options(selectinload(RecordingRow.review))
                    .where(RecordingRow.user_id == owner_id)
                    .where(RecordingRow.id == recording_id)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to fetch recording {recording_id}: {exc}") from exc
        return recording_from_row(row) if row else None

    async def delete(self, owner_id: str, recording_id: str) -> bool:
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    delete(RecordingRow)
                    .where(RecordingRow.user_id == owner_id)
                    .where(RecordingRow.id == recording_id)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to delete recording {recording_id}: {exc}") from exc
        return bool(result.rowcount)

    async def has_recordings(self, owner_id: str) -> bool:
        try:
            async with self._session_scope() as session:
                count = await session.scalar(
                    select(func.count(RecordingRow.id)).where(RecordingRow.user_id == owner_id)
                )
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to count recordings for {owner_id}: {exc}") from exc
        return bool(count)

    async def upsert_review(self, recording_id: str, review: ManagerReview) -> None:
        values = {
            "recording_id": recording_id,
            "reviewer_id": review.reviewer_id,
            "reviewer_name": review.reviewer_name,
            "rating": review.rating,
            "comments": review.comments,
            "key_takeaways": review.key_takeaways or [],
            "action_items": review.action_items or [],
            "reviewed_at": review.reviewed_at or utc_now(),
        }
        statement = pg_insert(ManagerReviewRow).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[ManagerReviewRow.recording_id],
            set_={
                **{key: statement.excluded[key] for key in values if key != "recording_id"},
                "updated_at": utc_now(),
            },
        )
        try:
            async with self._session_scope() as session:
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to save review for {recording_id}: {exc}") from exc

    async def delete_review(self, recording_id: str) -> None:
        try:
            async with self._session_scope() as session:
                await session.execute(
                    delete(ManagerReviewRow).where(ManagerReviewRow.recording_id == recording_id)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to delete review for {recording_id}: {exc}") from exc


class SQLAlchemyCatalogStore(CatalogStoreInterface):
    """SQLAlchemy implementation for sales processes and knowledge bases"""

    def __init__(self, session_scope: SessionScope):
        self._session_scope = session_scope

    async def list_processes(self) -> List[SalesProcess]:
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    select(SalesProcessRow).order_by(
                        SalesProcessRow.is_default.desc(),
                        SalesProcessRow.created_at.desc(),
                    )
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to list sales processes: {exc}") from exc
        return [process_from_row(row) for row in rows]

    async def get_process(self, process_id: str) -> Optional[SalesProcess]:
        try:
            async with self._session_scope() as session:
                row = await session.get(SalesProcessRow, process_id)
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to fetch sales process {process_id}: {exc}") from exc
        return process_from_row(row) if row else None

    async def upsert_process(self, process: SalesProcess, owner_id: str) -> None:
        values = {
            "id": process.id,
            "name": process.name,
            "steps": [step.to_wire() for step in process.steps],
            "created_by": owner_id,
            "is_default": False,
        }
        statement = pg_insert(SalesProcessRow).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[SalesProcessRow.id],
            set_={
                "name": statement.excluded.name,
                "steps": statement.excluded.steps,
                "updated_at": utc_now(),
            },
        )
        try:
            async with self._session_scope() as session:
                await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to save sales process {process.id}: {exc}") from exc

    async def delete_process(self, process_id: str) -> None:
        try:
            async with self._session_scope() as session:
                await session.execute(
                    delete(SalesProcessRow)
                    .where(SalesProcessRow.id == process_id)
                    .where(SalesProcessRow.is_default.is_(False))
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to delete sales process {process_id}: {exc}") from exc

    async def get_active_knowledge_base(self) -> Optional[KnowledgeBase]:
        try:
            async with self._session_scope() as session:
                result = await session.execute(
                    select(KnowledgeBaseRow)
                    .where(KnowledgeBaseRow.is_active.is_(True))
                    .order_by(KnowledgeBaseRow.created_at.desc())
                    .limit(1)
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to fetch knowledge base: {exc}") from exc
        if row is None:
            return None
        return KnowledgeBase(
            company_info=row.company_info or "",
            products=row.products or [],
            common_objections=row.common_objections or [],
            best_practices=row.best_practices or [],
            industry_context=row.industry_context or "",
            last_updated=row.updated_at,
            updated_by=row.last_updated_by,
        )

    async def save_knowledge_base(self, knowledge_base: KnowledgeBase, owner_id: str) -> None:
        try:
            async with self._session_scope() as session:
                # Only one version stays active; older rows are kept for history.
                await session.execute(
                    update(KnowledgeBaseRow)
                    .where(KnowledgeBaseRow.is_active.is_(True))
                    .values(is_active=False)
                )
                session.add(
                    KnowledgeBaseRow(
                        company_info=knowledge_base.company_info,
                        products=list(knowledge_base.products),
                        common_objections=list(knowledge_base.common_objections),
                        best_practices=list(knowledge_base.best_practices),
                        industry_context=knowledge_base.industry_context,
                        created_by=owner_id,
                        last_updated_by=owner_id,
                        is_active=True,
                    )
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise RemoteStoreError(f"Failed to save knowledge base: {exc}") from exc


__all__ = [
    "RemoteStoreError",
    "SQLAlchemyCatalogStore",
    "SQLAlchemyRecordingStore",
    "recording_from_row",
    "recording_to_values",
]
