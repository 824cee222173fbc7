from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator
from uuid import UUID

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from loandesk.core.errors import StoreUnavailable
from loandesk.models.audit_log import AuditLog
from loandesk.models.loan_application import LoanApplication
from loandesk.schemas.loan import FeeStatus, LoanApplicationStatus

logger = logging.getLogger(__name__)


class LoanRecordStore:
    """Loan application persistence: id lookups, flat field updates, inserts, deletes.

    One instance is built at startup around the pooled engine's session factory
    and shared by every request; each call runs in its own short session.
    """

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailable(
                "Loan record store is unavailable",
                details={"operation": operation},
            ) from exc

    @staticmethod
    def _conditions(email: str | None, status: str | None) -> list:
        conditions = []
        if email:
            conditions.append(LoanApplication.email == email)
        if status:
            conditions.append(LoanApplication.status == status)
        return conditions

    async def ping(self) -> None:
        async with self._session("ping") as session:
            await session.execute(text("SELECT 1"))

    async def find_by_id(self, loan_id: UUID) -> LoanApplication | None:
        async with self._session("find_by_id") as session:
            stmt = select(LoanApplication).where(LoanApplication.id == loan_id)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def find(
        self,
        *,
        email: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[LoanApplication]:
        stmt = (
            select(LoanApplication)
            .where(*self._conditions(email, status))
            .order_by(LoanApplication.application_date.desc(), LoanApplication.id)
            .offset(offset)
        )
        if limit:
            stmt = stmt.limit(limit)
        async with self._session("find") as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(self, *, email: str | None = None, status: str | None = None) -> int:
        stmt = select(func.count()).select_from(LoanApplication).where(*self._conditions(email, status))
        async with self._session("count") as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def insert(self, fields: dict[str, Any]) -> LoanApplication:
        record = LoanApplication(**fields)
        async with self._session("insert") as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return record

    async def update_fields(
        self,
        loan_id: UUID,
        fields: dict[str, Any],
        *,
        expected_status: str | None = None,
    ) -> int:
        stmt = update(LoanApplication).where(LoanApplication.id == loan_id)
        if expected_status is not None:
            stmt = stmt.where(LoanApplication.status == expected_status)
        stmt = stmt.values(**fields).execution_options(synchronize_session=False)
        async with self._session("update_fields") as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount

    async def delete(self, loan_id: UUID, *, expected_status: str | None = None) -> int:
        stmt = delete(LoanApplication).where(LoanApplication.id == loan_id)
        if expected_status is not None:
            stmt = stmt.where(LoanApplication.status == expected_status)
        stmt = stmt.execution_options(synchronize_session=False)
        async with self._session("delete") as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount

    async def set_payment_if_absent(
        self,
        loan_id: UUID,
        session_id: str,
        payment: dict[str, Any],
        *,
        approve: bool = False,
    ) -> int:
        """Attach a payment once; later deliveries match nothing and return 0."""
        pay_stmt = (
            update(LoanApplication)
            .where(
                LoanApplication.id == loan_id,
                LoanApplication.payment_session_id.is_(None),
            )
            .values(
                fee_status=FeeStatus.PAID.value,
                payment_session_id=session_id,
                payment=payment,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session("set_payment_if_absent") as session:
            try:
                result = await session.execute(pay_stmt)
            except IntegrityError:
                # payment_session_id is unique: the session already paid another loan.
                await session.rollback()
                logger.warning(
                    "Checkout session already attached to another loan",
                    extra={"loan_id": str(loan_id), "session_id": session_id},
                )
                return 0
            matched = result.rowcount
            if matched and approve:
                approve_stmt = (
                    update(LoanApplication)
                    .where(
                        LoanApplication.id == loan_id,
                        LoanApplication.status == LoanApplicationStatus.PENDING.value,
                    )
                    .values(
                        status=LoanApplicationStatus.APPROVED.value,
                        approved_at=datetime.now(timezone.utc),
                    )
                    .execution_options(synchronize_session=False)
                )
                await session.execute(approve_stmt)
            await session.commit()
            return matched

    async def record_audit(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: str,
        new_value: dict[str, Any] | None = None,
    ) -> None:
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            new_value=new_value,
        )
        async with self._session("record_audit") as session:
            session.add(entry)
            await session.commit()
