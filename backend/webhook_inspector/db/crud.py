"""Generic asynchronous CRUD helpers for SQLModel entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete as sql_delete
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, select

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound=SQLModel)


async def _flush_or_rollback(session: AsyncSession) -> None:
    """Flush changes and rollback on SQLAlchemy errors."""
    try:
        await session.flush()
    except SQLAlchemyError:
        await session.rollback()
        raise


async def _commit_or_rollback(session: AsyncSession) -> None:
    """Commit transaction and rollback on SQLAlchemy errors."""
    try:
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise


def _criteria_statement(
    model: type[ModelT],
    criteria: tuple[Any, ...],
) -> SelectOfScalar[ModelT]:
    """Build a select statement from variadic where criteria."""
    stmt = select(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return stmt


async def get_by_id(
    session: AsyncSession,
    model: type[ModelT],
    obj_id: object,
) -> ModelT | None:
    """Fetch one model instance by primary key or return None."""
    stmt = select(model).where(model.id == obj_id).limit(1)  # type: ignore[attr-defined]
    return (await session.exec(stmt)).first()


async def save(
    session: AsyncSession,
    obj: ModelT,
    *,
    commit: bool = True,
    refresh: bool = True,
) -> ModelT:
    """Persist a new or existing object with optional commit and refresh."""
    session.add(obj)
    await _flush_or_rollback(session)
    if commit:
        await _commit_or_rollback(session)
    if refresh:
        await session.refresh(obj)
    return obj


async def save_all(
    session: AsyncSession,
    objs: Sequence[ModelT],
    *,
    commit: bool = True,
) -> int:
    """Persist a batch in the session's transaction; all rows land or none do."""
    session.add_all(list(objs))
    await _flush_or_rollback(session)
    if commit:
        await _commit_or_rollback(session)
    return len(objs)


async def list_where(
    session: AsyncSession,
    model: type[ModelT],
    *criteria: object,
    order_by: Iterable[Any] = (),
    limit: int | None = None,
) -> list[ModelT]:
    """List objects filtered by explicit SQL criteria."""
    stmt = _criteria_statement(model, criteria)
    for ordering in order_by:
        stmt = stmt.order_by(ordering)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(await session.exec(stmt))


async def count_where(
    session: AsyncSession,
    model: type[ModelT],
    *criteria: object,
) -> int:
    """Count rows matching criteria."""
    stmt: Any = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return int((await session.exec(stmt)).one())


async def delete_where(
    session: AsyncSession,
    model: type[ModelT],
    *criteria: object,
    commit: bool = False,
) -> int:
    """Delete rows matching criteria and return affected row count."""
    stmt: Any = sql_delete(model)
    if criteria:
        stmt = stmt.where(*criteria)
    result = await session.exec(stmt)
    if commit:
        await _commit_or_rollback(session)
    rowcount = getattr(result, "rowcount", None)
    return int(rowcount) if isinstance(rowcount, int) else 0
