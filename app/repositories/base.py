"""
Generic async repository shared by every model.
Writes go through the ORM unit of work so relationship cascades and the
listing version counter always apply.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from app.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Common lookups and writes for one model class.

    Args:
        model: SQLAlchemy model class
        db: Async database session
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        """Equality filters; None values are skipped and collections become IN clauses."""
        for field, value in (filters or {}).items():
            if value is None or not hasattr(self.model, field):
                continue
            column = getattr(self.model, field)
            if isinstance(value, (list, tuple, set)):
                query = query.where(column.in_(value))
            else:
                query = query.where(column == value)
        return query

    async def _commit(self, action: str, db_obj: ModelType) -> None:
        """Commit the session, rolling back and logging when the write fails."""
        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} {self.model.__name__} {db_obj.id}: {e}")
            raise
        logger.debug(f"{action.capitalize()}d {self.model.__name__} {db_obj.id}")

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """Insert a record built from field values and return it refreshed."""
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        await self._commit("create", db_obj)
        await self.db.refresh(db_obj)
        return db_obj

    async def save(self, db_obj: ModelType) -> ModelType:
        """Commit pending changes made to an instance."""
        self.db.add(db_obj)
        await self._commit("save", db_obj)
        return db_obj

    async def delete(self, db_obj: ModelType) -> None:
        """Delete an instance together with its cascaded children."""
        await self.db.delete(db_obj)
        await self._commit("delete", db_obj)

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_multi(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None
    ) -> List[ModelType]:
        """
        Records matching the filters.

        Args:
            filters: Field equality filters; None values are ignored
            order_by: Field name, prefixed with '-' for descending; newest first when omitted
        """
        query = self._apply_filters(select(self.model), filters)

        field_name = (order_by or "-created_at").lstrip("-")
        column = getattr(self.model, field_name, self.model.created_at)
        descending = order_by is None or order_by.startswith("-")
        query = query.order_by(column.desc() if descending else column.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._apply_filters(select(func.count(self.model.id)), filters)
        result = await self.db.execute(query)
        return result.scalar()

    async def exists(self, id: uuid.UUID) -> bool:
        result = await self.db.execute(select(func.count(self.model.id)).where(self.model.id == id))
        return result.scalar() > 0
