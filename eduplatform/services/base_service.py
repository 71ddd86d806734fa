# eduplatform/services/base_service.py
"""Base service with common CRUD operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Type, Any, Dict, List, Optional, Sequence, TypeVar, Generic

from ..utils.pagination import PaginationParams

# Define generic type
T = TypeVar('T')


class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _apply_filters(self, stmt, include_inactive: bool, filters: Dict[str, Any]):
        # Deactivated rows are hidden unless asked for
        if hasattr(self.model, 'is_active') and not include_inactive:
            stmt = stmt.where(self.model.is_active == True)

        for key, value in filters.items():
            if hasattr(self.model, key) and value is not None:
                stmt = stmt.where(getattr(self.model, key) == value)
        return stmt

    async def get(self, id: Any) -> Optional[T]:
        return await self.db.get(self.model, id)

    async def get_multi(
        self,
        skip: int = 0,
        limit: Optional[int] = 100,
        include_inactive: bool = False,
        order_by: Sequence = (),
        **filters
    ) -> List[T]:
        stmt = self._apply_filters(select(self.model), include_inactive, filters)
        if order_by:
            stmt = stmt.order_by(*order_by)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_paginated(
        self,
        params: PaginationParams,
        include_inactive: bool = False,
        order_by: str = "created_at",
        sort: str = "desc",
        **filters
    ) -> Dict[str, Any]:
        """Get one page of rows plus the total matching count"""
        stmt = self._apply_filters(select(self.model), include_inactive, filters)
        count_stmt = self._apply_filters(select(func.count()).select_from(self.model), include_inactive, filters)

        total = (await self.db.execute(count_stmt)).scalar_one()

        if order_by and hasattr(self.model, order_by):
            order_field = getattr(self.model, order_by)
            stmt = stmt.order_by(order_field.desc() if sort.lower() == "desc" else order_field.asc())

        stmt = stmt.offset(params.offset).limit(params.size)
        result = await self.db.execute(stmt)
        return {"items": list(result.scalars().all()), "total": total}

    async def create(self, obj_in: Dict, commit: bool = True) -> T:
        obj = self.model(**obj_in)
        self.db.add(obj)
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()
        return obj

    async def update(self, obj: T, obj_in: Dict) -> T:
        for key, value in obj_in.items():
            setattr(obj, key, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def deactivate(self, obj: T) -> T:
        """Soft delete: flip is_active so referencing rows stay intact"""
        obj.is_active = False
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def hard_delete(self, obj: T) -> None:
        """Permanently delete record from database; FK cascades remove dependents"""
        await self.db.delete(obj)
        await self.db.commit()

    async def count(self, **filters) -> int:
        stmt = select(func.count()).select_from(self.model)
        for key, value in filters.items():
            stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.db.execute(stmt)
        return result.scalar_one()
