import logging
from typing import Any, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from soundscore.core.exceptions import ConflictError, NotFoundException, ValidationException

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    # asyncpg exposes the SQLSTATE; SQLite only gives us the message
    if getattr(exc.orig, "sqlstate", None) == "23503":
        return True
    return "foreign key" in str(exc.orig).lower()


class BaseService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    def insert(self, model):
        """Dialect-specific INSERT that supports ON CONFLICT."""
        if self.dialect_name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif self.dialect_name == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise NotImplementedError(f"Upserts are not supported on {self.dialect_name}")
        return insert(model)

    async def get_or_404(self, model: Type[ModelT], object_id: Any, resource: Optional[str] = None) -> ModelT:
        obj = await self.db.get(model, object_id)
        if obj is None:
            raise NotFoundException(resource or model.__name__, object_id)
        return obj

    async def commit(self, conflict_message: str = "Resource already exists", conflict_code: Optional[str] = None) -> None:
        """Commit, turning constraint violations into API errors."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if is_foreign_key_violation(e):
                logger.warning(f"Foreign key violation: {e.orig}")
                raise ValidationException("Referenced resource does not exist", code="INVALID_REFERENCE")
            logger.warning(f"Unique violation: {e.orig}")
            raise ConflictError(conflict_message, code=conflict_code)
