"""
Base repository pattern implementation.

Provides common database operations with error handling and type safety on
top of an async SQLAlchemy session.
"""
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

import structlog
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase

logger = structlog.get_logger(__name__)

# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=BaseModel)
TableType = TypeVar("TableType", bound=DeclarativeBase)


class RepositoryError(Exception):
    """Base exception for repository operations"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class BaseRepository(Generic[ModelType], ABC):
    """
    Abstract base repository providing common database operations.

    Concrete repositories supply the conversions between table rows and
    domain models.
    """

    def __init__(
        self,
        session: AsyncSession,
        table_class: type[TableType],
        model_class: type[ModelType],
    ) -> None:
        self.session = session
        self.table_class = table_class
        self.model_class = model_class
        self.logger = logger.bind(
            repository=self.__class__.__name__, table=table_class.__name__
        )

    async def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        """
        Get entity by ID.

        Args:
            entity_id: Primary key to search for

        Returns:
            Domain model if found, None otherwise

        Raises:
            RepositoryError: If database operation fails
        """
        try:
            db_entity = await self.session.get(self.table_class, entity_id)

            if db_entity is None:
                return None

            return self._to_domain_model(db_entity)

        except Exception as e:
            self.logger.error(
                "Failed to get entity by ID", entity_id=entity_id, error=str(e)
            )
            raise RepositoryError(f"Failed to get entity by ID: {e}", e) from e

    async def list_all(
        self, filters: Optional[dict[str, Any]] = None
    ) -> list[ModelType]:
        """
        List entities in primary key order with optional filters.

        Args:
            filters: Optional column equality filters

        Returns:
            List of domain models

        Raises:
            RepositoryError: If database operation fails
        """
        try:
            query = select(self.table_class)

            if filters:
                query = self._apply_filters(query, filters)

            query = query.order_by(self.table_class.id)

            result = await self.session.execute(query)
            db_entities = result.scalars().all()

            return [self._to_domain_model(entity) for entity in db_entities]

        except Exception as e:
            self.logger.error(
                "Failed to list entities",
                filters=filters,
                error=str(e),
            )
            raise RepositoryError(f"Failed to list entities: {e}", e) from e

    async def create(self, entity: ModelType) -> ModelType:
        """
        Create new entity.

        Args:
            entity: Domain model to create

        Returns:
            Created domain model with database ID

        Raises:
            RepositoryError: If creation fails
        """
        try:
            db_entity = self._to_database_model(entity)
            self.session.add(db_entity)
            await self.session.flush()

            return self._to_domain_model(db_entity)

        except Exception as e:
            await self.session.rollback()
            self.logger.error(
                "Failed to create entity",
                entity_type=type(entity).__name__,
                error=str(e),
            )
            raise RepositoryError(f"Failed to create entity: {e}", e) from e

    async def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        """
        Count entities with optional filters.

        Raises:
            RepositoryError: If count operation fails
        """
        try:
            query = select(func.count(self.table_class.id))

            if filters:
                query = self._apply_filters(query, filters)

            result = await self.session.execute(query)
            count = result.scalar()

            return count or 0

        except Exception as e:
            self.logger.error("Failed to count entities", filters=filters, error=str(e))
            raise RepositoryError(f"Failed to count entities: {e}", e) from e

    def _apply_filters(self, query: Any, filters: dict[str, Any]) -> Any:
        """
        Apply equality filters to query. Unknown columns are ignored.
        """
        for field, value in filters.items():
            if hasattr(self.table_class, field):
                query = query.where(getattr(self.table_class, field) == value)

        return query

    @abstractmethod
    def _to_domain_model(self, db_entity: TableType) -> ModelType:
        """
        Convert database entity to domain model.
        Must be implemented by concrete repositories.
        """

    def _to_database_model(self, domain_entity: ModelType) -> TableType:
        """
        Convert domain model to database entity.
        Default implementation builds the row from the model's fields.
        """
        entity_dict = domain_entity.model_dump(exclude_none=True)
        return self.table_class(**entity_dict)


class DatabaseSession:
    """Unit of work: commits on success, rolls back on error, always closes"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = logger.bind(component="database_session")

    async def __aenter__(self) -> AsyncSession:
        return self.session

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        try:
            if exc_type is not None:
                await self.session.rollback()
                self.logger.warning(
                    "Transaction rolled back due to exception",
                    exception_type=exc_type.__name__,
                    exception_message=str(exc_val) if exc_val else None,
                )
            else:
                try:
                    await self.session.commit()
                    self.logger.debug("Transaction committed successfully")
                except Exception as e:
                    await self.session.rollback()
                    self.logger.error("Failed to commit transaction", error=str(e))
                    raise RepositoryError(f"Failed to commit transaction: {e}", e) from e
        finally:
            await self.session.close()
