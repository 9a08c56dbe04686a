"""
FastAPI endpoints for person records.

Routes only delegate to PersonService; errors are translated to responses by
the handlers registered in person_registry.api.main.
"""
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from person_registry.models.domain import PersonCreateRequest, PersonResponse
from person_registry.repositories.base import DatabaseSession
from person_registry.repositories.person_repository import PersonRepository
from person_registry.services.person_service import PersonService

# API Router
router = APIRouter(prefix="/persons", tags=["persons"])


# Dependency injection
async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Read-only session per request, closed after the response"""
    async with request.app.state.session_maker() as session:
        yield session


async def get_person_service(
    session: AsyncSession = Depends(get_session),
) -> PersonService:
    return PersonService(PersonRepository(session))


@router.get("", response_model=List[PersonResponse])
async def get_all_persons(
    service: PersonService = Depends(get_person_service),
) -> List[PersonResponse]:
    """List every person"""
    return await service.get_all_persons()


@router.get("/color/{color}", response_model=List[PersonResponse])
async def get_persons_by_color(
    color: str, service: PersonService = Depends(get_person_service)
) -> List[PersonResponse]:
    """List persons whose favourite color has this display name"""
    return await service.get_persons_by_color(color)


@router.get("/{person_id}", response_model=PersonResponse)
async def get_person_by_id(
    person_id: str, service: PersonService = Depends(get_person_service)
) -> PersonResponse:
    """Get one person by identity"""
    return await service.get_person_by_id(person_id)


@router.post("", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(person: PersonCreateRequest, request: Request) -> PersonResponse:
    """
    Create a person; the color is given by its display name.

    The transaction commits before the response is built.
    """
    async with DatabaseSession(request.app.state.session_maker()) as session:
        created = await PersonService(PersonRepository(session)).create_person(person)
    return created
