# ============================================================================
# FILE: intellibook/api/dependencies.py
# Request-scoped dependencies: runtime context, DB session, business scope
# ============================================================================
from typing import Iterator
from uuid import UUID

from fastapi import Depends, Path, Request
from sqlalchemy.orm import Session

from intellibook.core.context import BookingContext
from intellibook.models.business import Business
from intellibook.services.business.business_service import BusinessService


def get_context(request: Request) -> BookingContext:
    """The context built in the app lifespan"""
    return request.app.state.context


def get_db(context: BookingContext = Depends(get_context)) -> Iterator[Session]:
    """Database dependency for FastAPI"""
    db = context.database.session()
    try:
        yield db
    finally:
        db.close()


def get_business(
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
) -> Business:
    """
    Resolve the business every dashboard route is scoped to.
    Authentication is handled upstream of this service.
    """
    return BusinessService.get_business(db, business_id)
