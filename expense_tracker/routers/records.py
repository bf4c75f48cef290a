from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Response, status
from sqlmodel import Session, SQLModel, select

from ..core.cache import ViewCache, get_view_cache
from ..core.directory import IdentityDirectory, get_directory
from ..core.errors import UnauthenticatedError
from ..core.identity import get_current_identity
from ..database import get_session
from ..models.record import ExpenseRecord
from ..services.records import LISTING_PATH, RecordResult, add_expense_record, format_instant

router = APIRouter(
    tags=["records"],
)


class RecordRead(SQLModel):
    id: str
    text: str
    amount: float
    category: str
    date: str


@router.post(
    "/records",
    response_model=RecordResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_record(
    response: Response,
    text: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    session: Session = Depends(get_session),
    external_id: Optional[str] = Depends(get_current_identity),
    directory: IdentityDirectory = Depends(get_directory),
    cache: ViewCache = Depends(get_view_cache),
):
    """
    Add an expense from a submitted form.

    - The body is always ``{"data": ...}`` or ``{"error": ...}``.
    """
    form = {"text": text, "amount": amount, "category": category, "date": date}
    result = add_expense_record(form, external_id, session, directory, cache)
    response.status_code = result.status_code
    return result


@router.get(
    LISTING_PATH,
    response_model=List[RecordRead],
)
def list_records(
    session: Session = Depends(get_session),
    external_id: Optional[str] = Depends(get_current_identity),
    cache: ViewCache = Depends(get_view_cache),
):
    """Records of the current user, newest date first. Cached until the next submission."""
    if not external_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UnauthenticatedError.message,
        )

    cached = cache.get(LISTING_PATH, external_id)
    if cached is not None:
        return cached
    generation = cache.generation(LISTING_PATH)

    statement = (
        select(ExpenseRecord)
        .where(ExpenseRecord.user_id == external_id)
        .order_by(ExpenseRecord.date.desc(), ExpenseRecord.created_at.desc())
    )
    records = [
        RecordRead(
            id=str(r.id),
            text=r.text,
            amount=r.amount,
            category=r.category,
            date=format_instant(r.date),
        )
        for r in session.exec(statement).all()
    ]
    cache.set(LISTING_PATH, external_id, records, generation=generation)
    return records
