import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel, PrivateAttr
from sqlmodel import Session, select

from ..core.cache import ViewCache
from ..core.directory import DirectoryError, IdentityDirectory
from ..core.errors import AmountError, DateFormatError, RecordError, UnauthenticatedError, ValidationError
from ..models.record import ExpenseRecord
from ..models.user import UserAccount

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("text", "amount", "category", "date")
LISTING_PATH = "/"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class RecordData(BaseModel):
    text: str
    amount: float
    category: str
    date: str


class RecordResult(BaseModel):
    data: Optional[RecordData] = None
    error: Optional[str] = None

    _status_code: int = PrivateAttr(default=201)

    @classmethod
    def failure(cls, error: RecordError) -> "RecordResult":
        result = cls(error=error.message)
        result._status_code = error.status_code
        return result

    @property
    def status_code(self) -> int:
        return self._status_code


def format_instant(value: datetime) -> str:
    """ISO-8601 UTC instant with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _leading_int(part: str) -> int:
    match = _LEADING_INT.match(part)
    if match is None:
        raise DateFormatError()
    return int(match.group(1))


def parse_calendar_date(value: str) -> datetime:
    """
    Turn ``YYYY-MM-DD`` into 12:00:00 UTC on that day.

    Each part is read up to its first non-digit, so ``2024-03-15T08:00``
    gives the 15th. Out-of-range months and days roll over into the next
    month or year (``2024-02-30`` is March 1st) and two-digit years are in
    the 1900s. Anchoring at noon keeps the calendar day stable when the
    instant is rendered in any timezone between UTC-12 and UTC+11.
    """
    parts = str(value).strip().split("-")
    if len(parts) < 3:
        raise DateFormatError()
    year, month, day = (_leading_int(p) for p in parts[:3])
    if 0 <= year <= 99:
        year += 1900
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    try:
        start = datetime(year, month, 1, 12, 0, 0, tzinfo=timezone.utc)
        return start + timedelta(days=day - 1)
    except (ValueError, OverflowError) as e:
        raise DateFormatError() from e


def normalize_date(value: str) -> str:
    return format_instant(parse_calendar_date(value))


def _require_fields(form: Mapping[str, Any]) -> None:
    for name in REQUIRED_FIELDS:
        value = form.get(name)
        if value is None or str(value).strip() == "":
            raise ValidationError()


def _parse_amount(raw: Any) -> float:
    try:
        amount = float(str(raw).strip())
    except ValueError as e:
        raise AmountError() from e
    if not math.isfinite(amount):
        raise AmountError()
    return amount


def _fallback_email(external_id: str) -> str:
    return f"unknown-{external_id}@example.com"


def find_or_create_user(
    session: Session,
    external_id: str,
    directory: IdentityDirectory,
) -> UserAccount:
    """
    Return the local account for ``external_id``, creating it on first use.

    Directory failures never block creation: the account is created with a
    placeholder email and no profile details instead.
    """
    statement = select(UserAccount).where(UserAccount.external_id == external_id)
    user = session.exec(statement).first()
    if user is not None:
        return user

    email = _fallback_email(external_id)
    name = None
    image_url = None
    try:
        profile = directory.get_profile(external_id)
    except DirectoryError as e:
        logger.warning(
            "Could not fetch user %s from directory; creating local user with fallback email: %s",
            external_id,
            e,
        )
    else:
        email = profile.primary_email() or email
        name = profile.display_name()
        image_url = profile.image_url

    user = UserAccount(external_id=external_id, email=email, name=name, image_url=image_url)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent first submission from the same identity may have won
        session.rollback()
        user = session.exec(statement).first()
        if user is None:
            raise
        logger.info("User %s was created concurrently; using existing row", external_id)
        return user

    session.refresh(user)
    logger.info("Created user %s for external identity %s", user.id, external_id)
    return user


def add_expense_record(
    form: Mapping[str, Any],
    external_id: Optional[str],
    session: Session,
    directory: IdentityDirectory,
    cache: ViewCache,
) -> RecordResult:
    """
    Validate a submitted expense form and store it for the caller.

    - Input and authentication errors are reported before anything is
      written.
    - A user created for this submission stays persisted even if the
      record insert fails afterwards.
    """
    try:
        _require_fields(form)
        text = str(form["text"]).strip()
        category = str(form["category"]).strip()
        amount = _parse_amount(form["amount"])
        occurred_on = parse_calendar_date(form["date"])
        if not external_id:
            raise UnauthenticatedError()
    except DateFormatError as e:
        logger.warning("Invalid date format: %r", form.get("date"))
        return RecordResult.failure(e)
    except RecordError as e:
        return RecordResult.failure(e)

    try:
        user = find_or_create_user(session, external_id, directory)

        record = ExpenseRecord(
            text=text,
            amount=amount,
            category=category,
            date=occurred_on,
            user_id=user.external_id,
        )
        session.add(record)
        session.commit()
        session.refresh(record)
    except Exception:
        session.rollback()
        logger.exception("Error adding expense record for %s", external_id)
        return RecordResult.failure(RecordError())

    logger.info("Created expense record %s for %s", record.id, external_id)
    cache.invalidate(LISTING_PATH)

    return RecordResult(
        data=RecordData(
            text=record.text,
            amount=record.amount,
            category=record.category,
            date=format_instant(record.date) if record.date else format_instant(occurred_on),
        )
    )
