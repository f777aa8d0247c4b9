from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .database import Database
from .exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from .log import get_logger
from .models import (
    PartnershipStatus,
    CreateUserRequest,
    UserUpdate,
    CreatePartnershipRequest,
    CreateGratitudeRequest,
    GratitudeUpdate,
    User,
    Partnership,
    GratitudeEntry,
)
from .tables import GratitudeEntryRow, PartnershipRow, UserRow

logger = get_logger("accounts")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _live_user(session: Session, user_id: int) -> UserRow:
    row = session.scalars(
        select(UserRow).where(UserRow.id == user_id, UserRow.deleted_at.is_(None))
    ).first()
    if row is None:
        raise NotFoundError(f"User {user_id} not found")
    return row


def _live_partnership(session: Session, partnership_id: int) -> PartnershipRow:
    row = session.scalars(
        select(PartnershipRow).where(
            PartnershipRow.id == partnership_id, PartnershipRow.deleted_at.is_(None)
        )
    ).first()
    if row is None:
        raise NotFoundError(f"Partnership {partnership_id} not found")
    return row


class UserService:
    def __init__(self, database: Database):
        self.database = database

    def create(self, request: CreateUserRequest) -> User:
        with self.database.unit_of_work() as session:
            self._ensure_email_free(session, request.email)
            row = UserRow(
                email=request.email,
                name=request.name,
                wallet_address=request.wallet_address,
                created_at=_now(),
            )
            session.add(row)
            session.flush()
            user = User.model_validate(row)

        logger.info("Created user %s", user.id)
        return user

    def get(self, user_id: int) -> User:
        with self.database.unit_of_work() as session:
            return User.model_validate(_live_user(session, user_id))

    def update(self, user_id: int, changes: UserUpdate) -> User:
        with self.database.unit_of_work() as session:
            row = _live_user(session, user_id)
            fields = changes.model_dump(exclude_unset=True)
            # email and name are not nullable; only wallet_address may be cleared.
            fields = {k: v for k, v in fields.items() if v is not None or k == "wallet_address"}
            if "email" in fields and fields["email"] != row.email:
                self._ensure_email_free(session, fields["email"])
            for field, value in fields.items():
                setattr(row, field, value)
            session.flush()
            return User.model_validate(row)

    def delete(self, user_id: int) -> None:
        with self.database.unit_of_work() as session:
            _live_user(session, user_id).deleted_at = _now()

    def _ensure_email_free(self, session: Session, email: Optional[str]) -> None:
        if email is None:
            return
        existing = session.scalars(select(UserRow.id).where(UserRow.email == email)).first()
        if existing is not None:
            raise ConflictError(f"Email {email} is already registered", {"user_id": existing})


class PartnershipService:
    def __init__(self, database: Database):
        self.database = database

    def create(self, request: CreatePartnershipRequest) -> Partnership:
        if request.user_a_id == request.user_b_id:
            raise ValidationError("A partnership needs two distinct users")

        with self.database.unit_of_work() as session:
            _live_user(session, request.user_a_id)
            _live_user(session, request.user_b_id)
            row = PartnershipRow(
                user_a_id=request.user_a_id,
                user_b_id=request.user_b_id,
                status=PartnershipStatus.ACTIVE.value,
                created_at=_now(),
            )
            session.add(row)
            session.flush()
            partnership = Partnership.model_validate(row)

        logger.info(
            "Created partnership %s between users %s and %s",
            partnership.id, partnership.user_a_id, partnership.user_b_id,
        )
        return partnership

    def get(self, partnership_id: int) -> Partnership:
        with self.database.unit_of_work() as session:
            return Partnership.model_validate(_live_partnership(session, partnership_id))

    def list_for_user(self, user_id: int) -> list[Partnership]:
        with self.database.unit_of_work() as session:
            _live_user(session, user_id)
            rows = session.scalars(
                select(PartnershipRow)
                .where(
                    or_(PartnershipRow.user_a_id == user_id, PartnershipRow.user_b_id == user_id),
                    PartnershipRow.deleted_at.is_(None),
                )
                .order_by(PartnershipRow.created_at.desc(), PartnershipRow.id.desc())
            )
            return [Partnership.model_validate(r) for r in rows]

    def set_status(self, partnership_id: int, status: PartnershipStatus) -> Partnership:
        """Toggle between active and inactive. Only a split can move a partnership to split."""
        with self.database.unit_of_work() as session:
            row = _live_partnership(session, partnership_id)
            current = Partnership.model_validate(row)
            if not current.can_transition_to(status):
                raise InvalidStateTransitionError(
                    f"Cannot move partnership from {current.status.value} to {status.value}"
                )
            row.status = status.value
            session.flush()
            return Partnership.model_validate(row)


class GratitudeService:
    def __init__(self, database: Database):
        self.database = database

    def create(self, request: CreateGratitudeRequest) -> GratitudeEntry:
        with self.database.unit_of_work() as session:
            row = GratitudeEntryRow(
                user_id=request.user_id,
                partnership_id=request.partnership_id,
                content=request.content,
                amount=request.amount,
                created_at=_now(),
            )
            session.add(row)
            session.flush()
            return GratitudeEntry.model_validate(row)

    def list_for_user(self, user_id: int) -> list[GratitudeEntry]:
        return self._list(GratitudeEntryRow.user_id == user_id)

    def list_for_partnership(self, partnership_id: int) -> list[GratitudeEntry]:
        return self._list(GratitudeEntryRow.partnership_id == partnership_id)

    def update(self, entry_id: int, changes: GratitudeUpdate) -> GratitudeEntry:
        with self.database.unit_of_work() as session:
            row = self._get(session, entry_id)
            for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(row, field, value)
            session.flush()
            return GratitudeEntry.model_validate(row)

    def delete(self, entry_id: int) -> None:
        with self.database.unit_of_work() as session:
            self._get(session, entry_id).deleted_at = _now()

    def _get(self, session: Session, entry_id: int) -> GratitudeEntryRow:
        row = session.scalars(
            select(GratitudeEntryRow).where(
                GratitudeEntryRow.id == entry_id, GratitudeEntryRow.deleted_at.is_(None)
            )
        ).first()
        if row is None:
            raise NotFoundError(f"Gratitude entry {entry_id} not found")
        return row

    def _list(self, criterion) -> list[GratitudeEntry]:
        with self.database.unit_of_work() as session:
            rows = session.scalars(
                select(GratitudeEntryRow)
                .where(criterion, GratitudeEntryRow.deleted_at.is_(None))
                .order_by(GratitudeEntryRow.created_at.desc(), GratitudeEntryRow.id.desc())
            )
            return [GratitudeEntry.model_validate(r) for r in rows]
