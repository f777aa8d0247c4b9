"""
Shared wallet ledger for a partnership.

BalanceStore, TransactionLog and GoalTracker operate inside a session handed
to them by WalletService, which opens exactly one unit of work per public
operation. A contribution and its balance adjustment, or the six steps of a
split, therefore commit together or not at all.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .database import Database
from .exceptions import NotFoundError
from .log import get_logger
from .models import (
    TransactionKind,
    TransactionStatus,
    GoalStatus,
    PartnershipStatus,
    ContributeRequest,
    CreateGoalRequest,
    GoalUpdate,
    Transaction,
    WalletBalance,
    Goal,
    SplitResult,
)
from .tables import GoalRow, PartnershipRow, TransactionRow, WalletBalanceRow

logger = get_logger("wallet")

CENT = Decimal("0.01")
BALANCE_ADJUSTING_KINDS = (TransactionKind.CONTRIBUTION, TransactionKind.GRATITUDE)


def split_shares(total: Decimal) -> tuple[Decimal, Decimal]:
    """
    Divide a balance between partner A and partner B.

    B receives half truncated to the cent, A receives the rest, so an odd cent
    goes to A and the two shares always add up to ``total``.
    """
    share_b = (total / 2).quantize(CENT, rounding=ROUND_DOWN)
    share_a = total - share_b
    return share_a, share_b


class BalanceStore:
    def __init__(self, session: Session):
        self.session = session

    def find(self, partnership_id: int, for_update: bool = False) -> Optional[WalletBalanceRow]:
        stmt = select(WalletBalanceRow).where(
            WalletBalanceRow.partnership_id == partnership_id,
            WalletBalanceRow.deleted_at.is_(None),
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).first()

    def get(self, partnership_id: int) -> WalletBalanceRow:
        balance = self.find(partnership_id)
        if balance is None:
            balance = self._create(partnership_id, Decimal("0.00")) or self.find(partnership_id)
        return balance

    def adjust(self, partnership_id: int, delta: Decimal) -> WalletBalanceRow:
        balance = self.find(partnership_id, for_update=True)
        if balance is None:
            created = self._create(partnership_id, delta)
            if created is not None:
                return created
            balance = self.find(partnership_id, for_update=True)

        balance.balance = balance.balance + delta
        balance.last_updated = datetime.now(timezone.utc)
        self.session.flush()
        return balance

    def reset(self, balance: WalletBalanceRow) -> WalletBalanceRow:
        balance.balance = Decimal("0.00")
        balance.last_updated = datetime.now(timezone.utc)
        self.session.flush()
        return balance

    def _create(self, partnership_id: int, amount: Decimal) -> Optional[WalletBalanceRow]:
        """Insert a balance row, or return None if another writer inserted it first."""
        balance = WalletBalanceRow(
            partnership_id=partnership_id,
            balance=amount,
            last_updated=datetime.now(timezone.utc),
        )
        try:
            with self.session.begin_nested():
                self.session.add(balance)
        except IntegrityError:
            logger.info("Wallet balance for partnership %s already exists, re-reading", partnership_id)
            return None
        logger.info("Created wallet balance for partnership %s", partnership_id)
        return balance


class TransactionLog:
    def __init__(self, session: Session, balances: BalanceStore):
        self.session = session
        self.balances = balances

    def record(
        self,
        user_id: int,
        partnership_id: int,
        kind: TransactionKind,
        amount: Decimal,
        status: TransactionStatus,
        description: str = "",
        tx_hash: Optional[str] = None,
    ) -> TransactionRow:
        row = TransactionRow(
            user_id=user_id,
            partnership_id=partnership_id,
            kind=kind.value,
            amount=amount,
            description=description,
            tx_hash=tx_hash,
            status=status.value,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(row)
        self.session.flush()

        # Split transactions leave the balance to the caller.
        if kind in BALANCE_ADJUSTING_KINDS:
            self.balances.adjust(partnership_id, amount)
        return row

    def list(self, partnership_id: int) -> list[TransactionRow]:
        stmt = (
            select(TransactionRow)
            .where(
                TransactionRow.partnership_id == partnership_id,
                TransactionRow.deleted_at.is_(None),
            )
            .order_by(TransactionRow.created_at.desc(), TransactionRow.id.desc())
        )
        return list(self.session.scalars(stmt))


class GoalTracker:
    def __init__(self, session: Session):
        self.session = session

    def create(self, partnership_id: int, name: str, description: str, target_amount: Decimal) -> GoalRow:
        row = GoalRow(
            partnership_id=partnership_id,
            name=name,
            description=description,
            target_amount=target_amount,
            current_amount=Decimal("0.00"),
            status=GoalStatus.ACTIVE.value,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(row)
        self.session.flush()
        return row

    def get(self, goal_id: int) -> GoalRow:
        row = self.session.scalars(
            select(GoalRow).where(GoalRow.id == goal_id, GoalRow.deleted_at.is_(None))
        ).first()
        if row is None:
            raise NotFoundError(f"Goal {goal_id} not found")
        return row

    def list(self, partnership_id: int) -> list[GoalRow]:
        stmt = (
            select(GoalRow)
            .where(GoalRow.partnership_id == partnership_id, GoalRow.deleted_at.is_(None))
            .order_by(GoalRow.created_at.desc(), GoalRow.id.desc())
        )
        return list(self.session.scalars(stmt))

    def update(self, goal_id: int, changes: GoalUpdate) -> GoalRow:
        row = self.get(goal_id)
        # No consistency checks: current_amount may exceed target_amount.
        for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
            if isinstance(value, GoalStatus):
                value = value.value
            setattr(row, field, value)
        self.session.flush()
        return row

    def delete(self, goal_id: int) -> None:
        row = self.get(goal_id)
        row.deleted_at = datetime.now(timezone.utc)
        self.session.flush()


class WalletService:
    def __init__(self, database: Database):
        self.database = database

    def get_balance(self, partnership_id: int) -> WalletBalance:
        with self.database.unit_of_work() as session:
            return WalletBalance.model_validate(BalanceStore(session).get(partnership_id))

    def contribute(self, request: ContributeRequest) -> Transaction:
        kind = TransactionKind(request.type.value)
        with self.database.unit_of_work() as session:
            log = TransactionLog(session, BalanceStore(session))
            row = log.record(
                user_id=request.user_id,
                partnership_id=request.partnership_id,
                kind=kind,
                amount=request.amount,
                status=TransactionStatus.CONFIRMED,
                description=request.description,
                tx_hash=request.tx_hash,
            )
            transaction = Transaction.model_validate(row)

        logger.info(
            "Recorded %s of %s by user %s for partnership %s",
            kind.value, request.amount, request.user_id, request.partnership_id,
        )
        return transaction

    def list_transactions(self, partnership_id: int) -> list[Transaction]:
        with self.database.unit_of_work() as session:
            rows = TransactionLog(session, BalanceStore(session)).list(partnership_id)
            return [Transaction.model_validate(r) for r in rows]

    def create_goal(self, request: CreateGoalRequest) -> Goal:
        with self.database.unit_of_work() as session:
            row = GoalTracker(session).create(
                partnership_id=request.partnership_id,
                name=request.name,
                description=request.description,
                target_amount=request.target_amount,
            )
            return Goal.model_validate(row)

    def list_goals(self, partnership_id: int) -> list[Goal]:
        with self.database.unit_of_work() as session:
            return [Goal.model_validate(r) for r in GoalTracker(session).list(partnership_id)]

    def update_goal(self, goal_id: int, changes: GoalUpdate) -> Goal:
        with self.database.unit_of_work() as session:
            return Goal.model_validate(GoalTracker(session).update(goal_id, changes))

    def delete_goal(self, goal_id: int) -> None:
        with self.database.unit_of_work() as session:
            GoalTracker(session).delete(goal_id)

    def split(self, partnership_id: int) -> SplitResult:
        with self.database.unit_of_work() as session:
            balances = BalanceStore(session)
            log = TransactionLog(session, balances)

            balance = balances.find(partnership_id, for_update=True)
            if balance is None:
                raise NotFoundError(f"Wallet balance for partnership {partnership_id} not found")

            total = balance.balance
            share_a, share_b = split_shares(total)

            partnership = session.scalars(
                select(PartnershipRow).where(
                    PartnershipRow.id == partnership_id,
                    PartnershipRow.deleted_at.is_(None),
                )
            ).first()
            if partnership is None:
                raise NotFoundError(f"Partnership {partnership_id} not found")

            rows = [
                log.record(
                    user_id=user_id,
                    partnership_id=partnership_id,
                    kind=TransactionKind.SPLIT,
                    amount=share,
                    status=TransactionStatus.CONFIRMED,
                    description="Balance split",
                )
                for user_id, share in ((partnership.user_a_id, share_a), (partnership.user_b_id, share_b))
            ]

            balances.reset(balance)
            partnership.status = PartnershipStatus.SPLIT.value
            session.flush()

            result = SplitResult(
                partnership_id=partnership_id,
                total_amount=total,
                transactions=[Transaction.model_validate(r) for r in rows],
                balance=WalletBalance.model_validate(balance),
                partnership_status=PartnershipStatus.SPLIT,
            )

        logger.info("Split %s for partnership %s into %s / %s", total, partnership_id, share_a, share_b)
        return result
