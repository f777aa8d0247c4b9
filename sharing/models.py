from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, field_validator


class PartnershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SPLIT = "split"


class TransactionKind(str, Enum):
    CONTRIBUTION = "contribution"
    GRATITUDE = "gratitude"
    SPLIT = "split"


class ContributionKind(str, Enum):
    CONTRIBUTION = "contribution"
    GRATITUDE = "gratitude"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


Money = Decimal


# Requests

class CreateUserRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = ""
    wallet_address: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    name: Optional[str] = None
    wallet_address: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class CreatePartnershipRequest(BaseModel):
    user_a_id: int = Field(..., gt=0)
    user_b_id: int = Field(..., gt=0)


class PartnershipStatusRequest(BaseModel):
    status: PartnershipStatus


class ContributeRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    partnership_id: int = Field(..., gt=0)
    amount: Money = Field(..., max_digits=12, decimal_places=2)
    description: str = ""
    type: ContributionKind = Field(..., description="contribution or gratitude")
    tx_hash: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "user_id": 1,
            "partnership_id": 1,
            "amount": "50.00",
            "description": "Weekly savings",
            "type": "contribution"
        }
    })

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, value: Decimal) -> Decimal:
        # Negative amounts are withdrawals and stay allowed
        if value == 0:
            raise ValueError("amount must not be zero")
        return value


class CreateGoalRequest(BaseModel):
    partnership_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    description: str = ""
    target_amount: Money = Field(..., max_digits=12, decimal_places=2)


class GoalUpdate(BaseModel):
    """Partial goal update. Only the fields present in the request are written."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    target_amount: Optional[Money] = Field(default=None, max_digits=12, decimal_places=2)
    current_amount: Optional[Money] = Field(default=None, max_digits=12, decimal_places=2)
    status: Optional[GoalStatus] = None

    model_config = ConfigDict(extra="forbid")


class CreateGratitudeRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    partnership_id: int = Field(..., gt=0)
    content: str = Field(..., min_length=1)
    amount: Money = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)


class GratitudeUpdate(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[Money] = Field(default=None, max_digits=12, decimal_places=2)

    model_config = ConfigDict(extra="forbid")


# Responses

class User(BaseModel):
    id: int
    email: str
    name: str
    wallet_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Partnership(BaseModel):
    id: int
    user_a_id: int
    user_b_id: int
    status: PartnershipStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def can_transition_to(self, target: PartnershipStatus) -> bool:
        if self.status == PartnershipStatus.ACTIVE:
            return target == PartnershipStatus.INACTIVE
        if self.status == PartnershipStatus.INACTIVE:
            return target == PartnershipStatus.ACTIVE
        return False


class Transaction(BaseModel):
    id: int
    user_id: int
    partnership_id: int
    kind: TransactionKind = Field(
        ..., validation_alias=AliasChoices("kind", "type"), serialization_alias="type"
    )
    amount: Money
    description: str
    tx_hash: Optional[str] = None
    status: TransactionStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WalletBalance(BaseModel):
    id: int
    partnership_id: int
    balance: Money
    last_updated: datetime

    model_config = ConfigDict(from_attributes=True)


class Goal(BaseModel):
    id: int
    partnership_id: int
    name: str
    description: str
    target_amount: Money
    current_amount: Money
    status: GoalStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GratitudeEntry(BaseModel):
    id: int
    user_id: int
    partnership_id: int
    content: str
    amount: Money
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SplitResult(BaseModel):
    partnership_id: int
    total_amount: Money
    transactions: list[Transaction]
    balance: WalletBalance
    partnership_status: PartnershipStatus


class MessageResponse(BaseModel):
    message: str
