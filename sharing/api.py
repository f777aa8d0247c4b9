from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .accounts import GratitudeService, PartnershipService, UserService
from .config import Settings, get_settings
from .database import Database
from .exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .log import configure_logging, get_logger
from .models import (
    CreateUserRequest, UserUpdate, User,
    CreatePartnershipRequest, PartnershipStatusRequest, Partnership,
    ContributeRequest, Transaction, WalletBalance, SplitResult,
    CreateGoalRequest, GoalUpdate, Goal,
    CreateGratitudeRequest, GratitudeUpdate, GratitudeEntry,
    MessageResponse,
)
from .wallet import WalletService

logger = get_logger("api")

router = APIRouter()


def get_wallet_service(request: Request) -> WalletService:
    return request.app.state.wallet_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_partnership_service(request: Request) -> PartnershipService:
    return request.app.state.partnership_service


def get_gratitude_service(request: Request) -> GratitudeService:
    return request.app.state.gratitude_service


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


# Users

@router.post("/users", response_model=User, status_code=status.HTTP_201_CREATED, tags=["Users"])
def create_user(request: CreateUserRequest, service: UserService = Depends(get_user_service)) -> User:
    try:
        return service.create(request)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/users/{user_id}", response_model=User, tags=["Users"])
def get_user(user_id: int, service: UserService = Depends(get_user_service)) -> User:
    try:
        return service.get(user_id)
    except NotFoundError as e:
        raise _not_found(e)


@router.put("/users/{user_id}", response_model=MessageResponse, tags=["Users"])
def update_user(
    user_id: int, changes: UserUpdate, service: UserService = Depends(get_user_service)
) -> MessageResponse:
    try:
        service.update(user_id, changes)
    except NotFoundError as e:
        raise _not_found(e)
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return MessageResponse(message="User updated successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse, tags=["Users"])
def delete_user(user_id: int, service: UserService = Depends(get_user_service)) -> MessageResponse:
    try:
        service.delete(user_id)
    except NotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="User deleted successfully")


@router.get("/users/{user_id}/partnerships", response_model=list[Partnership], tags=["Users"])
def get_user_partnerships(
    user_id: int, service: PartnershipService = Depends(get_partnership_service)
) -> list[Partnership]:
    try:
        return service.list_for_user(user_id)
    except NotFoundError as e:
        raise _not_found(e)


# Partnerships

@router.post("/partnerships", response_model=Partnership, status_code=status.HTTP_201_CREATED, tags=["Partnerships"])
def create_partnership(
    request: CreatePartnershipRequest, service: PartnershipService = Depends(get_partnership_service)
) -> Partnership:
    try:
        return service.create(request)
    except NotFoundError as e:
        raise _not_found(e)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.get("/partnerships/{partnership_id}", response_model=Partnership, tags=["Partnerships"])
def get_partnership(
    partnership_id: int, service: PartnershipService = Depends(get_partnership_service)
) -> Partnership:
    try:
        return service.get(partnership_id)
    except NotFoundError as e:
        raise _not_found(e)


@router.put("/partnerships/{partnership_id}/status", response_model=Partnership, tags=["Partnerships"])
def set_partnership_status(
    partnership_id: int,
    request: PartnershipStatusRequest,
    service: PartnershipService = Depends(get_partnership_service),
) -> Partnership:
    try:
        return service.set_status(partnership_id, request.status)
    except NotFoundError as e:
        raise _not_found(e)
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


# Wallet

@router.post("/wallet/contribute", response_model=Transaction, status_code=status.HTTP_201_CREATED, tags=["Wallet"])
def contribute(request: ContributeRequest, service: WalletService = Depends(get_wallet_service)) -> Transaction:
    return service.contribute(request)


@router.get("/wallet/transactions/{partnership_id}", response_model=list[Transaction], tags=["Wallet"])
def get_transactions(
    partnership_id: int, service: WalletService = Depends(get_wallet_service)
) -> list[Transaction]:
    return service.list_transactions(partnership_id)


@router.post("/wallet/split/{partnership_id}", response_model=SplitResult, tags=["Wallet"])
def split_wallet(partnership_id: int, service: WalletService = Depends(get_wallet_service)) -> SplitResult:
    try:
        return service.split(partnership_id)
    except NotFoundError as e:
        raise _not_found(e)


@router.get("/wallet/{partnership_id}", response_model=WalletBalance, tags=["Wallet"])
def get_wallet_balance(
    partnership_id: int, service: WalletService = Depends(get_wallet_service)
) -> WalletBalance:
    return service.get_balance(partnership_id)


# Goals

@router.post("/goals", response_model=Goal, status_code=status.HTTP_201_CREATED, tags=["Goals"])
def create_goal(request: CreateGoalRequest, service: WalletService = Depends(get_wallet_service)) -> Goal:
    return service.create_goal(request)


@router.get("/goals/{partnership_id}", response_model=list[Goal], tags=["Goals"])
def get_goals(partnership_id: int, service: WalletService = Depends(get_wallet_service)) -> list[Goal]:
    return service.list_goals(partnership_id)


@router.put("/goals/{goal_id}", response_model=MessageResponse, tags=["Goals"])
def update_goal(
    goal_id: int, changes: GoalUpdate, service: WalletService = Depends(get_wallet_service)
) -> MessageResponse:
    try:
        service.update_goal(goal_id, changes)
    except NotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Goal updated successfully")


@router.delete("/goals/{goal_id}", response_model=MessageResponse, tags=["Goals"])
def delete_goal(goal_id: int, service: WalletService = Depends(get_wallet_service)) -> MessageResponse:
    try:
        service.delete_goal(goal_id)
    except NotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Goal deleted successfully")


# Gratitude

@router.post("/gratitude", response_model=GratitudeEntry, status_code=status.HTTP_201_CREATED, tags=["Gratitude"])
def create_gratitude(
    request: CreateGratitudeRequest, service: GratitudeService = Depends(get_gratitude_service)
) -> GratitudeEntry:
    return service.create(request)


@router.get("/gratitude/user/{user_id}", response_model=list[GratitudeEntry], tags=["Gratitude"])
def get_user_gratitude(
    user_id: int, service: GratitudeService = Depends(get_gratitude_service)
) -> list[GratitudeEntry]:
    return service.list_for_user(user_id)


@router.get("/gratitude/partnership/{partnership_id}", response_model=list[GratitudeEntry], tags=["Gratitude"])
def get_partnership_gratitude(
    partnership_id: int, service: GratitudeService = Depends(get_gratitude_service)
) -> list[GratitudeEntry]:
    return service.list_for_partnership(partnership_id)


@router.put("/gratitude/{entry_id}", response_model=MessageResponse, tags=["Gratitude"])
def update_gratitude(
    entry_id: int, changes: GratitudeUpdate, service: GratitudeService = Depends(get_gratitude_service)
) -> MessageResponse:
    try:
        service.update(entry_id, changes)
    except NotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Gratitude entry updated successfully")


@router.delete("/gratitude/{entry_id}", response_model=MessageResponse, tags=["Gratitude"])
def delete_gratitude(entry_id: int, service: GratitudeService = Depends(get_gratitude_service)) -> MessageResponse:
    try:
        service.delete(entry_id)
    except NotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Gratitude entry deleted successfully")


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    database = database or Database(settings.database_url, echo=settings.sql_echo)
    database.create_tables()

    app = FastAPI(
        title="AA Sharing API",
        description="Shared wallet, savings goals and gratitude journal for two-person partnerships",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.state.database = database
    app.state.wallet_service = WalletService(database)
    app.state.user_service = UserService(database)
    app.state.partnership_service = PartnershipService(database)
    app.state.gratitude_service = GratitudeService(database)

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_errors(exc)},
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "aa-sharing"}

    app.include_router(router, prefix=settings.api_prefix)
    logger.info("AA Sharing API ready (prefix %s)", settings.api_prefix)
    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
