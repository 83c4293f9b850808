from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from expense_tracker.api.dependencies import get_current_user, user_store
from expense_tracker.core.errors import (
    email_already_exists_error,
    invalid_credentials_error,
    username_already_exists_error,
)
from expense_tracker.core.logging import get_logger, log_authentication_event
from expense_tracker.database.postgres import get_async_session
from expense_tracker.schemas.user import Token, UserCreate, UserLogin, UserResponse
from expense_tracker.utils.auth import (
    access_token_lifetime,
    create_access_token,
    get_password_hash_async,
    verify_password_async,
)
from expense_tracker.utils.ids import new_id

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _issue_token(user: UserResponse) -> Token:
    lifetime = access_token_lifetime()
    access_token = create_access_token(data={"sub": user.id}, expires_delta=lifetime)
    return Token(
        access_token=access_token,
        expires_in=int(lifetime.total_seconds()),
        user=user
    )


async def _authenticate(db: AsyncSession, identifier: str, password: str) -> UserResponse:
    user = await user_store.get_by_login_identifier(db, identifier)
    if not user or not await verify_password_async(password, user.password_hash):
        log_authentication_event(logger, "login", identifier=identifier, success=False)
        raise invalid_credentials_error()

    await user_store.update_last_login(db, user.id)
    await db.commit()
    log_authentication_event(logger, "login", user_id=user.id, identifier=identifier)
    return await user_store.get_by_id(db, user.id)


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
        user_data: UserCreate,
        db: AsyncSession = Depends(get_async_session)
) -> Token:
    """
    사용자 회원가입

    가입 즉시 액세스 토큰을 발급합니다.
    """
    username = user_data.username
    email = user_data.email.lower()

    if await user_store.is_username_taken(db, username):
        raise username_already_exists_error()

    if await user_store.is_email_taken(db, email):
        raise email_already_exists_error()

    password_hash = await get_password_hash_async(user_data.password)
    user = await user_store.create(
        db,
        user_id=new_id(),
        username=username,
        email=email,
        password_hash=password_hash,
        display_name=user_data.display_name
    )
    await db.commit()

    log_authentication_event(logger, "register", user_id=user.id, identifier=username)
    return _issue_token(user)


@router.post("/login", response_model=Token)
async def login(
        credentials: UserLogin,
        db: AsyncSession = Depends(get_async_session)
) -> Token:
    """사용자 로그인 (identifier: 사용자명 또는 이메일)"""
    user = await _authenticate(db, credentials.identifier.strip(), credentials.password)
    return _issue_token(user)


@router.post("/token", response_model=Token)
async def login_oauth2(
        form_data: OAuth2PasswordRequestForm = Depends(),
        db: AsyncSession = Depends(get_async_session)
) -> Token:
    """
    사용자 로그인 (OAuth2 표준, Swagger UI용)

    - application/x-www-form-urlencoded 형식
    - username 필드에 사용자명 또는 이메일 입력
    """
    user = await _authenticate(db, form_data.username.strip(), form_data.password)
    return _issue_token(user)


@router.get("/me", response_model=UserResponse)
async def read_current_user(
        current_user: UserResponse = Depends(get_current_user)
) -> UserResponse:
    """현재 로그인한 사용자 정보"""
    return current_user
