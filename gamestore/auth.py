from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from passlib.exc import UnknownHashError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from .database import get_session
from .models import User, UserRole
from .schemas import PasswordChange, ProfileUpdated, UserCreate, UserLogin, UserOut, UserUpdate

router = APIRouter(prefix="/api/auth", tags=["auth"])

# 🔑 Password hashing and JWT
# Argon2 for new hashes; bcrypt stays in the context so older hashes still verify.
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8


# 🔐 Utilities
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        # Hash stored in DB is not recognizable by our pwd_context: treat as a failed login
        return False


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


# ✅ Registration
@router.post("/register", response_model=UserOut, status_code=201)
async def register_user(payload: UserCreate, session: AsyncSession = Depends(get_session)):
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        )
    try:
        result = await session.execute(select(User).where(User.email == payload.email))
        if result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A user with this email already exists",
            )

        user = User(
            email=payload.email,
            password_hash=get_password_hash(payload.password),
            full_name=payload.full_name,
            phone=payload.phone,
            role=UserRole.CUSTOMER.value,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user
    except IntegrityError:
        # Unique constraint lost a race with a concurrent registration
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A user with this email already exists")
    except SQLAlchemyError:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database temporarily unavailable, please try again later",
        )


# ✅ Login (JSON body)
@router.post("/login")
async def login_user(payload: UserLogin, session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = create_access_token({"sub": user.email, "role": user.role})
    return {"access_token": access_token, "token_type": "bearer"}


# ✅ Token check
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        email = payload.get("sub")
        if email is None:
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


@router.get("/me", response_model=UserOut)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


async def _load_self(session: AsyncSession, current_user: User) -> User:
    user = await session.get(User, current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ✏️ Profile
@router.put("/me", response_model=ProfileUpdated)
async def update_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    user = await _load_self(session, current_user)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        return ProfileUpdated(message="No changes detected.", user=UserOut.model_validate(user))

    for name in ("full_name", "email"):
        if name in changes and not changes[name]:
            raise HTTPException(status_code=400, detail=f"{name.replace('_', ' ').capitalize()} cannot be empty.")

    old_email = user.email
    new_email = changes.get("email")
    in_use = HTTPException(status_code=400, detail=f"Email address '{new_email}' is already in use.")
    if new_email and new_email != old_email:
        res = await session.execute(select(User.id).where(User.email == new_email, User.id != user.id))
        if res.scalar_one_or_none() is not None:
            raise in_use

    for name, value in changes.items():
        setattr(user, name, value)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise in_use
    await session.refresh(user)

    token = None
    if user.email != old_email:
        token = create_access_token({"sub": user.email, "role": user.role})
    return ProfileUpdated(
        message="Profile updated successfully.",
        user=UserOut.model_validate(user),
        access_token=token,
    )


@router.put("/me/password")
async def change_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if payload.current_password == payload.new_password:
        raise HTTPException(status_code=400, detail="New password cannot be the same as the current password.")
    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
        )

    user = await _load_self(session, current_user)
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Incorrect current password provided.")

    user.password_hash = get_password_hash(payload.new_password)
    await session.commit()
    return {"message": "Password updated successfully."}
