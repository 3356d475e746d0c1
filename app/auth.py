"""Auth Router - JWT bearer auth.

Judging core chỉ cần một "authenticated identity" (user id); module này cung cấp
identity đó cho các router.
"""

from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .db import get_db
from .settings import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from domain.models import User

router = APIRouter(prefix="/auth", tags=["auth"])

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


class Token(BaseModel):
    access_token: str
    token_type: str


class Credentials(BaseModel):
    username: str = Field(..., min_length=3, max_length=150)
    password: str = Field(..., min_length=6)


class UserOut(BaseModel):
    id: int
    username: str
    is_admin: bool


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def token_for_user(user: User) -> str:
    return create_access_token(data={"sub": str(user.id), "is_admin": int(user.is_admin), "username": user.username})


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, username=user.username, is_admin=bool(user.is_admin))


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(credentials: Credentials, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.username == credentials.username).first()
    if existing:
        raise HTTPException(status_code=409, detail="Username already registered")

    db_user = User(username=credentials.username, hashed_password=get_password_hash(credentials.password))
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return _user_out(db_user)


@router.post("/login", response_model=Token)
def login(credentials: Credentials, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == credentials.username).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Incorrect username or password")
    return {"access_token": token_for_user(user), "token_type": "bearer"}


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Giải mã JWT token và trả về user hiện tại"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise credentials_exception
    return user


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Kiểm tra nếu user hiện tại là admin"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return _user_out(current_user)


def get_optional_user_id(authorization: Optional[str] = Header(None)) -> Optional[int]:
    """Trích `user_id` từ header Authorization (Bearer token).

    Dùng cho các endpoint **cho phép anonymous**: trả về `None` nếu không có hoặc
    token không hợp lệ, không raise lỗi.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    try:
        payload = jwt.decode(parts[1], SECRET_KEY, algorithms=[JWT_ALGORITHM])
        sub = payload.get("sub")
        return int(sub) if sub is not None else None
    except (JWTError, ValueError):
        return None


__all__ = [
    "router",
    "get_current_user",
    "get_current_admin_user",
    "get_optional_user_id",
    "create_access_token",
    "token_for_user",
    "verify_password",
    "get_password_hash",
]
