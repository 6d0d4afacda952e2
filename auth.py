from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
import jwt

import crud
from config import Settings
from database import get_db
from logger import get_logger
from schemas import UserSchema, UserLogin, UserOut, Token

auth_router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/login")
log = get_logger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_access_token(data: dict, settings: Settings):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.access_token_expire_minutes
    )
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return encoded_jwt


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise credentials_exception

    user = crud.get_user(db, user_id)
    if user is None:
        raise credentials_exception
    return user


@auth_router.post(
    "/register", response_model=UserOut, status_code=status.HTTP_201_CREATED
)
async def register(user: UserSchema, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, user.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = crud.create_user(db, user)
    log.info("user_registered", user_id=new_user.id)
    return new_user


@auth_router.post("/login", response_model=Token)
async def login(
    user: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    db_user = crud.authenticate_user(db, user.email, user.password)
    if not db_user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.id}, settings=settings)
    return Token(access_token=access_token)
