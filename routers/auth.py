from fastapi import APIRouter, Depends, HTTPException
from passlib.context import CryptContext
from tortoise.exceptions import IntegrityError

from deps import create_access_token, get_current_user
from models import User
from schemas import LoginRequest, LoginResponse, RegisterResponse, UserCreate, UserRead

router = APIRouter(prefix="/api/auth", tags=["auth"])
pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(payload: UserCreate):
    email = str(payload.email).lower()
    if await User.exists(email=email):
        raise HTTPException(status_code=409, detail="Email already registered")
    try:
        user = await User.create(
            name=payload.name.strip(),
            email=email,
            hashed_password=pwd_ctx.hash(payload.password),
        )
    except IntegrityError:
        # lost a race with a concurrent register for the same address
        raise HTTPException(status_code=409, detail="Email already registered")
    return {"message": "You are signed in", "user": UserRead.model_validate(user)}


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest):
    user = await User.get_or_none(email=str(payload.email).lower())
    if not user or not pwd_ctx.verify(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {
        "token": create_access_token(user.id),
        "message": "Login Successful",
        "user": UserRead.model_validate(user),
    }


@router.get("/me", response_model=UserRead)
async def read_me(current_user: User = Depends(get_current_user)):
    return UserRead.model_validate(current_user)
