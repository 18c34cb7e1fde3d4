from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud
from ..auth import authenticate_user, get_current_user
from ..database import get_db
from ..errors import AuthError, Conflict, NotFound
from ..schemas import AuthOut, CurrentUser, Envelope, LoginRequest, UserCreate, UserOut
from ..token import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=Envelope[AuthOut], status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, payload.email):
        raise Conflict("An account with this email already exists.")
    user = crud.create_user(db, payload.name, payload.email, payload.password)
    token = create_access_token(user)
    return {"message": "Account created successfully", "data": {"token": token, "user": UserOut.model_validate(user)}}


@router.post("/login", response_model=Envelope[AuthOut])
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        raise AuthError("Invalid email or password.")
    token = create_access_token(user)
    return {"message": "Logged in successfully", "data": {"token": token, "user": UserOut.model_validate(user)}}


@router.get("/me", response_model=Envelope[UserOut])
def me(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    user = crud.get_user(db, current_user.id)
    if user is None:
        raise NotFound("User not found.")
    return {"message": "User retrieved", "data": UserOut.model_validate(user)}
