"""
Account endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..core.errors import EmailAlreadyRegistered, InvalidAccountState
from ..db import get_db
from ..schemas import CreateUserRequest, UpdateUserRequest, UserOut
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED, name="createUser")
def create_user(payload: CreateUserRequest, db: Session = Depends(get_db)):
    try:
        return UserService.create_user(db, email=payload.email, first_name=payload.first_name)
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


# Declared before /{user_id} so "by-email" is not parsed as an id
@router.get("/by-email", response_model=UserOut, name="getUserByEmail")
def get_user_by_email(email: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    user = UserService.get_user_by_email(db, email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/{user_id}", response_model=UserOut, name="getUser")
def get_user(user_id: int, db: Session = Depends(get_db)):
    user = UserService.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut, name="updateUser")
def update_user(user_id: int, payload: UpdateUserRequest, db: Session = Depends(get_db)):
    """
    Partial update. Only fields present in the body are applied, so an
    explicit `"phone_number": null` clears the number. A verified account
    must keep a number; anything else is a 422.
    """
    fields = payload.model_dump(exclude_unset=True)
    try:
        user = UserService.update_user(db, user_id, **fields)
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except InvalidAccountState as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
