from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas
from ..core.timezones import normalize_zone
from ..database import get_db
from ..services.user_directory import UserDirectory

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=schemas.UserOut, status_code=201)
def create_user(payload: schemas.UserCreate, db: Session = Depends(get_db)):
    directory = UserDirectory(db)
    if directory.find(payload.email):
        raise HTTPException(409, "A user with this email already exists")
    return directory.create_user(payload.name, payload.email, normalize_zone(payload.timezone))


@router.get("/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = UserDirectory(db).find(user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user
