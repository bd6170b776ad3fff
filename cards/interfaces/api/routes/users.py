"""Rutas para registrar usuarios y consultar el perfil propio."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cards.application.use_cases.users import create_user as create_user_uc
from cards.domain.entities import User
from cards.infrastructure.database import get_db
from cards.interfaces.api.dependencies import get_current_active_user
from cards.interfaces.api.schemas import UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    """Crea una cuenta nueva."""

    try:
        user = create_user_uc(
            db,
            name=user_in.name,
            email=user_in.email,
            password=user_in.password,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserRead.model_validate(user)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_active_user)):
    """Devuelve la información del usuario autenticado."""

    return UserRead.model_validate(current_user)
