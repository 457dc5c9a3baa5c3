from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from todolist.core.database import get_db
from todolist.core.deps import get_auth_service, require_identity
from todolist.core.errors import AuthenticationFailed, Conflict, NotFound
from todolist.core.security import AuthService, Identity
from todolist.schemas.user import AuthResponse, LoginRequest, MeResponse, UserCreate
from todolist.services.user_service import (
    DuplicateEmailError,
    create_user,
    find_user_by_email,
    find_user_by_id,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    """Créer un nouvel utilisateur et ouvrir sa session"""
    password_hash = auth.hash_password(user_data.password)

    try:
        user = create_user(db, user_data.email, password_hash)
    except DuplicateEmailError:
        raise Conflict("An account with this email already exists")

    return {"token": auth.issue_token(user.id, user.email), "user": user}


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    """Se connecter et recevoir le token"""
    user = find_user_by_email(db, credentials.email)

    # même message pour un email inconnu ou un mauvais mot de passe
    if not user or not auth.verify_password(credentials.password, user.password_hash):
        raise AuthenticationFailed("Invalid email or password")

    return {"token": auth.issue_token(user.id, user.email), "user": user}


@router.get("/me", response_model=MeResponse)
def me(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    user = find_user_by_id(db, identity.user_id)
    if not user:
        raise NotFound("User not found")
    return {"user": user}
