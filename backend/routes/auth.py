# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import client_ip, write_log
from utils.credentials import (
    active_users,
    consume_password_reset_token,
    create_password_reset_token,
    set_password,
)
from utils.hashing import verify_password
from utils.tokenJWT import create_user_token, get_current_user

router = APIRouter(prefix="/api/v1/users", tags=["Auth"])

def _token_response(user: User) -> schemas.Token:
    return schemas.Token(
        access_token=create_user_token(user),
        user=schemas.UserResponse.model_validate(user),
    )

def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    # Soft-deleted accounts still own their e-mail address
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


# Register a new user
@router.post("/signup", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    if _email_taken(db, payload.email):
        write_log(db, user_id=None, action="SIGNUP", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Email exists"})
        raise HTTPException(status_code=400, detail="Email already registered")

    # Role is never taken from the sign-up body
    new_user = User(name=payload.name, email=payload.email, role="user")
    set_password(new_user, payload.password, payload.password_confirm, is_new=True)
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="SIGNUP", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})

    return _token_response(new_user)


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = active_users(db).filter(User.email == payload.email).first()

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return _token_response(db_user)


# Start a password reset; the raw token is delivered out of band
@router.post("/forgot-password", response_model=schemas.MessageResponse)
def forgot_password(payload: schemas.ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    user = active_users(db).filter(User.email == payload.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="There is no user with that email address.")

    # TODO: e-mail the returned token to user.email (as {FRONTEND_URL}/reset-password/<token>) once outbound mail is configured
    create_password_reset_token(user)
    db.commit()

    write_log(db, user_id=user.id, action="FORGOT_PASSWORD", resource="auth", status="SUCCESS",
              ip=client_ip(request))

    return schemas.MessageResponse(message="Token sent to email!")


# Finish a password reset with the token from the e-mail
@router.patch("/reset-password/{token}", response_model=schemas.Token)
def reset_password(token: str, payload: schemas.ResetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    user = consume_password_reset_token(db, token, payload.password, payload.password_confirm)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=user.id, action="RESET_PASSWORD", resource="auth", status="SUCCESS",
              ip=client_ip(request))

    return _token_response(user)


# Change the password of the logged in user
@router.patch("/update-my-password", response_model=schemas.Token)
def update_my_password(
    payload: schemas.UpdatePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.password_current, current_user.password_hash):
        write_log(db, user_id=current_user.id, action="UPDATE_PASSWORD", resource="auth", status="FAIL",
                  ip=client_ip(request))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Your current password is wrong.")

    set_password(current_user, payload.password, payload.password_confirm)
    db.commit()
    db.refresh(current_user)

    write_log(db, user_id=current_user.id, action="UPDATE_PASSWORD", resource="auth", status="SUCCESS",
              ip=client_ip(request))

    return _token_response(current_user)


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/update-me", response_model=schemas.UserResponse)
def update_me(
    payload: schemas.UpdateMeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in data and _email_taken(db, data["email"], exclude_id=current_user.id):
        raise HTTPException(status_code=400, detail="Email already registered")

    for key, value in data.items():
        setattr(current_user, key, value)
    db.commit()
    db.refresh(current_user)
    return current_user


# Deactivate own account (soft delete)
@router.delete("/delete-me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    current_user.active = False
    db.commit()
    write_log(db, user_id=current_user.id, action="DEACTIVATE", resource="users", status="SUCCESS",
              ip=client_ip(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
