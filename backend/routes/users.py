# backend/routes/users.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, Response
from sqlalchemy.orm import Session
from typing import Optional, Literal

from database import get_db
from models.users import User
from schemas.user import PaginatedUsersResponse, Role, UserAdminUpdate, UserResponse
from utils.audit import client_ip, write_log
from utils.credentials import active_users
from utils.tokenJWT import role_required

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

admin_only = role_required("admin")

def _get_active_user(db: Session, user_id: int) -> User:
    user = active_users(db).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No user found with that ID")
    return user


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail"),
    name: Optional[str] = Query(None, description="Search by name"),
    role: Optional[Role] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "role", "name"] = "id",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    query = active_users(db)

    if q:
        query = query.filter(User.email.ilike(f"%{q.lower()}%"))
    if name:
        query = query.filter(User.name.ilike(f"%{name}%"))
    if role:
        query = query.filter(User.role == role)

    sort_map = {
        "id": User.id,
        "email": User.email,
        "role": User.role,
        "name": User.name,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return _get_active_user(db, user_id)


# Update name, e-mail or role (Admin only); passwords are never set here
@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserAdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user = _get_active_user(db, user_id)

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in data.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"id": user.id, "fields": sorted(data)})
    return user


# Deactivate a user account (Admin only); records are never hard-deleted
@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only)
):
    user = _get_active_user(db, user_id)

    # Prevent self-deactivation through the admin endpoint
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    user.active = False
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DEACTIVATE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"id": user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
