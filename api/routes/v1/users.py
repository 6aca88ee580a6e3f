"""
api/routes/v1/users.py -- User profile endpoints.

Routes:
  GET    /api/v1/users                 -- list users (requires auth)
  GET    /api/v1/users/{id}            -- one user (requires auth)
  PUT    /api/v1/users/{id}            -- update profile (self or admin)
  DELETE /api/v1/users/{id}            -- delete user (admin, never self)
  PUT    /api/v1/users/{id}/password   -- change password (self or admin)

Authorization is decided here, per route, with the predicates in auth.guard.
The guard itself only establishes who the caller is.

Ordering of checks: authorization before existence. A non-admin asking to
modify somebody else's id gets 403 whether or not that id exists, so the
endpoint cannot be used to probe for valid ids.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import OkResponse, PasswordChange, UserEnvelope, UserListResponse, UserResponse, UserUpdate
from auth.dependencies import get_current_user, get_directory
from auth.directory import UserDirectory
from auth.errors import Forbidden, NotFound, ValidationError
from auth.guard import can_change_role, can_delete, is_self_or_admin, must_confirm_current_password
from auth.models import PublicUser

# Auth policy:
# - GET    /users:               requires auth (get_current_user)
# - GET    /users/{id}:          requires auth (get_current_user)
# - PUT    /users/{id}:          requires auth + is_self_or_admin; role needs admin
# - DELETE /users/{id}:          requires auth + can_delete
# - PUT    /users/{id}/password: requires auth + is_self_or_admin
router = APIRouter()


@router.get("/users", response_model=UserListResponse)
def list_users(
    directory: UserDirectory = Depends(get_directory),
    current_user: PublicUser = Depends(get_current_user),
) -> UserListResponse:
    """List all users. No password material is ever included."""
    users = [UserResponse.from_user(u) for u in directory.find_all()]
    return UserListResponse(users=users, count=len(users))


@router.get("/users/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: str,
    directory: UserDirectory = Depends(get_directory),
    current_user: PublicUser = Depends(get_current_user),
) -> UserEnvelope:
    user = directory.find_by_id(user_id)
    if user is None:
        raise NotFound()
    return UserEnvelope(user=UserResponse.from_user(user))


@router.put("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    body: UserUpdate,
    directory: UserDirectory = Depends(get_directory),
    current_user: PublicUser = Depends(get_current_user),
) -> UserEnvelope:
    """Update name, email or role.

    Owners may edit their own name and email. Only admins may change a role,
    including their own -- otherwise any user could promote themselves.
    """
    if not is_self_or_admin(current_user, user_id):
        raise Forbidden("You can only update your own profile.")

    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No fields to update.")
    if "role" in changes:
        if not can_change_role(current_user):
            raise Forbidden("Admin access required to change roles.")
        changes["role"] = body.role.value

    updated = directory.update(user_id, **changes)
    if updated is None:
        raise NotFound()
    return UserEnvelope(user=UserResponse.from_user(updated))


@router.delete("/users/{user_id}", response_model=OkResponse)
def delete_user(
    user_id: str,
    directory: UserDirectory = Depends(get_directory),
    current_user: PublicUser = Depends(get_current_user),
) -> OkResponse:
    """Permanently delete a user. Admin only; admins cannot delete themselves.

    Tokens already issued to the deleted user stop working immediately -- the
    guard re-resolves the subject on every request.
    """
    if not can_delete(current_user, user_id):
        raise Forbidden("Only admins may delete accounts, and never their own.")
    if not directory.delete(user_id):
        raise NotFound()
    return OkResponse(message="User deleted successfully.")


@router.put("/users/{user_id}/password", response_model=OkResponse)
def change_password(
    user_id: str,
    body: PasswordChange,
    directory: UserDirectory = Depends(get_directory),
    current_user: PublicUser = Depends(get_current_user),
) -> OkResponse:
    """Change a password.

    Non-admins must supply their current password. Admins may reset any
    password, their own included, without it.
    """
    if not is_self_or_admin(current_user, user_id):
        raise Forbidden("You can only update your own password.")

    updated = directory.change_password(
        user_id,
        body.new_password,
        current_password=body.current_password,
        require_current=must_confirm_current_password(current_user),
    )
    if updated is None:
        raise NotFound()
    return OkResponse(message="Password updated successfully.")
