from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

# Import schemas and service
from app.core.schemas.auth import CurrentUser
from app.core.auth.authentication import AuthService
from app.core.auth.authentication import SECRET_KEY, ALGORITHM

# Tokens are issued by the identity service; this API only verifies them
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Dependency that decodes the JWT token and fetches the user's current data.
    The token subject ("sub") is the employee id.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        emp_id: str = payload.get("sub")
        if emp_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user_data = await AuthService.get_full_user_data(emp_id)

    if user_data is None:
        raise credentials_exception

    return CurrentUser(**user_data)


def has_any_role(current_user: CurrentUser, allowed_roles) -> bool:
    """Primary role first, then role2."""
    if current_user.role in allowed_roles:
        return True
    return bool(current_user.role2) and current_user.role2 in allowed_roles


def require_roles(*allowed_roles: str):
    """
    Dependency factory that checks if the current user has one of the allowed roles.
    Checks both 'role' and 'role2'.
    """
    async def role_checker(
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if not has_any_role(current_user, allowed_roles):
            roles_str = ", ".join(allowed_roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation not permitted. Requires one of the following roles: {roles_str}",
            )

        return current_user

    return role_checker
