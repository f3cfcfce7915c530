from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from pydantic import ValidationError
from agenda.models.mod_auth import AuthUser
from datetime import datetime, timezone
from typing import Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

def read_token(token: str, tenant_header: Optional[str] = None) -> AuthUser:
    """
    Read the claims of a token issued by the upstream API.
    The signature is checked by the upstream API on every forwarded call, so
    only the claims needed to route requests are read here.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        raise _credentials_error("Could not validate credentials")

    user_id = claims.get("userId") or claims.get("sub")
    if user_id is None:
        raise _credentials_error("Could not validate credentials")

    exp = claims.get("exp")
    if exp and datetime.now(timezone.utc).timestamp() > exp:
        raise _credentials_error("Token has expired")

    try:
        user = AuthUser(
            id=str(user_id),
            email=claims.get("email"),
            name=claims.get("name"),
            role=str(claims.get("role", "")).upper(),
            professional_id=str(claims["professionalId"]) if claims.get("professionalId") is not None else None,
            tenant_id=tenant_header or (str(claims["tenantId"]) if claims.get("tenantId") is not None else None),
            tenant_slug=claims.get("tenantSlug"),
            exp=exp,
            token=token,
        )
    except ValidationError:
        raise _credentials_error("Could not validate credentials")
    return user

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    x_tenant_id: Optional[str] = Header(default=None),
) -> AuthUser:
    """
    Get the current authenticated user from the token.
    An X-Tenant-ID header overrides the tenant carried in the token.
    """
    return read_token(token, x_tenant_id)
