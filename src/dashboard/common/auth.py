from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated, ClassVar, Literal

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

if TYPE_CHECKING:
    from .config import BaseConfig

# ─────────────────────────────────────
# Permissions
# ─────────────────────────────────────

Permission = Literal[
    "dashboard_read",
    "dashboard_write",
    "admin",
]

Permissions = Annotated[list[str], Field(default_factory=list)]


# ─────────────────────────────────────
# JWT payload model
# ─────────────────────────────────────


class UserPayload(BaseModel):
    """JWT token payload for authenticated dashboard operators."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        strict=True,
    )

    sub: str
    is_admin: bool = Field(default=False, strict=True)
    permissions: Permissions

    @field_validator("permissions")
    @classmethod
    def unique_permissions(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="auth/token",
    auto_error=False,
)


# ─────────────────────────────────────
# Public key loader (cached)
# ─────────────────────────────────────

_public_key_cache: str | None = None
_max_load_attempts: int = 3


async def get_public_key(config: BaseConfig) -> str:
    """Load and cache the public key, retrying briefly while it is provisioned."""

    global _public_key_cache

    if _public_key_cache:
        return _public_key_cache

    path = config.public_key_path
    for attempt in range(_max_load_attempts):
        if path is not None and path.exists():
            try:
                key = path.read_text().strip()
            except OSError as exc:
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Failed to read public key file: {exc}",
                )
            if key:
                _public_key_cache = key
                return key

        if attempt < _max_load_attempts - 1:
            await asyncio.sleep(1)

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Public key not found at {path}",
    )


def reset_public_key_cache() -> None:
    global _public_key_cache
    _public_key_cache = None


async def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> UserPayload | None:
    """Validate the JWT and return the user payload."""

    config: BaseConfig = request.app.state.config

    if config.auth_disabled:
        return None

    if token is None:
        return None

    public_key = await get_public_key(config)

    try:
        raw = jwt.decode(
            token,
            public_key,
            algorithms=["ES256"],
            options={"require_sub": True, "require_exp": True},
        )
        return UserPayload.model_validate(raw)

    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT payload is invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_permission(permission: Permission):
    """Require a specific permission."""

    async def permission_checker(
        request: Request,
        current_user: UserPayload | None = Depends(get_current_user),
    ) -> UserPayload | None:
        config: BaseConfig = request.app.state.config

        if config.auth_disabled:
            return current_user

        if current_user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if current_user.is_admin:
            return current_user

        if permission not in current_user.permissions:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {permission}",
            )

        return current_user

    return permission_checker
