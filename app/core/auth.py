"""인증 의존성

세션 처리는 앞단 인증 게이트웨이가 담당하고, 확인된 사용자 정보를
X-User-Id / X-User-Role / X-User-Status 헤더로 전달한다.
"""
from fastapi import Depends, Header
from pydantic import BaseModel

from app.exceptions import AccountNotApprovedError, AuthenticationRequiredError, PermissionDeniedError

ROLE_USER = "USER"
ROLE_MODERATOR = "MODERATOR"
ROLE_ADMIN = "ADMIN"
STATUS_APPROVED = "APPROVED"


class CurrentUser(BaseModel):
    """요청 사용자"""
    id: str
    role: str = ROLE_USER
    status: str = STATUS_APPROVED

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_approved(self) -> bool:
        return self.status == STATUS_APPROVED


async def get_current_user(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
    x_user_status: str | None = Header(None),
) -> CurrentUser | None:
    """게이트웨이 헤더에서 사용자 복원 (없으면 None)"""
    if not x_user_id:
        return None
    return CurrentUser(
        id=x_user_id,
        role=(x_user_role or ROLE_USER).upper(),
        status=(x_user_status or "").upper(),
    )


async def require_user(
    current_user: CurrentUser | None = Depends(get_current_user),
) -> CurrentUser:
    """로그인 필수"""
    if current_user is None:
        raise AuthenticationRequiredError()
    return current_user


async def require_approved_user(
    current_user: CurrentUser = Depends(require_user),
) -> CurrentUser:
    """승인된 사용자 필수"""
    if not current_user.is_approved:
        raise AccountNotApprovedError()
    return current_user


async def require_admin(
    current_user: CurrentUser = Depends(require_user),
) -> CurrentUser:
    """관리자 필수"""
    if not current_user.is_admin:
        raise PermissionDeniedError("관리자 권한이 필요합니다")
    return current_user
