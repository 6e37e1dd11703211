from fastapi import APIRouter, Depends, HTTPException, Query, status, Response
from sqlalchemy.orm import Session
from datetime import timedelta

from station_monitor.db.session import get_db
from station_monitor.core.config import settings
from station_monitor.core.logger import logger, log_request, log_success, log_error
from station_monitor.core.security import (
    MemberContext,
    authenticate_member,
    create_access_token,
    get_current_member,
    get_current_member_no_csrf,
    get_password_hash,
    verify_password,
    generate_csrf_token
)
from station_monitor.schemas.member import (
    MemberRegister,
    MemberLogin,
    MemberResponse,
    CheckIdResponse,
    SessionInfo,
    MemberProfileUpdate,
    PasswordChange
)
from station_monitor.db import crud

router = APIRouter(prefix="/members", tags=["Members"])


def _id_taken(db: Session, member_id: str) -> bool:
    return member_id == settings.ADMIN_USERNAME or crud.get_member_by_member_id(db, member_id) is not None


# ============ Registration ============

@router.get("/check-id", response_model=CheckIdResponse)
async def check_member_id(
    member_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db)
):
    """Check whether a login id is still available."""
    member_id = member_id.strip()
    if _id_taken(db, member_id):
        return CheckIdResponse(result=False, errorMsg="이미 사용 중인 아이디입니다.")
    return CheckIdResponse(result=True)


@router.post("/register", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def register_member(data: MemberRegister, db: Session = Depends(get_db)):
    """
    Self-service sign-up.
    New accounts get the `member` role.
    """
    log_request("/members/register", "POST", data.member_id)

    if _id_taken(db, data.member_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Member id '{data.member_id}' already exists"
        )

    member = crud.create_member(db, data, hashed_password=get_password_hash(data.password))
    log_success("/members/register", f"Member '{member.member_id}' registered", member.member_id)
    return member


# ============ Authentication ============

@router.post("/login")
async def member_login(credentials: MemberLogin, response: Response, db: Session = Depends(get_db)):
    """
    Member login endpoint.
    Sets HTTP-only cookie with JWT token and returns CSRF token.
    """
    try:
        log_request("/members/login", "POST", credentials.member_id)

        if not credentials.member_id or not credentials.password:
            logger.warning("Login attempt with empty credentials")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Member id and password are required"
            )

        member = authenticate_member(db, credentials.member_id, credentials.password)
        if not member:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid member id or password. Please check your credentials and try again.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        csrf_token = generate_csrf_token()
        access_token = create_access_token(
            data={"sub": member.member_id, "name": member.name, "role": member.role},
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            csrf_token=csrf_token
        )

        response.set_cookie(
            key="access_token",
            value=access_token,
            httponly=True,
            secure=not settings.DEBUG,
            samesite="lax",
            max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            path="/"
        )

        log_success("/members/login", f"Member '{member.member_id}' logged in as {member.role}", member.member_id)

        return {
            "message": "Login successful",
            "csrf_token": csrf_token,
            "access_token": access_token,
            "token_type": "bearer",
            "member_id": member.member_id,
            "name": member.name,
            "role": member.role
        }

    except HTTPException:
        raise
    except Exception as e:
        log_error("/members/login", e, credentials.member_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred during login. Please try again later."
        )


@router.post("/logout")
async def member_logout(response: Response, current: MemberContext = Depends(get_current_member_no_csrf)):
    """
    Clears the HTTP-only cookie.
    CSRF validation is disabled for logout.
    """
    log_request("/members/logout", "POST", current.member_id)
    response.delete_cookie(
        key="access_token",
        path="/",
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax"
    )
    log_success("/members/logout", f"Member '{current.member_id}' logged out", current.member_id)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=SessionInfo)
async def get_me(current: MemberContext = Depends(get_current_member_no_csrf)):
    """Identity of the signed-in member."""
    return SessionInfo(member_id=current.member_id, name=current.name, role=current.role)


# ============ Profile ============

def _own_member(db: Session, current: MemberContext):
    """The caller's member row; the bootstrap admin has none"""
    member = crud.get_member_by_member_id(db, current.member_id)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member profile not found"
        )
    return member


@router.put("/me", response_model=MemberResponse)
async def update_my_profile(
    data: MemberProfileUpdate,
    current: MemberContext = Depends(get_current_member),
    db: Session = Depends(get_db)
):
    """
    Edit name, email, phone, team and department.
    A changed name shows up in the token after the next login.
    """
    log_request("/members/me", "PUT", current.member_id)
    member = crud.update_member_profile(db, _own_member(db, current), data)
    log_success("/members/me", "Profile updated", current.member_id)
    return member


@router.put("/me/password")
async def change_my_password(
    data: PasswordChange,
    current: MemberContext = Depends(get_current_member),
    db: Session = Depends(get_db)
):
    """Change the password after checking the current one."""
    log_request("/members/me/password", "PUT", current.member_id)
    member = _own_member(db, current)

    if data.new_password != data.confirm_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="새 비밀번호가 일치하지 않습니다."
        )
    if not verify_password(data.current_password, member.hashed_password):
        logger.warning(f"Password change rejected for member '{current.member_id}': wrong current password")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="현재 비밀번호가 올바르지 않습니다."
        )

    crud.update_member_password(db, member, get_password_hash(data.new_password))
    log_success("/members/me/password", "Password changed", current.member_id)
    return {"message": "비밀번호가 변경되었습니다."}
