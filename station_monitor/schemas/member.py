from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime


# ============ Member Schemas ============

class MemberRegister(BaseModel):
    """Self-service sign-up request"""
    member_id: str = Field(..., min_length=3, max_length=50, description="Login id")
    password: str = Field(..., min_length=4, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    team: Optional[str] = None
    department: Optional[str] = None


class MemberLogin(BaseModel):
    """Member login request"""
    member_id: str
    password: str


class MemberResponse(BaseModel):
    """Member response schema (without password)"""
    id: int
    member_id: str
    email: Optional[str] = None
    name: str
    phone: Optional[str] = None
    team: Optional[str] = None
    department: Optional[str] = None
    role: str
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberUpdate(BaseModel):
    """Schema for admin updates to a member (role and status only)"""
    role: Optional[Literal["admin", "member"]] = None
    status: Optional[Literal["active", "suspended"]] = None


class MemberProfileUpdate(BaseModel):
    """Schema for a member editing their own profile"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    team: Optional[str] = None
    department: Optional[str] = None


class PasswordChange(BaseModel):
    """Password change request; the current password is verified first"""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=4, max_length=128)
    confirm_password: str


class CheckIdResponse(BaseModel):
    """Login id availability"""
    result: bool = Field(..., description="True if the id is free to register")
    errorMsg: Optional[str] = None


class SessionInfo(BaseModel):
    """Identity of the current caller"""
    member_id: str
    name: str
    role: str
