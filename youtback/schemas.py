from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ------------------------------------------------------------
# VideoOut: 클라이언트로 내보낼 "영상" 데이터의 응답 스키마
# ------------------------------------------------------------
class VideoOut(BaseModel):
    id: int
    owner_id: str
    title: str
    description: Optional[str] = None
    category: str
    language: str
    duration: int = 0              # 초 단위
    views: int = 0
    likes: int = 0                 # 전체 좋아요 수 (집계값)
    upload_date: datetime

    class Config:
        # ORM 객체(예: SQLAlchemy 모델)로부터 필드 맵핑 허용
        from_attributes = True


# ------------------------------------------------------------
# VideoCreate / VideoUpdate: 업로드/수정 시 메타데이터
# (파일 자체는 multipart UploadFile로 따로 받음)
# ------------------------------------------------------------
class VideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    language: Optional[str] = None   # 없으면 DEFAULT_LANGUAGE
    duration: int = Field(0, ge=0)


class VideoUpdate(BaseModel):
    # None인 필드는 변경하지 않음
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)


# ------------------------------------------------------------
# 사용자
# ------------------------------------------------------------
class UserOut(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    picture: Optional[str] = None
    authorities: str

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    username: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = None
    authorities: Optional[str] = None  # 없으면 ROLE_USER
    picture: Optional[str] = None      # 없으면 DEFAULT_USER_PICTURE


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    picture: Optional[str] = None


# ------------------------------------------------------------
# 좋아요 / 구독 여부 응답
# ------------------------------------------------------------
class LikeOut(BaseModel):
    liked: bool
    video: VideoOut


class FlagOut(BaseModel):
    value: bool


class SearchHistoryOut(BaseModel):
    search_option: str
    date_added: datetime

    class Config:
        from_attributes = True
