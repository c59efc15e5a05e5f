# ------------------------------------------------------------
# models.py — SQLAlchemy ORM 모델 정의
#   users / videos / likes / watch_history / 선호도 점수 / 구독 / 검색기록
# ------------------------------------------------------------
# 엔티티 사이의 양방향 relationship은 두지 않고, id 컬럼으로만 참조합니다.
# (조회는 서비스 레이어에서 id 기반으로 수행)

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from .db import Base


def utcnow() -> datetime:
    # DB에는 타임존 없는 UTC 시각으로 저장
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ------------------------------
# User: 사용자(채널) 테이블
# ------------------------------
class User(Base):
    __tablename__ = "users"

    # 외부 인증 서비스가 발급한 id를 그대로 PK로 사용
    id = Column(String(64), primary_key=True)
    username = Column(String(100), nullable=False)
    email = Column(String(255))
    picture = Column(String(500))
    authorities = Column(String(255), nullable=False, default="ROLE_USER")
    created_at = Column(DateTime, default=utcnow)


# ------------------------------
# Video: 영상 테이블
# ------------------------------
class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # 업로더 id. 생성 이후 변경하지 않음
    owner_id = Column(String(64), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), nullable=False, index=True)
    language = Column(String(16), nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=0)  # 초 단위
    views = Column(Integer, nullable=False, default=0)
    upload_date = Column(DateTime, nullable=False, default=utcnow)


# ------------------------------
# Like: 좋아요 (user_id, video_id) 당 1건
# ------------------------------
class Like(Base):
    __tablename__ = "likes"

    user_id = Column(String(64), primary_key=True)
    video_id = Column(Integer, primary_key=True)

    # 인기도 집계 기간(POPULARITY_DAYS) 필터에 사용
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (Index("ix_likes_video_timestamp", "video_id", "timestamp"),)


# ------------------------------
# WatchHistory: 시청 기록
# ------------------------------
class WatchHistory(Base):
    __tablename__ = "watch_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    video_id = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (Index("ix_watch_history_user_video", "user_id", "video_id"),)


# ------------------------------
# 선호도(Affinity) 점수: 카테고리/언어별 누적 시청 횟수
# - 행이 없으면 점수 0
# - 점수가 0이 되면 행 자체를 삭제
# ------------------------------
class CategoryScore(Base):
    __tablename__ = "user_category_scores"

    user_id = Column(String(64), primary_key=True)
    category = Column(String(100), primary_key=True)
    score = Column(Integer, nullable=False, default=0)


class LanguageScore(Base):
    __tablename__ = "user_language_scores"

    user_id = Column(String(64), primary_key=True)
    language = Column(String(16), primary_key=True)
    score = Column(Integer, nullable=False, default=0)


# ------------------------------
# Subscription: 구독 관계 (subscriber → subscribed)
# ------------------------------
class Subscription(Base):
    __tablename__ = "subscriptions"

    subscriber_id = Column(String(64), primary_key=True)
    subscribed_id = Column(String(64), primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow)


# ------------------------------
# SearchHistory: 검색 기록
# ------------------------------
class SearchHistory(Base):
    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    search_option = Column(String(255), nullable=False)
    date_added = Column(DateTime, nullable=False, default=utcnow)
