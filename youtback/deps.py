# ------------------------------------------------------------
# deps.py — 요청마다 서비스 객체를 조립하는 FastAPI 의존성
# ------------------------------------------------------------
# 외부 협력자(스토리지/처리 서비스)는 프로세스당 한 번만 만들고,
# DB 세션에 묶이는 서비스는 요청마다 새로 생성합니다.
# 테스트에서는 get_media_store / get_processing_client를 dependency_overrides로 교체합니다.

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .affinity import AffinityStore
from .image_service import ImageService
from .db import get_db
from .popularity import PopularityIndex
from .processing import RedisProcessingClient
from .recommender import RecommendationService
from .storage import S3MediaStore
from .user_service import UserService
from .video_service import VideoService


@lru_cache(maxsize=1)
def get_media_store():
    return S3MediaStore()


@lru_cache(maxsize=1)
def get_processing_client():
    return RedisProcessingClient()


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    # 인증은 앞단 게이트웨이의 몫. 여기서는 전달된 사용자 id만 읽음
    return x_user_id or None


def get_recommendation_service(db: Session = Depends(get_db)) -> RecommendationService:
    return RecommendationService(db, PopularityIndex(db), AffinityStore(db))


def get_video_service(
    db: Session = Depends(get_db),
    recommender: RecommendationService = Depends(get_recommendation_service),
    media_store=Depends(get_media_store),
    processing=Depends(get_processing_client),
) -> VideoService:
    return VideoService(
        db,
        affinity=AffinityStore(db),
        recommender=recommender,
        media_store=media_store,
        processing=processing,
    )


def get_user_service(
    db: Session = Depends(get_db),
    media_store=Depends(get_media_store),
) -> UserService:
    return UserService(db, affinity=AffinityStore(db), media_store=media_store)


def get_image_service(
    media_store=Depends(get_media_store),
    processing=Depends(get_processing_client),
) -> ImageService:
    return ImageService(media_store, processing)
