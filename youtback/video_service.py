# ------------------------------------------------------------
# video_service.py — 영상 조회/시청/업로드/수정/삭제 및 추천 목록
# ------------------------------------------------------------

import logging
from datetime import timedelta
from typing import BinaryIO, Iterable, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import config
from .affinity import AffinityStore
from .db import unit_of_work
from .errors import IllegalArgumentError, NotFoundError
from .language import detect_language
from .models import Like, User, Video, WatchHistory, utcnow
from .options import pair_options, parse_range
from .recommender import RecommendationService
from .schemas import VideoCreate, VideoOut, VideoUpdate
from .sort import VideoSort, sort_videos

logger = logging.getLogger(__name__)


def video_folder(video_id: int) -> str:
    # 끝의 "/"까지 포함해야 videos/1/ 이 videos/10/ 과 섞이지 않음
    return f"{config.VIDEO_PATH}{video_id}/"


def to_video_out(db: Session, videos: Sequence[Video]) -> List[VideoOut]:
    """
    Video ORM 객체 목록을 응답 스키마로 변환합니다.
    좋아요 수는 한 번의 GROUP BY 쿼리로 모아서 채웁니다.
    """
    ids = [v.id for v in videos]
    counts = {}
    if ids:
        counts = dict(
            db.query(Like.video_id, func.count(Like.user_id))
            .filter(Like.video_id.in_(ids))
            .group_by(Like.video_id)
            .all()
        )
    return [
        VideoOut(
            id=v.id,
            owner_id=v.owner_id,
            title=v.title,
            description=v.description,
            category=v.category,
            language=v.language,
            duration=v.duration or 0,
            views=v.views or 0,
            likes=counts.get(v.id, 0),
            upload_date=v.upload_date,
        )
        for v in videos
    ]


class VideoService:
    def __init__(
        self,
        db: Session,
        *,
        affinity: AffinityStore,
        recommender: Optional[RecommendationService] = None,
        media_store=None,
        processing=None,
    ):
        self.db = db
        self.affinity = affinity
        self.recommender = recommender
        self.media = media_store
        self.processing = processing

    # ---------- 조회 ----------
    def find_by_id(self, video_id: int) -> Video:
        video = self.db.get(Video, video_id)
        if video is None:
            raise NotFoundError("Video not found")
        return video

    def find_by_option(self, options: Sequence[str], values: Sequence[str]) -> List[Video]:
        """
        여러 옵션을 AND 조건으로 결합해 영상을 찾습니다.
        - BY_TITLE: 제목 부분 일치
        - BY_ID: id 일치
        - BY_VIEWS: 조회수 범위 "from/to"
        - BY_LIKES: 전체 좋아요 수 범위 "from/to"
        """
        q = self.db.query(Video)
        for option, value in pair_options(options, values):
            if option == "BY_TITLE":
                q = q.filter(Video.title.like(f"%{value}%"))
            elif option == "BY_ID":
                try:
                    q = q.filter(Video.id == int(value))
                except ValueError:
                    raise IllegalArgumentError(f"Illegal arguments option: [{option}] value [{value}]")
            elif option == "BY_VIEWS":
                low, high = parse_range(option, value)
                q = q.filter(Video.views.between(low, high))
            elif option == "BY_LIKES":
                low, high = parse_range(option, value)
                likes = (
                    select(func.count(Like.user_id))
                    .where(Like.video_id == Video.id)
                    .scalar_subquery()
                )
                q = q.filter(likes.between(low, high))
            else:
                raise IllegalArgumentError(f"Unknown option [{option}]")
        return q.order_by(Video.id).all()

    def recommendations(
        self,
        user_id: Optional[str],
        languages: Sequence[str],
        size: int,
        excludes: Optional[Iterable[int]] = None,
        video_sort: Optional[VideoSort] = None,
    ) -> List[Video]:
        if not languages:
            raise IllegalArgumentError("Should be at least one language")

        ids = self.recommender.get_recommendations(user_id, excludes, languages, size)
        if not ids:
            return []
        by_id = {v.id: v for v in self.db.query(Video).filter(Video.id.in_(ids)).all()}
        videos = [by_id[i] for i in ids if i in by_id]
        return sort_videos(videos, video_sort)

    # ---------- 시청 ----------
    def watch_by_id(self, video_id: int, user_id: Optional[str] = None) -> Video:
        """
        영상 조회수를 1 올리고, 사용자가 있으면 선호도와 시청 기록을 갱신합니다.

        - 조회수는 익명 시청(user_id=None)이나 존재하지 않는 사용자여도 항상 +1
        - 사용자가 존재하면 영상의 카테고리/언어 점수 +1
        - 시청 기록: 24시간 안에 같은 영상 기록이 있으면 지우고 새로 추가
        영상 행을 잠근 상태에서 하나의 트랜잭션으로 실행됩니다.
        """
        with unit_of_work(self.db):
            video = self.db.get(Video, video_id, with_for_update=True)
            if video is None:
                raise NotFoundError("Video not found")
            video.views = (video.views or 0) + 1

            if user_id is not None and self.db.get(User, user_id) is not None:
                self.affinity.increment(user_id, video.category, video.language)
                self._refresh_watch_history(user_id, video_id)
        return video

    def _refresh_watch_history(self, user_id: str, video_id: int) -> None:
        now = utcnow()
        window_start = now - timedelta(hours=config.WATCH_HISTORY_DEDUP_HOURS)
        recent = (
            self.db.query(WatchHistory)
            .filter(
                WatchHistory.user_id == user_id,
                WatchHistory.video_id == video_id,
                WatchHistory.timestamp > window_start,
            )
            .all()
        )
        for entry in recent:
            self.db.delete(entry)
        self.db.add(WatchHistory(user_id=user_id, video_id=video_id, timestamp=now))

    # ---------- 스트리밍 ----------
    def m3u8_index(self, video_id: int) -> BinaryIO:
        return self.media.get(video_folder(video_id) + config.INDEX_FILENAME)

    def segment(self, video_id: int, filename: str) -> BinaryIO:
        if "/" in filename or ".." in filename:
            raise IllegalArgumentError(f"Illegal filename [{filename}]")
        return self.media.get(video_folder(video_id) + filename)

    # ---------- 생성/수정/삭제 ----------
    def create(self, owner_id: str, data: VideoCreate, thumbnail: BinaryIO, video: BinaryIO) -> Video:
        """
        영상 행을 만들고 썸네일/영상을 스토리지에 올린 뒤, 두 파일의 처리 완료 응답을 기다립니다.
        처리 실패/시간 초과/업로드 실패 시 업로드한 파일을 지우고 행은 롤백합니다.
        """
        if self.db.get(User, owner_id) is None:
            raise NotFoundError("User not found")

        # 언어를 지정하지 않으면 제목으로 감지
        language = data.language.lower() if data.language else detect_language(data.title)

        folder = None
        try:
            with unit_of_work(self.db):
                entity = Video(
                    owner_id=owner_id,
                    title=data.title,
                    description=data.description,
                    category=data.category,
                    language=language,
                    duration=data.duration,
                    views=0,
                    upload_date=utcnow(),
                )
                self.db.add(entity)
                self.db.flush()  # id 발급

                folder = video_folder(entity.id)
                thumbnail_path = folder + config.THUMBNAIL_FILENAME
                self.media.put(thumbnail, thumbnail_path)
                thumbnail_reply = self.processing.submit(config.THUMBNAIL_INPUT_QUEUE, thumbnail_path)

                video_path = folder + config.VIDEO_FILENAME
                self.media.put(video, video_path)
                video_reply = self.processing.submit(config.VIDEO_INPUT_QUEUE, video_path)

                self.processing.await_reply(thumbnail_reply)
                self.processing.await_reply(video_reply)
        except Exception:
            logger.exception("Could not create video uploaded from client")
            if folder is not None:
                # 정리 중 오류가 나도 원래 예외를 그대로 올림
                try:
                    self.media.remove_folder(folder)
                except Exception:
                    logger.exception("Could not remove media folder %s after failed upload", folder)
            raise

        self.processing.publish(config.VIDEO_CREATED_QUEUE, str(entity.id))
        logger.info("Video %s successfully created", entity.id)
        return entity

    def update(
        self,
        video_id: int,
        data: VideoUpdate,
        thumbnail: Optional[BinaryIO] = None,
        video: Optional[BinaryIO] = None,
    ) -> Video:
        # None인 항목은 그대로 둠
        with unit_of_work(self.db):
            entity = self.db.get(Video, video_id, with_for_update=True)
            if entity is None:
                raise NotFoundError("Video not found")

            if data.title is not None:
                entity.title = data.title
            if data.description is not None:
                entity.description = data.description
            if data.category is not None:
                entity.category = data.category

            folder = video_folder(video_id)
            if thumbnail is not None:
                path = folder + config.THUMBNAIL_FILENAME
                self.media.put(thumbnail, path)
                self.processing.process(config.THUMBNAIL_INPUT_QUEUE, path)
            if video is not None:
                # 썸네일을 제외한 기존 영상/세그먼트 삭제 후 새로 업로드
                for key in self.media.list_files(folder):
                    if config.THUMBNAIL_FILENAME not in key:
                        self.media.remove(key)
                path = folder + config.VIDEO_FILENAME
                self.media.put(video, path)
                self.processing.process(config.VIDEO_INPUT_QUEUE, path)
        return entity

    def delete_by_id(self, video_id: int) -> None:
        with unit_of_work(self.db):
            if self.db.get(Video, video_id) is None:
                raise NotFoundError("Video not found")
            self._delete_rows(video_id)
            self.media.remove_folder(video_folder(video_id))
        logger.info("Video with id %s was successfully deleted", video_id)

    def _delete_rows(self, video_id: int) -> None:
        self.db.query(Like).filter(Like.video_id == video_id).delete(synchronize_session=False)
        self.db.query(WatchHistory).filter(WatchHistory.video_id == video_id).delete(synchronize_session=False)
        self.db.query(Video).filter(Video.id == video_id).delete(synchronize_session=False)
