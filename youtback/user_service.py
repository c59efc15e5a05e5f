# ------------------------------------------------------------
# user_service.py — 사용자, 좋아요, 관심 없음, 구독, 검색/시청 기록
# ------------------------------------------------------------

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from . import config
from .affinity import AffinityStore
from .db import unit_of_work
from .errors import AlreadyExistsError, IllegalArgumentError, NotFoundError
from .models import (
    Like,
    SearchHistory,
    Subscription,
    User,
    Video,
    WatchHistory,
    utcnow,
)
from .options import pair_options, parse_range
from .schemas import UserCreate, UserUpdate
from .sort import VideoSort, sort_videos
from .video_service import video_folder

logger = logging.getLogger(__name__)

# 좋아요 토글 최대 시도 횟수 (첫 시도 + 재시도 1회)
LIKE_ATTEMPTS = 2


class UserService:
    def __init__(self, db: Session, *, affinity: AffinityStore, media_store=None):
        self.db = db
        self.affinity = affinity
        self.media = media_store

    def _user(self, user_id: str, message: str = "User not found") -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(message)
        return user

    def _video(self, video_id: int) -> Video:
        video = self.db.get(Video, video_id)
        if video is None:
            raise NotFoundError("Video not found")
        return video

    # ---------- 조회 ----------
    def find_all(self) -> List[User]:
        users = self.db.query(User).order_by(User.created_at, User.id).all()
        if not users:
            raise NotFoundError("No users was found")
        return users

    def find_by_id(self, user_id: str) -> User:
        return self._user(user_id)

    def find_by_option(self, options: Sequence[str], values: Sequence[str]) -> List[User]:
        """
        - BY_ID / BY_USERNAME(부분 일치) / BY_EMAIL(부분 일치)
        - BY_SUBSCRIBERS: 구독자 수 범위 "from/to"
        """
        q = self.db.query(User)
        for option, value in pair_options(options, values):
            if option == "BY_ID":
                q = q.filter(User.id == value)
            elif option == "BY_USERNAME":
                q = q.filter(User.username.like(f"%{value}%"))
            elif option == "BY_EMAIL":
                q = q.filter(User.email.like(f"%{value}%"))
            elif option == "BY_SUBSCRIBERS":
                low, high = parse_range(option, value)
                subscribers = (
                    select(func.count(Subscription.subscriber_id))
                    .where(Subscription.subscribed_id == User.id)
                    .scalar_subquery()
                )
                q = q.filter(subscribers.between(low, high))
            else:
                raise IllegalArgumentError(f"Unknown option [{option}]")
        return q.order_by(User.id).all()

    def get_all_user_videos(self, user_id: str, video_sort: Optional[VideoSort] = None) -> List[Video]:
        self._user(user_id)
        videos = self.db.query(Video).filter(Video.owner_id == user_id).order_by(Video.upload_date).all()
        return sort_videos(videos, video_sort)

    # ---------- 등록/수정/삭제 ----------
    def register_user(self, data: UserCreate) -> User:
        with unit_of_work(self.db):
            if self.db.get(User, data.id) is not None:
                raise AlreadyExistsError(f"User with this id [{data.id}] already exists")
            user = User(
                id=data.id,
                username=data.username,
                email=data.email,
                authorities=data.authorities or "ROLE_USER",
                picture=data.picture or config.DEFAULT_USER_PICTURE,
                created_at=utcnow(),
            )
            self.db.add(user)
        logger.info("User with id %s registered", data.id)
        return user

    def update(self, user_id: str, data: UserUpdate) -> User:
        with unit_of_work(self.db):
            user = self._user(user_id)
            if data.username is not None:
                user.username = data.username
            if data.email is not None:
                user.email = data.email
            if data.picture is not None:
                user.picture = data.picture
        return user

    def delete_by_id(self, user_id: str) -> None:
        """
        사용자와 관련된 모든 데이터(업로드 영상 포함)를 지우고,
        스토리지의 사용자 폴더와 영상 폴더도 삭제합니다.
        """
        with unit_of_work(self.db):
            self._user(user_id)
            video_ids = [row.id for row in self.db.query(Video.id).filter(Video.owner_id == user_id).all()]
            if video_ids:
                self.db.query(Like).filter(Like.video_id.in_(video_ids)).delete(synchronize_session=False)
                self.db.query(WatchHistory).filter(WatchHistory.video_id.in_(video_ids)).delete(synchronize_session=False)
                self.db.query(Video).filter(Video.id.in_(video_ids)).delete(synchronize_session=False)

            self.db.query(Like).filter(Like.user_id == user_id).delete(synchronize_session=False)
            self.db.query(WatchHistory).filter(WatchHistory.user_id == user_id).delete(synchronize_session=False)
            self.db.query(SearchHistory).filter(SearchHistory.user_id == user_id).delete(synchronize_session=False)
            self.db.query(Subscription).filter(
                (Subscription.subscriber_id == user_id) | (Subscription.subscribed_id == user_id)
            ).delete(synchronize_session=False)
            self.affinity.delete_all(user_id)
            self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)

            self.media.remove_folder(f"{config.USER_PATH}{user_id}/")
            for video_id in video_ids:
                self.media.remove_folder(video_folder(video_id))
        logger.info("User with id %s successfully deleted", user_id)

    # ---------- 좋아요 ----------
    def like_video(self, user_id: str, video_id: int) -> Tuple[Video, bool]:
        """
        좋아요 토글. 없으면 추가, 있으면 삭제합니다.
        반환: (영상, 현재 좋아요 상태)

        같은 (user_id, video_id)에 대한 요청이 동시에 들어와 PK 충돌/잠금 오류가 나면
        트랜잭션을 롤백하고 최신 상태를 다시 읽어 한 번 더 시도합니다.
        """
        for attempt in range(LIKE_ATTEMPTS):
            try:
                return self._toggle_like(user_id, video_id)
            except (IntegrityError, OperationalError):
                if attempt == LIKE_ATTEMPTS - 1:
                    raise
                logger.warning("Concurrent like update for user %s video %s, retrying", user_id, video_id)

    def _toggle_like(self, user_id: str, video_id: int) -> Tuple[Video, bool]:
        with unit_of_work(self.db):
            self._user(user_id)
            video = self._video(video_id)
            like = self.db.get(Like, (user_id, video_id), with_for_update=True)
            if like is None:
                self.db.add(Like(user_id=user_id, video_id=video_id, timestamp=utcnow()))
                liked = True
            else:
                self.db.delete(like)
                liked = False
        return video, liked

    def dislike_video(self, user_id: str, video_id: int) -> None:
        # 좋아요가 있으면 제거, 없으면 아무것도 하지 않음
        with unit_of_work(self.db):
            self._user(user_id)
            self._video(video_id)
            like = self.db.get(Like, (user_id, video_id), with_for_update=True)
            if like is not None:
                self.db.delete(like)

    def has_user_liked_video(self, user_id: str, video_id: int) -> bool:
        self._user(user_id)
        self._video(video_id)
        return self.db.get(Like, (user_id, video_id)) is not None

    def get_user_likes(self, user_id: str) -> List[Video]:
        self._user(user_id, f"User with id {user_id} was not found")
        return (
            self.db.query(Video)
            .join(Like, Like.video_id == Video.id)
            .filter(Like.user_id == user_id)
            .order_by(Like.timestamp.desc())
            .all()
        )

    # ---------- 관심 없음 ----------
    def not_interested(self, video_id: int, user_id: str) -> None:
        """
        영상 카테고리의 선호 점수를 floor(score * 0.25)로 줄입니다.
        0이 되면 카테고리 자체를 삭제하고, 카테고리 점수가 없으면 아무것도 하지 않습니다.
        """
        with unit_of_work(self.db):
            video = self._video(video_id)
            self._user(user_id)
            self.affinity.decay_category(user_id, video.category, config.NOT_INTERESTED_FACTOR)

    # ---------- 시청 기록 ----------
    def get_watch_history(self, user_id: str) -> List[Video]:
        # 최신순, 삭제된 영상은 건너뜀
        self._user(user_id, f"User not found, id: {user_id}")
        return (
            self.db.query(Video)
            .join(WatchHistory, WatchHistory.video_id == Video.id)
            .filter(WatchHistory.user_id == user_id)
            .order_by(WatchHistory.timestamp.desc(), WatchHistory.id.desc())
            .all()
        )

    # ---------- 구독 ----------
    def subscribe(self, user_id: str, channel_id: str) -> None:
        with unit_of_work(self.db):
            self._user(user_id)
            self._user(channel_id, "Subscribed channel not found")
            if self.db.get(Subscription, (user_id, channel_id)) is None:
                self.db.add(Subscription(subscriber_id=user_id, subscribed_id=channel_id, created_at=utcnow()))

    def unsubscribe(self, user_id: str, channel_id: str) -> None:
        with unit_of_work(self.db):
            self._user(user_id)
            (
                self.db.query(Subscription)
                .filter(Subscription.subscriber_id == user_id, Subscription.subscribed_id == channel_id)
                .delete(synchronize_session=False)
            )

    def has_user_subscribed_channel(self, user_id: str, channel_id: str) -> bool:
        self._user(user_id)
        return self.db.get(Subscription, (user_id, channel_id)) is not None

    def get_user_subscribes(self, user_id: str) -> List[User]:
        self._user(user_id, f"User with id {user_id} was not found")
        return (
            self.db.query(User)
            .join(Subscription, Subscription.subscribed_id == User.id)
            .filter(Subscription.subscriber_id == user_id)
            .order_by(Subscription.created_at, User.id)
            .all()
        )

    # ---------- 검색 기록 ----------
    def add_search_option(self, user_id: str, search_option: str) -> None:
        """
        같은 검색어가 있으면 날짜만 갱신합니다.
        없으면 MAX_SEARCH_HISTORY_OPTIONS개를 넘지 않도록 오래된 것부터 지우고 추가합니다.
        """
        with unit_of_work(self.db):
            self._user(user_id)
            existing = (
                self.db.query(SearchHistory)
                .filter(SearchHistory.user_id == user_id, SearchHistory.search_option == search_option)
                .first()
            )
            if existing is not None:
                existing.date_added = utcnow()
                return

            history = (
                self.db.query(SearchHistory)
                .filter(SearchHistory.user_id == user_id)
                .order_by(SearchHistory.date_added.desc(), SearchHistory.id.desc())
                .all()
            )
            for old in history[config.MAX_SEARCH_HISTORY_OPTIONS - 1:]:
                self.db.delete(old)
            self.db.add(SearchHistory(user_id=user_id, search_option=search_option, date_added=utcnow()))

    def get_search_history(self, user_id: str) -> List[SearchHistory]:
        self._user(user_id)
        return (
            self.db.query(SearchHistory)
            .filter(SearchHistory.user_id == user_id)
            .order_by(SearchHistory.date_added.desc(), SearchHistory.id.desc())
            .all()
        )

    def delete_search_option(self, user_id: str, search_option: str) -> None:
        with unit_of_work(self.db):
            self._user(user_id)
            entry = (
                self.db.query(SearchHistory)
                .filter(SearchHistory.user_id == user_id, SearchHistory.search_option == search_option)
                .first()
            )
            if entry is None:
                raise NotFoundError("Search option not found")
            self.db.delete(entry)
