from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from . import config
from .affinity import AffinityStore
from .errors import NotFoundError
from .models import User, utcnow
from .popularity import PopularityIndex

logger = logging.getLogger(__name__)


class RecommendationService:
    """
    인기 영상 기반 추천 목록 조립기.

    세 단계(tier)를 순서대로 실행하며, 각 단계는 남은 개수만큼만 채웁니다.
      1) 개인화: 사용자의 선호 카테고리/언어와 일치하는 인기 영상 (user_id가 있을 때만)
      2) 언어: 요청 언어를 우선순위 순서대로 하나씩 조회
      3) 일반 인기: 언어/카테고리 조건 없이 인기 영상

    단계마다 "원래 excludes + 이미 고른 영상"을 제외 집합으로 넘기므로
    결과에는 중복이 없고 excludes에 든 영상도 들어가지 않습니다.
    """

    def __init__(
        self,
        db: Session,
        popularity_index: PopularityIndex,
        affinity: Optional[AffinityStore] = None,
        *,
        popularity_days: int = config.POPULARITY_DAYS,
        max_videos_per_request: int = config.MAX_VIDEOS_PER_REQUEST,
        rng: Optional[random.Random] = None,
    ):
        self.db = db
        self.index = popularity_index
        self.affinity = affinity or AffinityStore(db)
        self.popularity_days = popularity_days
        self.max_videos_per_request = max_videos_per_request
        self.rng = rng or random.Random()

    def get_recommendations(
        self,
        user_id: Optional[str],
        excludes: Optional[Iterable[int]],
        languages: Sequence[str],
        size: int,
    ) -> List[int]:
        # 요청 개수는 MAX_VIDEOS_PER_REQUEST를 넘지 않음
        recs_size = min(size, self.max_videos_per_request)

        # user_id가 주어졌는데 존재하지 않으면 부분 결과 없이 실패
        if user_id is not None and self.db.get(User, user_id) is None:
            raise NotFoundError(f"User with specified id [{user_id}] was not found")

        if recs_size <= 0:
            return []

        excluded: Set[int] = set(excludes or ())
        since = utcnow() - timedelta(days=self.popularity_days)
        videos: List[int] = []

        # 1) 개인화 단계: 선호 카테고리/언어가 하나도 없으면 조회하지 않음
        if user_id is not None:
            affinity = self.affinity.get(user_id)
            if affinity.category_scores or affinity.language_scores:
                videos.extend(
                    self.index.top_by_category_and_language(
                        set(affinity.category_scores),
                        set(affinity.language_scores),
                        since,
                        excluded,
                        recs_size,
                    )
                )
            logger.debug("personalized tier for user %s: %d videos", user_id, len(videos))

        # 2) 언어 단계
        if len(videos) < recs_size:
            videos.extend(
                self._by_languages(since, excluded | set(videos), languages, recs_size - len(videos))
            )

        # 3) 일반 인기 단계
        if len(videos) < recs_size:
            logger.warning(
                "Recommendation not found with user and browser languages for user: %s", user_id
            )
            videos.extend(
                self.index.top_overall(since, excluded | set(videos), recs_size - len(videos))
            )

        self.rng.shuffle(videos)
        return videos[:recs_size]

    def _by_languages(
        self, since, excluded: Set[int], languages: Sequence[str], size: int
    ) -> List[int]:
        # 언어 우선순위대로 조회, size를 채우면 중단
        result: List[int] = []
        for language in languages:
            result.extend(
                self.index.top_by_language(since, language, excluded | set(result), size - len(result))
            )
            if len(result) >= size:
                break
        logger.debug("language tier %s: %d videos", list(languages), len(result))
        return result
