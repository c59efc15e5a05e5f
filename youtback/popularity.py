# ------------------------------------------------------------
# popularity.py — 기간 내 좋아요 수 기준 인기 영상 조회
# ------------------------------------------------------------
# 세 가지 조회 형태를 제공합니다. 모두 같은 규칙을 따릅니다.
#   - since 이후의 좋아요 수 내림차순 (좋아요가 없는 영상도 0으로 포함)
#   - 동률이면 조회수 내림차순, 그다음 id 오름차순
#   - excludes에 포함된 id는 제외
#   - 최대 size개의 video id 반환

from datetime import datetime
from typing import Collection, List

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from .models import Like, Video


class PopularityIndex:
    def __init__(self, db: Session):
        self.db = db

    def _ranked(self, since: datetime, excludes: Collection[int]):
        like_count = func.count(Like.user_id)
        q = (
            self.db.query(Video.id)
            .outerjoin(Like, and_(Like.video_id == Video.id, Like.timestamp >= since))
            .group_by(Video.id, Video.views)
            .order_by(like_count.desc(), Video.views.desc(), Video.id.asc())
        )
        if excludes:
            q = q.filter(Video.id.notin_(list(excludes)))
        return q

    def top_by_category_and_language(
        self,
        categories: Collection[str],
        languages: Collection[str],
        since: datetime,
        excludes: Collection[int],
        size: int,
    ) -> List[int]:
        """
        주어진 카테고리 또는 언어 중 하나라도 일치하는 영상 중에서 인기순으로 조회합니다.
        (사용자의 선호 카테고리/언어 키를 넘겨 받음) 점수 크기로 가중치를 두지 않습니다.
        """
        if size <= 0 or not (categories or languages):
            return []

        q = self._ranked(since, excludes).filter(
            or_(Video.category.in_(list(categories)), Video.language.in_(list(languages)))
        )
        return [row.id for row in q.limit(size).all()]

    def top_by_language(
        self, since: datetime, language: str, excludes: Collection[int], size: int
    ) -> List[int]:
        if size <= 0:
            return []
        q = self._ranked(since, excludes).filter(Video.language == language)
        return [row.id for row in q.limit(size).all()]

    def top_overall(self, since: datetime, excludes: Collection[int], size: int) -> List[int]:
        if size <= 0:
            return []
        return [row.id for row in self._ranked(since, excludes).limit(size).all()]
