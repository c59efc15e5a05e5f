# ------------------------------------------------------------
# sort.py — 영상 목록 정렬 옵션
# ------------------------------------------------------------

from enum import Enum
from typing import List, Optional

from .models import Video


class VideoSort(str, Enum):
    BY_VIEWS_FROM_DESC = "BY_VIEWS_FROM_DESC"
    BY_VIEWS_FROM_ASC = "BY_VIEWS_FROM_ASC"
    BY_UPLOAD_DATE_FROM_OLDEST = "BY_UPLOAD_DATE_FROM_OLDEST"
    BY_UPLOAD_DATE_FROM_NEWEST = "BY_UPLOAD_DATE_FROM_NEWEST"
    BY_DURATION_FROM_DESC = "BY_DURATION_FROM_DESC"
    BY_DURATION_FROM_ASC = "BY_DURATION_FROM_ASC"

    @classmethod
    def convert(cls, value: int) -> Optional["VideoSort"]:
        # 1~6 정수 코드 → 정렬 옵션 (그 외는 None = 정렬 안 함)
        codes = {
            1: cls.BY_VIEWS_FROM_DESC,
            2: cls.BY_VIEWS_FROM_ASC,
            3: cls.BY_UPLOAD_DATE_FROM_OLDEST,
            4: cls.BY_UPLOAD_DATE_FROM_NEWEST,
            5: cls.BY_DURATION_FROM_DESC,
            6: cls.BY_DURATION_FROM_ASC,
        }
        return codes.get(value)


def sort_videos(videos: List[Video], video_sort: Optional[VideoSort]) -> List[Video]:
    if video_sort is None:
        return list(videos)
    if video_sort is VideoSort.BY_VIEWS_FROM_DESC:
        return sorted(videos, key=lambda v: v.views, reverse=True)
    if video_sort is VideoSort.BY_VIEWS_FROM_ASC:
        return sorted(videos, key=lambda v: v.views)
    if video_sort is VideoSort.BY_UPLOAD_DATE_FROM_OLDEST:
        return sorted(videos, key=lambda v: v.upload_date)
    if video_sort is VideoSort.BY_UPLOAD_DATE_FROM_NEWEST:
        return sorted(videos, key=lambda v: v.upload_date, reverse=True)
    if video_sort is VideoSort.BY_DURATION_FROM_DESC:
        return sorted(videos, key=lambda v: v.duration, reverse=True)
    return sorted(videos, key=lambda v: v.duration)
