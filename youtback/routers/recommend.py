# --------------------------------------------------------------
# recommend.py — 추천 영상 목록 엔드포인트
# --------------------------------------------------------------

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query

from .. import config
from ..deps import get_current_user_id, get_video_service
from ..schemas import VideoOut
from ..sort import VideoSort
from ..video_service import VideoService, to_video_out

router = APIRouter(prefix="/api", tags=["recommend"])


def parse_languages(languages: Optional[str], accept_language: Optional[str]) -> List[str]:
    """
    추천 언어 목록(우선순위 순, 소문자).
    - ?languages=ru,EN 이 있으면 그 순서대로 사용
    - 없으면 Accept-Language 헤더("ru-RU,ru;q=0.9,en;q=0.8")에서 q값 순으로 언어 코드 추출
      (q=0은 "허용하지 않음"이므로 제외)
    """
    if languages:
        raw = [part.strip().lower() for part in languages.split(",")]
        return list(dict.fromkeys(lang for lang in raw if lang))

    weighted = []
    for i, part in enumerate((accept_language or "").split(",")):
        tag, _, params = part.strip().partition(";")
        code = tag.split("-")[0].strip().lower()
        if not code or code == "*":
            continue
        q = 1.0
        if params.strip().startswith("q="):
            try:
                q = float(params.strip()[2:])
            except ValueError:
                q = 0.0
        if q <= 0:
            continue
        weighted.append((-q, i, code))
    return list(dict.fromkeys(code for _, _, code in sorted(weighted)))


@router.get("/recommend", response_model=List[VideoOut])
def recommend(
    languages: Optional[str] = None,
    size: int = Query(config.DEFAULT_RECS_SIZE, ge=1),
    exclude: List[int] = Query(default=[]),
    sort: Optional[int] = None,                      # VideoSort 코드(1~6)
    user_id: Optional[str] = Depends(get_current_user_id),
    accept_language: Optional[str] = Header(default=None),
    service: VideoService = Depends(get_video_service),
):
    """
    개인화 → 언어 → 일반 인기 순으로 채운 추천 영상 목록.
    - size는 MAX_VIDEOS_PER_REQUEST로 제한
    - exclude에 있는 영상은 결과에 포함되지 않음
    - 존재하지 않는 사용자 id(X-User-Id)면 404, 언어가 하나도 없으면 400
    - 추천할 영상이 부족하면 모자란 대로(빈 목록일 수도 있음) 반환
    """
    videos = service.recommendations(
        user_id,
        parse_languages(languages, accept_language),
        size,
        excludes=exclude,
        video_sort=VideoSort.convert(sort) if sort is not None else None,
    )
    return to_video_out(service.db, videos)
