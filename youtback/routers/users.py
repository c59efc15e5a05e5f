# -----------------------------------------------------------
# users.py — 사용자, 좋아요, 구독, 시청/검색 기록 REST 엔드포인트
# -----------------------------------------------------------

from typing import List, Optional                      # 응답 타입: List[...] / 선택 파라미터

from fastapi import APIRouter, Depends, File, Query, UploadFile  # 라우팅 / 의존성 / 쿼리 / multipart

from ..deps import get_current_user_id, get_image_service, get_user_service  # 헤더 / 서비스 조립
from ..errors import NotFoundError                     # X-User-Id 없이 "내" 데이터 요청 시 404
from ..image_service import ImageService               # 프로필 사진 업로드
from ..schemas import (                                # Pydantic 스키마: 요청·응답 페이로드 구조
    FlagOut,
    LikeOut,
    SearchHistoryOut,
    UserCreate,
    UserOut,
    UserUpdate,
    VideoOut,
)
from ..sort import VideoSort                           # ?sort=1~6 → 정렬 기준
from ..user_service import UserService                 # 사용자 관련 로직
from ..video_service import to_video_out               # ORM → VideoOut(좋아요 수 포함)

# 이 모듈의 엔드포인트는 "/api/users"로 시작
# Swagger/OpenAPI 문서에서 "users" 그룹으로 묶음
router = APIRouter(prefix="/api/users", tags=["users"])


def require_user(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    # X-User-Id 없이 "내" 데이터를 다루는 요청은 404
    if user_id is None:
        raise NotFoundError("User not found")
    return user_id


# ---------- 사용자 ----------
@router.get("", response_model=List[UserOut])
def list_users(
    option: List[str] = Query(default=[]),              # 예) ?option=BY_SUBSCRIBERS
    value: List[str] = Query(default=[]),               #     &value=10/1000
    service: UserService = Depends(get_user_service),
):
    """
    전체 사용자 목록. option/value가 있으면 옵션 검색
    (BY_ID, BY_USERNAME, BY_EMAIL, BY_SUBSCRIBERS="from/to").
    - 사용자가 한 명도 없으면 404
    """
    if option or value:
        return service.find_by_option(option, value)
    return service.find_all()


@router.post("", response_model=UserOut, status_code=201)
def register_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    """
    사용자 등록. 이미 있는 id면 409.
    - authorities 기본값 ROLE_USER, picture 기본값 DEFAULT_USER_PICTURE

    요청 바디(JSON) 예:
    {
      "id": "u1",
      "username": "neo"
    }
    """
    return service.register_user(payload)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    """사용자 단건 조회 (없으면 404)"""
    return service.find_by_id(user_id)


@router.put("/me", response_model=UserOut)
def update_me(
    payload: UserUpdate,
    user_id: str = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """내 정보 수정. None인 필드는 그대로 둡니다."""
    return service.update(user_id, payload)


@router.put("/me/picture", response_model=UserOut)
def update_my_picture(
    image: UploadFile = File(...),
    user_id: str = Depends(require_user),
    images: ImageService = Depends(get_image_service),
    service: UserService = Depends(get_user_service),
):
    """
    프로필 사진을 업로드(처리 완료까지 대기)하고 내 picture를 새 경로로 바꿉니다.
    - 처리 실패/시간 초과면 502, picture는 바뀌지 않음
    """
    service.find_by_id(user_id)                         # 없는 사용자면 업로드 전에 404
    path = images.upload_user_picture(user_id, image.filename, image.file)
    return service.update(user_id, UserUpdate(picture=path))


@router.delete("/me", status_code=204)
def delete_me(user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """내 계정 삭제. 업로드한 영상, 좋아요, 기록, 스토리지 폴더까지 함께 지웁니다."""
    service.delete_by_id(user_id)


@router.get("/{user_id}/videos", response_model=List[VideoOut])
def user_videos(
    user_id: str,
    sort: Optional[int] = None,                         # VideoSort 코드(1~6), 없으면 업로드 순
    service: UserService = Depends(get_user_service),
):
    """사용자가 올린 영상 목록"""
    videos = service.get_all_user_videos(user_id, VideoSort.convert(sort) if sort is not None else None)
    return to_video_out(service.db, videos)


@router.get("/{user_id}/likes", response_model=List[VideoOut])
def user_likes(user_id: str, service: UserService = Depends(get_user_service)):
    """사용자가 좋아요한 영상 목록 (최근 좋아요 순)"""
    return to_video_out(service.db, service.get_user_likes(user_id))


@router.get("/{user_id}/subscribes", response_model=List[UserOut])
def user_subscribes(user_id: str, service: UserService = Depends(get_user_service)):
    """사용자가 구독한 채널(사용자) 목록"""
    return service.get_user_subscribes(user_id)


# ---------- "나"의 기록 ----------
@router.get("/me/watch-history", response_model=List[VideoOut])
def watch_history(user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """시청 기록 (최신순). 같은 영상은 24시간 안에 한 번만 남습니다."""
    return to_video_out(service.db, service.get_watch_history(user_id))


@router.get("/me/search-history", response_model=List[SearchHistoryOut])
def search_history(user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """검색 기록 (최신순, 최대 MAX_SEARCH_HISTORY_OPTIONS개)"""
    return service.get_search_history(user_id)


@router.post("/me/search-history", status_code=204)
def add_search_option(
    value: str,                                         # ?value=검색어
    user_id: str = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """검색어 추가. 이미 있으면 날짜만 갱신, 개수를 넘으면 오래된 것부터 삭제."""
    service.add_search_option(user_id, value)


@router.delete("/me/search-history", status_code=204)
def delete_search_option(
    value: str,
    user_id: str = Depends(require_user),
    service: UserService = Depends(get_user_service),
):
    """검색어 삭제. 없는 검색어면 404."""
    service.delete_search_option(user_id, value)


# ---------- 좋아요 / 관심 없음 ----------
@router.post("/me/likes/{video_id}", response_model=LikeOut)
def like_video(video_id: int, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """
    좋아요 토글: 없으면 추가, 있으면 취소.
    - 응답의 liked가 현재 상태, video.likes가 갱신된 전체 좋아요 수
    """
    video, liked = service.like_video(user_id, video_id)
    return {"liked": liked, "video": to_video_out(service.db, [video])[0]}


@router.get("/me/likes/{video_id}", response_model=FlagOut)
def has_liked(video_id: int, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """이 영상에 좋아요를 눌렀는지 여부"""
    return {"value": service.has_user_liked_video(user_id, video_id)}


@router.post("/me/dislikes/{video_id}", status_code=204)
def dislike_video(video_id: int, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """좋아요 취소. 좋아요가 없으면 아무것도 하지 않습니다."""
    service.dislike_video(user_id, video_id)


@router.post("/me/not-interested/{video_id}", status_code=204)
def not_interested(video_id: int, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """
    관심 없음: 이 영상 카테고리의 선호 점수를 1/4로 줄입니다(0이 되면 삭제).
    """
    service.not_interested(video_id, user_id)


# ---------- 구독 ----------
@router.post("/me/subscribes/{channel_id}", status_code=204)
def subscribe(channel_id: str, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """채널 구독. 이미 구독 중이면 그대로 둡니다. 없는 채널이면 404."""
    service.subscribe(user_id, channel_id)


@router.delete("/me/subscribes/{channel_id}", status_code=204)
def unsubscribe(channel_id: str, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """구독 취소"""
    service.unsubscribe(user_id, channel_id)


@router.get("/me/subscribes/{channel_id}", response_model=FlagOut)
def has_subscribed(channel_id: str, user_id: str = Depends(require_user), service: UserService = Depends(get_user_service)):
    """이 채널을 구독 중인지 여부"""
    return {"value": service.has_user_subscribed_channel(user_id, channel_id)}


# -----------------------------------------------------------
# [추가 설명 / 실전 팁]
# -----------------------------------------------------------
# 1) "나" 경로
#    - /me/... 엔드포인트는 X-User-Id 헤더의 사용자로 동작합니다. 헤더가 없으면 404.
#
# 2) 동시성
#    - 좋아요 토글은 PK 충돌 시 한 번 재시도하고, 그래도 충돌하면 409(code="conflict")입니다.
#
# 3) 성능
#    - list_users는 전체 목록을 노출하므로 실제 서비스에서는 페이지네이션을 권장합니다.
#
# 4) 예시 호출
#    - POST   /api/users                        (JSON: {"id": "u1", "username": "neo"})
#    - POST   /api/users/me/likes/3             (헤더: X-User-Id: u1)
#    - POST   /api/users/me/not-interested/3    (헤더: X-User-Id: u1)
#    - PUT    /api/users/me/picture             (multipart: image)
