# ---------------------------------------------
# videos.py — 영상 조회/검색/시청/업로드/수정/삭제/스트리밍 엔드포인트
# ---------------------------------------------

from typing import List, Optional                      # 응답 타입: List[...] / 선택 파라미터

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile  # 라우팅 / 의존성 / 쿼리 / multipart
from fastapi.responses import StreamingResponse        # 스토리지 스트림을 그대로 응답 본문으로

from ..deps import get_current_user_id, get_video_service  # X-User-Id 헤더 / VideoService 조립
from ..errors import DomainError, NotFoundError        # 도메인 예외 (main.py에서 HTTP 응답으로 변환)
from ..schemas import VideoCreate, VideoOut, VideoUpdate  # 요청 메타데이터 / 응답 스키마
from ..video_service import VideoService, to_video_out # 영상 로직 / ORM → VideoOut(좋아요 수 포함)

# - prefix: 이 라우터의 모든 엔드포인트 앞에 붙을 공통 경로
# - tags: Swagger UI 그룹 이름
router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=List[VideoOut])
def find_by_option(
    option: List[str] = Query(...),   # 예) ?option=BY_TITLE&option=BY_VIEWS
    value: List[str] = Query(...),    #     &value=music&value=10/1000
    service: VideoService = Depends(get_video_service),
):
    """
    옵션 기반 검색. 모든 옵션을 AND로 결합합니다.
    범위 옵션(BY_VIEWS, BY_LIKES)은 "from/to" 형식, 잘못되면 400.
    """
    videos = service.find_by_option(option, value)
    return to_video_out(service.db, videos)


# "/search"는 "/{video_id}"보다 먼저 등록해야 함 (video_id가 int라 "search"는 422가 됨)
@router.get("/search", response_model=List[VideoOut])
def search(
    search_query: str = Query(..., min_length=1),       # 예) ?search_query=football
    service: VideoService = Depends(get_video_service),
):
    """
    제목 검색. find_by_option(BY_TITLE)과 같은 규칙(부분 일치)을 사용합니다.
    - 결과가 없으면 빈 목록
    """
    videos = service.find_by_option(["BY_TITLE"], [search_query])
    return to_video_out(service.db, videos)


@router.get("/{video_id}", response_model=VideoOut)
def get_video(video_id: int, service: VideoService = Depends(get_video_service)):
    """
    영상 단건 조회. 조회수는 올리지 않습니다(시청은 /watch).
    """
    video = service.find_by_id(video_id)                # 없으면 NotFoundError → 404
    return to_video_out(service.db, [video])[0]


@router.get("/{video_id}/watch", response_model=VideoOut)
def watch_video(
    video_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """
    시청 이벤트: 조회수 +1, 로그인 사용자면 선호도/시청 기록 갱신.
    - 익명 또는 존재하지 않는 사용자여도 조회수는 올라감
    """
    video = service.watch_by_id(video_id, user_id)
    return to_video_out(service.db, [video])[0]


@router.get("/{video_id}/index.m3u8")
def m3u8_index(video_id: int, service: VideoService = Depends(get_video_service)):
    # HLS 재생 목록. 없는 파일이면 404
    return StreamingResponse(service.m3u8_index(video_id), media_type="application/vnd.apple.mpegurl")


@router.get("/{video_id}/{filename}")
def segment(video_id: int, filename: str, service: VideoService = Depends(get_video_service)):
    # HLS 세그먼트. filename에 "/" 또는 ".."가 있으면 400
    return StreamingResponse(service.segment(video_id, filename), media_type="video/mp2t")


@router.post("", response_model=VideoOut, status_code=201)
def create_video(
    title: str = Form(...),
    category: str = Form(...),
    description: Optional[str] = Form(None),
    language: Optional[str] = Form(None),               # 없으면 제목으로 언어 감지
    duration: int = Form(0),
    thumbnail: UploadFile = File(...),
    video: UploadFile = File(...),
    user_id: Optional[str] = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """
    multipart/form-data 업로드.
    - 업로더는 X-User-Id (없거나 존재하지 않으면 404)
    - 처리 서비스가 실패/시간 초과를 응답하면 502 (업로드 파일과 행은 정리됨)
    """
    if user_id is None:
        raise NotFoundError("User not found")
    data = VideoCreate(title=title, category=category, description=description, language=language, duration=duration)
    entity = service.create(user_id, data, thumbnail.file, video.file)
    return to_video_out(service.db, [entity])[0]


@router.put("/{video_id}", response_model=VideoOut)
def update_video(
    video_id: int,
    title: Optional[str] = Form(None),                  # None인 항목은 변경하지 않음
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),       # 새 썸네일 (선택)
    video: Optional[UploadFile] = File(None),           # 새 영상 (선택, 기존 세그먼트는 삭제)
    user_id: Optional[str] = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """
    영상 메타데이터/파일 수정. 본인 영상만 가능(아니면 403).
    """
    _check_owner(service, video_id, user_id)
    data = VideoUpdate(title=title, description=description, category=category)
    entity = service.update(
        video_id,
        data,
        thumbnail=thumbnail.file if thumbnail is not None else None,
        video=video.file if video is not None else None,
    )
    return to_video_out(service.db, [entity])[0]


@router.delete("/{video_id}", status_code=204)
def delete_video(
    video_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    service: VideoService = Depends(get_video_service),
):
    """
    영상 삭제. 좋아요/시청 기록/스토리지 폴더까지 함께 지웁니다. 본인 영상만 가능.
    """
    _check_owner(service, video_id, user_id)
    service.delete_by_id(video_id)


def _check_owner(service: VideoService, video_id: int, user_id: Optional[str]) -> None:
    # 본인 영상만 수정/삭제 가능
    video = service.find_by_id(video_id)
    if user_id is None or video.owner_id != user_id:
        raise DomainError("Only the owner can modify this video", code="forbidden", status=403)


# ---------------------------------------------
# [추가 설명 / 실전 팁]
# ---------------------------------------------
# 1) 라우트 순서
#    - 고정 경로("/search", "/{id}/watch", "/{id}/index.m3u8")를 경로 파라미터 경로보다 먼저 둡니다.
#
# 2) 업로드 시간
#    - POST /api/videos는 썸네일과 영상 처리 응답을 모두 기다리므로 오래 걸릴 수 있습니다.
#      클라이언트 타임아웃을 PROCESSING_TIMEOUT_SEC 이상으로 잡으세요.
#
# 3) 소유자 확인
#    - X-User-Id 헤더만 비교합니다. 실제 인증은 앞단 게이트웨이에서 처리해야 합니다.
#
# 4) 예시 호출
#    - GET    /api/videos?option=BY_TITLE&value=music
#    - GET    /api/videos/search?search_query=football
#    - GET    /api/videos/1/watch            (헤더: X-User-Id: u1)
#    - POST   /api/videos                    (multipart: title, category, thumbnail, video)
#    - DELETE /api/videos/1                  (헤더: X-User-Id: u1)
