# -----------------------------------------------------------
# images.py — 프로필 사진/썸네일 업로드, 조회, 삭제 엔드포인트
# -----------------------------------------------------------

import mimetypes                                       # 파일 확장자 → Content-Type 추정
from typing import Optional                            # 선택 파라미터 타입 힌트

from fastapi import APIRouter, Depends, File, Form, UploadFile  # 라우터 / 의존성 / multipart 폼
from fastapi.responses import StreamingResponse        # 스토리지 스트림을 그대로 응답 본문으로 전달

from .. import config                                  # USER_PATH, DEFAULT_USER_PICTURE 등
from ..deps import get_current_user_id, get_image_service  # X-User-Id 헤더 / ImageService 조립
from ..image_service import ImageService, image_path   # 업로드·조회·삭제 로직, 경로 검증

# 이 모듈의 엔드포인트는 "/api/image"로 시작
# Swagger/OpenAPI 문서에서 "images" 그룹으로 묶음
router = APIRouter(prefix="/api/image", tags=["images"])


def _media_type(path: str) -> str:
    # 확장자로 추정할 수 없으면 일반 바이너리로 응답
    return mimetypes.guess_type(path)[0] or "application/octet-stream"


@router.post("/user")
def upload_user_picture(
    image: UploadFile = File(...),                      # 업로드할 이미지 파일
    user_id: Optional[str] = Depends(get_current_user_id),
    service: ImageService = Depends(get_image_service),
):
    """
    프로필 사진을 업로드하고 처리 서비스의 완료 응답을 기다립니다.
    - X-User-Id가 있으면 users/{user_id}/ 아래, 없으면 임의 폴더에 저장
    - 응답: 저장 경로와 조회용 URL
    - 처리 실패/시간 초과면 502 (올린 파일은 삭제됨)
    """
    path = service.upload_user_picture(user_id, image.filename, image.file)
    return {"path": path, "url": f"/api/image/{path}"}


@router.post("/thumbnail")
def upload_thumbnail(
    image: UploadFile = File(...),
    id: Optional[str] = Form(None),                     # 영상 id (없으면 임의 폴더)
    service: ImageService = Depends(get_image_service),
):
    """
    썸네일을 videos/{id}/ 아래에 업로드하고 처리 완료까지 기다립니다.
    """
    path = service.upload_thumbnail(id, image.filename, image.file)
    return {"path": path, "url": f"/api/image/{path}"}


@router.get("/user/default")
def default_user_picture(service: ImageService = Depends(get_image_service)):
    """
    기본 프로필 사진. 스토리지에 없으면 404.
    """
    return StreamingResponse(
        service.get_default_picture(),
        media_type=_media_type(config.DEFAULT_USER_PICTURE),
    )


@router.get("/{folder}/{owner}/{name}")
def get_image(folder: str, owner: str, name: str, service: ImageService = Depends(get_image_service)):
    """
    "{folder}/{owner}/{name}" 경로의 이미지를 스트리밍합니다.
    - folder는 users 또는 videos만 허용 (그 외/잘못된 경로는 400)
    - 없는 파일이면 404
    """
    path = image_path(folder, owner, name)
    return StreamingResponse(service.get_image(path), media_type=_media_type(path))


@router.delete("/{folder}/{owner}/{name}", status_code=204)
def delete_image(folder: str, owner: str, name: str, service: ImageService = Depends(get_image_service)):
    """
    이미지를 삭제합니다. 사용자 폴더면 남은 파일까지 정리합니다.
    """
    service.delete_image(image_path(folder, owner, name))


# -----------------------------------------------------------
# [추가 설명 / 실전 팁]
# -----------------------------------------------------------
# 1) 경로 검증
#    - image_path()가 ".." / "/"를 막으므로 버킷의 다른 경로를 읽거나 지울 수 없습니다.
#
# 2) 기본 프로필 사진
#    - DEFAULT_USER_PICTURE 경로에 이미지를 미리 올려 두어야 /user/default가 200을 반환합니다.
#
# 3) 처리 시간
#    - 업로드 요청은 처리 서비스 응답(최대 PROCESSING_TIMEOUT_SEC)까지 블로킹됩니다.
#      sync 엔드포인트이므로 FastAPI 스레드풀에서 실행되어 이벤트 루프를 막지는 않습니다.
#
# 4) 예시 호출
#    - POST   /api/image/user            (multipart: image)
#    - POST   /api/image/thumbnail       (multipart: image, id)
#    - GET    /api/image/user/default
#    - GET    /api/image/users/u1/picture.jpg
#    - DELETE /api/image/users/u1/picture.jpg
