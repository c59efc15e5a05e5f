# ------------------------------------------------------------
# image_service.py — 프로필 사진/썸네일 업로드, 조회, 삭제
# ------------------------------------------------------------
# 업로드 흐름: 스토리지에 원본 저장 → 처리 서비스 큐에 경로 전달 → 완료 응답 대기
# 처리 서비스가 false/시간 초과를 응답하면 ProcessingFailedError(502)

import logging
import uuid
from typing import BinaryIO, Optional

from . import config
from .errors import IllegalArgumentError, NotFoundError

logger = logging.getLogger(__name__)

# 이미지 경로의 최상위 폴더로 허용하는 값 ("users", "videos")
IMAGE_ROOTS = (config.USER_PATH.rstrip("/"), config.VIDEO_PATH.rstrip("/"))


def image_path(folder: str, owner: str, name: str) -> str:
    """
    "{folder}/{owner}/{name}" 경로를 만들고 검증합니다.
    - folder는 IMAGE_ROOTS 중 하나
    - 각 구간에 "/" 나 ".."가 들어가면 IllegalArgumentError
    """
    if folder not in IMAGE_ROOTS:
        raise IllegalArgumentError(f"Unknown image folder [{folder}]")
    for part in (owner, name):
        if not part or "/" in part or ".." in part:
            raise IllegalArgumentError(f"Illegal image path part [{part}]")
    return f"{folder}/{owner}/{name}"


class ImageService:
    def __init__(self, media_store, processing):
        self.media = media_store
        self.processing = processing

    def upload_user_picture(self, user_id: Optional[str], filename: str, stream: BinaryIO) -> str:
        return self.upload_image(user_id, config.USER_PATH, filename, config.USER_PICTURE_INPUT_QUEUE, stream)

    def upload_thumbnail(self, video_id: Optional[str], filename: str, stream: BinaryIO) -> str:
        return self.upload_image(video_id, config.VIDEO_PATH, filename, config.THUMBNAIL_INPUT_QUEUE, stream)

    def upload_image(
        self,
        owner: Optional[str],
        prefix: str,
        filename: str,
        queue: str,
        stream: BinaryIO,
    ) -> str:
        """
        이미지를 prefix/{owner}/filename 에 저장하고 처리 완료까지 기다린 뒤 경로를 반환합니다.
        owner가 없으면 비어 있는 임의 폴더 이름을 만듭니다.
        처리에 실패하면 올린 파일을 지우고 예외를 그대로 올립니다.
        """
        if not prefix.endswith("/"):
            prefix += "/"
        owner = owner or self._new_folder_name(prefix)
        path = image_path(prefix.rstrip("/"), owner, filename)

        self.media.put(stream, path)
        try:
            self.processing.process(queue, path)
        except Exception:
            logger.exception("Could not process image %s", path)
            try:
                self.media.remove(path)
            except Exception:
                logger.exception("Could not remove image %s after failed processing", path)
            raise
        logger.info("Image %s uploaded", path)
        return path

    def _new_folder_name(self, prefix: str) -> str:
        # 이미 파일이 있는 폴더는 피함
        while True:
            name = uuid.uuid4().hex[:12]
            if not self.media.list_files(f"{prefix}{name}/"):
                return name

    def get_image(self, path: str) -> BinaryIO:
        return self.media.get(path)

    def get_default_picture(self) -> BinaryIO:
        try:
            return self.media.get(config.DEFAULT_USER_PICTURE)
        except NotFoundError:
            logger.error("Default user picture %s was not found", config.DEFAULT_USER_PICTURE)
            raise

    def delete_image(self, path: str) -> None:
        """
        이미지를 지웁니다. 사용자 폴더라면 남은 처리 결과물까지 폴더째 정리합니다.
        (영상 폴더는 영상 파일이 함께 있으므로 이미지 파일만 삭제)
        """
        self.media.remove(path)
        folder = path[: path.rindex("/") + 1]
        if folder.startswith(config.USER_PATH) and self.media.list_files(folder):
            self.media.remove_folder(folder)
        logger.info("Image %s deleted", path)
