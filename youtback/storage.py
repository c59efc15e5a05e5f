# ------------------------------------------------------------
# storage.py — 오브젝트 스토리지(MinIO/S3) 클라이언트
# ------------------------------------------------------------

import logging
from typing import BinaryIO, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from . import config
from .errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


def s3_client():
    """MinIO/S3 접속용 boto3 클라이언트 생성"""
    return boto3.client(
        "s3",
        endpoint_url=config.MINIO_ENDPOINT,
        aws_access_key_id=config.MINIO_ACCESS_KEY,
        aws_secret_access_key=config.MINIO_SECRET_KEY,
    )


class S3MediaStore:
    """
    영상/썸네일/프로필 사진을 하나의 버킷에 경로(key)로 저장합니다.
    예) videos/{video_id}/index.mp4, videos/{video_id}/thumbnail.jpg

    botocore 예외는 StorageError로, 없는 key 조회는 NotFoundError로 변환합니다.
    """

    def __init__(self, client=None, bucket: str = config.MINIO_BUCKET):
        self.client = client or s3_client()
        self.bucket = bucket

    def get(self, path: str) -> BinaryIO:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=path)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError(f"cannot retrieve target [{path}] file")
            raise StorageError(str(e)) from e
        except BotoCoreError as e:
            raise StorageError(str(e)) from e
        return obj["Body"]

    def put(self, stream: BinaryIO, path: str) -> None:
        try:
            self.client.upload_fileobj(stream, self.bucket, path)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e)) from e
        logger.debug("uploaded %s", path)

    def remove(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e)) from e

    def list_files(self, prefix: str) -> List[str]:
        keys: List[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(item["Key"] for item in page.get("Contents", []))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(str(e)) from e
        return keys

    def remove_folder(self, prefix: str) -> None:
        # prefix 아래 모든 객체 삭제
        for key in self.list_files(prefix):
            self.remove(key)
