# ------------------------------------------------------------
# processing.py — 미디어 처리 서비스와의 요청/응답 (Redis 리스트)
# ------------------------------------------------------------
# 요청: RPUSH {queue} '{"path": ..., "reply_to": ...}'
# 응답: 처리 서비스가 RPUSH {reply_to} "true" | "false"
# 이쪽은 BLPOP {reply_to} 로 timeout 동안 기다립니다.

import json
import logging
import uuid
from typing import Optional

import redis

from . import config
from .errors import ProcessingFailedError

logger = logging.getLogger(__name__)

REPLY_PREFIX = "youtback:processing:reply:"


def redis_client() -> redis.Redis:
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        password=config.REDIS_PASSWORD,
        decode_responses=True,
    )


class RedisProcessingClient:
    def __init__(self, client: Optional[redis.Redis] = None, timeout: int = config.PROCESSING_TIMEOUT_SEC):
        self.client = client or redis_client()
        self.timeout = timeout

    def submit(self, queue: str, path: str) -> str:
        """처리 요청을 보내고 응답을 받을 key를 반환"""
        reply_to = f"{REPLY_PREFIX}{uuid.uuid4().hex}"
        self.client.rpush(queue, json.dumps({"path": path, "reply_to": reply_to}))
        return reply_to

    def await_reply(self, reply_to: str, timeout: Optional[int] = None) -> None:
        """
        응답을 최대 timeout초 기다립니다.
        시간 초과 또는 false 응답이면 ProcessingFailedError.
        """
        timeout = self.timeout if timeout is None else timeout
        item = self.client.blpop([reply_to], timeout=timeout)
        if item is None:
            raise ProcessingFailedError(f"No reply from processing service within {timeout}s")
        _, value = item
        if str(value).strip().lower() not in ("true", "1"):
            raise ProcessingFailedError("Received false from processing microservice")

    def process(self, queue: str, path: str, timeout: Optional[int] = None) -> None:
        self.await_reply(self.submit(queue, path), timeout)

    def publish(self, queue: str, payload: str) -> None:
        # 응답을 기다리지 않는 알림
        self.client.rpush(queue, payload)
