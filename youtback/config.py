# -------------------------------------------------------
# config.py — 환경변수 기반 설정값 모음
# -------------------------------------------------------

import os
from dotenv import load_dotenv

# .env 파일의 환경변수를 현재 프로세스 환경에 주입
load_dotenv()

# -----------------------------
# 데이터베이스
# -----------------------------
DB_USER = os.getenv("DB_USER", "youtback")
DB_PASSWORD = os.getenv("DB_PASSWORD", "youtback")
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_NAME = os.getenv("DB_NAME", "youtback")

# DATABASE_URL이 주어지면 위 값들보다 우선 (예: 테스트용 "sqlite://")
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4",
)

# 앱 시작 시 create_all 실행 여부 (마이그레이션 도구를 쓰면 false)
DB_AUTO_CREATE = os.getenv("DB_AUTO_CREATE", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# -----------------------------
# 추천
# -----------------------------
POPULARITY_DAYS = int(os.getenv("POPULARITY_DAYS", "30"))        # 인기 집계 기간(일)
MAX_VIDEOS_PER_REQUEST = int(os.getenv("MAX_VIDEOS_PER_REQUEST", "100"))
DEFAULT_RECS_SIZE = int(os.getenv("DEFAULT_RECS_SIZE", "20"))

# -----------------------------
# 시청 기록 / 선호도
# -----------------------------
WATCH_HISTORY_DEDUP_HOURS = 24
NOT_INTERESTED_FACTOR = 0.25
MAX_SEARCH_HISTORY_OPTIONS = int(os.getenv("MAX_SEARCH_HISTORY_OPTIONS", "10"))

# -----------------------------
# 미디어 경로
# -----------------------------
VIDEO_PATH = "videos/"
USER_PATH = "users/"
THUMBNAIL_FILENAME = "thumbnail.jpg"
VIDEO_FILENAME = "index.mp4"
INDEX_FILENAME = "index.m3u8"
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")
DEFAULT_USER_PICTURE = os.getenv("DEFAULT_USER_PICTURE", "users/default.jpg")
# 기본 프로필 사진도 오브젝트 스토리지의 DEFAULT_USER_PICTURE 경로에 미리 올려 둠

# -----------------------------
# 오브젝트 스토리지 (MinIO / S3)
# -----------------------------
MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "http://127.0.0.1:9000")
MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "minioadmin")
MINIO_BUCKET = os.getenv("MINIO_BUCKET", "youtback")

# -----------------------------
# 미디어 처리 요청/응답 (Redis 리스트)
# -----------------------------
REDIS_HOST = os.getenv("REDIS_HOST", "127.0.0.1")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None
THUMBNAIL_INPUT_QUEUE = os.getenv("THUMBNAIL_INPUT_QUEUE", "thumbnail-input")
VIDEO_INPUT_QUEUE = os.getenv("VIDEO_INPUT_QUEUE", "video-input")
USER_PICTURE_INPUT_QUEUE = os.getenv("USER_PICTURE_INPUT_QUEUE", "user-picture-input")
VIDEO_CREATED_QUEUE = os.getenv("VIDEO_CREATED_QUEUE", "video-created-notification")
PROCESSING_TIMEOUT_SEC = int(os.getenv("PROCESSING_TIMEOUT_SEC", "300"))  # 5분
