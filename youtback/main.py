# ------------------------------------------------------------
# main.py — FastAPI 앱/미들웨어/예외 처리/라우터 등록 진입점
# ------------------------------------------------------------

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from . import config
from .db import Base, engine
from .errors import DomainError
from .routers import images, recommend, users, videos

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# 존재하지 않는 테이블만 생성 (마이그레이션 도구를 쓰는 환경에서는 DB_AUTO_CREATE=false)
if config.DB_AUTO_CREATE:
    Base.metadata.create_all(bind=engine)

app = FastAPI(title="Youtback API")

# 개발 단계에서는 넓게 허용, 운영에서는 특정 도메인으로 제한
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------
# 도메인 예외 → HTTP 응답
# -------------------------------
# 서비스에서 던진 NotFoundError(404), AlreadyExistsError(409),
# IllegalArgumentError(400), ProcessingFailedError(502) 등을
# {"detail": ..., "code": ...} 형태로 변환
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status, content={"detail": str(exc), "code": exc.code})


# 재시도 후에도 남은 동시 수정 충돌(PK/UNIQUE 위반)은 409
@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Conflicting concurrent update on %s: %s", request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflicting concurrent update", "code": "conflict"})


# - videos:    /api/videos
# - users:     /api/users
# - recommend: /api/recommend
# - images:    /api/image
app.include_router(videos.router)
app.include_router(users.router)
app.include_router(recommend.router)
app.include_router(images.router)


@app.get("/")
def root():
    return {"ok": True, "service": "youtback"}
