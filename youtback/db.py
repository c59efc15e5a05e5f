# -------------------------------------------------------
# db.py — SQLAlchemy 세션/엔진, 트랜잭션 경계 및 FastAPI 의존성 정의
# -------------------------------------------------------

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import DATABASE_URL

# ----------------------------------------------
# SQLAlchemy Engine 생성
# ----------------------------------------------
# - MySQL(PyMySQL): pool_pre_ping으로 죽은 커넥션 감지, pool_recycle=1시간
# - SQLite 메모리 DB(테스트/로컬): 커넥션이 바뀌면 DB가 사라지므로 StaticPool로
#   하나의 커넥션을 공유하고, FastAPI 스레드풀에서 쓰도록 check_same_thread=False
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True, pool_recycle=3600)

# autocommit=False: 명시적 commit() 전까지 반영되지 않음
# autoflush=False: 쿼리 시 자동 flush 방지 (필요하면 서비스에서 flush)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 모든 ORM 모델이 상속받는 베이스 클래스
Base = declarative_base()


def get_db():
    """
    FastAPI 의존성 주입용 DB 세션 제공자(Generator)

    1) 요청이 들어오면 SessionLocal()로 세션 생성
    2) 핸들러/서비스에 주입(yield)
    3) 응답 후 finally 블록에서 세션 종료(close)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db):
    """
    하나의 쓰기 작업을 하나의 트랜잭션으로 묶는 경계.

    with unit_of_work(db):
        ...  # 조회 → 조건부 쓰기
    - 정상 종료: commit
    - 예외 발생: rollback 후 예외를 그대로 다시 던짐
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
