# ------------------------------------------------------------
# seed.py — 추천 테스트용 가짜 사용자/영상/좋아요 생성 CLI
# ------------------------------------------------------------
# 사용 예)
#   python -m youtback.seed --users 50 --videos 200 --workers 8
# 미디어 파일은 올리지 않고 DB 행만 만듭니다.

import argparse
import logging
import random
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import List, Optional

from .db import Base, SessionLocal, engine, unit_of_work
from .models import Like, User, Video, utcnow

logger = logging.getLogger(__name__)

CATEGORIES = {
    "Sport": ["Football", "Basketball", "Hockey", "Golf"],
    "Music": ["Eminem", "Drake", "Playboi Carti", "Yeat"],
    "Education": ["Java", "Python", "English", "French"],
    "Movies": ["Oppenheimer", "American psycho", "Fight club", "Breaking bad"],
    "Games": ["GTA V", "Fortnite", "Minecraft", "Need For Speed Most Wanted"],
    "Other": ["Monkeys", "Cars", "Dogs", "Cats", "Nature"],
}
LANGUAGES = ["en", "ru", "ko", "de"]
NAMES = "Liam Noah Oliver James Elijah William Henry Lucas Benjamin Theodore Mateo Levi Daniel Jack".split()
LIKE_SPREAD_SECONDS = 30 * 24 * 60 * 60  # 좋아요 시각을 최근 30일에 분산


def create_users(amount: int, session_factory=SessionLocal, rng: Optional[random.Random] = None) -> List[str]:
    rng = rng or random.Random()
    ids = []
    db = session_factory()
    try:
        with unit_of_work(db):
            for _ in range(amount):
                user_id = uuid.uuid4().hex
                db.add(User(id=user_id, username=rng.choice(NAMES), email=f"{user_id}@example.com",
                            authorities="ROLE_USER", created_at=utcnow()))
                ids.append(user_id)
    finally:
        db.close()
    return ids


def _create_video(user_ids: List[str], session_factory, rng: random.Random) -> bool:
    # 영상 1개 + 서로 다른 사용자들의 좋아요를 하나의 트랜잭션으로 생성
    db = session_factory()
    try:
        with unit_of_work(db):
            owner = rng.choice(user_ids)
            category = rng.choice(list(CATEGORIES))
            video = Video(
                owner_id=owner,
                title=f"{rng.choice(CATEGORIES[category])} by {owner[:8]}",
                description="Nothing here...",
                category=category,
                language=rng.choice(LANGUAGES),
                duration=rng.randint(10, 3600),
                views=0,
                upload_date=utcnow(),
            )
            db.add(video)
            db.flush()

            now = utcnow()
            for liker in rng.sample(user_ids, rng.randint(0, len(user_ids))):
                db.add(Like(user_id=liker, video_id=video.id,
                            timestamp=now - timedelta(seconds=rng.randint(0, LIKE_SPREAD_SECONDS))))
        return True
    except Exception:
        logger.exception("Could not create synthetic video")
        return False
    finally:
        db.close()


def create_videos(
    amount: int,
    user_ids: List[str],
    *,
    workers: int = 8,
    session_factory=SessionLocal,
    seed: Optional[int] = None,
) -> int:
    """
    영상 amount개를 워커 풀에서 병렬로 생성하고 성공한 개수를 반환합니다.
    작업마다 자기 세션과 트랜잭션을 사용합니다.
    """
    if not user_ids:
        return 0
    base = random.Random(seed)
    rngs = [random.Random(base.random()) for _ in range(amount)]
    with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        results = list(executor.map(lambda r: _create_video(user_ids, session_factory, r), rngs))
    return sum(results)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create synthetic users, videos and likes.")
    parser.add_argument("--users", type=int, default=20)
    parser.add_argument("--videos", type=int, default=100)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    Base.metadata.create_all(bind=engine)

    user_ids = create_users(args.users, rng=random.Random(args.seed))
    created = create_videos(args.videos, user_ids, workers=args.workers, seed=args.seed)
    logger.info("created %d users and %d/%d videos", len(user_ids), created, args.videos)


if __name__ == "__main__":
    main()
