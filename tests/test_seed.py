import random

from youtback import seed
from youtback.models import Like, User, Video


def test_create_users(db):
    ids = seed.create_users(3, rng=random.Random(1))

    assert len(set(ids)) == 3
    assert db.query(User).count() == 3


def test_create_videos_with_likes_inside_window(db):
    user_ids = seed.create_users(4, rng=random.Random(1))

    created = seed.create_videos(5, user_ids, workers=1, seed=3)

    assert created == 5
    videos = db.query(Video).all()
    assert len(videos) == 5
    assert all(v.category in seed.CATEGORIES for v in videos)
    assert all(v.owner_id in user_ids for v in videos)
    # 같은 영상에 같은 사용자의 좋아요는 하나뿐
    pairs = [(like.user_id, like.video_id) for like in db.query(Like).all()]
    assert len(pairs) == len(set(pairs))


def test_create_videos_without_users_creates_nothing(db):
    assert seed.create_videos(3, [], workers=1) == 0
    assert db.query(Video).count() == 0
