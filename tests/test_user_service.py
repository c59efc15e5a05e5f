import pytest

from youtback import config
from youtback.affinity import AffinityStore
from youtback.db import SessionLocal
from youtback.errors import AlreadyExistsError, IllegalArgumentError, NotFoundError
from youtback.models import CategoryScore, Like, SearchHistory, Subscription, User, Video, utcnow
from youtback.schemas import UserCreate, UserUpdate
from youtback.user_service import UserService
from youtback.video_service import VideoService


@pytest.fixture
def service(db, media_store):
    return UserService(db, affinity=AffinityStore(db), media_store=media_store)


# ---------- likes ----------

def test_like_toggles(db, service, make_user, make_video):
    make_user("u1")
    video = make_video()

    _, liked = service.like_video("u1", video.id)
    assert liked is True
    assert db.query(Like).count() == 1
    assert service.has_user_liked_video("u1", video.id)

    _, liked = service.like_video("u1", video.id)
    assert liked is False
    assert db.query(Like).count() == 0


def test_dislike_removes_like_and_is_noop_otherwise(db, service, make_user, make_video, add_like):
    make_user("u1")
    video = make_video()
    add_like("u1", video.id)

    service.dislike_video("u1", video.id)
    service.dislike_video("u1", video.id)

    assert db.query(Like).count() == 0


def test_like_unknown_video_raises(service, make_user):
    make_user("u1")
    with pytest.raises(NotFoundError):
        service.like_video("u1", 99)


def test_user_likes_lists_liked_videos(service, make_user, make_video, add_like):
    make_user("u1")
    liked = make_video()
    make_video()
    add_like("u1", liked.id)

    assert [v.id for v in service.get_user_likes("u1")] == [liked.id]


# ---------- not interested ----------

@pytest.mark.parametrize("before, after", [(4, 1), (8, 2), (7, 1)])
def test_not_interested_decays_category(db, service, make_user, make_video, set_affinity, before, after):
    make_user("u1")
    video = make_video(category="Sport")
    set_affinity("u1", categories={"Sport": before})

    service.not_interested(video.id, "u1")

    assert AffinityStore(db).get("u1").category_scores == {"Sport": after}


def test_not_interested_removes_category_at_zero(db, service, make_user, make_video, set_affinity):
    make_user("u1")
    video = make_video(category="Sport")
    set_affinity("u1", categories={"Sport": 3, "Music": 2})

    service.not_interested(video.id, "u1")

    assert db.get(CategoryScore, ("u1", "Sport")) is None
    assert AffinityStore(db).get("u1").category_scores == {"Music": 2}


def test_not_interested_without_category_is_noop(db, service, make_user, make_video):
    make_user("u1")
    video = make_video(category="Sport")

    service.not_interested(video.id, "u1")

    assert db.query(CategoryScore).count() == 0


def test_not_interested_requires_existing_ids(service, make_user, make_video):
    make_user("u1")
    video = make_video()
    with pytest.raises(NotFoundError):
        service.not_interested(video.id, "ghost")
    with pytest.raises(NotFoundError):
        service.not_interested(12345, "u1")


# ---------- registration / profile ----------

def test_register_user_applies_defaults(service):
    user = service.register_user(UserCreate(id="new", username="neo"))

    assert user.authorities == "ROLE_USER"
    assert user.picture == config.DEFAULT_USER_PICTURE


def test_register_duplicate_raises(service, make_user):
    make_user("u1")
    with pytest.raises(AlreadyExistsError):
        service.register_user(UserCreate(id="u1", username="again"))


def test_update_changes_only_given_fields(service, make_user):
    make_user("u1", username="before")

    user = service.update("u1", UserUpdate(email="after@example.com"))

    assert user.username == "before"
    assert user.email == "after@example.com"


def test_find_all_raises_when_empty(service):
    with pytest.raises(NotFoundError):
        service.find_all()


def test_find_by_option_subscribers_range(service, make_user):
    for uid in ("a", "b", "c"):
        make_user(uid)
    service.subscribe("a", "c")
    service.subscribe("b", "c")

    assert [u.id for u in service.find_by_option(["BY_SUBSCRIBERS"], ["2/10"])] == ["c"]
    with pytest.raises(IllegalArgumentError):
        service.find_by_option(["BY_SUBSCRIBERS"], ["2-10"])
    with pytest.raises(IllegalArgumentError):
        service.find_by_option(["BY_ID", "BY_EMAIL"], ["a"])


# ---------- subscriptions ----------

def test_subscribe_and_unsubscribe(db, service, make_user):
    make_user("u1")
    make_user("chan")

    service.subscribe("u1", "chan")
    service.subscribe("u1", "chan")
    assert db.query(Subscription).count() == 1
    assert service.has_user_subscribed_channel("u1", "chan")
    assert [u.id for u in service.get_user_subscribes("u1")] == ["chan"]

    service.unsubscribe("u1", "chan")
    assert not service.has_user_subscribed_channel("u1", "chan")


def test_subscribe_to_unknown_channel_raises(service, make_user):
    make_user("u1")
    with pytest.raises(NotFoundError):
        service.subscribe("u1", "ghost")


# ---------- history ----------

def test_search_history_is_capped_and_refreshed(db, service, make_user, monkeypatch):
    monkeypatch.setattr(config, "MAX_SEARCH_HISTORY_OPTIONS", 3)
    make_user("u1")

    for option in ("a", "b", "c", "d"):
        service.add_search_option("u1", option)
    service.add_search_option("u1", "b")

    options = {h.search_option for h in service.get_search_history("u1")}
    assert options == {"b", "c", "d"}
    assert db.query(SearchHistory).count() == 3


def test_delete_missing_search_option_raises(service, make_user):
    make_user("u1")
    with pytest.raises(NotFoundError):
        service.delete_search_option("u1", "nothing")


def test_watch_history_lists_watched_videos(db, service, media_store, processing, make_user, make_video):
    make_user("u1")
    first = make_video()
    second = make_video()
    videos = VideoService(db, affinity=AffinityStore(db), media_store=media_store, processing=processing)
    videos.watch_by_id(first.id, "u1")
    videos.watch_by_id(second.id, "u1")

    assert {v.id for v in service.get_watch_history("u1")} == {first.id, second.id}


# ---------- delete ----------

def test_delete_user_removes_owned_data(db, service, media_store, make_user, make_video, add_like):
    make_user("u1")
    make_user("u2")
    own = make_video(owner_id="u1")
    other = make_video(owner_id="u2")
    add_like("u2", own.id)
    add_like("u1", other.id)
    service.subscribe("u2", "u1")
    media_store.objects[f"{config.USER_PATH}u1/picture.jpg"] = b"p"
    media_store.objects[f"{config.VIDEO_PATH}{own.id}/index.mp4"] = b"v"
    media_store.objects[f"{config.VIDEO_PATH}{other.id}/index.mp4"] = b"v"

    service.delete_by_id("u1")

    assert db.get(User, "u1") is None
    assert [v.id for v in db.query(Video).all()] == [other.id]
    assert db.query(Like).count() == 0
    assert db.query(Subscription).count() == 0
    assert list(media_store.objects) == [f"{config.VIDEO_PATH}{other.id}/index.mp4"]


def test_like_retries_after_concurrent_insert(db, service, make_user, make_video, monkeypatch):
    make_user("u1")
    video = make_video()
    # 다른 요청이 같은 좋아요를 먼저 커밋함
    other = SessionLocal()
    other.add(Like(user_id="u1", video_id=video.id, timestamp=utcnow()))
    other.commit()
    other.close()

    real_get = db.get
    stale_reads = []

    def get_once_stale(entity, ident, **kwargs):
        if entity is Like and not stale_reads:
            stale_reads.append(ident)
            return None
        return real_get(entity, ident, **kwargs)

    monkeypatch.setattr(db, "get", get_once_stale)

    _, liked = service.like_video("u1", video.id)

    # 재시도에서 최신 상태(좋아요 있음)를 읽고 토글
    assert stale_reads == [("u1", video.id)]
    assert liked is False
    assert db.query(Like).count() == 0
