import logging
import random
from unittest.mock import MagicMock

import pytest

from youtback.affinity import AffinityStore
from youtback.errors import NotFoundError
from youtback.models import utcnow
from youtback.popularity import PopularityIndex
from youtback.recommender import RecommendationService


def build(db, **kwargs):
    index = MagicMock(wraps=PopularityIndex(db))
    service = RecommendationService(db, index, rng=random.Random(7), **kwargs)
    return service, index


def test_result_is_bounded_by_size(db, make_user, make_video):
    make_user("u1")
    for _ in range(10):
        make_video(language="en")
    service, _ = build(db)

    result = service.get_recommendations(None, set(), ["en"], 4)

    assert len(result) == 4


def test_size_is_clamped_to_max_videos_per_request(db, make_user, make_video):
    make_user("u1")
    for _ in range(10):
        make_video(language="en")
    service, index = build(db, max_videos_per_request=3)

    result = service.get_recommendations(None, set(), ["en"], 50)

    assert len(result) == 3
    assert index.top_by_language.call_args.args[3] == 3


def test_excludes_and_duplicates_never_returned(db, make_user, make_video, add_like, set_affinity):
    make_user("u1")
    make_user("u2")
    videos = [make_video(category=c, language=l) for c in ("Sport", "Music") for l in ("en", "ru") for _ in range(3)]
    for v in videos[::2]:
        add_like("u2", v.id)
    set_affinity("u1", categories={"Music": 2}, languages={"ru": 1})
    excludes = {videos[0].id, videos[5].id, videos[7].id}
    service, _ = build(db)

    result = service.get_recommendations("u1", excludes, ["en", "ru"], 12)

    assert not set(result) & excludes
    assert len(result) == len(set(result))
    assert len(result) == len(videos) - len(excludes)


def test_personalized_tier_alone_satisfies_size(db, make_user, make_video, set_affinity):
    make_user("u1")
    for _ in range(5):
        make_video(category="Sport", language="de")
    make_video(category="Music", language="en")
    set_affinity("u1", categories={"Sport": 3})
    service, index = build(db)

    result = service.get_recommendations("u1", set(), ["en"], 3)

    assert len(result) == 3
    assert index.top_by_category_and_language.call_count == 1
    index.top_by_language.assert_not_called()
    index.top_overall.assert_not_called()


def test_unknown_user_raises_not_found(db, make_user, make_video):
    make_user("u1")
    make_video()
    service, index = build(db)

    with pytest.raises(NotFoundError):
        service.get_recommendations("nonexistent", set(), ["en"], 5)
    index.top_by_language.assert_not_called()


def test_anonymous_request_skips_personalized_tier(db, make_user, make_video):
    make_user("u1")
    for _ in range(5):
        make_video(language="en")
    service, index = build(db)

    result = service.get_recommendations(None, set(), ["en"], 5)

    assert len(result) == 5
    index.top_by_category_and_language.assert_not_called()


def test_languages_are_queried_in_priority_order(db, make_user, make_video):
    make_user("u1")
    ru = {make_video(language="ru").id for _ in range(2)}
    for _ in range(5):
        make_video(language="en")
    service, index = build(db)

    result = service.get_recommendations(None, set(), ["ru", "en"], 4)

    assert ru <= set(result)
    assert len(result) == 4
    calls = index.top_by_language.call_args_list
    assert [c.args[1] for c in calls] == ["ru", "en"]
    # the second language only fills the remaining gap
    assert calls[1].args[3] == 2


def test_language_loop_stops_once_full(db, make_user, make_video):
    make_user("u1")
    for _ in range(3):
        make_video(language="en")
    make_video(language="ru")
    service, index = build(db)

    service.get_recommendations(None, set(), ["en", "ru"], 3)

    assert index.top_by_language.call_count == 1


def test_generic_tier_fills_gap_and_warns(db, make_user, make_video, caplog):
    make_user("u1")
    make_video(language="en")
    for _ in range(3):
        make_video(language="ko")
    service, index = build(db)

    with caplog.at_level(logging.WARNING, logger="youtback.recommender"):
        result = service.get_recommendations(None, set(), ["en"], 4)

    assert len(result) == 4
    index.top_overall.assert_called_once()
    assert any("Recommendation not found" in r.message for r in caplog.records)


def test_shortfall_returns_what_exists(db, make_user, make_video):
    make_user("u1")
    make_video()
    make_video()
    service, _ = build(db)

    assert len(service.get_recommendations(None, set(), ["en"], 10)) == 2


def test_empty_catalog_returns_empty_list(db, make_user):
    make_user("u1")
    service, _ = build(db)

    assert service.get_recommendations("u1", set(), ["en"], 10) == []


def test_popularity_counts_only_likes_inside_window(db, make_user, make_video, add_like):
    for uid in ("u1", "u2", "u3"):
        make_user(uid)
    stale = make_video(title="stale")
    fresh = make_video(title="fresh")
    for uid in ("u1", "u2", "u3"):
        add_like(uid, stale.id, days_ago=40)
    add_like("u1", fresh.id, days_ago=1)
    service, _ = build(db, popularity_days=30, max_videos_per_request=1)

    assert service.get_recommendations(None, set(), ["en"], 1) == [fresh.id]


def test_personalized_tier_matches_category_or_language(db, make_user, make_video, set_affinity):
    make_user("u1")
    by_category = make_video(category="Games", language="de")
    by_language = make_video(category="Music", language="ko")
    make_video(category="Sport", language="en")
    set_affinity("u1", categories={"Games": 1}, languages={"ko": 4})
    affinity = AffinityStore(db).get("u1")
    index = PopularityIndex(db)

    found = index.top_by_category_and_language(
        set(affinity.category_scores), set(affinity.language_scores), utcnow(), set(), 10
    )

    assert set(found) == {by_category.id, by_language.id}


def test_personalized_tier_skipped_without_affinity(db, make_user, make_video):
    make_user("u1")
    for _ in range(3):
        make_video(language="en")
    service, index = build(db)

    result = service.get_recommendations("u1", set(), ["en"], 3)

    assert len(result) == 3
    index.top_by_category_and_language.assert_not_called()
    index.top_by_language.assert_called_once()


def test_personalized_tier_reads_keys_from_affinity_store(db, make_user, make_video, set_affinity):
    make_user("u1")
    make_video(category="Games", language="de")
    set_affinity("u1", categories={"Games": 2}, languages={"de": 1})
    affinity = MagicMock(wraps=AffinityStore(db))
    index = MagicMock(wraps=PopularityIndex(db))
    service = RecommendationService(db, index, affinity, rng=random.Random(7))

    service.get_recommendations("u1", set(), ["en"], 1)

    affinity.get.assert_called_once_with("u1")
    args = index.top_by_category_and_language.call_args.args
    assert (args[0], args[1]) == ({"Games"}, {"de"})
