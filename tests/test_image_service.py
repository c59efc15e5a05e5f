import io

import pytest

from youtback import config
from youtback.errors import IllegalArgumentError, NotFoundError, ProcessingFailedError
from youtback.image_service import ImageService, image_path


@pytest.fixture
def service(media_store, processing):
    return ImageService(media_store, processing)


def test_upload_user_picture_waits_for_processing(service, media_store, processing):
    path = service.upload_user_picture("u1", "me.png", io.BytesIO(b"img"))

    assert path == f"{config.USER_PATH}u1/me.png"
    assert media_store.objects[path] == b"img"
    assert processing.submitted == [(config.USER_PICTURE_INPUT_QUEUE, path)]


def test_upload_without_owner_uses_fresh_folder(service, media_store):
    first = service.upload_thumbnail(None, "thumbnail.jpg", io.BytesIO(b"a"))
    second = service.upload_thumbnail(None, "thumbnail.jpg", io.BytesIO(b"b"))

    assert first.startswith(config.VIDEO_PATH)
    assert first != second
    assert len(media_store.objects) == 2


def test_failed_processing_removes_upload(service, media_store, processing):
    processing.ok = False

    with pytest.raises(ProcessingFailedError):
        service.upload_user_picture("u1", "me.png", io.BytesIO(b"img"))
    assert media_store.objects == {}


def test_get_image_and_default_picture(service, media_store):
    media_store.objects["users/u1/me.png"] = b"img"

    assert service.get_image("users/u1/me.png").read() == b"img"
    with pytest.raises(NotFoundError):
        service.get_default_picture()

    media_store.objects[config.DEFAULT_USER_PICTURE] = b"default"
    assert service.get_default_picture().read() == b"default"


def test_delete_user_picture_cleans_folder(service, media_store):
    media_store.objects["users/u1/me.png"] = b"img"
    media_store.objects["users/u1/me_small.png"] = b"img"

    service.delete_image("users/u1/me.png")

    assert media_store.objects == {}


def test_delete_thumbnail_keeps_video_files(service, media_store):
    media_store.objects["videos/1/thumbnail.jpg"] = b"t"
    media_store.objects["videos/1/index.mp4"] = b"v"

    service.delete_image("videos/1/thumbnail.jpg")

    assert list(media_store.objects) == ["videos/1/index.mp4"]


@pytest.mark.parametrize(
    "folder, owner, name",
    [("secrets", "u1", "a.png"), ("users", "..", "a.png"), ("users", "u1", "..a"), ("users", "", "a.png")],
)
def test_image_path_rejects_illegal_parts(folder, owner, name):
    with pytest.raises(IllegalArgumentError):
        image_path(folder, owner, name)
