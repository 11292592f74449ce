import pytest
from botocore.exceptions import ClientError

from propmarket.config import settings
from propmarket.errors import ConfigError
from propmarket.services.storage import LocalStorage, S3Storage, build_storage


class FakeS3:
    """Records put_object calls the way boto3's S3 client receives them."""

    def __init__(self, endpoint_url: str = "https://s3.example.test", bucket_exists: bool = True) -> None:
        self.meta = type("Meta", (), {"endpoint_url": endpoint_url + "/"})()
        self.bucket_exists = bucket_exists
        self.objects: dict[str, dict] = {}

    def head_bucket(self, Bucket):
        if not self.bucket_exists:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")
        return {}

    def put_object(self, Bucket, Key, Body, **extra):
        self.objects[Key] = {"bucket": Bucket, "body": Body, **extra}
        return {"ETag": '"etag"'}


async def test_s3_keeps_order_folder_and_content_type():
    s3 = FakeS3()
    storage = S3Storage(bucket="listings", client=s3)

    urls = await storage.save_many(
        [(b"a", "image/png", "front.PNG"), (b"b", None, None)], folder="live-grouping"
    )

    assert len(urls) == 2
    first_key = urls[0].split("/listings/", 1)[1]
    assert urls[0].startswith("https://s3.example.test/listings/live-grouping/")
    assert first_key.endswith(".png")
    assert s3.objects[first_key] == {"bucket": "listings", "body": b"a", "ContentType": "image/png"}

    second_key = urls[1].split("/listings/", 1)[1]
    assert second_key.startswith("live-grouping/")
    assert "ContentType" not in s3.objects[second_key]


def test_s3_public_base_url_wins():
    storage = S3Storage(bucket="listings", public_base_url="https://cdn.example.test/", client=FakeS3())
    url = storage.save_bytes(b"x", content_type="image/jpeg", key_hint="properties/a.jpg")
    assert url.startswith("https://cdn.example.test/properties/")
    assert url.endswith(".jpg")


def test_s3_missing_bucket_is_config_error():
    with pytest.raises(ConfigError):
        S3Storage(bucket="gone", client=FakeS3(bucket_exists=False))


def test_build_storage_defaults_to_local(tmp_path):
    cfg = settings.model_copy(update={"STORAGE_BACKEND": "local", "MEDIA_DIR": str(tmp_path / "m")})
    assert isinstance(build_storage(cfg), LocalStorage)


@pytest.mark.parametrize("update", [
    {"STORAGE_BACKEND": "s3", "S3_BUCKET": None, "S3_ACCESS_KEY_ID": "k", "S3_SECRET_ACCESS_KEY": "s"},
    {"STORAGE_BACKEND": "s3", "S3_BUCKET": "b", "S3_ACCESS_KEY_ID": None, "S3_SECRET_ACCESS_KEY": "s"},
    {"STORAGE_BACKEND": "ftp"},
])
def test_build_storage_rejects_bad_config(update):
    with pytest.raises(ConfigError):
        build_storage(settings.model_copy(update=update))


def test_local_storage_writes_file(tmp_path):
    storage = LocalStorage(str(tmp_path), "/media/")
    url = storage.save_bytes(b"img", key_hint="properties/plan.webp")
    name = url.rsplit("/", 1)[1]
    assert url == f"/media/{name}"
    assert name.endswith(".webp")
    assert (tmp_path / name).read_bytes() == b"img"
