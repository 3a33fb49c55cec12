import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from gallery.exceptions import BlobNotFoundError, StorageError
from gallery.storage.memory import InMemoryObjectStore
from gallery.storage.s3 import S3ObjectStore


@pytest.fixture
def s3_store(aws_credentials, test_settings):
    with mock_aws():
        yield S3ObjectStore(test_settings)


@pytest.fixture(params=["s3", "memory"])
def store(request):
    if request.param == "memory":
        return InMemoryObjectStore()
    return request.getfixturevalue("s3_store")


def test_put_get_delete(store):
    store.put("images/1-a.png", b"abc", "image/png")
    assert store.get("images/1-a.png") == b"abc"
    store.delete("images/1-a.png")
    with pytest.raises(BlobNotFoundError):
        store.get("images/1-a.png")


def test_delete_missing_key_is_not_an_error(store):
    store.delete("images/never-written.png")


def test_list_by_prefix(store):
    store.put("images/1-a.png", b"a", "image/png")
    store.put("images/2-b.png", b"b", "image/png")
    store.put("thumbs/1-a.png", b"c", "image/png")
    assert sorted(store.list("images/")) == ["images/1-a.png", "images/2-b.png"]
    assert len(store.list()) == 3


def test_s3_store_creates_missing_bucket(aws_credentials, test_settings):
    with mock_aws():
        S3ObjectStore(test_settings)
        client = boto3.client("s3", region_name="us-east-1")
        client.head_bucket(Bucket=test_settings.s3_bucket)


def test_s3_store_sets_content_type(s3_store):
    s3_store.put("images/1-a.png", b"abc", "image/png")
    head = s3_store.client.head_object(Bucket=s3_store.bucket, Key="images/1-a.png")
    assert head["ContentType"] == "image/png"


def test_s3_put_failure_raises_storage_error(s3_store, mocker):
    mocker.patch.object(
        s3_store.client,
        "put_object",
        side_effect=ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"),
    )
    with pytest.raises(StorageError) as excinfo:
        s3_store.put("images/1-a.png", b"abc", "image/png")
    assert "AccessDenied" in excinfo.value.reason
