import io
import os
import pytest
from moto import mock_aws
from fastapi.testclient import TestClient
from PIL import Image

# Dummy AWS credentials for moto, set BEFORE importing app modules
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["S3_BUCKET"] = "image-gallery-bucket"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)
os.environ.pop("API_KEY", None)

from gallery.main import create_app
from gallery.settings import Settings

API_KEY = "test-api-key"

PIL_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
}


def make_image_bytes(content_type="image/png", color="red"):
    """Generate a small valid image in-memory."""
    img = Image.new("RGB", (10, 10), color=color)
    buf = io.BytesIO()
    img.save(buf, format=PIL_FORMATS[content_type])
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def png_bytes():
    return make_image_bytes("image/png")


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture
def test_settings():
    return Settings(
        api_key=API_KEY,
        storage_backend="s3",
        s3_bucket="image-gallery-bucket",
        aws_region="us-east-1",
        aws_endpoint_url=None,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture(scope="function")
def test_app(aws_credentials, test_settings):
    with mock_aws():
        # The bucket is created by S3ObjectStore on start-up
        app = create_app(test_settings)
        yield app


@pytest.fixture(scope="function")
def test_client(test_app):
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"x-api-key": API_KEY}
