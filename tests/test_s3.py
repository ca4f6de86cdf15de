from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from quickblog.core.config import settings
from quickblog.services import s3
from quickblog.services.s3 import S3Service


@pytest.fixture
def s3_client(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(s3.boto3, "client", lambda *args, **kwargs: client)
    return client


def test_upload_blog_image_returns_public_url(s3_client):
    url = S3Service(bucket_name="covers").upload_blog_image(b"\x89PNG", "Cover.PNG", "image/png")

    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "covers"
    assert kwargs["ContentType"] == "image/png"
    assert kwargs["Key"].startswith("blogs/")
    assert kwargs["Key"].endswith(".png")
    assert url == f"{settings.S3_BASE_URL}/{kwargs['Key']}"


def test_upload_failure_returns_none(s3_client):
    s3_client.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    assert S3Service().upload_blog_image(b"data", "cover.jpg", "image/jpeg") is None
