import boto3
from typing import List
from botocore.exceptions import BotoCoreError, ClientError
from gallery.exceptions import BlobNotFoundError, StorageError
from gallery.settings import Settings
from gallery.storage.base import ObjectStore
import logging

log = logging.getLogger(__name__)

# -------------------------
# S3 Object Store
# -------------------------
class S3ObjectStore(ObjectStore):
    def __init__(self, settings: Settings):
        self.bucket = settings.s3_bucket
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.client = session.client("s3", **kwargs)
        log.info("Initialized S3 client for bucket %s", self.bucket)

        # Ensure bucket exists at initialization
        self.ensure_bucket()

    def ensure_bucket(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            log.debug("Bucket %s already exists", self.bucket)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchBucket"):
                self.client.create_bucket(Bucket=self.bucket)
                log.info("Created bucket %s", self.bucket)
            else:
                log.error("Failed to check/create bucket: %s", e)
                raise

    def put(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(reason=f"put_object {key} failed: {e}")
        log.debug("Uploaded s3://%s/%s", self.bucket, key)

    def get(self, key: str) -> bytes:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise BlobNotFoundError(key)
            raise StorageError(reason=f"get_object {key} failed: {e}")
        except BotoCoreError as e:
            raise StorageError(reason=f"get_object {key} failed: {e}")
        return resp["Body"].read()

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(reason=f"delete_object {key} failed: {e}")
        log.debug("Deleted s3://%s/%s", self.bucket, key)

    def list(self, prefix: str = "") -> List[str]:
        keys = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(reason=f"list_objects_v2 {prefix!r} failed: {e}")
        return keys

    def close(self):
        log.info("Closed S3 client")
