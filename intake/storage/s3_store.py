from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from intake.config.settings import Settings
from intake.ingestion.exceptions import ObjectNotFoundError, StorageError
from intake.storage.base import BaseObjectStore

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def build_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client, passing only the settings that are filled in."""
    client_kwargs: dict[str, Any] = {"service_name": "s3"}
    if settings.s3_endpoint_url:
        client_kwargs["endpoint_url"] = settings.s3_endpoint_url
    if settings.s3_access_key_id:
        client_kwargs["aws_access_key_id"] = settings.s3_access_key_id
    if settings.s3_secret_access_key:
        client_kwargs["aws_secret_access_key"] = settings.s3_secret_access_key
    if settings.s3_region:
        client_kwargs["region_name"] = settings.s3_region
    return boto3.client(**client_kwargs)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(BaseObjectStore):
    """Stores objects in a single S3 bucket under their storage key."""

    def __init__(self, bucket: str, client: Any) -> None:
        if not bucket:
            raise ValueError("S3 bucket is not configured")
        self._bucket = bucket
        self._client = client

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        params: dict[str, Any] = {"Bucket": self._bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self._client.put_object(**params)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                f"Failed to upload object to s3://{self._bucket}/{key}: {exc}"
            ) from exc

    def get(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                raise ObjectNotFoundError(f"Object not found: s3://{self._bucket}/{key}") from exc
            raise StorageError(
                f"Failed to read object s3://{self._bucket}/{key}: {exc}"
            ) from exc
        except BotoCoreError as exc:
            raise StorageError(
                f"Failed to read object s3://{self._bucket}/{key}: {exc}"
            ) from exc

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise StorageError(
                f"Failed to check object s3://{self._bucket}/{key}: {exc}"
            ) from exc
        except BotoCoreError as exc:
            raise StorageError(
                f"Failed to check object s3://{self._bucket}/{key}: {exc}"
            ) from exc
        return True
