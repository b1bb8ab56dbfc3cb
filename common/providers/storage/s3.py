import asyncio
from typing import Optional

import boto3
from botocore.config import Config

from common.core.config import settings
from .interface import StorageInterface
from common.core.otel_axiom_exporter import trace_span, get_logger

logger = get_logger(__name__)


class S3Storage(StorageInterface):
    """S3 API storage. Points at Cloudflare R2 when ``s3_endpoint_url`` is set."""

    def __init__(self, client=None):
        if client is None:
            client_config = {
                "service_name": "s3",
                "aws_access_key_id": settings.aws_access_key_id,
                "aws_secret_access_key": settings.aws_secret_access_key,
                "region_name": settings.aws_region,
            }
            if settings.s3_endpoint_url:
                client_config["endpoint_url"] = settings.s3_endpoint_url
                client_config["config"] = Config(
                    signature_version="s3v4", s3={"addressing_style": "path"}
                )
            client = boto3.client(**client_config)
        self.client = client

    @trace_span
    async def upload(
        self, bucket: str, key: str, data: bytes, content_type: Optional[str] = None
    ) -> bool:
        extra_args = {"Body": data, "Bucket": bucket, "Key": key}
        if content_type:
            extra_args["ContentType"] = content_type
        try:
            await asyncio.to_thread(self.client.put_object, **extra_args)
            logger.info(
                f"Uploaded {key} to {bucket}",
                extra={"bucket": bucket, "key": key, "size_bytes": len(data)},
            )
            return True
        except Exception as e:
            logger.error(f"Failed to upload {key}: {e}", extra={"bucket": bucket})
            return False

    @trace_span
    async def delete(self, bucket: str, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=bucket, Key=key)
            logger.info(f"Deleted {key} from {bucket}")
            return True
        except Exception as e:
            logger.error(f"Failed to delete {key}: {e}", extra={"bucket": bucket})
            return False

    @trace_span
    async def issue_signed_url(self, bucket: str, key: str, ttl: int) -> Optional[str]:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except Exception as e:
            logger.error(f"Failed to generate signed URL for {key}: {e}")
            return None
