"""S3 image host for restaurant photos."""

from datetime import datetime
import logging
import mimetypes
from typing import Any, Mapping, Optional, Protocol
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ImageUploadError(Exception):
    """Raised when an image could not be stored by the image host."""


class ImageHost(Protocol):
    """Anything that can take image bytes and return a public URL."""

    def upload(self, data: bytes, content_type: Optional[str] = None) -> str: ...


class S3ImageHost:
    """Upload restaurant images to an S3 bucket and hand back their public URL."""

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        prefix: str = "restaurants/",
        public_base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if not bucket_name:
            raise ValueError("S3 bucket name is not configured")
        self.bucket_name = bucket_name
        self.region = region
        self.prefix = prefix
        self.public_base_url = (public_base_url or f"https://{bucket_name}.s3.{region}.amazonaws.com").rstrip("/")
        self.s3_client = client if client is not None else boto3.client("s3", region_name=region)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "S3ImageHost":
        """Build a host from Flask configuration."""
        return cls(
            bucket_name=config.get("IMAGE_BUCKET") or "",
            region=config.get("IMAGE_REGION", "us-east-1"),
            prefix=config.get("IMAGE_PREFIX", "restaurants/"),
            public_base_url=config.get("IMAGE_PUBLIC_BASE_URL"),
        )

    def _generate_key(self, content_type: str) -> str:
        """Generate a unique object key for an upload."""
        extension = mimetypes.guess_extension(content_type) or ""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        unique_id = uuid.uuid4().hex[:12]
        return f"{self.prefix}{timestamp}_{unique_id}{extension}"

    def upload(self, data: bytes, content_type: Optional[str] = None) -> str:
        """Upload image bytes.

        Args:
            data: Raw image content
            content_type: MIME type of the image, if known

        Returns:
            Public URL of the stored image

        Raises:
            ImageUploadError: If the image is empty or S3 rejects the upload
        """
        if not data:
            raise ImageUploadError("Image is empty")

        content_type = content_type or DEFAULT_CONTENT_TYPE
        key = self._generate_key(content_type)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={"uploaded_at": datetime.now().isoformat()},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload image to S3: {str(e)}")
            raise ImageUploadError(f"Failed to upload image: {e}") from e

        logger.info(f"Image uploaded to S3: {key}")
        return f"{self.public_base_url}/{key}"


def get_image_host(config: Mapping[str, Any]) -> Optional[S3ImageHost]:
    """Get an image host if an image bucket is configured."""
    if not config.get("IMAGE_BUCKET"):
        return None
    try:
        return S3ImageHost.from_config(config)
    except Exception as e:
        logger.error(f"Failed to initialize S3 image host: {str(e)}")
        return None
