"""Image hosting for restaurant photos."""

from .s3_host import ImageHost, ImageUploadError, S3ImageHost, get_image_host

__all__ = ["ImageHost", "ImageUploadError", "S3ImageHost", "get_image_host"]
