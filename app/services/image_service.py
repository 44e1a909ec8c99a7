from fastapi import HTTPException, UploadFile, status
from typing import Optional
import hashlib
import logging
import time
import httpx

from ..core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/heic",
    "image/heif",
    "image/avif",
}

class ImageUploader:
    """Forwards profile images to Cloudinary and returns the hosted URL."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_SECRET_KEY
        self.transport = transport

    @property
    def upload_url(self) -> str:
        return f"{settings.CLOUDINARY_UPLOAD_URL}/{self.cloud_name}/image/upload"

    def sign(self, params: dict) -> str:
        """Cloudinary signature: sha1 of sorted ``k=v`` pairs joined by ``&`` plus the secret."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.api_secret}".encode()).hexdigest()

    async def upload(self, image: UploadFile) -> str:
        if image.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image uploads are allowed"
            )

        if not (self.cloud_name and self.api_key and self.api_secret):
            logger.error("Cloudinary credentials are not configured")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Image upload failed"
            )

        params = {"timestamp": str(int(time.time()))}
        data = {
            **params,
            "api_key": self.api_key,
            "signature": self.sign(params),
        }
        content = await image.read()

        async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
            try:
                response = await client.post(
                    self.upload_url,
                    data=data,
                    files={"file": (image.filename or "image", content, image.content_type)},
                )
            except httpx.HTTPError as e:
                logger.error(f"Image upload request failed: {str(e)}")
                raise HTTPException(
                    status_code=status.HTTP_502_BAD_GATEWAY,
                    detail="Image upload failed"
                )

        if response.status_code != 200:
            logger.error(f"Image host rejected upload: {response.status_code} {response.text}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Image upload failed"
            )

        try:
            return response.json()["secure_url"]
        except (ValueError, KeyError, TypeError):
            logger.error(f"Image host returned an unexpected body: {response.text}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Image upload failed"
            )

def get_image_uploader() -> ImageUploader:
    """Image uploader dependency."""
    return ImageUploader()
