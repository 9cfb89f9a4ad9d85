"""Image upload checks shared by the avatar and cover image routes."""

from fastapi import UploadFile

from socialnet.config import Settings
from socialnet.errors import ValidationError
from socialnet.storage import ALLOWED_IMAGE_TYPES


async def read_image(upload: UploadFile, settings: Settings) -> bytes:
    """Read an uploaded image, rejecting unknown types and oversized files."""
    if upload.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Unsupported image type",
            errors=[{"field": "file", "message": f"Allowed: {', '.join(ALLOWED_IMAGE_TYPES)}"}],
        )

    # one byte past the limit is enough to detect oversize
    data = await upload.read(settings.max_upload_bytes + 1)
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(f"File is larger than {settings.max_upload_bytes} bytes")
    return data
