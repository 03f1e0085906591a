"""Avatar upload validation and normalisation.

Uploads are checked by filename extension and size before the route body
runs; accepted images are cover-fitted to a fixed square and stored as PNG.
"""

import io
import logging
import re
from dataclasses import dataclass

from fastapi import File, UploadFile
from PIL import Image, ImageOps

from task_manager.core import config
from task_manager.errors import InvalidImageError

logger = logging.getLogger(__name__)

MISSING_FILE_MESSAGE = 'Please upload an avatar image.'
INVALID_TYPE_MESSAGE = 'The file must either be a jpg, jpeg or png.'
TOO_LARGE_MESSAGE = 'File too large'
INVALID_IMAGE_MESSAGE = 'The uploaded file is not a valid image.'

_allowed_filename = re.compile(config.AVATAR_ALLOWED_PATTERN)


@dataclass(frozen=True)
class AvatarUpload:
    content: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_avatar_upload(filename: str | None, content: bytes | None) -> AvatarUpload:
    if not filename or content is None:
        return AvatarUpload(error=MISSING_FILE_MESSAGE)

    if not _allowed_filename.search(filename):
        return AvatarUpload(error=INVALID_TYPE_MESSAGE)

    if len(content) > config.AVATAR_MAX_BYTES:
        return AvatarUpload(error=TOO_LARGE_MESSAGE)

    return AvatarUpload(content=content)


async def read_avatar_upload(avatar: UploadFile | None = File(None)) -> AvatarUpload:
    if avatar is None:
        return validate_avatar_upload(None, None)

    # One byte past the limit is enough to tell an oversized upload apart.
    content = await avatar.read(config.AVATAR_MAX_BYTES + 1)
    result = validate_avatar_upload(avatar.filename, content)
    if not result.ok:
        logger.info('Rejected avatar upload %r: %s', avatar.filename, result.error)
    return result


def normalize_avatar(content: bytes) -> bytes:
    try:
        with Image.open(io.BytesIO(content)) as image:
            image.load()
            fitted = ImageOps.fit(image.convert('RGBA'), config.AVATAR_SIZE)
    except (OSError, Image.DecompressionBombError) as exc:
        raise InvalidImageError(INVALID_IMAGE_MESSAGE) from exc

    buffer = io.BytesIO()
    fitted.save(buffer, format='PNG')
    return buffer.getvalue()
