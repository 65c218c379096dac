import hashlib
import io
import logging
import os
import re
import time
from typing import Optional, Tuple

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from PIL import Image, ImageOps, UnidentifiedImageError

from contacts_api import config

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_EXTENSIONS = {"JPEG": "jpg", "MPO": "jpg", "TIFF": "tif"}


class InvalidImageError(Exception):
    pass


class AvatarStorageError(Exception):
    pass


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?s=200&r=pg&d=mm"


def normalize_image(data: bytes, size: Optional[int] = None) -> Tuple[bytes, str]:
    """
    Обрізає та масштабує зображення до квадрата ``size`` x ``size``.

    :param data: Вміст завантаженого файлу.
    :param size: Сторона квадрата, за замовчуванням ``AVATAR_SIZE``.
    :return: Закодоване зображення та його формат (вихідний, або PNG, якщо формат невідомий).
    :raises InvalidImageError: Якщо Pillow не може прочитати файл, він завеликий
        або формат не підтримує запис.
    """
    size = size or config.AVATAR_SIZE
    try:
        image = Image.open(io.BytesIO(data))
        image_format = image.format or "PNG"
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise InvalidImageError(str(exc)) from exc
    resized = ImageOps.fit(image, (size, size))
    buffer = io.BytesIO()
    try:
        resized.save(buffer, format=image_format)
    except (KeyError, ValueError, OSError) as exc:
        raise InvalidImageError(f"cannot write {image_format} image: {exc}") from exc
    return buffer.getvalue(), image_format


def avatar_filename(user_id: int, original_filename: str, image_format: str) -> str:
    stem = os.path.splitext(os.path.basename(original_filename or ""))[0]
    name = _UNSAFE_CHARS.sub("_", stem) or "avatar"
    extension = _EXTENSIONS.get(image_format.upper(), image_format.lower())
    return f"{user_id}_{int(time.time() * 1000)}_{name}.{extension}"


def _store_local(data: bytes, filename: str) -> str:
    path = os.path.join(config.AVATARS_DIR, filename)
    try:
        os.makedirs(config.AVATARS_DIR, exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise AvatarStorageError(str(exc)) from exc
    return f"/avatars/{filename}"


def _store_cloudinary(data: bytes, filename: str) -> str:
    cloudinary.config(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
    )
    public_id = os.path.splitext(filename)[0]
    try:
        result = cloudinary.uploader.upload(io.BytesIO(data), public_id=public_id, folder="avatars", overwrite=True)
    except cloudinary.exceptions.Error as exc:
        raise AvatarStorageError(str(exc)) from exc
    return result["secure_url"]


def store_avatar(data: bytes, filename: str) -> str:
    """
    Зберігає нормалізований аватар і повертає його публічний URL.

    Якщо налаштовано Cloudinary, файл завантажується туди, інакше пишеться
    у ``AVATARS_DIR``, який роздається як статика за шляхом ``/avatars``.

    :raises AvatarStorageError: Якщо файл не вдалося зберегти.
    """
    if config.cloudinary_configured():
        url = _store_cloudinary(data, filename)
    else:
        url = _store_local(data, filename)
    logger.info("Stored avatar %s", url)
    return url
