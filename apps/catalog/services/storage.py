"""
Image uploads to object storage.

Files are normalized with an imagekit spec (same sizing the storefront
expects), written through Django's `default_storage` under a generated
unique name, and returned as public URLs.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.crypto import get_random_string
from imagekit import ImageSpec
from imagekit.processors import ResizeToFit

from apps.catalog.exceptions import ImageUploadError

logger = logging.getLogger(__name__)


class ProductImageSpec(ImageSpec):
    processors = [ResizeToFit(1200, 1200, upscale=False)]
    format = 'JPEG'
    options = {'quality': 85}


def _generate_path():
    name = f"{int(time.time() * 1000)}-{get_random_string(13).lower()}.jpg"
    return f"{settings.CATALOG_IMAGE_UPLOAD_DIR.rstrip('/')}/{name}"


def upload_product_image(file) -> str:
    """
    Store one image and return its public URL.

    Raises:
        ImageUploadError: the file is not a readable image or the storage
            backend refused it.
    """
    try:
        processed = ProductImageSpec(source=file).generate()
        path = default_storage.save(_generate_path(), ContentFile(processed.read()))
        url = default_storage.url(path)
    except Exception as exc:
        logger.error(
            "Image upload failed for %s: %s",
            getattr(file, 'name', '<file>'), exc, exc_info=True
        )
        raise ImageUploadError() from exc

    logger.info("Uploaded image %s -> %s", getattr(file, 'name', '<file>'), path)
    return url


def upload_many(files: Mapping[str, object]) -> Dict[str, str]:
    """
    Upload several files concurrently and wait for all of them.

    Returns:
        Dict of {upload_key: url}

    Raises:
        ImageUploadError: if any single upload fails. Callers write nothing
            to the catalog in that case.
    """
    if not files:
        return {}

    workers = max(1, min(settings.CATALOG_UPLOAD_WORKERS, len(files)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            key: pool.submit(upload_product_image, file)
            for key, file in files.items()
        }
        # result() re-raises the first failure in key order
        return {key: future.result() for key, future in futures.items()}
