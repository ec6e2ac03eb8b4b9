"""
Object storage helpers.

Uploads go through Django's default storage backend under a per-user path
and return the stored name, which ImageFields accept directly, plus a URL
that can be rendered right away.
"""

import logging
import os
import time

from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Raised when a file could not be written to storage."""


def _millis():
    return int(time.time() * 1000)


def listing_image_path(owner_id, filename):
    return f"products/{owner_id}/{_millis()}_{get_valid_filename(os.path.basename(filename))}"


def avatar_path(owner_id, filename):
    _, ext = os.path.splitext(filename)
    return f"users/{owner_id}/profile_{_millis()}{ext.lower()}"


def upload(path, uploaded_file):
    """Store ``uploaded_file`` at ``path``; returns ``(stored_name, url)``."""
    try:
        stored_name = default_storage.save(path, uploaded_file)
    except Exception as e:
        logger.error(f"Upload to {path} failed: {str(e)}", exc_info=True)
        raise UploadError(path) from e
    return stored_name, default_storage.url(stored_name)


def upload_listing_images(owner_id, images):
    """
    Upload listing photos one after another, in the order given.

    Stops at the first failure; files stored before it are left in place
    and reported in the log.
    """
    stored = []
    for image in images:
        try:
            stored_name, _ = upload(listing_image_path(owner_id, image.name), image)
        except UploadError:
            if stored:
                logger.warning(
                    f"Listing upload for user {owner_id} aborted; orphaned files: {', '.join(stored)}"
                )
            raise
        stored.append(stored_name)
    return stored
