"""
Delivery photos in Django's default storage.

Files live at ``deliveries/<delivery_id>/<timestamp>.<ext>``; the timestamp is
milliseconds since the epoch so names sort by upload time.
"""
import logging
import os
import time

from django.core.files.storage import default_storage

from feedtrade.core.exceptions import InvalidOperation

logger = logging.getLogger(__name__)

PHOTO_ROOT = 'deliveries'
DEFAULT_EXTENSION = 'jpg'
ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'webp', 'heic'}


def photo_folder(delivery_id):
    return f"{PHOTO_ROOT}/{delivery_id}"


def _extension(filename):
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower()
    return ext or DEFAULT_EXTENSION


def list_photos(delivery_id):
    """[{'name', 'url'}] newest first; empty when the folder does not exist"""
    folder = photo_folder(delivery_id)
    try:
        _, files = default_storage.listdir(folder)
    except FileNotFoundError:
        return []
    names = sorted(files, reverse=True)
    return [{'name': name, 'url': default_storage.url(f"{folder}/{name}")} for name in names]


def upload_photo(delivery_id, uploaded_file):
    ext = _extension(uploaded_file.name)
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidOperation(f"Unsupported photo type: .{ext}")
    name = f"{int(time.time() * 1000)}.{ext}"
    path = default_storage.save(f"{photo_folder(delivery_id)}/{name}", uploaded_file)
    logger.info(f"Stored delivery photo {path}")
    return {'name': os.path.basename(path), 'url': default_storage.url(path)}


def delete_photo(delivery_id, name):
    if not name or '/' in name or '\\' in name or name.startswith('.'):
        raise InvalidOperation(f"Invalid photo name: {name}")
    path = f"{photo_folder(delivery_id)}/{name}"
    if not default_storage.exists(path):
        return False
    default_storage.delete(path)
    logger.info(f"Deleted delivery photo {path}")
    return True
