"""Forward uploaded room photos to Cloudinary and hand back their URLs."""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, List

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from config import Config


logger = logging.getLogger(__name__)


class UploadError(Exception):
    pass


def configure(config=Config) -> None:
    cloudinary.config(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        secure=True,
    )


def save_upload(upload: UploadFile, tmp_dir: str) -> Path:
    """Spool an incoming file to a uniquely named path under ``tmp_dir``."""
    Path(tmp_dir).mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix
    dest = Path(tmp_dir) / f"{uuid.uuid4().hex}{suffix}"
    with open(dest, "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return dest


def upload_file(local_path, folder: str = Config.CLOUDINARY_FOLDER) -> str:
    """Upload ``local_path`` and return its secure URL.

    The local file is removed whether or not the upload succeeds.
    """
    try:
        result = cloudinary.uploader.upload(str(local_path), folder=folder)
    except Exception as e:
        raise UploadError(f"Cloudinary upload failed: {e}") from e
    finally:
        try:
            os.remove(local_path)
        except OSError:
            logger.warning("Could not remove temp upload %s", local_path)

    url = (result or {}).get("secure_url")
    if not url:
        raise UploadError("Cloudinary upload failed: no URL returned")
    return url


def forward_uploads(
    uploads: Iterable[UploadFile],
    tmp_dir: str = Config.TMP_UPLOAD_DIR,
    folder: str = Config.CLOUDINARY_FOLDER,
) -> List[str]:
    urls = []
    for upload in uploads:
        local_path = save_upload(upload, tmp_dir)
        urls.append(upload_file(local_path, folder))
        logger.info("Uploaded %s", upload.filename)
    return urls
