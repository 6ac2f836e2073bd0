"""Dental model storage: spool uploads to disk, forward to Supabase Storage, sign URLs."""

import logging
import os
import tempfile
from pathlib import Path

from fastapi import UploadFile
from supabase import Client

from dental_api.config.settings import Settings
from dental_api.db.models import DENTAL_MODELS
from dental_api.utils.errors import NotFoundError
from dental_api.utils.validators import first_or_none, utcnow_iso

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
GLTF_CONTENT_TYPE = "model/gltf+json"
BIN_CONTENT_TYPE = "application/octet-stream"


def model_key(record_id: str, extension: str) -> str:
    return f"models/DentalModel_{record_id}.{extension}"


async def _forward(db: Client, settings: Settings, upload: UploadFile, key: str, content_type: str) -> None:
    """Copy the upload to a temp file, push it to the bucket, and always remove the temp file."""
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=upload_dir, prefix="upload_")
    tmp_path = Path(name)
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                out.write(chunk)
        db.storage.from_(settings.MODEL_BUCKET).upload(
            key,
            tmp_path.read_bytes(),
            {"content-type": content_type, "upsert": "true"},
        )
        logger.info("Uploaded %s to bucket %s", key, settings.MODEL_BUCKET)
    finally:
        tmp_path.unlink(missing_ok=True)


async def store_before_model(
    db: Client,
    settings: Settings,
    record_id: str,
    gltf: UploadFile,
    bin_file: UploadFile | None = None,
) -> dict:
    gltf_path = model_key(record_id, "gltf")
    await _forward(db, settings, gltf, gltf_path, GLTF_CONTENT_TYPE)

    bin_path = None
    if bin_file is not None:
        bin_path = model_key(record_id, "bin")
        await _forward(db, settings, bin_file, bin_path, BIN_CONTENT_TYPE)

    db.table(DENTAL_MODELS).upsert({
        "record_id": record_id,
        "before_model_url": gltf_path,
        "before_model_bin_url": bin_path,
        "before_uploaded_at": utcnow_iso(),
    }, on_conflict="record_id").execute()

    return {"record_id": record_id, "gltfPath": gltf_path, "binPath": bin_path}


def _signed_url(db: Client, settings: Settings, path: str | None) -> str | None:
    if not path:
        return None
    signed = db.storage.from_(settings.MODEL_BUCKET).create_signed_url(path, settings.SIGNED_URL_EXPIRE_SECONDS)
    return signed.get("signedUrl") or signed.get("signedURL")


def get_before_model_urls(db: Client, settings: Settings, record_id: str) -> dict:
    result = db.table(DENTAL_MODELS).select("*").eq("record_id", record_id).execute()
    model = first_or_none(result.data)
    if not model:
        raise NotFoundError("Model not found")

    return {
        "record_id": record_id,
        "gltfUrl": _signed_url(db, settings, model.get("before_model_url")),
        "binUrl": _signed_url(db, settings, model.get("before_model_bin_url")),
    }
