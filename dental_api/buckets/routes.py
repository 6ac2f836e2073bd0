"""3D dental model upload and retrieval endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from supabase import Client

from dental_api.auth.dependencies import CurrentUser, get_current_user, require_role
from dental_api.buckets.service import get_before_model_urls, store_before_model
from dental_api.config.settings import Settings, get_settings
from dental_api.db.client import get_supabase
from dental_api.db.models import ROLE_ADMIN, ROLE_DENTIST
from dental_api.utils.errors import ValidationError

router = APIRouter(prefix="/buckets", tags=["Models"])


@router.post(
    "/upload/beforemodel",
    summary="Upload a before-treatment model",
    description="Multipart form: record_id, gltf (required), bin (optional).",
)
async def upload_before_model(
    record_id: str | None = Form(None),
    gltf: UploadFile | None = File(None),
    bin: UploadFile | None = File(None),
    user: CurrentUser = Depends(require_role(ROLE_ADMIN, ROLE_DENTIST)),
    db: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    if not record_id or not record_id.strip():
        raise ValidationError("Missing record_id")
    if gltf is None:
        raise ValidationError("Missing gltf file")

    stored = await store_before_model(db, settings, record_id.strip(), gltf, bin)
    return {"success": True, "message": "Model uploaded successfully", **stored}


@router.get("/model/{record_id}", summary="Signed URLs for a before-treatment model")
async def get_model(
    record_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
):
    return get_before_model_urls(db, settings, record_id)
