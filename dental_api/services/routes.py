"""Service and service-category endpoints. Reads are public, writes are admin only."""

from uuid import UUID

from fastapi import APIRouter, Depends
from supabase import Client

from dental_api.auth.dependencies import CurrentUser, require_admin
from dental_api.db.client import get_supabase
from dental_api.services import service as svc
from dental_api.services.schemas import CategoryRequest, CreateServiceRequest, UpdateServiceRequest

router = APIRouter(prefix="/services", tags=["Services"])


# --- Categories (must precede /{service_id}) ---

@router.get("/categories", summary="List categories")
async def list_categories(db: Client = Depends(get_supabase)):
    return {"categories": svc.list_categories(db)}


@router.get("/categories/{category_id}", summary="Get a category", description="Includes soft-deleted categories.")
async def get_category(category_id: UUID, db: Client = Depends(get_supabase)):
    return {"category": svc.get_category(db, str(category_id))}


@router.post("/categories", status_code=201, summary="Add a category")
async def add_category(
    body: CategoryRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    category = svc.create_category(db, admin.id, body.name)
    return {"message": "Category added", "category": category}


@router.put("/categories/{category_id}", summary="Rename a category")
async def edit_category(
    category_id: UUID,
    body: CategoryRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    category = svc.update_category(db, admin.id, str(category_id), body.name)
    return {"message": "Category updated", "category": category}


@router.delete("/categories/{category_id}", summary="Soft delete a category")
async def delete_category(
    category_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    category = svc.delete_category(db, admin.id, str(category_id))
    return {"message": "Category soft deleted", "category": category}


# --- Services ---

@router.get("", summary="List services")
async def list_services(db: Client = Depends(get_supabase)):
    return {"services": svc.list_services(db)}


@router.get("/grouped", summary="Services grouped by category")
async def grouped(db: Client = Depends(get_supabase)):
    return {"categories": svc.grouped_services(db)}


@router.get("/{service_id}", summary="Get a service", description="Includes soft-deleted services.")
async def get_service(service_id: UUID, db: Client = Depends(get_supabase)):
    return {"service": svc.get_service(db, str(service_id))}


@router.post("", status_code=201, summary="Add a service")
async def add_service(
    body: CreateServiceRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    service = svc.create_service(db, admin.id, body.model_dump(mode="json"))
    return {"message": "Service added", "service": service}


@router.put("/{service_id}", summary="Edit a service", description="Send category_id: null to remove the category.")
async def edit_service(
    service_id: UUID,
    body: UpdateServiceRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    service = svc.update_service(db, admin.id, str(service_id), body.model_dump(mode="json", exclude_unset=True))
    return {"message": "Service updated", "service": service}


@router.delete("/{service_id}", summary="Soft delete a service")
async def delete_service(
    service_id: UUID,
    admin: CurrentUser = Depends(require_admin),
    db: Client = Depends(get_supabase),
):
    service = svc.delete_service(db, admin.id, str(service_id))
    return {"message": "Service soft deleted", "service": service}
