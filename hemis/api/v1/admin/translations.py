"""
Translation management endpoints for Admin API.
Every change is broadcast, so all instances reload without a restart.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from typing import Optional
from uuid import UUID

from hemis.core.dependencies import get_translation_admin_service
from hemis.core.exceptions import ImmutableFieldError, TranslationNotFoundError
from hemis.core.security import TRANSLATION_MANAGE_PERMISSION, require_permission
from hemis.schemas.translation import TranslationCreate, TranslationUpdate, TranslationResponse, TranslationPage
from hemis.services.resource_bundle import format_properties
from hemis.services.translation_admin_service import TranslationAdminService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_permission(TRANSLATION_MANAGE_PERMISSION))])


@router.get("/translations", response_model=TranslationPage)
async def list_translations(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    search: Optional[str] = Query(None, description="Substring of key or default text"),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    return service.list_translations(page=page, size=size, search=search, category=category, active=active)


@router.get("/translations/stats")
async def get_statistics(service: TranslationAdminService = Depends(get_translation_admin_service)):
    """Counts per state and category"""
    return {"success": True, "data": service.get_statistics()}


@router.get("/translations/export/{lang}", response_class=PlainTextResponse)
async def export_properties(
    lang: str,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    """
    Export resolved messages for a language in properties format.
    Useful for regenerating the bundled fallback files.
    """
    return PlainTextResponse(
        content=format_properties(service.export_to_properties(lang)),
        headers={"Content-Disposition": f'attachment; filename="menu_{lang.split("-")[0]}.properties"'},
    )


@router.post("/translations/cache/clear")
async def clear_cache(service: TranslationAdminService = Depends(get_translation_admin_service)):
    """Clear local tier and broadcast a new version"""
    version = service.clear_cache()
    if version is None:
        raise HTTPException(status_code=503, detail="Cache unavailable - version not incremented")
    return {"success": True, "version": version, "message": "Translation cache cleared"}


@router.get("/translations/key/{message_key}", response_model=TranslationResponse)
async def get_translation_by_key(
    message_key: str,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    try:
        return service.get_translation_by_key(message_key)
    except TranslationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/translations/{message_id}", response_model=TranslationResponse)
async def get_translation(
    message_id: UUID,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    try:
        return service.get_translation(message_id)
    except TranslationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/translations", response_model=TranslationResponse, status_code=201)
async def create_translation(
    data: TranslationCreate,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    """
    Create a message with its translations.

    Raises:
        HTTPException 409: message_key already exists
    """
    try:
        return service.create_translation(data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/translations/{message_id}", response_model=TranslationResponse)
async def update_translation(
    message_id: UUID,
    data: TranslationUpdate,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    """
    Update default text, translations or active flag.
    message_key and category cannot be changed.
    """
    try:
        return service.update_translation(message_id, data)
    except TranslationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ImmutableFieldError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/translations/{message_id}/toggle", response_model=TranslationResponse)
async def toggle_active(
    message_id: UUID,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    try:
        return service.toggle_active(message_id)
    except TranslationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/translations/{message_id}")
async def delete_translation(
    message_id: UUID,
    service: TranslationAdminService = Depends(get_translation_admin_service)
):
    """Soft delete"""
    try:
        service.delete_translation(message_id)
    except TranslationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "id": str(message_id), "message": "Translation deleted"}
