from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ...clients.directus import DirectusCatalog
from ...services.store_factory import get_catalog


router = APIRouter()


@router.get("/api/services", response_model=List[Dict[str, Any]])
async def list_services(catalog: DirectusCatalog = Depends(get_catalog)):
    """Support services offered in the widget's service selector."""
    return await catalog.get_services()


@router.get("/api/services/{service_id}", response_model=Dict[str, Any])
async def get_service(service_id: str, catalog: DirectusCatalog = Depends(get_catalog)):
    service = await catalog.get_service(service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="service_not_found")
    return service


@router.get("/api/services/{service_id}/faqs", response_model=List[Dict[str, Any]])
async def list_faqs(service_id: str, catalog: DirectusCatalog = Depends(get_catalog)):
    faqs = await catalog.get_faqs(service_id)
    if faqs is None:
        raise HTTPException(status_code=404, detail="service_not_found")
    return faqs
