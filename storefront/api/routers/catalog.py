# storefront/api/routers/catalog.py
from typing import List

from fastapi import APIRouter, HTTPException, Query

from storefront.data.catalog import get_service, list_services
from storefront.domain.schemas import ServiceOut

router = APIRouter(prefix="/services", tags=["catalog"])


@router.get("", response_model=List[ServiceOut])
def get_services(category: str | None = Query(None)):
    return list_services(category)


@router.get("/{slug}", response_model=ServiceOut)
def get_service_by_slug(slug: str):
    service = get_service(slug)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return service
