from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from recovery_service.adapter.services.bootstrap import RecoveryServices
from recovery_service.depends import get_recovery_services

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    store_backend: str
    transports: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(services: RecoveryServices = Depends(get_recovery_services)):
    """Report which credential store and transports were wired at startup"""
    return HealthResponse(
        status="ok",
        store_backend=services.store.backend,
        transports=services.dispatcher.transport_names(),
    )
