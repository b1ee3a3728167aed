from fastapi import Request

from recovery_service.adapter.services.bootstrap import RecoveryServices


async def get_recovery_services(request: Request) -> RecoveryServices:
    """Services wired once at startup by the app lifespan"""
    return request.app.state.services


async def get_app_config(request: Request):
    return request.app.state.config
