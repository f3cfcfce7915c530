from typing import Iterator
from fastapi import Depends
from agenda.dependencies.dep_auth import get_current_user
from agenda.models.mod_auth import AuthUser
from agenda.services.svc_api_client import ApiClient
from agenda.services.svc_slot_cache import SlotCache, slot_cache

def get_api_client(current_user: AuthUser = Depends(get_current_user)) -> Iterator[ApiClient]:
    """Upstream client acting on behalf of the authenticated user"""
    with ApiClient(token=current_user.token, tenant_id=current_user.tenant_id) as client:
        yield client

def get_public_api_client() -> Iterator[ApiClient]:
    """Upstream client for the public booking endpoints"""
    with ApiClient() as client:
        yield client

def get_slot_cache() -> SlotCache:
    return slot_cache
