from fastapi import APIRouter, HTTPException, Depends, Query
from agenda.schemas.sch_availability import (
    AvailabilityRuleCreate,
    AvailabilityRuleWire,
    RuleCalendarResponse,
)
from agenda.services.svc_api_client import ApiClient
from agenda.services.svc_availability import AvailabilityService
from agenda.services.svc_slot_cache import SlotCache
from agenda.dependencies.dep_auth import get_current_user
from agenda.dependencies.dep_clients import get_api_client, get_slot_cache
from agenda.models.mod_auth import AuthUser, UserRole
from typing import List, Optional

router = APIRouter(
    prefix="/professionals",
    tags=["Availability"],
    responses={404: {"description": "Not found"}},
)

def _check_can_manage(current_user: AuthUser, professional_id: str):
    if not current_user.can_manage_rules_of(professional_id):
        raise HTTPException(
            status_code=403,
            detail="You can only manage your own availability"
        )

@router.get("/{professional_id}/availability", response_model=List[AvailabilityRuleWire])
def get_availability(
    professional_id: str,
    client: ApiClient = Depends(get_api_client),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Get every availability rule of a professional, weekly and specific-date,
    including inactive ones so they can still be edited.
    """
    rules = AvailabilityService.get_rules(client, professional_id)
    return [AvailabilityRuleWire.from_rule(rule) for rule in rules]

@router.get("/{professional_id}/availability/calendar", response_model=RuleCalendarResponse)
def get_availability_calendar(
    professional_id: str,
    client: ApiClient = Depends(get_api_client),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Get the rules grouped for calendar display.

    - `weekly`: rules by day of week, Monday first
    - `specificDates`: rules by yyyy-MM-dd, ascending
    """
    return AvailabilityService.get_rule_calendar(client, professional_id)

@router.put("/{professional_id}/availability", response_model=List[AvailabilityRuleWire])
def replace_availability(
    professional_id: str,
    rules: List[AvailabilityRuleCreate],
    client: ApiClient = Depends(get_api_client),
    cache: SlotCache = Depends(get_slot_cache),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Replace the entire availability configuration of a professional.

    - Each rule has either a dayOfWeek or a specificDate, never both
    - startTime must be before endTime and the slot must fit in the window
    - Owners, staff and admins can edit any professional; professionals only their own
    """
    _check_can_manage(current_user, professional_id)
    saved = AvailabilityService.replace_rules(client, cache, professional_id, rules)
    return [AvailabilityRuleWire.from_rule(rule) for rule in saved]

@router.post("/{professional_id}/availability", response_model=AvailabilityRuleWire)
def add_availability(
    professional_id: str,
    rule: AvailabilityRuleCreate,
    client: ApiClient = Depends(get_api_client),
    cache: SlotCache = Depends(get_slot_cache),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Add a single weekly or specific-date rule.

    A specific-date rule overrides the weekly schedule for that date; an
    inactive specific-date rule closes the date.
    """
    _check_can_manage(current_user, professional_id)
    created = AvailabilityService.add_rule(client, cache, professional_id, rule)
    return AvailabilityRuleWire.from_rule(created)

@router.delete("/availability/{rule_id}", status_code=204)
def delete_availability(
    rule_id: str,
    professional_id: Optional[str] = Query(default=None, alias="professionalId",
                                           description="Owner of the rule, used to refresh cached slots"),
    client: ApiClient = Depends(get_api_client),
    cache: SlotCache = Depends(get_slot_cache),
    current_user: AuthUser = Depends(get_current_user)
):
    """
    Delete a single availability rule.

    Returns:
    - 204: Successfully deleted
    - 404: Rule not found upstream
    """
    if current_user.role == UserRole.PROFESSIONAL:
        if professional_id is None:
            professional_id = current_user.professional_id
        _check_can_manage(current_user, professional_id)
    AvailabilityService.delete_rule(client, cache, rule_id, professional_id)
