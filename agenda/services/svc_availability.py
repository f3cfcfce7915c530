from typing import Any, Iterable, List, Optional
from agenda.models.mod_availability import AvailabilityRule
from agenda.schemas.sch_availability import (
    AvailabilityRuleCreate,
    AvailabilityRuleWire,
    RuleCalendarResponse,
)
from agenda.services.svc_api_client import ApiClient
from agenda.services.svc_slot_cache import SlotCache
from agenda.services.svc_slots import SlotEngine
from agenda.validators.val_availability import AvailabilityValidator
from agenda.configuration.monitor import log_event, log_exception, start_span

class AvailabilityService:
    @staticmethod
    def parse_rules(items: Iterable[Any], professional_id: Optional[str] = None) -> List[AvailabilityRule]:
        """Convert upstream rules to domain rules, skipping malformed ones"""
        rules = []
        for item in items:
            try:
                rules.append(AvailabilityRuleWire.model_validate(item).to_rule())
            except ValueError as e:
                log_exception(e, {
                    "operation": "parse_rule",
                    "professional_id": professional_id,
                    "rule_id": item.get("id") if isinstance(item, dict) else None
                })
        return rules

    @staticmethod
    def _to_wire(rule: AvailabilityRuleCreate) -> dict:
        return AvailabilityRuleWire.from_rule(rule.to_rule()).to_wire(include_id=False)

    @staticmethod
    def get_rules(client: ApiClient, professional_id: str) -> List[AvailabilityRule]:
        try:
            with start_span("get_rules", attributes={"professional_id": professional_id}):
                log_event("Retrieving availability rules", {"professional_id": professional_id})

                rules = AvailabilityService.parse_rules(client.fetch_rules(professional_id), professional_id)

                log_event("Availability rules retrieved", {
                    "professional_id": professional_id,
                    "count": len(rules)
                })
                return rules
        except Exception as e:
            log_exception(e, {"operation": "get_rules", "professional_id": professional_id})
            raise

    @staticmethod
    def get_public_rules(client: ApiClient, slug: str, professional_id: str) -> List[AvailabilityRule]:
        try:
            with start_span("get_public_rules", attributes={"slug": slug, "professional_id": professional_id}):
                items = client.fetch_public_rules(slug, professional_id)
                return AvailabilityService.parse_rules(items, professional_id)
        except Exception as e:
            log_exception(e, {"operation": "get_public_rules", "slug": slug, "professional_id": professional_id})
            raise

    @staticmethod
    def get_rule_calendar(client: ApiClient, professional_id: str) -> RuleCalendarResponse:
        """Rules grouped by weekday and by specific date for calendar display"""
        rules = AvailabilityService.get_rules(client, professional_id)
        weekly, specific = SlotEngine.group_rules(rules)
        return RuleCalendarResponse(
            weekly={day: [AvailabilityRuleWire.from_rule(r) for r in day_rules] for day, day_rules in weekly.items()},
            specific_dates={key: [AvailabilityRuleWire.from_rule(r) for r in day_rules] for key, day_rules in specific.items()},
        )

    @staticmethod
    def add_rule(client: ApiClient, cache: SlotCache, professional_id: str, rule: AvailabilityRuleCreate) -> AvailabilityRule:
        try:
            with start_span("add_rule", attributes={"professional_id": professional_id}):
                log_event("Add availability rule started", {
                    "professional_id": professional_id,
                    "day_of_week": rule.day_of_week,
                    "specific_date": rule.specific_date
                })

                # Validate business rules
                AvailabilityValidator.validate_create_rule(rule)

                created = client.add_rule(professional_id, AvailabilityService._to_wire(rule))
                cache.invalidate_professional(professional_id)

                parsed = AvailabilityService.parse_rules([created], professional_id) if isinstance(created, dict) else []
                result = parsed[0] if parsed else rule.to_rule()

                log_event("Availability rule added", {
                    "professional_id": professional_id,
                    "rule_id": result.id
                })
                return result
        except Exception as e:
            log_exception(e, {"operation": "add_rule", "professional_id": professional_id})
            raise

    @staticmethod
    def replace_rules(client: ApiClient, cache: SlotCache, professional_id: str,
                      rules: List[AvailabilityRuleCreate]) -> List[AvailabilityRule]:
        """Replace the whole rule set of a professional"""
        try:
            with start_span("replace_rules", attributes={"professional_id": professional_id}):
                log_event("Replace availability rules started", {
                    "professional_id": professional_id,
                    "count": len(rules)
                })

                AvailabilityValidator.validate_replace_rules(rules)

                saved = client.save_rules(professional_id, [AvailabilityService._to_wire(rule) for rule in rules])
                cache.invalidate_professional(professional_id)

                if isinstance(saved, list):
                    result = AvailabilityService.parse_rules(saved, professional_id)
                else:
                    result = [rule.to_rule() for rule in rules]

                log_event("Availability rules replaced", {
                    "professional_id": professional_id,
                    "count": len(result)
                })
                return result
        except Exception as e:
            log_exception(e, {"operation": "replace_rules", "professional_id": professional_id})
            raise

    @staticmethod
    def delete_rule(client: ApiClient, cache: SlotCache, rule_id: str, professional_id: Optional[str] = None):
        try:
            with start_span("delete_rule", attributes={"rule_id": rule_id}):
                log_event("Delete availability rule started", {"rule_id": rule_id})

                client.delete_rule(rule_id)

                # Without the owner we cannot tell which days are affected
                if professional_id:
                    cache.invalidate_professional(professional_id)
                else:
                    cache.clear()

                log_event("Availability rule deleted", {"rule_id": rule_id})
        except Exception as e:
            log_exception(e, {"operation": "delete_rule", "rule_id": rule_id})
            raise
