from enum import Enum
from pydantic import BaseModel
from typing import Optional

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    OWNER = "OWNER"
    STAFF = "STAFF"
    PROFESSIONAL = "PROFESSIONAL"

# Roles allowed to manage any professional's rules within their tenant
RULE_MANAGERS = (UserRole.ADMIN, UserRole.OWNER, UserRole.STAFF)

class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: UserRole
    professional_id: Optional[str] = None
    tenant_id: Optional[str] = None
    tenant_slug: Optional[str] = None
    exp: Optional[float] = None
    token: str                      # forwarded to the upstream API

    def can_manage_rules_of(self, professional_id: str) -> bool:
        if self.role in RULE_MANAGERS:
            return True
        if self.role != UserRole.PROFESSIONAL or self.professional_id is None or professional_id is None:
            return False
        return str(self.professional_id) == str(professional_id)
