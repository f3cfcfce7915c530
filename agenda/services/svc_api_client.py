"""HTTP client for the upstream medical-office REST API.

Pattern: one httpx.Client per caller identity, with a fixed timeout and
transport-level retries. Authenticated paths carry the bearer token and the
X-Tenant-ID header; public booking paths (/t/{slug}/...) and /auth paths
never carry the tenant header.
"""
import httpx
from datetime import date
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from agenda.configuration.config import Config
from agenda.configuration.monitor import log_event, log_exception

class UpstreamError(HTTPException):
    """Failure talking to the upstream API, carrying a user-facing message"""

    NETWORK_ERROR = "network_error"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "slot_conflict"
    SERVER_ERROR = "server_error"
    VALIDATION_ERROR = "validation_error"

    ERROR_MESSAGES = {
        NETWORK_ERROR: "Could not reach the scheduling service. Please check your connection and try again.",
        UNAUTHORIZED: "Your session has expired. Please sign in again.",
        FORBIDDEN: "You are not allowed to perform this action.",
        NOT_FOUND: "Resource not found",
        CONFLICT: "The selected time is no longer available",
        SERVER_ERROR: "The scheduling service failed. Please try again later.",
        VALIDATION_ERROR: "Please check the submitted data.",
    }

    def __init__(self, status_code: int, code: str, message: Optional[str] = None,
                 upstream_status: Optional[int] = None):
        self.code = code
        self.message = message or self.ERROR_MESSAGES.get(code, "")
        self.upstream_status = upstream_status
        super().__init__(status_code=status_code, detail={"code": code, "message": self.message})

    @staticmethod
    def _upstream_message(response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            return data.get("message") or data.get("error")
        return None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "UpstreamError":
        status = response.status_code
        message = cls._upstream_message(response)
        if status == 401:
            return cls(401, cls.UNAUTHORIZED, upstream_status=status)
        if status == 403:
            return cls(403, cls.FORBIDDEN, upstream_status=status)
        if status == 404:
            return cls(404, cls.NOT_FOUND, message, upstream_status=status)
        if status == 409:
            return cls(409, cls.CONFLICT, message, upstream_status=status)
        if status >= 500:
            return cls(502, cls.SERVER_ERROR, upstream_status=status)
        return cls(status, cls.VALIDATION_ERROR, message, upstream_status=status)

    @classmethod
    def network(cls, exception: Exception) -> "UpstreamError":
        return cls(503, cls.NETWORK_ERROR)

class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        tenant_id: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.tenant_id = tenant_id
        if transport is None:
            transport = httpx.HTTPTransport(
                retries=Config.API_RETRY_ATTEMPTS if retries is None else retries
            )
        self._client = httpx.Client(
            base_url=base_url or Config.API_BASE_URL,
            timeout=Config.API_TIMEOUT_SECONDS if timeout is None else timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _headers(self, path: str) -> Dict[str, str]:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.tenant_id and not path.startswith("/auth") and not path.startswith("/t/"):
            headers["X-Tenant-ID"] = str(self.tenant_id)
        return headers

    def _request(self, method: str, path: str, params: Optional[dict] = None, json: Any = None) -> Any:
        try:
            response = self._client.request(
                method, path, params=params, json=json, headers=self._headers(path)
            )
        except httpx.TransportError as e:
            log_exception(e, {"operation": "upstream_request", "method": method, "path": path})
            raise UpstreamError.network(e) from e

        if response.is_error:
            error = UpstreamError.from_response(response)
            log_event("Upstream request failed", {
                "method": method,
                "path": path,
                "status": response.status_code,
                "code": error.code
            })
            raise error

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _as_list(payload: Any) -> List[dict]:
        # Some listings come back paginated as {"content": [...]}
        if isinstance(payload, dict) and isinstance(payload.get("content"), list):
            return payload["content"]
        if isinstance(payload, list):
            return payload
        return []

    # --- Rule source ---

    def fetch_rules(self, professional_id: str) -> List[dict]:
        return self._as_list(self._request("GET", f"/professionals/{professional_id}/availability"))

    def save_rules(self, professional_id: str, rules: List[dict]) -> Any:
        return self._request("PUT", f"/professionals/{professional_id}/availability", json=rules)

    def add_rule(self, professional_id: str, rule: dict) -> Any:
        return self._request("POST", f"/professionals/{professional_id}/availability", json=rule)

    def delete_rule(self, rule_id: str) -> None:
        self._request("DELETE", f"/professionals/availability/{rule_id}")

    def fetch_public_rules(self, slug: str, professional_id: str) -> List[dict]:
        return self._as_list(self._request("GET", f"/t/{slug}/professionals/{professional_id}/availability"))

    # --- Appointment source ---

    def fetch_appointments(self, professional_id: str, day: date) -> List[dict]:
        params = {"professionalId": professional_id, "date": day.isoformat()}
        return self._as_list(self._request("GET", "/appointments", params=params))

    def fetch_public_appointments(self, slug: str, professional_id: str, day: date) -> List[dict]:
        params = {"professionalId": professional_id, "date": day.isoformat()}
        return self._as_list(self._request("GET", f"/t/{slug}/appointments", params=params))

    def create_appointment(self, slug: str, payload: dict) -> Any:
        return self._request("POST", f"/t/{slug}/appointments", json=payload)
