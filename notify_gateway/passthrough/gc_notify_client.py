"""
Synchronous client for an external GC Notify compatible API.

Used in passthrough mode: requests are forwarded with the caller's own API
credential and responses are remapped into this gateway's conventions.

Key features:
- Per-call credential, sent verbatim as the Authorization header, never stored
- Upstream error payloads mapped to the gateway's exception taxonomy
- Non-JSON error bodies tolerated (raw text becomes the message)
- Every returned URI rewritten into the /gc-notify/v2 namespace
"""

import logging
from typing import Optional, List, Dict, Any, Union
from urllib.parse import urlencode

import requests

from notify_gateway.notifications.exceptions import (
    BadRequestError, ConfigurationError, NotFoundError, NotificationError,
    RateLimitError, UnauthorizedError, UpstreamError
)
from notify_gateway.notifications.models import (
    BulkJob, BulkRequest, Channel, EmailRequest, Notification, NotificationPage,
    NotificationResponse, NOTIFICATIONS_URI, SmsRequest, TemplateDefinition, TemplateLink,
    utc_now_iso
)


logger = logging.getLogger(__name__)


def _safe_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def _optional_str(value: Any) -> Optional[str]:
    return _safe_str(value) if value is not None else None


def _channel(value: Any) -> Channel:
    try:
        return Channel(value)
    except ValueError:
        return Channel.EMAIL


def rewrite_notifications_link(link: Optional[str]) -> Optional[str]:
    """Rewrite an upstream notifications link, keeping its query string."""
    if not link or not isinstance(link, str):
        return None
    index = link.find("?")
    query = link[index:] if index >= 0 else ""
    return f"{NOTIFICATIONS_URI}{query}"


class GcNotifyApiClient:
    """
    Passthrough client for the GC Notify v2 API.

    Each operation takes the caller's credential (for example
    ``"ApiKey-v1 <key>"``) and forwards it unchanged.
    """

    def __init__(self,
                 base_url: Optional[str] = None,
                 timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize client.

        Args:
            base_url: Upstream API root; required only when a call is made
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Notify-Gateway/1.0',
            'Accept': 'application/json'
        })

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self.session:
            self.session.close()

    # -- operations -----------------------------------------------------

    def send_email(self, request: EmailRequest, auth_header: str) -> NotificationResponse:
        raw = self._request("POST", "/v2/notifications/email", auth_header, request.to_payload())
        return self._map_send_response(raw, request.scheduled_for)

    def send_sms(self, request: SmsRequest, auth_header: str) -> NotificationResponse:
        raw = self._request("POST", "/v2/notifications/sms", auth_header, request.to_payload())
        return self._map_send_response(raw, request.scheduled_for)

    def get_templates(self, template_type: Optional[Union[Channel, str]], auth_header: str) -> List[TemplateDefinition]:
        path = "/v2/templates"
        if template_type:
            value = template_type.value if isinstance(template_type, Channel) else template_type
            path += "?" + urlencode({"type": value})
        raw = self._request("GET", path, auth_header) or {}
        return [self._map_template(t) for t in raw.get("templates") or [] if isinstance(t, dict)]

    def get_template(self, template_id: str, auth_header: str) -> TemplateDefinition:
        raw = self._request("GET", f"/v2/template/{template_id}", auth_header) or {}
        return self._map_template(raw)

    def get_notifications(self, query: Optional[Dict[str, Any]], auth_header: str) -> NotificationPage:
        """
        List notifications.

        Args:
            query: Optional filters: template_type, reference, older_than,
                include_jobs, status (list, sent as repeated parameters)
            auth_header: Caller's upstream credential
        """
        query = query or {}
        params = []
        for key in ("template_type", "reference", "older_than"):
            if query.get(key):
                params.append((key, str(query[key])))
        if query.get("include_jobs") is not None:
            params.append(("include_jobs", "true" if query["include_jobs"] else "false"))
        for status in query.get("status") or []:
            params.append(("status", status))

        path = "/v2/notifications"
        if params:
            path += "?" + urlencode(params)

        raw = self._request("GET", path, auth_header) or {}
        links = raw.get("links") or {}

        page_links = {"current": rewrite_notifications_link(links.get("current")) or NOTIFICATIONS_URI}
        next_link = rewrite_notifications_link(links.get("next"))
        if next_link:
            page_links["next"] = next_link

        return NotificationPage(
            notifications=[self._map_notification(n) for n in raw.get("notifications") or [] if isinstance(n, dict)],
            links=page_links,
        )

    def get_notification_by_id(self, notification_id: str, auth_header: str) -> Notification:
        raw = self._request("GET", f"/v2/notifications/{notification_id}", auth_header) or {}
        return self._map_notification(raw)

    def send_bulk(self, request: BulkRequest, auth_header: str) -> BulkJob:
        raw = self._request("POST", "/v2/notifications/bulk", auth_header, request.to_payload()) or {}
        data = raw.get("data") or {}
        return BulkJob(
            id=_safe_str(data.get("id")),
            template=_safe_str(data.get("template")) or request.template_id,
            notification_count=int(data.get("notification_count") or 0),
            job_status=_safe_str(data.get("job_status")) or "pending",
            created_at=_safe_str(data.get("created_at")) or utc_now_iso(),
        )

    # -- transport --------------------------------------------------------

    def _get_base_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError("GC_NOTIFY_BASE_URL is required when using GC Notify passthrough mode")
        return self.base_url

    def _request(self, method: str, path: str, auth_header: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._get_base_url()}{path}"
        headers = {
            'Authorization': auth_header,
            'Content-Type': 'application/json',
        }

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=body if method in ("POST", "PUT") else None,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"GC Notify API request failed: {method} {path}: {e}")
            raise UpstreamError(f"GC Notify API unreachable: {e}")

        if not response.ok:
            raise self._create_api_error(response)

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError:
            raise UpstreamError("GC Notify API returned a non-JSON response", response.status_code)

    def _create_api_error(self, response: requests.Response) -> NotificationError:
        """Map an upstream error response to the gateway's exceptions."""
        status = response.status_code
        text = response.text or ""
        message = None

        try:
            data = response.json()
        except ValueError:
            logger.debug(f"GC Notify API returned non-JSON error body: {text[:100]}")
            data = None

        if isinstance(data, dict):
            errors = data.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                message = errors[0].get("message")

        message = message or text or response.reason or "Unknown API error"

        if status == 400:
            return BadRequestError(message)
        if status in (401, 403):
            return UnauthorizedError(message)
        if status == 404:
            return NotFoundError(message)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                f"GC Notify API rate limit exceeded: {message}",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        logger.error(f"GC Notify API error: {status} {message}")
        return UpstreamError(f"GC Notify API error: {status} - {message}", status)

    # -- mapping ----------------------------------------------------------

    def _map_send_response(self, raw: Optional[Dict[str, Any]], scheduled_for: Optional[str]) -> NotificationResponse:
        raw = raw or {}
        template = raw.get("template") or {}
        content = raw.get("content") or {}
        version = template.get("version")

        return NotificationResponse(
            id=_safe_str(raw.get("id")),
            reference=_optional_str(raw.get("reference")),
            content={key: _safe_str(value) for key, value in content.items()},
            template=TemplateLink(
                id=_safe_str(template.get("id")),
                version=version if isinstance(version, int) else 1,
            ),
            scheduled_for=_optional_str(raw.get("scheduled_for")) or scheduled_for,
        )

    def _map_notification(self, raw: Dict[str, Any]) -> Notification:
        template = raw.get("template")
        if isinstance(template, dict):
            template_id = _safe_str(template.get("id"))
            version = template.get("version")
        else:
            template_id = _safe_str(template)
            version = None

        return Notification(
            id=_safe_str(raw.get("id")),
            template=TemplateLink(id=template_id, version=version if isinstance(version, int) else 1),
            type=_channel(raw.get("type")),
            status=_safe_str(raw.get("status")) or "created",
            body=_safe_str(raw.get("body")),
            created_at=_safe_str(raw.get("created_at")) or utc_now_iso(),
            reference=_optional_str(raw.get("reference")),
            email_address=_optional_str(raw.get("email_address")),
            phone_number=_optional_str(raw.get("phone_number")),
            subject=_optional_str(raw.get("subject")),
            status_description=_optional_str(raw.get("status_description")),
            provider_response=_optional_str(raw.get("provider_response")),
            created_by_name=_optional_str(raw.get("created_by_name")),
            sent_at=_optional_str(raw.get("sent_at")),
            completed_at=_optional_str(raw.get("completed_at")),
            scheduled_for=_optional_str(raw.get("scheduled_for")),
        )

    def _map_template(self, raw: Dict[str, Any]) -> TemplateDefinition:
        version = raw.get("version")
        personalisation = raw.get("personalisation")
        created_at = _safe_str(raw.get("created_at")) or utc_now_iso()

        return TemplateDefinition(
            id=_safe_str(raw.get("id")),
            channel=_channel(raw.get("type")),
            name=_safe_str(raw.get("name")),
            body=_safe_str(raw.get("body")),
            subject=_optional_str(raw.get("subject")),
            description=_optional_str(raw.get("description")),
            personalisation=personalisation if isinstance(personalisation, dict) else None,
            active=raw.get("active") is not False,
            version=version if isinstance(version, int) else 1,
            created_at=created_at,
            updated_at=_safe_str(raw.get("updated_at")) or created_at,
            created_by=_optional_str(raw.get("created_by")),
        )
