# src/taskflow/stores/api.py

"""
Remote backend stores.

The backend exposes generic record tables over JSON/HTTP:

    GET    /tables/{table}/records           -> {"success", "data": [...]}
    GET    /tables/{table}/records/{id}      -> {"success", "data": {...}}
    POST   /tables/{table}/records           {"records": [...]}
    PATCH  /tables/{table}/records           {"records": [{"Id": ...}]}
    DELETE /tables/{table}/records           {"RecordIds": [...]}

Write calls answer with per-record results:
    {"success", "message"?, "results": [{"success", "data"?, "message"?, "errors"?}]}

Field names on the wire are the backend's (Id, Name, due_date, FirstName, ...);
this module maps them to the core models and back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from ..core.errors import FetchError, NotFoundError, TransportError, ValidationError
from ..core.models import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Category,
    Contact,
    Priority,
    Task,
    enforce_completion,
    format_datetime,
    normalize_category_fields,
    normalize_contact_fields,
    normalize_task_fields,
    parse_datetime,
    task_patch_fields,
    utcnow,
)
from .common import as_id_list, contact_sort_key

logger = logging.getLogger(__name__)

TASK_TABLE = "task"
CATEGORY_TABLE = "category"
CONTACT_TABLE = "Contact"


class ApiClient:
    """
    Thin async client for the record API.

    Maps transport problems onto the store error taxonomy:
    - timeouts / connection errors / 5xx / success=false -> TransportError
      (FetchError for collection reads)
    - 4xx other than 404 -> ValidationError on writes, FetchError on collection reads
    - 404 -> returned to the caller as "absent"
    """

    def __init__(
        self,
        *,
        base_url: str,
        project_id: str = "",
        public_key: str = "",
        timeout_seconds: float = 15.0,
        connect_timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise RuntimeError("API base URL is not set. Set TASKFLOW_API_BASE_URL in your .env.")

        headers = {"Accept": "application/json"}
        if public_key:
            headers["Authorization"] = f"Bearer {public_key}"
        if project_id:
            headers["X-Project-Id"] = project_id

        self._client = httpx.AsyncClient(
            base_url=base_url.strip().rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds),
            transport=transport,
        )
        self._closed = False

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()

    # ---- low-level helpers ----

    async def _send(
        self, method: str, path: str, *, json: Any = None, read: bool = False
    ) -> httpx.Response:
        error_cls = FetchError if read else TransportError
        try:
            return await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.warning("API %s %s timed out", method, path)
            raise error_cls(f"Request timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            logger.warning("API %s %s failed: %s", method, path, e.__class__.__name__)
            raise error_cls(f"Backend unreachable: {e}") from e

    @staticmethod
    def _body(resp: httpx.Response, *, read: bool = False) -> dict[str, Any]:
        error_cls = FetchError if read else TransportError

        if resp.status_code >= 500:
            raise error_cls(f"Backend error {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise error_cls(f"Invalid JSON from backend (status {resp.status_code})") from e
        if not isinstance(body, dict):
            raise error_cls("Unexpected response shape from backend")

        if 400 <= resp.status_code < 500:
            message = str(body.get("message") or f"Request rejected ({resp.status_code})")
            if read:
                # Collection reads carry no field errors (bad key, wrong URL).
                raise error_cls(message)
            raise ValidationError(message)

        if not body.get("success", False):
            raise error_cls(str(body.get("message") or "Backend reported failure"))
        return body

    @staticmethod
    def _first_result(body: Mapping[str, Any], what: str) -> dict[str, Any]:
        results = body.get("results") or []
        if not results:
            raise TransportError(f"Failed to {what}: empty response")

        result = results[0]
        if result.get("success") and isinstance(result.get("data"), dict):
            return result["data"]

        for err in result.get("errors") or []:
            label = str(err.get("fieldLabel") or "field")
            raise ValidationError(f"{label}: {err.get('message') or 'invalid'}", field=label)
        raise TransportError(str(result.get("message") or f"Failed to {what}"))

    # ---- record API ----

    async def fetch_records(self, table: str) -> list[dict[str, Any]]:
        resp = await self._send("GET", f"/tables/{table}/records", read=True)
        body = self._body(resp, read=True)
        data = body.get("data") or []
        if not isinstance(data, list):
            raise FetchError(f"Unexpected data for table {table}")
        return [r for r in data if isinstance(r, dict)]

    async def get_record(self, table: str, record_id: Any) -> dict[str, Any] | None:
        resp = await self._send("GET", f"/tables/{table}/records/{record_id}")
        if resp.status_code == 404:
            return None
        data = self._body(resp).get("data")
        return data if isinstance(data, dict) else None

    async def create_record(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        resp = await self._send("POST", f"/tables/{table}/records", json={"records": [dict(record)]})
        return self._first_result(self._body(resp), f"create {table} record")

    async def update_record(self, table: str, record: Mapping[str, Any]) -> dict[str, Any] | None:
        resp = await self._send("PATCH", f"/tables/{table}/records", json={"records": [dict(record)]})
        if resp.status_code == 404:
            return None
        return self._first_result(self._body(resp), f"update {table} record")

    async def delete_records(self, table: str, record_ids: list[Any]) -> bool:
        resp = await self._send("DELETE", f"/tables/{table}/records", json={"RecordIds": record_ids})
        body = self._body(resp)
        results = body.get("results") or []
        failed = [r for r in results if not r.get("success")]
        if failed:
            logger.warning(
                "API delete: %d of %d %s records failed: %s",
                len(failed),
                len(record_ids),
                table,
                "; ".join(str(r.get("message") or "unknown") for r in failed),
            )
        return len(results) - len(failed) == len(record_ids)


# ---- record mapping ----


def _lenient_datetime(raw: Any) -> Any:
    try:
        return parse_datetime(raw)
    except ValidationError:
        logger.debug("Ignoring unparseable date from backend: %r", raw)
        return None


def task_from_record(rec: Mapping[str, Any]) -> Task:
    created_at = _lenient_datetime(rec.get("created_at") or rec.get("CreatedOn")) or utcnow()
    completed = bool(rec.get("completed") or False)
    completed_at = _lenient_datetime(rec.get("completed_at")) if completed else None
    if completed and completed_at is None:
        completed_at = _lenient_datetime(rec.get("ModifiedOn")) or created_at
    return Task(
        id=rec.get("Id"),
        title=str(rec.get("title") or rec.get("Name") or ""),
        description=str(rec.get("description") or ""),
        category=rec.get("category") or None,
        priority=Priority.from_raw(rec.get("priority")),
        due_date=_lenient_datetime(rec.get("due_date")),
        completed=completed,
        created_at=created_at,
        completed_at=completed_at,
        assigned_contact=rec.get("assigned_contact") or None,
    )


def task_to_record(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Only the keys present in fields are emitted (partial updates)."""
    rec: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "title":
            rec["Name"] = value
            rec["title"] = value
        elif key == "category":
            rec["category"] = value or ""
        elif key == "priority":
            rec["priority"] = Priority(value).value
        elif key in ("due_date", "completed_at", "created_at"):
            rec[key] = format_datetime(value)
        else:
            rec[key] = value
    return rec


def category_from_record(rec: Mapping[str, Any]) -> Category:
    return Category(
        id=rec.get("Id"),
        name=str(rec.get("Name") or ""),
        color=str(rec.get("color") or DEFAULT_CATEGORY_COLOR),
        icon=str(rec.get("icon") or DEFAULT_CATEGORY_ICON),
    )


def category_to_record(fields: Mapping[str, Any]) -> dict[str, Any]:
    rec: dict[str, Any] = {}
    if "name" in fields:
        rec["Name"] = fields["name"]
    if "color" in fields:
        rec["color"] = fields["color"]
    if "icon" in fields:
        rec["icon"] = fields["icon"]
    return rec


_CONTACT_WIRE = {
    "first_name": "FirstName",
    "last_name": "LastName",
    "email": "Email",
    "phone": "Phone",
    "address": "Address",
}


def contact_from_record(rec: Mapping[str, Any]) -> Contact:
    return Contact(
        id=rec.get("Id"),
        first_name=str(rec.get("FirstName") or ""),
        last_name=str(rec.get("LastName") or ""),
        email=str(rec.get("Email") or ""),
        phone=str(rec.get("Phone") or ""),
        address=str(rec.get("Address") or ""),
    )


def contact_to_record(fields: Mapping[str, Any]) -> dict[str, Any]:
    rec = {_CONTACT_WIRE[k]: v for k, v in fields.items() if k in _CONTACT_WIRE}
    if "first_name" in fields and "last_name" in fields:
        # Name is the backend's display column, derived from both parts.
        rec["Name"] = f"{fields['first_name']} {fields['last_name']}".strip()
    return rec


# ---- stores ----


class ApiTaskStore:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self) -> list[Task]:
        return [task_from_record(r) for r in await self._client.fetch_records(TASK_TABLE)]

    async def get(self, task_id: Any) -> Task:
        rec = await self._client.get_record(TASK_TABLE, task_id)
        if rec is None:
            raise NotFoundError("task", task_id)
        return task_from_record(rec)

    async def create(self, fields: Mapping[str, Any]) -> Task:
        clean = enforce_completion(normalize_task_fields(fields))
        clean["created_at"] = utcnow()
        rec = await self._client.create_record(TASK_TABLE, task_to_record(clean))
        return task_from_record(rec)

    async def update(self, task_id: Any, patch: Mapping[str, Any]) -> Task:
        current = await self.get(task_id)
        changes = task_patch_fields(current, patch)
        rec = await self._client.update_record(TASK_TABLE, {"Id": task_id, **task_to_record(changes)})
        if rec is None:
            raise NotFoundError("task", task_id)
        return task_from_record(rec)

    async def delete(self, task_id: Any) -> bool:
        return await self._client.delete_records(TASK_TABLE, as_id_list(task_id))

    async def close(self) -> None:
        await self._client.close()


class ApiCategoryStore:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self) -> list[Category]:
        return [category_from_record(r) for r in await self._client.fetch_records(CATEGORY_TABLE)]

    async def get(self, category_id: Any) -> Category:
        rec = await self._client.get_record(CATEGORY_TABLE, category_id)
        if rec is None:
            raise NotFoundError("category", category_id)
        return category_from_record(rec)

    async def create(self, fields: Mapping[str, Any]) -> Category:
        clean = normalize_category_fields(fields)
        rec = await self._client.create_record(CATEGORY_TABLE, category_to_record(clean))
        return category_from_record(rec)

    async def update(self, category_id: Any, patch: Mapping[str, Any]) -> Category:
        changes = normalize_category_fields(patch, partial=True)
        rec = await self._client.update_record(
            CATEGORY_TABLE, {"Id": category_id, **category_to_record(changes)}
        )
        if rec is None:
            raise NotFoundError("category", category_id)
        return category_from_record(rec)

    async def delete(self, category_id: Any) -> bool:
        return await self._client.delete_records(CATEGORY_TABLE, as_id_list(category_id))

    async def close(self) -> None:
        await self._client.close()


class ApiContactStore:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def list(self) -> list[Contact]:
        contacts = [contact_from_record(r) for r in await self._client.fetch_records(CONTACT_TABLE)]
        contacts.sort(key=contact_sort_key)
        return contacts

    async def get(self, contact_id: Any) -> Contact:
        rec = await self._client.get_record(CONTACT_TABLE, contact_id)
        if rec is None:
            raise NotFoundError("contact", contact_id)
        return contact_from_record(rec)

    async def create(self, fields: Mapping[str, Any]) -> Contact:
        clean = normalize_contact_fields(fields)
        rec = await self._client.create_record(CONTACT_TABLE, contact_to_record(clean))
        return contact_from_record(rec)

    async def update(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact:
        changes = normalize_contact_fields(patch, partial=True)
        if ("first_name" in changes) != ("last_name" in changes):
            current = await self.get(contact_id)
            changes = {
                "first_name": current.first_name,
                "last_name": current.last_name,
                **changes,
            }
        rec = await self._client.update_record(
            CONTACT_TABLE, {"Id": contact_id, **contact_to_record(changes)}
        )
        if rec is None:
            raise NotFoundError("contact", contact_id)
        return contact_from_record(rec)

    async def delete(self, contact_ids: Any | Iterable[Any]) -> bool:
        return await self._client.delete_records(CONTACT_TABLE, as_id_list(contact_ids))

    async def close(self) -> None:
        await self._client.close()


def create_api_stores(settings: Any) -> tuple[ApiTaskStore, ApiCategoryStore, ApiContactStore]:
    client = ApiClient(
        base_url=str(getattr(settings, "api_base_url", "") or ""),
        project_id=str(getattr(settings, "api_project_id", "") or ""),
        public_key=str(getattr(settings, "api_public_key", "") or ""),
        timeout_seconds=float(getattr(settings, "api_timeout_seconds", 15.0)),
        connect_timeout_seconds=float(getattr(settings, "api_connect_timeout_seconds", 5.0)),
    )
    return ApiTaskStore(client), ApiCategoryStore(client), ApiContactStore(client)
