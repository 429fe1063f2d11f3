"""Warranty lifecycle API handler."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from warrantydb.models.warranty import (
    ActivateWarrantyRequest,
    RecordInspectionRequest,
    RegisterWarrantyRequest,
    Warranty,
)
from warrantydb.repositories.warranty import WarrantyRepository
from warrantydb.services.dashboard import search_warranties
from warrantydb.services.inspection_scheduler import days_until_due
from warrantydb.services.status_resolver import resolve_display_status
from warrantydb.services.warranty_service import WarrantyService, reminder_window_days
from warrantydb.utils.exceptions import ValidationError, WarrantyDBError
from warrantydb.utils.responses import created, error, from_exception, success, validation_error

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle warranty API requests.

    Routes:
        GET  /warranties                           - Search warranties
        POST /warranties                           - Register an installation
        POST /warranties/activate                  - Redeem an activation code
        GET  /warranties/{warranty_id}             - Get warranty with display status
        POST /warranties/{warranty_id}/void        - Void a warranty
        POST /warranties/{warranty_id}/inspections - Record an inspection
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        warranty_id = path_params.get("warranty_id")

        if http_method == "POST" and path.endswith("/activate"):
            return activate_warranty(event)
        elif http_method == "POST" and warranty_id and path.endswith("/void"):
            return void_warranty(warranty_id)
        elif http_method == "POST" and warranty_id and path.endswith("/inspections"):
            return record_inspection(warranty_id, event)
        elif http_method == "GET" and warranty_id:
            return get_warranty(warranty_id)
        elif http_method == "GET":
            return list_warranties(event)
        elif http_method == "POST":
            return register_warranty(event)
        else:
            return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return validation_error(ValidationError.from_pydantic(e).errors)
    except WarrantyDBError as e:
        return from_exception(e)
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400)
    except Exception as e:
        logger.exception("Warranty handler error", error=str(e))
        return error("Internal server error", 500)


def _body(event: dict) -> dict:
    return json.loads(event.get("body") or "{}")


def _serialize(warranty: Warranty, now: datetime) -> dict:
    data = warranty.model_dump(mode="json")
    display = resolve_display_status(warranty, now, reminder_window_days())
    data["display_status"] = display.value
    data["display_label"] = display.label
    data["days_until_inspection"] = (
        days_until_due(warranty.next_inspection_due, now) if warranty.next_inspection_due else None
    )
    return data


def list_warranties(event: dict) -> dict:
    """Search warranties by customer, VIN, registration or code."""
    params = event.get("queryStringParameters") or {}
    now = datetime.now(timezone.utc)

    results = search_warranties(
        WarrantyRepository().list_all(),
        query=params.get("q", ""),
        search_by=params.get("search_by", "all"),
        status=params.get("status") or None,
    )
    return success({"items": [_serialize(w, now) for w in results], "count": len(results)})


def register_warranty(event: dict) -> dict:
    request = RegisterWarrantyRequest.model_validate(_body(event))
    warranty = WarrantyService().register(request)
    return created(_serialize(warranty, datetime.now(timezone.utc)))


def activate_warranty(event: dict) -> dict:
    """Customer portal activation."""
    request = ActivateWarrantyRequest.model_validate(_body(event))
    warranty = WarrantyService().activate(request.activation_code)
    return success(_serialize(warranty, datetime.now(timezone.utc)))


def get_warranty(warranty_id: str) -> dict:
    warranty = WarrantyRepository().get_by_id_or_raise(warranty_id)
    return success(_serialize(warranty, datetime.now(timezone.utc)))


def void_warranty(warranty_id: str) -> dict:
    warranty = WarrantyService().void(warranty_id)
    return success(_serialize(warranty, datetime.now(timezone.utc)))


def record_inspection(warranty_id: str, event: dict) -> dict:
    request = RecordInspectionRequest.model_validate(_body(event))
    warranty = WarrantyService().record_inspection(warranty_id, request)
    return created(_serialize(warranty, datetime.now(timezone.utc)))
