"""
Bulk operations over clients, invoices, payments and templates.

Items are processed one after another to stay inside the Sheets quota. Each
item succeeds or fails on its own; the result lists both.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from invoicing.errors import InvoicingError
from invoicing.models import (
    ClientCreate,
    ClientUpdate,
    InvoiceCreate,
    InvoiceUpdate,
    PaymentCreate,
    PaymentUpdate,
    TemplateCreate,
    TemplateUpdate,
)
from invoicing.models.bulk import (
    BulkCreate,
    BulkDelete,
    BulkEntityType,
    BulkRequest,
    BulkUpdate,
    BulkUpdateStatus,
)
from invoicing.services.activity_logger import ActivityLogger
from invoicing.services.client_service import ClientService
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.payment_service import PaymentService
from invoicing.services.template_service import TemplateService
from invoicing.sheets import Workbook

logger = logging.getLogger(__name__)

_CREATE_MODELS = {
    BulkEntityType.CLIENTS: ClientCreate,
    BulkEntityType.INVOICES: InvoiceCreate,
    BulkEntityType.PAYMENTS: PaymentCreate,
    BulkEntityType.TEMPLATES: TemplateCreate,
}

_UPDATE_MODELS = {
    BulkEntityType.CLIENTS: ClientUpdate,
    BulkEntityType.INVOICES: InvoiceUpdate,
    BulkEntityType.PAYMENTS: PaymentUpdate,
    BulkEntityType.TEMPLATES: TemplateUpdate,
}


def _error_message(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'body'}: {e['msg']}"
            for e in error.errors()
        )
    return getattr(error, "message", None) or str(error)


class BulkService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.clients = ClientService(workbook, activity)
        self.invoices = InvoiceService(workbook, activity)
        self.payments = PaymentService(workbook, activity)
        self.templates = TemplateService(workbook, activity)

    def execute(self, request: BulkRequest) -> Dict[str, Any]:
        if isinstance(request, BulkDelete):
            return self.bulk_delete(request)
        if isinstance(request, BulkUpdateStatus):
            return self.bulk_update_status(request)
        if isinstance(request, BulkUpdate):
            return self.bulk_update(request)
        return self.bulk_create(request)

    def _run(
        self,
        keys: List[Any],
        action: Callable[[Any], Any],
        key_name: str,
        describe: Optional[Callable[[Any], Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """Run ``action`` per key; ``describe`` adds fields to a failure entry."""
        successful: List[Any] = []
        failed: List[Dict[str, Any]] = []
        for key in keys:
            try:
                successful.append(action(key))
            except (ValidationError, InvoicingError, GoogleServiceError) as e:
                logger.warning(f"Bulk item {key_name}={key} failed: {_error_message(e)}")
                entry = {key_name: key, **(describe(key) if describe else {})}
                entry["error"] = _error_message(e)
                failed.append(entry)
        return {
            "results": {"successful": successful, "failed": failed},
            "summary": {
                "total": len(keys),
                "successful": len(successful),
                "failed": len(failed),
            },
        }

    def bulk_delete(self, request: BulkDelete) -> Dict[str, Any]:
        deleters: Dict[BulkEntityType, Callable[[str], Any]] = {
            BulkEntityType.CLIENTS: self.clients.delete_client,
            BulkEntityType.INVOICES: self.invoices.delete_invoice,
            BulkEntityType.PAYMENTS: self.payments.delete_payment,
            BulkEntityType.TEMPLATES: self.templates.delete_template,
        }
        delete = deleters[request.type]

        def action(entity_id: str) -> str:
            delete(entity_id)
            return entity_id

        result = self._run(request.ids, action, "id")
        logger.info(f"Bulk delete of {request.type.value}: {result['summary']}")
        return {"operation": request.operation, "type": request.type.value, **result}

    def bulk_update_status(self, request: BulkUpdateStatus) -> Dict[str, Any]:
        def action(invoice_id: str) -> str:
            self.invoices.update_status(invoice_id, request.status)
            return invoice_id

        result = self._run(request.ids, action, "id")
        logger.info(f"Bulk status update to {request.status.value}: {result['summary']}")
        return {
            "operation": request.operation,
            "type": BulkEntityType.INVOICES.value,
            "status": request.status.value,
            **result,
        }

    def bulk_update(self, request: BulkUpdate) -> Dict[str, Any]:
        model = _UPDATE_MODELS[request.type]
        updaters: Dict[BulkEntityType, Callable[[str, BaseModel], Any]] = {
            BulkEntityType.CLIENTS: self.clients.update_client,
            BulkEntityType.INVOICES: self.invoices.update_invoice,
            BulkEntityType.PAYMENTS: self.payments.update_payment,
            BulkEntityType.TEMPLATES: self.templates.update_template,
        }
        update = updaters[request.type]
        items = request.updates

        # The same id may appear more than once; each entry keeps its own data
        def action(index: int) -> str:
            item = items[index]
            update(item.id, model.model_validate(item.data))
            return item.id

        result = self._run(
            list(range(len(items))), action, "index", lambda index: {"id": items[index].id}
        )
        logger.info(f"Bulk update of {request.type.value}: {result['summary']}")
        return {"operation": request.operation, "type": request.type.value, **result}

    def bulk_create(self, request: BulkCreate) -> Dict[str, Any]:
        model = _CREATE_MODELS[request.type]
        creators: Dict[BulkEntityType, Callable[[BaseModel], Any]] = {
            BulkEntityType.CLIENTS: self.clients.create_client,
            BulkEntityType.INVOICES: self.invoices.create_invoice,
            BulkEntityType.PAYMENTS: self.payments.create_payment,
            BulkEntityType.TEMPLATES: self.templates.create_template,
        }
        create = creators[request.type]

        def action(index: int) -> Any:
            return create(model.model_validate(request.items[index]))

        result = self._run(list(range(len(request.items))), action, "index")
        logger.info(f"Bulk create of {request.type.value}: {result['summary']}")
        return {"operation": request.operation, "type": request.type.value, **result}
