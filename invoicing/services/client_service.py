"""Client operations, including the best-effort cascade on delete."""

import logging
from typing import Any, Dict, List, Optional

from invoicing.errors import InvoicingError
from invoicing.models import ActivityType, Client, ClientCreate, ClientUpdate, EntityType
from invoicing.models.base import merge_update, utc_now
from invoicing.services.activity_logger import ActivityLogger
from invoicing.services.error_classifier import GoogleServiceError
from invoicing.services.invoice_service import InvoiceService
from invoicing.sheets import Workbook

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity

    def list_clients(
        self,
        search: Optional[str] = None,
        country: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[Client]:
        """
        List clients sorted by name.

        Args:
            search: Case-insensitive match on name, email or phone
            country: Exact (case-insensitive) address country
            state: Exact (case-insensitive) address state
        """
        needle = search.strip().lower() if search else None

        def matches(client: Client) -> bool:
            if needle:
                haystack = f"{client.name} {client.email} {client.phone or ''}".lower()
                if needle not in haystack:
                    return False
            if country and client.address.country.lower() != country.lower():
                return False
            if state and client.address.state.lower() != state.lower():
                return False
            return True

        return sorted(self.workbook.clients.filter(matches), key=lambda c: c.name.lower())

    def get_client(self, client_id: str) -> Client:
        return self.workbook.clients.require(client_id)

    def create_client(self, data: ClientCreate) -> Client:
        client = Client(**data.model_dump())
        self.workbook.clients.insert(client)
        logger.info(f"Created client {client.id} ({client.name})")
        self.activity.log(
            ActivityType.CLIENT_ADDED,
            EntityType.CLIENT,
            client.id,
            f"New client added: {client.name}",
            entity_name=client.name,
        )
        return client

    def update_client(self, client_id: str, data: ClientUpdate) -> Client:
        existing = self.workbook.clients.require(client_id)
        updated = merge_update(existing, data, updated_at=utc_now())
        self.workbook.clients.update(updated)
        self.activity.log(
            ActivityType.CLIENT_UPDATED,
            EntityType.CLIENT,
            client_id,
            f"Client updated: {updated.name}",
            entity_name=updated.name,
        )
        return updated

    def delete_client(self, client_id: str) -> Dict[str, Any]:
        """
        Delete a client and, sequentially, its invoices with their payments
        and storage statuses.

        There is no transaction: a failure on one invoice is recorded in the
        result and the cascade carries on with the next one.

        Returns:
            Dictionary with the deleted invoice ids and any per-invoice errors
        """
        client = self.workbook.clients.require(client_id)
        invoice_service = InvoiceService(self.workbook, self.activity)

        deleted_invoices: List[str] = []
        errors: List[Dict[str, str]] = []
        for invoice in self.workbook.invoices.filter(lambda inv: inv.client_id == client_id):
            try:
                invoice_service.delete_invoice(invoice.id)
                deleted_invoices.append(invoice.id)
            except (GoogleServiceError, InvoicingError) as e:
                logger.warning(f"Cascade delete of invoice {invoice.id} failed: {e}")
                errors.append({"invoice_id": invoice.id, "error": str(e)})

        self.workbook.clients.delete(client_id)
        logger.info(
            f"Deleted client {client_id} with {len(deleted_invoices)} invoices "
            f"({len(errors)} cascade errors)"
        )
        self.activity.log(
            ActivityType.CLIENT_DELETED,
            EntityType.CLIENT,
            client_id,
            f"Client deleted: {client.name}",
            entity_name=client.name,
        )
        return {
            "id": client_id,
            "deleted_invoices": deleted_invoices,
            "errors": errors,
        }
