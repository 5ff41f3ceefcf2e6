"""Invoice template operations."""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from invoicing.errors import InvalidStateError
from invoicing.models import (
    ActivityType,
    EntityType,
    InvoiceCreate,
    Template,
    TemplateCreate,
    TemplateUpdate,
)
from invoicing.models.base import merge_update, utc_now
from invoicing.services.activity_logger import ActivityLogger
from invoicing.sheets import Workbook

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity

    def list_templates(self, active_only: bool = False, search: Optional[str] = None) -> List[Template]:
        needle = search.strip().lower() if search else None

        def matches(template: Template) -> bool:
            if active_only and not template.is_active:
                return False
            if needle and needle not in f"{template.name} {template.description or ''}".lower():
                return False
            return True

        return sorted(self.workbook.templates.filter(matches), key=lambda t: t.name.lower())

    def get_template(self, template_id: str) -> Template:
        return self.workbook.templates.require(template_id)

    def create_template(self, data: TemplateCreate) -> Template:
        template = Template(**data.model_dump())
        self.workbook.templates.insert(template)
        self.activity.log(
            ActivityType.TEMPLATE_CREATED,
            EntityType.TEMPLATE,
            template.id,
            f"Template created: {template.name}",
            entity_name=template.name,
        )
        return template

    def update_template(self, template_id: str, data: TemplateUpdate) -> Template:
        existing = self.workbook.templates.require(template_id)
        updated = merge_update(existing, data, updated_at=utc_now())
        self.workbook.templates.update(updated)
        self.activity.log(
            ActivityType.TEMPLATE_UPDATED,
            EntityType.TEMPLATE,
            template_id,
            f"Template updated: {updated.name}",
            entity_name=updated.name,
        )
        return updated

    def delete_template(self, template_id: str) -> Dict[str, Any]:
        template = self.workbook.templates.require(template_id)
        self.workbook.templates.delete(template_id)
        self.activity.log(
            ActivityType.TEMPLATE_DELETED,
            EntityType.TEMPLATE,
            template_id,
            f"Template deleted: {template.name}",
            entity_name=template.name,
        )
        return {"id": template_id}

    def apply_template(
        self, template_id: str, client_id: str, issue_date: Optional[date] = None
    ) -> InvoiceCreate:
        """
        Build invoice form data from a template.

        The due date follows the company's payment terms. Nothing is stored;
        the caller submits the result to invoice creation.

        Raises:
            InvalidStateError: If the template is inactive
        """
        template = self.workbook.templates.require(template_id)
        if not template.is_active:
            raise InvalidStateError(f"Template '{template.name}' is inactive")
        self.workbook.clients.require(client_id)

        issue_date = issue_date or date.today()
        terms = self.workbook.get_company_settings().payment_terms
        return InvoiceCreate(
            client_id=client_id,
            template_id=template.id,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=terms),
            line_items=template.line_items,
            tax_rate=template.tax_rate,
            notes=template.notes,
        )
