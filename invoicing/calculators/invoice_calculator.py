"""Invoice arithmetic.

This module implements the derived values of an invoice:
- Line item amounts (quantity x rate)
- Subtotal, tax amount and total
- Paid amount, balance and the resulting status after payments
- Invoice number sequencing (``PREFIX-0001``)
- Recurring schedule date arithmetic

All money is ``Decimal`` rounded half-up to cents.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from invoicing.models import (
    InvoiceStatus,
    LineItem,
    LineItemInput,
    RecurringFrequency,
    round_money,
)
from invoicing.models.base import new_id

ZERO = Decimal("0.00")


@dataclass
class InvoiceTotals:
    """Subtotal, tax and total of a set of line items.

    Example:
        >>> totals = calculate_totals(
        ...     [LineItem(description="Design", quantity=2, rate=50, amount=100)],
        ...     Decimal("10"),
        ... )
        >>> totals.total
        Decimal('110.00')
    """

    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass
class PaymentSummary:
    paid_amount: Decimal
    balance: Decimal
    status: InvoiceStatus


def calculate_line_items(items: Iterable[LineItemInput]) -> List[LineItem]:
    """Give each input line item an id and its amount."""
    return [
        LineItem(
            id=new_id(),
            description=item.description,
            quantity=item.quantity,
            rate=item.rate,
            amount=round_money(item.quantity * item.rate),
        )
        for item in items
    ]


def calculate_totals(line_items: Iterable[LineItem], tax_rate: Decimal) -> InvoiceTotals:
    """Sum line amounts and apply the tax rate (a percentage, 0..100)."""
    subtotal = round_money(sum((item.amount for item in line_items), ZERO))
    tax_amount = round_money(subtotal * Decimal(tax_rate) / Decimal("100"))
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=round_money(subtotal + tax_amount),
    )


def status_after_payments(
    current: InvoiceStatus, total: Decimal, paid_amount: Decimal
) -> InvoiceStatus:
    """
    Status implied by the payments recorded against an invoice.

    A fully paid invoice becomes ``paid``. A ``paid`` invoice whose balance
    reopens (a payment was removed or reduced) reverts to ``sent``.
    Cancelled invoices keep their status.
    """
    if current == InvoiceStatus.CANCELLED:
        return current

    balance = total - paid_amount
    if balance <= 0 and paid_amount > 0:
        return InvoiceStatus.PAID
    if current == InvoiceStatus.PAID:
        return InvoiceStatus.SENT
    return current


def summarize_payments(
    current: InvoiceStatus, total: Decimal, amounts: Iterable[Decimal]
) -> PaymentSummary:
    paid = round_money(sum(amounts, ZERO))
    return PaymentSummary(
        paid_amount=paid,
        balance=round_money(total - paid),
        status=status_after_payments(current, total, paid),
    )


_NUMBER_PATTERN = re.compile(r"(\d+)$")


def format_invoice_number(prefix: str, sequence: int) -> str:
    return f"{prefix}-{sequence:04d}"


def next_invoice_number(prefix: str, existing_numbers: Iterable[str]) -> str:
    """
    Next number in the ``PREFIX-0001`` sequence.

    Only numbers carrying ``prefix`` count; the sequence continues after the
    highest trailing number found.
    """
    highest = 0
    for number in existing_numbers:
        if not number or not number.startswith(f"{prefix}-"):
            continue
        match = _NUMBER_PATTERN.search(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return format_invoice_number(prefix, highest + 1)


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


_MONTHS_PER_PERIOD = {
    RecurringFrequency.MONTHLY: 1,
    RecurringFrequency.QUARTERLY: 3,
    RecurringFrequency.YEARLY: 12,
}


def schedule_occurrence(start: date, frequency: RecurringFrequency, interval: int, n: int) -> date:
    """
    Date of the ``n``-th occurrence of a schedule; occurrence 0 is ``start``.

    Month-based schedules count from ``start`` so a day clamped in a short
    month (Jan 31 -> Feb 29) does not shift later occurrences.
    """
    if frequency == RecurringFrequency.WEEKLY:
        return start + timedelta(weeks=interval * n)
    return add_months(start, _MONTHS_PER_PERIOD[frequency] * interval * n)


def next_occurrence_after(
    start: date, frequency: RecurringFrequency, interval: int, after: date
) -> date:
    """First occurrence of the schedule strictly later than ``after``."""
    n = 0
    occurrence = schedule_occurrence(start, frequency, interval, n)
    while occurrence <= after:
        n += 1
        occurrence = schedule_occurrence(start, frequency, interval, n)
    return occurrence


def due_date_for(issue_date: date, original_issue: date, original_due: date) -> date:
    """Keep the original issue-to-due gap for a generated invoice."""
    return issue_date + (original_due - original_issue)


def schedule_is_due(next_invoice_date: date, end_date: Optional[date], today: date) -> bool:
    if next_invoice_date > today:
        return False
    return end_date is None or next_invoice_date <= end_date
