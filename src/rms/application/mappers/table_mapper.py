from __future__ import annotations

from rms.application.dto.responses import PagerResponse, TableResponse
from rms.domain.pager.entities import Pager
from rms.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        tableNumber=table.table_number,
        capacity=table.capacity,
        status=table.status.value,
        customerCount=table.customer_count,
        section=table.section,
        notes=table.notes,
    )


def to_pager_response(pager: Pager) -> PagerResponse:
    return PagerResponse(
        pagerId=str(pager.pager_id),
        pagerNumber=pager.pager_number,
        status=pager.status.value,
        orderId=str(pager.order_id) if pager.order_id else None,
        assignedAt=pager.assigned_at,
    )
