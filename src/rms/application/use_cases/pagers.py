from __future__ import annotations

import logging
from datetime import datetime, timezone

from rms.application.dto.requests import AssignPagerRequest, CreatePagerRequest
from rms.application.dto.responses import MessageResponse, PagerResponse, PagerStatsResponse
from rms.application.mappers.table_mapper import to_pager_response
from rms.application.metrics.order_lifecycle import record_pager_conflict
from rms.application.ports.repositories import (
    DuplicateKeyError,
    OrderRepository,
    PagerRepository,
)
from rms.domain.common.ids import OrderId, PagerId, new_id
from rms.domain.pager.entities import Pager, PagerStateError, PagerStatus

logger = logging.getLogger(__name__)


class PagerNotFoundError(Exception):
    pass


class DuplicatePagerError(Exception):
    pass


class PagerConflictError(Exception):
    pass


class PagerOrderNotFoundError(Exception):
    pass


class InvalidPagerStatusError(Exception):
    pass


def load_pager(pager_repository: PagerRepository, pager_number: int) -> Pager:
    pager = pager_repository.get_by_number(pager_number)
    if pager is None:
        raise PagerNotFoundError(f"pager {pager_number} not found")
    return pager


class ListPagers:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, status: str | None = None) -> list[PagerResponse]:
        parsed = None
        if status:
            try:
                parsed = PagerStatus(status.lower())
            except ValueError as exc:
                raise InvalidPagerStatusError(f"invalid pager status: {status}") from exc
        return [to_pager_response(p) for p in self._pager_repository.list(status=parsed)]


class GetPager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, pager_number: int) -> PagerResponse:
        return to_pager_response(load_pager(self._pager_repository, pager_number))


class FirstAvailablePager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self) -> PagerResponse:
        pager = self._pager_repository.first_available()
        if pager is None:
            raise PagerNotFoundError("no pager is available")
        return to_pager_response(pager)


class CreatePager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, request_dto: CreatePagerRequest) -> PagerResponse:
        pager = Pager(
            pager_id=PagerId(new_id("pgr")),
            pager_number=request_dto.pager_number,
            status=PagerStatus.AVAILABLE,
        )
        try:
            self._pager_repository.add(pager)
        except DuplicateKeyError as exc:
            raise DuplicatePagerError(f"pager {pager.pager_number} already exists") from exc
        return to_pager_response(pager)


class DeletePager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, pager_number: int) -> None:
        pager = load_pager(self._pager_repository, pager_number)
        if pager.in_use:
            raise PagerConflictError(
                f"pager {pager_number} is {pager.status.value} and cannot be deleted"
            )
        self._pager_repository.delete(pager_number)


class PagerStats:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self) -> PagerStatsResponse:
        pagers = self._pager_repository.list()
        return PagerStatsResponse(
            total=len(pagers),
            available=sum(1 for p in pagers if p.status == PagerStatus.AVAILABLE),
            assigned=sum(1 for p in pagers if p.status == PagerStatus.ASSIGNED),
            active=sum(1 for p in pagers if p.status == PagerStatus.ACTIVE),
        )


class AssignPager:
    def __init__(
        self,
        pager_repository: PagerRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._pager_repository = pager_repository
        self._order_repository = order_repository

    def execute(self, pager_number: int, request_dto: AssignPagerRequest) -> PagerResponse:
        load_pager(self._pager_repository, pager_number)
        order = self._order_repository.get(OrderId(request_dto.order_id))
        if order is None:
            raise PagerOrderNotFoundError(f"order {request_dto.order_id} not found")
        if order.is_terminal:
            raise PagerConflictError(
                f"order {order.order_number} is {order.status.value} and cannot take a pager"
            )
        if order.pager_number is not None:
            raise PagerConflictError(
                f"order {order.order_number} already holds pager {order.pager_number}"
            )

        assigned = self._pager_repository.assign_to_order(
            pager_number=pager_number,
            order_id=order.order_id,
            now=datetime.now(timezone.utc),
        )
        if not assigned:
            record_pager_conflict()
            raise PagerConflictError(f"pager {pager_number} not available or already assigned")
        return to_pager_response(load_pager(self._pager_repository, pager_number))


class ActivatePager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, pager_number: int) -> PagerResponse:
        pager = load_pager(self._pager_repository, pager_number)
        if not self._pager_repository.activate(pager_number):
            raise PagerConflictError(
                f"pager {pager_number} cannot be activated from status={pager.status.value}"
            )
        return to_pager_response(load_pager(self._pager_repository, pager_number))


class ReleasePager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, pager_number: int) -> PagerResponse:
        if not self._pager_repository.release(pager_number):
            raise PagerNotFoundError(f"pager {pager_number} not found")
        return to_pager_response(load_pager(self._pager_repository, pager_number))


class BuzzPager:
    def __init__(self, pager_repository: PagerRepository) -> None:
        self._pager_repository = pager_repository

    def execute(self, pager_number: int) -> MessageResponse:
        pager = load_pager(self._pager_repository, pager_number)
        try:
            pager.ensure_buzzable()
        except PagerStateError as exc:
            raise PagerConflictError(str(exc)) from exc
        logger.info(
            "pager_buzz",
            extra={"pager_number": pager_number, "order_id": pager.order_id},
        )
        return MessageResponse(message=f"pager {pager_number} buzzed")
