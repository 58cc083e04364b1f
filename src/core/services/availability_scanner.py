"""Availability scan: one inventory query, first eligible location wins.

The provider's order is authoritative. Records and their datacenters are
walked exactly as returned and the first location whose state is neither
"unavailable" nor "unknown" is selected; nothing is re-ranked. Every
inspected location is logged so operators can audit what the system saw.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from core.cancellation import CancellationToken
from core.domain.errors import OrderApiError
from core.domain.models import AvailabilityRecord, AvailabilitySelection, ScanResult
from core.interfaces.order_api import OrderApi
from core.services.events import EventLog


def parse_records(payload: Any) -> list[AvailabilityRecord]:
    if not isinstance(payload, list):
        return []
    try:
        return [AvailabilityRecord.model_validate(item) for item in payload if isinstance(item, dict)]
    except ValidationError as exc:
        raise OrderApiError(f"Unexpected availability payload: {exc}") from exc


def select_first_available(
    records: list[AvailabilityRecord],
    events: EventLog | None = None,
) -> AvailabilitySelection | None:
    for record in records:
        for location in record.datacenters:
            if events is not None:
                events.info(
                    f"Model: {record.fqn}, datacenter: {location.datacenter}, "
                    f"availability: {location.availability}"
                )
            if location.is_eligible:
                return AvailabilitySelection(
                    fqn=record.fqn,
                    datacenter=location.datacenter,
                    availability=location.availability or "",
                )
    return None


class AvailabilityScanner:
    def __init__(self, api: OrderApi, events: EventLog) -> None:
        self._api = api
        self._events = events

    async def scan(self, plan_code: str, *, token: CancellationToken) -> ScanResult:
        token.raise_if_cancelled()
        payload = await self._api.get_availabilities(plan_code, token=token)

        records = parse_records(payload)
        if not records:
            self._events.warning(f"No availability information found for plan code {plan_code}")
            return ScanResult(records=[], selection=None)

        selection = select_first_available(records, self._events)
        if selection is None:
            self._events.warning(f"No server currently available for plan code {plan_code}")
            return ScanResult(records=records, selection=None)

        self._events.success(
            f"Found available server {selection.fqn} in datacenter {selection.datacenter}!"
        )
        return ScanResult(records=records, selection=selection)
