"""
Request Fulfillment
Marks a blood request fulfilled and draws the units from the ledger.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from models import BloodRequest, Fulfillment, RequestStatus
from services.exceptions import RecordNotFound, RequestNotFulfillable
from services.stock_ledger import StockLedger, validate_units

logger = logging.getLogger(__name__)

CLOSED_STATUSES = [
    RequestStatus.FULFILLED.value,
    RequestStatus.REJECTED.value,
    RequestStatus.CANCELLED.value,
]


class RequestFulfillmentService:
    def __init__(self, db, ledger: StockLedger):
        self.requests = db.blood_requests
        self.ledger = ledger

    async def fulfill_request(
        self,
        request_id: str,
        blood_bank: str,
        units_provided: int,
        fulfilled_by: Optional[str] = None,
        notes: str = "",
    ) -> BloodRequest:
        validate_units(units_provided)
        lookup = {"$or": [{"id": request_id}, {"request_id": request_id}]}
        fulfillment = Fulfillment(
            blood_bank=blood_bank,
            fulfilled_by=fulfilled_by,
            fulfilled_at=datetime.now(timezone.utc),
            units_provided=units_provided,
            notes=notes,
        )

        existing = await self.requests.find_one(lookup, {"_id": 0})
        if not existing:
            raise RecordNotFound(f"Request {request_id} not found")

        # Claim the request first so two fulfilments cannot both draw stock.
        previous = await self.requests.find_one_and_update(
            {"id": existing["id"], "status": {"$nin": CLOSED_STATUSES}},
            {"$set": {
                "status": RequestStatus.FULFILLED.value,
                "fulfillment": fulfillment.model_dump(mode="json"),
            }},
            projection={"_id": 0},
            return_document=ReturnDocument.BEFORE,
        )
        if not previous:
            current = await self.requests.find_one({"id": existing["id"]}, {"_id": 0}) or existing
            raise RequestNotFulfillable(
                f"Request {request_id} is already {current.get('status')}"
            )

        request = BloodRequest(**previous)
        try:
            await self.ledger.remove_stock(
                blood_bank, request.blood_group, units_provided, request_id=request.id
            )
        except Exception:
            logger.warning("Fulfilment of request %s failed; restoring status %s", request.id, request.status.value)
            await self.requests.update_one(
                {"id": request.id},
                {"$set": {"status": request.status.value, "fulfillment": previous.get("fulfillment")}},
            )
            raise

        request.status = RequestStatus.FULFILLED
        request.fulfillment = fulfillment
        return request
