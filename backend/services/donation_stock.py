"""
Donation Stock Intake
Moves a completed, lab-cleared donation into the stock ledger exactly once.
"""
import logging

from pymongo import ReturnDocument

from models import Donation, DonationStatus, StockRecord
from services.exceptions import DonationNotEligible, RecordNotFound
from services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class DonationStockService:
    def __init__(self, db, ledger: StockLedger):
        self.donations = db.donations
        self.ledger = ledger

    async def record_donation_stock(self, donation_id: str) -> StockRecord:
        """
        Claim the donation by flipping ``stock_recorded`` and add its units
        to the ledger. A failed ledger call releases the claim.
        """
        lookup = {"$or": [{"id": donation_id}, {"donation_id": donation_id}]}
        existing = await self.donations.find_one(lookup, {"_id": 0})
        if not existing:
            raise RecordNotFound(f"Donation {donation_id} not found")

        claimed = await self.donations.find_one_and_update(
            {
                "id": existing["id"],
                "status": DonationStatus.COMPLETED.value,
                "is_safe": True,
                "stock_recorded": {"$ne": True},
            },
            {"$set": {"stock_recorded": True}},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )

        if not claimed:
            current = await self.donations.find_one({"id": existing["id"]}, {"_id": 0}) or existing
            if current.get("stock_recorded"):
                raise DonationNotEligible(f"Donation {donation_id} is already in stock")
            raise DonationNotEligible(
                f"Donation {donation_id} must be completed and cleared by the lab"
            )

        donation = Donation(**claimed)
        try:
            record = await self.ledger.add_stock_from_donation(
                donation.blood_bank,
                donation.blood_group,
                donation.units,
                donation.expiry_date,
                donation_id=donation.id,
            )
        except Exception:
            logger.exception("Stock intake failed for donation %s; releasing claim", donation.id)
            await self.donations.update_one({"id": donation.id}, {"$set": {"stock_recorded": False}})
            raise

        return record
