"""Budget ledger: per-account spend aggregates and rental line items."""

from __future__ import annotations

import logging

from rentari.exceptions import InternalError, NotFoundError, wrap_error
from rentari.models.budget import RentalLineItem, RentalMode, empty_ledger
from rentari.services.common import _now, _store

logger = logging.getLogger(__name__)


class BudgetService:
    """
    One ledger per account, created at registration.
    Aggregates are only ever moved by the same delta as the line item list.
    """

    @staticmethod
    def get_by_account(account_id: str) -> dict:
        ledger = _store().find_one("budgets", account_id=str(account_id))
        if ledger is None:
            raise NotFoundError("There is no budget for the current user")
        return ledger

    @staticmethod
    def create(account_id: str) -> dict:
        doc = empty_ledger(account_id)
        try:
            doc["budget_id"] = _store().insert("budgets", doc, id_field="budget_id")
        except Exception as exc:
            raise wrap_error(exc, "Could not create the budget") from exc
        return doc

    @staticmethod
    def append_rental(account_id: str, vehicle_id: str, months: int,
                      monthly_fee: float, total: float) -> dict:
        """
        Push a line item starting now and bump the three counters in one
        atomic update. InternalError if the account has no ledger.
        """
        now = _now()
        item = RentalLineItem.starting(now, vehicle_id, months, monthly_fee, total)

        def push(ledger):
            ledger["rentals"].append(item.to_dict())
            ledger["total_rentals"] += 1
            ledger["total_spend"] += item.total
            ledger["monthly_spend"] += item.monthly_fee
            ledger["last_rental_at"] = now

        try:
            updated = _store().update_one("budgets", {"account_id": str(account_id)}, mutate=push)
        except Exception as exc:
            raise wrap_error(exc, "Could not update the budget") from exc
        if updated is None:
            raise InternalError("Could not update the budget: no ledger for this user")
        logger.info("Budget of %s: added vehicle %s for %d months", account_id, vehicle_id, item.months)
        return updated

    @staticmethod
    def remove_last_rental(account_id: str, vehicle_id: str) -> bool:
        """Undo the most recent append for `vehicle_id` (compensation path)."""
        removed = []

        def pull(ledger):
            for i in range(len(ledger["rentals"]) - 1, -1, -1):
                if ledger["rentals"][i]["vehicle_id"] == str(vehicle_id):
                    item = ledger["rentals"].pop(i)
                    ledger["total_rentals"] -= 1
                    ledger["total_spend"] -= item["total"]
                    ledger["monthly_spend"] -= item["monthly_fee"]
                    ledger["last_rental_at"] = max(
                        (r["start_date"] for r in ledger["rentals"]), default=None
                    )
                    removed.append(item)
                    return

        _store().update_one("budgets", {"account_id": str(account_id)}, mutate=pull)
        return bool(removed)

    @staticmethod
    def delete(account_id: str) -> bool:
        return _store().delete_one("budgets", account_id=str(account_id)) is not None

    @staticmethod
    def has_active_or_past_rentals(account_id: str) -> RentalMode:
        """
        NONE   - never rented anything
        ACTIVE - the latest end date is still ahead (or exactly now)
        PAST   - every contract has ended
        """
        ledger = _store().find_one("budgets", account_id=str(account_id))
        if ledger is None:
            raise InternalError("No budget found while checking active rentals")
        rentals = ledger.get("rentals") or []
        if not rentals:
            return RentalMode.NONE
        latest = max(r["end_date"] for r in rentals)
        return RentalMode.ACTIVE if latest >= _now() else RentalMode.PAST
