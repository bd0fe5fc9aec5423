"""Reservation workflow: hold -> confirm -> commit."""

import logging

from rentari.exceptions import ConflictError, InternalError, RentariError
from rentari.services.budget_service import BudgetService
from rentari.services.pending_service import PendingService
from rentari.services.vehicle_service import VehicleService
from rentari.utils.constants import VehicleState

logger = logging.getLogger(__name__)


class RentalService:
    """
    Orchestrates the vehicle directory, the pending store and the budget
    ledger. Each step commits on its own; when a later step fails the
    earlier one is compensated before the error is re-raised.

    Per session: NONE -> PENDING -> CONFIRMED, or PENDING -> EXPIRED when
    the store's TTL drops the pending record and the sweeper frees the vehicle.
    """

    @staticmethod
    def place_hold(session_id: str, vehicle_id: str, terms: dict) -> dict:
        """
        Reserve a vehicle for an anonymous session.
        NotFound if the vehicle does not exist; Conflict if the session already
        holds one or the vehicle is not available.
        """
        VehicleService.get_by_id(vehicle_id)
        if PendingService.find_by_session(session_id):
            raise ConflictError(
                "You already have a pending renting! Log in or register to confirm it "
                "before renting another vehicle."
            )
        pending = PendingService.create(session_id, {**terms, "vehicle_id": vehicle_id})
        try:
            VehicleService.reserve(vehicle_id)
        except RentariError:
            PendingService.delete_by_session(session_id)
            logger.warning("Hold on %s failed; pending record for session dropped", vehicle_id)
            raise
        logger.info("Session %s holds vehicle %s", session_id, vehicle_id)
        return pending

    @staticmethod
    def check_hold(session_id: str) -> bool:
        return PendingService.find_by_session(session_id) is not None

    @staticmethod
    def confirm(session_id: str, account_id: str) -> bool:
        """Turn the session's hold into a rental for `account_id`."""
        pending = PendingService.find_by_session(session_id)
        if not pending:
            raise InternalError(
                "No pending rentings were found, try renting the vehicle again!"
            )
        RentalService._commit(
            account_id,
            pending["vehicle_id"],
            months=pending["months"],
            monthly_fee=pending["monthly_fee"],
            total=pending["total"],
            expected_state=VehicleState.RESERVED,
        )
        PendingService.delete_by_session(session_id)
        logger.info("Session %s confirmed vehicle %s for %s", session_id, pending["vehicle_id"], account_id)
        return True

    @staticmethod
    def create_direct(account_id: str, vehicle_id: str, terms: dict) -> bool:
        """Rent an available vehicle straight away, no hold step. Held or rented vehicles conflict."""
        VehicleService.get_by_id(vehicle_id)
        RentalService._commit(
            account_id,
            vehicle_id,
            months=terms["months"],
            monthly_fee=terms["monthly_fee"],
            total=terms["total"],
        )
        logger.info("Account %s rented vehicle %s directly", account_id, vehicle_id)
        return True

    @staticmethod
    def _commit(account_id: str, vehicle_id: str, months: int, monthly_fee: float, total: float,
                expected_state: str = VehicleState.AVAILABLE):
        """
        Append to the ledger, then assign the vehicle; undo the append if that fails.
        `expected_state` is the state the vehicle must be in right before assignment.
        """
        BudgetService.append_rental(account_id, vehicle_id, months, monthly_fee, total)
        try:
            VehicleService.rent_to(account_id, vehicle_id, expected_state)
        except RentariError:
            BudgetService.remove_last_rental(account_id, vehicle_id)
            logger.warning("Renting %s to %s failed; ledger entry removed", vehicle_id, account_id)
            raise
