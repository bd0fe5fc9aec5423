"""Pending reservations: short-lived holds keyed by the anonymous session id."""

from __future__ import annotations

from rentari.exceptions import ValidationError, wrap_error
from rentari.services.common import _now, _store

REQUIRED_TERMS = ("vehicle_id", "months", "monthly_fee", "total")


class PendingService:
    """
    Thin wrapper over the `pending` collection.
    Records expire through the store's TTL index; nothing here checks age.
    """

    @staticmethod
    def create(session_id: str, terms: dict) -> dict:
        missing = [k for k in REQUIRED_TERMS if terms.get(k) in (None, "")]
        if not session_id or missing:
            raise ValidationError(
                "Could not create the pending renting: missing "
                + ", ".join(missing or ["session id"])
            )
        doc = {
            "session_id": str(session_id),
            "vehicle_id": str(terms["vehicle_id"]),
            "months": int(terms["months"]),
            "monthly_fee": float(terms["monthly_fee"]),
            "total": float(terms["total"]),
            "created_at": _now(),
        }
        try:
            doc["pending_id"] = _store().insert("pending", doc, id_field="pending_id")
        except Exception as exc:
            raise wrap_error(exc, "Could not create the pending renting") from exc
        return doc

    @staticmethod
    def find_by_session(session_id: str) -> dict | None:
        if not session_id:
            return None
        try:
            return _store().find_one("pending", session_id=str(session_id))
        except Exception as exc:
            raise wrap_error(exc, "Could not look up pending rentings") from exc

    @staticmethod
    def delete_by_session(session_id: str) -> bool:
        try:
            return _store().delete_one("pending", session_id=str(session_id)) is not None
        except Exception as exc:
            raise wrap_error(exc, "Could not delete the pending renting") from exc
