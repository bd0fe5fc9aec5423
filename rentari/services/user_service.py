from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from flask import current_app

from rentari.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    RentariError,
    UnauthorizedError,
    ValidationError,
    wrap_error,
)
from rentari.models.account import Account
from rentari.models.budget import RentalMode, ledger_to_public
from rentari.services.budget_service import BudgetService
from rentari.services.common import _now, _store
from rentari.services.mail_service import MailService
from rentari.services.vehicle_service import VehicleService
from rentari.utils.constants import CODE_TTL_SECONDS, Role
from rentari.utils.filters import fmt_local
from rentari.utils.security import check_hash, create_token, generate_hash

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = "Invalid email or password"


class UserService:
    """Account workflow: registration, login, deletion and federated sign-in."""

    @staticmethod
    def get_account(account_id: str) -> Account:
        d = _store().get("accounts", account_id)
        if d is None:
            raise NotFoundError("There is no user matching the current session")
        return Account.from_dict(d)

    @staticmethod
    def ensure_available(username: str, email: str) -> None:
        """Raise ConflictError naming whichever of username/email is already taken."""
        st = _store()
        problems = []
        if st.find_one("accounts", username=username):
            problems.append("The username has already been registered!")
        if st.find_one("accounts", email=email):
            problems.append("The email has already been registered!")
        if problems:
            raise ConflictError("\n".join(problems))

    @staticmethod
    def _create_account(**fields) -> Account:
        doc = {
            "username": fields["username"],
            "email": fields["email"],
            "password_hash": fields.get("password_hash"),
            "role": Role.USER,
            "active": True,
            "deleted_at": None,
            "provider": fields.get("provider"),
            "provider_subject": fields.get("provider_subject"),
            "created_at": _now(),
        }
        st = _store()
        account_id = st.insert("accounts", doc, id_field="account_id")
        try:
            BudgetService.create(account_id)
        except RentariError:
            st.delete_one("accounts", account_id=account_id)
            logger.warning("Budget creation failed; account %s removed", account_id)
            raise
        return Account.from_dict({**doc, "account_id": account_id})

    @staticmethod
    def register(username: str, email: str, password: str, code: str | None = None) -> str:
        """Create an account plus its empty ledger and return a session token."""
        UserService.ensure_available(username, email)
        if current_app.config.get("REQUIRE_EMAIL_VERIFICATION"):
            UserService._consume_code(email, code)
        account = UserService._create_account(
            username=username, email=email, password_hash=generate_hash(password)
        )
        logger.info("Registered account %s", account.account_id)
        return create_token(account.token_claims())

    @staticmethod
    def login(email: str, password: str) -> str:
        d = _store().find_one("accounts", email=email)
        if d is None:
            raise UnauthorizedError(BAD_CREDENTIALS)
        account = Account.from_dict(d)
        if not account.active or not check_hash(password, account.password_hash):
            raise UnauthorizedError(BAD_CREDENTIALS)
        return create_token(account.token_claims())

    @staticmethod
    def federated_login(identity: dict) -> str:
        """
        Find the account by provider subject, then by email; create it (with a
        ledger) when neither exists. A token is issued on every branch.
        """
        st = _store()
        d = (st.find_one("accounts", provider=identity["provider"], provider_subject=identity["subject"])
             or st.find_one("accounts", email=identity["email"]))
        if d is not None:
            account = Account.from_dict(d)
            if not account.active:
                raise UnauthorizedError("This account has been deactivated")
            if not account.provider_subject:
                st.update_one("accounts", {"account_id": account.account_id}, {
                    "provider": identity["provider"],
                    "provider_subject": identity["subject"],
                })
        else:
            username = identity["username"]
            if st.find_one("accounts", username=username):
                username = f"{username}-{secrets.token_hex(3)}"
            account = UserService._create_account(
                username=username,
                email=identity["email"],
                provider=identity["provider"],
                provider_subject=identity["subject"],
            )
            logger.info("Created account %s from %s login", account.account_id, identity["provider"])
        return create_token(account.token_claims())

    @staticmethod
    def profile(account_id: str) -> dict:
        account = UserService.get_account(account_id)
        ledger = BudgetService.get_by_account(account_id)
        return {
            "nombreUsuario": account.username,
            "correo": account.email,
            "presupuesto": ledger_to_public(ledger),
        }

    @staticmethod
    def delete(account_id: str) -> str:
        """
        ACTIVE rentals -> refuse; PAST rentals -> anonymize, deactivate and free
        owned vehicles (ledger kept); no rentals -> remove account and ledger.
        """
        mode = BudgetService.has_active_or_past_rentals(account_id)
        if mode is RentalMode.ACTIVE:
            raise ValidationError("The user cannot be deleted while it has active rentings")

        st = _store()
        if mode is RentalMode.PAST:
            updated = st.update_one("accounts", {"account_id": str(account_id)}, {
                **Account.anonymized_fields(account_id),
                "password_hash": None,
                "active": False,
                "deleted_at": _now(),
                "provider_subject": None,
            })
            if updated is None:
                raise NotFoundError("There is no user matching the current session")
            freed = VehicleService.release(account_id)
            logger.info("Account %s deactivated; %d vehicle(s) released", account_id, freed)
            return "Your user has been deactivated. It stays registered but inactive."

        try:
            removed = st.delete_one("accounts", account_id=str(account_id))
            BudgetService.delete(account_id)
        except Exception as exc:
            raise wrap_error(exc, "Could not delete the user") from exc
        if removed is None:
            raise NotFoundError("There is no user matching the current session")
        logger.info("Account %s deleted", account_id)
        return "User deleted successfully!"

    # ---------- email verification ----------
    @staticmethod
    def request_verification(username: str, email: str) -> dict:
        """Store a 4-digit code for `email` (15-minute TTL) and email it."""
        UserService.ensure_available(username, email)
        now = _now()
        code = str(1000 + secrets.randbelow(9000))
        try:
            _store().delete_one("codes", email=email)
            _store().insert("codes", {"email": email, "code": code, "created_at": now}, id_field="code_id")
        except Exception as exc:
            raise wrap_error(exc, "Could not create the verification code") from exc

        cfg = current_app.config
        expires = fmt_local(now + timedelta(seconds=CODE_TTL_SECONDS), cfg["APP_TIMEZONE"])
        try:
            sent = MailService.send_verification(username, email, code, expires, cfg["APP_TIMEZONE"])
        except RuntimeError:
            # delivery is best effort; the code stays valid for a retry
            logger.exception("Could not send the verification email to %s", email)
            sent = False
        return {"email": email, "sent": sent}

    @staticmethod
    def _consume_code(email: str, code: str | None) -> None:
        if not code:
            raise ValidationError("A verification code is required")
        stored = _store().find_one("codes", email=email)
        if stored is None or not secrets.compare_digest(str(stored["code"]), str(code)):
            raise ValidationError("The verification code is not valid or has expired")
        if _store().delete_one("codes", email=email) is None:
            raise InternalError("Could not consume the verification code")
