import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from rentari.utils.constants import Role


@dataclass
class Account:
    """
    Account record wrapper. `password_hash` is None for soft-deleted accounts
    and for accounts created through a federated login.
    """
    account_id: str
    username: str
    email: str
    password_hash: Optional[str] = None
    role: str = Role.USER
    active: bool = True
    deleted_at: Optional[datetime] = None
    provider: Optional[str] = None
    provider_subject: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Account":
        return cls(
            account_id=d["account_id"],
            username=d.get("username", ""),
            email=d.get("email", ""),
            password_hash=d.get("password_hash"),
            role=d.get("role") or Role.USER,
            active=bool(d.get("active", True)),
            deleted_at=d.get("deleted_at"),
            provider=d.get("provider"),
            provider_subject=d.get("provider_subject"),
        )

    def token_claims(self) -> dict:
        return {"accountId": self.account_id, "username": self.username, "role": self.role}

    @staticmethod
    def anonymized_fields(account_id: str) -> dict:
        """
        Deterministic placeholders for a soft-deleted account:
        the same id always yields the same username and email.
        """
        digest = hashlib.sha256(str(account_id).encode()).hexdigest()[:16]
        return {
            "username": f"deleted-{digest}",
            "email": f"deleted-{digest}@anon.invalid",
        }
