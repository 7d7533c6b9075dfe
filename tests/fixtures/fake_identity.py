"""
In-memory identity provider for tests.

Fails with the same message texts a hosted provider returns, so the tests
exercise the real classification in identity.provider.
"""

import uuid
from typing import Any, Dict, List, Optional

from tenant_access_core.identity import AuthResult, IdentityProvider, provider_error


class FakeIdentityProvider(IdentityProvider):
    def __init__(self, min_password_length: int = 6):
        self.min_password_length = min_password_length
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.signed_in: Optional[str] = None
        # Message every call fails with while set (outage, rate limiting)
        self.fail_with: Optional[str] = None
        self.reset_requests: List[str] = []

    def add_account(self, email: str, password: str, confirmed: bool = True) -> str:
        user_id = str(uuid.uuid4())
        self.accounts[email] = {"id": user_id, "password": password, "confirmed": confirmed}
        return user_id

    def _check_outage(self) -> None:
        if self.fail_with:
            raise provider_error(self.fail_with)

    def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AuthResult:
        self.calls.append("sign_up")
        self._check_outage()
        if email in self.accounts:
            raise provider_error("User already registered")
        if len(password) < self.min_password_length:
            raise provider_error(
                f"Password should be at least {self.min_password_length} characters"
            )
        user_id = self.add_account(email, password)
        self.signed_in = user_id
        return AuthResult(user_id=user_id, email=email)

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        self.calls.append("sign_in_with_password")
        self._check_outage()
        account = self.accounts.get(email)
        if account is None:
            raise provider_error("User not found")
        if account["password"] != password:
            raise provider_error("Invalid login credentials")
        if not account["confirmed"]:
            raise provider_error("Email not confirmed")
        self.signed_in = account["id"]
        return AuthResult(user_id=account["id"], email=email)

    def reset_password(self, email: str) -> None:
        self.calls.append("reset_password")
        self._check_outage()
        self.reset_requests.append(email)

    def sign_out(self) -> None:
        self.calls.append("sign_out")
        self.signed_in = None
