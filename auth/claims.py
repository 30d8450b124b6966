"""
auth/claims.py -- ClaimsIssuer: build the authorization claims for a user.

Claims are issued only after the directory has verified the user's password.
The validity window is fixed at exactly one hour from issuance; issuer and
audience are fixed per issuer instance (Settings.token_issuer / token_audience).

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from auth.models import Claims, User, as_utc

CLAIMS_TTL = timedelta(hours=1)

DEFAULT_ISSUER = "identity service"
DEFAULT_AUDIENCE = "clients"


class ClaimsIssuer:
    def __init__(self, issuer: str = DEFAULT_ISSUER, audience: str = DEFAULT_AUDIENCE) -> None:
        self.issuer = issuer
        self.audience = audience

    def issue(self, user: User, now: datetime) -> Claims:
        """Return Claims for user valid from now until now + 1 hour.

        roles is copied so later changes to the user record cannot alter
        claims that were already handed out.
        """
        issued_at = as_utc(now)
        return Claims(
            subject=user.id,
            roles=list(user.roles),
            issuer=self.issuer,
            audience=self.audience,
            issued_at=issued_at,
            expires_at=issued_at + CLAIMS_TTL,
        )
