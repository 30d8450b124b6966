"""
auth/tokens.py -- Signed token encoding and decoding for Claims.

Security design decisions:
  JWT: python-jose with RS256. Tokens are signed with the private key written
       by `python main.py genkey` and verified with the matching public key, so
       services that only verify tokens never hold signing material. The key id
       travels in the "kid" header for rotation.

  Payload: exactly the claim fields -- sub, roles, iss, aud, iat, exp. Nothing
       else about the user is serialized.

  Verification returns None on any failure (bad signature, expired, wrong
       audience or issuer, missing fields, unknown role). Callers treat None
       as unauthenticated.

Layer rule: no imports from directory/ or admin/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from jose import JWTError, jwt

from auth.models import Claims, parse_roles

logger = logging.getLogger("identity.auth")

_ALGORITHM = "RS256"
_REQUIRED_FIELDS = ("sub", "roles", "iss", "aud", "iat", "exp")


def load_key(path: str | Path) -> str:
    """Read a PEM key file. Raises OSError if the file is missing or unreadable."""
    return Path(path).read_text(encoding="utf-8")


def encode_claims(claims: Claims, private_key_pem: str, key_id: str) -> str:
    """Encode claims as an RS256-signed JWT."""
    payload = {
        "sub": claims.subject,
        "roles": [r.value for r in claims.roles],
        "iss": claims.issuer,
        "aud": claims.audience,
        "iat": int(claims.issued_at.timestamp()),
        "exp": int(claims.expires_at.timestamp()),
    }
    return jwt.encode(payload, private_key_pem, algorithm=_ALGORITHM, headers={"kid": key_id})


def decode_claims(token: str, public_key_pem: str, audience: str, issuer: str | None = None) -> Claims | None:
    """Verify a token and return its Claims, or None on any failure."""
    try:
        payload = jwt.decode(token, public_key_pem, algorithms=[_ALGORITHM], audience=audience, issuer=issuer)
    except JWTError as err:
        logger.debug("token rejected: %s", err)
        return None
    if any(f not in payload for f in _REQUIRED_FIELDS):
        return None
    try:
        roles = parse_roles(payload["roles"])
    except (ValueError, TypeError):
        return None
    if not roles:
        return None
    return Claims(
        subject=payload["sub"],
        roles=roles,
        issuer=payload["iss"],
        audience=payload["aud"],
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
