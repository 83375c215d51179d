"""Builds the signed client assertion exchanged for an access token.

The assertion is an ES256 JWT over a P-256 key, with the key id in the
header. Errors reading or parsing the key file are not wrapped: callers see
the OSError / ValueError / TypeError raised by the filesystem or by
cryptography, which separates configuration problems from rejected
credentials.
"""

import time
import uuid
from pathlib import Path
from typing import Optional, Union

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from asmcli.domain.models.common import ClientAssertion

ASSERTION_AUDIENCE = "https://account.apple.com/auth/oauth2/v2/token"
ASSERTION_ALGORITHM = "ES256"
CLOCK_SKEW_SECONDS = 60
ASSERTION_LIFETIME_SECONDS = 180 * 86400


def load_private_key(private_key_path: Union[str, Path]) -> ec.EllipticCurvePrivateKey:
    """Reads a PEM-encoded P-256 private key.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a PEM private key, or not on P-256.
        TypeError: If the key is not an elliptic-curve key.
    """
    pem = Path(private_key_path).read_bytes()
    key = serialization.load_pem_private_key(pem, password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise TypeError(f"Private key at {private_key_path} is not an EC key")
    if not isinstance(key.curve, ec.SECP256R1):
        raise ValueError(f"Private key at {private_key_path} is on {key.curve.name}, expected secp256r1")
    return key


def build_client_assertion(
    key_id: str,
    client_id: str,
    private_key_path: Union[str, Path],
    now: Optional[int] = None,
) -> ClientAssertion:
    """Signs a fresh client assertion.

    Args:
        key_id: Key identifier, carried as ``kid`` in the JWT header.
        client_id: Used as both subject and issuer.
        private_key_path: Path to the PEM-encoded EC private key.
        now: Current Unix time; defaults to the system clock.

    Returns:
        The compact-serialized JWT.
    """
    key = load_private_key(private_key_path)
    issued_at = int(now if now is not None else time.time())
    payload = {
        "sub": client_id,
        "iss": client_id,
        "aud": ASSERTION_AUDIENCE,
        "iat": issued_at - CLOCK_SKEW_SECONDS,
        "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
        "jti": str(uuid.uuid4()),
    }
    token = jwt.encode(payload, key, algorithm=ASSERTION_ALGORITHM, headers={"kid": key_id})
    return ClientAssertion(token)
