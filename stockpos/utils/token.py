# utils/token.py
from typing import Any, Dict, Optional

from jose import JWTError, jwt

# Claims that may carry the tenant partition, in lookup order
TENANT_CLAIMS = ("tenant", "domain", "tenantId")


# Read the JWT payload without verifying it; the backend owns the signing key
def decode_claims(token: Optional[str]) -> Dict[str, Any]:
    if not token:
        return {}
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def tenant_from_token(token: Optional[str]) -> Optional[str]:
    claims = decode_claims(token)
    for claim in TENANT_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None
