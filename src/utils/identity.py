"""
Caller identity resolution from Cognito user pool claims.

AppSync hands every resolver the verified JWT claims of the caller. Depending
on the token type the user name arrives either as ``username`` (access token)
or ``cognito:username`` (ID token).
"""

from typing import Any, Mapping, Optional

PRIMARY_CLAIM = "username"
FALLBACK_CLAIM = "cognito:username"


def resolve_identity(claims: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Resolve the canonical user identifier from a claim set.

    The fallback claim is consulted only when the primary claim is absent or
    null. A present-but-empty primary value is returned as-is.

    Args:
        claims: Claim name to value mapping (may be None)

    Returns:
        The caller's user name, or None when neither claim is present
    """
    if not claims:
        return None

    identity = claims.get(PRIMARY_CLAIM)
    if identity is None:
        identity = claims.get(FALLBACK_CLAIM)
    return identity
