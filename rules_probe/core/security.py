from fastapi import Header, HTTPException
from ..config import API_KEYS

async def api_key_auth(x_api_key: str | None = Header(default=None)):
    """API key header check for the signal endpoint. Uses `x-api-key` header.

    Configure keys via `API_KEY` or `API_KEYS` env variables (comma-separated).
    """
    # If no keys configured, allow all (useful for local dev)
    if not API_KEYS:
        return True
    if not x_api_key or x_api_key not in API_KEYS:
        raise HTTPException(status_code=403, detail="Invalid or missing API key")
    return True


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Extract the Firebase ID token from `Authorization: Bearer ...`, if any."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise HTTPException(status_code=401, detail="Authorization header must be 'Bearer <token>'")
    return token.strip()
