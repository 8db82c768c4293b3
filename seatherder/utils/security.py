"""
Security utilities and authentication
"""

import secrets
import time
from collections import defaultdict
from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from seatherder.core.config import settings

# client ip -> request timestamps within the last minute
rate_limiter = defaultdict(list)

security = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify admin authentication token"""
    if not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Sliding one-minute rate limit by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    minute_ago = time.time() - 60
    recent = [t for t in rate_limiter[client_ip] if t > minute_ago]

    if len(recent) >= limit:
        rate_limiter[client_ip] = recent
        return False

    recent.append(time.time())
    rate_limiter[client_ip] = recent
    return True

def get_client_ip(request: Request) -> str:
    """Extract client IP from request, honouring reverse proxy headers"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"

def generate_public_code() -> str:
    """Short URL-safe code identifying an event publicly"""
    return secrets.token_urlsafe(8)
