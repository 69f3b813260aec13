from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...core.dependencies import get_auth_service, get_entitlement_service
from ...services.auth_service import AuthService
from ...services.entitlement_service import EntitlementService

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """Dependency resolving the signed-in user's id from the bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in required")
    payload = auth_service.verify_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return str(payload["user_id"])


def require_subscriber(
    user_id: str = Depends(get_current_user_id),
    entitlement_service: EntitlementService = Depends(get_entitlement_service),
) -> str:
    """Dependency gating premium routes on an active subscription."""
    if not entitlement_service.is_entitled(user_id):
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Subscription required")
    return user_id
