"""Health endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_notifier
from ..schemas import HealthStatus, NotifierHealthStatus
from ..services.notifier import ChangeNotifier

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
def get_health(notifier: ChangeNotifier = Depends(get_notifier)) -> HealthStatus:
    """Return service heartbeat information."""

    notifier_status = NotifierHealthStatus(status="ok")
    if not notifier.ping():
        notifier_status = NotifierHealthStatus(status="error", detail="redis_unreachable")
    return HealthStatus(notifier=notifier_status)
