"""
Default router.

Execution decisions belong to whatever router the deployment plugs in;
this one only reports what it is handed.
"""
import logging

logger = logging.getLogger(__name__)


def log_route(config, request):
    """Log the state of a discovered request."""
    if getattr(request, 'was_called', False):
        state = 'executed'
    elif getattr(request, 'is_cancelled', False):
        state = 'cancelled'
    else:
        state = 'pending'
    logger.info(f"[{request.address}] Routed | windowStart: {request.window_start} | state: {state}")
