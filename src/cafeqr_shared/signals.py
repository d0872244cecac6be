"""
Out-of-band signals.

``permission_error`` is sent whenever the access rules reject a store
operation, in addition to the error propagating to the caller.
"""

from blinker import Namespace

from cafeqr_shared.errors import PermissionDeniedError
from cafeqr_shared.logging_config import get_logger

logger = get_logger(__name__)

_signals = Namespace()

permission_error = _signals.signal("permission-error")


def emit_permission_error(error: PermissionDeniedError) -> PermissionDeniedError:
    """Publish the error and hand it back so callers can ``raise emit_permission_error(...)``."""
    permission_error.send(error.path, error=error)
    return error


@permission_error.connect
def log_permission_error(sender, error: PermissionDeniedError, **extra) -> None:
    logger.warning(
        "Permission denied",
        extra={
            "operation": error.operation,
            "path": error.path,
            "request_resource_data": error.request_resource_data,
        },
    )
