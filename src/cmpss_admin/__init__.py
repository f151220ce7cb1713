from .auth_store import AuthStore
from .config import ClientConfig, ConfigError, load_config
from .context import AdminContext, build_context
from .exceptions import (
    ApiError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    ResponseShapeError,
    SessionExpiredError,
    TransportError,
    UnauthorizedError,
    ValidationError,
)
from .http_client import GatewayClient
from .middleware import GatewayPipeline, GatewayRequest, default_pipeline
from .models import Identity, LoginResponse
from .permission_errors import MISSING_PERMISSION_MARKER, PermissionDenial, classify_permission_error
from .query import PageRequest, PageResult, QueryController, ResourceConfig
from .session import SessionStore
from .ui_errors import UserFacingError, describe_failure

__all__ = [
    "AdminContext",
    "ApiError",
    "AuthError",
    "AuthStore",
    "ClientConfig",
    "ConfigError",
    "ForbiddenError",
    "GatewayClient",
    "GatewayPipeline",
    "GatewayRequest",
    "Identity",
    "LoginResponse",
    "MISSING_PERMISSION_MARKER",
    "NotFoundError",
    "PageRequest",
    "PageResult",
    "PermissionDenial",
    "QueryController",
    "ResourceConfig",
    "ResponseShapeError",
    "SessionExpiredError",
    "SessionStore",
    "TransportError",
    "UnauthorizedError",
    "UserFacingError",
    "ValidationError",
    "build_context",
    "classify_permission_error",
    "default_pipeline",
    "describe_failure",
    "load_config",
]
