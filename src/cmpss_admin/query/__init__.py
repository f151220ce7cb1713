from .controller import QueryController
from .filters import ALL_SENTINEL, FilterKind, FilterSpec, parse_filter_params, serialize_filters
from .pagination import PageRequest, PageResult, total_pages_for
from .resources import DISBURSEMENTS, PAYMENTS, PROVIDER_SETTLEMENTS, RESOURCES, SETTLEMENTS, ResourceConfig

__all__ = [
    "ALL_SENTINEL",
    "DISBURSEMENTS",
    "FilterKind",
    "FilterSpec",
    "PAYMENTS",
    "PROVIDER_SETTLEMENTS",
    "PageRequest",
    "PageResult",
    "QueryController",
    "RESOURCES",
    "ResourceConfig",
    "SETTLEMENTS",
    "parse_filter_params",
    "serialize_filters",
    "total_pages_for",
]
