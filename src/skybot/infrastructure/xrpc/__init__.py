"""XRPC transport, operation namespace and call throttling."""

from .client import LEXICON_METHODS, XrpcClient, XrpcMethod, XrpcResponse, build_namespace
from .interceptor import throttle_operations
from .namespace import RESERVED_NAMES, SERVICE_NODE, OperationGroup

__all__ = [
    "LEXICON_METHODS",
    "RESERVED_NAMES",
    "SERVICE_NODE",
    "OperationGroup",
    "XrpcClient",
    "XrpcMethod",
    "XrpcResponse",
    "build_namespace",
    "throttle_operations",
]
