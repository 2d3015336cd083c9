# Middleware package for the Play receipts API

from .request_id import RequestIDMiddleware
from .rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    rate_limit_signature,
    rate_limit_purchase_read,
    rate_limit_purchase_write
)

__all__ = [
    "RequestIDMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "rate_limit_signature",
    "rate_limit_purchase_read",
    "rate_limit_purchase_write"
]
