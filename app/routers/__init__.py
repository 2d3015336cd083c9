# API Routers
from app.routers import api, receipts, purchases

__all__ = ["api", "receipts", "purchases"]
