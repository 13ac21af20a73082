from .admin import admin_router
from .ads import ads_router
from .callbacks import callbacks_router

__all__ = ["admin_router", "ads_router", "callbacks_router"]
