from checkin_service.routes.admin import admin_bp
from checkin_service.routes.public import public_bp

__all__ = ["admin_bp", "public_bp"]
