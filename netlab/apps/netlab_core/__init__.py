"""netlab core application - WiFi service facade."""

from .service import WiFiService, create_bus

__all__ = ["WiFiService", "create_bus"]
