"""netlab - WiFi scan, connect and hotspot control over NetworkManager."""

__version__ = "0.3.0"
