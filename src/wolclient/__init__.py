"""wolclient: register machines and wake them with Wake-on-LAN."""

__version__ = "0.1.0"
