"""QR Menu: restaurant menu viewer and owner dashboard backend."""

__version__ = "0.1.0"
