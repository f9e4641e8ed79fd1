"""Marathon Photobooth - kiosk selfie compositing backend."""

__version__ = "0.1.0"
