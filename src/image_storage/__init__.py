"""Image Storage Package."""

__version__ = "1.0.0"
__author__ = "Bharat kumar"
__description__ = (
    "Content-addressed image store with an on-demand derivative cache"
)

__all__ = ["storage", "cli"]
