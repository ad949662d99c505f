"""Task orchestration for building, testing and releasing the controller."""

__version__ = "0.1.0"
