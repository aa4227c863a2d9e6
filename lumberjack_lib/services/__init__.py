"""Services package: the DI container sessions resolve their collaborators from."""
from .container import ServiceContainer

__all__ = ["ServiceContainer"]
