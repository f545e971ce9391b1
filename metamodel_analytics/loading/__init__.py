"""Model file loaders."""

from .ecore_loader import EcoreLoader

__all__ = [
    "EcoreLoader"
]
