from .base import Connector
from .registry import TransportRegistry, default_registry

__all__ = ["Connector", "TransportRegistry", "default_registry"]
