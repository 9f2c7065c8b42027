"""Service layer built on the packet protocol."""

from .vehicle_link import VehicleLink

__all__ = ["VehicleLink"]
