from .generated import Barbers, Base, Bookings, CapacityOverrides, Services, WalkInQueue

__all__ = [
    "Base",
    "Barbers",
    "Bookings",
    "CapacityOverrides",
    "Services",
    "WalkInQueue",
]
