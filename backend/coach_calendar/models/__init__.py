from .tables import Base, BlockedSlot, Booking

__all__ = ["Base", "BlockedSlot", "Booking"]
