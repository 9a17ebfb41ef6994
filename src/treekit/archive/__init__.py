from .codec import pack, unpack

__all__ = ["pack", "unpack"]
