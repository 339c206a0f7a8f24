from . import images, posts

__all__ = ["images", "posts"]
