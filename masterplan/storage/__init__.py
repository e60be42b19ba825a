from .local import PUBLIC_PREFIX, LocalStorage

__all__ = ["LocalStorage", "PUBLIC_PREFIX"]
