from .awaitable import maybe_await


__all__ = ('maybe_await', )
