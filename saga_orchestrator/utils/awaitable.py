import inspect
import typing


__all__ = ('maybe_await', )


T = typing.TypeVar('T')


async def maybe_await(value: T | typing.Awaitable[T]) -> T:
    """Await the value if the callee turned out to be a coroutine function."""
    if inspect.isawaitable(value):
        return await value
    return value
