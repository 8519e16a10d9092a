import typing
from abc import ABCMeta, abstractmethod


__all__ = (
    'IDisposable',
    'Disposable',
    'CompositeDisposable',
)


class IDisposable(metaclass=ABCMeta):

    @abstractmethod
    async def dispose(self) -> None:
        raise NotImplementedError

    def __add__(self, other: 'IDisposable') -> 'IDisposable':
        return CompositeDisposable(self, other)


class Disposable(IDisposable):

    def __init__(self, callback: typing.Callable[[], typing.Awaitable[None]]):
        self._callback = callback

    async def dispose(self) -> None:
        await self._callback()


class CompositeDisposable(IDisposable):

    def __init__(self, *delegates: IDisposable):
        self._delegates: list[IDisposable] = list(delegates)

    async def dispose(self) -> None:
        for delegate in self._delegates:
            await delegate.dispose()

    def __add__(self, other: IDisposable) -> IDisposable:
        return CompositeDisposable(*self._delegates, other)
