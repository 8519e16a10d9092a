from .disposable import CompositeDisposable, Disposable, IDisposable


__all__ = (
    'CompositeDisposable',
    'Disposable',
    'IDisposable',
)
