import typing


__all__ = (
    'Hook',
)


P = typing.TypeVar('P')


class Hook(typing.Generic[P]):
    """Named extension point with a typed payload.

    A workflow declares the hooks it may fire; unrelated modules register
    handlers for them without the workflow knowing they exist.
    """

    def __init__(self, name: str, payload_type: type[P]):
        if not name:
            raise ValueError("Hook name is required")
        self._name = name
        self._payload_type = payload_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def payload_type(self) -> type[P]:
        return self._payload_type

    def check_payload(self, payload: typing.Any) -> P:
        if not isinstance(payload, self._payload_type):
            raise TypeError("Hook %r expects %s payload, got %s" % (
                self._name, self._payload_type.__name__, type(payload).__name__
            ))
        return payload

    def __eq__(self, other):
        if not isinstance(other, Hook):
            return NotImplemented
        return self._name == other._name

    def __hash__(self):
        return hash(self._name)

    def __repr__(self):
        return "<%s %r>" % (type(self).__name__, self._name)
