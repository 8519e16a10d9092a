from .hook import Hook
from .registry import HookFailure, HookHandler, HookRegistry


__all__ = (
    'Hook',
    'HookFailure',
    'HookHandler',
    'HookRegistry',
)
