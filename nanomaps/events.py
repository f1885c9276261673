"""Listener registration and event dispatch, plus before/after advice."""

import functools
from collections.abc import Callable, Iterable


class EventEmitter:
    """Minimal event emitter.

    ``emit`` calls an ``on<event>`` method on the instance (if any), then the
    once-only listeners, then the persistent listeners, each in the order
    they were added.
    """

    def _lists(self, event: str) -> tuple[list, list]:
        try:
            registry = self.__registry
        except AttributeError:
            registry = self.__registry = {}
        if event not in registry:
            registry[event] = ([], [])
        return registry[event]

    def on(self, event: str, listener: Callable) -> None:
        self._lists(event)[0].append(listener)

    add_listener = on

    def once(self, event: str, listener: Callable) -> None:
        self._lists(event)[1].append(listener)

    def remove_listener(self, event: str, listener: Callable) -> None:
        for lst in self._lists(event):
            lst[:] = [fn for fn in lst if fn != listener]

    def remove_all_listeners(self, event: str) -> None:
        for lst in self._lists(event):
            lst.clear()

    def listeners(self, event: str) -> list[Callable]:
        return list(self._lists(event)[0])

    def emit(self, event: str, *args) -> None:
        persistent, once = self._lists(event)

        name = "on" + event
        # "on" and "once" are registration methods, not event hooks.
        handler = None if name in ("on", "once") else getattr(self, name, None)
        if callable(handler):
            handler(*args)

        # Detach the once list before calling so re-registration lands on the next emit.
        pending = once[:]
        once.clear()
        for listener in pending:
            listener(*args)

        for listener in persistent[:]:
            listener(*args)


def advise(func: Callable, before: Iterable[Callable] = (),
           after: Iterable[Callable] = ()) -> Callable:
    """Wrap ``func`` so the ``before`` hooks run ahead of it and ``after`` hooks follow.

    All hooks receive the wrapped call's arguments.  The wrapper returns
    ``func``'s result.
    """
    before = list(before)
    after = list(after)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        for hook in before:
            hook(*args, **kwargs)
        result = func(*args, **kwargs)
        for hook in after:
            hook(*args, **kwargs)
        return result

    return wrapper
