"""Store interface consumed by contexts."""

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from annoctx.core.actions import Action

Listener = Callable[[Action], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class StoreProtocol(Protocol):
    """A unidirectional state-update store.

    ``dispatch`` is synchronous from the caller's perspective and returns
    whatever the store considers the result of applying the action.
    """

    def dispatch(self, action: Action) -> Any: ...

    def get_state(self) -> Mapping[str, Any]: ...
