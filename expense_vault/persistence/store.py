"""
Collection Store

The in-memory cell collaborators work with. It is seeded once, in its
constructor, by the loader; afterwards every mutation is validated,
pushed to subscribers and handed to the persister.

DESIGN DECISION: Stores are explicit objects created by the application
(see expense_vault.orchestrator), never module-level singletons, so
nothing is loaded as a side effect of importing a module.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from expense_vault.audit import PersistenceLogger
from expense_vault.models.events import PersistenceEventBuilder
from expense_vault.persistence.collections import CollectionDefinition
from expense_vault.persistence.loader import LoadResult, load_collection
from expense_vault.persistence.persister import Persister
from expense_vault.services.storage.interface import KeyValueStore


T = TypeVar("T")

Subscriber = Callable[[Any], None]


class CollectionStore(Generic[T]):
    """
    Observable, persisted value of one collection.

    Collaborators:
    - read() the current value
    - mutate(new_value) / update(fn) to replace it
    - subscribe(callback) to hear about every change
    """

    def __init__(
        self,
        definition: CollectionDefinition,
        kv_store: Optional[KeyValueStore],
        event_logger: Optional[PersistenceLogger] = None,
        quarantine_unreadable: bool = True,
    ):
        self._definition = definition
        self._events = event_logger or PersistenceLogger()
        self._persister = Persister(definition, kv_store, self._events)
        self._subscribers: list[Subscriber] = []

        self._load_result = load_collection(
            definition,
            kv_store,
            event_logger=self._events,
            quarantine_unreadable=quarantine_unreadable,
        )
        self._value = self._load_result.value

    @property
    def name(self) -> str:
        return self._definition.name

    @property
    def definition(self) -> CollectionDefinition:
        return self._definition

    @property
    def load_result(self) -> LoadResult:
        """Outcome of the startup load."""
        return self._load_result

    @property
    def value(self) -> T:
        return self.read()

    def read(self) -> T:
        """
        Current value.

        Sequence collections are returned as a new list, so editing the
        result in place never bypasses mutate().
        """
        return self._snapshot()

    def mutate(self, new_value: Any) -> T:
        """
        Replace the whole value.

        The new value is validated like stored data (items may be models
        or plain dicts), subscribers are notified, and the value is
        persisted. Persistence failures are logged, never raised.

        Returns:
            The validated value now held by the store
        """
        d = self._definition
        value, issues = d.validate_payload(d.to_storage_payload(new_value))
        if issues:
            self._events.log(PersistenceEventBuilder.record_repaired(
                d.name, d.storage_key, [issue.model_dump() for issue in issues],
            ))

        self._value = value
        self._notify()
        self._persister.persist(value)
        return self._snapshot()

    def update(self, fn: Callable[[T], Any]) -> T:
        """Mutate with fn(current value)."""
        return self.mutate(fn(self._snapshot()))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call `callback(value)` after every mutation.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._snapshot())
            except Exception as e:
                # One broken observer must not stop the others or the save
                self._events.log(PersistenceEventBuilder.observer_failed(self.name, e))

    def _snapshot(self) -> Any:
        if isinstance(self._value, list):
            return list(self._value)
        return self._value
