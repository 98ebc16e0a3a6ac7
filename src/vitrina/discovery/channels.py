"""
Canales push con teardown explícito.

Reemplazan los listeners implícitos: cada suscripción devuelve un handle
que hay que cancelar cuando el listing sale de pantalla o cambia el usuario.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Generic, Hashable, Optional, TypeVar

import structlog

from vitrina.errors import StoreError

logger = structlog.get_logger()

T = TypeVar("T")


class Subscription:
    """Handle de una suscripción. cancel() es idempotente."""

    def __init__(self, channel: "Channel", callback: Callable):
        self._channel = channel
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._channel._remove(self)


class Channel(Generic[T]):
    """
    Registro de callbacks con último valor.

    Un suscriptor nuevo recibe el último valor publicado (si existe) al
    suscribirse, así no depende del orden entre fetch y suscripción.
    """

    def __init__(self, name: str = "channel", initial: Optional[T] = None):
        self.name = name
        self._subscriptions: list[Subscription] = []
        self._latest: Optional[T] = initial
        self._closed = False

    @property
    def latest(self) -> Optional[T]:
        return self._latest

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        if self._closed:
            raise RuntimeError(f"Canal cerrado: {self.name}")
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        if self._latest is not None:
            self._deliver(subscription, self._latest)
        return subscription

    def publish(self, value: T) -> None:
        if self._closed:
            return
        self._latest = value
        for subscription in list(self._subscriptions):
            self._deliver(subscription, value)

    def close(self) -> None:
        """Cierra el canal y cancela todas las suscripciones."""
        if self._closed:
            return
        for subscription in list(self._subscriptions):
            subscription.cancel()
        self._closed = True

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _deliver(self, subscription: Subscription, value: T) -> None:
        try:
            subscription._callback(value)
        except Exception as e:
            # Un callback roto no corta la entrega al resto
            logger.error("Error en suscriptor", channel=self.name, error=str(e))


class PollingFeed(ABC, Generic[T]):
    """
    Feed que consulta el store periódicamente y publica solo cuando cambia.

    Subclases implementan _poll() (devuelve el valor nuevo o lanza
    StoreError) y _signature() (para detectar cambios).
    """

    def __init__(self, name: str, poll_interval: float, initial: Optional[T] = None):
        self.poll_interval = poll_interval
        self.channel: Channel[T] = Channel(name=name, initial=initial)
        self.last_error: Optional[StoreError] = None
        self._signature_seen: Optional[Hashable] = (
            self._signature(initial) if initial is not None else None
        )
        self._task: Optional[asyncio.Task] = None

    @abstractmethod
    async def _poll(self) -> T:
        """Lee el estado actual del store."""

    @abstractmethod
    def _signature(self, value: T) -> Hashable:
        """Huella del valor para evitar publicar duplicados."""

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self.channel.closed

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        return self.channel.subscribe(callback)

    async def refresh(self) -> bool:
        """
        Consulta una vez y publica si hubo cambios.

        Returns:
            True si se publicó un valor nuevo
        """
        if self.closed:
            return False
        try:
            value = await self._poll()
        except StoreError as e:
            # Se conserva el último valor publicado
            self.last_error = e
            logger.warning("Error refrescando feed", channel=self.channel.name, error=str(e))
            return False

        self.last_error = None
        signature = self._signature(value)
        if signature == self._signature_seen:
            return False
        self._signature_seen = signature
        self.channel.publish(value)
        return True

    def start(self) -> None:
        """Lanza el polling en el event loop actual."""
        if self.running or self.closed:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self.closed:
            await self.refresh()
            await asyncio.sleep(self.poll_interval)

    def close(self) -> None:
        """Cancela el polling y cierra el canal."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.channel.close()
