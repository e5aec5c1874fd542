"""Feed de cambios de pedidos sobre LISTEN/NOTIFY de Postgres."""

import json
import logging
import select
import threading
from typing import Any, Callable, Optional

import psycopg2

from config import Config
from marketplace.domain.errors import DataAccessError
from marketplace.domain.interfaces import ChangeFeed, Subscription
from marketplace.infrastructure.persistence.db_connector import open_dedicated_connection

logger = logging.getLogger(__name__)


def parse_payload(raw: str) -> Any:
    """El payload se entrega tal cual; si es JSON se decodifica."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


class PgSubscription(Subscription):
    """
    Suscripción con una conexión dedicada y un hilo que espera notificaciones.
    unsubscribe() detiene el hilo, espera su salida y cierra la conexión.
    """

    def __init__(
        self,
        channel: str,
        callback: Callable[[Any], None],
        connection_factory: Callable = open_dedicated_connection,
        poll_interval: float = 1.0,
    ):
        self.channel = channel
        self.callback = callback
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._conn = None
        try:
            self._conn = connection_factory()
            cursor = self._conn.cursor()
            cursor.execute(f'LISTEN "{channel}";')
        except psycopg2.Error as e:
            logger.error(f"No se pudo escuchar el canal {channel}: {e}")
            if self._conn is not None:
                self._conn.close()
            raise DataAccessError(f"Could not subscribe to channel {channel}.") from e
        self._thread = threading.Thread(target=self._listen, name=f"listen-{channel}", daemon=True)
        self._thread.start()
        logger.info(f"Suscripción iniciada en el canal {channel}")

    def _listen(self) -> None:
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([self._conn], [], [], self.poll_interval)
                if not ready:
                    continue
                self._conn.poll()
            except (psycopg2.Error, OSError, ValueError) as e:
                if not self._stop.is_set():
                    logger.error(f"Error escuchando el canal {self.channel}: {e}")
                return

            while self._conn.notifies:
                notify = self._conn.notifies.pop(0)
                self._dispatch(notify.payload)

    def _dispatch(self, raw_payload: str) -> None:
        try:
            self.callback(parse_payload(raw_payload))
        except Exception as e:
            # Un callback que falla no debe detener el hilo de escucha
            logger.error(f"Error procesando notificación del canal {self.channel}: {e}")

    def unsubscribe(self) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        self._thread.join(timeout=self.poll_interval * 2)
        try:
            self._conn.close()
        except psycopg2.Error as e:
            logger.warning(f"Error cerrando la conexión del canal {self.channel}: {e}")
        logger.info(f"Suscripción finalizada en el canal {self.channel}")


class PgOrderChangeFeed(ChangeFeed):
    """Notifica los UPDATE sobre public.orders publicados por el trigger de schema.sql."""

    def __init__(self, channel: Optional[str] = None, connection_factory: Callable = open_dedicated_connection):
        self.channel = channel or Config.ORDERS_CHANNEL
        self.connection_factory = connection_factory

    def subscribe(self, callback: Callable[[Any], None]) -> Subscription:
        return PgSubscription(self.channel, callback, connection_factory=self.connection_factory)
