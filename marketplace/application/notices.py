from dataclasses import dataclass
from typing import List, Dict
import logging
import threading

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    level: str
    message: str


class NoticeBoard:
    """
    Acumula los avisos transitorios generados durante una operación.
    La capa web los drena y los envía al cliente junto con la respuesta.
    Seguro entre hilos: en el stream SSE el hilo del feed publica mientras
    el de la petición drena.
    """

    def __init__(self):
        self._notices: List[Notice] = []
        self._lock = threading.Lock()

    def _add(self, level: str, message: str) -> None:
        with self._lock:
            self._notices.append(Notice(level, message))

    def success(self, message: str) -> None:
        logger.info(f"NOTICE success: {message}")
        self._add("success", message)

    def error(self, message: str) -> None:
        logger.warning(f"NOTICE error: {message}")
        self._add("error", message)

    def drain(self) -> List[Dict[str, str]]:
        """Retorna los avisos pendientes y los descarta."""
        with self._lock:
            pending, self._notices = self._notices, []
        return [{"level": n.level, "message": n.message} for n in pending]

    def __len__(self):
        with self._lock:
            return len(self._notices)
