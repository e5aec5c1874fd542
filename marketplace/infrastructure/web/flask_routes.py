import json
import queue
from typing import Callable, Optional

from flask import Blueprint, Response, jsonify, current_app, stream_with_context

from marketplace.application.notices import NoticeBoard
from marketplace.application.use_cases import OrderViewSynchronizer, format_partition
from marketplace.domain.entities import OrderPartition
from marketplace.domain.errors import MarketplaceError, AuthRequired, AccessDenied, LoadError
from marketplace.domain.interfaces import AuthServiceInterface
from .responses import bearer_token, error_response

SynchronizerFactory = Callable[..., OrderViewSynchronizer]

KEEPALIVE_SECONDS = 15


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def create_api_blueprint(
    synchronizer_factory: SynchronizerFactory,
    auth_service: AuthServiceInterface,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
):
    """
    Función de fábrica para inyectar las dependencias en el Blueprint del cliente.
    Crea un nuevo Blueprint en cada llamada para evitar conflictos en tests.
    """
    api_bp = Blueprint('customer', __name__)

    @api_bp.route('/orders', methods=['GET'])
    def get_orders():
        """
        Carga única de la vista de pedidos: activos (con seguimiento) e historial.
        """
        notices = NoticeBoard()
        session = auth_service.get_session(bearer_token())
        synchronizer = synchronizer_factory(notices)
        try:
            # 1. Verificar rol y cargar (Lógica de Negocio)
            partition = synchronizer.initialize(session)
        except MarketplaceError as e:
            current_app.logger.warning(f"No se pudo cargar la vista de pedidos: {e.notice}")
            return error_response(e, notices)

        # 2. Retornar la vista particionada
        body = format_partition(partition)
        body["notices"] = notices.drain()
        return jsonify(body), 200

    @api_bp.route('/orders/stream', methods=['GET'])
    def stream_orders():
        """
        Server-Sent Events: mantiene montado un sincronizador mientras la conexión
        siga abierta y envía la vista completa cada vez que cambia un pedido.
        """
        notices = NoticeBoard()
        session = auth_service.get_session(bearer_token())
        updates: "queue.Queue[OrderPartition]" = queue.Queue()
        synchronizer = synchronizer_factory(notices, on_change=updates.put)

        try:
            initial = synchronizer.mount(session)
        except (AuthRequired, AccessDenied) as e:
            return error_response(e, notices)
        except LoadError:
            # La suscripción sigue activa; se envía la vista vacía y el aviso
            initial = synchronizer.partition

        def generate(partition: Optional[OrderPartition]):
            try:
                while True:
                    if partition is None:
                        yield ": keepalive\n\n"
                    else:
                        body = format_partition(partition)
                        body["notices"] = notices.drain()
                        yield _sse("orders", body)
                    try:
                        partition = updates.get(timeout=keepalive_seconds)
                    except queue.Empty:
                        partition = None
            finally:
                # Liberación garantizada al cerrar la conexión
                synchronizer.unmount()

        response = Response(
            stream_with_context(generate(initial)),
            mimetype='text/event-stream',
            headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
        )
        # Cubre el caso en que el generador nunca llega a iterarse
        response.call_on_close(synchronizer.unmount)
        return response

    return api_bp
