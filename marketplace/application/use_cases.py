# marketplace/application/use_cases.py
from typing import List, Dict, Any, Optional, Iterable, Callable
import logging

from marketplace.domain.entities import Order, OrderPartition, Role, Session
from marketplace.domain.errors import LoadError, DataAccessError
from marketplace.domain.interfaces import OrderRepository, RoleRepository, ChangeFeed, Subscription, Notifier
from marketplace.application.access_control import require_role

logger = logging.getLogger(__name__)


def partition_orders(orders: Iterable[Order]) -> OrderPartition:
    """
    Divide los pedidos en activos e historial y los ordena por fecha de
    creación descendente. Cada pedido cae exactamente en una de las dos listas.
    """
    ordered = sorted(orders, key=lambda order: order.created_at, reverse=True)
    active = [order for order in ordered if order.is_active]
    history = [order for order in ordered if not order.is_active]
    return OrderPartition(active_orders=active, order_history=history)


def format_order(order: Order, show_tracking: bool = False) -> Dict[str, Any]:
    """Formatea un pedido para el tablero del cliente."""
    formatted = {
        "id": order.id,
        "product_name": order.product_name,
        "product_price": order.product_price,
        "quantity": order.quantity,
        "total_amount": order.total_amount,
        "delivery_address": order.delivery_address,
        "customer_phone": order.customer_phone,
        "status": order.status.value,
        "status_label": order.status_label,
        "badge_variant": order.badge_variant,
        "created_at": order.created_at.isoformat(),
        "rider_id": order.rider_id,
    }
    # Solo los pedidos activos muestran el seguimiento de entrega
    if show_tracking:
        formatted["status_description"] = order.status_description
    return formatted


def format_partition(partition: OrderPartition) -> Dict[str, Any]:
    return {
        "active_orders": [format_order(o, show_tracking=True) for o in partition.active_orders],
        "order_history": [format_order(o) for o in partition.order_history],
        "counts": {
            "active": len(partition.active_orders),
            "history": len(partition.order_history),
        },
    }


class OrderViewSynchronizer:
    """
    Mantiene en memoria la vista actualizada de los pedidos de un cliente,
    dividida en activos e historial.

    Ante cualquier notificación del feed de cambios recarga todo (no hay
    merge parcial). Las recargas no se cancelan ni se deduplican: si dos se
    solapan, gana la última respuesta en llegar.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        role_repository: RoleRepository,
        change_feed: ChangeFeed,
        notifier: Notifier,
        on_change: Optional[Callable[[OrderPartition], None]] = None,
    ):
        self.order_repository = order_repository
        self.role_repository = role_repository
        self.change_feed = change_feed
        self.notifier = notifier
        self.on_change = on_change
        self._partition = OrderPartition()
        self._session: Optional[Session] = None
        self._subscription: Optional[Subscription] = None

    # --- Estado observable ---

    @property
    def partition(self) -> OrderPartition:
        return self._partition

    @property
    def active_orders(self) -> List[Order]:
        return self._partition.active_orders

    @property
    def order_history(self) -> List[Order]:
        return self._partition.order_history

    # --- Operaciones ---

    def initialize(self, session: Optional[Session]) -> OrderPartition:
        """
        Verifica que el usuario sea cliente y dispara la primera carga.

        Raises:
            AuthRequired, AccessDenied
        """
        require_role(session, Role.CUSTOMER, self.role_repository, self.notifier)
        self._session = session
        return self.load_orders(session)

    def load_orders(self, session: Optional[Session]) -> OrderPartition:
        """
        Consulta todos los pedidos del cliente y reemplaza la vista completa.
        Si la consulta falla, la vista anterior se conserva intacta.

        Raises:
            LoadError
        """
        if session is None:
            return self._partition

        try:
            orders = self.order_repository.get_orders_by_customer_id(session.user_id)
        except DataAccessError as e:
            logger.error(f"Error al cargar pedidos del cliente {session.user_id}: {e}")
            notice = LoadError.default_notice
            self.notifier.error(notice)
            raise LoadError(notice) from e

        # Un único reemplazo de referencia: activos e historial cambian juntos
        self._partition = partition_orders(orders)
        logger.info(
            f"Pedidos cargados para {session.user_id}: "
            f"{len(self._partition.active_orders)} activos, {len(self._partition.order_history)} en historial"
        )
        return self._partition

    def on_external_change_notification(self, event: Any = None) -> None:
        """
        Callback del feed de cambios. El contenido del evento se ignora y se
        recarga todo con la sesión montada. on_change recibe la vista vigente
        (la nueva, o la anterior si la recarga falló).
        """
        logger.info("Pedido actualizado, recargando vista")
        try:
            self.load_orders(self._session)
        except LoadError:
            # Ya se avisó al usuario; el próximo evento actúa como reintento.
            pass
        if self.on_change is not None:
            self.on_change(self._partition)

    # --- Ciclo de vida de la suscripción ---

    def mount(self, session: Optional[Session]) -> OrderPartition:
        """
        Verifica sesión y rol, adquiere la suscripción al feed y luego carga.
        Una petición rechazada nunca abre la suscripción. La carga ocurre después
        de suscribirse, así que los cambios intermedios no se pierden.
        Un LoadError mantiene la suscripción: el próximo evento reintenta la carga.

        Raises:
            AuthRequired, AccessDenied, LoadError
        """
        require_role(session, Role.CUSTOMER, self.role_repository, self.notifier)
        self._session = session
        try:
            self._subscription = self.change_feed.subscribe(self.on_external_change_notification)
        except DataAccessError as e:
            # Sin feed la vista sigue siendo válida; solo deja de actualizarse sola
            logger.error(f"No se pudo suscribir al feed de pedidos: {e}")
            self.notifier.error("Live order updates are unavailable")
        return self.load_orders(session)

    def unmount(self) -> None:
        """Libera la suscripción. Se puede llamar más de una vez."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
            logger.info("Suscripción a cambios de pedidos liberada")

    @property
    def is_mounted(self) -> bool:
        return self._subscription is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unmount()
        return False
