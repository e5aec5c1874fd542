# marketplace/domain/entities.py
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List


class OrderStatus(str, Enum):
    """Estados posibles de un pedido. Los cambia el vendedor o el rider, nunca este servicio."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Regla de partición: activos vs. historial (total y exclusiva)
ACTIVE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED, OrderStatus.IN_TRANSIT})
HISTORY_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# Presentación de cada estado en el tablero del cliente
ORDER_STATUS_MAP = {
    OrderStatus.PENDING: {
        "badge": "secondary",
        "description": "Waiting for a rider to accept your order",
    },
    OrderStatus.ACCEPTED: {
        "badge": "default",
        "description": "A rider has accepted your order and will pick it up soon",
    },
    OrderStatus.IN_TRANSIT: {
        "badge": "default",
        "description": "Your order is on the way!",
    },
    OrderStatus.DELIVERED: {
        "badge": "default",
        "description": "Order delivered successfully",
    },
    OrderStatus.CANCELLED: {
        "badge": "destructive",
        "description": "This order was cancelled",
    },
}


class Role(str, Enum):
    """Rol único por usuario; define a qué tablero tiene acceso."""
    CUSTOMER = "customer"
    VENDOR = "vendor"
    RIDER = "rider"


ROLE_DASHBOARD_MAP = {
    Role.CUSTOMER: "/customer",
    Role.VENDOR: "/vendor",
    Role.RIDER: "/rider",
}

# Toda la enumeración debe tener tablero: un rol nuevo sin ruta falla al importar.
_missing_roles = set(Role) - set(ROLE_DASHBOARD_MAP)
if _missing_roles:
    raise RuntimeError(f"Roles sin tablero asignado: {sorted(r.value for r in _missing_roles)}")


def dashboard_path_for(role: Role) -> str:
    """Devuelve la ruta del tablero correspondiente al rol."""
    return ROLE_DASHBOARD_MAP[role]


@dataclass
class Session:
    """
    Contexto explícito de la sesión autenticada.
    Se pasa a cada operación en lugar de leerse de un estado global.
    """
    access_token: str
    user_id: str
    email: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Order:
    """Entidad central de Pedido (solo lectura para el cliente)."""
    id: str
    customer_id: str
    product_name: str
    product_price: float
    quantity: int
    total_amount: float
    delivery_address: str
    customer_phone: str
    status: OrderStatus
    created_at: datetime
    rider_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def status_label(self) -> str:
        """'in_transit' -> 'in transit'."""
        return self.status.value.replace("_", " ")

    @property
    def status_description(self) -> str:
        return ORDER_STATUS_MAP[self.status]["description"]

    @property
    def badge_variant(self) -> str:
        return ORDER_STATUS_MAP[self.status]["badge"]


@dataclass(frozen=True)
class OrderPartition:
    """Vista particionada de los pedidos de un cliente, ordenada del más reciente al más antiguo."""
    active_orders: List[Order] = field(default_factory=list)
    order_history: List[Order] = field(default_factory=list)


@dataclass
class Product:
    """Producto del inventario de un vendedor."""
    id: Optional[str]
    vendor_id: str
    name: str
    price: float
    stock: int
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    created_at: Optional[datetime] = None
