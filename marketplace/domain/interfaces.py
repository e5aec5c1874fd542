# marketplace/domain/interfaces.py
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any, Callable, BinaryIO, runtime_checkable, Protocol
from .entities import Order, Product, Role, Session


class OrderRepository(ABC):
    """
    Contrato (Interfaz) para la lectura de Pedidos.
    La capa de Aplicación solo conoce esta Interfaz, no la implementación.
    """
    @abstractmethod
    def get_orders_by_customer_id(self, customer_id: str) -> List[Order]:
        """Recupera todos los pedidos del cliente, del más reciente al más antiguo."""
        pass


class RoleRepository(ABC):
    @abstractmethod
    def get_role(self, user_id: str) -> Optional[Role]:
        """Retorna el rol del usuario o None si no tiene uno asignado."""
        pass

    @abstractmethod
    def insert_role(self, user_id: str, role: Role) -> None:
        pass


class ProductRepository(ABC):
    @abstractmethod
    def get_products_by_vendor_id(self, vendor_id: str) -> List[Product]:
        pass

    @abstractmethod
    def insert_product(self, product: Product) -> Product:
        pass

    @abstractmethod
    def update_product(self, product: Product) -> Product:
        pass

    @abstractmethod
    def delete_product(self, product_id: str, vendor_id: str) -> None:
        pass

    @abstractmethod
    def get_product(self, product_id: str, vendor_id: str) -> Optional[Product]:
        pass


class Subscription(ABC):
    """Recurso de larga vida devuelto por una suscripción; debe liberarse siempre."""

    @abstractmethod
    def unsubscribe(self) -> None:
        pass


class ChangeFeed(ABC):
    """
    Fuente externa de notificaciones de cambios sobre la tabla de pedidos.
    El callback recibe el payload tal cual llega (opaco).
    """
    @abstractmethod
    def subscribe(self, callback: Callable[[Any], None]) -> Subscription:
        pass


@runtime_checkable
class StorageServiceInterface(Protocol):
    """
    Contrato para cualquier servicio de almacenamiento de archivos.
    La capa de Aplicación depende de la abstracción, no de boto3/S3.
    """

    @abstractmethod
    def upload_file(self, path: str, file: BinaryIO, content_type: Optional[str] = None) -> str:
        """Sube un archivo y retorna su URL pública."""
        pass


class AuthServiceInterface(ABC):
    """Servicio de identidad y sesión de la plataforma."""

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> Session:
        pass

    @abstractmethod
    def sign_up(self, email: str, password: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Retorna {'user_id': str, 'session': Optional[Session]}."""
        pass

    @abstractmethod
    def sign_out(self, session: Session) -> None:
        pass

    @abstractmethod
    def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        pass


@runtime_checkable
class Notifier(Protocol):
    """Canal de avisos transitorios visibles para el usuario (toasts)."""

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...
