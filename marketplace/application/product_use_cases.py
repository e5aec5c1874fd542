"""Casos de uso del tablero del vendedor: inventario de productos."""

from typing import List, Dict, Any, Optional
import logging
import re
import time

from marketplace.domain.entities import Product, Role, Session
from marketplace.domain.errors import (
    LoadError, MutationError, ValidationError, DataAccessError, StorageError
)
from marketplace.domain.interfaces import (
    ProductRepository, RoleRepository, StorageServiceInterface, Notifier
)
from marketplace.application.access_control import require_role

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
CATEGORY_MAX_LENGTH = 50

_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")


def _parse_float(value: Any) -> Optional[float]:
    """Interpreta el prefijo numérico del texto ('12.5kg' -> 12.5); None si no hay número."""
    match = _FLOAT_PREFIX.match(str(value if value is not None else ""))
    if not match:
        return None
    return float(match.group(0))


def _parse_int(value: Any) -> Optional[int]:
    match = _INT_PREFIX.match(str(value if value is not None else ""))
    if not match:
        return None
    return int(match.group(0))


def _trimmed(form: Dict[str, Any], key: str) -> str:
    value = form.get(key)
    return str(value).strip() if value is not None else ""


def validate_product_form(form: Dict[str, Any]) -> List[str]:
    """Valida el formulario de producto. Retorna la lista de errores en orden de campo."""
    errors = []

    name = _trimmed(form, "name")
    if not name:
        errors.append("Product name is required")
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(f"Product name must be at most {NAME_MAX_LENGTH} characters")

    if len(_trimmed(form, "description")) > DESCRIPTION_MAX_LENGTH:
        errors.append(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")

    price = _parse_float(form.get("price"))
    if price is None or not price > 0:
        errors.append("Price must be greater than 0")

    stock = _parse_int(form.get("stock"))
    if stock is None or stock < 0:
        errors.append("Stock must be 0 or greater")

    if len(_trimmed(form, "category")) > CATEGORY_MAX_LENGTH:
        errors.append(f"Category must be at most {CATEGORY_MAX_LENGTH} characters")

    return errors


def clean_product_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """Normaliza un formulario ya validado. Descripción y categoría vacías quedan en None."""
    return {
        "name": _trimmed(form, "name"),
        "description": _trimmed(form, "description") or None,
        "price": _parse_float(form.get("price")),
        "stock": _parse_int(form.get("stock")),
        "category": _trimmed(form, "category") or None,
    }


def image_size(image) -> int:
    """Tamaño en bytes del archivo subido (werkzeug FileStorage o similar)."""
    stream = image.stream
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


def build_image_path(user_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    """Ruta del objeto: <user_id>-<epoch_ms>.<extensión>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    extension = filename.split(".")[-1]
    return f"{user_id}-{now_ms}.{extension}"


def format_product(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "vendor_id": product.vendor_id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "image_url": product.image_url,
        "stock": product.stock,
        "category": product.category,
        "created_at": product.created_at.isoformat() if product.created_at else None,
    }


class ManageProductsUseCase:
    """
    Caso de uso: listar, crear, editar y eliminar productos del vendedor,
    con validación del formulario y subida de la imagen al almacenamiento.
    """

    def __init__(
        self,
        product_repository: ProductRepository,
        role_repository: RoleRepository,
        storage_service: StorageServiceInterface,
        notifier: Notifier,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ):
        self.repository = product_repository
        self.role_repository = role_repository
        self.storage_service = storage_service
        self.notifier = notifier
        self.max_image_bytes = max_image_bytes

    def authorize(self, session: Optional[Session]) -> None:
        require_role(session, Role.VENDOR, self.role_repository, self.notifier)

    def list_products(self, session: Session) -> List[Product]:
        try:
            return self.repository.get_products_by_vendor_id(session.user_id)
        except DataAccessError as e:
            logger.error(f"Error al cargar productos del vendedor {session.user_id}: {e}")
            self.notifier.error("Failed to load products")
            raise LoadError("Failed to load products") from e

    def validate_image(self, image) -> None:
        if image_size(image) > self.max_image_bytes:
            limit_mb = self.max_image_bytes // (1024 * 1024)
            notice = f"Image size must be less than {limit_mb}MB"
            self.notifier.error(notice)
            raise ValidationError([notice])

    def upload_image(self, session: Session, image) -> str:
        path = build_image_path(session.user_id, image.filename)
        return self.storage_service.upload_file(path, image.stream, getattr(image, "mimetype", None))

    def save_product(
        self,
        session: Session,
        form: Dict[str, Any],
        image=None,
        product_id: Optional[str] = None,
    ) -> Product:
        """
        Crea (product_id=None) o actualiza un producto.

        Raises:
            ValidationError: formulario o imagen inválidos.
            MutationError: fallo de almacenamiento o de base de datos. Lleva el formulario.
        """
        errors = validate_product_form(form)
        if errors:
            self.notifier.error(errors[0])
            raise ValidationError(errors, form=form)

        if image is not None:
            try:
                self.validate_image(image)
            except ValidationError as e:
                e.form = form
                raise

        data = clean_product_form(form)
        action = "update" if product_id else "add"

        try:
            existing = None
            if product_id:
                existing = self.repository.get_product(product_id, session.user_id)
                if existing is None:
                    raise MutationError("Product not found", form=form)

            image_url = existing.image_url if existing else None
            if image is not None:
                image_url = self.upload_image(session, image)

            product = Product(
                id=product_id,
                vendor_id=session.user_id,
                image_url=image_url,
                **data
            )
            if product_id:
                saved = self.repository.update_product(product)
                self.notifier.success("Product updated successfully!")
            else:
                saved = self.repository.insert_product(product)
                self.notifier.success("Product added successfully!")
            return saved

        except MutationError as e:
            self.notifier.error(e.notice)
            raise
        except (DataAccessError, StorageError) as e:
            logger.error(f"Error al guardar producto ({action}) del vendedor {session.user_id}: {e}")
            notice = str(e) or f"Failed to {action} product"
            self.notifier.error(notice)
            raise MutationError(notice, form=form) from e

    def delete_product(self, session: Session, product_id: str) -> None:
        try:
            self.repository.delete_product(product_id, session.user_id)
        except DataAccessError as e:
            logger.error(f"Error al eliminar el producto {product_id}: {e}")
            self.notifier.error("Failed to delete product")
            raise MutationError("Failed to delete product") from e
        self.notifier.success("Product deleted successfully!")
