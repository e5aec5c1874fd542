from typing import Callable

from flask import Blueprint, jsonify, request, current_app

from marketplace.application.notices import NoticeBoard
from marketplace.application.product_use_cases import ManageProductsUseCase, format_product
from marketplace.domain.errors import MarketplaceError
from marketplace.domain.interfaces import AuthServiceInterface
from .responses import bearer_token, error_response

PRODUCT_FORM_FIELDS = ["name", "description", "price", "stock", "category"]


def _read_product_form():
    """Lee el formulario de producto (multipart o JSON) y la imagen adjunta, si existe."""
    if request.mimetype == 'multipart/form-data' or request.form:
        source = request.form
    else:
        data = request.get_json(silent=True)
        source = data if isinstance(data, dict) else {}
    form = {field: source.get(field, "") for field in PRODUCT_FORM_FIELDS}

    image = request.files.get('image')
    if image is not None and image.filename == '':
        image = None
    return form, image


def create_vendor_api_blueprint(
    products_case_factory: Callable[[NoticeBoard], ManageProductsUseCase],
    auth_service: AuthServiceInterface,
):
    """
    Función de fábrica para el Blueprint del tablero del vendedor.
    Todas las rutas exigen sesión con rol vendor.
    """
    vendor_bp = Blueprint('vendor', __name__)

    @vendor_bp.route('/products', methods=['GET'])
    def list_products():
        notices = NoticeBoard()
        products_case = products_case_factory(notices)
        session = auth_service.get_session(bearer_token())
        try:
            products_case.authorize(session)
            products = products_case.list_products(session)
        except MarketplaceError as e:
            return error_response(e, notices)

        return jsonify({
            "products": [format_product(p) for p in products],
            "notices": notices.drain(),
        }), 200

    @vendor_bp.route('/products', methods=['POST'])
    def create_product():
        notices = NoticeBoard()
        products_case = products_case_factory(notices)
        session = auth_service.get_session(bearer_token())
        form, image = _read_product_form()
        try:
            products_case.authorize(session)
            product = products_case.save_product(session, form, image=image)
        except MarketplaceError as e:
            current_app.logger.warning(f"No se pudo crear el producto: {e.notice}")
            return error_response(e, notices)

        return jsonify({"product": format_product(product), "notices": notices.drain()}), 201

    @vendor_bp.route('/products/<product_id>', methods=['PUT'])
    def update_product(product_id):
        notices = NoticeBoard()
        products_case = products_case_factory(notices)
        session = auth_service.get_session(bearer_token())
        form, image = _read_product_form()
        try:
            products_case.authorize(session)
            product = products_case.save_product(session, form, image=image, product_id=product_id)
        except MarketplaceError as e:
            current_app.logger.warning(f"No se pudo actualizar el producto {product_id}: {e.notice}")
            return error_response(e, notices)

        return jsonify({"product": format_product(product), "notices": notices.drain()}), 200

    @vendor_bp.route('/products/<product_id>', methods=['DELETE'])
    def delete_product(product_id):
        notices = NoticeBoard()
        products_case = products_case_factory(notices)
        session = auth_service.get_session(bearer_token())
        try:
            products_case.authorize(session)
            products_case.delete_product(session, product_id)
        except MarketplaceError as e:
            return error_response(e, notices)

        return jsonify({"notices": notices.drain()}), 200

    return vendor_bp
