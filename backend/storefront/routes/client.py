# Overview: Flask API routes for customer purchases; basket submission, invoices and history.

# backend/storefront/routes/client.py
"""Client API routes: purchase, invoice, purchase history."""

from flask import Blueprint, request, jsonify, g

from ..services import purchase_service, ledger_service
from ..validation import validate_basket
from ..decorators import require_auth


client_bp = Blueprint("client", __name__, url_prefix="/client")


@client_bp.post("/purchase")
@require_auth
def purchase_route():
    """
    Purchase a basket of products.

    Body: {"products": [{"product_id": 1, "quantity": 2}, ...]}

    201 on success. 400 for field errors or insufficient stock, 404 for an
    unknown product; in both cases nothing is recorded.
    """
    items = validate_basket(request.get_json(silent=True))
    purchase = purchase_service.place_purchase(g.current_user.id, items)

    return jsonify({
        "message": "Purchase completed successfully!",
        "purchase": purchase.to_dict(),
    }), 201


@client_bp.get("/invoice/<int:purchase_id>")
@require_auth
def invoice_route(purchase_id: int):
    """
    Invoice for one purchase.

    Customers only see their own purchases; anyone else's id is a 404.
    Administrators can see every purchase.
    """
    user = g.current_user
    owner_id = None if user.is_admin else user.id
    invoice = ledger_service.get_invoice(purchase_id, owner_id=owner_id)
    return jsonify({"purchase": invoice}), 200


@client_bp.get("/history")
@require_auth
def history_route():
    """
    The caller's purchases, newest first.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    result = ledger_service.list_purchases(owner_id=g.current_user.id, page=page, per_page=per_page)
    return jsonify(result), 200
