"""
Concurrent purchase tests.

Runs real threads against a file-backed SQLite database (an in-memory
database is a single shared connection and cannot show contention).

Verifies:
- N units in stock and more than N concurrent single-unit buyers: exactly N succeed
- The rest fail with InsufficientStock; stock ends at 0, never negative
- Header and line counts match the successful purchases
"""

import threading

import pytest

from storefront import create_app
from storefront import config
from storefront.errors import InsufficientStockError
from storefront.extensions import db
from storefront.models import Product, Purchase, PurchaseLine, User
from storefront.services import purchase_service
from storefront.services.purchase_service import BasketItem


@pytest.fixture
def file_app(tmp_path):
    db_path = tmp_path / "concurrency.db"
    app = create_app(config.TestConfig, overrides={
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "PURCHASE_RETRY_ATTEMPTS": 10,
        "LOG_LEVEL": "WARNING",
    })

    with app.app_context():
        db.create_all()
        user = User(username="buyer", email="buyer@example.com", password_hash="unused", role="customer")
        db.session.add(user)
        db.session.commit()
        app.config["TEST_USER_ID"] = user.id

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _add_product(app, quantity: int, price_cents: int = 500) -> int:
    with app.app_context():
        product = Product(batch_number="LOT-C", name="Contended", price_cents=price_cents, quantity=quantity)
        db.session.add(product)
        db.session.commit()
        return product.id


def _run_concurrently(app, baskets):
    user_id = app.config["TEST_USER_ID"]
    barrier = threading.Barrier(len(baskets))
    results = []
    errors = []
    lock = threading.Lock()

    def worker(items):
        with app.app_context():
            try:
                barrier.wait()
                purchase = purchase_service.place_purchase(user_id, items)
                with lock:
                    results.append(("ok", purchase.id))
            except InsufficientStockError as exc:
                with lock:
                    results.append(("insufficient", exc.product_id))
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(items,)) for items in baskets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    return results, errors


def _snapshot(app, product_id):
    with app.app_context():
        stock = db.session.query(Product.quantity).filter_by(id=product_id).scalar()
        headers = db.session.query(Purchase).count()
        sold = sum(q for (q,) in db.session.query(PurchaseLine.quantity).filter_by(product_id=product_id))
        return stock, headers, sold


def test_no_overselling_under_contention(file_app):
    stock = 5
    product_id = _add_product(file_app, quantity=stock)

    results, errors = _run_concurrently(file_app, [[BasketItem(product_id, 1)] for _ in range(8)])

    assert errors == []
    assert sum(1 for kind, _ in results if kind == "ok") == stock
    assert [ref for kind, ref in results if kind == "insufficient"] == [product_id] * 3

    final_stock, headers, sold = _snapshot(file_app, product_id)
    assert final_stock == 0
    assert headers == stock
    assert sold == stock


def test_two_simultaneous_baskets_for_last_units(file_app):
    product_id = _add_product(file_app, quantity=5, price_cents=400)

    results, errors = _run_concurrently(file_app, [[BasketItem(product_id, 3)], [BasketItem(product_id, 3)]])

    assert errors == []
    assert sorted(kind for kind, _ in results) == ["insufficient", "ok"]

    final_stock, headers, sold = _snapshot(file_app, product_id)
    assert final_stock == 2
    assert headers == 1
    assert sold == 3
