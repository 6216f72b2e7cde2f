"""CLI command tests (flask users / products / system)."""

from storefront.models import Product, User


def test_init_db_is_idempotent(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["system", "init-db"])
    assert result.exit_code == 0
    assert "PASS" in result.output


def test_create_admin(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--username", "boss",
        "--email", "Boss@Store.local",
        "--password", "Password123!",
        "--role", "admin",
    ])

    assert result.exit_code == 0, result.output
    user = db_session.query(User).filter_by(username="boss").one()
    assert user.role == "admin"
    assert user.email == "boss@store.local"


def test_create_user_rejects_weak_password(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--username", "weak",
        "--email", "weak@store.local",
        "--password", "password",
        "--role", "customer",
    ])

    assert result.exit_code == 1
    assert "FAIL" in result.output
    assert db_session.query(User).filter_by(username="weak").count() == 0


def test_create_user_rejects_unknown_role(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--username", "x", "--email", "x@store.local",
        "--password", "Password123!", "--role", "superuser",
    ])
    assert result.exit_code != 0


def test_list_users(app, customer, admin):
    result = app.test_cli_runner().invoke(args=["users", "list"])
    assert "alice" in result.output
    assert "root" in result.output


def test_add_and_list_products(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "products", "add",
        "--batch-number", "L-001",
        "--name", "Coffee",
        "--price-cents", "1250",
        "--quantity", "40",
        "--entry-date", "2024-05-01",
    ])
    assert result.exit_code == 0, result.output

    product = db_session.query(Product).filter_by(batch_number="L-001").one()
    assert product.quantity == 40
    assert product.entry_date.isoformat() == "2024-05-01"

    listing = runner.invoke(args=["products", "list"])
    assert "Coffee" in listing.output
    assert "qty=40" in listing.output


def test_add_product_rejects_bad_date(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "products", "add", "--batch-number", "L-2", "--name", "Tea",
        "--price-cents", "100", "--entry-date", "yesterday",
    ])
    assert result.exit_code == 2
    assert db_session.query(Product).count() == 0
