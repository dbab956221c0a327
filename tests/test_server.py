import pytest
from sqlalchemy import create_engine, event

from orderservice.accounting_http import AccountingModule
from orderservice.order_http import OrderModule
from orderservice.server import App, main


class RecordingModule:
    def __init__(self):
        self.calls = []

    def register_routes(self, app, prefix):
        self.calls.append((app, prefix))


def make_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'main.db'}")
    orders_path = str(tmp_path / "orders.db")

    @event.listens_for(engine, "connect")
    def _attach(dbapi_connection, _record):
        dbapi_connection.execute("ATTACH DATABASE ? AS orders", (orders_path,))

    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE orders.menu_items (id INTEGER PRIMARY KEY, name TEXT, price INTEGER)"
        )
        conn.exec_driver_sql(
            "CREATE TABLE orders.orders (id TEXT PRIMARY KEY, total_price INTEGER, status TEXT)"
        )
        conn.exec_driver_sql(
            "CREATE TABLE orders.order_items "
            "(order_id TEXT, menu_item_id INTEGER, quantity INTEGER, total_price INTEGER)"
        )
        conn.exec_driver_sql(
            "INSERT INTO orders.menu_items VALUES (1, 'Borscht', 35000), (2, 'Pelmeni', 45000)"
        )
    return engine


def test_setup_routes_mounts_modules_under_api():
    app = App()
    first, second = RecordingModule(), RecordingModule()
    app.setup_routes(first, second)
    assert first.calls == [(app.flask_app, "/api")]
    assert second.calls == [(app.flask_app, "/api")]


def test_setup_routes_serves_both_domains(tmp_path):
    engine = make_engine(tmp_path)
    app = App()
    app.setup_routes(OrderModule(engine), AccountingModule(engine))
    client = app.flask_app.test_client()

    menu = client.get("/api/v1/orders/menu")
    assert menu.status_code == 200
    assert {item["name"] for item in menu.get_json()["data"]} == {"Borscht", "Pelmeni"}

    payment = client.post(
        "/api/v1/payments", json={"order_id": "1b4e28ba-2fa1-41d2-883f-0016d3cca427"}
    )
    assert payment.status_code == 404
    engine.dispose()


def test_unknown_route_is_not_found():
    app = App()
    app.setup_routes()
    assert app.flask_app.test_client().get("/api/v1/unknown").status_code == 404


def test_main_fails_without_dsn(monkeypatch):
    monkeypatch.delenv("DSN", raising=False)
    assert main([]) == 1


def test_main_fails_on_unparsable_dsn(monkeypatch):
    monkeypatch.setenv("DSN", "::::")
    assert main([]) == 1


def test_main_fails_without_migrations(monkeypatch, tmp_path):
    monkeypatch.setenv("DSN", f"sqlite:///{tmp_path / 'service.db'}")
    monkeypatch.setenv("MIGRATION_PATH", str(tmp_path / "missing"))
    assert main([]) == 1


def test_main_help_exits_cleanly():
    with pytest.raises(SystemExit) as info:
        main(["--help"])
    assert info.value.code == 0