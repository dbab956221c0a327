import uuid

import pytest
from sqlalchemy import create_engine, event

from orderservice.order_models import (
    AddItemsToOrder,
    CreateOrder,
    CreateOrderInDB,
    ItemInOrder,
    MenuItem,
    OrderItem,
)
from orderservice.order_storage import OrderStorage
from orderservice.order_usecase import OrderUseCase
from orderservice.transactions import DatabaseError, TransactionManager

SCHEMA = [
    "CREATE TABLE orders.menu_items (id INTEGER PRIMARY KEY, name TEXT NOT NULL, "
    "price INTEGER NOT NULL)",
    "CREATE TABLE orders.orders (id TEXT PRIMARY KEY, total_price INTEGER NOT NULL, "
    "status TEXT NOT NULL)",
    "CREATE TABLE orders.order_items (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "order_id TEXT NOT NULL, menu_item_id INTEGER NOT NULL, "
    "quantity INTEGER NOT NULL, total_price INTEGER NOT NULL)",
    "INSERT INTO orders.menu_items (id, name, price) VALUES (1, 'Pizza', 50000)",
    "INSERT INTO orders.menu_items (id, name, price) VALUES (2, 'Soup', 30000)",
]


@pytest.fixture
def engine(tmp_path):
    schema_path = (tmp_path / "orders.db").as_posix()
    eng = create_engine(f"sqlite:///{(tmp_path / 'main.db').as_posix()}")

    @event.listens_for(eng, "connect")
    def _attach(dbapi_connection, _record):
        dbapi_connection.execute(f"ATTACH DATABASE '{schema_path}' AS orders")

    with eng.begin() as conn:
        for statement in SCHEMA:
            conn.exec_driver_sql(statement)
    yield eng
    eng.dispose()


@pytest.fixture
def storage(engine):
    return OrderStorage(engine)


def test_create_order_through_use_case(engine, storage):
    uc = OrderUseCase(storage, TransactionManager(engine))
    order = CreateOrder(items=[OrderItem(id=1, quantity=3), OrderItem(id=2, quantity=1)])

    order_id = uc.create_order(order)

    assert order_id != uuid.UUID(int=0)
    stored = storage.get_order_by_id(order_id)
    assert stored.id == order_id
    assert stored.status == "created"
    assert stored.total_price == 50000 * 3 + 30000
    lines = sorted(stored.items, key=lambda item: item.id)
    assert [(line.id, line.name, line.quantity) for line in lines] == [
        (1, "Pizza", 3),
        (2, "Soup", 1),
    ]
    assert [line.total_price for line in lines] == [150000, 30000]


def test_get_menu_items(storage):
    items = sorted(storage.get_menu_items(), key=lambda item: item.id)
    assert items == [MenuItem(1, "Pizza", 50000), MenuItem(2, "Soup", 30000)]


def test_create_and_read_order_with_lines(storage):
    order_id = uuid.uuid4()
    storage.create_order(CreateOrderInDB(id=order_id, total_price=80000, status="created"))
    storage.add_items_to_order(
        AddItemsToOrder(
            order_id=order_id,
            items=[ItemInOrder(id=1, quantity=1, total_price=50000),
                   ItemInOrder(id=2, quantity=1, total_price=30000)],
        )
    )

    order = storage.get_order_by_id(order_id)

    assert order.id == order_id
    assert order.total_price == 80000
    assert sorted(item.total_price for item in order.items) == [30000, 50000]


def test_order_without_lines_has_one_empty_line(storage):
    order_id = uuid.uuid4()
    storage.create_order(CreateOrderInDB(id=order_id, total_price=0, status="created"))

    order = storage.get_order_by_id(order_id)

    assert order.id == order_id
    assert len(order.items) == 1
    assert order.items[0].id is None
    assert order.items[0].quantity is None


def test_unknown_order_yields_nil_id(storage):
    order = storage.get_order_by_id(uuid.uuid4())
    assert order.id == uuid.UUID(int=0)
    assert order.items == []


def test_add_no_items_is_a_no_op(storage):
    order_id = uuid.uuid4()
    storage.create_order(CreateOrderInDB(id=order_id, total_price=0, status="created"))
    storage.add_items_to_order(AddItemsToOrder(order_id=order_id, items=[]))
    assert storage.get_order_by_id(order_id).items[0].id is None


def test_duplicate_order_raises_database_error(storage):
    order_id = uuid.uuid4()
    storage.create_order(CreateOrderInDB(id=order_id, total_price=1, status="created"))
    with pytest.raises(DatabaseError, match="CreateOrder"):
        storage.create_order(CreateOrderInDB(id=order_id, total_price=1, status="created"))


def test_failed_transaction_leaves_no_order(engine, storage):
    order_id = uuid.uuid4()

    def work():
        storage.create_order(CreateOrderInDB(id=order_id, total_price=5, status="created"))
        assert storage.get_order_by_id(order_id).id == order_id
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        TransactionManager(engine).perform_transaction(work)

    assert storage.get_order_by_id(order_id).id == uuid.UUID(int=0)