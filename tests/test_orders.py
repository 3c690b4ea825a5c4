import pytest
from sqlalchemy import func, select

from eats.core.results import ErrorCode
from eats.models import Dish, Order, OrderItem, OrderStatus, Restaurant, UserRole
from eats.schemas import CreateOrderInput, OrderItemOptionInput
from eats.services.orders import OrderService, price_dish


SIZE_AND_CHEESE = [
    {"name": "Size", "choices": [{"name": "S"}, {"name": "L", "extra": 2}]},
    {"name": "Extra cheese", "extra": 1.5},
]


async def add_restaurant(db, owner, name="Pizza Place") -> Restaurant:
    restaurant = Restaurant(name=name, address="1 Main St", owner_id=owner.id)
    db.add(restaurant)
    await db.commit()
    return restaurant


async def add_dish(db, restaurant, price=10.0, options=None) -> Dish:
    dish = Dish(
        name="Margherita",
        price=price,
        description="",
        options=options or [],
        restaurant=restaurant,
    )
    db.add(dish)
    await db.commit()
    return dish


def order_input(restaurant, *dishes_with_options) -> CreateOrderInput:
    return CreateOrderInput(
        restaurant_id=restaurant.id,
        items=[
            {"dish_id": dish.id, "options": options}
            for dish, options in dishes_with_options
        ],
    )


@pytest.fixture
def service(db) -> OrderService:
    return OrderService(db)


@pytest.fixture
async def restaurant(db, owner) -> Restaurant:
    return await add_restaurant(db, owner)


@pytest.fixture
async def dish(db, restaurant) -> Dish:
    return await add_dish(db, restaurant, options=SIZE_AND_CHEESE)


@pytest.fixture
async def order(service, client_user, restaurant, dish) -> Order:
    result = await service.create_order(client_user, order_input(restaurant, (dish, [])))
    assert result.ok
    return result.value


# =============================================================================
# PRICING
# =============================================================================

def test_price_without_options():
    dish = Dish(price=10.0, options=SIZE_AND_CHEESE)
    assert price_dish(dish, []) == 10.0


def test_price_adds_choice_extra():
    dish = Dish(price=10.0, options=SIZE_AND_CHEESE)
    selections = [OrderItemOptionInput(name="Size", choice="L")]
    assert price_dish(dish, selections) == 12.0


def test_price_choice_without_extra_is_free():
    dish = Dish(price=10.0, options=SIZE_AND_CHEESE)
    selections = [OrderItemOptionInput(name="Size", choice="S")]
    assert price_dish(dish, selections) == 10.0


def test_price_adds_option_extra():
    dish = Dish(price=10.0, options=SIZE_AND_CHEESE)
    selections = [
        OrderItemOptionInput(name="Extra cheese"),
        OrderItemOptionInput(name="Size", choice="L"),
    ]
    assert price_dish(dish, selections) == 13.5


def test_price_ignores_undeclared_options():
    dish = Dish(price=10.0, options=SIZE_AND_CHEESE)
    selections = [OrderItemOptionInput(name="Gold leaf", choice="yes")]
    assert price_dish(dish, selections) == 10.0


# =============================================================================
# CREATE
# =============================================================================

async def test_create_order_totals_items(db, service, client_user, restaurant, dish):
    data = order_input(
        restaurant,
        (dish, [{"name": "Size", "choice": "L"}]),
        (dish, [{"name": "Extra cheese"}]),
    )

    result = await service.create_order(client_user, data)

    assert result.ok
    order = result.value
    assert order.total == 23.5
    assert order.status == OrderStatus.PENDING
    assert order.customer_id == client_user.id
    assert order.restaurant_id == restaurant.id
    assert len(order.items) == 2
    assert order.items[0].options == [{"name": "Size", "choice": "L"}]


async def test_create_order_unknown_restaurant(service, client_user, restaurant, dish):
    data = order_input(restaurant, (dish, []))
    data.restaurant_id = 404

    result = await service.create_order(client_user, data)

    assert result.error_code == ErrorCode.NOT_FOUND


async def test_missing_dish_aborts_whole_order(db, service, client_user, restaurant, dish):
    data = CreateOrderInput(
        restaurant_id=restaurant.id,
        items=[{"dish_id": dish.id}, {"dish_id": 404}],
    )

    result = await service.create_order(client_user, data)

    assert result.error_code == ErrorCode.NOT_FOUND
    assert (await db.execute(select(func.count(Order.id)))).scalar() == 0
    assert (await db.execute(select(func.count(OrderItem.id)))).scalar() == 0


async def test_dish_from_another_restaurant_is_rejected(db, service, client_user, other_owner, restaurant):
    elsewhere = await add_restaurant(db, other_owner, name="Elsewhere")
    foreign_dish = await add_dish(db, elsewhere)

    result = await service.create_order(client_user, order_input(restaurant, (foreign_dish, [])))

    assert result.error_code == ErrorCode.NOT_FOUND


# =============================================================================
# VISIBILITY
# =============================================================================

async def test_get_orders_is_scoped_to_customer(create_user, service, client_user, restaurant, dish):
    someone = await create_user("someone@eats.io", UserRole.CLIENT)
    await service.create_order(client_user, order_input(restaurant, (dish, [])))
    await service.create_order(someone, order_input(restaurant, (dish, [])))
    await service.create_order(someone, order_input(restaurant, (dish, [])))

    mine = await service.get_orders(client_user)
    theirs = await service.get_orders(someone)

    assert len(mine.value) == 1
    assert len(theirs.value) == 2
    assert all(o.customer_id == someone.id for o in theirs.value)


async def test_get_orders_for_owner_spans_owned_restaurants(
    db, service, owner, other_owner, client_user, restaurant, dish
):
    second = await add_restaurant(db, owner, name="Second")
    second_dish = await add_dish(db, second)
    rival = await add_restaurant(db, other_owner, name="Rival")
    rival_dish = await add_dish(db, rival)
    await service.create_order(client_user, order_input(restaurant, (dish, [])))
    await service.create_order(client_user, order_input(second, (second_dish, [])))
    await service.create_order(client_user, order_input(rival, (rival_dish, [])))

    everything = await service.get_orders(owner)
    one = await service.get_orders(owner, restaurant_id=second.id)
    foreign = await service.get_orders(owner, restaurant_id=rival.id)

    assert {o.restaurant_id for o in everything.value} == {restaurant.id, second.id}
    assert [o.restaurant_id for o in one.value] == [second.id]
    assert foreign.value == []


async def test_get_orders_status_filter(service, owner, client_user, restaurant, dish, order):
    await service.create_order(client_user, order_input(restaurant, (dish, [])))
    await service.edit_order(owner, order.id, OrderStatus.COOKING)

    cooking = await service.get_orders(owner, status=OrderStatus.COOKING)
    pending = await service.get_orders(client_user, status=OrderStatus.PENDING)

    assert [o.id for o in cooking.value] == [order.id]
    assert len(pending.value) == 1


async def test_driver_sees_only_claimed_orders(service, driver, order):
    assert (await service.get_orders(driver)).value == []

    await service.edit_order(driver, order.id, OrderStatus.PICKED_UP)

    assert [o.id for o in (await service.get_orders(driver)).value] == [order.id]


async def test_get_order_authorization(create_user, service, client_user, owner, other_owner, driver, order):
    stranger = await create_user("stranger@eats.io", UserRole.CLIENT)

    assert (await service.get_order(client_user, order.id)).ok
    assert (await service.get_order(owner, order.id)).ok
    assert (await service.get_order(other_owner, order.id)).error_code == ErrorCode.NOT_ALLOWED
    assert (await service.get_order(stranger, order.id)).error_code == ErrorCode.NOT_ALLOWED
    assert (await service.get_order(driver, order.id)).error_code == ErrorCode.NOT_ALLOWED
    assert (await service.get_order(client_user, 404)).error_code == ErrorCode.NOT_FOUND


# =============================================================================
# STATUS CHANGES
# =============================================================================

@pytest.mark.parametrize("status", [OrderStatus.COOKING, OrderStatus.COOKED])
async def test_owner_moves_order_through_kitchen(service, owner, order, status):
    result = await service.edit_order(owner, order.id, status)
    assert result.ok
    assert result.value.status == status


@pytest.mark.parametrize("status", [OrderStatus.PICKED_UP, OrderStatus.DELIVERED, OrderStatus.PENDING])
async def test_owner_cannot_set_delivery_statuses(service, owner, order, status):
    result = await service.edit_order(owner, order.id, status)

    assert result.error_code == ErrorCode.NOT_ALLOWED
    assert order.status == OrderStatus.PENDING


@pytest.mark.parametrize("status", [OrderStatus.COOKING, OrderStatus.COOKED, OrderStatus.PENDING])
async def test_driver_cannot_set_kitchen_statuses(service, driver, order, status):
    result = await service.edit_order(driver, order.id, status)

    assert result.error_code == ErrorCode.NOT_ALLOWED
    assert order.driver_id is None


async def test_client_cannot_edit_order(service, client_user, order):
    result = await service.edit_order(client_user, order.id, OrderStatus.DELIVERED)
    assert result.error_code == ErrorCode.NOT_ALLOWED


async def test_foreign_owner_cannot_edit_order(service, other_owner, order):
    result = await service.edit_order(other_owner, order.id, OrderStatus.COOKING)

    assert result.error_code == ErrorCode.NOT_ALLOWED
    assert order.status == OrderStatus.PENDING


async def test_first_driver_claims_order(service, driver, other_driver, order):
    claimed = await service.edit_order(driver, order.id, OrderStatus.PICKED_UP)
    stolen = await service.edit_order(other_driver, order.id, OrderStatus.DELIVERED)
    delivered = await service.edit_order(driver, order.id, OrderStatus.DELIVERED)

    assert claimed.ok
    assert claimed.value.driver_id == driver.id
    assert stolen.error_code == ErrorCode.NOT_ALLOWED
    assert delivered.ok
    assert delivered.value.status == OrderStatus.DELIVERED
    assert delivered.value.driver_id == driver.id


async def test_edit_missing_order(service, owner):
    result = await service.edit_order(owner, 404, OrderStatus.COOKING)
    assert result.error_code == ErrorCode.NOT_FOUND


async def test_status_order_is_not_enforced(service, owner, driver, order):
    # Role decides the target status; sequence is not checked
    assert (await service.edit_order(driver, order.id, OrderStatus.DELIVERED)).ok
    assert (await service.edit_order(owner, order.id, OrderStatus.COOKING)).ok


# =============================================================================
# DATABASE FAILURES
# =============================================================================

async def test_create_order_database_failure(db, service, client_user, restaurant, dish, monkeypatch, broken_query):
    monkeypatch.setattr(service.orders, "save", broken_query)

    result = await service.create_order(client_user, order_input(restaurant, (dish, [])))

    assert result.error_code == ErrorCode.INFRASTRUCTURE_FAILURE
    for model in (Order, OrderItem):
        stored = await db.execute(select(func.count(model.id)))
        assert stored.scalar() == 0


async def test_get_orders_database_failure(service, client_user, monkeypatch, broken_query):
    monkeypatch.setattr(service.orders, "find", broken_query)

    result = await service.get_orders(client_user)

    assert result.error_code == ErrorCode.INFRASTRUCTURE_FAILURE
