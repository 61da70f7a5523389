import pytest

from sms.errors import ConflictError, CustomerNotFound, ProductNotFound, ValidationError
from sms.models import ROLE_ADMIN, ROLE_REP
from sms.services import customer_service, inventory_service, sales_service, user_service


# =============================================================================
# PRODUCTS
# =============================================================================

def test_create_product_starts_with_zero_stock(db_session, app):
    product = inventory_service.create_product(payload={
        "product_code": "CAT-1",
        "description": "Air Filter",
        "unit_price_cents": 1299,
    })

    assert product.current_stock == 0
    assert product.min_stock_threshold == app.config["DEFAULT_MIN_STOCK_THRESHOLD"]
    assert product.unit_price_cents == 1299


def test_create_product_duplicate_code(db_session, make_product):
    make_product("CAT-DUP")

    with pytest.raises(ConflictError):
        inventory_service.create_product(payload={"product_code": "CAT-DUP"})


def test_product_payload_cannot_set_stock(db_session, make_product, stock_of):
    product = make_product(stock=7)

    with pytest.raises(ValidationError):
        inventory_service.update_product(product.id, payload={"current_stock": 100})
    with pytest.raises(ValidationError):
        inventory_service.create_product(payload={"product_code": "CAT-STK", "current_stock": 5})

    assert stock_of(product.id) == 7


def test_update_product_keeps_stock(db_session, make_product, stock_of):
    product = make_product(stock=7, threshold=5)

    updated = inventory_service.update_product(product.id, payload={
        "description": "Renamed",
        "unit_price_cents": 2000,
        "min_stock_threshold": 8,
    })

    assert updated.description == "Renamed"
    assert updated.min_stock_threshold == 8
    assert stock_of(product.id) == 7


def test_update_product_to_existing_code_conflicts(db_session, make_product):
    make_product("TAKEN")
    other = make_product("FREE")

    with pytest.raises(ConflictError):
        inventory_service.update_product(other.id, payload={"product_code": "TAKEN"})


@pytest.mark.parametrize("payload", [
    {"product_code": "NEG", "unit_price_cents": -1},
    {"product_code": "NEG", "min_stock_threshold": -3},
    {"product_code": "NEG", "unit_price_cents": "12.5"},
    {"description": "missing code"},
])
def test_create_product_rejects_bad_payload(db_session, payload):
    with pytest.raises(ValidationError):
        inventory_service.create_product(payload=payload)


def test_list_products_low_stock_only(db_session, make_product):
    make_product("LOW", stock=1, threshold=5)
    make_product("OK", stock=9, threshold=5)

    codes = [p.product_code for p in inventory_service.list_products(low_stock_only=True)]
    assert codes == ["LOW"]
    assert len(inventory_service.list_products()) == 2


def test_get_missing_product(db_session):
    with pytest.raises(ProductNotFound):
        inventory_service.get_product(12345)


# =============================================================================
# CUSTOMERS
# =============================================================================

def test_customer_crud(db_session):
    customer = customer_service.create_customer(payload={
        "customer_name": "Zeta Auto",
        "company_name": "Zeta Auto (Pvt) Ltd",
        "contact_number": "0112223334",
    })
    customer_service.create_customer(payload={"customer_name": "Alpha Parts"})

    names = [c.customer_name for c in customer_service.list_customers()]
    assert names == ["Alpha Parts", "Zeta Auto"]

    updated = customer_service.update_customer(customer.id, payload={"address": "7 Station Rd"})
    assert updated.address == "7 Station Rd"
    assert updated.company_name == "Zeta Auto (Pvt) Ltd"

    customer_service.delete_customer(customer.id)
    with pytest.raises(CustomerNotFound):
        customer_service.get_customer(customer.id)


def test_customer_requires_name(db_session):
    with pytest.raises(ValidationError):
        customer_service.create_customer(payload={"company_name": "Nameless"})


def test_delete_referenced_customer_conflicts(db_session, make_customer, make_product):
    customer = make_customer("Referenced")
    product = make_product(stock=5, threshold=0)
    sales_service.create_sale(
        invoice_number="INV-REF",
        customer_id=customer.id,
        date_of_sale="2024-03-01",
        lines=[{"product_id": product.id, "quantity": 1}],
    )

    with pytest.raises(ConflictError):
        customer_service.delete_customer(customer.id)

    assert customer_service.get_customer(customer.id).customer_name == "Referenced"


# =============================================================================
# USERS
# =============================================================================

def test_users_by_role(db_session):
    user_service.create_user(name="Admin", email="admin@sms.local", role=ROLE_ADMIN)
    user_service.create_user(name="Kamal", email="Kamal@SMS.local", role=ROLE_REP)

    reps = user_service.list_users(role=ROLE_REP)
    assert [u.email for u in reps] == ["kamal@sms.local"]
    assert len(user_service.list_users()) == 2


def test_duplicate_user_email(db_session):
    user_service.create_user(name="A", email="dup@sms.local")

    with pytest.raises(ConflictError):
        user_service.create_user(name="B", email="DUP@sms.local")


def test_unknown_role(db_session):
    with pytest.raises(ValidationError):
        user_service.create_user(name="C", email="c@sms.local", role="Cashier")
