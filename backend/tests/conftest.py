"""
Pytest fixtures for storefront backend tests.

Provides test database setup, tenant fixtures, a small burger catalog with
extras, and the test client.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from storefront import create_app
from storefront.extensions import db, LOCAL_CACHE_KEY
from storefront.models import Tenant, Category, Product, ExtraGroup, Extra, ExtraOption
from storefront.services.local_cache import LocalCache


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOCAL_CACHE_FILENAME': '',
        'NOTIFY_WEBHOOK_URL': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database (and settings cache) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions[LOCAL_CACHE_KEY] = LocalCache()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def tenant(db_session):
    """Tenant A (first restaurant)."""
    t = Tenant(name="La Esquina", slug="la-esquina", currency="ARS", contact_phone="+54 9 11 5555-0000")
    db_session.add(t)
    db_session.commit()
    return t


@pytest.fixture(scope='function')
def other_tenant(db_session):
    """Tenant B (second restaurant)."""
    t = Tenant(name="Otro Lugar", slug="otro-lugar", currency="ARS")
    db_session.add(t)
    db_session.commit()
    return t


@pytest.fixture(scope='function')
def burger_catalog(db_session, tenant):
    """
    One burger (price 2500, stock 5) in a category with a pool of 3, plus a
    drink with unlimited stock.

    Groups on the burger:
    - toppings: optional, up to 3 (Bacon 800, Cheddar 500, Gaseosa options)
    - carne: required, exactly 1 (Res, Pollo)
    """
    burgers = Category(tenant_id=tenant.id, name="Hamburguesas", sort_order=0, max_stock=3, current_stock=3)
    drinks = Category(tenant_id=tenant.id, name="Bebidas", sort_order=1)
    db_session.add_all([burgers, drinks])
    db_session.flush()

    toppings = ExtraGroup(
        tenant_id=tenant.id, name="Toppings", min_selections=0, max_selections=3,
        is_required=False, sort_order=0,
    )
    carne = ExtraGroup(
        tenant_id=tenant.id, name="Tipo de carne", min_selections=1, max_selections=1,
        is_required=True, sort_order=1,
    )
    db_session.add_all([toppings, carne])
    db_session.flush()

    bacon = Extra(tenant_id=tenant.id, group_id=toppings.id, name="Bacon", price=Decimal("800"), sort_order=0)
    cheddar = Extra(tenant_id=tenant.id, group_id=toppings.id, name="Cheddar", price=Decimal("500"), sort_order=1)
    gaseosa = Extra(
        tenant_id=tenant.id, group_id=toppings.id, name="Gaseosa", price=Decimal("0"), sort_order=2, has_options=True,
        options=[
            ExtraOption(label="Coca-Cola", price=Decimal("2500"), sort_order=0),
            ExtraOption(label="Coca-Cola Zero", price=Decimal("2800"), sort_order=1),
        ],
    )
    res = Extra(tenant_id=tenant.id, group_id=carne.id, name="Res", price=Decimal("0"), sort_order=0)
    pollo = Extra(tenant_id=tenant.id, group_id=carne.id, name="Pollo", price=Decimal("0"), sort_order=1)
    db_session.add_all([bacon, cheddar, gaseosa, res, pollo])
    db_session.flush()

    burger = Product(
        tenant_id=tenant.id, category_id=burgers.id, name="Clásica", price=Decimal("2500"), stock=5,
        extra_groups=[toppings, carne],
    )
    water = Product(tenant_id=tenant.id, category_id=drinks.id, name="Agua", price=Decimal("1500"))
    db_session.add_all([burger, water])
    db_session.commit()

    return SimpleNamespace(
        tenant=tenant,
        burgers=burgers,
        drinks=drinks,
        toppings=toppings,
        carne=carne,
        bacon=bacon,
        cheddar=cheddar,
        gaseosa=gaseosa,
        coke=gaseosa.options[0],
        coke_zero=gaseosa.options[1],
        res=res,
        pollo=pollo,
        burger=burger,
        water=water,
    )


@pytest.fixture(scope='function')
def make_order(burger_catalog):
    """Factory: place a checkout for the burger catalog and return the Order."""
    from storefront.services.cart_service import CartStore
    from storefront.services.order_service import CustomerInfo, create_order
    from storefront.services.selection_validator import Selections

    def _make(payment_method="tarjeta", delivery_type="mostrador", quantity=1, product=None):
        c = burger_catalog
        cart = CartStore.for_tenant(c.tenant.id)
        product = product or c.water
        selections = Selections.from_payload([c.res.id]) if product.id == c.burger.id else Selections()
        result = cart.add(product.id, selections, quantity)
        assert result.ok, result.rejection
        customer = CustomerInfo(
            name="Ana", phone="+54 9 11 4444-1111",
            address="Calle Falsa 123" if delivery_type == "domicilio" else None,
        )
        return create_order(c.tenant.id, cart, customer, delivery_type, payment_method)

    return _make
