# Overview: Flask CLI command groups for bootstrap, demo data, and order inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to storefront (PowerShell: $env:FLASK_APP="storefront").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenants:
# - python -m flask tenants list
#   List all tenants.
# - python -m flask tenants create --name "La Esquina" --slug "la-esquina"
#   Create a new tenant (restaurant).
#
# Catalog:
# - python -m flask catalog seed-demo [--tenant-id 1]
#   Create a demo burger catalog (salsas, toppings, tipo de carne, gaseosa).
# - python -m flask catalog restock --tenant-id 1 --category-id 2
#   Refill a category stock pool to its max_stock.
#
# Orders:
# - python -m flask orders list --tenant-id 1 [--status pending] [--limit 20]
#   List recent orders with paid flag.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Tenant
from .services import catalog_service, order_service
from .services.catalog_service import CatalogError
from .services.order_service import OrderError
from .services.tenant_service import create_tenant, TenantAccessError, require_tenant
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask catalog seed-demo' to load demo data.")


@click.group('tenants')
def tenants_group():
    """Tenant (restaurant) management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    """List all tenants."""
    tenants = db.session.query(Tenant).order_by(Tenant.id.asc()).all()
    if not tenants:
        click.echo("No tenants found.")
        return
    for t in tenants:
        status = "active" if t.is_active else "inactive"
        click.echo(f"{t.id:>4}  {t.slug:<24} {t.name:<32} {t.currency}  {status}")


@tenants_group.command('create')
@click.option('--name', required=True, help='Display name')
@click.option('--slug', required=True, help='Unique URL slug')
@click.option('--currency', default=None, help='Currency code (default: DEFAULT_CURRENCY)')
@click.option('--phone', 'contact_phone', default=None, help='Contact phone')
@with_appcontext
def create_tenant_cmd(name, slug, currency, contact_phone):
    """Create a new tenant."""
    if db.session.query(Tenant).filter_by(slug=slug).first():
        raise click.ClickException(f"Tenant with slug '{slug}' already exists")
    tenant = create_tenant(name, slug, currency=currency, contact_phone=contact_phone)
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Slug: {tenant.slug})")


@click.group('catalog')
def catalog_group():
    """Catalog data commands."""


_DEMO_GROUPS = [
    ("Elige tus salsas", "Seleccione hasta 6 opciones", 0, 6, False),
    ("Elige los toppings", "Seleccione hasta 10 opciones", 0, 10, False),
    ("Tipo de carne", "Seleccione mínimo 1 opción", 1, 1, True),
]

_DEMO_EXTRAS = {
    "Elige tus salsas": [
        ("Salsa BBQ", "Salsa base de tomate ahumada", "500"),
        ("Salsa Thousand Island", "Base de mayonesa, ketchup y mostaza", "500"),
        ("Salsa Picante Suave", "Base de ketchup, picante leve", "500"),
        ("Lágrima del Diablo", "Jalapeño y cayena - MUY PICANTE", "600"),
    ],
    "Elige los toppings": [
        ("Extra Carne", "Medallón adicional de 110g", "3500"),
        ("Extra Bacon", "Tiras de bacon crocante", "2400"),
        ("Extra Cheddar", "Queso cheddar derretido", "2200"),
        ("Extra Huevo", "Huevo frito", "1000"),
        ("Cebolla Caramelizada", "Cebolla caramelizada dulce", "2000"),
    ],
    "Tipo de carne": [
        ("Carne de Res", "Medallón clásico 110g", "0"),
        ("Pollo Crispy", "Pechuga empanizada crocante", "0"),
        ("Veggie", "Medallón vegetal de garbanzos", "0"),
    ],
}

_DEMO_SODA_OPTIONS = [
    ("Coca-Cola", "2500"),
    ("Sprite", "2500"),
    ("Fanta Naranja", "2500"),
    ("Coca-Cola Zero", "2800"),
]


@catalog_group.command('seed-demo')
@click.option('--tenant-id', type=int, default=None, help='Existing tenant (default: create "demo")')
@with_appcontext
def seed_demo(tenant_id):
    """Create a demo burger catalog with extra groups, option extras and a category stock pool."""
    try:
        if tenant_id is None:
            tenant = db.session.query(Tenant).filter_by(slug="demo").first()
            if tenant is None:
                tenant = create_tenant("Demo Burgers", "demo")
                click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id})")
        else:
            tenant = require_tenant(tenant_id)

        if db.session.query(Category).filter_by(tenant_id=tenant.id).first() is not None:
            raise click.ClickException(f"Tenant {tenant.id} already has a catalog")

        groups = {}
        for sort_order, (name, description, min_sel, max_sel, required) in enumerate(_DEMO_GROUPS):
            groups[name] = catalog_service.create_extra_group(tenant.id, {
                "name": name,
                "description": description,
                "min_selections": min_sel,
                "max_selections": max_sel,
                "is_required": required,
                "sort_order": sort_order,
            })

        for group_name, extras in _DEMO_EXTRAS.items():
            for sort_order, (name, description, price) in enumerate(extras):
                catalog_service.create_extra(tenant.id, {
                    "group_id": groups[group_name].id,
                    "name": name,
                    "description": description,
                    "price": price,
                    "sort_order": sort_order,
                })
        catalog_service.create_extra(tenant.id, {
            "group_id": groups["Elige los toppings"].id,
            "name": "Gaseosa",
            "description": "Elige tu bebida favorita",
            "sort_order": len(_DEMO_EXTRAS["Elige los toppings"]),
            "options": [{"label": label, "price": price} for label, price in _DEMO_SODA_OPTIONS],
        })

        burgers = catalog_service.create_category(tenant.id, {"name": "Hamburguesas", "sort_order": 0, "max_stock": 40})
        drinks = catalog_service.create_category(tenant.id, {"name": "Bebidas", "sort_order": 1})

        all_groups = [g.id for g in groups.values()]
        for sort_order, (name, price, stock) in enumerate([
            ("Clásica", "6500", None),
            ("Doble Cheddar", "8200", 15),
            ("Bacon Lovers", "8900", 10),
        ]):
            catalog_service.create_product(
                tenant.id,
                {"category_id": burgers.id, "name": name, "price": price, "stock": stock, "sort_order": sort_order},
                extra_group_ids=all_groups,
            )
        catalog_service.create_product(tenant.id, {"category_id": drinks.id, "name": "Agua mineral", "price": "1500"})

    except (ValidationError, ConflictError, CatalogError, TenantAccessError) as e:
        db.session.rollback()
        raise click.ClickException(str(e))

    click.echo(f"PASS Demo catalog ready for tenant {tenant.id}: {len(groups)} groups, 4 products")


@catalog_group.command('restock')
@click.option('--tenant-id', type=int, required=True)
@click.option('--category-id', type=int, required=True)
@with_appcontext
def restock(tenant_id, category_id):
    """Refill a category stock pool (current_stock = max_stock)."""
    try:
        category = catalog_service.restock_category(tenant_id, category_id)
    except (CatalogError, TenantAccessError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {category.name}: current_stock={category.current_stock}/{category.max_stock}")


@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--tenant-id', type=int, required=True)
@click.option('--status', default=None, help='pending, in_progress, completed or cancelled')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_orders(tenant_id, status, limit):
    """List recent orders, newest first."""
    try:
        orders = order_service.list_orders(tenant_id, status=status, limit=limit)
    except OrderError as e:
        raise click.ClickException(str(e))

    if not orders:
        click.echo("No orders found.")
        return
    for o in orders:
        paid = "paid" if o["display_paid"] else "unpaid"
        click.echo(
            f"#{o['id']:<6} {o['status']:<12} {o['delivery_type']:<10} {o['payment_method']:<14} "
            f"{o['total']:>12} {paid:<7} {o['customer_name']}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(orders_group)
