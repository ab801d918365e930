# Overview: Tests for the flask CLI command groups.

from storefront.models import Category, Extra, Product, Tenant


class TestCatalogCommands:
    def test_seed_demo_creates_tenant_and_catalog(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["catalog", "seed-demo"])

        assert result.exit_code == 0, result.output
        db_session.expire_all()
        tenant = db_session.query(Tenant).filter_by(slug="demo").one()
        pool = db_session.query(Category).filter_by(tenant_id=tenant.id, name="Hamburguesas").one()
        assert (pool.max_stock, pool.current_stock) == (40, 40)
        assert db_session.query(Product).filter_by(tenant_id=tenant.id).count() == 4
        gaseosa = db_session.query(Extra).filter_by(tenant_id=tenant.id, name="Gaseosa").one()
        assert gaseosa.has_options and len(gaseosa.options) == 4

    def test_seed_demo_twice_fails_cleanly(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["catalog", "seed-demo"])

        result = runner.invoke(args=["catalog", "seed-demo"])

        assert result.exit_code != 0
        assert "already has a catalog" in result.output

    def test_restock_without_pool(self, app, burger_catalog):
        c = burger_catalog
        result = app.test_cli_runner().invoke(
            args=["catalog", "restock", "--tenant-id", str(c.tenant.id), "--category-id", str(c.drinks.id)],
        )
        assert result.exit_code != 0
        assert "no stock pool" in result.output


class TestTenantAndOrderCommands:
    def test_create_and_list_tenants(self, app, db_session):
        runner = app.test_cli_runner()

        created = runner.invoke(args=["tenants", "create", "--name", "La Esquina", "--slug", "la-esquina"])
        duplicate = runner.invoke(args=["tenants", "create", "--name", "Otra", "--slug", "la-esquina"])
        listed = runner.invoke(args=["tenants", "list"])

        assert created.exit_code == 0
        assert duplicate.exit_code != 0
        assert "la-esquina" in listed.output

    def test_list_orders(self, app, make_order):
        order = make_order(payment_method="efectivo")

        result = app.test_cli_runner().invoke(args=["orders", "list", "--tenant-id", str(order.tenant_id)])

        assert result.exit_code == 0
        assert f"#{order.id}" in result.output
        assert "unpaid" in result.output
