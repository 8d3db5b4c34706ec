"""
Flask CLI command tests.
"""

from ricemill.models import Dealer, RiceStock, User


def test_system_init_creates_admin_once(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init"])
    assert first.exit_code == 0
    assert "Created admin: admin@ricemill.local" in first.output

    second = runner.invoke(args=["system", "init"])
    assert "Using existing admin" in second.output
    assert db_session.query(User).filter_by(role="admin").count() == 1


def test_dealer_create_and_disable(app, db_session):
    runner = app.test_cli_runner()

    created = runner.invoke(args=[
        "dealers", "create", "--name", "Ravi", "--business", "Ravi Traders",
        "--contact", "9999999999", "--location", "Guntur",
    ])
    assert "DLR0001" in created.output

    disabled = runner.invoke(args=["dealers", "disable", "DLR0001"])
    assert disabled.exit_code == 0
    assert db_session.query(Dealer).filter_by(dealer_id="DLR0001").one().status == "inactive"

    missing = runner.invoke(args=["dealers", "disable", "DLR0404"])
    assert missing.exit_code != 0


def test_stock_add_parses_bag_counts(app, db_session, godown):
    runner = app.test_cli_runner()

    ok = runner.invoke(args=[
        "stock", "add", "--name", "Royal", "--type", "Basmati",
        "--godown-id", str(godown.id), "--kg", "1000", "--bags", "25kg=40", "--bags", "5kg=10",
    ])
    assert ok.exit_code == 0, ok.output
    sku = db_session.query(RiceStock).one()
    assert (sku.bags_25kg, sku.bags_5kg) == (40, 10)

    bad = runner.invoke(args=[
        "stock", "add", "--name", "Royal", "--type", "Basmati",
        "--godown-id", str(godown.id), "--kg", "10", "--bags", "30kg=1",
    ])
    assert bad.exit_code != 0
    assert db_session.query(RiceStock).count() == 1
