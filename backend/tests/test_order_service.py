"""
Dealer order state machine tests.

Verifies:
- Placement validates input and requires an active dealer
- Approval deducts stock exactly once, in the same unit as the status change
- Failed approvals leave both the order and the stock untouched
- set-status only follows the allowed edges and never reaches approved
"""

from decimal import Decimal

import pytest

from ricemill.errors import DealerInactive, InsufficientStock, InvalidState, NotFound, ValidationError
from ricemill.models import DealerOrder, RiceStock
from ricemill.services import dealer_service, order_service


def _place(dealer, quantity_bags=4, **overrides):
    params = dict(
        dealer_id=dealer.dealer_id,
        rice_type="Basmati",
        brand="Royal",
        bag_size="25kg",
        quantity_bags=quantity_bags,
    )
    params.update(overrides)
    return order_service.place_order(**params)


# =============================================================================
# PLACEMENT
# =============================================================================


class TestPlaceOrder:

    def test_pending_with_computed_kg(self, db_session, dealer):
        order = _place(dealer, quantity_bags=4)

        assert order.status == "pending"
        assert Decimal(order.total_quantity_kg) == Decimal("100")
        assert order.dealer_code == dealer.dealer_id
        assert order.approved_by_user_id is None
        assert order.approved_at is None
        assert Decimal(order.total_amount) == 0

    @pytest.mark.parametrize("overrides", [
        {"rice_type": ""},
        {"rice_type": "   "},
        {"brand": ""},
        {"bag_size": "50kg"},
        {"quantity_bags": 0},
        {"quantity_bags": "4"},
    ])
    def test_validation(self, db_session, dealer, overrides):
        with pytest.raises(ValidationError):
            _place(dealer, **overrides)
        assert db_session.query(DealerOrder).count() == 0

    def test_unknown_dealer(self, db_session):
        with pytest.raises(NotFound):
            order_service.place_order(
                dealer_id="DLR9999", rice_type="Basmati", brand="Royal", bag_size="5kg", quantity_bags=1,
            )

    def test_inactive_dealer(self, db_session, dealer):
        dealer_service.disable_dealer(dealer.id)

        with pytest.raises(DealerInactive):
            _place(dealer)
        assert db_session.query(DealerOrder).count() == 0


# =============================================================================
# APPROVAL
# =============================================================================


class TestApproveOrder:

    def test_approve_deducts_stock(self, db_session, admin_user, dealer, sku):
        order = _place(dealer, quantity_bags=4)

        approved = order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        assert approved.status == "approved"
        db_session.expire_all()
        sku = db_session.get(RiceStock, sku.id)
        assert sku.bags_25kg == 6
        assert Decimal(sku.quantity_kg) == Decimal("200")

    def test_insufficient_stock_leaves_order_pending(self, db_session, admin_user, dealer, sku):
        order = _place(dealer, quantity_bags=20)

        with pytest.raises(InsufficientStock):
            order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        db_session.expire_all()
        order = db_session.get(DealerOrder, order.id)
        assert order.status == "pending"
        assert order.approved_by_user_id is None
        sku = db_session.get(RiceStock, sku.id)
        assert sku.bags_25kg == 10
        assert Decimal(sku.quantity_kg) == Decimal("300")

    def test_missing_sku_leaves_order_pending(self, db_session, admin_user, dealer, sku):
        order = _place(dealer, brand="Unknown Brand")

        with pytest.raises(NotFound):
            order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        db_session.expire_all()
        assert db_session.get(DealerOrder, order.id).status == "pending"

    def test_double_approve_deducts_once(self, db_session, admin_user, dealer, sku):
        order = _place(dealer, quantity_bags=4)
        order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        with pytest.raises(InvalidState):
            order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        db_session.expire_all()
        sku = db_session.get(RiceStock, sku.id)
        assert sku.bags_25kg == 6
        assert Decimal(sku.quantity_kg) == Decimal("200")

    def test_approve_unknown_order(self, db_session, admin_user):
        with pytest.raises(NotFound):
            order_service.approve_order(12345, approved_by_user_id=admin_user.id)

    def test_round_trip(self, db_session, admin_user, dealer, sku):
        order = _place(dealer, quantity_bags=4)
        order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        db_session.expire_all()
        fetched = order_service.get_order(order.id)

        assert fetched.status == "approved"
        assert fetched.approved_by_user_id == admin_user.id
        assert fetched.approved_at is not None
        assert Decimal(fetched.total_quantity_kg) == Decimal("100")

    def test_total_quantity_kg_is_frozen(self, db_session, dealer):
        order = _place(dealer, quantity_bags=4)
        order.total_quantity_kg = Decimal("1")

        with pytest.raises(InvalidState):
            db_session.commit()
        db_session.rollback()

        db_session.expire_all()
        assert Decimal(db_session.get(DealerOrder, order.id).total_quantity_kg) == Decimal("100")


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================


class TestSetOrderStatus:

    def test_full_lifecycle(self, db_session, admin_user, dealer, sku):
        order = _place(dealer)
        order_service.approve_order(order.id, approved_by_user_id=admin_user.id)

        assert order_service.set_order_status(order.id, "dispatched").status == "dispatched"
        assert order_service.set_order_status(order.id, "delivered").status == "delivered"

    def test_reject_pending(self, db_session, dealer, sku):
        order = _place(dealer)

        rejected = order_service.reject_order(order.id)

        assert rejected.status == "rejected"
        db_session.expire_all()
        assert db_session.get(RiceStock, sku.id).bags_25kg == 10

    def test_cannot_approve_through_set_status(self, db_session, dealer, sku):
        order = _place(dealer)

        with pytest.raises(InvalidState):
            order_service.set_order_status(order.id, "approved")

        db_session.expire_all()
        assert db_session.get(DealerOrder, order.id).status == "pending"
        assert db_session.get(RiceStock, sku.id).bags_25kg == 10

    @pytest.mark.parametrize("target", ["dispatched", "delivered"])
    def test_pending_cannot_skip_ahead(self, db_session, dealer, target):
        order = _place(dealer)

        with pytest.raises(InvalidState):
            order_service.set_order_status(order.id, target)

    @pytest.mark.parametrize("target", ["pending", "approved", "dispatched", "delivered"])
    def test_rejected_is_terminal(self, db_session, dealer, target):
        order = _place(dealer)
        order_service.reject_order(order.id)

        with pytest.raises(InvalidState):
            order_service.set_order_status(order.id, target)

    def test_delivered_is_terminal(self, db_session, admin_user, dealer, sku):
        order = _place(dealer)
        order_service.approve_order(order.id, approved_by_user_id=admin_user.id)
        order_service.dispatch_order(order.id)
        order_service.deliver_order(order.id)

        with pytest.raises(InvalidState):
            order_service.set_order_status(order.id, "dispatched")

    def test_unknown_status_value(self, db_session, dealer):
        order = _place(dealer)

        with pytest.raises(ValidationError):
            order_service.set_order_status(order.id, "shipped")

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFound):
            order_service.set_order_status(999, "rejected")


# =============================================================================
# READ ACCESSORS & ANALYTICS
# =============================================================================


class TestOrderQueries:

    def test_newest_first_and_filters(self, db_session, admin_user, dealer, sku):
        first = _place(dealer, quantity_bags=1)
        second = _place(dealer, quantity_bags=2)
        third = _place(dealer, quantity_bags=3)
        order_service.reject_order(second.id)

        all_orders = order_service.list_orders()
        assert [o.id for o in all_orders] == [third.id, second.id, first.id]

        pending = order_service.list_orders(statuses=["pending"])
        assert [o.id for o in pending] == [third.id, first.id]

        mine = order_service.list_orders(dealer_id=dealer.dealer_id)
        assert len(mine) == 3
        assert order_service.list_orders(dealer_id="DLR9999") == []

    def test_list_rejects_unknown_status(self, db_session):
        with pytest.raises(ValidationError):
            order_service.list_orders(statuses=["lost"])

    def test_dealer_analytics_counts_fulfilled_only(self, db_session, admin_user, dealer, make_sku):
        make_sku(rice_type="Basmati", rice_name="Royal", bags_25kg=10, quantity_kg="250")
        make_sku(rice_type="Jasmine", rice_name="Pearl", bags_5kg=10, quantity_kg="50")

        big = _place(dealer, quantity_bags=4)
        small = _place(dealer, rice_type="Jasmine", brand="Pearl", bag_size="5kg", quantity_bags=2)
        _place(dealer, quantity_bags=1)  # stays pending
        order_service.approve_order(big.id, approved_by_user_id=admin_user.id)
        order_service.approve_order(small.id, approved_by_user_id=admin_user.id)
        order_service.dispatch_order(small.id)

        analytics = order_service.dealer_analytics(dealer.dealer_id)

        assert analytics["total_quantity"] == 110.0
        assert analytics["most_purchased_rice_type"] == "Basmati"
        assert analytics["order_count"] == 2
        assert analytics["last_order_date"] is not None

    def test_dealer_analytics_empty(self, db_session, dealer):
        analytics = order_service.dealer_analytics(dealer.dealer_id)

        assert analytics["total_quantity"] == 0
        assert analytics["total_revenue"] == 0
        assert analytics["most_purchased_rice_type"] is None
        assert analytics["last_order_date"] is None
