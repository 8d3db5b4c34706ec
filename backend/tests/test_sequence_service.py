"""
Identifier sequence tests.
"""

import pytest

from ricemill.errors import NotFound
from ricemill.models import IdentifierSequence
from ricemill.services import dealer_service
from ricemill.services.sequence_service import (
    DEALER_SEQUENCE,
    INVOICE_SEQUENCE,
    format_identifier,
    next_identifier,
    seed_sequence,
)


class TestSequences:

    def test_first_allocation_creates_counter(self, db_session):
        assert next_identifier(DEALER_SEQUENCE) == "DLR0001"
        assert next_identifier(DEALER_SEQUENCE) == "DLR0002"
        db_session.commit()

        seq = db_session.query(IdentifierSequence).filter_by(kind=DEALER_SEQUENCE).one()
        assert seq.next_number == 3

    def test_kinds_are_independent(self, db_session):
        assert next_identifier(DEALER_SEQUENCE) == "DLR0001"
        assert next_identifier(INVOICE_SEQUENCE) == "INV-0001"

    def test_rollback_releases_number(self, db_session):
        next_identifier(INVOICE_SEQUENCE)
        db_session.rollback()

        assert next_identifier(INVOICE_SEQUENCE) == "INV-0001"

    def test_seeded_counter(self, db_session):
        seed_sequence(DEALER_SEQUENCE, 42)
        db_session.commit()

        assert next_identifier(DEALER_SEQUENCE) == "DLR0042"

    def test_padding_grows_past_four_digits(self):
        assert format_identifier(DEALER_SEQUENCE, 12345) == "DLR12345"

    def test_dealers_get_sequential_ids(self, db_session):
        ids = [
            dealer_service.create_dealer({
                "dealer_name": f"D{n}", "business_name": f"B{n}", "contact_number": "1", "location": "L",
            }).dealer_id
            for n in range(3)
        ]
        assert ids == ["DLR0001", "DLR0002", "DLR0003"]

    def test_dealer_lookup(self, db_session, dealer):
        assert dealer_service.get_dealer_by_code(dealer.dealer_id).id == dealer.id
        with pytest.raises(NotFound):
            dealer_service.get_dealer_by_code("DLR0404")
