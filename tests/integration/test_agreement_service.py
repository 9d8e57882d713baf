"""Integration tests for agreement creation and queries."""

import pytest

from conftest import DAY, LANDLORD, START_TIME, TENANT
from src.models.lease_event import LeaseEventType
from src.services.agreement_service import UNIT_SCALE, to_smallest_units, to_whole_units
from src.services.calendar import lease_duration_seconds
from src.services.errors import AgreementNotFoundError, InvalidAgreementError


class TestCreateAgreement:
    """Test agreement creation invariants."""

    def test_initial_state(self, agreement):
        assert agreement.id is not None
        assert agreement.landlord == LANDLORD
        assert agreement.tenant == TENANT
        assert agreement.rent_amount == 1 * UNIT_SCALE
        assert agreement.deposit_amount == 2 * UNIT_SCALE
        assert agreement.utility_amount == 0
        assert agreement.deposit_paid is False
        assert agreement.deposit_refunded is False
        assert agreement.contract_terminated is False

    def test_dates(self, agreement):
        assert agreement.started_at == START_TIME
        assert agreement.rent_due_date == START_TIME + 30 * DAY
        assert agreement.lease_end_date == START_TIME + 365 * DAY

    @pytest.mark.parametrize("years, months, days", [(0, 0, 0), (0, 6, 0), (2, 1, 15)])
    def test_lease_end_matches_requested_duration(self, agreement_service, years, months, days):
        agreement = agreement_service.create_agreement(
            LANDLORD, TENANT, rent_units=5, deposit_units=10, years=years, months=months, days=days
        )
        assert agreement.lease_end_date == START_TIME + lease_duration_seconds(years, months, days)
        assert agreement.rent_due_date == START_TIME + 30 * DAY

    def test_same_party_rejected(self, agreement_service):
        with pytest.raises(InvalidAgreementError, match="different"):
            agreement_service.create_agreement(LANDLORD, LANDLORD, 1, 1, years=1)

    def test_missing_tenant_rejected(self, agreement_service):
        with pytest.raises(InvalidAgreementError):
            agreement_service.create_agreement(LANDLORD, "", 1, 1, years=1)

    def test_negative_amount_rejected(self, agreement_service):
        with pytest.raises(InvalidAgreementError, match="non-negative"):
            agreement_service.create_agreement(LANDLORD, TENANT, -1, 1, years=1)

    def test_negative_duration_rejected(self, agreement_service):
        with pytest.raises(InvalidAgreementError):
            agreement_service.create_agreement(LANDLORD, TENANT, 1, 1, days=-3)

    def test_creation_emits_no_event(self, agreement_service, agreement):
        assert agreement_service.list_events(agreement.id) == []


class TestAgreementQueries:
    """Test loading agreements and their event log."""

    def test_get_agreement(self, agreement_service, agreement):
        loaded = agreement_service.get_agreement(agreement.id)
        assert loaded.id == agreement.id
        assert loaded.tenant == TENANT

    def test_get_missing_agreement(self, agreement_service):
        with pytest.raises(AgreementNotFoundError):
            agreement_service.get_agreement(999)

    def test_list_events_in_order(self, agreement_service, payment_service, agreement, rent_value):
        payment_service.pay_rent(agreement.id, TENANT, rent_value)
        payment_service.request_maintenance(agreement.id, TENANT, "Leaking tap")

        events = agreement_service.list_events(agreement.id)

        assert [e.event_type for e in events] == [
            LeaseEventType.RENT_PAID,
            LeaseEventType.MAINTENANCE_REQUESTED,
        ]
        assert events[1].detail == "Leaking tap"

    def test_agreements_are_independent(self, agreement_service, payment_service, agreement, rent_value):
        other = agreement_service.create_agreement(LANDLORD, "acct-other-tenant", 1, 2, years=1)

        payment_service.pay_rent(agreement.id, TENANT, rent_value)

        assert agreement_service.list_events(other.id) == []
        assert agreement_service.get_agreement(other.id).rent_due_date == START_TIME + 30 * DAY


class TestUnitScaling:
    """Test whole-unit / smallest-unit conversion."""

    def test_round_trip_whole_units(self):
        assert to_whole_units(to_smallest_units(7)) == 7

    def test_fraction_is_discarded(self):
        assert to_whole_units(2 * UNIT_SCALE - 1) == 1
