"""
Tests for atomic transitions: applied, unchanged after a race, conflict.
"""
import uuid

import pytest

from marketplace.core.exceptions import ConflictError, NotFoundError
from marketplace.models.appointment import AppointmentHistory, AppointmentStatus
from marketplace.services.appointment.appointment_store import (
    AppointmentStore,
    TransitionOutcome,
    utcnow,
)

from conftest import make_appointment


def entry(user, action_type="confirmed_request", action_by="professional"):
    return AppointmentHistory(
        timestamp=utcnow(),
        action_by=action_by,
        user_id=user.id,
        action_type=action_type,
        details={},
    )


def stale_copy(db, appointment_id):
    """The appointment as a request read it, detached from later writes"""
    appointment = AppointmentStore.get(db, appointment_id)
    db.expunge(appointment)
    return appointment


class TestApplyTransition:

    def test_applied_updates_row_and_appends_history(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)

        outcome = AppointmentStore.apply_transition(
            db, appointment, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
            entry(professional, "counter_offered"), changes={"final_price": 150.0}
        )
        updated = AppointmentStore.reload(db, appointment.id)

        assert outcome == TransitionOutcome.APPLIED
        assert updated.status == AppointmentStatus.COUNTERED_BY_PROFESSIONAL
        assert updated.final_price == 150.0
        assert updated.quoted_price == 100.0
        assert updated.version == 2
        assert [h.action_type for h in updated.history] == ["created_appointment_request", "counter_offered"]

    def test_already_applied_reports_unchanged(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)

        fresh = AppointmentStore.get(db, appointment.id)
        assert AppointmentStore.apply_transition(
            db, fresh, AppointmentStatus.CONFIRMED, entry(professional)
        ) == TransitionOutcome.APPLIED

        outcome = AppointmentStore.apply_transition(db, stale, AppointmentStatus.CONFIRMED, entry(professional))
        updated = AppointmentStore.reload(db, appointment.id)

        assert outcome == TransitionOutcome.UNCHANGED
        assert updated.version == 2
        assert len(updated.history) == 2

    def test_lost_race_raises_conflict(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)

        fresh = AppointmentStore.get(db, appointment.id)
        AppointmentStore.apply_transition(
            db, fresh, AppointmentStatus.CANCELLED_BY_CUSTOMER,
            entry(customer, "cancelled_appointment", "customer")
        )

        with pytest.raises(ConflictError):
            AppointmentStore.apply_transition(db, stale, AppointmentStatus.CONFIRMED, entry(professional))

        updated = AppointmentStore.reload(db, appointment.id)
        assert updated.status == AppointmentStatus.CANCELLED_BY_CUSTOMER
        assert len(updated.history) == 2

    def test_competing_counter_offers_conflict(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)

        fresh = AppointmentStore.get(db, appointment.id)
        assert AppointmentStore.apply_transition(
            db, fresh, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
            entry(professional, "counter_offered"), changes={"final_price": 150.0}
        ) == TransitionOutcome.APPLIED

        with pytest.raises(ConflictError):
            AppointmentStore.apply_transition(
                db, stale, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
                entry(professional, "counter_offered"), changes={"final_price": 200.0}
            )

        updated = AppointmentStore.reload(db, appointment.id)
        assert updated.final_price == 150.0
        assert updated.version == 2
        assert len(updated.history) == 2

    def test_same_counter_offer_twice_is_unchanged(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)

        fresh = AppointmentStore.get(db, appointment.id)
        AppointmentStore.apply_transition(
            db, fresh, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
            entry(professional, "counter_offered"), changes={"final_price": 150.0}
        )

        outcome = AppointmentStore.apply_transition(
            db, stale, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
            entry(professional, "counter_offered"), changes={"final_price": 150.0}
        )

        assert outcome == TransitionOutcome.UNCHANGED
        assert len(AppointmentStore.reload(db, appointment.id).history) == 2

    def test_stale_confirm_after_accepted_counter_conflicts(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)

        fresh = AppointmentStore.get(db, appointment.id)
        AppointmentStore.apply_transition(
            db, fresh, AppointmentStatus.COUNTERED_BY_PROFESSIONAL,
            entry(professional, "counter_offered"), changes={"final_price": 150.0}
        )
        countered = AppointmentStore.reload(db, appointment.id)
        AppointmentStore.apply_transition(
            db, countered, AppointmentStatus.CONFIRMED,
            entry(customer, "accepted_counter_offer", "customer")
        )

        with pytest.raises(ConflictError):
            AppointmentStore.apply_transition(db, stale, AppointmentStatus.CONFIRMED, entry(professional))

        updated = AppointmentStore.reload(db, appointment.id)
        assert updated.status == AppointmentStatus.CONFIRMED
        assert updated.version == 3
        assert updated.history[-1].action_type == "accepted_counter_offer"

    def test_missing_row(self, db, customer, professional):
        appointment = make_appointment(db, customer, professional)
        stale = stale_copy(db, appointment.id)
        stale.id = uuid.uuid4()

        with pytest.raises(NotFoundError):
            AppointmentStore.apply_transition(db, stale, AppointmentStatus.CONFIRMED, entry(professional))


class TestQueries:

    def test_list_for_party_sorted(self, db, customer, other_customer, professional, other_professional):
        late = make_appointment(db, customer, professional, start_time="15:00")
        early = make_appointment(db, customer, professional, start_time="09:00")
        make_appointment(db, other_customer, other_professional, start_time="11:00")

        as_customer = AppointmentStore.list_for_party(db, customer.id, as_professional=False)
        as_professional = AppointmentStore.list_for_party(db, professional.id, as_professional=True)

        assert [a.id for a in as_customer] == [early.id, late.id]
        assert [a.id for a in as_professional] == [early.id, late.id]

    def test_get_or_404(self, db):
        with pytest.raises(NotFoundError):
            AppointmentStore.get_or_404(db, uuid.uuid4())
