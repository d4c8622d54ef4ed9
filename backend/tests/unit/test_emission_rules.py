import pytest

from carbonledger.exceptions.ledger_exceptions import InvalidStatusTransition, PublishedRecordError
from carbonledger.models.emissions import EmissionRecord, EmissionStatus
from carbonledger.models.user import User, UserRole
from carbonledger.schemas.emissions import EmissionCreate, EmissionUpdate, ReportingPeriod
from carbonledger.services.emissions import (
    apply_reporting_period,
    apply_update,
    build_record,
    check_status_transition,
    compute_total_co2e,
    ensure_mutable,
    recompute_totals,
)


def _entry(co2e):
    return {
        "source": "Boiler",
        "category": "Stationary combustion",
        "amount": co2e,
        "co2e_amount": co2e,
        "activity_data": 1.0,
        "emission_factor": co2e,
        "emission_factor_source": "EPA",
    }


def _user(role=UserRole.user, company="Acme Logistics"):
    return User(id=7, email="owner@acme.io", full_name="Owner", company=company, role=role)


# Totals are derived from entries
def test_total_is_sum_of_entry_amounts():
    assert compute_total_co2e([{"co2e_amount": 100.0}, {"co2e_amount": 50.0}]) == 150.0


def test_empty_entries_total_zero():
    assert compute_total_co2e([]) == 0.0


def test_recompute_totals_overwrites_stale_value():
    record = EmissionRecord(entries=[{"co2e_amount": 12.5}, {"co2e_amount": 7.5}], total_co2e=999.0)
    assert recompute_totals(record).total_co2e == 20.0


# Reporting period fills the calendar bounds
def test_apply_reporting_period_month():
    record = apply_reporting_period(EmissionRecord(), ReportingPeriod(year=2024, quarter=1, month=2))
    assert str(record.period_start) == "2024-02-01"
    assert str(record.period_end) == "2024-02-29"
    assert record.reporting_period == {"year": 2024, "quarter": 1, "month": 2}


def test_reporting_period_rejects_month_outside_quarter():
    with pytest.raises(ValueError):
        ReportingPeriod(year=2024, quarter=2, month=1)


def test_reporting_period_rejects_early_year():
    with pytest.raises(ValueError):
        ReportingPeriod(year=2019)


# Status moves
@pytest.mark.parametrize("current,new", [
    (EmissionStatus.draft, EmissionStatus.submitted),
    (EmissionStatus.draft, EmissionStatus.published),
    (EmissionStatus.submitted, EmissionStatus.verified),
])
def test_forward_transitions_allowed(current, new):
    check_status_transition(current, new, actor_elevated=False)


def test_backward_transition_requires_elevated_actor():
    with pytest.raises(InvalidStatusTransition):
        check_status_transition(EmissionStatus.verified, EmissionStatus.draft, actor_elevated=False)
    check_status_transition(EmissionStatus.verified, EmissionStatus.draft, actor_elevated=True)


def test_published_record_is_immutable_for_regular_user():
    record = EmissionRecord(status=EmissionStatus.published)
    with pytest.raises(PublishedRecordError):
        ensure_mutable(record, _user())
    ensure_mutable(record, _user(role=UserRole.admin))


def test_build_record_defaults_company_and_derives_fields():
    data = EmissionCreate(
        scope=2,
        reporting_period={"year": 2024, "quarter": 3},
        entries=[_entry(30.0), _entry(12.0)],
    )
    record = build_record(data, _user())

    assert record.company == "Acme Logistics"
    assert record.user_id == 7
    assert record.total_co2e == 42.0
    assert str(record.period_start) == "2024-07-01"
    assert str(record.period_end) == "2024-09-30"
    assert record.status == EmissionStatus.draft


def test_apply_update_replaces_entries_and_recomputes():
    record = EmissionRecord(
        status=EmissionStatus.draft,
        entries=[_entry(100.0)],
        total_co2e=100.0,
    )
    update = EmissionUpdate(entries=[_entry(5.0), _entry(6.0)], status=EmissionStatus.submitted)

    apply_update(record, update, _user())

    assert record.total_co2e == 11.0
    assert record.status == EmissionStatus.submitted
    assert record.last_modified is not None


def test_apply_update_refuses_published_record():
    record = EmissionRecord(status=EmissionStatus.published, entries=[_entry(1.0)], total_co2e=1.0)
    with pytest.raises(PublishedRecordError):
        apply_update(record, EmissionUpdate(entries=[_entry(2.0)]), _user())
    assert record.total_co2e == 1.0
