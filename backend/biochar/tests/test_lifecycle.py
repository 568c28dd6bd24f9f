from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from biochar import lifecycle
from biochar.errors import InputValidationError, StateConflictError


def corc(status="draft", net=100.0, **extra):
    values = dict(
        id=uuid4(),
        status=status,
        net_corcs_tco2e=net,
        issuance_date=None,
        owner_name=None,
        owner_account_id=None,
        retirement_date=None,
        retirement_beneficiary=None,
        notes=None,
        permanence_type="BC200+",
    )
    values.update(extra)
    return SimpleNamespace(**values)


def bcu(status="issued", **extra):
    values = dict(
        id=uuid4(),
        status=status,
        owner_name="Origin",
        owner_account_id=None,
        retirement_date=None,
        retirement_beneficiary=None,
        notes=None,
    )
    values.update(extra)
    return SimpleNamespace(**values)


def test_issue_then_retire():
    item = corc()
    when = datetime(2025, 2, 1, tzinfo=timezone.utc)
    assert lifecycle.issue_corc(item, issuance_date=when, owner_name="Buyer") == ("draft", "issued")
    assert item.status == "issued"
    assert item.issuance_date == when
    assert item.owner_name == "Buyer"

    assert lifecycle.retire_corc(item, retirement_beneficiary="Acme") == ("issued", "retired")
    assert item.status == "retired"
    assert item.retirement_beneficiary == "Acme"
    assert item.retirement_date is not None


@pytest.mark.parametrize("net", [0.0, -5.0, None])
def test_issue_rejects_non_positive_net(net):
    item = corc(net=net)
    with pytest.raises(StateConflictError) as excinfo:
        lifecycle.issue_corc(item)
    assert excinfo.value.current_status == "draft"
    assert item.status == "draft"
    assert item.issuance_date is None


@pytest.mark.parametrize("status", ["issued", "retired"])
def test_issue_requires_draft(status):
    with pytest.raises(StateConflictError):
        lifecycle.issue_corc(corc(status=status))


@pytest.mark.parametrize("status", ["draft", "retired"])
def test_retire_requires_issued(status):
    item = corc(status=status)
    with pytest.raises(StateConflictError) as excinfo:
        lifecycle.retire_corc(item, retirement_beneficiary="Acme")
    assert excinfo.value.current_status == status
    assert item.retirement_beneficiary is None


def test_edit_and_delete_only_while_draft():
    draft = corc()
    assert lifecycle.edit_corc(draft, {"notes": "hello", "permanence_type": "BC100+"}) == {
        "notes": "hello",
        "permanence_type": "BC100+",
    }
    assert draft.permanence_type == "BC100+"
    lifecycle.ensure_corc_deletable(draft)

    issued = corc(status="issued")
    with pytest.raises(StateConflictError):
        lifecycle.edit_corc(issued, {"notes": "late"})
    with pytest.raises(StateConflictError):
        lifecycle.ensure_corc_deletable(issued)
    assert issued.notes is None


def test_edit_rejects_frozen_fields():
    with pytest.raises(InputValidationError):
        lifecycle.edit_corc(corc(), {"net_corcs_tco2e": 9999})
    with pytest.raises(InputValidationError):
        lifecycle.edit_corc(corc(), {"permanence_type": "BC1000+"})


def test_bcu_transfer_chain_appends_notes():
    unit = bcu()
    assert lifecycle.transfer_bcu(unit, new_owner_name="Second", notes="sold") == ("issued", "transferred")
    assert lifecycle.transfer_bcu(unit, new_owner_name="Third", notes="resold") == ("transferred", "transferred")
    assert unit.owner_name == "Third"
    assert unit.notes == "[Transfer] sold\n[Transfer] resold"

    assert lifecycle.retire_bcu(unit, retirement_beneficiary="Acme", notes="offset") == ("transferred", "retired")
    assert unit.notes.endswith("[Retirement] offset")


def test_retired_bcu_is_final():
    unit = bcu(status="retired")
    with pytest.raises(StateConflictError):
        lifecycle.transfer_bcu(unit, new_owner_name="Someone")
    with pytest.raises(StateConflictError):
        lifecycle.retire_bcu(unit, retirement_beneficiary="Acme")
    assert unit.owner_name == "Origin"


@pytest.mark.parametrize("status", ["transferred", "retired"])
def test_bcu_delete_only_while_issued(status):
    lifecycle.ensure_bcu_deletable(bcu())
    with pytest.raises(StateConflictError):
        lifecycle.ensure_bcu_deletable(bcu(status=status))
