"""Status transitions for CORC issuances and legacy BCUs.

Functions here only check and mutate in-memory entities; callers record
the audit event and commit. A rejected transition raises
StateConflictError before any attribute is touched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .errors import InputValidationError, StateConflictError
from .methodology.constants import PERMANENCE_TYPES

# purpose: keep issuance state machines independent of HTTP and persistence
# inputs: ORM CORCIssuance / BCU instances (any object with the same attributes works)
# outputs: mutated entity plus (from_status, to_status) for the audit trail
# status: active

CORC_DRAFT = "draft"
CORC_ISSUED = "issued"
CORC_RETIRED = "retired"

BCU_ISSUED = "issued"
BCU_TRANSFERRED = "transferred"
BCU_RETIRED = "retired"

CORC_EDITABLE_FIELDS = {"notes", "permanence_type", "owner_name", "owner_account_id"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _reject(entity: str, instance: Any, action: str, message: str) -> StateConflictError:
    return StateConflictError(
        message,
        entity=entity,
        entity_id=getattr(instance, "id", None),
        current_status=instance.status,
        action=action,
    )


def _append_note(existing: str | None, tag: str, note: str | None) -> str | None:
    if not note:
        return existing
    entry = f"[{tag}] {note}"
    return f"{existing}\n{entry}" if existing else entry


def issue_corc(
    corc: Any,
    *,
    issuance_date: datetime | None = None,
    owner_name: str | None = None,
    owner_account_id: str | None = None,
) -> tuple[str, str]:
    if corc.status != CORC_DRAFT:
        raise _reject("CORC issuance", corc, "issue", f"Cannot issue CORC with status '{corc.status}'")
    if corc.net_corcs_tco2e is None or corc.net_corcs_tco2e <= 0:
        raise _reject(
            "CORC issuance",
            corc,
            "issue",
            f"Cannot issue CORC with non-positive net removal ({corc.net_corcs_tco2e})",
        )
    corc.status = CORC_ISSUED
    corc.issuance_date = issuance_date or _now()
    if owner_name is not None:
        corc.owner_name = owner_name
    if owner_account_id is not None:
        corc.owner_account_id = owner_account_id
    return CORC_DRAFT, CORC_ISSUED


def retire_corc(
    corc: Any,
    *,
    retirement_beneficiary: str,
    retirement_date: datetime | None = None,
    notes: str | None = None,
) -> tuple[str, str]:
    if corc.status != CORC_ISSUED:
        raise _reject("CORC issuance", corc, "retire", f"Cannot retire CORC with status '{corc.status}'")
    if not retirement_beneficiary:
        raise InputValidationError(["Retirement beneficiary is required"])
    corc.status = CORC_RETIRED
    corc.retirement_date = retirement_date or _now()
    corc.retirement_beneficiary = retirement_beneficiary
    if notes is not None:
        corc.notes = notes
    return CORC_ISSUED, CORC_RETIRED


def edit_corc(corc: Any, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply editable field changes to a draft CORC; returns what was applied."""

    if corc.status != CORC_DRAFT:
        raise _reject("CORC issuance", corc, "edit", f"Cannot edit CORC with status '{corc.status}'")
    unknown = sorted(set(changes) - CORC_EDITABLE_FIELDS)
    if unknown:
        raise InputValidationError([f"Field '{name}' cannot be edited" for name in unknown])
    permanence = changes.get("permanence_type")
    if permanence is not None and permanence not in PERMANENCE_TYPES:
        raise InputValidationError([f"Invalid permanence type: {permanence}"])
    for key, value in changes.items():
        setattr(corc, key, value)
    return dict(changes)


def ensure_corc_deletable(corc: Any) -> None:
    if corc.status != CORC_DRAFT:
        raise _reject("CORC issuance", corc, "delete", f"Cannot delete CORC with status '{corc.status}'")


def transfer_bcu(
    bcu: Any,
    *,
    new_owner_name: str,
    new_owner_account_id: str | None = None,
    notes: str | None = None,
) -> tuple[str, str]:
    if bcu.status == BCU_RETIRED:
        raise _reject("BCU", bcu, "transfer", "Cannot transfer a retired BCU")
    if not new_owner_name:
        raise InputValidationError(["New owner name is required"])
    previous = bcu.status
    bcu.status = BCU_TRANSFERRED
    bcu.owner_name = new_owner_name
    bcu.owner_account_id = new_owner_account_id
    bcu.notes = _append_note(bcu.notes, "Transfer", notes)
    return previous, BCU_TRANSFERRED


def retire_bcu(
    bcu: Any,
    *,
    retirement_beneficiary: str,
    retirement_date: datetime | None = None,
    notes: str | None = None,
) -> tuple[str, str]:
    if bcu.status == BCU_RETIRED:
        raise _reject("BCU", bcu, "retire", "BCU is already retired")
    if not retirement_beneficiary:
        raise InputValidationError(["Retirement beneficiary is required"])
    previous = bcu.status
    bcu.status = BCU_RETIRED
    bcu.retirement_date = retirement_date or _now()
    bcu.retirement_beneficiary = retirement_beneficiary
    bcu.notes = _append_note(bcu.notes, "Retirement", notes)
    return previous, BCU_RETIRED


def ensure_bcu_deletable(bcu: Any) -> None:
    if bcu.status != BCU_ISSUED:
        raise _reject("BCU", bcu, "delete", f"Cannot delete BCU with status '{bcu.status}'")
