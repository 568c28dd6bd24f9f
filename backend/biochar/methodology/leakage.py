"""Leakage emissions (Puro Section 8, Equation 8.1)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence


@dataclass(frozen=True, slots=True)
class LeakageSnapshot:
    """One facility leakage assessment, all quantities in kg CO2e."""

    assessment_date: date | datetime
    facility_ecological_kg: float = 0.0
    biomass_ecological_kg: float = 0.0
    afolu_kg: float = 0.0
    energy_material_kg: float = 0.0
    iluc_kg: float = 0.0


@dataclass(frozen=True, slots=True)
class LeakageAggregate:
    """E_leakage = L_ECO + L_MA."""

    facility_ecological_kg: float = 0.0
    biomass_ecological_kg: float = 0.0
    afolu_kg: float = 0.0
    energy_material_kg: float = 0.0
    iluc_kg: float = 0.0
    caveats: tuple[str, ...] = ()

    @property
    def ecological_kg(self) -> float:
        return self.facility_ecological_kg + self.biomass_ecological_kg

    @property
    def market_activity_kg(self) -> float:
        return self.afolu_kg + self.energy_material_kg + self.iluc_kg

    @property
    def total_kg(self) -> float:
        return self.ecological_kg + self.market_activity_kg


def latest_assessment(assessments: Sequence[LeakageSnapshot]) -> LeakageSnapshot | None:
    if not assessments:
        return None
    return max(assessments, key=lambda item: item.assessment_date)


def aggregate_leakage(assessments: Sequence[LeakageSnapshot]) -> LeakageAggregate:
    """Use the most recent assessment, or zero leakage flagged as unassessed."""

    latest = latest_assessment(assessments)
    if latest is None:
        return LeakageAggregate(
            caveats=("No leakage assessment recorded for facility, leakage assumed zero",)
        )
    return LeakageAggregate(
        facility_ecological_kg=latest.facility_ecological_kg,
        biomass_ecological_kg=latest.biomass_ecological_kg,
        afolu_kg=latest.afolu_kg,
        energy_material_kg=latest.energy_material_kg,
        iluc_kg=latest.iluc_kg,
    )


_HIGH_ILUC_RISK_CATEGORIES = {"A", "B", "N"}
_RESIDUE_CATEGORIES = set("CDEFGHIJKL")


def requires_iluc_assessment(puro_category: str, dedicated_crop: bool = False) -> bool:
    """Categories A, B, N and dedicated energy crops need iLUC quantification (Section 8.6)."""

    if dedicated_crop:
        return True
    return puro_category.upper() in _HIGH_ILUC_RISK_CATEGORIES


@dataclass(frozen=True, slots=True)
class LeakageRisk:
    risk_level: str
    requires_iluc: bool
    mitigation_required: bool
    notes: tuple[str, ...] = ()


def assess_leakage_risk(
    puro_category: str,
    dedicated_crop: bool = False,
    has_existing_use: bool = False,
) -> LeakageRisk:
    """Screen a feedstock for leakage risk before a full assessment.

    Dedicated crops are high risk. High iLUC categories and feedstocks with an
    existing economic use raise low risk to medium. Anything above low needs
    mitigation.
    """

    category = puro_category.upper()
    notes: list[str] = []
    level = "low"

    if dedicated_crop:
        level = "high"
        notes.append("Dedicated energy crops require full iLUC assessment")
        notes.append("Must demonstrate no competition with food production")
    if category in _HIGH_ILUC_RISK_CATEGORIES:
        if level != "high":
            level = "medium"
        notes.append(f"Category {category} is classified as high-risk for iLUC")
    if has_existing_use:
        if level == "low":
            level = "medium"
        notes.append("Feedstock with existing economic use may cause market displacement")
    elif category in _RESIDUE_CATEGORIES:
        notes.append("Waste/residue category with no existing use, low leakage risk")

    return LeakageRisk(
        risk_level=level,
        requires_iluc=requires_iluc_assessment(category, dedicated_crop),
        mitigation_required=level != "low",
        notes=tuple(notes),
    )


def iluc_contribution(
    quantity_dry_tonnes: float,
    lower_heating_value_gj: float,
    iluc_factor_kg_per_mj: float,
    attribution_factor: float = 1.0,
) -> float:
    """iLUC = Q x LHV x factor x AF, in kg CO2e (LHV converted from GJ to MJ)."""

    if quantity_dry_tonnes < 0:
        raise ValueError("Quantity cannot be negative")
    if lower_heating_value_gj < 0:
        raise ValueError("Lower heating value cannot be negative")
    if iluc_factor_kg_per_mj < 0:
        raise ValueError("iLUC factor cannot be negative")
    if not 0 <= attribution_factor <= 1:
        raise ValueError("Attribution factor must be between 0 and 1")
    return quantity_dry_tonnes * lower_heating_value_gj * 1000 * iluc_factor_kg_per_mj * attribution_factor
