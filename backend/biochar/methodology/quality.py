"""Biochar quality evaluation (Puro Section 3.5, Equation 6.5)."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import DEFAULT_METHODOLOGY, MethodologyConfig


@dataclass(frozen=True, slots=True)
class QualityAssessment:
    """Derived permanence-relevant properties of one lab test."""

    organic_carbon_percent: float
    h_corg_ratio: float | None
    passes_quality_threshold: bool
    classification: str


def organic_carbon_percent(total_carbon_percent: float, inorganic_carbon_percent: float = 0.0) -> float:
    """C_org = C_tot - C_inorg, never negative."""

    return max(total_carbon_percent - (inorganic_carbon_percent or 0.0), 0.0)


def h_corg_ratio(
    hydrogen_percent: float,
    organic_carbon_percent: float,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> float | None:
    """Molar H/C_org ratio, or None when there is no organic carbon to divide by.

    H/C_org = (m_H / m_C_org) x 12.0, the factor converting the mass ratio
    to a molar ratio (atomic masses C = 12, H = 1).
    """

    if organic_carbon_percent <= 0:
        return None
    return hydrogen_percent / organic_carbon_percent * config.h_corg_molar_factor


def passes_quality_threshold(
    ratio: float | None,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> bool:
    if ratio is None:
        return False
    return ratio <= config.h_corg_threshold


def classify(ratio: float | None, config: MethodologyConfig = DEFAULT_METHODOLOGY) -> str:
    if ratio is None:
        return "Ineligible - No organic carbon"
    if ratio <= 0.4:
        return "Excellent - High stability"
    if ratio <= 0.5:
        return "Very Good - Good stability"
    if ratio <= 0.6:
        return "Good - Moderate stability"
    if ratio <= config.h_corg_threshold:
        return "Acceptable - Minimum stability"
    return "Ineligible - Below threshold"


def evaluate_lab_test(
    total_carbon_percent: float,
    inorganic_carbon_percent: float,
    hydrogen_percent: float,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> QualityAssessment:
    """Derive organic carbon, H/C_org and eligibility from raw lab measurements."""

    organic = organic_carbon_percent(total_carbon_percent, inorganic_carbon_percent)
    ratio = h_corg_ratio(hydrogen_percent, organic, config)
    return QualityAssessment(
        organic_carbon_percent=organic,
        h_corg_ratio=ratio,
        passes_quality_threshold=passes_quality_threshold(ratio, config),
        classification=classify(ratio, config),
    )


def dry_mass_from_wet(wet_mass_tonnes: float, moisture_percent: float) -> float:
    """Dry mass = wet mass x (1 - moisture fraction)."""

    if not 0 <= moisture_percent < 100:
        raise ValueError("Moisture percent must be between 0 and 100")
    return wet_mass_tonnes * (1 - moisture_percent / 100)
