"""CORC quantification (Puro Equation 5.1).

CORCs = C_stored - C_baseline - C_loss - E_project - E_leakage
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from ..errors import DataIntegrityError
from .constants import DEFAULT_METHODOLOGY, MethodologyConfig
from .emissions import ProjectEmissions
from .leakage import LeakageAggregate
from .quality import h_corg_ratio, passes_quality_threshold

# purpose: turn aggregated period data into a net removal quantity
# inputs: CalculationInput assembled by the monitoring service
# outputs: CalculationResult persisted against a monitoring period
# status: active


@dataclass(frozen=True, slots=True)
class CalculationInput:
    biochar_dry_mass_tonnes: float
    organic_carbon_percent: float
    hydrogen_percent: float
    mean_soil_temp_c: float
    baseline_type: str
    baseline_carbon_storage_tco2e: float = 0.0
    project_emissions: ProjectEmissions = field(default_factory=ProjectEmissions)
    leakage: LeakageAggregate = field(default_factory=LeakageAggregate)


@dataclass(frozen=True, slots=True)
class EmissionBreakdown:
    biomass_tco2e: float
    production_tco2e: float
    embodied_tco2e: float
    end_use_tco2e: float
    ecological_leakage_tco2e: float
    market_leakage_tco2e: float


@dataclass(frozen=True, slots=True)
class CalculationResult:
    h_corg_ratio: float
    quality_valid: bool
    c_stored_tco2e: float
    c_baseline_tco2e: float
    c_loss_tco2e: float
    persistence_fraction_percent: float
    e_project_tco2e: float
    e_leakage_tco2e: float
    net_corcs_tco2e: float
    soil_temp_used_c: int
    permanence_type: str
    calculation_version: str
    breakdown: EmissionBreakdown

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class FormulaStep:
    step: str
    formula: str
    value: float
    unit: str


@dataclass(frozen=True, slots=True)
class CalculationBreakdown:
    result: CalculationResult
    persistence_intercept: float
    persistence_slope: float
    carbon_mass_tonnes: float
    steps: tuple[FormulaStep, ...]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def c_stored(dry_mass_tonnes: float, organic_carbon_percent: float, config: MethodologyConfig = DEFAULT_METHODOLOGY) -> float:
    """Gross stored carbon, Q_biochar x C_org x 44/12, in tCO2e (Equation 6.1)."""

    return dry_mass_tonnes * (organic_carbon_percent / 100) * config.co2_to_c_ratio


def c_baseline(baseline_type: str, baseline_carbon_storage_tco2e: float | None) -> float:
    if baseline_type in ("NEW_BUILT", "RETROFIT_FACILITY"):
        return 0.0
    if baseline_type == "CHARCOAL_REPURPOSE":
        # the repurposed kiln was already storing carbon as charcoal
        return baseline_carbon_storage_tco2e or 0.0
    raise DataIntegrityError(f"Unrecognized baseline type: {baseline_type!r}")


def persistence_fraction(
    ratio: float,
    mean_soil_temp_c: float,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> tuple[float, int]:
    """PF = M - a x H/C_org for the clamped soil temperature, bounded to 0..100 % (Equation 6.4)."""

    params, temp_used = config.persistence_params(mean_soil_temp_c)
    value = params.intercept - params.slope * ratio
    return max(0.0, min(100.0, value)), temp_used


def c_loss(c_stored_tco2e: float, persistence_fraction_percent: float) -> float:
    """Share of stored carbon lost over the crediting horizon (Equation 6.3)."""

    return c_stored_tco2e * (100 - persistence_fraction_percent) / 100


def e_project_components(
    emissions: ProjectEmissions,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> tuple[float, float, float, float]:
    """Biomass, allocated production, embodied and end-use emissions in tCO2e (Equations 7.1, 7.2)."""

    production_kg = emissions.production.total(config) * emissions.allocation_factor()
    return (
        emissions.biomass.total / 1000,
        production_kg / 1000,
        emissions.embodied.total / 1000,
        emissions.end_use.total / 1000,
    )


def calculate_corcs(
    data: CalculationInput,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> CalculationResult:
    """Run the quantification for validated input.

    Pure: the same input and configuration always produce the same result.
    The net value is not clamped so that the conservation identity holds;
    a non-positive net simply cannot be issued.
    """

    ratio = h_corg_ratio(data.hydrogen_percent, data.organic_carbon_percent, config)
    if ratio is None:
        raise DataIntegrityError("Organic carbon content must be greater than zero")

    stored = c_stored(data.biochar_dry_mass_tonnes, data.organic_carbon_percent, config)
    baseline = c_baseline(data.baseline_type, data.baseline_carbon_storage_tco2e)
    pf, temp_used = persistence_fraction(ratio, data.mean_soil_temp_c, config)
    loss = c_loss(stored, pf)

    biomass, production, embodied, end_use = e_project_components(data.project_emissions, config)
    project_total = biomass + production + embodied + end_use
    ecological = data.leakage.ecological_kg / 1000
    market = data.leakage.market_activity_kg / 1000
    leakage_total = ecological + market

    net = stored - baseline - loss - project_total - leakage_total

    return CalculationResult(
        h_corg_ratio=ratio,
        quality_valid=passes_quality_threshold(ratio, config),
        c_stored_tco2e=stored,
        c_baseline_tco2e=baseline,
        c_loss_tco2e=loss,
        persistence_fraction_percent=pf,
        e_project_tco2e=project_total,
        e_leakage_tco2e=leakage_total,
        net_corcs_tco2e=net,
        soil_temp_used_c=temp_used,
        permanence_type=config.permanence_type,
        calculation_version=config.version,
        breakdown=EmissionBreakdown(
            biomass_tco2e=biomass,
            production_tco2e=production,
            embodied_tco2e=embodied,
            end_use_tco2e=end_use,
            ecological_leakage_tco2e=ecological,
            market_leakage_tco2e=market,
        ),
    )


def calculation_breakdown(
    data: CalculationInput,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> CalculationBreakdown:
    """Result plus the ordered formula steps for audit display."""

    result = calculate_corcs(data, config)
    params, _ = config.persistence_params(data.mean_soil_temp_c)
    steps = (
        FormulaStep("1. Calculate H/C_org ratio", "H/C_org = (m_H / m_C_org) x 12.0", result.h_corg_ratio, "molar ratio"),
        FormulaStep("2. Calculate C_stored", "C_stored = Q_biochar x C_org x (44/12)", result.c_stored_tco2e, "tCO2e"),
        FormulaStep("3. Determine C_baseline", f"Baseline type: {data.baseline_type}", result.c_baseline_tco2e, "tCO2e"),
        FormulaStep("4. Calculate persistence fraction", "PF = M - a x H/C_org", result.persistence_fraction_percent, "%"),
        FormulaStep("5. Calculate C_loss", "C_loss = C_stored x (100 - PF) / 100", result.c_loss_tco2e, "tCO2e"),
        FormulaStep("6. Calculate E_project", "E_project = E_biomass + E_production + E_use + E_emb", result.e_project_tco2e, "tCO2e"),
        FormulaStep("7. Calculate E_leakage", "E_leakage = L_ECO + L_MA", result.e_leakage_tco2e, "tCO2e"),
        FormulaStep(
            "8. Calculate net CORCs",
            "CORCs = C_stored - C_baseline - C_loss - E_project - E_leakage",
            result.net_corcs_tco2e,
            "tCO2e",
        ),
    )
    return CalculationBreakdown(
        result=result,
        persistence_intercept=params.intercept,
        persistence_slope=params.slope,
        carbon_mass_tonnes=data.biochar_dry_mass_tonnes * data.organic_carbon_percent / 100,
        steps=steps,
    )


def efficiency_metrics(data: CalculationInput, result: CalculationResult) -> dict[str, float]:
    """Ratios used on reports; all zero when there is nothing stored."""

    if result.c_stored_tco2e <= 0 or data.biochar_dry_mass_tonnes <= 0:
        return {
            "carbon_efficiency_percent": 0.0,
            "emission_intensity_tco2e_per_tonne": 0.0,
            "net_corcs_per_tonne": 0.0,
        }
    return {
        "carbon_efficiency_percent": result.net_corcs_tco2e / result.c_stored_tco2e * 100,
        "emission_intensity_tco2e_per_tonne": (result.e_project_tco2e + result.e_leakage_tco2e)
        / data.biochar_dry_mass_tonnes,
        "net_corcs_per_tonne": result.net_corcs_tco2e / data.biochar_dry_mass_tonnes,
    }
