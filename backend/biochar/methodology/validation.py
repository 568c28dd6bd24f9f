"""Input validation gating the CORC calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..errors import InputValidationError
from .calculator import CalculationInput
from .constants import BASELINE_TYPES, DEFAULT_METHODOLOGY, MethodologyConfig
from .quality import h_corg_ratio

# purpose: reject malformed or physically impossible calculation inputs as one structured report
# inputs: CalculationInput plus caveats raised while aggregating period data
# outputs: ValidationReport with every independent error and all non-blocking warnings
# status: active


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise InputValidationError(self.errors, self.warnings)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _check_percent(name: str, value: float, errors: list[str]) -> None:
    if not 0 <= value <= 100:
        errors.append(f"{name} must be between 0 and 100 (got {value})")


def validate_calculation_input(
    data: CalculationInput,
    *,
    caveats: Iterable[str] = (),
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> ValidationReport:
    """Collect every problem with ``data`` instead of stopping at the first."""

    report = ValidationReport(warnings=list(caveats))
    errors = report.errors
    warnings = report.warnings

    if data.biochar_dry_mass_tonnes <= 0:
        errors.append("Biochar dry mass must be greater than 0")

    _check_percent("Organic carbon percent", data.organic_carbon_percent, errors)
    _check_percent("Hydrogen percent", data.hydrogen_percent, errors)

    if data.organic_carbon_percent <= 0:
        errors.append("Organic carbon percent must be greater than 0 to derive H/C_org")
    elif 0 <= data.hydrogen_percent <= 100 and data.organic_carbon_percent <= 100:
        ratio = h_corg_ratio(data.hydrogen_percent, data.organic_carbon_percent, config)
        if ratio is not None and ratio > config.h_corg_threshold:
            errors.append(
                f"H/C_org ratio ({ratio:.3f}) exceeds {config.h_corg_threshold} threshold. "
                "Biochar is not eligible for CORCs."
            )
        elif ratio is not None and ratio > config.h_corg_warning_level:
            warnings.append(
                f"H/C_org ratio ({ratio:.3f}) is close to {config.h_corg_threshold} threshold. "
                "Consider optimizing pyrolysis conditions."
            )

    temp = data.mean_soil_temp_c
    if not config.plausible_temp_min_c <= temp <= config.plausible_temp_max_c:
        errors.append(
            f"Mean soil temperature ({temp} C) is outside the plausible range "
            f"({config.plausible_temp_min_c} to {config.plausible_temp_max_c} C)"
        )
    elif temp < config.model_temp_min_c:
        warnings.append(
            f"Soil temperature ({temp} C) is below model range "
            f"({config.model_temp_min_c}-{config.model_temp_max_c} C). "
            f"Using {config.model_temp_min_c} C for calculation."
        )
    elif temp > config.model_temp_max_c:
        warnings.append(
            f"Soil temperature ({temp} C) is above model range "
            f"({config.model_temp_min_c}-{config.model_temp_max_c} C). "
            f"Using {config.model_temp_max_c} C for calculation."
        )

    if data.baseline_type not in BASELINE_TYPES:
        errors.append(f"Invalid baseline type: {data.baseline_type}")
    elif data.baseline_type == "CHARCOAL_REPURPOSE" and not (data.baseline_carbon_storage_tco2e or 0) > 0:
        warnings.append("Charcoal repurpose baseline type requires baseline carbon storage value")

    if (data.baseline_carbon_storage_tco2e or 0) < 0:
        errors.append("Baseline carbon storage cannot be negative")

    for name, value in data.project_emissions.components():
        if value < 0:
            errors.append(f"Project emission component {name} cannot be negative")

    leakage = data.leakage
    for name, value in (
        ("facility_ecological", leakage.facility_ecological_kg),
        ("biomass_ecological", leakage.biomass_ecological_kg),
        ("afolu", leakage.afolu_kg),
        ("energy_material", leakage.energy_material_kg),
        ("iluc", leakage.iluc_kg),
    ):
        if value < 0:
            errors.append(f"Leakage component {name} cannot be negative")

    return report
