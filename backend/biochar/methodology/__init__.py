"""Puro biochar carbon accounting engine.

CORCs = C_stored - C_baseline - C_loss - E_project - E_leakage
"""

# purpose: expose the pure calculation core consumed by monitoring services
# status: active

from .calculator import (
    CalculationBreakdown,
    CalculationInput,
    CalculationResult,
    calculate_corcs,
    calculation_breakdown,
    efficiency_metrics,
)
from .constants import DEFAULT_METHODOLOGY, MethodologyConfig, PersistenceParams
from .emissions import (
    AllocationSnapshot,
    BatchSnapshot,
    EmbodiedSnapshot,
    EnergySnapshot,
    ProductionAggregate,
    aggregate_production,
    batch_dry_mass,
    co_product_allocation_factor,
)
from .leakage import (
    LeakageAggregate,
    LeakageRisk,
    LeakageSnapshot,
    aggregate_leakage,
    assess_leakage_risk,
    iluc_contribution,
)
from .quality import QualityAssessment, dry_mass_from_wet, evaluate_lab_test, h_corg_ratio
from .validation import ValidationReport, validate_calculation_input

__all__ = [
    "AllocationSnapshot",
    "BatchSnapshot",
    "CalculationBreakdown",
    "CalculationInput",
    "CalculationResult",
    "DEFAULT_METHODOLOGY",
    "EmbodiedSnapshot",
    "EnergySnapshot",
    "LeakageAggregate",
    "LeakageRisk",
    "LeakageSnapshot",
    "MethodologyConfig",
    "PersistenceParams",
    "ProductionAggregate",
    "QualityAssessment",
    "ValidationReport",
    "aggregate_leakage",
    "aggregate_production",
    "assess_leakage_risk",
    "batch_dry_mass",
    "calculate_corcs",
    "calculation_breakdown",
    "co_product_allocation_factor",
    "dry_mass_from_wet",
    "efficiency_metrics",
    "evaluate_lab_test",
    "h_corg_ratio",
    "iluc_contribution",
    "validate_calculation_input",
]
