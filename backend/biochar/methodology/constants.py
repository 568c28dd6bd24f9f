"""Versioned methodology parameters for the Puro biochar standard (Edition 2025 V1)."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Mapping

# purpose: isolate every methodology constant behind one named, versioned configuration
# inputs: Puro Table 6.1 persistence regressions, AR5 GWP values, LCA default factors
# outputs: MethodologyConfig consumed by quality, emissions, leakage and calculator modules
# status: active

BASELINE_TYPES = ("NEW_BUILT", "RETROFIT_FACILITY", "CHARCOAL_REPURPOSE")
PERMANENCE_TYPES = ("BC100+", "BC200+")


@dataclass(frozen=True, slots=True)
class PersistenceParams:
    """Regression coefficients of PF = M - a x H/Corg for one soil temperature."""

    intercept: float
    slope: float


# Table 6.1, BC+200, keyed by mean annual soil temperature in whole degrees C
_PERSISTENCE_TABLE: dict[int, PersistenceParams] = {
    7: PersistenceParams(96.59, 11.28),
    8: PersistenceParams(95.98, 13.44),
    9: PersistenceParams(95.28, 15.78),
    10: PersistenceParams(94.49, 18.28),
    11: PersistenceParams(93.60, 20.93),
    12: PersistenceParams(92.62, 23.70),
    13: PersistenceParams(91.54, 26.58),
    14: PersistenceParams(90.37, 29.54),
    15: PersistenceParams(89.10, 32.56),
    16: PersistenceParams(87.75, 35.60),
    17: PersistenceParams(86.31, 38.64),
    18: PersistenceParams(86.19, 38.86),
    19: PersistenceParams(86.19, 39.70),
    20: PersistenceParams(86.19, 40.53),
    21: PersistenceParams(86.19, 41.37),
    22: PersistenceParams(86.19, 42.20),
    23: PersistenceParams(86.19, 43.04),
    24: PersistenceParams(86.19, 43.88),
    25: PersistenceParams(86.19, 44.71),
    26: PersistenceParams(86.19, 45.55),
    27: PersistenceParams(86.19, 46.38),
    28: PersistenceParams(86.19, 47.22),
    29: PersistenceParams(86.19, 48.05),
    **{temp: PersistenceParams(86.19, 48.25) for temp in range(30, 41)},
}


@dataclass(frozen=True, slots=True)
class MethodologyConfig:
    """Immutable bundle of methodology parameters.

    A new methodology edition is a new instance with a new ``version``;
    the calculator structure does not change.
    """

    version: str = "puro-biochar-2025-v1.0.0"
    persistence_table: Mapping[int, PersistenceParams] = field(
        default_factory=lambda: dict(_PERSISTENCE_TABLE)
    )
    model_temp_min_c: int = 7
    model_temp_max_c: int = 40
    plausible_temp_min_c: float = -30.0
    plausible_temp_max_c: float = 60.0
    co2_to_c_ratio: float = 44 / 12
    h_corg_molar_factor: float = 12.0
    h_corg_threshold: float = 0.7
    h_corg_warning_level: float = 0.6
    gwp_ch4: float = 28.0
    gwp_n2o: float = 265.0
    default_organic_carbon_percent: float = 80.0
    default_hydrogen_percent: float = 2.0
    # kg CO2e per tonne-km of feedstock haulage
    transport_factor: float = 0.1
    collection_share: float = 0.2
    transport_share: float = 0.6
    preprocessing_share: float = 0.2
    energy_factors: Mapping[str, float] = field(
        default_factory=lambda: {
            "electricity": 0.5,
            "diesel": 2.7,
            "gas": 2.0,
            "propane": 1.5,
        }
    )
    default_energy_factor: float = 0.5
    # kg CO2e per tonne of biochar delivered to its end use
    end_use_transport_factor: float = 10.0
    default_infrastructure_lifetime_years: float = 10.0
    permanence_type: str = "BC200+"

    def persistence_params(self, mean_soil_temp_c: float) -> tuple[PersistenceParams, int]:
        """Return the coefficients and the clamped whole-degree temperature used."""

        # half-up rounding, 14.5 C reads the 15 C row
        temp = max(self.model_temp_min_c, min(self.model_temp_max_c, math.floor(mean_soil_temp_c + 0.5)))
        return self.persistence_table[temp], temp

    def energy_factor(self, energy_type: str | None) -> float:
        if not energy_type:
            return self.default_energy_factor
        return self.energy_factors.get(energy_type.lower(), self.default_energy_factor)


DEFAULT_METHODOLOGY = MethodologyConfig()

DEFAULT_SOIL_TEMP_C = float(os.getenv("CORC_DEFAULT_SOIL_TEMP_C", "15"))
