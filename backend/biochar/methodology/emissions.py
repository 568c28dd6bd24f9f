"""Project emissions aggregation over a monitoring period (Puro Section 7)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..errors import DataIntegrityError
from .constants import DEFAULT_METHODOLOGY, MethodologyConfig
from .quality import dry_mass_from_wet

# purpose: fold batch, feedstock, energy and end-use telemetry into E_project components
# inputs: typed batch snapshots loaded by the monitoring service
# outputs: dry-mass weighted quality plus kg-denominated emission components and caveats
# status: active


@dataclass(frozen=True, slots=True)
class AllocationSnapshot:
    """Share of one feedstock delivery consumed by a batch."""

    distance_km: float | None
    weight_used_tonnes: float | None


@dataclass(frozen=True, slots=True)
class EnergySnapshot:
    energy_type: str | None
    quantity: float


@dataclass(frozen=True, slots=True)
class BatchSnapshot:
    """Calculation view of a completed production batch."""

    batch_id: str
    output_biochar_tonnes: float
    dry_mass_tonnes: float | None = None
    organic_carbon_percent: float | None = None
    hydrogen_percent: float | None = None
    lab_organic_carbon_percent: float | None = None
    lab_hydrogen_percent: float | None = None
    lab_moisture_percent: float | None = None
    stack_ch4_kg: float | None = None
    stack_n2o_kg: float | None = None
    allocations: Sequence[AllocationSnapshot] = ()
    energy_usages: Sequence[EnergySnapshot] = ()


@dataclass(frozen=True, slots=True)
class EmbodiedSnapshot:
    total_infrastructure_tco2e: float | None = None
    lifetime_years: float | None = None


@dataclass(frozen=True, slots=True)
class BiomassEmissions:
    cultivation: float = 0.0
    collection: float = 0.0
    transport: float = 0.0
    preprocessing: float = 0.0

    @property
    def total(self) -> float:
        return self.cultivation + self.collection + self.transport + self.preprocessing


@dataclass(frozen=True, slots=True)
class ProductionEmissions:
    """Production-stage emissions; stack gases are in kg of the gas itself."""

    energy: float = 0.0
    materials: float = 0.0
    waste: float = 0.0
    stack_ch4_kg: float = 0.0
    stack_n2o_kg: float = 0.0
    fossil_co2_kg: float = 0.0
    maintenance: float = 0.0

    def total(self, config: MethodologyConfig = DEFAULT_METHODOLOGY) -> float:
        return (
            self.energy
            + self.materials
            + self.waste
            + self.stack_ch4_kg * config.gwp_ch4
            + self.stack_n2o_kg * config.gwp_n2o
            + self.fossil_co2_kg
            + self.maintenance
        )


@dataclass(frozen=True, slots=True)
class EmbodiedEmissions:
    infrastructure: float = 0.0
    dluc: float = 0.0

    @property
    def total(self) -> float:
        return self.infrastructure + self.dluc


@dataclass(frozen=True, slots=True)
class EndUseEmissions:
    transport: float = 0.0
    packaging: float = 0.0
    incorporation: float = 0.0

    @property
    def total(self) -> float:
        return self.transport + self.packaging + self.incorporation


@dataclass(frozen=True, slots=True)
class ProjectEmissions:
    """E_project = E_biomass + E_production + E_use + E_emb, all kg CO2e."""

    biomass: BiomassEmissions = field(default_factory=BiomassEmissions)
    production: ProductionEmissions = field(default_factory=ProductionEmissions)
    embodied: EmbodiedEmissions = field(default_factory=EmbodiedEmissions)
    end_use: EndUseEmissions = field(default_factory=EndUseEmissions)
    co_product_allocation_factor: float | None = None

    def allocation_factor(self) -> float:
        # 0 would erase production emissions; anything outside (0, 1] means no co-products
        factor = self.co_product_allocation_factor
        if factor is None or factor <= 0 or factor > 1:
            return 1.0
        return factor

    def components(self) -> Iterable[tuple[str, float]]:
        yield "biomass.cultivation", self.biomass.cultivation
        yield "biomass.collection", self.biomass.collection
        yield "biomass.transport", self.biomass.transport
        yield "biomass.preprocessing", self.biomass.preprocessing
        yield "production.energy", self.production.energy
        yield "production.materials", self.production.materials
        yield "production.waste", self.production.waste
        yield "production.stack_ch4_kg", self.production.stack_ch4_kg
        yield "production.stack_n2o_kg", self.production.stack_n2o_kg
        yield "production.fossil_co2_kg", self.production.fossil_co2_kg
        yield "production.maintenance", self.production.maintenance
        yield "embodied.infrastructure", self.embodied.infrastructure
        yield "embodied.dluc", self.embodied.dluc
        yield "end_use.transport", self.end_use.transport
        yield "end_use.packaging", self.end_use.packaging
        yield "end_use.incorporation", self.end_use.incorporation


@dataclass(frozen=True, slots=True)
class ProductionAggregate:
    """Period-level production totals ready for the CORC calculator."""

    batch_count: int
    total_dry_mass_tonnes: float
    organic_carbon_percent: float
    hydrogen_percent: float
    emissions: ProjectEmissions
    caveats: tuple[str, ...] = ()


def transport_emissions_kg(
    allocation: AllocationSnapshot,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> float:
    """distance x weight used x transport factor, in kg CO2e."""

    return (allocation.distance_km or 0.0) * (allocation.weight_used_tonnes or 0.0) * config.transport_factor


def energy_emissions_kg(usage: EnergySnapshot, config: MethodologyConfig = DEFAULT_METHODOLOGY) -> float:
    return usage.quantity * config.energy_factor(usage.energy_type)


def split_biomass_emissions(
    total_kg: float,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> BiomassEmissions:
    """Apportion haulage-derived emissions into the sourcing stages; residues carry no cultivation."""

    return BiomassEmissions(
        cultivation=0.0,
        collection=total_kg * config.collection_share,
        transport=total_kg * config.transport_share,
        preprocessing=total_kg * config.preprocessing_share,
    )


def co_product_allocation_factor(biochar_energy_mj: float, co_product_energy_mj: float) -> float:
    """Energy-content (LHV) share of the biochar among all products (Section 7.5.2).

    With no energy content at all there are no co-products and biochar carries 100 %.
    """

    if biochar_energy_mj < 0 or co_product_energy_mj < 0:
        raise ValueError("Energy content cannot be negative")
    total = biochar_energy_mj + co_product_energy_mj
    if total <= 0:
        return 1.0
    return biochar_energy_mj / total


def amortized_infrastructure_kg(
    embodied: EmbodiedSnapshot | None,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> float:
    if embodied is None or not embodied.total_infrastructure_tco2e:
        return 0.0
    lifetime = embodied.lifetime_years
    if not lifetime or lifetime <= 0:
        lifetime = config.default_infrastructure_lifetime_years
    return embodied.total_infrastructure_tco2e * 1000 / lifetime


def batch_dry_mass(batch: BatchSnapshot) -> float:
    """Recorded dry mass, else output corrected by lab moisture, else output as produced."""

    if batch.dry_mass_tonnes is not None:
        return batch.dry_mass_tonnes
    output = batch.output_biochar_tonnes or 0.0
    if batch.lab_moisture_percent is not None:
        return dry_mass_from_wet(output, batch.lab_moisture_percent)
    return output


def _resolve_quality(
    batch: BatchSnapshot,
    config: MethodologyConfig,
    caveats: list[str],
) -> tuple[float, float]:
    organic = batch.lab_organic_carbon_percent
    if organic is None:
        organic = batch.organic_carbon_percent
    if organic is None:
        organic = config.default_organic_carbon_percent
        caveats.append(
            f"Batch {batch.batch_id}: no lab test available, using default organic carbon {organic:.1f}%"
        )

    hydrogen = batch.lab_hydrogen_percent
    if hydrogen is None:
        hydrogen = batch.hydrogen_percent
    if hydrogen is None:
        hydrogen = config.default_hydrogen_percent
        caveats.append(
            f"Batch {batch.batch_id}: no lab test available, using default hydrogen {hydrogen:.1f}%"
        )
    return organic, hydrogen


def aggregate_production(
    batches: Sequence[BatchSnapshot],
    *,
    end_use_quantities_tonnes: Sequence[float] = (),
    embodied: EmbodiedSnapshot | None = None,
    co_product_allocation_factor: float | None = None,
    config: MethodologyConfig = DEFAULT_METHODOLOGY,
) -> ProductionAggregate:
    """Sum period emissions and weight quality by dry mass.

    Raises DataIntegrityError when the period carries no dry mass, since the
    weighted averages would divide by zero.
    """

    caveats: list[str] = []
    total_dry_mass = 0.0
    weighted_organic = 0.0
    weighted_hydrogen = 0.0
    haulage_kg = 0.0
    energy_kg = 0.0
    stack_ch4_kg = 0.0
    stack_n2o_kg = 0.0

    for batch in batches:
        dry_mass = batch_dry_mass(batch)
        total_dry_mass += dry_mass

        organic, hydrogen = _resolve_quality(batch, config, caveats)
        weighted_organic += organic * dry_mass
        weighted_hydrogen += hydrogen * dry_mass

        stack_ch4_kg += batch.stack_ch4_kg or 0.0
        stack_n2o_kg += batch.stack_n2o_kg or 0.0

        for allocation in batch.allocations:
            haulage_kg += transport_emissions_kg(allocation, config)
        for usage in batch.energy_usages:
            energy_kg += energy_emissions_kg(usage, config)

    if total_dry_mass == 0:
        raise DataIntegrityError(
            "No valid biochar dry mass data available for calculation; "
            f"{len(batches)} production batch(es) carry zero dry mass"
        )

    end_use_transport_kg = sum(end_use_quantities_tonnes) * config.end_use_transport_factor

    emissions = ProjectEmissions(
        biomass=split_biomass_emissions(haulage_kg, config),
        production=ProductionEmissions(
            energy=energy_kg,
            stack_ch4_kg=stack_ch4_kg,
            stack_n2o_kg=stack_n2o_kg,
        ),
        embodied=EmbodiedEmissions(infrastructure=amortized_infrastructure_kg(embodied, config)),
        end_use=EndUseEmissions(transport=end_use_transport_kg),
        co_product_allocation_factor=co_product_allocation_factor,
    )
    return ProductionAggregate(
        batch_count=len(batches),
        total_dry_mass_tonnes=total_dry_mass,
        organic_carbon_percent=weighted_organic / total_dry_mass,
        hydrogen_percent=weighted_hydrogen / total_dry_mass,
        emissions=emissions,
        caveats=tuple(caveats),
    )
