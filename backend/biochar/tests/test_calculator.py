import pytest

from biochar.errors import DataIntegrityError
from biochar.methodology.calculator import (
    CalculationInput,
    calculate_corcs,
    calculation_breakdown,
    efficiency_metrics,
    persistence_fraction,
)
from biochar.methodology.emissions import (
    BiomassEmissions,
    EmbodiedEmissions,
    EndUseEmissions,
    ProductionEmissions,
    ProjectEmissions,
)
from biochar.methodology.leakage import LeakageAggregate


def scenario(**overrides):
    values = dict(
        biochar_dry_mass_tonnes=1000.0,
        organic_carbon_percent=80.0,
        hydrogen_percent=2.0,
        mean_soil_temp_c=15.0,
        baseline_type="NEW_BUILT",
    )
    values.update(overrides)
    return CalculationInput(**values)


def with_emissions(**overrides):
    return scenario(
        project_emissions=ProjectEmissions(
            biomass=BiomassEmissions(collection=2000, transport=6000, preprocessing=2000),
            production=ProductionEmissions(energy=5000, stack_ch4_kg=10, stack_n2o_kg=2),
            embodied=EmbodiedEmissions(infrastructure=3000),
            end_use=EndUseEmissions(transport=1000),
            co_product_allocation_factor=0.5,
        ),
        leakage=LeakageAggregate(facility_ecological_kg=400, afolu_kg=600),
        **overrides,
    )


def test_reference_scenario():
    result = calculate_corcs(scenario())
    stored = 1000 * 0.8 * 44 / 12
    pf = 89.10 - 32.56 * 0.3

    assert result.h_corg_ratio == pytest.approx(0.3)
    assert result.quality_valid
    assert result.c_stored_tco2e == pytest.approx(stored)
    assert result.c_baseline_tco2e == 0.0
    assert result.persistence_fraction_percent == pytest.approx(pf)
    assert result.c_loss_tco2e == pytest.approx(stored * (100 - pf) / 100)
    assert result.e_project_tco2e == 0.0
    assert result.e_leakage_tco2e == 0.0
    assert result.net_corcs_tco2e == pytest.approx(stored * pf / 100)
    assert result.net_corcs_tco2e == pytest.approx(2327.072, rel=1e-6)
    assert result.soil_temp_used_c == 15
    assert result.permanence_type == "BC200+"
    assert result.calculation_version == "puro-biochar-2025-v1.0.0"


def test_same_input_same_output():
    data = with_emissions()
    assert calculate_corcs(data) == calculate_corcs(data)


def test_net_equals_components():
    result = calculate_corcs(with_emissions(baseline_type="CHARCOAL_REPURPOSE", baseline_carbon_storage_tco2e=50.0))
    assert result.c_baseline_tco2e == 50.0
    assert result.net_corcs_tco2e == pytest.approx(
        result.c_stored_tco2e
        - result.c_baseline_tco2e
        - result.c_loss_tco2e
        - result.e_project_tco2e
        - result.e_leakage_tco2e
    )


def test_project_emissions_apply_gwp_and_allocation():
    result = calculate_corcs(with_emissions())
    production_kg = (5000 + 10 * 28 + 2 * 265) * 0.5
    assert result.breakdown.production_tco2e == pytest.approx(production_kg / 1000)
    assert result.breakdown.biomass_tco2e == pytest.approx(10.0)
    assert result.e_project_tco2e == pytest.approx((10000 + production_kg + 3000 + 1000) / 1000)
    assert result.e_leakage_tco2e == pytest.approx(1.0)
    assert result.breakdown.ecological_leakage_tco2e == pytest.approx(0.4)
    assert result.breakdown.market_leakage_tco2e == pytest.approx(0.6)


def test_stored_and_net_increase_with_dry_mass():
    results = [calculate_corcs(with_emissions(biochar_dry_mass_tonnes=mass)) for mass in (10, 100, 1000)]
    stored = [result.c_stored_tco2e for result in results]
    nets = [result.net_corcs_tco2e for result in results]
    assert stored[0] < stored[1] < stored[2]
    assert nets[0] < nets[1] < nets[2]


def test_net_is_not_clamped():
    result = calculate_corcs(with_emissions(biochar_dry_mass_tonnes=0.001))
    assert result.net_corcs_tco2e < 0


@pytest.mark.parametrize("temp,used", [(3.0, 7), (45.0, 40), (14.5, 15), (14.49, 14), (22.0, 22)])
def test_soil_temperature_rounded_and_clamped(temp, used):
    _, temp_used = persistence_fraction(0.3, temp)
    assert temp_used == used


def test_persistence_falls_with_temperature_and_ratio():
    cool, _ = persistence_fraction(0.3, 10)
    warm, _ = persistence_fraction(0.3, 30)
    assert warm < cool
    low, _ = persistence_fraction(0.2, 15)
    high, _ = persistence_fraction(0.6, 15)
    assert high < low


def test_ratio_above_threshold_is_reported_not_raised():
    result = calculate_corcs(scenario(hydrogen_percent=5.0))
    assert result.h_corg_ratio == pytest.approx(0.75)
    assert not result.quality_valid


def test_unknown_baseline_and_zero_carbon_raise():
    with pytest.raises(DataIntegrityError):
        calculate_corcs(scenario(baseline_type="SOMETHING_ELSE"))
    with pytest.raises(DataIntegrityError):
        calculate_corcs(scenario(organic_carbon_percent=0.0))


def test_breakdown_lists_steps_in_order():
    breakdown = calculation_breakdown(scenario())
    assert len(breakdown.steps) == 8
    assert breakdown.steps[0].value == pytest.approx(0.3)
    assert breakdown.steps[-1].value == pytest.approx(breakdown.result.net_corcs_tco2e)
    assert breakdown.persistence_intercept == pytest.approx(89.10)
    assert breakdown.persistence_slope == pytest.approx(32.56)
    assert breakdown.carbon_mass_tonnes == pytest.approx(800.0)
    assert breakdown.to_dict()["result"]["net_corcs_tco2e"] == pytest.approx(breakdown.result.net_corcs_tco2e)


def test_efficiency_metrics():
    data = scenario()
    result = calculate_corcs(data)
    metrics = efficiency_metrics(data, result)
    assert metrics["carbon_efficiency_percent"] == pytest.approx(result.persistence_fraction_percent)
    assert metrics["net_corcs_per_tonne"] == pytest.approx(result.net_corcs_tco2e / 1000)
    assert metrics["emission_intensity_tco2e_per_tonne"] == 0.0
