import pytest

from biochar.methodology.quality import (
    classify,
    dry_mass_from_wet,
    evaluate_lab_test,
    h_corg_ratio,
    organic_carbon_percent,
    passes_quality_threshold,
)


def test_organic_carbon_subtracts_inorganic_and_never_goes_negative():
    assert organic_carbon_percent(80.0, 5.0) == pytest.approx(75.0)
    assert organic_carbon_percent(3.0, 5.0) == 0.0


def test_h_corg_uses_molar_factor():
    assert h_corg_ratio(2.0, 80.0) == pytest.approx(0.3)
    assert h_corg_ratio(3.5, 60.0) == pytest.approx(0.7)


def test_h_corg_undefined_without_organic_carbon():
    assert h_corg_ratio(2.0, 0.0) is None


def test_threshold_is_inclusive():
    assert passes_quality_threshold(0.7)
    assert not passes_quality_threshold(0.7001)
    assert not passes_quality_threshold(None)


@pytest.mark.parametrize(
    "ratio,label",
    [
        (0.3, "Excellent - High stability"),
        (0.45, "Very Good - Good stability"),
        (0.55, "Good - Moderate stability"),
        (0.65, "Acceptable - Minimum stability"),
        (0.9, "Ineligible - Below threshold"),
    ],
)
def test_classification_bands(ratio, label):
    assert classify(ratio) == label


def test_evaluate_lab_test_flags_ineligible_biochar():
    good = evaluate_lab_test(80.0, 0.0, 2.0)
    assert good.passes_quality_threshold
    assert good.organic_carbon_percent == pytest.approx(80.0)

    poor = evaluate_lab_test(52.0, 2.0, 3.5)
    assert poor.organic_carbon_percent == pytest.approx(50.0)
    assert poor.h_corg_ratio == pytest.approx(0.84)
    assert not poor.passes_quality_threshold


def test_dry_mass_from_wet():
    assert dry_mass_from_wet(10.0, 15.0) == pytest.approx(8.5)
    assert dry_mass_from_wet(10.0, 0.0) == pytest.approx(10.0)
    for moisture in (-1.0, 100.0):
        with pytest.raises(ValueError):
            dry_mass_from_wet(10.0, moisture)
