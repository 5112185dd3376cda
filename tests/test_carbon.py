import pytest

from dashboard.carbon import calculate_carbon_sequestration, regional_factor


@pytest.mark.parametrize("location, factor", [
    ("Mombasa, Kenya", 1.2),
    ("Coast of Brazil", 1.2),
    ("California, USA", 0.8),
    ("Brittany, France", 0.8),
    ("Somewhere", 1.0),
    ("", 1.0),
    (None, 1.0),
])
def test_regional_factor(location, factor):
    assert regional_factor(location) == factor


def test_tropical_mangrove_estimate():
    estimate = calculate_carbon_sequestration(10, "Mangrove", "Kenya")

    assert estimate.annual_co2 == 96.0
    assert estimate.lifetime_co2 == 1920.0


def test_temperate_seagrass_estimate():
    estimate = calculate_carbon_sequestration(2.5, "Seagrass", "Canada")

    assert estimate.annual_co2 == 11.0
    assert estimate.lifetime_co2 == 220.0


def test_unknown_ecosystem_uses_default_rate():
    estimate = calculate_carbon_sequestration(3, "Kelp", "Atlantis")

    assert estimate.annual_co2 == 6.0
    assert estimate.lifetime_co2 == 120.0


def test_estimate_is_rounded_to_two_places():
    estimate = calculate_carbon_sequestration(1.333, "Salt Marsh", "Nowhere")

    assert estimate.annual_co2 == 6.0
    assert estimate.lifetime_co2 == round(1.333 * 4.5 * 20, 2)
