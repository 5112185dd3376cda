"""
Carbon sequestration estimate for a restoration project.

    annual CO2 (t/year) = area (ha) x rate (ecosystem) x regional factor
    lifetime CO2        = annual CO2 x 20 years

Both values are rounded to 2 decimal places.
"""
from collections import namedtuple

PROJECT_LIFETIME_YEARS = 20

# t CO2 / ha / year
SEQUESTRATION_RATES = {
    'Mangrove': 8.0,
    'Seagrass': 5.5,
    'Salt Marsh': 4.5,
    'Coastal': 3.5,
    'Other': 2.0,
}

REGIONAL_FACTORS = {
    'Tropical': 1.2,
    'Temperate': 0.8,
    'Default': 1.0,
}

TROPICAL_KEYWORDS = [
    'tropical', 'equator', 'caribbean', 'pacific islands', 'indonesia', 'thailand', 'malaysia',
    'philippines', 'hawaii', 'fiji', 'brazil', 'amazon', 'costa rica', 'panama', 'vietnam',
    'india', 'africa', 'kenya', 'tanzania', 'madagascar',
]
TEMPERATE_KEYWORDS = [
    'temperate', 'europe', 'north america', 'canada', 'usa', 'united states', 'uk', 'britain',
    'france', 'germany', 'japan', 'korea', 'china', 'australia', 'new zealand', 'argentina', 'chile',
]

CarbonEstimate = namedtuple('CarbonEstimate', ['annual_co2', 'lifetime_co2'])


def regional_factor(location):
    location = (location or '').lower()
    if any(keyword in location for keyword in TROPICAL_KEYWORDS):
        return REGIONAL_FACTORS['Tropical']
    if any(keyword in location for keyword in TEMPERATE_KEYWORDS):
        return REGIONAL_FACTORS['Temperate']
    return REGIONAL_FACTORS['Default']


def calculate_carbon_sequestration(area, ecosystem_type, location):
    rate = SEQUESTRATION_RATES.get(ecosystem_type, SEQUESTRATION_RATES['Other'])
    annual = float(area) * rate * regional_factor(location)
    return CarbonEstimate(
        annual_co2=round(annual, 2),
        lifetime_co2=round(annual * PROJECT_LIFETIME_YEARS, 2),
    )
