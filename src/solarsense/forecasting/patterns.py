"""
Deterministic baseline patterns for solar generation and household demand.

These curves form the physics/pattern baseline that the online estimator is
blended with. All functions are pure.
"""

from typing import Sequence

from ..models import Household, WeatherCondition, WeatherKind

# Clear-sky irradiance fraction per condition
WEATHER_BASE_MULTIPLIERS = {
    WeatherKind.SUNNY: 1.0,
    WeatherKind.PARTLY_CLOUDY: 0.82,
    WeatherKind.CLOUDY: 0.45,
    WeatherKind.OVERCAST: 0.25,
    WeatherKind.RAINY: 0.15,
    WeatherKind.STORMY: 0.08,
}

# Peak-sun-hours bell curve, index = hour of day
SOLAR_CURVE = (
    0.0, 0.0, 0.0, 0.0, 0.0,
    0.02, 0.15, 0.35,
    0.58, 0.78, 0.92,
    0.98, 1.0, 0.98,
    0.92, 0.78, 0.58,
    0.35, 0.15, 0.02,
    0.0, 0.0, 0.0, 0.0,
)

# Index = month (0 = January)
SEASONAL_GENERATION = (0.6, 0.7, 0.8, 0.9, 1.0, 1.0, 1.0, 0.95, 0.85, 0.75, 0.65, 0.55)
SEASONAL_DEMAND = (1.2, 1.15, 1.0, 0.9, 1.0, 1.3, 1.4, 1.4, 1.2, 0.95, 1.05, 1.2)

# Residential load curve, evening peak at 18h
DEMAND_CURVE = (
    0.45, 0.42, 0.4, 0.38, 0.4,
    0.45, 0.55, 0.75, 0.85, 0.72,
    0.65, 0.68, 0.7, 0.72, 0.75,
    0.78, 0.85, 0.95, 1.0, 0.92,
    0.8, 0.7, 0.58, 0.52,
)

# Index = day of week (0 = Sunday)
WEEKDAY_PATTERN = (0.95, 1.0, 1.0, 1.0, 1.0, 0.98, 0.92)

COMMERCIAL_KEYWORDS = ("commercial", "center", "innovation")
MULTI_FAMILY_KEYWORDS = ("apartments", "complex")
TECH_KEYWORDS = ("smart home", "tech")


def _lookup(table: Sequence[float], index: int, default: float) -> float:
    if 0 <= index < len(table):
        return table[index]
    return default


def temperature_impact(temperature: float) -> float:
    """Panel efficiency loss above 25 °C (-0.4 %/°C, floor 70 %)."""
    if temperature <= 25:
        return 1.0
    return max(0.7, 1 - (temperature - 25) * 0.004)


def weather_multiplier(weather: WeatherCondition) -> float:
    base = WEATHER_BASE_MULTIPLIERS.get(weather.condition, 0.6)
    cloud_impact = max(0.1, 1 - (weather.cloud_cover / 100) * 0.7)
    return base * cloud_impact * temperature_impact(weather.temperature)


def solar_time_multiplier(hour: int) -> float:
    if hour < 5 or hour > 20:
        return 0.0
    return _lookup(SOLAR_CURVE, hour, 0.0)


def seasonal_generation_multiplier(month: int) -> float:
    return _lookup(SEASONAL_GENERATION, month, 1.0)


def seasonal_demand_multiplier(month: int) -> float:
    return _lookup(SEASONAL_DEMAND, month, 1.0)


def demand_time_pattern(hour: int) -> float:
    return _lookup(DEMAND_CURVE, hour, 0.6)


def demand_day_pattern(day_of_week: int) -> float:
    return _lookup(WEEKDAY_PATTERN, day_of_week, 1.0)


def base_demand(household: Household) -> float:
    """Hourly base demand (kW) inferred from the household's name."""
    name = (household.name or "").lower()

    if any(keyword in name for keyword in COMMERCIAL_KEYWORDS):
        return 3.5
    if any(keyword in name for keyword in MULTI_FAMILY_KEYWORDS):
        return 2.0
    if any(keyword in name for keyword in TECH_KEYWORDS):
        return 1.8
    # ~30 kWh/day residential average
    return 1.25


def household_pattern(household: Household) -> float:
    """Behavioural multiplier from battery and solar ownership, in [0.7, 1.3]."""
    pattern = 1.0

    battery_level = household.battery_level if household.battery_level is not None else 50
    if battery_level < 20:
        pattern *= 1.15
    if battery_level > 80:
        pattern *= 0.92

    solar_capacity = household.solar_capacity or 0
    if solar_capacity > 8:
        pattern *= 0.88
    if solar_capacity == 0:
        pattern *= 1.05

    if (household.battery_capacity or 0) > 13:
        pattern *= 0.85

    return max(0.7, min(1.3, pattern))


def stable_hash(*parts) -> int:
    """Process-independent hash of the given parts."""
    text = ":".join(str(p) for p in parts)
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) % 2147483647
    return value


def demand_variance(household: Household, hour: int, day_of_week: int) -> float:
    """Contextual demand variance with a reproducible +/-10 % jitter."""
    variance = 1.0

    if 6 <= hour <= 9 or 17 <= hour <= 20:
        variance *= 1.15
    if day_of_week in (0, 6):
        variance *= 1.1
    if (household.battery_capacity or 0) > 10:
        variance *= 0.95

    jitter = 0.9 + (stable_hash(household.id, hour, day_of_week) % 1000) / 1000 * 0.2
    return variance * jitter


def generation_baseline(
    household: Household,
    weather: WeatherCondition,
    hour: int,
    month: int
) -> float:
    return (
        (household.solar_capacity or 0)
        * weather_multiplier(weather)
        * solar_time_multiplier(hour)
        * seasonal_generation_multiplier(month)
    )


def demand_baseline(household: Household, hour: int, day_of_week: int, month: int) -> float:
    return (
        base_demand(household)
        * demand_time_pattern(hour)
        * demand_day_pattern(day_of_week)
        * household_pattern(household)
        * seasonal_demand_multiplier(month)
    )

