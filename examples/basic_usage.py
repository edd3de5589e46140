"""
Basic usage example of the SolarSense engine.
This example demonstrates core functionality including:
- Configuring the engine
- Optimizing an external household roster
- Reading trades, prices and battery actions
- Assessing an outage without taking anyone offline
"""

from solarsense.config import EngineConfig, ForecastConfig, MonitoringConfig
from solarsense.models import Household, WeatherCondition
from solarsense.optimization import OptimizationEngine
from solarsense.service import result_summary

ROSTER = [
    {"id": 1, "name": "Maple Street Home", "address": "12 Maple Street",
     "solar_capacity": 5, "battery_capacity": 15, "battery_level": 35},
    {"id": 2, "name": "Riverside Apartments", "address": "4 Riverside Road",
     "solar_capacity": 3, "battery_capacity": 10, "battery_level": 12},
    {"id": 3, "name": "Community Center", "address": "1 Town Square",
     "solar_capacity": 12, "battery_capacity": 40, "battery_level": 85},
    {"id": 4, "name": "Oak Lane Cottage", "address": "77 Oak Lane",
     "solar_capacity": 0, "battery_capacity": 0, "battery_level": 0},
]


def main():
    # Create basic configuration
    config = EngineConfig(
        name="Basic SolarSense Example",
        forecast=ForecastConfig(random_seed=42),
        monitoring=MonitoringConfig(log_level="WARNING"),
    )
    config.check()

    engine = OptimizationEngine(config)
    households = [Household.from_record(record) for record in ROSTER]

    print("Initializing SolarSense engine...")
    print(f"Name: {config.name}")
    print(f"Households: {len(households)}")

    for condition in ("sunny", "cloudy", "stormy"):
        weather = WeatherCondition.for_condition(condition, hour=13)
        result = engine.optimize(households, weather, hour=13, day_of_week=2, month=6)
        summary = result_summary(result)

        print(f"\n=== {condition.upper()} at 13:00 ===")
        print(f"Grid stability: {result.grid_stability * 100:.1f}%")

        print("Trades:")
        if not summary["trading_pairs"]:
            print("  none")
        for trade in summary["trading_pairs"]:
            print(
                f"  {trade['supplier_id']} -> {trade['demander_id']}: "
                f"{trade['energy_amount']:.2f} kWh @ {trade['price']} "
                f"{config.market.currency}/kWh ({trade['priority']}, {trade['distance']:.0f} km)"
            )

        print("Battery actions:")
        for household_id, action in summary["battery_strategy"].items():
            print(f"  {household_id}: {action}")

        for message in result.recommendations:
            print(f"! {message}")

    # Outage assessment is side-effect free
    print("\nAssessing an outage of households 1 and 2...")
    response = engine.simulate_outage_response([1, 2], households)
    print(f"Surviving capacity: {response.surviving_capacity:.1f} kW")
    print(f"Emergency routing capacity: {response.emergency_routing.available_capacity:.1f} kW")
    print(f"Estimated recovery: {response.estimated_recovery_time:.1f} h")
    print(f"Community resilience: {response.community_resilience:.2f}")

    stats = engine.get_performance_stats()
    print(f"\nCycles run: {stats['total_cycles']}, average solve time {stats['avg_solve_time'] * 1000:.1f} ms")
    print("\nBasic usage demonstration completed!")


if __name__ == "__main__":
    main()
