"""
Live simulation example.

Runs the simulation clock against the demo fleet and walks through the
operator controls:
- Weather changes with an immediate optimization tick
- Outage injection and power restoration
- Network statistics and equity analysis
- pandas summaries of the simulated trades
"""

import time

from solarsense import service
from solarsense.analysis import price_summary, trade_summary
from solarsense.config import EngineConfig
from solarsense.simulation import get_simulation_clock


def print_stats(title: str) -> None:
    stats = service.get_network_stats()
    print(f"\n{title}")
    print(f"  Online: {stats.active_connections}/{stats.total_households}")
    print(f"  Generation: {stats.total_generation} kW, consumption: {stats.total_consumption} kW")
    print(f"  Stored energy: {stats.battery_storage_total} kWh")
    print(f"  Trading velocity: {stats.trading_velocity} kWh, avg price {stats.average_price}")
    print(f"  Network efficiency: {stats.network_efficiency}%")


def main():
    config = EngineConfig(name="Live Simulation Demo")
    config.simulation.tick_interval_seconds = 1.0

    print("Starting simulation...")
    service.start_simulation(config)
    clock = get_simulation_clock(service.CLOCK_NAME)

    try:
        time.sleep(3.5)
        print_stats("After a few sunny ticks:")

        print("\nWeather turns stormy...")
        service.change_weather("stormy")
        result = service.get_optimization_result()
        print(f"  Grid stability: {result.grid_stability * 100:.1f}%")
        for message in result.recommendations:
            print(f"  ! {message}")

        print("\nTriggering an outage on the lowest-battery households...")
        outage = service.trigger_outage()
        print(f"  Affected: {outage.affected_household_ids}")
        print(f"  Surviving capacity: {outage.surviving_capacity:.1f} kW")
        print(f"  Resilience: {outage.community_resilience:.2f}")
        time.sleep(2.5)
        print_stats("During the outage:")

        restored = service.restore_power(outage.affected_household_ids)
        print(f"\nPower restored to {restored}")
        service.change_weather("sunny")

        equity = service.get_equity_analysis()
        print(f"\nEquity score: {equity.equity_score:.2f}")
        print(f"Average energy security: {equity.average_energy_security:.2f}")
        print(f"Vulnerable households: {equity.vulnerable_households}")

        trades = clock.data.trades
        if trades:
            print("\nTrade summary per household:")
            print(trade_summary(trades).round(2).to_string())
            print("\nClearing prices per hour:")
            print(price_summary(trades).round(2).to_string())
        else:
            print("\nNo trades executed yet")

        print(f"\nClock metrics: {clock.metrics}")
    finally:
        service.stop_simulation()

    print("\nSimulation demonstration completed!")


if __name__ == "__main__":
    main()
