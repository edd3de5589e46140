"""
Test suite for the live simulation.

This test suite validates:
- Clock lifecycle (start, idempotent stop, background ticking)
- Tick side effects: readings, trades and battery updates
- Skipped and failed ticks keeping the previous result
- Outage triggering and power restoration
- Store retention limits and the clock registry
"""

import sys
from pathlib import Path
from datetime import datetime
import importlib
import time
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from solarsense.config import EngineConfig, ForecastConfig
from solarsense.exceptions import (
    SimulationError, UnknownWeatherConditionError, ValidationRangeError, ValidationTypeError
)
from solarsense.models import Household, WeatherCondition, WeatherKind
from solarsense.simulation import (
    SimulationClock, SimulationDataContext, demo_battery_level, get_simulation_clock,
    registered_clocks, release_simulation_clock, time_parts
)
from solarsense.simulation import registry as registry_module

NOON = datetime(2024, 6, 12, 12, 0)  # Wednesday


def fixed_clock():
    return NOON


def make_config(tick_interval=10.0):
    config = EngineConfig(forecast=ForecastConfig(random_seed=3))
    config.simulation.tick_interval_seconds = tick_interval
    return config


class TestSimulationClock(unittest.TestCase):
    """Clock lifecycle and tick side effects."""

    def setUp(self):
        self.clock = SimulationClock(make_config(), clock=fixed_clock, name="test")

    def tearDown(self):
        self.clock.stop()

    def test_time_parts(self):
        self.assertEqual(time_parts(NOON), (12, 3, 5))

    def test_start_seeds_demo_fleet(self):
        print("\n=== Testing Simulation Lifecycle ===")
        self.assertTrue(self.clock.start(background=False))
        self.assertFalse(self.clock.start(background=False))

        households = self.clock.data.households
        self.assertEqual(len(households), 8)
        self.assertEqual([h.id for h in households], list(range(1000, 1008)))
        for h in households:
            self.assertGreaterEqual(h.battery_level, 5.0)
            self.assertLessEqual(h.battery_level, 95.0)
            self.assertEqual(h.user_id, 999)
        print("✓ Demo fleet seeded under reserved ids")

    def test_stop_is_idempotent(self):
        self.clock.stop()
        self.clock.start(background=False)
        self.assertTrue(self.clock.is_running)
        self.clock.stop()
        self.clock.stop()
        self.assertFalse(self.clock.is_running)
        print("✓ Repeated stop is a no-op")

    def test_cycle_records_readings_and_trades(self):
        print("\n=== Testing Simulation Ticks ===")
        self.clock.start(background=False)
        result = self.clock.run_cycle()

        self.assertIsNotNone(result)
        self.assertIs(self.clock.get_optimization_result(), result)
        self.assertEqual(len(self.clock.data.readings), 8)

        trades = self.clock.data.trades
        self.assertEqual(len(trades), len(result.trading_pairs))
        self.assertEqual([t.price_per_kwh for t in trades], result.pair_prices)
        for trade, pair in zip(trades, result.trading_pairs):
            self.assertEqual(trade.seller_household_id, pair.supplier_id)
            self.assertEqual(trade.energy_amount, pair.energy_amount)
            self.assertEqual(trade.status, "completed")
        self.assertEqual(self.clock.metrics["cycles_completed"], 1)
        print("✓ Each tick records readings and executes priced trades")

    def test_battery_levels_stay_in_range(self):
        self.clock.start(background=False)
        for _ in range(30):
            self.clock.run_cycle()

        for h in self.clock.data.households:
            self.assertGreaterEqual(h.battery_level, 0.0)
            self.assertLessEqual(h.battery_level, 100.0)
            self.assertLessEqual(h.battery_kwh, h.battery_capacity + 1e-9)
        self.assertEqual(self.clock.metrics["cycles_completed"], 30)
        print("✓ Battery levels clamped across 30 ticks")

    def test_busy_tick_is_skipped(self):
        self.clock.start(background=False)
        previous = self.clock.run_cycle()

        self.clock._tick_lock.acquire()
        try:
            self.assertIsNone(self.clock.run_cycle())
        finally:
            self.clock._tick_lock.release()

        self.assertEqual(self.clock.metrics["cycles_skipped"], 1)
        self.assertIs(self.clock.get_optimization_result(), previous)
        print("✓ Overlapping tick skipped, previous result kept")

    def test_failed_tick_keeps_previous_result(self):
        self.clock.start(background=False)
        previous = self.clock.run_cycle()

        def broken(state):
            raise RuntimeError("solver exploded")

        self.clock.engine.optimize_state = broken
        self.assertIsNone(self.clock.run_cycle())
        self.assertEqual(self.clock.metrics["cycles_failed"], 1)
        self.assertIs(self.clock.get_optimization_result(), previous)

    def test_background_ticking(self):
        clock = SimulationClock(make_config(tick_interval=0.05), clock=fixed_clock, name="bg")
        try:
            self.assertTrue(clock.start())
            deadline = time.time() + 5.0
            while clock.metrics["cycles_completed"] < 1 and time.time() < deadline:
                time.sleep(0.02)
        finally:
            clock.stop()

        completed = clock.metrics["cycles_completed"]
        self.assertGreaterEqual(completed, 1)
        time.sleep(0.2)
        self.assertEqual(clock.metrics["cycles_completed"], completed)
        self.assertFalse(clock.engine.forecast.worker.is_running)
        print("✓ Background thread ticks until stopped")

    def test_result_before_first_tick_has_no_side_effects(self):
        self.clock.start(background=False)
        result = self.clock.get_optimization_result()

        self.assertIsNotNone(result.grid_balancing)
        self.assertEqual(self.clock.data.readings, [])
        self.assertEqual(self.clock.data.trades, [])

    def test_empty_fleet_defaults(self):
        self.clock.start(households=[], background=False)

        result = self.clock.get_optimization_result()
        self.assertEqual(result.trading_pairs, [])
        self.assertEqual(result.grid_stability, 0.95)
        self.assertEqual(result.recommendations, ["No households available for optimization"])

        equity = self.clock.get_equity_analysis()
        self.assertEqual(equity.equity_score, 0.85)
        self.assertEqual(equity.average_energy_security, 0.75)
        self.assertEqual(equity.vulnerable_count, 0)
        print("✓ Empty roster yields default result and equity analysis")

    def test_custom_roster_gets_reserved_ids(self):
        roster = [Household(id=1, name="Outside", solar_capacity=4, battery_capacity=10, battery_level=50)]
        self.clock.start(households=roster, background=False)

        self.assertEqual([h.id for h in self.clock.data.households], [1000])
        self.assertEqual(roster[0].id, 1)

    def test_weather_change_runs_a_tick(self):
        print("\n=== Testing Weather Changes ===")
        self.clock.start(background=False)
        weather = self.clock.trigger_weather_change("stormy")

        self.assertEqual(weather.condition, WeatherKind.STORMY)
        self.assertEqual(self.clock.weather.current, weather)
        self.assertEqual(self.clock.metrics["cycles_completed"], 1)
        with self.assertRaises(UnknownWeatherConditionError):
            self.clock.trigger_weather_change("foggy")
        self.assertEqual(self.clock.weather.current.condition, WeatherKind.STORMY)
        print("✓ Weather change triggers an immediate tick")

    def test_weather_snapshots_are_validated(self):
        with self.assertRaises(ValidationRangeError):
            WeatherCondition(WeatherKind.CLOUDY, temperature=20, cloud_cover=120, wind_speed=10, solar_efficiency=0.45)
        with self.assertRaises(ValidationRangeError):
            WeatherCondition(WeatherKind.STORMY, temperature=16, cloud_cover=100, wind_speed=-5, solar_efficiency=0.05)
        with self.assertRaises(ValidationTypeError):
            WeatherCondition(WeatherKind.SUNNY, temperature=28, cloud_cover="clear", wind_speed=8, solar_efficiency=0.95)

        for kind in WeatherKind:
            for hour in range(24):
                WeatherCondition.for_condition(kind, hour=hour)
        print("✓ Out-of-range cloud cover and wind speed rejected")

    def test_non_positive_interval_rejected(self):
        clock = SimulationClock(make_config(tick_interval=0), clock=fixed_clock, name="test-interval")
        try:
            with self.assertRaises(SimulationError):
                clock.start()
            self.assertFalse(clock.is_running)
            self.assertEqual(clock.data.households, [])

            self.assertTrue(clock.start(background=False))
            self.assertIsNotNone(clock.run_cycle())
        finally:
            clock.stop()
        print("✓ Background ticking needs a positive interval, manual ticks do not")

    def test_network_stats(self):
        self.clock.start(background=False)
        stats = self.clock.get_network_stats()

        self.assertEqual(stats.total_households, 8)
        self.assertEqual(stats.active_connections, 8)
        self.assertEqual(stats.average_price, 5.0)
        self.assertEqual(stats.average_distance, 0.85)
        self.assertEqual(stats.trading_velocity, 0.0)
        self.assertGreaterEqual(stats.network_efficiency, 50.0)
        self.assertLessEqual(stats.network_efficiency, 100.0)

        status = self.clock.status()
        self.assertTrue(status.running)
        self.assertEqual(status.active_outage_ids, [])


class TestOutages(unittest.TestCase):
    """Operator-triggered outages against the simulated fleet."""

    def setUp(self):
        self.clock = SimulationClock(make_config(), clock=fixed_clock, name="outage")
        self.clock.start(background=False)

    def tearDown(self):
        self.clock.stop()

    def test_default_outage_takes_lowest_quarter(self):
        print("\n=== Testing Outages ===")
        households = self.clock.data.households
        expected = [h.id for h in sorted(households, key=lambda h: h.battery_level)[:2]]

        response = self.clock.trigger_outage()

        self.assertEqual(response.affected_household_ids, expected)
        self.assertEqual(self.clock.outages.active_outages, sorted(expected))
        offline = [h.id for h in self.clock.data.households if not h.is_online]
        self.assertEqual(sorted(offline), sorted(expected))
        self.assertGreaterEqual(response.community_resilience, 0.0)
        self.assertLessEqual(response.community_resilience, 1.0)
        print("✓ Default outage hits the two lowest-battery households")

        self.assertEqual(self.clock.get_network_stats().active_connections, 6)
        self.clock.run_cycle()
        self.assertEqual(len(self.clock.data.readings), 6)
        for pair in self.clock.get_optimization_result().trading_pairs:
            self.assertNotIn(pair.supplier_id, expected)
            self.assertNotIn(pair.demander_id, expected)

    def test_restore_round_trip(self):
        response = self.clock.trigger_outage([1001, 1003, 5])
        self.assertEqual(response.affected_household_ids, [1001, 1003])

        restored = self.clock.restore_power([1001, 1003])
        self.assertEqual(restored, [1001, 1003])
        self.assertEqual(self.clock.outages.active_outages, [])
        self.assertTrue(all(h.is_online for h in self.clock.data.households))
        print("✓ Restore brings every household back online")

    def test_select_targets_minimum_one(self):
        self.assertEqual(len(self.clock.select_outage_targets(0.01)), 1)
        self.assertEqual(len(self.clock.select_outage_targets(1.0)), 8)


class TestSimulationData(unittest.TestCase):
    """Isolated store retention."""

    def test_reading_retention(self):
        print("\n=== Testing Store Retention ===")
        data = SimulationDataContext(clock=fixed_clock)
        for i in range(1001):
            data.add_reading(1000, 1.0, 1.0, 50.0, "sunny", 25)

        readings = data.readings
        self.assertEqual(len(readings), 500)
        self.assertEqual(readings[-1].id, 11000)
        self.assertEqual(len(data.recent_readings()), 100)
        print("✓ Readings trimmed to the last 500")

    def test_trade_retention(self):
        data = SimulationDataContext(clock=fixed_clock)
        for i in range(501):
            data.add_trade(1000, 1001, 1.0, 5)

        trades = data.trades
        self.assertEqual(len(trades), 250)
        self.assertEqual(trades[-1].id, 10500)
        self.assertEqual(trades[-1].completed_at, NOON)
        self.assertEqual(len(data.recent_trades(10)), 10)
        print("✓ Trades trimmed to the last 250")

    def test_update_household(self):
        data = SimulationDataContext(clock=fixed_clock)
        data.initialize_demo_households()
        self.assertTrue(data.update_household(1000, battery_level=42.0))
        self.assertEqual(data.get_household(1000).battery_level, 42.0)
        self.assertFalse(data.update_household(1, battery_level=42.0))

        snapshot = data.snapshot()
        snapshot[0].battery_level = 0.0
        self.assertEqual(data.get_household(1000).battery_level, 42.0)

    def test_demo_battery_level_bounds(self):
        for hour in range(24):
            self.assertLessEqual(demo_battery_level(1001, 95, hour), 95.0)
            self.assertGreaterEqual(demo_battery_level(1006, 10, hour), 5.0)


class TestRegistry(unittest.TestCase):
    """Named clock registry."""

    def tearDown(self):
        release_simulation_clock("registry-test")

    def test_create_if_absent(self):
        print("\n=== Testing Clock Registry ===")
        first = get_simulation_clock("registry-test")
        self.assertIs(get_simulation_clock("registry-test"), first)
        self.assertIn("registry-test", registered_clocks())

        self.assertTrue(release_simulation_clock("registry-test"))
        self.assertFalse(release_simulation_clock("registry-test"))
        self.assertIsNot(get_simulation_clock("registry-test"), first)
        print("✓ One clock per name until released")

    def test_reload_keeps_registered_clocks(self):
        first = get_simulation_clock("registry-test")
        reloaded = importlib.reload(registry_module)
        self.assertIs(reloaded.get_simulation_clock("registry-test"), first)
        print("✓ Module reload keeps the existing clock")

    def test_config_for_existing_clock_is_ignored_with_warning(self):
        first_config = make_config()
        first = get_simulation_clock("registry-test", first_config)

        with self.assertLogs("solarsense.simulation.registry", level="WARNING") as logs:
            again = get_simulation_clock("registry-test", make_config(tick_interval=1.0))

        self.assertIs(again, first)
        self.assertIs(again.config, first_config)
        self.assertIn("ignoring the supplied config", logs.output[0])
        print("✓ A config passed for an existing clock is reported and not applied")


def main():
    """Run all simulation tests."""
    print("SolarSense - Simulation Tests")
    print("=" * 60)
    unittest.main(argv=[''], exit=False, verbosity=0)


if __name__ == "__main__":
    main()
