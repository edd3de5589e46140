"""
Test suite for the adaptive forecast model.

This test suite validates:
- Ring buffer arenas and per-household learning state
- Physical bounds on generation and demand forecasts
- Weather sensitivity and determinism
- The background training queue and its failure handling
"""

import sys
from pathlib import Path
import threading
import time
import unittest

import numpy as np

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from solarsense.config import ForecastConfig
from solarsense.forecasting import (
    AccuracyTracker, ForecastModel, LearningStore, OnlineEstimator,
    RingBufferArena, TrainingJob, TrainingWorker
)
from solarsense.forecasting import patterns
from solarsense.forecasting.learning import DEMAND, GENERATION
from solarsense.models import Household, WeatherCondition, WeatherKind


def make_fleet():
    return [
        Household(id=1, name="Solar Pioneers", solar_capacity=5, battery_capacity=15, battery_level=15),
        Household(id=2, name="Community Center", solar_capacity=12, battery_capacity=40, battery_level=55),
        Household(id=3, name="Eco Apartments", solar_capacity=3, battery_capacity=10, battery_level=25),
        Household(id=4, name="Smart Home Alpha", solar_capacity=6, battery_capacity=18, battery_level=80),
        Household(id=5, name="Grid Only", solar_capacity=0, battery_capacity=0, battery_level=0),
    ]


class TestLearningState(unittest.TestCase):
    """Ring buffers, trend, confidence and accuracy tracking."""

    def test_ring_buffer_wraps_in_order(self):
        """Test that old samples are overwritten oldest first."""
        print("\n=== Testing Ring Buffer Arena ===")

        arena = RingBufferArena(capacity=3, initial_rows=1)
        for value in range(5):
            arena.append("a", float(value))
        arena.append("b", 9.0)

        np.testing.assert_array_equal(arena.values("a"), [2.0, 3.0, 4.0])
        np.testing.assert_array_equal(arena.values("b"), [9.0])
        self.assertEqual(arena.count("a"), 3)
        self.assertEqual(len(arena.values("missing")), 0)
        print("✓ Arena keeps the most recent samples per key")

        for key in range(40):
            arena.append(key, 1.0)
        self.assertEqual(arena.count(39), 1)
        np.testing.assert_array_equal(arena.values("a"), [2.0, 3.0, 4.0])
        print("✓ Arena grows without disturbing existing rows")

    def test_neutral_values_before_enough_samples(self):
        """Test defaults below the minimum sample count."""
        store = LearningStore()
        for _ in range(9):
            store.record(1, GENERATION, actual=2.0, predicted=1.0)

        self.assertEqual(store.trend(1, GENERATION), 1.0)
        self.assertEqual(store.confidence(1, GENERATION), 0.75)
        self.assertEqual(store.adaptation_factor(1, GENERATION), 1.0)
        self.assertEqual(store.accuracy(7, DEMAND), 0.75)
        print("✓ Neutral trend, confidence and adaptation below 10 samples")

    def test_trend_confidence_and_adaptation(self):
        """Test learning statistics once enough samples exist."""
        store = LearningStore()
        for _ in range(5):
            store.record(1, DEMAND, actual=1.0, predicted=1.0)
        for _ in range(5):
            store.record(1, DEMAND, actual=2.0, predicted=1.5)

        self.assertAlmostEqual(store.trend(1, DEMAND), 2.0)
        # errors: five 0.0 then five 0.25
        self.assertAlmostEqual(store.confidence(1, DEMAND), 1 - 0.125)
        self.assertAlmostEqual(store.adaptation_factor(1, DEMAND), 1.25)
        self.assertEqual(store.sample_count(1, GENERATION), 0)
        print("✓ Trend, confidence and adaptation follow recent history")

    def test_history_is_bounded(self):
        store = LearningStore(history_window=100, error_window=20)
        for i in range(250):
            store.record(3, GENERATION, actual=float(i), predicted=float(i))

        self.assertEqual(store.sample_count(3, GENERATION), 100)
        self.assertEqual(store.history(3, GENERATION)[0], 150.0)
        print("✓ History capped at 100 samples")

    def test_accuracy_tracker_defaults_and_mape(self):
        tracker = AccuracyTracker()
        self.assertEqual(tracker.accuracy(GENERATION), 0.75)
        self.assertEqual(tracker.mape(GENERATION), 15.0)

        tracker.record(GENERATION, 1, actual=2.0, predicted=1.5)
        tracker.record(GENERATION, 2, actual=4.0, predicted=4.0)
        self.assertAlmostEqual(tracker.mape(GENERATION), 12.5)
        self.assertAlmostEqual(tracker.accuracy(GENERATION, 2), 1.0)
        print("✓ Accuracy tracker reports MAPE over recorded samples")


class TestOnlineEstimator(unittest.TestCase):
    """Small numpy estimator."""

    def test_output_range_and_training(self):
        estimator = OnlineEstimator(rng=np.random.RandomState(0))
        inputs = [0.1, -0.2, 0.3, 0.0, 0.5, 0.0, 0.2, -0.1]

        value = estimator.predict(inputs)
        self.assertGreater(value, 0.0)
        self.assertLess(value, 1.0)

        first_error = abs(estimator.train(inputs, 0.9))
        for _ in range(500):
            estimator.train(inputs, 0.9)
        self.assertLess(abs(estimator.predict(inputs) - 0.9), first_error)
        self.assertEqual(estimator.samples_seen, 501)
        print("✓ Estimator output in (0, 1) and moves toward its target")

    def test_rejects_wrong_input_size(self):
        estimator = OnlineEstimator(rng=np.random.RandomState(0))
        with self.assertRaises(ValueError):
            estimator.predict([0.0, 1.0])

    def test_predict_waits_for_weight_update(self):
        """Test that a prediction cannot read weights while a training step holds them."""
        estimator = OnlineEstimator(rng=np.random.RandomState(0))
        inputs = [0.1, -0.2, 0.3, 0.0, 0.5, 0.0, 0.2, -0.1]
        results = []

        estimator._lock.acquire()
        reader = threading.Thread(target=lambda: results.append(estimator.predict(inputs)))
        reader.start()
        reader.join(timeout=0.2)
        self.assertTrue(reader.is_alive())
        self.assertEqual(results, [])

        estimator._lock.release()
        reader.join(timeout=2.0)
        self.assertFalse(reader.is_alive())
        self.assertEqual(len(results), 1)
        print("✓ Predictions wait for an in-flight weight update")


class TestForecastModel(unittest.TestCase):
    """Forecast bounds, weather sensitivity and background training."""

    def setUp(self):
        self.model = ForecastModel(ForecastConfig(random_seed=42))
        self.sunny = WeatherCondition.for_condition("sunny", hour=12)
        self.stormy = WeatherCondition.for_condition("stormy", hour=12)

    def test_zero_capacity_returns_baseline_floor(self):
        household = Household(id=9, name="Grid Only", solar_capacity=0)
        value = self.model.predict_generation(household, self.sunny, 12, month=5, day_of_week=3)
        self.assertEqual(value, 0.0)
        self.assertEqual(self.model.worker.pending, 0)
        print("✓ Zero solar capacity yields no estimator influence")

    def test_generation_within_physical_limits(self):
        """Test generation is non-negative and within the weather-adjusted rating."""
        print("\n=== Testing Forecast Bounds ===")
        for household in make_fleet():
            for hour in range(24):
                for weather in (self.sunny, self.stormy):
                    value = self.model.predict_generation(household, weather, hour, month=5, day_of_week=3)
                    limit = min(
                        household.solar_capacity * patterns.weather_multiplier(weather),
                        household.solar_capacity
                    )
                    self.assertGreaterEqual(value, 0.0)
                    self.assertLessEqual(value, limit + 1e-9)
        print("✓ Generation bounded for every hour and weather")

    def test_no_generation_outside_daylight(self):
        """Test that hours without sun forecast zero generation for any seed."""
        print("\n=== Testing Night-time Generation ===")
        night_hours = [0, 1, 2, 3, 4, 20, 21, 22, 23]
        for seed in (0, 42, 114, 199):
            model = ForecastModel(ForecastConfig(random_seed=seed))
            for household in make_fleet():
                for hour in night_hours:
                    for weather in (self.sunny, self.stormy):
                        value = model.predict_generation(household, weather, hour, month=5, day_of_week=3)
                        self.assertEqual(value, 0.0)
        print("✓ No solar output forecast after sunset or before sunrise")

    def test_demand_within_base_multiples(self):
        for household in make_fleet():
            base = patterns.base_demand(household)
            for hour in range(24):
                for day in range(7):
                    value = self.model.predict_demand(household, hour, day, month=0)
                    self.assertGreaterEqual(value, max(0.1, base * 0.3) - 1e-9)
                    self.assertLessEqual(value, base * 3.0 + 1e-9)
        print("✓ Demand within [0.3, 3.0] x base demand")

    def test_stormy_weather_lowers_every_forecast(self):
        """Test that a switch to stormy lowers generation for every solar household."""
        for household in make_fleet():
            if household.solar_capacity <= 0:
                continue
            sunny = self.model.predict_generation(household, self.sunny, 12, month=5, day_of_week=3)
            stormy = self.model.predict_generation(household, self.stormy, 12, month=5, day_of_week=3)
            self.assertLess(stormy, sunny)
        print("✓ Stormy forecast strictly below sunny forecast")

    def test_predictions_are_deterministic_without_training(self):
        other = ForecastModel(ForecastConfig(random_seed=42))
        for household in make_fleet():
            self.assertEqual(
                self.model.predict_generation(household, self.sunny, 10, month=3, day_of_week=1),
                other.predict_generation(household, self.sunny, 10, month=3, day_of_week=1)
            )
            self.assertEqual(
                self.model.predict_demand(household, 18, 6, month=3),
                other.predict_demand(household, 18, 6, month=3)
            )
        print("✓ Identical seeds and inputs give identical forecasts")

    def test_predict_enqueues_and_drain_trains(self):
        """Test that training happens only when the queue is drained."""
        print("\n=== Testing Background Training ===")
        household = make_fleet()[0]
        for _ in range(12):
            self.model.predict_generation(household, self.sunny, 12, month=5, day_of_week=3)
            self.model.predict_demand(household, 12, 3, month=5)

        self.assertEqual(self.model.learning.sample_count(household.id, GENERATION), 0)
        self.assertEqual(self.model.drain_training(), 24)
        self.assertEqual(self.model.learning.sample_count(household.id, GENERATION), 12)
        self.assertEqual(self.model.learning.sample_count(household.id, DEMAND), 12)

        confidence = self.model.learning.confidence(household.id, GENERATION)
        self.assertGreaterEqual(confidence, 0.1)
        self.assertLessEqual(confidence, 1.0)

        report = self.model.accuracy_report()
        self.assertEqual(report[GENERATION]["samples_trained"], 12)
        self.assertEqual(report["pending_jobs"], 0)
        print("✓ Drained jobs update learning records and accuracy report")

    def test_training_failure_is_swallowed(self):
        household = make_fleet()[0]

        def broken_train(inputs, target):
            raise RuntimeError("boom")

        self.model.estimators[GENERATION].train = broken_train
        value = self.model.predict_generation(household, self.sunny, 12, month=5, day_of_week=3)
        self.model.drain_training()

        self.assertGreater(value, 0.0)
        self.assertEqual(self.model.worker.metrics["jobs_failed"], 1)
        print("✓ Training failure logged, prediction unaffected")

    def test_full_queue_drops_jobs(self):
        model = ForecastModel(ForecastConfig(random_seed=1, training_queue_size=1))
        household = make_fleet()[1]
        first = model.predict_demand(household, 8, 2, month=1)
        second = model.predict_demand(household, 8, 2, month=1)

        self.assertEqual(first, second)
        self.assertEqual(model.worker.metrics["jobs_dropped"], 1)
        self.assertEqual(model.worker.pending, 1)
        print("✓ Full training queue drops jobs without affecting predictions")

    def test_worker_thread_processes_jobs(self):
        household = make_fleet()[2]
        self.model.start_training()
        try:
            self.model.predict_demand(household, 9, 1, month=2)
            deadline = time.time() + 5.0
            while self.model.worker.metrics["jobs_processed"] < 1 and time.time() < deadline:
                time.sleep(0.02)
        finally:
            self.model.stop_training()

        self.assertEqual(self.model.worker.metrics["jobs_processed"], 1)
        self.assertFalse(self.model.worker.is_running)
        print("✓ Daemon worker drains the queue and stops cleanly")


class TestTrainingWorker(unittest.TestCase):

    def test_submit_and_drain(self):
        seen = []
        worker = TrainingWorker(seen.append, maxsize=2)
        job = TrainingJob(household_id=1, kind=DEMAND, inputs=(0.0,) * 8,
                          baseline=1.0, predicted=1.0, scale=2.0)

        self.assertTrue(worker.submit(job))
        self.assertTrue(worker.submit(job))
        self.assertFalse(worker.submit(job))
        self.assertEqual(worker.drain(), 2)
        self.assertEqual(len(seen), 2)
        worker.stop()


class TestPatterns(unittest.TestCase):

    def test_base_demand_keywords(self):
        self.assertEqual(patterns.base_demand(Household(id=1, name="Community Center")), 3.5)
        self.assertEqual(patterns.base_demand(Household(id=1, name="Eco Apartments")), 2.0)
        self.assertEqual(patterns.base_demand(Household(id=1, name="Smart Home Alpha")), 1.8)
        self.assertEqual(patterns.base_demand(Household(id=1, name="Cottage")), 1.25)

    def test_household_pattern_is_clamped(self):
        household = Household(id=1, solar_capacity=10, battery_capacity=20, battery_level=90)
        self.assertEqual(patterns.household_pattern(household), 0.7)

    def test_no_sun_at_night(self):
        self.assertEqual(patterns.solar_time_multiplier(2), 0.0)
        self.assertEqual(patterns.solar_time_multiplier(21), 0.0)
        self.assertEqual(patterns.solar_time_multiplier(12), 1.0)

    def test_demand_variance_is_reproducible(self):
        household = Household(id=1004, battery_capacity=18)
        first = patterns.demand_variance(household, 18, 0)
        self.assertEqual(first, patterns.demand_variance(household, 18, 0))
        self.assertGreaterEqual(first, 1.15 * 1.1 * 0.95 * 0.9 - 1e-9)
        self.assertLessEqual(first, 1.15 * 1.1 * 0.95 * 1.1 + 1e-9)

    def test_weather_ordering(self):
        values = [
            patterns.weather_multiplier(WeatherCondition.for_condition(kind, hour=12))
            for kind in WeatherKind
        ]
        self.assertEqual(values, sorted(values, reverse=True))


if __name__ == "__main__":
    unittest.main()
