"""Analysis helpers over simulation readings, trades and network snapshots."""

from dataclasses import asdict
from typing import List

import pandas as pd

from .models import EnergyReading, EnergyTrade, NetworkState

READING_COLUMNS = [
    "id", "household_id", "solar_generation", "energy_consumption",
    "battery_level", "weather_condition", "temperature", "timestamp",
]
TRADE_COLUMNS = [
    "id", "seller_household_id", "buyer_household_id", "energy_amount",
    "price_per_kwh", "trade_type", "status", "created_at", "completed_at",
]


def readings_frame(readings: List[EnergyReading]) -> pd.DataFrame:
    """One row per reading, indexed by timestamp."""
    frame = pd.DataFrame([asdict(r) for r in readings], columns=READING_COLUMNS)
    frame["net_energy"] = frame["solar_generation"] - frame["energy_consumption"]
    return frame.set_index("timestamp")


def trades_frame(trades: List[EnergyTrade]) -> pd.DataFrame:
    frame = pd.DataFrame([asdict(t) for t in trades], columns=TRADE_COLUMNS)
    frame["value"] = frame["energy_amount"] * frame["price_per_kwh"]
    return frame.set_index("id")


def network_frame(state: NetworkState) -> pd.DataFrame:
    """Per-household forecast and support flags for one snapshot."""
    rows = []
    for h in state.households:
        rows.append({
            "household_id": h.id,
            "name": h.name,
            "is_online": h.is_online,
            "predicted_generation": h.predicted_generation,
            "predicted_demand": h.predicted_demand,
            "net_balance": h.net_balance,
            "battery_kwh": h.battery_kwh,
            "battery_ratio": h.battery_ratio,
            "can_support": h.can_support,
            "needs_support": h.needs_support,
        })
    return pd.DataFrame(rows, columns=[
        "household_id", "name", "is_online", "predicted_generation",
        "predicted_demand", "net_balance", "battery_kwh", "battery_ratio",
        "can_support", "needs_support",
    ]).set_index("household_id")


def trade_summary(trades: List[EnergyTrade]) -> pd.DataFrame:
    """
    Energy sold and bought per household.

    Columns: sold_kwh, bought_kwh, revenue, cost, net_kwh.
    """
    frame = trades_frame(trades)

    sold = frame.groupby("seller_household_id").agg(
        sold_kwh=("energy_amount", "sum"), revenue=("value", "sum")
    )
    bought = frame.groupby("buyer_household_id").agg(
        bought_kwh=("energy_amount", "sum"), cost=("value", "sum")
    )
    sold.index.name = bought.index.name = "household_id"

    summary = sold.join(bought, how="outer").fillna(0.0)
    summary["net_kwh"] = summary["sold_kwh"] - summary["bought_kwh"]
    return summary[["sold_kwh", "bought_kwh", "revenue", "cost", "net_kwh"]]


def price_summary(trades: List[EnergyTrade]) -> pd.DataFrame:
    """Mean/min/max clearing price and volume per hour of day."""
    frame = trades_frame(trades)
    frame["hour"] = pd.to_datetime(frame["created_at"]).dt.hour
    return frame.groupby("hour").agg(
        mean_price=("price_per_kwh", "mean"),
        min_price=("price_per_kwh", "min"),
        max_price=("price_per_kwh", "max"),
        volume_kwh=("energy_amount", "sum"),
        trades=("energy_amount", "count"),
    )
