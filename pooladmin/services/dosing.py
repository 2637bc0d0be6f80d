from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..constants import (
    POOL_VOLUME_GAL,
    POOL_VOLUME_M3,
    REFERENCE_ALKALINITY_PURITY,
    REFERENCE_CHLORINE_PURITY,
    REFERENCE_PH_DOWN_PURITY,
)

CHLORINE_LB_PER_PPM_PER_10K_GAL = Decimal("2") / Decimal("16")
PH_DOWN_LB_PER_STEP_PER_10K_GAL = Decimal("1.0")
PH_STEP = Decimal("0.2")
ALKALINITY_STEP_PPM = Decimal("10")
ALKALINITY_KG_PER_STEP_PER_50_M3 = Decimal("1")
LB_PER_KG = Decimal("2.20462")


class DosingError(ValueError):
    pass


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _round_lb(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PoolReadings:
    ph: Decimal
    chlorine: Decimal
    alkalinity: Decimal
    target_ph: Decimal
    target_chlorine: Decimal
    target_alkalinity: Decimal


@dataclass(frozen=True)
class ReagentPurity:
    chlorine: Decimal = Decimal(REFERENCE_CHLORINE_PURITY)
    ph_down: Decimal = Decimal(REFERENCE_PH_DOWN_PURITY)
    alkalinity: Decimal = Decimal(REFERENCE_ALKALINITY_PURITY)


@dataclass(frozen=True)
class DosingResult:
    chlorine_lb: Decimal
    ph_down_lb: Decimal
    alkalinity_lb: Decimal
    chlorine_delta_ppm: Decimal
    ph_delta: Decimal
    alkalinity_delta_ppm: Decimal

    def as_reagent_map(self) -> dict[str, Decimal]:
        return {
            "chlorine": self.chlorine_lb,
            "ph_down": self.ph_down_lb,
            "alkalinity": self.alkalinity_lb,
        }


def calculate_dosage(
    readings: PoolReadings,
    purity: ReagentPurity | None = None,
    *,
    volume_gal: Any = POOL_VOLUME_GAL,
    volume_m3: Any = POOL_VOLUME_M3,
) -> DosingResult:
    purity = purity or ReagentPurity()
    for label, value in (
        ("chlorine", purity.chlorine),
        ("pH reducer", purity.ph_down),
        ("alkalinity", purity.alkalinity),
    ):
        if _as_decimal(value) <= 0:
            raise DosingError(f"{label} purity must be greater than zero")

    gallons_factor = _as_decimal(volume_gal) / Decimal("10000")
    cubic_factor = _as_decimal(volume_m3) / Decimal("50")

    chlorine_delta = max(Decimal("0"), _as_decimal(readings.target_chlorine) - _as_decimal(readings.chlorine))
    ph_delta = max(Decimal("0"), _as_decimal(readings.ph) - _as_decimal(readings.target_ph))
    alkalinity_delta = max(Decimal("0"), _as_decimal(readings.target_alkalinity) - _as_decimal(readings.alkalinity))

    chlorine_lb = (
        chlorine_delta
        * CHLORINE_LB_PER_PPM_PER_10K_GAL
        * gallons_factor
        * (Decimal(REFERENCE_CHLORINE_PURITY) / _as_decimal(purity.chlorine))
    )
    ph_down_lb = (
        (ph_delta / PH_STEP)
        * PH_DOWN_LB_PER_STEP_PER_10K_GAL
        * gallons_factor
        * (Decimal(REFERENCE_PH_DOWN_PURITY) / _as_decimal(purity.ph_down))
    )
    alkalinity_lb = (
        (alkalinity_delta / ALKALINITY_STEP_PPM)
        * ALKALINITY_KG_PER_STEP_PER_50_M3
        * cubic_factor
        * LB_PER_KG
        * (Decimal(REFERENCE_ALKALINITY_PURITY) / _as_decimal(purity.alkalinity))
    )

    return DosingResult(
        chlorine_lb=_round_lb(chlorine_lb),
        ph_down_lb=_round_lb(ph_down_lb),
        alkalinity_lb=_round_lb(alkalinity_lb),
        chlorine_delta_ppm=chlorine_delta,
        ph_delta=ph_delta,
        alkalinity_delta_ppm=alkalinity_delta,
    )
