"""Year-to-date metric projection.

Accrual metrics grow linearly from the start of the current UTC year at a constant
rate. External metrics (CO2, temperature, sea level) come from an optional reading
supplied by a data source and otherwise hold fixed fallback values.
"""

import math
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd
import structlog

from climate_clock import config
from climate_clock.errors import DataSourceUnavailable
from climate_clock.formatting import format_value
from climate_clock.timeutil import from_millis

logger = structlog.get_logger()

PER_SECOND = "second"
PER_DAY = "day"
ACCRUAL = "accrual"
EXTERNAL = "external"

_MS_PER_UNIT = {
    PER_SECOND: config.MS_PER_SECOND,
    PER_DAY: config.MS_PER_DAY,
}


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    label: str
    unit: str
    explanation: str
    source: str = ACCRUAL
    rate: float | None = None
    per: str = PER_SECOND
    fallback: float | None = None


METRIC_DEFINITIONS = (
    MetricDefinition(
        key="co2",
        label="CO₂ Emitted",
        unit="t",
        explanation="Tonnes of CO₂ emitted globally per year. Falls back to 40.8 billion tonnes when no live source answers.",
        source=EXTERNAL,
        fallback=config.FALLBACK_CO2_TONNES,
    ),
    MetricDefinition(
        key="forest_loss",
        label="Forest Lost",
        unit="ha",
        explanation="Hectares of forest lost since January 1st, at roughly 0.13 ha every second.",
        rate=config.FOREST_LOSS_HA_PER_SECOND,
        per=PER_SECOND,
    ),
    MetricDefinition(
        key="glacier_loss",
        label="Glacier Mass Lost",
        unit="t",
        explanation="Tonnes of glacier ice lost since January 1st, at roughly 9,449 t every second.",
        rate=config.GLACIER_LOSS_T_PER_SECOND,
        per=PER_SECOND,
    ),
    MetricDefinition(
        key="sea_level",
        label="Sea Level Rise",
        unit="mm",
        explanation="Current rate of global mean sea level rise in mm per year.",
        source=EXTERNAL,
        fallback=config.FALLBACK_SEA_LEVEL_MM,
    ),
    MetricDefinition(
        key="species_lost",
        label="Species Lost",
        unit="species",
        explanation="Estimated species lost since January 1st, at roughly 200 species per day.",
        rate=config.SPECIES_LOST_PER_DAY,
        per=PER_DAY,
    ),
    MetricDefinition(
        key="temperature",
        label="Global Temperature Rise",
        unit="°C",
        explanation="Global mean temperature above the pre-industrial baseline.",
        source=EXTERNAL,
        fallback=config.FALLBACK_TEMPERATURE_C,
    ),
)


def _finite_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class ExternalReading:
    """The values an external data source may supply. Wire form: {"co2", "temperature", "seaLevel"}."""

    co2: float
    temperature: float
    sea_level: float
    live: bool = True  # False for the built-in fallback constants

    @classmethod
    def fallback(cls):
        return cls(
            co2=config.FALLBACK_CO2_TONNES,
            temperature=config.FALLBACK_TEMPERATURE_C,
            sea_level=config.FALLBACK_SEA_LEVEL_MM,
            live=False,
        )

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise DataSourceUnavailable(f"expected a JSON object, got {type(payload).__name__}")
        sea_level = payload.get("seaLevel", payload.get("sea_level"))
        values = {
            "co2": payload.get("co2"),
            "temperature": payload.get("temperature"),
            "sea_level": sea_level,
        }
        for name, value in values.items():
            if not _finite_number(value):
                raise DataSourceUnavailable(f"field {name!r} is missing or not a finite number: {value!r}")
        return cls(**values)

    def is_well_formed(self):
        return all(_finite_number(v) for v in (self.co2, self.temperature, self.sea_level))


@dataclass(frozen=True)
class MetricSnapshot:
    taken_at: int
    co2: float
    forest_loss: float
    glacier_loss: float
    sea_level: float
    species_lost: float
    temperature: float
    source: str = "fallback"  # "external" when a live override reading was applied

    def values(self):
        data = asdict(self)
        del data["taken_at"], data["source"]
        return data


def elapsed_units(year_start, now, per=PER_SECOND):
    """Elapsed seconds or (fractional) days between year_start and now, never negative."""
    elapsed_ms = max(0, now - year_start)
    return elapsed_ms / _MS_PER_UNIT[per]


def _coerce_override(override):
    """Returns a well-formed ExternalReading for `override`, or None. Payload dicts are parsed."""
    if isinstance(override, dict):
        try:
            override = ExternalReading.from_payload(override)
        except DataSourceUnavailable:
            return None
    if isinstance(override, ExternalReading) and override.is_well_formed():
        return override
    return None


def project_metrics(now, year_start, defs=METRIC_DEFINITIONS, override=None):
    """
    Computes a MetricSnapshot at `now`.
    Accrual metrics: rate x elapsed units since year_start.
    External metrics: taken from `override` (an ExternalReading or its JSON payload dict)
    if it is well formed, else the definition's fallback.
    """
    reading = _coerce_override(override)
    use_override = reading is not None
    if override is not None and not use_override:
        logger.warning("Ignoring malformed external reading", reading=repr(override))

    values = {}
    for definition in defs:
        if definition.source == ACCRUAL:
            values[definition.key] = definition.rate * elapsed_units(year_start, now, definition.per)
        elif use_override:
            values[definition.key] = getattr(reading, definition.key)
        else:
            values[definition.key] = definition.fallback

    source = EXTERNAL if use_override and reading.live else "fallback"
    logger.debug("Projected metrics", now=now, source=source)
    return MetricSnapshot(
        taken_at=now,
        source=source,
        **values,
    )


def accrual_frame(year_start, now, defs=METRIC_DEFINITIONS, points=50):
    """
    Year-to-date curve for every accrual metric, in long format for plotting.
    Columns: Timestamp, Metric, Value.
    """
    grid = np.linspace(year_start, max(year_start, now), points)
    elapsed = grid - year_start
    timestamps = pd.to_datetime(grid.astype("int64"), unit="ms", utc=True)

    frames = []
    for definition in defs:
        if definition.source != ACCRUAL:
            continue
        frames.append(pd.DataFrame({
            "Timestamp": timestamps,
            "Metric": definition.label,
            "Value": definition.rate * elapsed / _MS_PER_UNIT[definition.per],
        }))
    if not frames:
        return pd.DataFrame(columns=["Timestamp", "Metric", "Value"])
    return pd.concat(frames, ignore_index=True)


def snapshot_frame(snapshot, defs=METRIC_DEFINITIONS):
    """One row per metric, ready for st.dataframe and CSV export."""
    values = snapshot.values()
    rows = []
    for definition in defs:
        value = values[definition.key]
        rows.append({
            "Metric": definition.label,
            "Value": value,
            "Unit": definition.unit,
            "Display": format_value(value),
            "Source": definition.source if definition.source == ACCRUAL else snapshot.source,
            "As Of": from_millis(snapshot.taken_at).isoformat(),
        })
    return pd.DataFrame(rows)
