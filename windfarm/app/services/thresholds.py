"""
Wind Farm Monitor - Threshold Evaluation

Classifies a single telemetry sample into metric violations. Pure: no I/O,
no clock, no database.
"""

from typing import List, NamedTuple

WARNING = "Warning"
CRITICAL = "Critical"


class Violation(NamedTuple):
    metric_key: str
    severity: str
    message: str


# metric_key -> label used as the message prefix
METRIC_LABELS = {
    "generatorTemp": "Generator Temp",
    "gearboxTemp": "Gearbox Temp",
    "vibration": "Vibration",
    "rotorSpeed": "Rotor Speed",
    "windSpeed": "Wind Speed",
}


def _temperature(key: str, value: float) -> List[Violation]:
    label = METRIC_LABELS[key]
    if value > 80:
        return [Violation(key, CRITICAL, f"{label} critical: {value:.1f}°C (limit 80°C)")]
    if value > 65:
        return [Violation(key, WARNING, f"{label} warning: {value:.1f}°C (limit 65°C)")]
    return []


def _vibration(value: float) -> List[Violation]:
    if value > 4.0:
        return [Violation("vibration", CRITICAL, f"Vibration critical: {value:.2f} g (limit 4.00 g)")]
    if value > 2.0:
        return [Violation("vibration", WARNING, f"Vibration warning: {value:.2f} g (limit 2.00 g)")]
    return []


def _rotor_speed(value: float) -> List[Violation]:
    if value > 23 or value < 2:
        return [Violation("rotorSpeed", CRITICAL, f"Rotor Speed critical: {value:.1f} RPM (range 2–23 RPM)")]
    if value > 20 or value < 5:
        return [Violation("rotorSpeed", WARNING, f"Rotor Speed warning: {value:.1f} RPM (range 5–20 RPM)")]
    return []


def _wind_speed(value: float) -> List[Violation]:
    if value > 25 or value < 2:
        return [Violation("windSpeed", CRITICAL, f"Wind Speed critical: {value:.1f} m/s (range 2–25 m/s)")]
    if value > 20 or value < 5:
        return [Violation("windSpeed", WARNING, f"Wind Speed warning: {value:.1f} m/s (range 5–20 m/s)")]
    return []


def evaluate_thresholds(
    running: bool,
    generator_temp: float,
    gearbox_temp: float,
    rotor_speed: float,
    vibration: float,
    wind_speed: float,
) -> List[Violation]:
    """
    Return violations in a fixed order: generator temp, gearbox temp,
    vibration, rotor speed, wind speed. Rotor and wind speed are only
    checked while the turbine reports itself as running.
    """
    results = []
    results += _temperature("generatorTemp", generator_temp)
    results += _temperature("gearboxTemp", gearbox_temp)
    results += _vibration(vibration)

    if running:
        results += _rotor_speed(rotor_speed)
        results += _wind_speed(wind_speed)

    return results


def evaluate_sample(sample) -> List[Violation]:
    """Convenience wrapper for anything shaped like a TelemetrySample."""
    return evaluate_thresholds(
        running=sample.status == "running",
        generator_temp=sample.generator_temp,
        gearbox_temp=sample.gearbox_temp,
        rotor_speed=sample.rotor_speed,
        vibration=sample.vibration,
        wind_speed=sample.wind_speed,
    )
