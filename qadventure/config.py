"""
Engine configuration.

Values come from keyword arguments or from the environment:

    QADV_PRECISION        "single" (complex64) or "double" (complex128)
    QADV_SEED             integer seed for the measurement RNG
    QADV_LOG_LEVEL        DEBUG, INFO, WARNING, ...
    QADV_ZERO_TOLERANCE   |amplitude|^2 at or below this is pruned
    QADV_MEASURE_EPSILON  margin for the degenerate measurement branches
"""

from __future__ import annotations
from enum import Enum
from typing import Optional
import os

import numpy as np
from pydantic import BaseModel, Field, field_validator


class Precision(str, Enum):
    """Floating point width of stored amplitudes."""
    SINGLE = "single"
    DOUBLE = "double"


class EngineConfig(BaseModel):
    """Validated engine settings shared by a session."""
    precision: Precision = Precision.SINGLE
    zero_tolerance: float = Field(default=1e-12, ge=0.0, lt=1.0)
    measure_epsilon: float = Field(default=1e-9, ge=0.0, lt=0.5)
    seed: Optional[int] = None
    log_level: str = "INFO"

    # Indicator rendering
    player_bar_scale: float = Field(default=46.0, gt=0.0)
    device_bar_scale: float = Field(default=24.0, gt=0.0)
    reduced_opacity: float = Field(default=0.6, ge=0.0, le=1.0)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def dtype(self) -> type[np.complexfloating]:
        """Numpy scalar type used for amplitudes."""
        if self.precision == Precision.DOUBLE:
            return np.complex128
        return np.complex64

    @classmethod
    def from_env(cls, **overrides) -> EngineConfig:
        """Build a config from QADV_* environment variables."""
        values: dict = {}
        precision = os.getenv("QADV_PRECISION")
        if precision:
            values["precision"] = precision.lower()
        seed = os.getenv("QADV_SEED")
        if seed:
            values["seed"] = int(seed)
        log_level = os.getenv("QADV_LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level
        zero_tolerance = os.getenv("QADV_ZERO_TOLERANCE")
        if zero_tolerance:
            values["zero_tolerance"] = float(zero_tolerance)
        measure_epsilon = os.getenv("QADV_MEASURE_EPSILON")
        if measure_epsilon:
            values["measure_epsilon"] = float(measure_epsilon)
        values.update(overrides)
        return cls(**values)


DEFAULT_CONFIG = EngineConfig()
