"""
Visual Indicators - Per-superposition render records.

One VisualIndicator exists per non-zero entry of an owner's QState. It
caches the amplitude purely for rendering; the render parameters below
are pure functions of that amplitude:

- rotation   = arg(amplitude)            (phase arrow)
- bar length = ceil(|amplitude| * scale) (magnitude bar)
- opacity    = 1.0 if |amplitude|^2 >= 1 else a reduced constant
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import cmath
import math

from ..engine_core.coords import GridPos, TILE_SIZE, grid_to_world

FULL_OPACITY = 1.0
DEFAULT_REDUCED_OPACITY = 0.6
OPAQUE_TOLERANCE = 1e-6


class SubIndicatorKind(Enum):
    """Child sprites of an indicator."""
    BAR_BACKGROUND = "bar_background"
    MAGNITUDE_BAR = "magnitude_bar"
    PHASE_ARROW = "phase_arrow"


@dataclass(frozen=True)
class IndicatorStyle:
    """Fixed layout of an indicator family."""
    name: str
    bar_scale: float
    bar_height: float
    bar_margin: float  # Distance of the bar from the tile's left edge
    sub_indicators: tuple[SubIndicatorKind, ...]
    reduced_opacity: float = DEFAULT_REDUCED_OPACITY

    def with_scale(self, bar_scale: float, reduced_opacity: float) -> IndicatorStyle:
        return IndicatorStyle(
            name=self.name,
            bar_scale=bar_scale,
            bar_height=self.bar_height,
            bar_margin=self.bar_margin,
            sub_indicators=self.sub_indicators,
            reduced_opacity=reduced_opacity,
        )


PLAYER_STYLE = IndicatorStyle(
    name="player",
    bar_scale=46.0,
    bar_height=4.0,
    bar_margin=9.0,
    sub_indicators=(
        SubIndicatorKind.BAR_BACKGROUND,
        SubIndicatorKind.MAGNITUDE_BAR,
        SubIndicatorKind.PHASE_ARROW,
    ),
)

DEVICE_STYLE = IndicatorStyle(
    name="device",
    bar_scale=24.0,
    bar_height=5.0,
    bar_margin=10.0,
    sub_indicators=(
        SubIndicatorKind.MAGNITUDE_BAR,
        SubIndicatorKind.PHASE_ARROW,
    ),
)


def phase_rotation(amplitude: complex) -> float:
    """Arrow rotation in radians."""
    return cmath.phase(complex(amplitude))


def bar_length(amplitude: complex, scale: float) -> int:
    """Magnitude bar length in pixels."""
    return math.ceil(abs(complex(amplitude)) * scale)


def opacity(amplitude: complex, reduced: float = DEFAULT_REDUCED_OPACITY) -> float:
    """Fully opaque only for a certain (probability one) position."""
    a = complex(amplitude)
    if a.real * a.real + a.imag * a.imag >= 1.0 - OPAQUE_TOLERANCE:
        return FULL_OPACITY
    return reduced


@dataclass(frozen=True)
class RenderParams:
    """What the rendering collaborator needs for one indicator."""
    owner_id: str
    position: GridPos
    world_x: float
    world_y: float
    rotation: float
    bar_length: int
    bar_offset_x: float  # Bar centre relative to the tile centre
    opacity: float


def compute_render_params(
    owner_id: str,
    position: GridPos,
    amplitude: complex,
    style: IndicatorStyle,
) -> RenderParams:
    """Derive every render parameter from an amplitude."""
    length = bar_length(amplitude, style.bar_scale)
    world_x, world_y = grid_to_world(position)
    return RenderParams(
        owner_id=owner_id,
        position=position,
        world_x=world_x,
        world_y=world_y,
        rotation=phase_rotation(amplitude),
        bar_length=length,
        # Left-anchored bar: half its length right of the margin
        bar_offset_x=length / 2 - TILE_SIZE / 2 + style.bar_margin,
        opacity=opacity(amplitude, style.reduced_opacity),
    )


@dataclass
class SubIndicator:
    """A child sprite of an indicator."""
    kind: SubIndicatorKind
    alive: bool = True


@dataclass
class VisualIndicator:
    """
    Render record for one superposition of an owner.

    Its lifetime is derived from the owner's state: the reconciler
    spawns and destroys it.
    """
    indicator_id: int
    owner_id: str
    position: GridPos
    amplitude: complex
    style: IndicatorStyle
    children: list[SubIndicator] = field(default_factory=list)
    alive: bool = True

    @classmethod
    def spawn(
        cls,
        indicator_id: int,
        owner_id: str,
        position: GridPos,
        amplitude: complex,
        style: IndicatorStyle,
    ) -> VisualIndicator:
        """Create an indicator with its sub-indicators."""
        return cls(
            indicator_id=indicator_id,
            owner_id=owner_id,
            position=position,
            amplitude=amplitude,
            style=style,
            children=[SubIndicator(kind=kind) for kind in style.sub_indicators],
        )

    @property
    def render_params(self) -> RenderParams:
        return compute_render_params(self.owner_id, self.position, self.amplitude, self.style)

    def set_amplitude(self, amplitude: complex) -> RenderParams:
        """Update the cached amplitude and return the new render parameters."""
        self.amplitude = amplitude
        return self.render_params

    def destroy(self) -> None:
        """Despawn the indicator and its sub-indicators."""
        for child in self.children:
            child.alive = False
        self.children.clear()
        self.alive = False
