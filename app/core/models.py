from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, NamedTuple, Optional, Sequence, Tuple

from .errors import ConfigError


class Candle(NamedTuple):
    time: float
    open: float
    high: float
    low: float
    close: float

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> 'Candle':
        # Binance sends prices as strings; extra columns (volume, close time...) are dropped.
        if len(row) < 5:
            raise ValueError(f'Candle row needs 5 values, got {len(row)}')
        return cls(float(row[0]), float(row[1]), float(row[2]), float(row[3]), float(row[4]))


@dataclass(frozen=True)
class Margin:
    top: float = 30
    left: float = 30
    bottom: float = 30
    right: float = 30

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> 'Margin':
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f'Unknown margin keys: {sorted(unknown)}')
        try:
            return cls(**{k: float(v) for k, v in values.items() if v is not None})
        except (TypeError, ValueError) as exc:
            raise ConfigError(f'Invalid margin: {exc}') from exc


# Option names accepted by PlotConfig.from_options, camelCase aliases included.
_OPTION_ALIASES: Dict[str, str] = {
    'width': 'width',
    'height': 'height',
    'margin': 'margin',
    'axisLabelWidth': 'axis_label_width',
    'axis_label_width': 'axis_label_width',
    'yAxisWidth': 'axis_label_width',
    'displayAmount': 'display_amount',
    'display_amount': 'display_amount',
}


@dataclass(frozen=True)
class PlotConfig:
    width: int = 800
    height: int = 600
    margin: Margin = field(default_factory=Margin)
    axis_label_width: float = 60
    display_amount: int = 100

    tick_count: int = 10
    tick_width: float = 8
    tick_label_gap: float = 2
    label_precision: int = 2
    label_font_family: str = 'sans-serif'
    label_font_px: int = 14
    axis_line_width: float = 2
    # Right-side padding so the newest candle does not touch the price axis.
    time_axis_offset: float = 20
    min_box_width: float = 4
    box_gap: float = 2
    wick_width: float = 1
    frame_interval_ms: int = 16

    background_color: str = '#14151A'
    axis_color: str = '#26292F'
    label_color: str = '#505760'
    bullish_color: str = '#5EBA89'
    bearish_color: str = '#CE3D4E'

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f'Canvas size must be positive, got {self.width}x{self.height}')
        if self.axis_label_width < 0:
            raise ConfigError('axis_label_width must not be negative')
        if self.tick_count < 1:
            raise ConfigError('tick_count must be at least 1')
        if self.plot_width <= 0 or self.plot_height <= 0:
            raise ConfigError(
                f'Margins and axis column leave no plot area: '
                f'plot_width={self.plot_width}, plot_height={self.plot_height}'
            )

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> 'PlotConfig':
        """
        Build a config from chart options.

        Recognized keys: width, height, margin, axisLabelWidth, displayAmount
        (snake_case spellings work too). Missing or falsy values keep the default;
        margin is merged key by key over the default margins.
        """
        kwargs: Dict[str, Any] = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key)
            if name is None:
                raise ConfigError(f'Unknown chart option: {key}')
            if not value:
                continue
            if name == 'margin':
                if not isinstance(value, Mapping):
                    raise ConfigError('margin must be a mapping of top/left/bottom/right')
                kwargs[name] = Margin.from_mapping(value)
            elif name in ('width', 'height', 'display_amount'):
                kwargs[name] = _as_int(name, value)
            else:
                kwargs[name] = _as_float(name, value)
        config = cls(**kwargs)
        return replace(config, **overrides) if overrides else config

    @property
    def axis_x(self) -> float:
        return self.width - self.margin.right - self.axis_label_width

    @property
    def axis_length(self) -> float:
        return self.width - self.margin.left - self.margin.right - self.axis_label_width

    @property
    def plot_width(self) -> float:
        return self.axis_length - self.time_axis_offset

    @property
    def plot_height(self) -> float:
        return self.height - self.margin.top - self.margin.bottom


@dataclass(frozen=True)
class VisibleWindow:
    candles: Tuple[Candle, ...] = ()
    x_min: float = math.inf
    x_max: float = -math.inf
    y_min: float = math.inf
    y_max: float = -math.inf

    @property
    def count(self) -> int:
        return len(self.candles)

    @property
    def is_empty(self) -> bool:
        return not self.candles


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'{name} must be an integer, got {value!r}') from exc


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'{name} must be a number, got {value!r}') from exc
