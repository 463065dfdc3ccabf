# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field, replace
from typing import Optional
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.interpolate import CubicSpline

from capvol.enums import SurfaceInterpMethod, VolConvention
from capvol.utils.exceptions import SurfaceEvaluationError
from capvol.pricing_engine.black76_bachelier import shift_black76_vol, black76_sln_to_normal_vol, normal_vol_to_black76_sln


@dataclass(frozen=True)
class GridSurfaceInterpolator:
    """
    Tensor product of one-dimensional interpolators, along expiry then strike, on a rectangular node grid.

    Both schemes are linear in the node values, so the interpolated volatility is weights @ node_values and
    the weights are the exact sensitivity of the volatility to each node. Outside the node range the value
    is extrapolated flat.
    """
    expiry_interp: SurfaceInterpMethod = SurfaceInterpMethod.LINEAR
    strike_interp: SurfaceInterpMethod = SurfaceInterpMethod.LINEAR

    def __post_init__(self):
        object.__setattr__(self, 'expiry_interp', SurfaceInterpMethod.from_value(self.expiry_interp))
        object.__setattr__(self, 'strike_interp', SurfaceInterpMethod.from_value(self.strike_interp))

    @staticmethod
    def axis_weights(nodes: np.ndarray, x: np.ndarray, method: SurfaceInterpMethod) -> np.ndarray:
        """Weights of shape (len(x), len(nodes)) interpolating along one axis."""
        nodes = np.asarray(nodes, dtype=float)
        x = np.atleast_1d(np.asarray(x, dtype=float))
        n = len(nodes)

        if n == 1:
            return np.ones((len(x), 1))

        x_clipped = np.clip(x, nodes[0], nodes[-1])

        if method == SurfaceInterpMethod.NATURAL_CUBIC_SPLINE and n > 2:
            # Spline through each unit vector gives the cardinal basis functions
            spline = CubicSpline(nodes, np.eye(n), bc_type='natural', extrapolate=False)
            weights = spline(x_clipped)
            # Exact weights at the nodes
            on_node = np.searchsorted(nodes, x_clipped)
            on_node = np.minimum(on_node, n - 1)
            exact = nodes[on_node] == x_clipped
            weights[exact] = np.eye(n)[on_node[exact]]
            return weights

        idx = np.searchsorted(nodes, x_clipped, side='right') - 1
        idx = np.clip(idx, 0, n - 2)
        w = (x_clipped - nodes[idx]) / (nodes[idx + 1] - nodes[idx])
        weights = np.zeros((len(x), n))
        rows = np.arange(len(x))
        weights[rows, idx] = 1.0 - w
        weights[rows, idx + 1] += w
        return weights

    def weights(self,
                node_expiries: np.ndarray,
                node_strikes: np.ndarray,
                expiry: np.ndarray,
                strike: np.ndarray) -> np.ndarray:
        """Node weights of shape (len(expiry), n_expiries * n_strikes), row-major by expiry then strike."""
        expiry, strike = np.broadcast_arrays(np.atleast_1d(expiry).astype(float), np.atleast_1d(strike).astype(float))
        wx = self.axis_weights(node_expiries, expiry, self.expiry_interp)
        wy = self.axis_weights(node_strikes, strike, self.strike_interp)
        return (wx[:, :, None] * wy[:, None, :]).reshape(len(expiry), -1)

    def interpolate(self,
                    node_expiries: np.ndarray,
                    node_strikes: np.ndarray,
                    node_values: np.ndarray,
                    expiry: np.ndarray,
                    strike: np.ndarray) -> np.ndarray:
        return self.weights(node_expiries, node_strikes, expiry, strike) @ np.asarray(node_values, dtype=float)


@dataclass(frozen=True, eq=False)
class VolatilitySurface:
    """
    Caplet/floorlet volatility surface over (expiry in years, absolute strike).

    The node values are flattened row-major by expiry then strike: parameter(i) is the node
    (i // n_strikes, i % n_strikes).
    """
    expiries: np.ndarray
    strikes: np.ndarray
    values: np.ndarray
    interpolator: GridSurfaceInterpolator = field(default_factory=GridSurfaceInterpolator)
    convention: VolConvention = VolConvention.BLACK
    shift: float = 0.0
    name: str = ''

    def __post_init__(self):
        expiries = np.array(self.expiries, dtype=float).ravel()
        strikes = np.array(self.strikes, dtype=float).ravel()
        values = np.array(self.values, dtype=float).ravel()
        convention = VolConvention.from_value(self.convention)

        if len(expiries) == 0 or len(strikes) == 0:
            raise ValueError("'expiries' and 'strikes' must each have at least one node")
        if (np.diff(expiries) <= 0).any():
            raise ValueError(f"'expiries' must be strictly increasing: {expiries}")
        if (np.diff(strikes) <= 0).any():
            raise ValueError(f"'strikes' must be strictly increasing: {strikes}")
        if len(values) != len(expiries) * len(strikes):
            raise ValueError(f"Expected {len(expiries) * len(strikes)} node values, received {len(values)}")

        shift = 0.0 if self.shift is None else float(self.shift)
        if convention != VolConvention.SHIFTED_BLACK and shift != 0.0:
            raise ValueError(f"A shift of {shift} is only valid for the shifted Black convention")

        for array in (expiries, strikes, values):
            array.setflags(write=False)

        object.__setattr__(self, 'expiries', expiries)
        object.__setattr__(self, 'strikes', strikes)
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'convention', convention)
        object.__setattr__(self, 'shift', shift)

    @classmethod
    def flat(cls, expiries, strikes, vol: float, **kwargs) -> 'VolatilitySurface':
        return cls(expiries=expiries, strikes=strikes, values=np.full(len(expiries) * len(strikes), vol), **kwargs)

    @property
    def parameter_count(self) -> int:
        return len(self.values)

    def parameter(self, i: int) -> float:
        if not 0 <= i < self.parameter_count:
            raise IndexError(f"Parameter index {i} out of range for {self.parameter_count} nodes")
        return float(self.values[i])

    def with_parameters(self, values: np.ndarray) -> 'VolatilitySurface':
        return replace(self, values=values)

    def node_weights(self, expiry, strike) -> np.ndarray:
        """Sensitivity of volatility(expiry, strike) to each node value."""
        weights = self.interpolator.weights(self.expiries, self.strikes, expiry, strike)
        if np.ndim(expiry) == 0 and np.ndim(strike) == 0:
            return weights[0]
        return weights

    def volatility(self, expiry, strike):
        vol = self.interpolator.interpolate(self.expiries, self.strikes, self.values, expiry, strike)
        if np.ndim(expiry) == 0 and np.ndim(strike) == 0:
            return vol.item()
        return vol

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values.reshape(len(self.expiries), len(self.strikes)),
                            index=pd.Index(self.expiries, name='expiry_years'),
                            columns=pd.Index(self.strikes, name='strike'))

    def plot(self, strikes: Optional[np.ndarray]=None):
        strikes = np.linspace(self.strikes[0], self.strikes[-1], 101) if strikes is None else np.asarray(strikes)
        scale = 10000 if self.convention == VolConvention.NORMAL else 100

        fig, ax = plt.subplots()
        for expiry in self.expiries:
            ax.plot(strikes * 100, self.volatility(np.full(len(strikes), expiry), strikes) * scale,
                    label=f'{expiry:.2f}y')

        ylabel = 'normal volatility (bps)' if self.convention == VolConvention.NORMAL else 'volatility (%)'
        ax.set(xlabel='strike (%)', ylabel=ylabel, title=f'{self.name} {self.convention.display_name}'.strip())
        ax.grid()
        if len(self.expiries) <= 12:
            ax.legend()
        plt.show()


def convert_volatility(vol: float,
                       from_convention: VolConvention,
                       to_convention: VolConvention,
                       F: float,
                       tau: float,
                       K: float,
                       from_shift: float=0.0,
                       to_shift: float=0.0) -> float:
    """
    Convert a single optionlet volatility between the Black, shifted Black and normal conventions
    (equal optionlet price under both conventions).
    """
    from_convention = VolConvention.from_value(from_convention)
    to_convention = VolConvention.from_value(to_convention)
    from_shift = 0.0 if from_convention != VolConvention.SHIFTED_BLACK else from_shift
    to_shift = 0.0 if to_convention != VolConvention.SHIFTED_BLACK else to_shift

    for convention, shift in ((from_convention, from_shift), (to_convention, to_shift)):
        if convention.is_lognormal and (F + shift <= 0 or K + shift <= 0):
            raise SurfaceEvaluationError(
                f"Forward {F} and strike {K} plus shift {shift} must be positive for the {convention.display_name} convention")

    match (from_convention.is_lognormal, to_convention.is_lognormal):
        case (True, True):
            return float(shift_black76_vol(F=F, tau=tau, K=K, vol_sln=vol, from_ln_shift=from_shift, to_ln_shift=to_shift))
        case (True, False):
            return float(black76_sln_to_normal_vol(F=F, tau=tau, K=K, vol_sln=vol, ln_shift=from_shift))
        case (False, True):
            return float(normal_vol_to_black76_sln(F=F, tau=tau, K=K, vol_n=vol, ln_shift=to_shift))
        case (False, False):
            return float(vol)
