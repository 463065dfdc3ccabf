# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field
from typing import Optional

from capvol.enums import DayCountBasis, QuoteValueType, VolConvention
from capvol.instruments.ibor_index import IborIndex, USD_LIBOR_3M, AUD_BBSW_3M, EUR_EURIBOR_6M
from capvol.term_structures.volatility_surface import GridSurfaceInterpolator


@dataclass(frozen=True)
class DirectCapletCalibrationDefinition:
    """
    Definition of a direct caplet volatility calibration.

    Parameters
    ----------
    name : str
        Name given to the calibrated surface.
    index : IborIndex
        Index underlying the quoted caps/floors.
    day_count_basis : DayCountBasis
        Day count used to measure the time to each caplet expiry.
    lambda_expiry : float
        Curvature penalty along the expiry axis (>= 0).
    lambda_strike : float
        Curvature penalty along the strike axis (>= 0).
    interpolator : GridSurfaceInterpolator
        Interpolation scheme of the surface nodes.
    shift : float, optional
        If specified the calibrated surface is shifted Black with this shift. Otherwise the surface is normal
        for normal volatility quotes and Black for Black volatility or price quotes.
    """
    name: str
    index: IborIndex
    day_count_basis: DayCountBasis
    lambda_expiry: float
    lambda_strike: float
    interpolator: GridSurfaceInterpolator = field(default_factory=GridSurfaceInterpolator)
    shift: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        if self.lambda_expiry < 0 or self.lambda_strike < 0:
            raise ValueError(f"Penalty coefficients must be non-negative, received lambda_expiry={self.lambda_expiry} "
                             f"and lambda_strike={self.lambda_strike}")

    def output_convention(self, value_type: QuoteValueType) -> VolConvention:
        if self.shift is not None:
            return VolConvention.SHIFTED_BLACK
        if value_type == QuoteValueType.NORMAL_VOLATILITY:
            return VolConvention.NORMAL
        return VolConvention.BLACK

    @property
    def output_shift(self) -> float:
        return 0.0 if self.shift is None else float(self.shift)
