# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass
from typing import Optional
import logging
import time
import warnings
import numpy as np
import pandas as pd

from capvol.enums import QuoteValueType, StrikeType, VolConvention
from capvol.calibration.definition import DirectCapletCalibrationDefinition
from capvol.calibration.penalty import penalty_matrix
from capvol.calibration.pricing_adapter import CapFloorPricer
from capvol.calibration.raw_option_data import RawOptionData
from capvol.calibration.residuals import ResidualAssembler
from capvol.calibration.solver import LevenbergMarquardtSolver, SolverSettings, SolverStatus
from capvol.instruments.capfloor import CapletStrip
from capvol.term_structures.volatility_surface import VolatilitySurface, convert_volatility
from capvol.term_structures.zero_curve import ZeroCurve
from capvol.utils import settings
from capvol.utils.exceptions import (CalibrationDidNotConverge, InvalidInputShape, NonPositiveUncertainty,
                                     SurfaceEvaluationError)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CalibrationResult:
    """
    Attributes
    ----------
    volatilities : VolatilitySurface
        Calibrated caplet volatility surface.
    chi_square : float
        Sum of the squared weighted quote residuals (penalty residuals excluded).
    iterations : int
        Number of solver iterations (trial steps).
    converged : bool
    sse_history : tuple
        Total sum of squares at the initial guess and after each accepted step.
    residuals : pd.DataFrame
        One row per usable quote: tenor, quoted strike, absolute strike 'K', 'cp', 'market_value', 'model_value',
        'error' (in price units) and the weighted 'residual'.
    """
    volatilities: VolatilitySurface
    chi_square: float
    iterations: int
    converged: bool
    sse_history: tuple
    residuals: pd.DataFrame


class DirectCapletVolatilityCalibrator:
    """
    Calibrates a caplet volatility surface, defined by its node values on a (caplet expiry, strike) grid, directly
    to cap/floor quotes by penalised least squares.
    """

    def __init__(self, solver_settings: Optional[SolverSettings]=None, max_workers: Optional[int]=None):
        self.solver = LevenbergMarquardtSolver(solver_settings)
        self.max_workers = max_workers

    def calibrate(self,
                  definition: DirectCapletCalibrationDefinition,
                  valuation_date: pd.Timestamp,
                  raw_data: RawOptionData,
                  zero_curve: ZeroCurve) -> CalibrationResult:
        t1 = time.time()

        mask = raw_data.available_mask()
        if not mask.any():
            raise InvalidInputShape("No usable quotes: every quote or its error is missing")
        if (raw_data.errors[mask] <= 0).any():
            raise NonPositiveUncertainty("The error of every usable quote must be positive")

        # Caps up to the longest tenor with a usable quote
        longest = int(np.nonzero(mask.any(axis=1))[0][-1])
        strip = CapletStrip(valuation_date=valuation_date,
                            index=definition.index,
                            tenors=list(raw_data.expiries[:longest + 1]),
                            zero_curve=zero_curve,
                            day_count_basis=definition.day_count_basis)

        node_expiries = strip.caplets(longest)['expiry_years'].values
        match raw_data.strike_type:
            case StrikeType.STRIKE:
                node_strikes = raw_data.strikes
            case StrikeType.SIMPLE_MONEYNESS:
                node_strikes = strip.atm_forward(longest) + raw_data.strikes

        pricer = CapFloorPricer.from_raw_data(strip, raw_data)
        market_values, market_errors = pricer.market_values(raw_data)
        if (market_errors <= 0).any():
            raise NonPositiveUncertainty("A volatility quote has a zero vega, its error in price units is not positive")

        convention = definition.output_convention(raw_data.value_type)
        shift = definition.output_shift
        vol0 = self._initial_volatility(raw_data, strip, pricer, convention, shift)

        surface_template = VolatilitySurface.flat(expiries=node_expiries,
                                                  strikes=node_strikes,
                                                  vol=vol0,
                                                  interpolator=definition.interpolator,
                                                  convention=convention,
                                                  shift=shift,
                                                  name=definition.name)
        penalty = penalty_matrix(node_expiries, node_strikes, definition.lambda_expiry, definition.lambda_strike)
        assembler = ResidualAssembler(pricer=pricer,
                                      market_values=market_values,
                                      market_errors=market_errors,
                                      penalty=penalty,
                                      surface_template=surface_template,
                                      max_workers=self.max_workers)

        logger.info(f"Calibrating '{definition.name}': {pricer.nb_quotes} quotes, "
                    f"{len(node_expiries)}x{len(node_strikes)} nodes, {penalty.shape[0]} penalty rows, "
                    f"{convention.display_name} initial volatility {vol0:.6g}")

        state = self.solver.solve(assembler, surface_template.values)
        t2 = time.time()

        if state.status != SolverStatus.CONVERGED:
            raise CalibrationDidNotConverge(f"Caplet volatility calibration '{definition.name}' did not converge: {state.message}",
                                            sse=state.sse,
                                            chi_square=state.data_sse,
                                            iterations=state.iteration,
                                            reason=state.message)

        surface = surface_template.with_parameters(state.x)
        model_values = pricer.price(surface)

        residual_df = pricer.quote_df[['tenor', 'K', 'cp']].copy()
        residual_df.insert(loc=1, column='strike', value=raw_data.strikes[pricer.quote_df['col'].values])
        residual_df['market_value'] = market_values
        residual_df['model_value'] = model_values
        residual_df['error'] = market_errors
        residual_df['residual'] = (model_values - market_values) / market_errors

        logger.info(f"Calibrated '{definition.name}' in {round(t2 - t1, 2)} seconds, {state.iteration} iterations, "
                    f"chi-square {state.data_sse:.6e}")

        return CalibrationResult(volatilities=surface,
                                 chi_square=state.data_sse,
                                 iterations=state.iteration,
                                 converged=True,
                                 sse_history=tuple(state.sse_history),
                                 residuals=residual_df)

    @staticmethod
    def _initial_volatility(raw_data: RawOptionData,
                            strip: CapletStrip,
                            pricer: CapFloorPricer,
                            convention: VolConvention,
                            shift: float) -> float:
        """Volatility of the first usable quote in the output convention, used for every node of the initial surface."""
        quote = pricer.quote_df.iloc[0]
        row, K, F = int(quote['row']), quote['K'], quote['atm_forward']
        value = raw_data.data[row, int(quote['col'])]
        tau = strip.cap_df.loc[row, 'last_caplet_expiry_years']

        try:
            match raw_data.value_type:
                case QuoteValueType.BLACK_VOLATILITY:
                    from_convention = VolConvention.SHIFTED_BLACK if raw_data.quote_shift != 0 else VolConvention.BLACK
                    vol = convert_volatility(value, from_convention, convention, F=F, tau=tau, K=K,
                                             from_shift=raw_data.quote_shift, to_shift=shift)
                case QuoteValueType.NORMAL_VOLATILITY:
                    vol = convert_volatility(value, VolConvention.NORMAL, convention, F=F, tau=tau, K=K, to_shift=shift)
                case QuoteValueType.PRICE:
                    capfloor = strip.capfloor(row, K=K, cp=int(quote['cp']))
                    vol = capfloor.implied_volatility(price=value, convention=convention, shift=shift)
        except SurfaceEvaluationError:
            raise
        except (ValueError, RuntimeError) as e:
            logger.debug(f"Initial volatility conversion failed: {e}")
            vol = np.nan

        if not np.isfinite(vol) or vol <= 0:
            vol = settings.DEFAULT_INITIAL_VOL_NORMAL if convention == VolConvention.NORMAL else settings.DEFAULT_INITIAL_VOL_BLACK
            warnings.warn(f"The first quote could not be converted to a {convention.display_name} volatility, "
                          f"the initial surface is flat at the default of {vol}")
        return float(vol)


def calibrate(definition: DirectCapletCalibrationDefinition,
              valuation_date: pd.Timestamp,
              raw_data: RawOptionData,
              zero_curve: ZeroCurve) -> CalibrationResult:
    """Calibrate with the default solver settings."""
    return DirectCapletVolatilityCalibrator().calibrate(definition, valuation_date, raw_data, zero_curve)
