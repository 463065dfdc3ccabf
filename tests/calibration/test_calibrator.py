# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pandas as pd
import pytest
from market_data import VALUATION_DATE, TENORS, STRIKES, BLACK_SMILE
from capvol.enums import VolConvention
from capvol.calibration import (CapFloorPricer, DirectCapletVolatilityCalibrator, RawOptionData, SolverSettings,
                                calibrate)
from capvol.term_structures.volatility_surface import GridSurfaceInterpolator
from capvol.utils.exceptions import (CalibrationDidNotConverge, InvalidInputShape, NonPositiveUncertainty,
                                     SurfaceEvaluationError)


def test_flat_black_recovery(make_definition, zero_curve):
    raw = RawOptionData(expiries=TENORS, strikes=STRIKES, data=np.full((4, 5), 0.5), value_type='black_volatility',
                        errors=np.full((4, 5), 1e-3))
    result = calibrate(make_definition(0.01, 0.01), VALUATION_DATE, raw, zero_curve)

    surface = result.volatilities
    assert result.converged
    assert surface.convention == VolConvention.BLACK
    assert surface.name == 'TEST-3M-CAPLET'
    assert surface.to_frame().shape == (19, 5)
    assert np.abs(surface.values - 0.5).max() < 1e-11
    assert result.chi_square < 1e-12


def test_flat_normal_recovery(make_definition, zero_curve):
    raw = RawOptionData(expiries=TENORS, strikes=STRIKES, data=np.full((4, 5), 0.008), value_type='normal_volatility',
                        errors=np.full((4, 5), 1e-4))
    result = calibrate(make_definition(0.01, 0.01), VALUATION_DATE, raw, zero_curve)

    assert result.volatilities.convention == VolConvention.NORMAL
    assert np.abs(result.volatilities.values - 0.008).max() < 1e-12


def test_flat_recovery_single_quote(make_definition, zero_curve):
    # One cap quote pins the level but not the expiry tilt of the 7 nodes
    raw = RawOptionData(expiries=('2y',), strikes=[0.03], data=[[0.25]], value_type='black_volatility', errors=[[1e-4]])
    result = calibrate(make_definition(0.07, 0.07), VALUATION_DATE, raw, zero_curve)

    assert result.converged
    assert result.volatilities.values.shape == (7,)
    assert np.abs(result.volatilities.values - 0.25).max() < 1e-11


def test_flat_shifted_black_recovery(make_definition, zero_curve):
    raw = RawOptionData(expiries=TENORS, strikes=STRIKES, data=np.full((4, 5), 0.3), value_type='black_volatility',
                        errors=np.full((4, 5), 1e-3), quote_shift=0.02)
    result = calibrate(make_definition(0.01, 0.01, shift=0.02), VALUATION_DATE, raw, zero_curve)

    surface = result.volatilities
    assert surface.convention == VolConvention.SHIFTED_BLACK
    assert surface.shift == 0.02
    assert np.abs(surface.values - 0.3).max() < 1e-11


def test_flat_recovery_from_prices(make_definition, zero_curve, strip):
    # Cap/floor prices at a flat Black volatility of 25%
    strikes = STRIKES[1:4]
    prices = np.array([[strip.capfloor(row, K=K).price(0.25, VolConvention.BLACK) for K in strikes]
                       for row in range(len(TENORS))])
    raw = RawOptionData(expiries=TENORS, strikes=strikes, data=prices, value_type='price', errors=np.full(prices.shape, 1e-7))
    result = calibrate(make_definition(0.01, 0.01), VALUATION_DATE, raw, zero_curve)

    assert result.volatilities.convention == VolConvention.BLACK
    assert np.abs(result.volatilities.values - 0.25).max() < 1e-8


def test_flat_recovery_moneyness_quotes_with_splines(make_definition, zero_curve):
    df = pd.DataFrame({'tenor': list(TENORS),
                       '-100bps': [0.009] * 4,
                       '-50bps': [0.009] * 4,
                       'ATM': [0.009] * 4,
                       '+50bps': [0.009] * 4,
                       '+100bps': [0.009] * 4})
    raw = RawOptionData.from_dataframe(df, value_type='normal_volatility', errors=1e-4)
    interpolator = GridSurfaceInterpolator('natural_cubic_spline', 'natural_cubic_spline')
    result = calibrate(make_definition(0.01, 0.01, interpolator=interpolator), VALUATION_DATE, raw, zero_curve)

    assert np.abs(result.volatilities.values - 0.009).max() < 1e-12
    # Strike nodes are the moneyness offsets around the ATM forward of the longest cap
    assert np.allclose(np.diff(result.volatilities.strikes), 0.005, atol=1e-14)
    assert result.residuals['strike'].to_list()[:5] == [-0.01, -0.005, 0.0, 0.005, 0.01]


def test_smile_repricing(make_definition, zero_curve, black_smile_data):
    result = calibrate(make_definition(0.07, 0.07), VALUATION_DATE, black_smile_data, zero_curve)
    df = result.residuals

    assert result.converged
    assert len(df) == 20
    assert df.columns.to_list() == ['tenor', 'strike', 'K', 'cp', 'market_value', 'model_value', 'error', 'residual']
    assert (np.abs(df['model_value'] / df['market_value'] - 1) < 1e-3).all()
    assert result.chi_square == pytest.approx((df['residual'] ** 2).sum(), rel=1e-6, abs=1e-12)

    # The caplet smile is not flat
    assert result.volatilities.values.max() - result.volatilities.values.min() > 0.05

    # Total sum of squares is non-increasing over the accepted steps
    history = np.array(result.sse_history)
    assert len(history) >= 2
    assert (np.diff(history) <= 0).all()
    assert 0 < result.iterations <= SolverSettings().max_iterations


def test_over_smoothing_converges(make_definition, zero_curve, black_smile_data):
    result = calibrate(make_definition(1e4, 1e4), VALUATION_DATE, black_smile_data, zero_curve)

    assert result.converged
    assert (np.diff(np.array(result.sse_history)) <= 0).all()
    # The penalty dominates, so the smile is no longer repriced
    assert result.chi_square > 1.0


def test_normal_quotes_to_shifted_black(make_definition, zero_curve, strip):
    raw = RawOptionData(expiries=TENORS, strikes=STRIKES, data=np.full((4, 5), 0.008), value_type='normal_volatility',
                        errors=np.full((4, 5), 1e-5))
    result = calibrate(make_definition(0.01, 0.01, shift=0.02), VALUATION_DATE, raw, zero_curve)

    surface = result.volatilities
    assert surface.convention == VolConvention.SHIFTED_BLACK
    assert surface.shift == 0.02

    # The shifted Black surface reprices the normal volatility quotes
    pricer = CapFloorPricer.from_raw_data(strip, raw)
    model_values = pricer.price(surface)
    for quote_nb, quote in pricer.quote_df.iterrows():
        normal_price = strip.capfloor(int(quote['row']), K=quote['K'], cp=int(quote['cp'])).price(0.008, VolConvention.NORMAL)
        assert abs(model_values[quote_nb] / normal_price - 1) < 1e-3


def test_missing_quotes_are_excluded(make_definition, zero_curve):
    data = BLACK_SMILE.copy()
    errors = np.full(data.shape, 1e-5)
    definition = make_definition(0.07, 0.07)

    data[1, 2] = np.nan
    result = calibrate(definition, VALUATION_DATE, RawOptionData(TENORS, STRIKES, data, 'black_volatility', errors), zero_curve)

    # Missing through the error, with an outlier value
    data[1, 2] = 0.9
    errors[1, 2] = np.nan
    result_2 = calibrate(definition, VALUATION_DATE, RawOptionData(TENORS, STRIKES, data, 'black_volatility', errors), zero_curve)

    assert len(result.residuals) == 19
    assert not ((result.residuals['tenor'] == '2y') & (result.residuals['strike'] == 0.03)).any()
    assert np.allclose(result.volatilities.values, result_2.volatilities.values, rtol=0, atol=1e-15)
    assert result.chi_square == pytest.approx(result_2.chi_square, rel=1e-12, abs=1e-18)


def test_missing_longest_tenor(make_definition, zero_curve, strip):
    data = BLACK_SMILE.copy()
    data[-1] = np.nan
    raw = RawOptionData(TENORS, STRIKES, data, 'black_volatility', np.full(data.shape, 1e-5))
    result = calibrate(make_definition(0.07, 0.07), VALUATION_DATE, raw, zero_curve)

    # Nodes at the caplet expiries of the longest quoted cap
    assert len(result.volatilities.expiries) == strip.cap_df['nb_caplets'].iloc[-2]
    assert set(result.residuals['tenor']) == set(TENORS[:-1])


def test_degenerate_problem_fails(make_definition, zero_curve, black_smile_data):
    # 20 quotes for 95 nodes and no penalty
    with pytest.raises(CalibrationDidNotConverge) as exc_info:
        calibrate(make_definition(0.0, 0.0), VALUATION_DATE, black_smile_data, zero_curve)
    assert 'rank' in exc_info.value.reason
    assert exc_info.value.iterations == 0
    assert exc_info.value.sse > 0
    assert exc_info.value.chi_square == pytest.approx(exc_info.value.sse, rel=1e-12)


def test_iteration_ceiling_fails(make_definition, zero_curve, black_smile_data):
    calibrator = DirectCapletVolatilityCalibrator(solver_settings=SolverSettings(max_iterations=1))
    with pytest.raises(CalibrationDidNotConverge) as exc_info:
        calibrator.calibrate(make_definition(0.07, 0.07), VALUATION_DATE, black_smile_data, zero_curve)
    assert exc_info.value.iterations == 1
    assert 'iteration ceiling' in exc_info.value.reason


def test_parallel_pricing(make_definition, zero_curve, black_smile_data):
    definition = make_definition(0.07, 0.07)
    sequential = DirectCapletVolatilityCalibrator().calibrate(definition, VALUATION_DATE, black_smile_data, zero_curve)
    parallel = DirectCapletVolatilityCalibrator(max_workers=4).calibrate(definition, VALUATION_DATE, black_smile_data, zero_curve)
    assert np.allclose(parallel.volatilities.values, sequential.volatilities.values, rtol=0, atol=1e-12)


def test_invalid_inputs(make_definition, zero_curve):
    definition = make_definition()

    raw = RawOptionData(TENORS, STRIKES, np.full((4, 5), np.nan), 'black_volatility')
    with pytest.raises(InvalidInputShape):
        calibrate(definition, VALUATION_DATE, raw, zero_curve)

    errors = np.full((4, 5), 1e-4)
    errors[2, 3] = 0.0
    raw = RawOptionData(TENORS, STRIKES, BLACK_SMILE, 'black_volatility', errors)
    with pytest.raises(NonPositiveUncertainty):
        calibrate(definition, VALUATION_DATE, raw, zero_curve)

    # A zero error is allowed on a missing quote
    data = BLACK_SMILE.copy()
    data[2, 3] = np.nan
    raw = RawOptionData(TENORS, STRIKES, data, 'black_volatility', errors)
    assert calibrate(make_definition(0.07, 0.07), VALUATION_DATE, raw, zero_curve).converged

    # Negative strike under the Black convention
    raw = RawOptionData(TENORS[:2], [-0.005, 0.01], np.full((2, 2), 0.3), 'black_volatility')
    with pytest.raises(SurfaceEvaluationError):
        calibrate(definition, VALUATION_DATE, raw, zero_curve)

    with pytest.raises(ValueError):
        make_definition(-0.1, 0.0)


def test_initial_volatility(zero_curve, strip, monkeypatch):
    raw = RawOptionData(TENORS, [-0.03, 0.0], np.full((4, 2), 0.008), 'normal_volatility', strike_type='simple_moneyness')
    pricer = CapFloorPricer.from_raw_data(strip, raw)

    vol = DirectCapletVolatilityCalibrator._initial_volatility(raw, strip, pricer, VolConvention.NORMAL, 0.0)
    assert vol == 0.008

    # ATM - 3% is a negative strike, which has no Black volatility
    with pytest.raises(SurfaceEvaluationError):
        DirectCapletVolatilityCalibrator._initial_volatility(raw, strip, pricer, VolConvention.BLACK, 0.0)

    # A failed implied volatility solve falls back to the default
    def failed_solve(*args, **kwargs):
        raise RuntimeError('Optimisation to solve log-normal volatility did not converge.')

    monkeypatch.setattr('capvol.calibration.calibrator.convert_volatility', failed_solve)
    with pytest.warns(UserWarning):
        vol = DirectCapletVolatilityCalibrator._initial_volatility(raw, strip, pricer, VolConvention.BLACK, 0.0)
    assert vol == 0.2
    with pytest.warns(UserWarning):
        vol = DirectCapletVolatilityCalibrator._initial_volatility(raw, strip, pricer, VolConvention.NORMAL, 0.0)
    assert vol == 0.01


if __name__ == "__main__":
    pytest.main([__file__])
