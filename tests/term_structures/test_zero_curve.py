# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pandas as pd
import pytest
from capvol.term_structures.zero_curve import ZeroCurve
from capvol.enums import CompoundingFreq, TermRate


def test_construction_from_discount_factors():

    # Test yield curve construction from discount factors
    epsilon = 1e-8
    
    df = pd.DataFrame([[pd.Timestamp(2021,9,30),1.0],
                        [pd.Timestamp(2021,10,1),0.99],
                        [pd.Timestamp(2021,10,4),0.999],
                        [pd.Timestamp(2021,10,11),0.998],
                        [pd.Timestamp(2022,1,5),0.982],
                        [pd.Timestamp(2023,1,4),0.953],
                        [pd.Timestamp(2024,1,4),0.926],
                        [pd.Timestamp(2025,1,7),0.905],
                        [pd.Timestamp(2026,1,5),0.883],
                        [pd.Timestamp(2027,1,4),0.866],
                        [pd.Timestamp(2028,1,4),0.844],
                        [pd.Timestamp(2029,1,4),0.827],
                        [pd.Timestamp(2030,1,4),0.810],
                        [pd.Timestamp(2031,1,5),0.789],
                        [pd.Timestamp(2033,1,4),0.749],
                        [pd.Timestamp(2036,1,7),0.699],
                        [pd.Timestamp(2041,1,8),0.622],
                        [pd.Timestamp(2046,1,4),0.559],
                        [pd.Timestamp(2051,1,4),0.513],
                        [pd.Timestamp(2061,1,4),0.451],
                        [pd.Timestamp(2071,1,4),0.410],
                        [pd.Timestamp(2081,1,6),0.354]],columns=['date','discount_factor'])
    
    zc = ZeroCurve(curve_date=pd.Timestamp(2021,9,30),pillar_df=df, interp_method='linear_on_ln_discount')
    for i,row in df.iterrows():
        assert abs(row['discount_factor'] - zc.get_discount_factors(row['date'])[0]) < epsilon


def test_construction_from_zero_rates():
    epsilon = 1e-8

    # Construct zero curve term structure
    df = pd.DataFrame([[pd.Timestamp(2022,1,1), 0.05],
                       [pd.Timestamp(2023,1,1), 0.05],
                       [pd.Timestamp(2024,1,1), 0.05],
                       [pd.Timestamp(2025,1,1), 0.05]],columns=['date','zero_rate'])
    zc = ZeroCurve(curve_date=pd.Timestamp(2021, 12, 31),pillar_df=df, compounding_freq=CompoundingFreq.CONTINUOUS, interp_method='linear_on_ln_discount')

    # Test zero rate
    date = pd.Timestamp(2022, 12, 31)
    simple      = zc.get_zero_rates(CompoundingFreq.SIMPLE, dates=date)
    continuous  = zc.get_zero_rates(CompoundingFreq.CONTINUOUS, dates=date)
    monthly     = zc.get_zero_rates(CompoundingFreq.MONTHLY, dates=date)
    quarterly   = zc.get_zero_rates(CompoundingFreq.QUARTERLY, dates=date)
    semi_annual = zc.get_zero_rates(CompoundingFreq.SEMIANNUAL, dates=date)
    annual      = zc.get_zero_rates(CompoundingFreq.ANNUAL, dates=date)

    assert abs(simple[0]      - 0.05127109637602412) < epsilon
    assert abs(continuous[0]  - 0.05) < epsilon
    assert abs(monthly[0]     - 0.05010431149342143) < epsilon
    assert abs(quarterly[0]   - 0.05031380616253766) < epsilon
    assert abs(semi_annual[0] - 0.05063024104885771) < epsilon
    assert abs(annual[0]      - 0.05127109637602412) < epsilon

    # Test forward rates
    d1 = pd.Series([pd.Timestamp(2022,1,15)])
    d2 = pd.Series([pd.Timestamp(2023,1,15)])
    fwd_rate = zc.get_forward_rates(d1,d2, TermRate.SIMPLE)
    assert abs(fwd_rate[0] - simple[0]) < epsilon

    fwd_rate = zc.get_forward_rates(d1,d2, TermRate.CONTINUOUS)
    assert abs(fwd_rate[0] - 0.05) < epsilon

    # Flat continuously compounded zero rate beyond the last pillar
    assert abs(zc.get_zero_rates(CompoundingFreq.CONTINUOUS, years=10.0)[0] - 0.05) < epsilon

    # Test zero curve construction from zero rates
    df = pd.DataFrame([[pd.Timestamp(2022,1,1), 0.0033254],
                       [pd.Timestamp(2022,1,4), 0.0033946],
                       [pd.Timestamp(2022,1,11),0.0042867],
                       [pd.Timestamp(2022,4,5), 0.0096205]],columns=['date','zero_rate'])
    zc = ZeroCurve(curve_date=pd.Timestamp(2021,12,31),pillar_df=df, compounding_freq=CompoundingFreq.ANNUAL, interp_method='linear_on_ln_discount')

    for i,row in df.iterrows():
        assert abs(row['zero_rate'] - zc.get_zero_rates(CompoundingFreq.ANNUAL, row['date'])[0]) < epsilon


def test_construction_from_tenors():
    curve_date = pd.Timestamp(2024, 6, 28)
    df = pd.DataFrame({'tenor': ['6m', '1y', '2y', '5y', '10y'],
                       'zero_rate': [0.025, 0.026, 0.028, 0.031, 0.033]})
    zc = ZeroCurve(curve_date=curve_date, pillar_df=df, compounding_freq='continuous')

    assert zc.pillar_df['tenor'].to_list() == ['', '6m', '1y', '2y', '5y', '10y']
    assert np.allclose(zc.get_zero_rates(CompoundingFreq.CONTINUOUS, years=zc.pillar_df['years'].values[1:]),
                       df['zero_rate'].values, atol=1e-12)

    cubic = ZeroCurve(curve_date=curve_date, pillar_df=df, compounding_freq='continuous', interp_method='cubic_spline_on_ln_discount')
    assert np.allclose(cubic.get_discount_factors(years=zc.pillar_df['years'].values),
                       zc.pillar_df['discount_factor'].values, atol=1e-12)


def test_flat_shift():
    df = pd.DataFrame({'years': [0.5, 1.0, 2.0, 5.0], 'discount_factor': [0.99, 0.975, 0.95, 0.87]})
    zc = ZeroCurve(curve_date=pd.Timestamp(2024, 1, 2), pillar_df=df)
    shifted = zc.flat_shift(basis_points=10)

    years = np.array([0.25, 0.75, 1.5, 3.0, 7.0])
    assert np.allclose(shifted.get_zero_rates(CompoundingFreq.CONTINUOUS, years=years),
                       zc.get_zero_rates(CompoundingFreq.CONTINUOUS, years=years) + 0.001, atol=1e-12)


def test_invalid_pillars():
    curve_date = pd.Timestamp(2024, 1, 2)
    with pytest.raises(ValueError):
        ZeroCurve(curve_date=curve_date, pillar_df=pd.DataFrame({'years': [1.0], 'zero_rate': [0.02]}))
    with pytest.raises(ValueError):
        ZeroCurve(curve_date=curve_date, pillar_df=pd.DataFrame({'years': [1.0], 'tenor': ['1y'], 'discount_factor': [0.98]}))
    with pytest.raises(ValueError):
        ZeroCurve(curve_date=curve_date, pillar_df=pd.DataFrame({'years': [1.0, 2.0], 'discount_factor': [0.98, -0.1]}))


if __name__ == "__main__":
    test_construction_from_discount_factors()
    test_construction_from_zero_rates()
    test_construction_from_tenors()
    test_flat_shift()
    test_invalid_pillars()
