# -*- coding: utf-8 -*-
# Fixtures shared by the calibration tests.

import numpy as np
import pandas as pd
import pytest
from market_data import VALUATION_DATE, TENORS, BLACK_SMILE, STRIKES
from capvol.calibration import DirectCapletCalibrationDefinition, RawOptionData
from capvol.instruments import IborIndex, CapletStrip
from capvol.term_structures.zero_curve import ZeroCurve


@pytest.fixture(scope='module')
def zero_curve():
    return ZeroCurve(curve_date=VALUATION_DATE,
                     pillar_df=pd.DataFrame({'tenor': ['1y', '2y', '3y', '5y', '7y', '10y'],
                                             'zero_rate': [0.020, 0.022, 0.024, 0.026, 0.027, 0.028]}),
                     compounding_freq='continuous')


@pytest.fixture(scope='module')
def index():
    return IborIndex(name='TEST-3M', tenor='quarterly', day_count_basis='act/360', settlement_delay=2)


@pytest.fixture(scope='module')
def strip(index, zero_curve):
    return CapletStrip(valuation_date=VALUATION_DATE, index=index, tenors=list(TENORS), zero_curve=zero_curve,
                       day_count_basis='act/365')


@pytest.fixture
def make_definition(index):
    def make(lambda_expiry=0.01, lambda_strike=0.01, **kwargs):
        return DirectCapletCalibrationDefinition(name='TEST-3M-CAPLET', index=index, day_count_basis='act/365',
                                                 lambda_expiry=lambda_expiry, lambda_strike=lambda_strike, **kwargs)
    return make


@pytest.fixture
def black_smile_data():
    return RawOptionData(expiries=TENORS, strikes=STRIKES, data=BLACK_SMILE, value_type='black_volatility',
                         errors=np.full(BLACK_SMILE.shape, 1e-5))
