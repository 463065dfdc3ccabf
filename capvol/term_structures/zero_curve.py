# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field, InitVar
import datetime as dt
from typing import Optional, Union
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from scipy.interpolate import splrep, splev

from capvol.enums import DayCountBasis, CompoundingFreq, TermRate, ZeroCurveInterpMethod
from capvol.utils.daycount import year_frac
from capvol.utils.tenor import clean_tenor, tenor_to_date_offset
from capvol.term_structures.zero_curve_helpers import zero_rate_from_discount_factor, discount_factor_from_zero_rate


@dataclass
class ZeroCurve:
    """
    Single curve used for both discounting and forward rate projection.

    'pillar_df' has exactly two columns: one of 'tenor', 'date', 'days', 'years' and one of 'zero_rate',
    'discount_factor'. Beyond the last pillar the continuously compounded zero rate is held flat.
    """
    # Required inputs
    curve_date: pd.Timestamp
    pillar_df: pd.DataFrame

    # Used in the __post_init__ but not set as attributes
    compounding_freq: InitVar[CompoundingFreq]=None # defines the zero_rate compounding frequency in 'pillar_df'

    # Optional init inputs
    day_count_basis: DayCountBasis=DayCountBasis.ACT_ACT
    cal: np.busdaycalendar=np.busdaycalendar()
    interp_method: ZeroCurveInterpMethod=ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT

    # Attributes set in __post_init__
    cubic_spline_definition: tuple=field(init=False)

    def __post_init__(self, compounding_freq):
        self.curve_date = pd.Timestamp(self.curve_date)
        self.day_count_basis = DayCountBasis.from_value(self.day_count_basis)
        self.interp_method = ZeroCurveInterpMethod.from_value(self.interp_method)

        if compounding_freq is None and 'zero_rate' in self.pillar_df.columns:
            raise ValueError("'compounding_freq' must be specified if zero rates are specified in 'pillar_df'")
        if compounding_freq is not None:
            compounding_freq = CompoundingFreq.from_value(compounding_freq)

        self._process_pillar_df(self.pillar_df.copy(), compounding_freq)

    def _process_pillar_df(self, pillar_df, compounding_freq):

        only_one_of_columns_X = ['tenor', 'date', 'days', 'years']
        only_one_of_columns_Y = ['zero_rate', 'discount_factor']

        if len(pillar_df.columns.to_list()) != 2:
            raise ValueError('Exactly two columns must be specified: \n'
                             '(i) One of: ' + ', '.join(only_one_of_columns_X) + '\n'
                             '(ii) One of: ' + ', '.join(only_one_of_columns_Y))

        X_columns = [col for col in only_one_of_columns_X if col in pillar_df.columns]
        if len(X_columns) != 1:
            raise ValueError('Exactly one of the following columns must be specified: ' + ', '.join(only_one_of_columns_X))
        X_column_name = X_columns[0]

        Y_columns = [col for col in only_one_of_columns_Y if col in pillar_df.columns]
        if len(Y_columns) != 1:
            raise ValueError('Exactly one of the following columns must be specified: ' + ', '.join(only_one_of_columns_Y))
        Y_column_name = Y_columns[0]

        match X_column_name:
            case 'tenor':
                pillar_df['tenor'] = pillar_df['tenor'].apply(clean_tenor)
                dates = pd.DatetimeIndex([self.curve_date + tenor_to_date_offset(t) for t in pillar_df['tenor']])
                pillar_df['date'] = pd.DatetimeIndex(np.busday_offset(dates.values.astype('datetime64[D]'), offsets=0, roll='following', busdaycal=self.cal))
                pillar_df['years'] = year_frac(self.curve_date, pillar_df['date'], self.day_count_basis)
            case 'date':
                pillar_df['date'] = pd.to_datetime(pillar_df['date'])
                pillar_df['years'] = year_frac(self.curve_date, pillar_df['date'], self.day_count_basis)
            case 'days':
                pillar_df['date'] = pillar_df['days'].apply(lambda days: self.curve_date + dt.timedelta(days=int(days)))
                pillar_df['years'] = year_frac(self.curve_date, pillar_df['date'], self.day_count_basis)
            case 'years':
                pillar_df['years'] = pillar_df['years'].astype(float)

        pillar_df = pillar_df[pillar_df['years'] > 0].sort_values(by='years', ascending=True).reset_index(drop=True)
        if pillar_df.empty:
            raise ValueError("'pillar_df' must contain at least one pillar after the curve date")

        if Y_column_name == 'zero_rate':
            pillar_df['discount_factor'] = discount_factor_from_zero_rate(
                years=pillar_df['years'],
                zero_rate=pillar_df['zero_rate'],
                compounding_freq=compounding_freq)
            pillar_df.drop(columns=['zero_rate'], inplace=True)

        if (pillar_df['discount_factor'] <= 0).any():
            raise ValueError("Discount factors must be positive")

        # Continuously compounded zero rate for internal use
        pillar_df['cczr'] = -1 * np.log(pillar_df['discount_factor']) / pillar_df['years']

        # Pillar at t=0
        first_row = {'years': 0.0, 'discount_factor': 1.0}
        if 'tenor' in pillar_df.columns:
            first_row['tenor'] = ''
        if 'date' in pillar_df.columns:
            first_row['date'] = self.curve_date

        match self.interp_method:
            case ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT:
                first_row['cczr'] = pillar_df['cczr'].iloc[0]
                self.cubic_spline_definition = None
            case ZeroCurveInterpMethod.CUBIC_SPLINE_ON_LN_DISCOUNT:
                x = [0.0] + pillar_df['years'].to_list()
                y = [0.0] + np.log(pillar_df['discount_factor']).to_list()
                if len(x) <= 3:
                    raise ValueError("At least three pillars are required for 'cubic_spline_on_ln_discount'")
                self.cubic_spline_definition = splrep(x=x, y=y, k=3)
                dt_ = 1e-6
                first_row['cczr'] = -1 * splev(dt_, self.cubic_spline_definition, der=0) / dt_
            case _:
                raise ValueError(f"Invalid interpolation method {self.interp_method}")

        first_row_df = pd.DataFrame([first_row], columns=pillar_df.columns)
        pillar_df = pd.concat([first_row_df, pillar_df])
        pillar_df.reset_index(inplace=True, drop=True)

        column_order = ['tenor', 'date', 'years', 'cczr', 'discount_factor']
        self.pillar_df = pillar_df[[col for col in column_order if col in pillar_df.columns]]

    def _to_years(self, dates=None, years=None) -> np.ndarray:
        if sum(x is not None for x in (dates, years)) != 1:
            raise ValueError("Exactly one of 'dates' or 'years' must be specified.")
        if years is not None:
            return np.atleast_1d(np.asarray(years, dtype=float))
        return np.atleast_1d(year_frac(self.curve_date, dates, self.day_count_basis)).astype(float)

    def _ln_discount_factor(self, years: np.ndarray) -> np.ndarray:
        max_years = self.pillar_df['years'].iloc[-1]
        ln_df_max = np.log(self.pillar_df['discount_factor'].iloc[-1])

        match self.interp_method:
            case ZeroCurveInterpMethod.LINEAR_ON_LN_DISCOUNT:
                ln_df = np.interp(x=years, xp=self.pillar_df['years'], fp=np.log(self.pillar_df['discount_factor']))
            case ZeroCurveInterpMethod.CUBIC_SPLINE_ON_LN_DISCOUNT:
                ln_df = splev(np.minimum(years, max_years), self.cubic_spline_definition, der=0)
            case _:
                raise ValueError(f"Invalid interpolation method {self.interp_method}")

        # Flat continuously compounded zero rate extrapolation
        return np.where(years > max_years, ln_df_max * years / max_years, ln_df)

    def get_discount_factors(self,
                             dates: Optional[Union[pd.Timestamp, np.datetime64, dt.datetime, dt.date, pd.Series, pd.DatetimeIndex]]=None,
                             years: Optional[Union[float, np.ndarray, pd.Series]]=None) -> np.ndarray:
        years = self._to_years(dates, years)
        return np.exp(self._ln_discount_factor(years))

    def get_zero_rates(self,
                       compounding_freq: CompoundingFreq,
                       dates: Optional[Union[pd.Timestamp, np.datetime64, dt.datetime, dt.date, pd.Series, pd.DatetimeIndex]]=None,
                       years: Optional[Union[float, np.ndarray, pd.Series]]=None) -> np.ndarray:
        years = self._to_years(dates, years)
        discount_factor = np.exp(self._ln_discount_factor(years))

        if (years <= 0).any():
            raise ValueError("Zero rates are only defined for dates after the curve date")

        if compounding_freq == CompoundingFreq.CONTINUOUS:
            return -1 * np.log(discount_factor) / years
        return zero_rate_from_discount_factor(years=years, discount_factor=discount_factor, compounding_freq=compounding_freq)

    def get_forward_rates(self,
                          period_start: Union[pd.Timestamp, np.datetime64, dt.datetime, dt.date, pd.Series, pd.DatetimeIndex],
                          period_end: Union[pd.Timestamp, np.datetime64, dt.datetime, dt.date, pd.Series, pd.DatetimeIndex],
                          forward_rate_type: TermRate,
                          day_count_basis: Optional[DayCountBasis]=None) -> np.ndarray:
        """
        Forward rates over [period_start, period_end]. The period length is measured with 'day_count_basis'
        (by default, the curve's day count basis); IBOR forwards use the index accrual basis.
        """
        period_start = pd.DatetimeIndex(np.atleast_1d(pd.to_datetime(period_start)))
        period_end = pd.DatetimeIndex(np.atleast_1d(pd.to_datetime(period_end)))

        assert len(period_start) == len(period_end)
        assert (period_start >= self.curve_date).all()
        assert (period_end > period_start).all()

        day_count_basis = self.day_count_basis if day_count_basis is None else day_count_basis
        Δt = np.atleast_1d(year_frac(period_start, period_end, day_count_basis))
        DF_t1 = self.get_discount_factors(dates=period_start)
        DF_t2 = self.get_discount_factors(dates=period_end)

        # https://en.wikipedia.org/wiki/Forward_rate
        match forward_rate_type:
            case TermRate.SIMPLE:
                return (1.0 / Δt) * (DF_t1 / DF_t2 - 1.0)
            case TermRate.CONTINUOUS:
                return (1.0 / Δt) * (np.log(DF_t1) - np.log(DF_t2))
            case TermRate.ANNUAL:
                return (DF_t1 / DF_t2) ** (1.0 / Δt) - 1.0
            case _:
                raise ValueError(f"Invalid forward_rate_type {forward_rate_type}")

    def flat_shift(self, basis_points: float=1) -> 'ZeroCurve':
        pillars = self.pillar_df[self.pillar_df['years'] > 0]
        shifted_cczr = pillars['cczr'].values + basis_points / 10000
        shifted = pd.DataFrame({'years': pillars['years'].values,
                                'discount_factor': np.exp(-shifted_cczr * pillars['years'].values)})
        return ZeroCurve(curve_date=self.curve_date,
                         pillar_df=shifted,
                         day_count_basis=self.day_count_basis,
                         cal=self.cal,
                         interp_method=self.interp_method)

    def plot(self, forward_rate_term=pd.DateOffset(months=3)):
        max_years = self.pillar_df['years'].iloc[-1]
        max_date = self.curve_date + pd.DateOffset(days=int(365.25 * max_years))
        date_range = pd.date_range(self.curve_date + pd.DateOffset(days=1), max_date, freq='d')
        years_zr = year_frac(self.curve_date, date_range, self.day_count_basis)
        zero_rates = self.get_zero_rates(compounding_freq=CompoundingFreq.CONTINUOUS, dates=date_range) * 100

        fig, ax = plt.subplots()
        ax.plot(years_zr, zero_rates, label='zero rate')

        d1 = pd.date_range(self.curve_date, max_date - forward_rate_term, freq='d')
        d2 = pd.DatetimeIndex([d + forward_rate_term for d in d1])
        years_fwd = year_frac(self.curve_date, d1, self.day_count_basis)
        fwd_rates = self.get_forward_rates(d1, d2, TermRate.SIMPLE) * 100
        ax.plot(years_fwd, fwd_rates, label='forward rate')

        ax.set(xlabel='years', ylabel='interest rate (%)')
        ax.grid()
        ax.legend()
        plt.xlim([0, 1.05 * max(years_zr)])
        plt.show()
