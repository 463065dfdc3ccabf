# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field
import numpy as np
import pandas as pd

from capvol.enums import DayCountBasis, TermRate, VolConvention
from capvol.instruments.ibor_index import IborIndex
from capvol.pricing_engine.optionlet import price_optionlets
from capvol.pricing_engine.black76_bachelier import black76_solve_implied_vol, bachelier_solve_implied_vol
from capvol.term_structures.zero_curve import ZeroCurve
from capvol.term_structures.interest_rate_option_helpers import settlement_date_helper
from capvol.utils.daycount import year_frac
from capvol.utils.schedule import Schedule, busday_offset_timestamp
from capvol.utils.tenor import clean_tenor, tenor_to_date_offset, is_strictly_increasing_tenors


@dataclass
class CapFloor:
    """A cap (cp=1) or floor (cp=-1) with a single strike over a strip of caplets/floorlets."""
    tenor: str
    K: float
    cp: int
    caplet_df: pd.DataFrame

    def __post_init__(self):
        assert self.cp in [-1, 1], "'cp' must be either -1 or 1."
        if self.caplet_df.empty:
            raise ValueError(f"Cap/floor '{self.tenor}' has no caplets")

    @property
    def expiry_years(self) -> np.ndarray:
        return self.caplet_df['expiry_years'].values

    @property
    def F(self) -> np.ndarray:
        return self.caplet_df['F'].values

    @property
    def annuity_factor(self) -> np.ndarray:
        return self.caplet_df['annuity_factor'].values

    @property
    def atm_forward(self) -> float:
        return atm_forward(self.caplet_df)

    def price(self, vol: float, convention: VolConvention, shift: float=0.0, vega: bool=False):
        """Price with a single (flat) volatility for every caplet."""
        n = len(self.caplet_df)
        results = price_optionlets(convention=convention,
                                   F=self.F,
                                   tau=self.expiry_years,
                                   cp=np.full(n, self.cp),
                                   K=np.full(n, self.K),
                                   vol=np.full(n, vol),
                                   annuity_factor=self.annuity_factor,
                                   shift=shift,
                                   vega=vega)
        if vega:
            px, vegas = results
            return px.sum(), vegas.sum()
        return results.sum()

    def implied_volatility(self, price: float, convention: VolConvention, shift: float=0.0, vol_guess: float=None) -> float:
        """The single (flat) volatility that reprices the cap/floor."""
        n = len(self.caplet_df)
        kwargs = {'F': self.F, 'tau': self.expiry_years, 'cp': np.full(n, self.cp), 'K': np.full(n, self.K),
                  'X': price, 'annuity_factor': self.annuity_factor}
        match convention:
            case VolConvention.BLACK:
                return black76_solve_implied_vol(ln_shift=0.0, vol_sln_guess=vol_guess or 0.2, **kwargs)
            case VolConvention.SHIFTED_BLACK:
                return black76_solve_implied_vol(ln_shift=shift, vol_sln_guess=vol_guess or 0.2, **kwargs)
            case VolConvention.NORMAL:
                return bachelier_solve_implied_vol(vol_n_guess=vol_guess or 0.01, **kwargs)
            case _:
                raise ValueError(f"Invalid volatility convention {convention}")


def atm_forward(caplet_df: pd.DataFrame) -> float:
    """Annuity weighted average of the caplet forward rates."""
    return (caplet_df['F'] * caplet_df['annuity_factor']).sum() / caplet_df['annuity_factor'].sum()


@dataclass
class CapletStrip:
    """
    Caplet periods for a set of cap/floor maturities sharing the same index and start.

    The caps start one index period after the settlement date (the first caplet, whose rate is already
    known or about to fix, is excluded). Each caplet is allocated to the first (shortest) cap containing it
    ('cap_nb'), so cap i comprises all caplets with cap_nb <= i.
    """
    valuation_date: pd.Timestamp
    index: IborIndex
    tenors: list[str]
    zero_curve: ZeroCurve
    day_count_basis: DayCountBasis # time measurement for caplet expiries

    settlement_date: pd.Timestamp = field(init=False)
    effective_date: pd.Timestamp = field(init=False)
    cap_df: pd.DataFrame = field(init=False)
    caplet_df: pd.DataFrame = field(init=False)

    def __post_init__(self):
        self.valuation_date = pd.Timestamp(self.valuation_date)
        self.day_count_basis = DayCountBasis.from_value(self.day_count_basis)
        self.tenors = [clean_tenor(t) for t in self.tenors]

        if not is_strictly_increasing_tenors(self.tenors):
            raise ValueError(f"Cap/floor tenors must be strictly increasing: {self.tenors}")

        cal = self.index.busdaycal
        self.settlement_date = settlement_date_helper(curve_date=self.valuation_date,
                                                      settlement_date=None,
                                                      settlement_delay=self.index.settlement_delay,
                                                      busdaycal=cal)
        self.effective_date = busday_offset_timestamp(self.settlement_date + self.index.tenor.date_offset, 0, self.index.roll_conv, cal)

        termination_dates = [busday_offset_timestamp(self.settlement_date + tenor_to_date_offset(t), 0, self.index.roll_conv, cal)
                             for t in self.tenors]
        for tenor, termination_date in zip(self.tenors, termination_dates):
            if termination_date <= self.effective_date:
                raise ValueError(f"Cap/floor tenor '{tenor}' must be longer than the index tenor")

        # Schedule anchored on the settlement date; the first period is the excluded caplet
        schedule = Schedule(start_date=self.settlement_date,
                            end_date=self.settlement_date + tenor_to_date_offset(self.tenors[-1]),
                            freq=self.index.tenor,
                            roll_conv=self.index.roll_conv,
                            cal=cal)
        schedule.df = schedule.df.iloc[1:].reset_index(drop=True)
        schedule.add_fixing_dates(fixing_delay=self.index.settlement_delay)
        schedule.add_payment_dates()
        schedule.add_period_yearfrac(day_count_basis=self.index.day_count_basis)

        caplet_df = schedule.df
        caplet_df['expiry_years'] = np.atleast_1d(year_frac(self.valuation_date, caplet_df['fixing_date'], self.day_count_basis))
        caplet_df['discount_factor'] = self.zero_curve.get_discount_factors(dates=caplet_df['payment_date'])
        caplet_df['annuity_factor'] = caplet_df['period_yearfrac'] * caplet_df['discount_factor']
        caplet_df['F'] = self.zero_curve.get_forward_rates(period_start=caplet_df['period_start'],
                                                           period_end=caplet_df['period_end'],
                                                           forward_rate_type=TermRate.SIMPLE,
                                                           day_count_basis=self.index.day_count_basis)

        cap_nb = np.searchsorted(pd.DatetimeIndex(termination_dates), pd.DatetimeIndex(caplet_df['period_end']), side='left')
        caplet_df.insert(loc=0, column='cap_nb', value=np.minimum(cap_nb, len(self.tenors) - 1))
        self.caplet_df = caplet_df

        self.cap_df = pd.DataFrame({'tenor': self.tenors, 'termination_date': termination_dates})
        self.cap_df['nb_caplets'] = [int((caplet_df['cap_nb'] <= i).sum()) for i in range(len(self.tenors))]
        self.cap_df['last_caplet_expiry_years'] = [caplet_df.loc[caplet_df['cap_nb'] <= i, 'expiry_years'].iloc[-1]
                                                   for i in range(len(self.tenors))]
        self.cap_df['F'] = [atm_forward(self.caplets(i)) for i in range(len(self.tenors))]

    def caplets(self, cap_nb: int) -> pd.DataFrame:
        return self.caplet_df[self.caplet_df['cap_nb'] <= cap_nb]

    def atm_forward(self, cap_nb: int) -> float:
        return self.cap_df.loc[cap_nb, 'F']

    def capfloor(self, cap_nb: int, K: float, cp: int=None) -> CapFloor:
        """The cap (strike above the ATM forward) or floor (otherwise), unless 'cp' is given."""
        if cp is None:
            cp = 1 if K > self.atm_forward(cap_nb) else -1
        return CapFloor(tenor=self.tenors[cap_nb], K=K, cp=cp, caplet_df=self.caplets(cap_nb))
