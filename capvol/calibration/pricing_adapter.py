# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field
from typing import Optional, Sequence
import numpy as np
import pandas as pd

from capvol.enums import QuoteValueType, StrikeType, VolConvention
from capvol.calibration.raw_option_data import RawOptionData
from capvol.instruments.capfloor import CapletStrip
from capvol.pricing_engine.optionlet import price_optionlets
from capvol.term_structures.volatility_surface import VolatilitySurface


@dataclass
class CapFloorPricer:
    """
    Prices the quoted caps/floors, one per usable quote, with a candidate caplet volatility surface.

    'quote_df' has one row per usable quote: 'row' and 'col' in the quote grid, 'tenor', strike 'K', 'cp'
    (1 for a cap if the strike is above the ATM forward, else -1 for a floor) and the cap's 'atm_forward'.
    The caplets of every quote are flattened into 'caplet_df' ('quote_nb' links each caplet to its quote).
    """
    strip: CapletStrip
    quote_df: pd.DataFrame
    caplet_df: pd.DataFrame = field(init=False)

    def __post_init__(self):
        self.quote_df = self.quote_df.reset_index(drop=True)
        frames = []
        for quote_nb, quote in self.quote_df.iterrows():
            caplets = self.strip.caplets(int(quote['row']))[['expiry_years', 'F', 'annuity_factor']].copy()
            caplets.insert(loc=0, column='quote_nb', value=quote_nb)
            caplets['K'] = quote['K']
            caplets['cp'] = quote['cp']
            frames.append(caplets)
        self.caplet_df = pd.concat(frames, ignore_index=True)

    @classmethod
    def from_raw_data(cls, strip: CapletStrip, raw_data: RawOptionData) -> 'CapFloorPricer':
        records = []
        for row, col in raw_data.available_cells():
            F = strip.atm_forward(row)
            match raw_data.strike_type:
                case StrikeType.STRIKE:
                    K = raw_data.strikes[col]
                case StrikeType.SIMPLE_MONEYNESS:
                    K = F + raw_data.strikes[col]
            records.append({'row': row, 'col': col, 'tenor': raw_data.expiries[row], 'K': K,
                            'cp': 1 if K > F else -1, 'atm_forward': F})
        return cls(strip=strip, quote_df=pd.DataFrame.from_records(records, columns=['row', 'col', 'tenor', 'K', 'cp', 'atm_forward']))

    @property
    def nb_quotes(self) -> int:
        return len(self.quote_df)

    def _caplet_mask(self, quote_nbs: Optional[Sequence[int]]) -> np.ndarray:
        if quote_nbs is None:
            return np.ones(len(self.caplet_df), dtype=bool)
        return self.caplet_df['quote_nb'].isin(quote_nbs).values

    def _aggregate(self, caplet_quote_nb: np.ndarray, values: np.ndarray, quote_nbs: Optional[Sequence[int]]) -> np.ndarray:
        """Sum caplet values (1d or 2d) into their quotes, in the order of quote_nbs."""
        quote_nbs = np.arange(self.nb_quotes) if quote_nbs is None else np.asarray(quote_nbs)
        position = np.searchsorted(np.sort(quote_nbs), caplet_quote_nb)
        order = np.argsort(quote_nbs)
        out = np.zeros((len(quote_nbs),) + values.shape[1:])
        np.add.at(out, position, values)
        result = np.empty_like(out)
        result[order] = out
        return result

    def price(self, surface: VolatilitySurface, quote_nbs: Optional[Sequence[int]]=None) -> np.ndarray:
        """Cap/floor values with each caplet priced at its volatility on the surface."""
        mask = self._caplet_mask(quote_nbs)
        caplets = self.caplet_df[mask]
        tau, K = caplets['expiry_years'].values, caplets['K'].values
        px = price_optionlets(convention=surface.convention,
                              F=caplets['F'].values,
                              tau=tau,
                              cp=caplets['cp'].values,
                              K=K,
                              vol=surface.volatility(tau, K),
                              annuity_factor=caplets['annuity_factor'].values,
                              shift=surface.shift)
        return self._aggregate(caplets['quote_nb'].values, px, quote_nbs)

    def price_and_jacobian(self, surface: VolatilitySurface, quote_nbs: Optional[Sequence[int]]=None):
        """
        Cap/floor values and their sensitivities to each surface node, by the chain rule through the surface
        interpolation: sum over caplets of vega * d(vol)/d(node).
        """
        mask = self._caplet_mask(quote_nbs)
        caplets = self.caplet_df[mask]
        tau, K = caplets['expiry_years'].values, caplets['K'].values
        weights = surface.node_weights(tau, K)
        px, vega = price_optionlets(convention=surface.convention,
                                    F=caplets['F'].values,
                                    tau=tau,
                                    cp=caplets['cp'].values,
                                    K=K,
                                    vol=weights @ surface.values,
                                    annuity_factor=caplets['annuity_factor'].values,
                                    shift=surface.shift,
                                    vega=True)
        quote_nb = caplets['quote_nb'].values
        return self._aggregate(quote_nb, px, quote_nbs), self._aggregate(quote_nb, vega[:, None] * weights, quote_nbs)

    def market_values(self, raw_data: RawOptionData):
        """
        Market value implied by each usable quote and its error in price units.

        Volatility quotes are priced with the quoted (flat) volatility for every caplet; the quote error is
        converted to price units with the cap/floor vega under the quote convention.
        """
        values = np.full(self.nb_quotes, np.nan)
        errors = np.full(self.nb_quotes, np.nan)

        match raw_data.value_type:
            case QuoteValueType.BLACK_VOLATILITY:
                convention = VolConvention.SHIFTED_BLACK if raw_data.quote_shift != 0 else VolConvention.BLACK
            case QuoteValueType.NORMAL_VOLATILITY:
                convention = VolConvention.NORMAL
            case QuoteValueType.PRICE:
                convention = None

        for quote_nb, quote in self.quote_df.iterrows():
            value = raw_data.data[quote['row'], quote['col']]
            error = raw_data.errors[quote['row'], quote['col']]
            if convention is None:
                values[quote_nb], errors[quote_nb] = value, error
            else:
                capfloor = self.strip.capfloor(int(quote['row']), K=quote['K'], cp=int(quote['cp']))
                px, vega = capfloor.price(vol=value, convention=convention, shift=raw_data.quote_shift, vega=True)
                values[quote_nb], errors[quote_nb] = px, error * vega

        return values, errors
