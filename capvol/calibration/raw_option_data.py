# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass
from typing import Optional, Union
import numpy as np
import pandas as pd

from capvol.enums import QuoteValueType, StrikeType
from capvol.utils.exceptions import InvalidInputShape
from capvol.utils.tenor import clean_tenor, is_strictly_increasing_tenors
from capvol.term_structures.interest_rate_option_helpers import (standardise_relative_quote_col_names,
                                                                 standardise_absolute_quote_col_names,
                                                                 standardise_atmf_quote_col_names)


@dataclass(frozen=True, eq=False)
class RawOptionData:
    """
    Rectangular grid of cap/floor quotes.

    Rows are the cap/floor tenors (strictly increasing), columns the strikes (strictly increasing), which are
    absolute strikes or, for SIMPLE_MONEYNESS, offsets to the ATM forward of each cap. A quote is missing, and
    is excluded from the calibration, if its value or its error is NaN. 'errors' of None means an error of 1
    for every quote.
    """
    expiries: tuple
    strikes: np.ndarray
    data: np.ndarray
    value_type: QuoteValueType
    errors: Optional[np.ndarray] = None
    strike_type: StrikeType = StrikeType.STRIKE
    quote_shift: float = 0.0 # log-normal shift of Black volatility quotes

    def __post_init__(self):
        expiries = tuple(clean_tenor(t) for t in self.expiries)
        strikes = np.array(self.strikes, dtype=float).ravel()
        data = np.array(self.data, dtype=float)
        errors = np.ones_like(data) if self.errors is None else np.array(self.errors, dtype=float)

        if len(expiries) < 1 or len(strikes) < 1:
            raise InvalidInputShape("At least one expiry and one strike are required")
        if data.shape != (len(expiries), len(strikes)):
            raise InvalidInputShape(f"'data' has shape {data.shape}, expected {(len(expiries), len(strikes))}")
        if errors.shape != data.shape:
            raise InvalidInputShape(f"'errors' has shape {errors.shape}, expected {data.shape}")
        if not is_strictly_increasing_tenors(list(expiries)):
            raise ValueError(f"'expiries' must be strictly increasing: {expiries}")
        if (np.diff(strikes) <= 0).any():
            raise ValueError(f"'strikes' must be strictly increasing: {strikes}")

        for array in (strikes, data, errors):
            array.setflags(write=False)

        object.__setattr__(self, 'expiries', expiries)
        object.__setattr__(self, 'strikes', strikes)
        object.__setattr__(self, 'data', data)
        object.__setattr__(self, 'errors', errors)
        object.__setattr__(self, 'value_type', QuoteValueType.from_value(self.value_type))
        object.__setattr__(self, 'strike_type', StrikeType.from_value(self.strike_type))
        object.__setattr__(self, 'quote_shift', float(self.quote_shift))

    @property
    def shape(self) -> tuple:
        return self.data.shape

    def available_mask(self) -> np.ndarray:
        return np.logical_and(np.isfinite(self.data), np.isfinite(self.errors))

    def available_cells(self) -> list[tuple[int, int]]:
        """(row, column) of each usable quote, row-major."""
        rows, cols = np.nonzero(self.available_mask())
        return list(zip(rows.tolist(), cols.tolist()))

    def to_frame(self, errors: bool=False) -> pd.DataFrame:
        values = self.errors if errors else self.data
        return pd.DataFrame(values, index=pd.Index(self.expiries, name='tenor'), columns=pd.Index(self.strikes, name='strike'))

    @classmethod
    def from_dataframe(cls,
                       df: pd.DataFrame,
                       value_type: QuoteValueType,
                       errors: Optional[Union[float, pd.DataFrame]]=None,
                       strike_type: Optional[StrikeType]=None,
                       quote_shift: float=0.0) -> 'RawOptionData':
        """
        Construct from a quote table with a 'tenor' column and one column per strike.

        Strike columns are named either relative to the ATM forward ('ATM', '+50bps', '-1%'), giving
        SIMPLE_MONEYNESS quotes, or as absolute strikes ('2.5%', '300bps'). If 'strike_type' is not given, the
        presence of an ATM column selects relative quotes. 'errors' is a scalar or a table of the same layout.
        """
        if 'tenor' not in df.columns:
            raise ValueError("'df' must have a 'tenor' column")
        quote_col_names = [col for col in df.columns if col != 'tenor']

        if strike_type is None:
            has_atm = len(standardise_atmf_quote_col_names(quote_col_names, required=False)) == 1
            strike_type = StrikeType.SIMPLE_MONEYNESS if has_atm else StrikeType.STRIKE
        strike_type = StrikeType.from_value(strike_type)

        match strike_type:
            case StrikeType.SIMPLE_MONEYNESS:
                col_name_update, col_name_value = standardise_relative_quote_col_names(quote_col_names, atm_required=False)
            case StrikeType.STRIKE:
                col_name_update, col_name_value = standardise_absolute_quote_col_names(quote_col_names)

        unrecognised = [col for col in quote_col_names if col not in col_name_update]
        if unrecognised:
            raise ValueError(f"Unrecognised quote columns: {unrecognised}")

        quote_df = df.rename(columns=col_name_update)
        quote_cols = sorted(col_name_value.keys(), key=lambda col: col_name_value[col])

        if isinstance(errors, pd.DataFrame):
            errors = errors.rename(columns=col_name_update)[quote_cols].astype('float64').values
        elif errors is not None:
            errors = np.full((len(quote_df), len(quote_cols)), float(errors))

        return cls(expiries=tuple(quote_df['tenor']),
                   strikes=np.array([col_name_value[col] for col in quote_cols]),
                   data=quote_df[quote_cols].astype('float64').values,
                   value_type=value_type,
                   errors=errors,
                   strike_type=strike_type,
                   quote_shift=quote_shift)
