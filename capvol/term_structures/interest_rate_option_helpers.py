# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import re
from typing import Optional
import numpy as np
import pandas as pd

# Two methods of specifying cap/floor quote columns
# 1. Quotes relative to the atm forward rate (e.g. ATM, ATM+/-50bps, ATM+/-100bps...)
# 2. Absolute quotes (e.g. 2.5%, 3.0%, 3.5%...)
ATM_QUOTE = '(a|at)[ -]?(t|the)[ -]?(m|money)[ -]?(f|forward)?'
BPS_QUOTE = r'[+-]?\s?\d+(\.\d+)?\s?(bps|bp)'
PERCENTAGE_QUOTE = r'[+-]?\s?\d+(\.\d+)?\s?%'


def settlement_date_helper(curve_date: pd.Timestamp,
                           settlement_date: Optional[pd.Timestamp],
                           settlement_delay: Optional[int],
                           busdaycal: Optional[np.busdaycalendar]=np.busdaycalendar()) -> pd.Timestamp:

    if settlement_date is None and settlement_delay is None:
        raise ValueError('Either settlement_date or settlement_delay must be provided.')

    elif settlement_date is None and settlement_delay is not None:
        settlement_date = np.busday_offset(pd.Timestamp(curve_date).to_numpy().astype('datetime64[D]'),
                                           offsets=settlement_delay,
                                           roll='following',
                                           busdaycal=busdaycal)
    else:
        assert settlement_date >= curve_date, f"settlement_date {settlement_date} must be on or after curve_date {curve_date}."

    return pd.Timestamp(settlement_date)


def _quote_value(col_name: str) -> Optional[float]:
    """Strike or moneyness in decimal for a '+50bps' / '-1.25%' style column name, None if not a quote column."""
    col_name_compact = col_name.replace(' ', '')
    if re.search(BPS_QUOTE, col_name, re.IGNORECASE):
        number = re.sub(r'[^0-9.+-]', '', col_name_compact.lower().replace('bps', '').replace('bp', ''))
        return round(float(number) / 10000, 8)
    elif re.search(PERCENTAGE_QUOTE, col_name, re.IGNORECASE):
        number = re.sub(r'[^0-9.+-]', '', col_name_compact.replace('%', ''))
        return round(float(number) / 100, 8)
    return None


def _bps_col_name(v: float) -> str:
    bps = round(v * 10000, 8)
    return (str(int(bps)) if bps.is_integer() else str(bps)) + 'bps'


def standardise_atmf_quote_col_names(col_names: list[str], required: bool=True):
    col_name_update = dict()

    for col_name in col_names:
        if re.search(ATM_QUOTE, col_name, re.IGNORECASE) and _quote_value(col_name) is None:
            col_name_update[col_name] = 'atmf'

    if required:
        assert len(col_name_update) == 1, f"Expected 1 ATMF quote, found {len(col_name_update)}."
    else:
        assert len(col_name_update) <= 1, f"Expected at most 1 ATMF quote, found {len(col_name_update)}."

    return col_name_update


def standardise_relative_quote_col_names(col_names: list[str], atm_required: bool=True):
    """
    Map quote columns relative to the ATM forward (e.g. 'ATM', '+50bps', '-1%') to standardised names
    ('atmf', '50bps', '-100bps') and to the decimal adjustment to the ATM forward.
    """
    col_name_update = dict()
    col_name_adj_to_forward = dict()

    col_name_update_atmf = standardise_atmf_quote_col_names(col_names=col_names, required=atm_required)
    col_name_update.update(col_name_update_atmf)
    if col_name_update_atmf:
        col_name_adj_to_forward.update({'atmf': 0.0})

    for col_name in col_names:
        if col_name in col_name_update:
            continue
        v = _quote_value(col_name)
        if v is not None:
            new_col_name = _bps_col_name(v)
            col_name_update[col_name] = new_col_name
            col_name_adj_to_forward[new_col_name] = v

    return col_name_update, col_name_adj_to_forward


def standardise_absolute_quote_col_names(col_names: list[str]):
    """Map absolute strike columns (e.g. '2.5%', '300bps') to standardised names and decimal strikes."""
    col_name_update = dict()
    col_name_strike = dict()

    for col_name in col_names:
        v = _quote_value(col_name)
        if v is not None:
            new_col_name = _bps_col_name(v)
            col_name_update[col_name] = new_col_name
            col_name_strike[new_col_name] = v

    return col_name_update, col_name_strike
