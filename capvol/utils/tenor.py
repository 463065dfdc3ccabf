# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import re
import unicodedata
import logging
import pandas as pd
from pandas import DateOffset


def clean_tenor(tenor: str) -> str:
    if not isinstance(tenor, str):
        raise TypeError(f"'tenor' {tenor} must be a string. Instead is type {type(tenor)}")

    tenor = unicodedata.normalize('NFKD', tenor)
    tenor = tenor.lower().replace(' ', '').replace('/', '').replace('\n', '').replace('\r', '')

    replacements = {
        'd': ['days', 'day'],
        'w': ['weeks', 'week'],
        'm': ['months', 'month', 'mon'],
        'y': ['years', 'year', 'yrs', 'yr'],
    }

    pattern = re.compile('|'.join(map(re.escape, [val for sublist in replacements.values() for val in sublist])))
    tenor = pattern.sub(lambda match: next(k for k, v in replacements.items() if match.group(0) in v), tenor)

    return tenor


def tenor_to_date_offset(tenor: str) -> pd.DateOffset:
    if not isinstance(tenor, str):
        raise TypeError("'tenor' must be a string")

    tenor = clean_tenor(tenor)

    if re.search(r'^\d+d$', tenor) is not None:
        offset = DateOffset(days=int(tenor[:-1]))
    elif re.search(r'^\d+w$', tenor) is not None:
        offset = DateOffset(weeks=int(tenor[:-1]))
    elif re.search(r'^\d+m$', tenor) is not None:
        offset = DateOffset(months=int(tenor[:-1]))
    elif re.search(r'^\d+y$', tenor) is not None:
        offset = DateOffset(years=int(tenor[:-1]))
    # Years and months, e.g. 1Y3M, 10Y6M
    elif re.search(r'^\d+y\d+m$', tenor) is not None:
        years, months = tenor[:-1].split('y')
        offset = DateOffset(months=int(years) * 12 + int(months))
    else:
        logging.error(f"invalid 'tenor' value: {tenor}")
        raise ValueError(f"invalid 'tenor' value: {tenor}")

    return offset


def tenor_to_date(reference_date: pd.Timestamp, tenor: str) -> pd.Timestamp:
    """Unadjusted date one tenor after the reference date."""
    return pd.Timestamp(reference_date) + tenor_to_date_offset(tenor)


def is_strictly_increasing_tenors(tenors: list[str], reference_date: pd.Timestamp = pd.Timestamp('2000-01-31')) -> bool:
    dates = [tenor_to_date(reference_date, tenor) for tenor in tenors]
    return all(d1 < d2 for d1, d2 in zip(dates[:-1], dates[1:]))
