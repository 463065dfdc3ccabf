# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from functools import reduce, lru_cache
import holidays
import numpy as np


YEARS = range(1990, 2100)

# Holiday calendar constructors keyed by currency or locale. Built on first use.
CCY_HOLIDAY = {
    'AUD': lambda years: holidays.AU(subdiv='NSW', categories=['public', 'bank'], years=years),
    'CAD': lambda years: holidays.CA(subdiv='ON', categories=['public'], years=years),
    'CHF': lambda years: holidays.CH(subdiv='ZH', categories=['public'], years=years),
    'EUR': lambda years: holidays.ECB(categories=['public'], years=years),
    'GBP': lambda years: holidays.UK(subdiv='ENG', categories=['public'], years=years),
    'JPY': lambda years: holidays.JP(categories=['public'], years=years),
    'NZD': lambda years: holidays.NZ(subdiv='AUK', categories=['public'], years=years),
    'USD': lambda years: holidays.US(subdiv='NY', categories=['public'], years=years),
}

LOCALE_HOLIDAY = {
    'AU-SYDNEY': CCY_HOLIDAY['AUD'],
    'CA-TORONTO': CCY_HOLIDAY['CAD'],
    'CH-ZURICH': CCY_HOLIDAY['CHF'],
    'JP-TOYKO': CCY_HOLIDAY['JPY'],
    'NZ-AUCKLAND': CCY_HOLIDAY['NZD'],
    'UK-LONDON': CCY_HOLIDAY['GBP'],
    'US-NEW_YORK': CCY_HOLIDAY['USD'],
    'European_Central_Bank': CCY_HOLIDAY['EUR'],
    'New_York_Stock_Exchange': lambda years: holidays.XNYS(categories=['public'], years=years),
}


@lru_cache(maxsize=None)
def get_holidays_object(key):
    if key in CCY_HOLIDAY.keys():
        return CCY_HOLIDAY[key](YEARS)
    elif key in LOCALE_HOLIDAY.keys():
        return LOCALE_HOLIDAY[key](YEARS)
    else:
        raise ValueError(f"Holidays not setup for {key}")


def convert_weekend_to_weekmask(weekend_set):
    "For converting the holidays.weekend attribute to a valid weekmask for numpy.busdaycalendar"
    weekmask = [1, 1, 1, 1, 1, 1, 1]
    for weekend_day in weekend_set:
        weekmask[weekend_day] = 0
    return ''.join(map(str, weekmask))


def get_busdaycal(keys) -> np.busdaycalendar:
    """
    Create a calendar which has the holidays and business days of the currencies/locales.
    """

    if keys is None:
        return np.busdaycalendar()

    if type(keys) is str:
        keys = [keys]
    elif type(keys) is list:
        keys = sorted(set(keys))

    holiday_objects = [get_holidays_object(key.upper() if key.upper() in CCY_HOLIDAY else key) for key in keys]
    combined_weekend_union = reduce(lambda x, y: x | y.weekend, holiday_objects, set())
    weekmask = convert_weekend_to_weekmask(combined_weekend_union)

    holiday_dates = [h for holiday_list in holiday_objects for h in holiday_list]

    return np.busdaycalendar(weekmask=weekmask, holidays=holiday_dates)


if __name__ == "__main__":
    busdaycal = get_busdaycal(['USD', 'GBP'])
    print(busdaycal.weekmask, len(busdaycal.holidays))
