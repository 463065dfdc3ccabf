# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from enum import Enum
import numpy as np
import pandas as pd
from capvol.enums.helper import is_valid_enum_value, get_enum_member


class DayCountBasis(Enum):
    _30_360 = '30/360'
    _30E_360 = '30e/360'
    ACT_360 = 'act/360'
    ACT_365 = 'act/365'
    ACT_ACT = 'act/act'

    def __init__(self, value):
        days_per_year = {
            '30/360': 360,
            '30e/360': 360,
            'act/360': 360,
            'act/365': 365,
            'act/act': np.nan,
        }
        self.days_per_year = days_per_year[self.value]

    @classmethod
    def default(cls):
        return cls.ACT_ACT

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, cls._transform_value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, cls._transform_value)

    @staticmethod
    def _transform_value(value: str) -> str:
        value = value.replace('actual', 'act')
        if value in {'act/365fixed', 'act/365f'}:
            value = 'act/365'
        if value in {'act/act_isda', 'act/actisda'}:
            value = 'act/act'
        return value

    @property
    def display_name(self):
        return self.value.upper().replace('_', ' ').strip()


class CompoundingFreq(Enum):
    SIMPLE = 'simple'
    CONTINUOUS = 'continuous'
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    SEMIANNUAL = 'semiannual'
    ANNUAL = 'annual'

    def __init__(self, value):
        periods_per_year_map = {
            'simple': None,
            'continuous': None,
            'monthly': 12,
            'quarterly': 4,
            'semiannual': 2,
            'annual': 1
        }
        self.periods_per_year = periods_per_year_map[self.value]

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.title()


class PeriodFreq(Enum):
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    SEMIANNUAL = 'semiannual'
    ANNUAL = 'annual'

    def __init__(self, value):
        months_map = {
            'monthly': 1,
            'quarterly': 3,
            'semiannual': 6,
            'annual': 12,
        }
        self.months = months_map[self.value]
        self.date_offset = pd.DateOffset(months=self.months)

    def multiply_date_offset(self, factor: int) -> pd.DateOffset:
        # x * (date + offset) != date + (x * offset) for month ends, so offsets are always built from the anchor date.
        # pd.Timestamp('2023-08-31') + 3 * pd.DateOffset(months=3) == pd.Timestamp('2024-05-29')
        # pd.Timestamp('2023-08-31') + pd.DateOffset(months=3*3) == pd.Timestamp('2024-05-31')
        return pd.DateOffset(months=self.months * factor)

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, cls._transform_value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, cls._transform_value)

    @staticmethod
    def _transform_value(value: str) -> str:
        value = value.replace('/', '').replace('_', '').replace('per', '').lower().strip()

        period_frequency_aliases = {
            'monthly': ['m', 'month', 'months', 'mon', '1m', '1mo', '1month', '1months'],
            'quarterly': ['q', 'quarter', 'quarters', 'quart', '3m', '3mo', '3month', '3months'],
            'semiannual': ['s', 'sa', 'semiannually', 'semi', '6m', '6mo', '6month', '6months'],
            'annual': ['a', 'year', 'years', 'yrs', 'yr', 'annually', '1y', '1yr', '1year', '12m'],
        }

        for key, aliases in period_frequency_aliases.items():
            if value == key or value in aliases:
                return key
        return value

    @property
    def display_name(self):
        return self.name.title()


class RollConv(Enum):
    UNADJUSTED = 'unadjusted'
    FOLLOWING = 'following'
    PRECEDING = 'preceding'
    MODIFIED_FOLLOWING = 'modifiedfollowing'
    MODIFIED_PRECEDING = 'modifiedpreceding'

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, cls._transform_value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, cls._transform_value)

    @staticmethod
    def _transform_value(value: str) -> str:
        return value.replace('_', '')

    @classmethod
    def default(cls):
        return cls.MODIFIED_FOLLOWING

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()
