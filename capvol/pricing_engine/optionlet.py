# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
from capvol.enums import VolConvention
from capvol.utils.exceptions import SurfaceEvaluationError
from capvol.utils.settings import vega_normalisation, dv01_adjustment
from capvol.pricing_engine.black76_bachelier import black76_price, bachelier_price


def price_optionlets(convention: VolConvention,
                     F: np.ndarray,
                     tau: np.ndarray,
                     cp: np.ndarray,
                     K: np.ndarray,
                     vol: np.ndarray,
                     annuity_factor: np.ndarray,
                     shift: float=0.0,
                     vega: bool=False):
    """
    Price caplets/floorlets under the given volatility convention.

    Returns the optionlet prices and, if vega=True, the (un-normalised) derivative of each price with respect to its
    volatility, i.e. per unit of volatility.
    """
    F, tau, cp, K, vol, annuity_factor = map(lambda v: np.atleast_1d(np.asarray(v, dtype=float)), (F, tau, cp, K, vol, annuity_factor))

    match convention:
        case VolConvention.BLACK | VolConvention.SHIFTED_BLACK:
            ln_shift = shift if convention == VolConvention.SHIFTED_BLACK else 0.0
            if (F + ln_shift <= 0).any() or (K + ln_shift <= 0).any():
                raise SurfaceEvaluationError(
                    f"Forward and strike plus shift ({ln_shift}) must be positive for the {convention.display_name} convention")
            results = black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=vol, ln_shift=ln_shift,
                                    annuity_factor=annuity_factor, analytical_greeks=vega)
            normalisation = vega_normalisation
        case VolConvention.NORMAL:
            results = bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=vol,
                                      annuity_factor=annuity_factor, analytical_greeks=vega)
            normalisation = dv01_adjustment
        case _:
            raise ValueError(f"Invalid volatility convention {convention}")

    if vega:
        return results['price'], results['analytical_greeks']['vega'].to_numpy() / normalisation
    return results['price']
