# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import logging
import numpy as np
import pandas as pd
from scipy.stats import norm
from scipy.optimize import root_scalar, minimize
from capvol.utils.settings import VOL_SLN_BOUNDS, VOL_N_BOUNDS, vega_normalisation, dv01_adjustment

logger = logging.getLogger(__name__)


def black76_price(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        vol_sln: [float, np.array],
        ln_shift: [float, np.array],
        annuity_factor: [float, np.array]=1,
        intrinsic_time_split: bool=False,
        analytical_greeks: bool=False,
        numerical_greeks: bool=False):
    """
    Black76 pricing + greeks.

    The function has the parameters 'annuity_factor' instead of a risk-free rate.
    This adjustment allows for more generic applications of Black76 to caplets/floorlets instead of just European
    options delivered at expiry.

    Parameters
    ----------
    F : float
        Forward rate.
    tau : float
        Time to expiry (in years).
    cp : int
        Option type: 1 for caplet (call), -1 for floorlet (put).
    K : float
        Strike.
    vol_sln : float
        Volatility (annualized).
    ln_shift : float
        Log-normal shift, applied to forward and strike.
    annuity_factor : float, optional
        Multiplier to adjust the Black76 forward price to present value (default is 1).
        This is composed of the discount factor and the accrual period fraction.
    intrinsic_time_split : bool, optional
        If True, splits option value into intrinsic and time value components (default is False).
    analytical_greeks : bool, optional
        If True, analytical greeks will be calculated and returned (default is False).
    numerical_greeks : bool, optional
        If True, numerical greeks will be calculated and returned using finite differences (default is False).

    Returns
    -------
    results : dict
          Dictionary containing the following key-value pairs:
        - 'price' : np.array
            Option price.
        - 'analytical_greeks' : pd.DataFrame
            Analytical greeks; columns: 'delta', 'vega'. Vega is normalised to a 1% volatility move.
        - 'numerical_greeks' : pd.DataFrame
            Numerical greeks; columns: 'delta', 'vega'.
        - 'intrinsic', 'time' : np.array
            Intrinsic and time value components.
    """

    # Convert to arrays. Function is vectorised.
    F, tau, cp, K, σB, ln_shift, annuity_factor = map(np.atleast_1d, (F, tau, cp, K, vol_sln, ln_shift, annuity_factor))

    # Validation checks
    assert F.shape == tau.shape
    shapes = set([param.shape for param in (F, tau, cp, K, σB, ln_shift, annuity_factor)])
    assert len(shapes) in [1, 2]
    if len(shapes) == 2:
        assert (1,) in shapes

    F_shifted = F + ln_shift
    K_shifted = K + ln_shift

    # Price per Black76 formula
    d1 = (np.log(F_shifted/K_shifted) + (0.5 * σB**2 * tau)) / (σB*np.sqrt(tau))
    d2 = d1 - σB*np.sqrt(tau)
    X = annuity_factor * cp * (F_shifted * norm.cdf(cp * d1) - K_shifted * norm.cdf(cp * d2))

    results = {'price': X}

    # Intrinsic / time value split
    if intrinsic_time_split:
        intrinsic = np.full_like(X, np.nan)
        intrinsic[tau>0] = (annuity_factor * np.maximum(0, cp * (F_shifted - K_shifted)) * np.ones_like(X))[tau>0]
        intrinsic[tau==0] = X[tau==0]
        results['intrinsic'] = intrinsic
        results['time'] = X - intrinsic

    if analytical_greeks:
        results['analytical_greeks'] = pd.DataFrame()
        results['analytical_greeks']['delta'] = cp * norm.cdf(cp * d1) * annuity_factor

        analytical_vega = F_shifted * np.sqrt(tau) * norm.pdf(d1)
        # In practice, vega is displayed as normalised to a 1% shift.
        results['analytical_greeks']['vega'] = vega_normalisation * analytical_vega * annuity_factor

    if numerical_greeks:
        results['numerical_greeks'] = pd.DataFrame()

        # Δ := ∂X/∂F ≈ (X(F_plus) − X(F_minus)) / (F_plus - F_minus)
        Δ_shift = 0.0001
        X_F_plus = black76_price(F=F+Δ_shift, tau=tau, cp=cp, K=K, vol_sln=σB, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        X_F_minus = black76_price(F=F-Δ_shift, tau=tau, cp=cp, K=K, vol_sln=σB, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        results['numerical_greeks']['delta'] = (X_F_plus - X_F_minus) / (2 * Δ_shift)

        # ν = ∂X/∂σ ≈ (X(σ_plus) − X(σ_minus)) / (σ_plus - σ_minus), normalised to a 1% change in volatility.
        σ_shift = 0.0001
        X_σ_plus = black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=σB+σ_shift, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        X_σ_minus = black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=σB-σ_shift, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        results['numerical_greeks']['vega'] = vega_normalisation * (X_σ_plus - X_σ_minus) / (2 * σ_shift)

    return results


def black76_solve_implied_vol(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        ln_shift: [float, np.array],
        X: float,
        vol_sln_guess: float=0.1,
        annuity_factor: [float, np.array]=1,
        ) -> float:
    """
    Solve the single (flat) log-normal volatility which reprices X.
    If arrays are passed, X is matched against the sum of the option prices, i.e. a cap/floor price.
    """

    def error_function(vol_):
        # Relative to the price, as we want invariance to the price.
        relative_error = (black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=vol_, ln_shift=ln_shift, annuity_factor=annuity_factor)['price'].sum() - X) / X
        error = relative_error**power
        if abs(error) < obj_func_tol**power:
            raise StopIteration(vol_)
        return error

    # Prices to be within 0.001%; i.e. if price is 100,000, acceptable range is (99999, 100001)
    xtol = 1e-6
    obj_func_tol = 1e-5
    x0 = vol_sln_guess
    bounds = VOL_SLN_BOUNDS

    # Brent's method does not work for a SSE obj. function as f(a) and f(b) must have different signs.
    try:
        power = 1
        res = root_scalar(lambda vol_: error_function(vol_), x0=x0, bracket=bounds, xtol=xtol, method='brentq')
        if abs(error_function(res.root)) < obj_func_tol**power:
            return res.root
        else:
            raise RuntimeError
    except StopIteration as e:
        return np.atleast_1d(e.value).item()
    except (RuntimeError, ValueError):
        try:
            # Fallback to L-BFGS-B if root_scalar fails
            options = {'ftol': obj_func_tol, 'gtol': 0}
            power = 2
            res = minimize(fun=error_function, x0=np.atleast_1d(x0), bounds=[bounds], method='L-BFGS-B', options=options)
            if res.success or abs(res.fun) < obj_func_tol**power:
                return res.x[0]
            else:
                raise ValueError('Optimisation to solve log-normal volatility did not converge.')
        except StopIteration as e:
            return np.atleast_1d(e.value).item()


def bachelier_price(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        vol_n: [float, np.array],
        annuity_factor: [float, np.array] = 1,
        intrinsic_time_split: bool=False,
        analytical_greeks: bool=False,
        numerical_greeks: bool=False):
    """
    Bachelier pricing + greeks.

    The function has the parameters 'annuity_factor' instead of a risk-free rate.

    Parameters
    ----------
    F : float
        Forward rate.
    tau : float
        Time to expiry (in years).
    cp : int
        Option type: 1 for caplet (call), -1 for floorlet (put).
    K : float
        Strike.
    vol_n : float
        Normal volatility (annualized).
    annuity_factor : float, optional
        Multiplier to adjust the forward price to present value (default is 1).
    intrinsic_time_split : bool, optional
        If True, splits option value into intrinsic and time value components (default is False).
    analytical_greeks : bool, optional
        If True, analytical greeks will be calculated and returned (default is False).
    numerical_greeks : bool, optional
        If True, numerical greeks will be calculated and returned using finite differences (default is False).

    Returns
    -------
    results : dict
        'price', and optionally 'analytical_greeks' / 'numerical_greeks' DataFrames with 'delta', 'vega'
        (vega normalised to a 1bp volatility move) and 'theta' (analytical only, per calendar day).
    """

    # Convert to arrays. Function is vectorised.
    F, tau, cp, K, σN, annuity_factor = map(np.atleast_1d, (F, tau, cp, K, vol_n, annuity_factor))

    # Validation checks
    assert F.shape == tau.shape
    shapes = set([param.shape for param in (F, tau, cp, K, σN, annuity_factor)])
    assert len(shapes) in [1, 2]
    if len(shapes) == 2:
        assert (1,) in shapes

    # Price per Bachelier formula
    d = (F - K) / (σN * np.sqrt(tau))
    X = annuity_factor * ( cp * (F - K) * norm.cdf(cp * d) + σN * np.sqrt(tau) * norm.pdf(d) )

    results = {'price': X}

    if intrinsic_time_split:
        intrinsic = np.full_like(X, np.nan)
        intrinsic[tau>0] = (annuity_factor * np.maximum(0, cp * (F - K)) * np.ones_like(X))[tau>0]
        intrinsic[tau==0] = X[tau==0]
        results['intrinsic'] = intrinsic
        results['time'] = X - intrinsic

    if analytical_greeks:
        results['analytical_greeks'] = pd.DataFrame()
        results['analytical_greeks']['delta'] = cp * norm.cdf(cp * d) * annuity_factor

        # Market convention is to adjust normal vega to a 1 basis point impact.
        results['analytical_greeks']['vega'] = np.sqrt(tau) * norm.pdf(cp * d) * annuity_factor * dv01_adjustment

        # Normalised to 1 calendar day.
        results['analytical_greeks']['theta'] = (-0.5 * norm.pdf(d) * σN / np.sqrt(tau)) * annuity_factor / (1/365.25)

    if numerical_greeks:
        results['numerical_greeks'] = pd.DataFrame()

        Δ_shift = 0.0001
        X_F_plus = bachelier_price(F=F+Δ_shift, tau=tau, cp=cp, K=K, vol_n=σN, annuity_factor=annuity_factor)['price']
        X_F_minus = bachelier_price(F=F-Δ_shift, tau=tau, cp=cp, K=K, vol_n=σN, annuity_factor=annuity_factor)['price']
        results['numerical_greeks']['delta'] = (X_F_plus - X_F_minus) / (2 * Δ_shift)

        σ_shift = 0.000001
        X_σ_plus = bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=σN+σ_shift, annuity_factor=annuity_factor)['price']
        X_σ_minus = bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=σN-σ_shift, annuity_factor=annuity_factor)['price']
        results['numerical_greeks']['vega'] = dv01_adjustment * (X_σ_plus - X_σ_minus) / (2 * σ_shift)

    return results


def bachelier_solve_implied_vol(
        F: [float, np.array],
        tau: [float, np.array],
        cp: [float, np.array],
        K: [float, np.array],
        X: float,
        vol_n_guess: float=0.01,
        annuity_factor: [float, np.array]=1,
        ) -> float:
    """Solve the single (flat) normal volatility which reprices X with the Bachelier formula."""

    def error_function(vol_):
        relative_error = (bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=vol_, annuity_factor=annuity_factor)['price'].sum() - X) / X
        error = relative_error**power
        if abs(error) < obj_func_tol**power:
            raise StopIteration(vol_)
        return error

    xtol = 1e-6
    obj_func_tol = 1e-5
    x0 = vol_n_guess
    bounds = VOL_N_BOUNDS

    try:
        power = 1
        res = root_scalar(lambda vol_: error_function(vol_), x0=x0, bracket=bounds, xtol=xtol, method='brentq')
        if abs(error_function(res.root)) < obj_func_tol**power:
            return res.root
        else:
            raise RuntimeError
    except StopIteration as e:
        return np.atleast_1d(e.value).item()
    except (RuntimeError, ValueError):
        try:
            options = {'ftol': obj_func_tol, 'gtol': 0}
            power = 2
            res = minimize(fun=error_function, x0=np.atleast_1d(x0), bounds=[bounds], method='L-BFGS-B', options=options)
            if res.success or abs(res.fun) < obj_func_tol**power:
                return res.x[0]
            else:
                raise ValueError('Optimisation to solve normal volatility did not converge.')
        except StopIteration as e:
            return np.atleast_1d(e.value).item()


def black76_sln_to_normal_vol_analytical(
        F: float,
        tau: float,
        K: float,
        vol_sln: float,
        ln_shift: float
    ):
    """
    Calculates the normal volatility from the Black76 log-normal volatility.

    References:
    [1] Hagan, Patrick & Lesniewski, Andrew & Woodward, Diana. (2002). Managing Smile Risk. Wilmott Magazine. 1. 84-108.
    """
    F = F + ln_shift
    K = K + ln_shift
    σB = vol_sln

    # Per B.64 in reference [1]. Slightly more accurate than B.63.
    ln_F_K = np.log(F / K)
    σN = σB * np.sqrt(F*K) \
         * (1 + (1/24) * ln_F_K**2 + 1/1920 * ln_F_K**4) \
         / (1 + (1/24) * (1 - (1/120) * ln_F_K**2) * σB**2 * tau + (1/5760) * σB**4 * tau**2)
    return σN


def black76_sln_to_normal_vol(
        F: float,
        tau: float,
        K: float,
        vol_sln: float,
        ln_shift: float
    ) -> float:

    # If the forward and strike are equal, we can equate the Black76 & Bachelier formulae, and solve analytically.
    if abs(F - K) < 1e-10:
        F = F + ln_shift
        res = (2.0 * F * norm.cdf((vol_sln * np.sqrt(tau)) / 2.0) - F) / (np.sqrt(tau) * norm.pdf(0))
    else:
        # This solve is invariant to the call/put perspective and the annuity factor.
        cp = 1
        black76_px = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_sln, ln_shift=ln_shift)['price'][0]
        vol_n_guess = np.atleast_1d(black76_sln_to_normal_vol_analytical(F=F, tau=tau, K=K, vol_sln=vol_sln, ln_shift=ln_shift))
        res = bachelier_solve_implied_vol(F=F, tau=tau, cp=cp, K=K, X=black76_px, vol_n_guess=vol_n_guess.item())
    return np.atleast_1d(res).item()


def shift_black76_vol(
        F: [float, np.float64],
        tau: [float, np.float64],
        K: [float, np.float64],
        vol_sln: [float, np.float64],
        from_ln_shift: [float, np.float64],
        to_ln_shift: [float, np.float64]
    ):

    if from_ln_shift == to_ln_shift:
        return vol_sln

    # The solve is invariant to the call/put perspective and the annuity factor.
    cp = 1
    black76_px = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_sln, ln_shift=from_ln_shift)['price'][0]

    def obj_func_relative_px_error(vol_new_ln_shift):
        # Squared relative error, for differentiability.
        return ((black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_new_ln_shift, ln_shift=to_ln_shift)['price'][0] - black76_px) / black76_px)**2

    # Prices to be within 0.001%; ftol is (0.001%)**2 due to the squaring of the relative error.
    obj_func_tol = 1e-5 ** 2
    options = {'ftol': obj_func_tol, 'gtol': 0}
    res = minimize(fun=obj_func_relative_px_error,
                   x0=np.atleast_1d(vol_sln * ((F + from_ln_shift) / (F + to_ln_shift))),
                   bounds=[VOL_SLN_BOUNDS],
                   method='L-BFGS-B',
                   options=options)
    if res.success or abs(res.fun) < obj_func_tol:
        return res.x[0]
    else:
        vol_new_ln_shift = res.x[0]
        black76_px_shifted = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_new_ln_shift, ln_shift=to_ln_shift)['price'][0]
        logger.error({'F': F, 'tau': tau, 'K': K, 'vol_sln': vol_sln, 'from_ln_shift': from_ln_shift, 'to_ln_shift': to_ln_shift,
                      'black76_px': black76_px, 'black76_px_shifted': black76_px_shifted, 'vol_new_ln_shift': vol_new_ln_shift})
        raise ValueError('Optimisation to shift Black76 volatility did not converge.')


def normal_vol_atm_to_black76_sln_atm(
        F: [float, np.float64, np.array],
        tau: [float, np.float64, np.array],
        vol_n_atm: [float, np.float64, np.array],
        ln_shift: [float, np.float64, np.array]):
    F = F + ln_shift
    return (2.0 / np.sqrt(tau)) * norm.ppf((vol_n_atm * np.sqrt(tau) * norm.pdf(0) + F) / (2.0 * F))


def normal_vol_to_black76_sln(
        F: [float, np.float64],
        tau: [float, np.float64],
        K: [float, np.float64],
        vol_n: [float, np.float64],
        ln_shift: [float, np.float64]
    ) -> float:
    # If the forward and strike are equal, we use an analytical solution from equating the Black76 & Bachelier formulae
    if abs(F - K) < 1e-10:
        return np.atleast_1d(normal_vol_atm_to_black76_sln_atm(F=F, tau=tau, vol_n_atm=vol_n, ln_shift=ln_shift)).item()

    # The solve is invariant to the annuity factor and the call/put perspective.
    cp = 1
    bachelier_px = bachelier_price(F=F, tau=tau, K=K, cp=cp, vol_n=vol_n)['price'][0]

    def obj_func_relative_px_error(vol_sln):
        return ((bachelier_px - black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_sln, ln_shift=ln_shift)['price'][0]) / bachelier_px)**2

    obj_func_tol = 1e-5 ** 2
    options = {'ftol': obj_func_tol, 'gtol': 0}
    res = minimize(fun=obj_func_relative_px_error,
                   x0=np.atleast_1d(vol_n / (F + ln_shift)),
                   bounds=[VOL_SLN_BOUNDS],
                   method='L-BFGS-B',
                   options=options)
    if res.success or abs(res.fun) < obj_func_tol:
        return res.x[0]
    else:
        vol_sln = res.x[0]
        black76_px = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=vol_sln, ln_shift=ln_shift)['price'][0]
        logger.error({'F': F, 'tau': tau, 'K': K, 'vol_n': vol_n, 'ln_shift': ln_shift,
                      'bachelier_px': bachelier_px, 'black76_px': black76_px, 'vol_sln': vol_sln})
        raise ValueError('Optimisation to convert normal volatility to log-normal volatility did not converge.')
