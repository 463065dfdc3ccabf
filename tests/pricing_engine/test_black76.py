# -*- coding: utf-8 -*-
import os

if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import numpy as np
import pytest
from capvol.enums import VolConvention
from capvol.pricing_engine.black76_bachelier import (black76_price,
                                                     bachelier_price,
                                                     black76_solve_implied_vol,
                                                     bachelier_solve_implied_vol,
                                                     shift_black76_vol,
                                                     black76_sln_to_normal_vol_analytical,
                                                     black76_sln_to_normal_vol,
                                                     normal_vol_to_black76_sln)
from capvol.pricing_engine.optionlet import price_optionlets
from capvol.utils.exceptions import SurfaceEvaluationError


def test_black76_bachelier():
    F = 4.47385 / 100
    tau = 0.758904109589041
    K = 4 / 100

    cp = 1
    px = 0.005984
    px_black76 = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=0.2074, ln_shift=0)['price']
    px_bachelier = bachelier_price(F=F, tau=tau, K=K, cp=cp, vol_n=0.8767/100)['price']
    assert abs(px_black76 - px) < 1e-6
    assert abs(px_bachelier - px) < 1e-6

    cp = -1
    px = 0.001246
    px_black76 = black76_price(F=F, tau=tau, K=K, cp=cp, vol_sln=0.2074, ln_shift=0)['price']
    px_bachelier = bachelier_price(F=F, tau=tau, K=K, cp=cp, vol_n=0.8767/100)['price']
    assert abs(px_black76 - px) < 1e-6
    assert abs(px_bachelier - px) < 1e-6


def test_put_call_parity():
    F = np.array([0.02, 0.03, 0.045])
    tau = np.array([0.5, 1.5, 4.75])
    K = np.array([0.025, 0.03, 0.04])
    annuity_factor = np.array([0.25, 0.24, 0.22])

    for ln_shift in [0.0, 0.01]:
        call = black76_price(F=F, tau=tau, cp=1, K=K, vol_sln=0.3, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        put = black76_price(F=F, tau=tau, cp=-1, K=K, vol_sln=0.3, ln_shift=ln_shift, annuity_factor=annuity_factor)['price']
        assert np.allclose(call - put, annuity_factor * (F - K), atol=1e-14)

    call = bachelier_price(F=F, tau=tau, cp=1, K=K, vol_n=0.009, annuity_factor=annuity_factor)['price']
    put = bachelier_price(F=F, tau=tau, cp=-1, K=K, vol_n=0.009, annuity_factor=annuity_factor)['price']
    assert np.allclose(call - put, annuity_factor * (F - K), atol=1e-14)


def test_analytical_vs_numerical_vega():
    F = np.array([0.02, 0.03, 0.045])
    tau = np.array([0.5, 1.5, 4.75])
    K = np.array([0.025, 0.03, 0.04])
    cp = np.array([1, 1, -1])

    for ln_shift in [0.0, 0.02]:
        results = black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=0.25, ln_shift=ln_shift,
                                analytical_greeks=True, numerical_greeks=True)
        assert np.allclose(results['analytical_greeks']['vega'], results['numerical_greeks']['vega'], rtol=1e-6)

    results = bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=0.01, analytical_greeks=True, numerical_greeks=True)
    assert np.allclose(results['analytical_greeks']['vega'], results['numerical_greeks']['vega'], rtol=1e-6)


def test_shift_black76_vol():
    F = 4.47385 / 100
    tau = 0.758904109589041
    K = 4 / 100

    vol_to_shift = shift_black76_vol(F=F, tau=tau, K=K, vol_sln=0.2074, from_ln_shift=0, to_ln_shift=0.02)
    assert abs(vol_to_shift - 0.1407) < 1e-4

    vol_to_shift = shift_black76_vol(F=F, tau=tau, K=K, vol_sln=0.1407, from_ln_shift=0.02, to_ln_shift=0)
    assert abs(vol_to_shift - 0.2074) < 1e-4

    vol_to_shift = shift_black76_vol(F=F, tau=tau, K=K, vol_sln=0.2074, from_ln_shift=0, to_ln_shift=0.01)
    assert abs(vol_to_shift - 0.1677) < 1e-4

    # No shift change returns the input
    assert shift_black76_vol(F=F, tau=tau, K=K, vol_sln=0.2074, from_ln_shift=0.01, to_ln_shift=0.01) == 0.2074


def test_black76_sln_to_normal_vol():
    F = 4.47385 / 100
    tau = 0.758904109589041
    K = 4 / 100

    for vol_sln, ln_shift, vol_n in [(0.2074, 0, 0.008766291621773826),
                                     (0.1677, 0.01, 0.008768530296484415),
                                     (0.1407, 0.02, 0.008765643554332224)]:
        normal_vol_analytical = black76_sln_to_normal_vol_analytical(F=F, tau=tau, K=K, vol_sln=vol_sln, ln_shift=ln_shift)
        normal_vol_numerical = black76_sln_to_normal_vol(F=F, tau=tau, K=K, vol_sln=vol_sln, ln_shift=ln_shift)
        assert abs(normal_vol_analytical - vol_n) < 1e-6
        assert abs(normal_vol_numerical - vol_n) < 1e-6


def test_normal_vol_to_black76_sln():
    F = 4.47385 / 100
    tau = 0.758904109589041
    K = 4 / 100
    vol_n = 87.67 / 10000

    vol_sln = normal_vol_to_black76_sln(F=F, tau=tau, K=K, vol_n=vol_n, ln_shift=0)
    assert abs(vol_sln - 0.2074) < 1e-3 # Needs slightly higher tolerance.

    vol_sln = normal_vol_to_black76_sln(F=F, tau=tau, K=K, vol_n=vol_n, ln_shift=0.01)
    assert abs(vol_sln - 0.1677) < 1e-4

    vol_sln = normal_vol_to_black76_sln(F=F, tau=tau, K=K, vol_n=vol_n, ln_shift=0.02)
    assert abs(vol_sln - 0.1407) < 1e-4

    # At the money, analytical
    vol_sln = normal_vol_to_black76_sln(F=F, tau=tau, K=F, vol_n=vol_n, ln_shift=0)
    px_black76 = black76_price(F=F, tau=tau, K=F, cp=1, vol_sln=vol_sln, ln_shift=0)['price'][0]
    px_bachelier = bachelier_price(F=F, tau=tau, K=F, cp=1, vol_n=vol_n)['price'][0]
    assert abs(px_black76 / px_bachelier - 1) < 1e-10


def test_solve_implied_vol_of_a_strip():
    F = np.array([0.030, 0.032, 0.034, 0.035])
    tau = np.array([0.25, 0.5, 0.75, 1.0])
    annuity_factor = np.array([0.249, 0.247, 0.245, 0.243])
    cp = np.ones(4)
    K = np.full(4, 0.033)

    X = black76_price(F=F, tau=tau, cp=cp, K=K, vol_sln=0.31, ln_shift=0, annuity_factor=annuity_factor)['price'].sum()
    vol_sln = black76_solve_implied_vol(F=F, tau=tau, cp=cp, K=K, ln_shift=0, X=X, vol_sln_guess=0.2, annuity_factor=annuity_factor)
    assert abs(vol_sln - 0.31) < 1e-4

    X = bachelier_price(F=F, tau=tau, cp=cp, K=K, vol_n=0.0095, annuity_factor=annuity_factor)['price'].sum()
    vol_n = bachelier_solve_implied_vol(F=F, tau=tau, cp=cp, K=K, X=X, vol_n_guess=0.01, annuity_factor=annuity_factor)
    assert abs(vol_n - 0.0095) < 1e-6


def test_price_optionlets():
    F = np.array([0.02, 0.03])
    tau = np.array([0.5, 1.5])
    K = np.array([0.025, 0.03])
    cp = np.array([1, -1])
    annuity_factor = np.array([0.25, 0.24])

    px, vega = price_optionlets(VolConvention.BLACK, F, tau, cp, K, np.array([0.3, 0.3]), annuity_factor, vega=True)
    h = 1e-6
    px_up = price_optionlets(VolConvention.BLACK, F, tau, cp, K, np.array([0.3 + h, 0.3 + h]), annuity_factor)
    px_down = price_optionlets(VolConvention.BLACK, F, tau, cp, K, np.array([0.3 - h, 0.3 - h]), annuity_factor)
    assert np.allclose(vega, (px_up - px_down) / (2 * h), rtol=1e-6)

    px, vega = price_optionlets(VolConvention.NORMAL, F, tau, cp, K, np.array([0.01, 0.01]), annuity_factor, vega=True)
    px_up = price_optionlets(VolConvention.NORMAL, F, tau, cp, K, np.array([0.01 + h, 0.01 + h]), annuity_factor)
    px_down = price_optionlets(VolConvention.NORMAL, F, tau, cp, K, np.array([0.01 - h, 0.01 - h]), annuity_factor)
    assert np.allclose(vega, (px_up - px_down) / (2 * h), rtol=1e-6)

    # Negative strike is only admissible for Black with a large enough shift
    K = np.array([-0.005, 0.03])
    with pytest.raises(SurfaceEvaluationError):
        price_optionlets(VolConvention.BLACK, F, tau, cp, K, np.array([0.3, 0.3]), annuity_factor)
    px = price_optionlets(VolConvention.SHIFTED_BLACK, F, tau, cp, K, np.array([0.3, 0.3]), annuity_factor, shift=0.01)
    assert (px > 0).all()


if __name__ == "__main__":
    test_black76_bachelier()
    test_put_call_parity()
    test_analytical_vs_numerical_vega()
    test_shift_black76_vol()
    test_black76_sln_to_normal_vol()
    test_normal_vol_to_black76_sln()
    test_solve_implied_vol_of_a_strip()
    test_price_optionlets()
