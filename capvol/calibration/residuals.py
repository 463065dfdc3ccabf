# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional
import logging
import numpy as np

from capvol.calibration.pricing_adapter import CapFloorPricer
from capvol.term_structures.volatility_surface import VolatilitySurface

logger = logging.getLogger(__name__)


@dataclass
class ResidualAssembler:
    """
    Weighted residual vector and Jacobian of the calibration objective at a vector of surface node values.

    The first rows are the quote residuals (model value - market value) / error, one per usable quote, in the
    order of the pricer's quotes. The remaining rows are the penalty residuals, penalty @ x.
    If max_workers > 1 the quotes are split into chunks priced on a thread pool, each chunk writing its own rows.
    """
    pricer: CapFloorPricer
    market_values: np.ndarray
    market_errors: np.ndarray
    penalty: np.ndarray
    surface_template: VolatilitySurface
    max_workers: Optional[int] = None

    def __post_init__(self):
        self.market_values = np.asarray(self.market_values, dtype=float)
        self.market_errors = np.asarray(self.market_errors, dtype=float)
        self.penalty = np.asarray(self.penalty, dtype=float)

        assert self.market_values.shape == (self.pricer.nb_quotes,)
        assert self.market_errors.shape == (self.pricer.nb_quotes,)
        assert self.penalty.ndim == 2 and self.penalty.shape[1] == self.nb_parameters

    @property
    def nb_quotes(self) -> int:
        return self.pricer.nb_quotes

    @property
    def nb_parameters(self) -> int:
        return self.surface_template.parameter_count

    @property
    def nb_penalty_rows(self) -> int:
        return self.penalty.shape[0]

    @property
    def nb_residuals(self) -> int:
        return self.nb_quotes + self.nb_penalty_rows

    def surface(self, x: np.ndarray) -> VolatilitySurface:
        return self.surface_template.with_parameters(x)

    def _chunks(self) -> list[np.ndarray]:
        nb_chunks = min(self.max_workers or 1, self.nb_quotes)
        return [chunk for chunk in np.array_split(np.arange(self.nb_quotes), nb_chunks) if len(chunk) > 0]

    def _price_quotes(self, surface: VolatilitySurface, jacobian: bool):
        values = np.empty(self.nb_quotes)
        sensitivities = np.empty((self.nb_quotes, self.nb_parameters)) if jacobian else None

        def price_chunk(quote_nbs):
            rows = slice(None) if quote_nbs is None else quote_nbs
            if jacobian:
                values[rows], sensitivities[rows] = self.pricer.price_and_jacobian(surface, quote_nbs)
            else:
                values[rows] = self.pricer.price(surface, quote_nbs)

        chunks = self._chunks()
        if len(chunks) == 1:
            price_chunk(None)
        else:
            with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
                # result() re-raises any pricing error from the worker
                for future in [executor.submit(price_chunk, chunk) for chunk in chunks]:
                    future.result()

        return values, sensitivities

    def residuals(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        values, _ = self._price_quotes(self.surface(x), jacobian=False)
        return np.concatenate([(values - self.market_values) / self.market_errors, self.penalty @ x])

    def evaluate(self, x: np.ndarray):
        """Residual vector and Jacobian d(residuals)/d(x), of shape (nb_residuals, nb_parameters)."""
        x = np.asarray(x, dtype=float)
        values, sensitivities = self._price_quotes(self.surface(x), jacobian=True)
        r = np.concatenate([(values - self.market_values) / self.market_errors, self.penalty @ x])
        J = np.vstack([sensitivities / self.market_errors[:, None], self.penalty])
        return r, J

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        return self.evaluate(x)[1]

    def data_sse(self, r: np.ndarray) -> float:
        """Chi-square contribution of the quotes, from a residual vector."""
        return float(np.sum(r[:self.nb_quotes] ** 2))

    def penalty_sse(self, r: np.ndarray) -> float:
        return float(np.sum(r[self.nb_quotes:] ** 2))
