# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import logging
import time
import numpy as np
import scipy.linalg

from capvol.calibration.residuals import ResidualAssembler
from capvol.utils import settings

logger = logging.getLogger(__name__)


class SolverStatus(Enum):
    INITIALIZING = 'initializing'
    ITERATING = 'iterating'
    CONVERGED = 'converged'
    FAILED = 'failed'


@dataclass(frozen=True)
class SolverSettings:
    """
    Parameters
    ----------
    max_iterations : int
        Ceiling on the number of trial steps (accepted or rejected).
    ftol : float
        Converged when the actual and predicted relative decrease in the sum of squares are both below ftol,
        or when the sum of squares is below ftol**2 per residual.
    xtol : float
        Converged when the step norm is below xtol * (|x| + xtol).
    gtol : float
        Converged when the cosine between the residual vector and every Jacobian column is below gtol.
    initial_damping_factor : float
        Initial damping is initial_damping_factor * max(diag(J'J)).
    damping_ceiling : float
        Failed if the damping exceeds this value without an improving step.
    max_time : float, optional
        Wall clock budget in seconds, checked once per iteration.
    """
    max_iterations: int = settings.MAX_ITERATIONS
    ftol: float = settings.FTOL
    xtol: float = settings.XTOL
    gtol: float = settings.GTOL
    initial_damping_factor: float = settings.INITIAL_DAMPING_FACTOR
    damping_ceiling: float = settings.DAMPING_CEILING
    max_time: Optional[float] = settings.MAX_TIME_SECONDS

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"'max_iterations' must be positive, received {self.max_iterations}")
        for name in ('ftol', 'xtol', 'gtol'):
            if getattr(self, name) < 0:
                raise ValueError(f"'{name}' must be non-negative, received {getattr(self, name)}")
        if self.initial_damping_factor <= 0:
            raise ValueError(f"'initial_damping_factor' must be positive, received {self.initial_damping_factor}")


@dataclass
class SolverState:
    x: np.ndarray
    damping: float = np.nan
    nu: float = 2.0
    iteration: int = 0
    sse: float = np.nan
    data_sse: float = np.nan
    status: SolverStatus = SolverStatus.INITIALIZING
    sse_history: list = field(default_factory=list)
    message: str = ''

    def finish(self, status: SolverStatus, message: str):
        self.status = status
        self.message = message
        log = logger.debug if status == SolverStatus.CONVERGED else logger.warning
        log(f"Levenberg-Marquardt {status.value} after {self.iteration} iterations: {message} (sse={self.sse:.6e})")


class LevenbergMarquardtSolver:
    """
    Minimises the sum of squares of a ResidualAssembler's residuals over the surface node values.

    Each iteration solves (J'J + damping * I) dx = -J'r by Cholesky. A step is accepted if it decreases the
    sum of squares and keeps every node positive; the damping is then reduced by the gain ratio
    (Nielsen's update), otherwise it is multiplied by nu and nu doubles.
    """

    def __init__(self, settings: Optional[SolverSettings]=None):
        self.settings = SolverSettings() if settings is None else settings

    def solve(self, assembler: ResidualAssembler, x0: np.ndarray) -> SolverState:
        s = self.settings
        t1 = time.time()

        x = np.array(x0, dtype=float)
        if x.shape != (assembler.nb_parameters,):
            raise ValueError(f"'x0' has shape {x.shape}, expected ({assembler.nb_parameters},)")
        if (x <= 0).any():
            raise ValueError("Initial node values must be positive")

        state = SolverState(x=x)
        r, J = assembler.evaluate(x)
        self._update(state, assembler, x, r)

        if self._fits_to_rounding(state, r):
            state.finish(SolverStatus.CONVERGED, 'sum of squares is zero to rounding')
            return state

        # Without penalty rows a rank deficient Jacobian leaves the nodes undetermined
        if assembler.nb_penalty_rows == 0:
            rank = np.linalg.matrix_rank(J)
            if rank < len(x):
                state.finish(SolverStatus.FAILED, f'singular system, Jacobian rank {rank} is less than the {len(x)} parameters')
                return state

        JtJ, g = J.T @ J, J.T @ r
        if self._gradient_converged(J, r, g):
            state.finish(SolverStatus.CONVERGED, 'gradient below tolerance')
            return state

        state.damping = s.initial_damping_factor * np.max(np.diag(JtJ))
        state.status = SolverStatus.ITERATING
        identity = np.eye(len(x))

        while True:
            if state.iteration >= s.max_iterations:
                state.finish(SolverStatus.FAILED, f'iteration ceiling of {s.max_iterations} reached')
                return state
            if s.max_time is not None and time.time() - t1 > s.max_time:
                state.finish(SolverStatus.FAILED, f'time budget of {s.max_time}s spent')
                return state

            state.iteration += 1
            x, sse = state.x, state.sse

            try:
                dx = scipy.linalg.cho_solve(scipy.linalg.cho_factor(JtJ + state.damping * identity), -g)
            except np.linalg.LinAlgError:
                dx = None

            accepted = False
            if dx is not None and np.isfinite(dx).all():
                x_new = x + dx
                predicted = state.damping * (dx @ dx) - dx @ g
                step_norm = np.linalg.norm(dx)

                if (x_new > 0).all():
                    r_new, J_new = assembler.evaluate(x_new)
                    sse_new = float(r_new @ r_new)
                    actual = sse - sse_new
                    rho = actual / predicted if predicted > 0 else -1.0
                    accepted = actual > 0
                else:
                    actual, rho = -np.inf, -1.0

                logger.debug(f"iteration {state.iteration}: damping={state.damping:.3e}, step={step_norm:.3e}, "
                             f"rho={rho:.3e}, accepted={accepted}")

                if accepted:
                    r, J = r_new, J_new
                    JtJ, g = J.T @ J, J.T @ r
                    self._update(state, assembler, x_new, r)
                    state.damping *= max(1.0 / 3.0, 1.0 - (2.0 * rho - 1.0) ** 3)
                    state.nu = 2.0

                    if self._fits_to_rounding(state, r):
                        state.finish(SolverStatus.CONVERGED, 'sum of squares is zero to rounding')
                        return state
                    if self._gradient_converged(J, r, g):
                        state.finish(SolverStatus.CONVERGED, 'gradient below tolerance')
                        return state

                if abs(actual) <= s.ftol * sse and predicted <= s.ftol * sse and rho <= 2.0:
                    state.finish(SolverStatus.CONVERGED, 'relative decrease in sum of squares below tolerance')
                    return state
                if step_norm <= s.xtol * (np.linalg.norm(state.x) + s.xtol):
                    state.finish(SolverStatus.CONVERGED, 'step norm below tolerance')
                    return state

            if not accepted:
                state.damping *= state.nu
                state.nu *= 2.0
                if state.damping > s.damping_ceiling:
                    state.finish(SolverStatus.FAILED, f'damping exceeded the ceiling of {s.damping_ceiling:.1e} without improvement')
                    return state

    @staticmethod
    def _update(state: SolverState, assembler: ResidualAssembler, x: np.ndarray, r: np.ndarray):
        state.x = x
        state.sse = float(r @ r)
        state.data_sse = assembler.data_sse(r)
        state.sse_history.append(state.sse)

    def _fits_to_rounding(self, state: SolverState, r: np.ndarray) -> bool:
        return state.sse <= self.settings.ftol ** 2 * max(1, len(r))

    def _gradient_converged(self, J: np.ndarray, r: np.ndarray, g: np.ndarray) -> bool:
        column_norms = np.linalg.norm(J, axis=0)
        r_norm = np.linalg.norm(r)
        mask = column_norms > 0
        if r_norm == 0 or not mask.any():
            return r_norm == 0
        return np.max(np.abs(g[mask]) / (column_norms[mask] * r_norm)) <= self.settings.gtol
