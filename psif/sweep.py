"""Sweep the fractionation model over the ``(q, p)`` grid.

Every grid point is an independent, pure evaluation
``(q, p) → coefficients → compositions → diagnostics``.  The driver
allocates one ``(len(q), len(p))`` array per named quantity up front and
fills it row by row: a row shares ``q`` (and therefore ``eb``), so the
position model is evaluated across all ``p`` of the row at once.  Rows can
be distributed over worker processes; each worker owns a disjoint row of
every result grid, so no coordination is needed beyond collecting them.

The main entry point :func:`run_sweep` returns a :class:`ResultGrids`
instance that downstream plotting or zone analysis consumes directly.
"""
from __future__ import annotations

import concurrent.futures
import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import CHAIN_LENGTHS, DEFAULT_REFERENCE, ReferenceConstants
from .errors import ConfigurationError, ModelError, SweepAborted
from .grid import GridAxes
from .physics.coefficients import FcClosure, solve_coefficients
from .physics.diagnostics import DiagnosticsBundle, evaluate_diagnostics
from .physics.positions import chain_compositions
from .runtime.progress import ProgressReporter
from .schema import Config
from .warnings import DegenerateCoefficientWarning

__all__ = [
    "ALTERNATE_QUANTITIES",
    "COEFFICIENT_NAMES",
    "QUANTITIES",
    "ResultGrids",
    "evaluate_point",
    "evaluate_row",
    "quantity_names",
    "run_from_config",
    "run_sweep",
]

logger = logging.getLogger(__name__)

COEFFICIENT_NAMES: Tuple[str, ...] = ("eb", "fc", "fd", "fe")
QUANTITIES: Tuple[str, ...] = (
    *COEFFICIENT_NAMES,
    *(f"d{n}_bulk" for n in CHAIN_LENGTHS),
    "d8_postdisprop",
    "pyr_S4",
    "pyr_S5",
    "pyr_S6",
    "diff_S8_pyrite",
    "ab_diff",
    "bc_diff",
    "cd_diff",
    "de_diff",
    "resid_d4",
    "resid_d5",
    "resid_d6",
    "resid_d7",
)
ALTERNATE_QUANTITIES: Tuple[str, ...] = ("diff_S8_pyrite_alt",)

AbortCallback = Callable[[], bool]


def quantity_names(include_alternates: bool = False) -> Tuple[str, ...]:
    """Names of the result grids produced by a sweep."""

    if include_alternates:
        return QUANTITIES + ALTERNATE_QUANTITIES
    return QUANTITIES


def evaluate_point(
    q: float,
    p: float,
    reference: ReferenceConstants = DEFAULT_REFERENCE,
    *,
    fc_closure: FcClosure = "S5",
    include_alternates: bool = False,
) -> DiagnosticsBundle:
    """Evaluate every named quantity at a single ``(q, p)``.

    Degenerate points (``eb == 0``) return non-finite values for everything
    that depends on ``fc``, ``fd`` or ``fe``; nothing is raised.
    """

    coeffs = solve_coefficients(q, p, reference, fc_closure=fc_closure)
    chains = chain_compositions(q, p, coeffs)
    bundle: DiagnosticsBundle = dict(coeffs.as_dict())
    bundle.update(evaluate_diagnostics(chains, reference, include_alternates=include_alternates))
    return bundle


def evaluate_row(
    q: float,
    p_values: Sequence[float] | np.ndarray,
    reference: ReferenceConstants = DEFAULT_REFERENCE,
    *,
    fc_closure: FcClosure = "S5",
    include_alternates: bool = False,
) -> Dict[str, np.ndarray]:
    """Evaluate one grid row (fixed ``q``) across all ``p_values``.

    Returns one array of ``len(p_values)`` per quantity; ``q``-only
    quantities such as ``eb`` are broadcast along the row.
    """

    p_arr = np.asarray(p_values, dtype=float)
    if p_arr.ndim != 1:
        raise ModelError("p_values must be one dimensional")
    bundle = evaluate_point(
        float(q),
        p_arr,
        reference,
        fc_closure=fc_closure,
        include_alternates=include_alternates,
    )
    return {name: np.broadcast_to(np.asarray(value, dtype=float), p_arr.shape).copy() for name, value in bundle.items()}


@dataclass(eq=False)
class ResultGrids:
    """Named 2D result arrays indexed by ``(q-index, p-index)``.

    Attributes
    ----------
    axes:
        The sweep axes; every array has shape ``axes.shape``.
    data:
        Mapping from quantity name to its result grid.
    reference:
        Reference values the sweep was evaluated with.
    fc_closure:
        Equation used for ``fc`` (``"S5"`` unless the alternate was requested).
    """

    axes: GridAxes
    data: Dict[str, np.ndarray]
    reference: ReferenceConstants = DEFAULT_REFERENCE
    fc_closure: str = "S5"
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allocate(
        cls,
        axes: GridAxes,
        names: Iterable[str],
        *,
        reference: ReferenceConstants = DEFAULT_REFERENCE,
        fc_closure: str = "S5",
    ) -> "ResultGrids":
        """Return grids of ``nan`` for every quantity in ``names``."""

        data = {name: np.full(axes.shape, np.nan, dtype=float) for name in names}
        return cls(axes=axes, data=data, reference=reference, fc_closure=fc_closure)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.axes.shape

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.data)

    def __getitem__(self, name: str) -> np.ndarray:
        try:
            return self.data[name]
        except KeyError:
            raise KeyError(f"unknown quantity {name!r}; available: {', '.join(self.data)}") from None

    def __contains__(self, name: object) -> bool:
        return name in self.data

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def store_row(self, i_q: int, row: Mapping[str, np.ndarray]) -> None:
        """Write one evaluated row into its cells of every grid."""

        for name, grid in self.data.items():
            grid[i_q, :] = row[name]

    @property
    def degenerate(self) -> np.ndarray:
        """Cells where ``eb == 0`` leaves ``fc``, ``fd`` and ``fe`` undefined."""

        return self.data["eb"] == 0.0

    def coefficients_finite(self) -> np.ndarray:
        return np.logical_and.reduce([np.isfinite(self.data[name]) for name in COEFFICIENT_NAMES])

    def physical_mask(self) -> np.ndarray:
        """Cells with finite coefficients and ``fc, fd, fe ≥ 1``."""

        finite = self.coefficients_finite()
        with np.errstate(invalid="ignore"):
            ge_one = np.logical_and.reduce([self.data[name] >= 1.0 for name in ("fc", "fd", "fe")])
        return finite & ge_one

    @property
    def out_of_domain(self) -> np.ndarray:
        """Finite cells where at least one of ``fc, fd, fe`` is below 1."""

        return self.coefficients_finite() & ~self.physical_mask()

    def finite_mask(self, name: str) -> np.ndarray:
        return np.isfinite(self[name])

    def masked(self, name: str, *, physical_only: bool = False) -> np.ma.MaskedArray:
        """Return ``name`` as a masked array hiding non-finite cells.

        With ``physical_only`` cells outside ``fc, fd, fe ≥ 1`` are hidden too.
        """

        values = self[name]
        mask = ~np.isfinite(values)
        if physical_only:
            mask |= ~self.physical_mask()
        return np.ma.MaskedArray(values, mask=mask)

    def to_frame(self, names: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Long-form table with one row per grid cell."""

        selected = list(names) if names is not None else list(self.data)
        Q, P = self.axes.mesh()
        i_q, i_p = np.indices(self.shape)
        columns: Dict[str, np.ndarray] = {
            "i_q": i_q.ravel(),
            "i_p": i_p.ravel(),
            "q": Q.ravel(),
            "p": P.ravel(),
        }
        for name in selected:
            columns[name] = self[name].ravel()
        return pd.DataFrame(columns)

    def summary(self) -> pd.DataFrame:
        """Finite/non-finite counts and finite-value statistics per quantity."""

        rows: List[Dict[str, Any]] = []
        for name, grid in self.data.items():
            finite = grid[np.isfinite(grid)]
            rows.append(
                {
                    "quantity": name,
                    "finite": int(finite.size),
                    "nonfinite": int(grid.size - finite.size),
                    "min": float(finite.min()) if finite.size else float("nan"),
                    "max": float(finite.max()) if finite.size else float("nan"),
                    "mean": float(finite.mean()) if finite.size else float("nan"),
                }
            )
        return pd.DataFrame(rows).set_index("quantity")


def _row_task(args: Mapping[str, Any]) -> Tuple[int, Dict[str, np.ndarray]]:
    """Worker helper evaluating a single q-row."""

    row = evaluate_row(
        float(args["q"]),
        np.asarray(args["p"], dtype=float),
        args["reference"],
        fc_closure=args["fc_closure"],
        include_alternates=bool(args["include_alternates"]),
    )
    return int(args["i_q"]), row


def _check_abort(should_abort: Optional[AbortCallback], rows_done: int, total: int) -> None:
    if should_abort is not None and should_abort():
        raise SweepAborted(f"sweep aborted after {rows_done}/{total} q-rows")


def _run_sequential(
    grids: ResultGrids,
    tasks: Sequence[Dict[str, Any]],
    reporter: ProgressReporter,
    should_abort: Optional[AbortCallback],
) -> None:
    total = len(tasks)
    for done, task in enumerate(tasks):
        _check_abort(should_abort, done, total)
        i_q, row = _row_task(task)
        grids.store_row(i_q, row)
        logger.debug("sweep row %d/%d q=%g", done + 1, total, task["q"])
        reporter.update(done + 1, float(task["q"]))


def _run_parallel(
    grids: ResultGrids,
    tasks: Sequence[Dict[str, Any]],
    reporter: ProgressReporter,
    should_abort: Optional[AbortCallback],
    jobs: int,
) -> None:
    total = len(tasks)
    executor = concurrent.futures.ProcessPoolExecutor(max_workers=jobs)
    try:
        futures = {executor.submit(_row_task, task): task for task in tasks}
        for done, future in enumerate(concurrent.futures.as_completed(futures), start=1):
            task = futures[future]
            try:
                i_q, row = future.result()
            except Exception as exc:
                raise RuntimeError(f"q-row {task['i_q']} (q={task['q']:g}) failed: {exc}") from exc
            grids.store_row(i_q, row)
            reporter.update(done, float(task["q"]))
            if done < total:
                _check_abort(should_abort, done, total)
    except BaseException:
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown(wait=True)


def _report_flags(grids: ResultGrids) -> None:
    degenerate = grids.degenerate
    n_degenerate = int(np.count_nonzero(degenerate))
    if n_degenerate:
        rows = np.flatnonzero(degenerate.any(axis=1))
        q_values = ", ".join(f"{grids.axes.q[i]:g}" for i in rows)
        message = (
            f"{n_degenerate} grid point(s) with eb == 0 (q = {q_values}); "
            "fc, fd, fe and dependent diagnostics are non-finite there"
        )
        logger.warning(message)
        warnings.warn(message, DegenerateCoefficientWarning, stacklevel=3)
    n_out = int(np.count_nonzero(grids.out_of_domain))
    if n_out:
        logger.info(
            "%d of %d grid points have fc, fd or fe < 1 (kept; see ResultGrids.physical_mask)",
            n_out,
            grids.axes.size,
        )
    finite = np.isfinite(grids["resid_d4"])
    if finite.any():
        logger.debug("max |d4 closure residual| = %.3e", float(np.max(np.abs(grids["resid_d4"][finite]))))


def run_sweep(
    axes: Optional[GridAxes] = None,
    reference: Optional[ReferenceConstants] = None,
    *,
    fc_closure: FcClosure = "S5",
    include_alternates: bool = False,
    jobs: int = 1,
    progress: bool = False,
    should_abort: Optional[AbortCallback] = None,
) -> ResultGrids:
    """Evaluate the model at every grid point.

    Args:
        axes: Sweep axes; defaults to the reference 90 × 100 grid.
        reference: Reference δ34S values; defaults to Amrani et al. (2006).
        fc_closure: ``"S5"`` (reference) or ``"S6"`` equation for ``fc``.
        include_alternates: Also store ``diff_S8_pyrite_alt``.
        jobs: Worker processes; ``1`` evaluates in-process.
        progress: Show a terminal progress bar.
        should_abort: Polled between rows; returning ``True`` stops the sweep.

    Returns:
        Result grids of shape ``axes.shape``.

    Raises:
        SweepAborted: If ``should_abort`` requested cancellation.
        ConfigurationError: If ``jobs`` is smaller than 1.
    """

    ref = reference or DEFAULT_REFERENCE
    grid_axes = axes or GridAxes.default(ref)
    if jobs < 1:
        raise ConfigurationError(f"jobs must be at least 1, got {jobs!r}")
    names = quantity_names(include_alternates)
    grids = ResultGrids.allocate(grid_axes, names, reference=ref, fc_closure=fc_closure)

    p_values = grid_axes.p
    tasks: List[Dict[str, Any]] = [
        {
            "i_q": i_q,
            "q": float(q),
            "p": p_values,
            "reference": ref,
            "fc_closure": fc_closure,
            "include_alternates": include_alternates,
        }
        for i_q, q in enumerate(grid_axes.q)
    ]
    n_q, n_p = grid_axes.shape
    logger.info(
        "sweep: %d x %d grid, q in [%g, %g], p in [%g, %g], fc closure %s, jobs=%d",
        n_q,
        n_p,
        grid_axes.q[0],
        grid_axes.q[-1],
        grid_axes.p[0],
        grid_axes.p[-1],
        fc_closure,
        jobs,
    )
    reporter = ProgressReporter(n_q, enabled=progress, points_per_row=n_p)
    if jobs == 1 or n_q == 1:
        _run_sequential(grids, tasks, reporter, should_abort)
    else:
        _run_parallel(grids, tasks, reporter, should_abort, min(jobs, n_q))
    reporter.finish(n_q, float(grid_axes.q[-1]))

    grids.metadata.update({"jobs": int(jobs), "points": grid_axes.size})
    _report_flags(grids)
    logger.info("sweep: evaluated %d grid points", grid_axes.size)
    return grids


def run_from_config(cfg: Config, *, should_abort: Optional[AbortCallback] = None) -> ResultGrids:
    """Run the sweep described by a validated :class:`~psif.schema.Config`."""

    reference = cfg.reference.to_constants()
    axes = GridAxes.from_config(cfg, reference)
    return run_sweep(
        axes,
        reference,
        fc_closure=cfg.model.fc_closure,
        include_alternates=cfg.diagnostics.include_alternates,
        jobs=cfg.sweep.jobs,
        progress=cfg.sweep.progress,
        should_abort=should_abort,
    )
