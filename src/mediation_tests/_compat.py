"""Input compatibility layer for optional Polars support.

Fit requests carry their data as a ``pandas.DataFrame``.  This module
adds transparent support for Polars: a ``polars.DataFrame`` (or
``polars.LazyFrame``) is converted to pandas at the boundary so the
estimator, which works on NumPy arrays extracted from pandas, stays
unchanged.

It also normalises covariate overrides.  A moderator stratum may be
given as a plain mapping, a ``pandas.Series`` or a single-row frame
(pandas or Polars); all are reduced to a ``dict``.

Polars is **not** a required dependency.  If it is not installed, only
the pandas and mapping forms are accepted.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

# Polars is optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "data") -> pd.DataFrame:
    """Convert *obj* to a :class:`pandas.DataFrame` if necessary.

    Accepted types:
        * ``pandas.DataFrame`` — returned as-is.
        * ``polars.DataFrame`` — converted via ``.to_pandas()``.
        * ``polars.LazyFrame`` — collected then converted.

    Args:
        obj: A pandas or Polars DataFrame (or LazyFrame).
        name: Label used in error messages.

    Returns:
        A pandas ``DataFrame``.

    Raises:
        TypeError: If *obj* is not a recognised DataFrame type.
    """
    if isinstance(obj, pd.DataFrame):
        return obj

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            return obj.collect().to_pandas()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    raise TypeError(
        f"'{name}' must be a pandas DataFrame"
        + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f", got {type(obj).__name__}."
    )


def _to_native(value: Any) -> Any:
    """Unwrap NumPy scalars so overrides compare and print cleanly."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def _ensure_covariate_mapping(obj: Any, *, name: str = "covariates") -> dict[str, Any]:
    """Reduce a covariate override to a plain ``{column: value}`` dict.

    Accepted types:
        * ``None`` — an empty dict (no overrides).
        * Any ``Mapping`` with string keys.
        * ``pandas.Series`` — index labels become keys.
        * Single-row ``pandas.DataFrame`` or Polars frame.

    Raises:
        TypeError: If *obj* is none of the above.
        ValueError: If a frame has more than one row.
    """
    if obj is None:
        return {}
    if isinstance(obj, pd.Series):
        return {str(k): _to_native(v) for k, v in obj.items()}
    if isinstance(obj, Mapping):
        return {str(k): _to_native(v) for k, v in obj.items()}

    if isinstance(obj, pd.DataFrame) or (
        _HAS_POLARS and isinstance(obj, (pl.DataFrame, pl.LazyFrame))
    ):
        frame = _ensure_pandas_df(obj, name=name)
        if len(frame) != 1:
            raise ValueError(
                f"'{name}' must have exactly one row of covariate values, "
                f"got {len(frame)}."
            )
        return {str(k): _to_native(v) for k, v in frame.iloc[0].items()}

    raise TypeError(
        f"'{name}' must be a mapping, pandas Series or single-row DataFrame, "
        f"got {type(obj).__name__}."
    )
