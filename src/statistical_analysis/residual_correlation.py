"""
Partial association between two measures via regression residuals.

Both measures are regressed on the same covariates with ordinary least
squares, and the residuals are then correlated. The slope p-value of
residual(A) ~ residual(B) equals the p-value of the Pearson correlation on
the residuals.
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.stats import pearsonr

logger = logging.getLogger(__name__)

# Residuals smaller than this fraction of the data scale are treated as zero
RESIDUAL_TOLERANCE = 1e-9
MIN_OBSERVATIONS = 3


@dataclass
class ResidualCorrelationResult:
    """Outcome of one residual correlation analysis."""

    measure_a: str
    measure_b: str
    covariates: list = field(default_factory=list)
    n: int = 0
    r: float = np.nan
    slope: float = np.nan
    intercept: float = np.nan
    p_value: float = np.nan
    residuals: pd.DataFrame = None
    label: str = None

    @property
    def is_defined(self) -> bool:
        return not np.isnan(self.r)

    def interpretation(self, alpha: float = 0.05) -> str:
        """One-sentence reading of the result."""
        controls = ", ".join(self.covariates) if self.covariates else "nothing"
        if not self.is_defined:
            return (
                f"After controlling for {controls}, the association between {self.measure_a} "
                f"and {self.measure_b} could not be estimated (n = {self.n})."
            )
        if self.p_value < alpha:
            verdict = "were significantly " + ("positively" if self.r > 0 else "negatively")
        else:
            verdict = "were not significantly"
        return (
            f"After controlling for {controls}, {self.measure_a} and {self.measure_b} "
            f"{verdict} associated "
            f"(r = {self.r:.2f}, p = {self.p_value:.4f}, n = {self.n})."
        )


def _fit_residuals(subset, outcome, covariates):
    """Residuals (observed - fitted) of outcome ~ const + covariates."""
    exog = sm.add_constant(subset[covariates].astype(float), has_constant="add")
    model = sm.OLS(subset[outcome].astype(float), exog).fit()
    return subset[outcome] - model.fittedvalues


def _is_zero(residuals, observed):
    scale = max(1.0, float(np.abs(observed).max()))
    return bool(np.all(np.abs(residuals) <= RESIDUAL_TOLERANCE * scale))


def residual_correlation(df, measure_a, measure_b, covariates=(), label=None):
    """
    Correlate two measures after removing the linear effect of covariates.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned subject table. It is not modified.
    measure_a : str
        First measure (e.g. a neurotransmitter ratio).
    measure_b : str
        Second measure (e.g. retina structure index).
    covariates : sequence of str
        Columns regressed out of both measures.
    label : str, optional
        Display name for the analysis.

    Returns
    -------
    ResidualCorrelationResult
        ``n`` is the number of rows complete on all involved columns. ``r``,
        ``slope`` and ``p_value`` are NaN when fewer than 3 rows remain or
        when either residual vector is identically zero.
    """
    covariates = list(covariates)
    columns = [measure_a, measure_b] + covariates
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found in data: {missing}")

    subset = df[columns].dropna().copy()
    n = len(subset)
    result = ResidualCorrelationResult(
        measure_a=measure_a,
        measure_b=measure_b,
        covariates=covariates,
        n=n,
        label=label,
    )

    if n < MIN_OBSERVATIONS:
        logger.warning(
            f"{measure_a} vs {measure_b}: only {n} complete row(s), correlation is undefined"
        )
        result.residuals = pd.DataFrame(
            {measure_a: pd.Series(dtype=float), measure_b: pd.Series(dtype=float)}
        )
        return result

    resid_a = _fit_residuals(subset, measure_a, covariates)
    resid_b = _fit_residuals(subset, measure_b, covariates)
    result.residuals = pd.DataFrame({measure_a: resid_a, measure_b: resid_b})

    if _is_zero(resid_a, subset[measure_a]) or _is_zero(resid_b, subset[measure_b]):
        logger.warning(
            f"{measure_a} vs {measure_b}: residuals are zero after controlling for "
            f"{covariates}, correlation is undefined"
        )
        return result

    r, _ = pearsonr(resid_a.to_numpy(), resid_b.to_numpy())

    fit = sm.OLS(resid_a, sm.add_constant(resid_b, has_constant="add")).fit()
    result.r = float(np.clip(r, -1.0, 1.0))
    result.slope = float(fit.params.iloc[1])
    result.intercept = float(fit.params.iloc[0])
    result.p_value = float(fit.pvalues.iloc[1])

    logger.info(
        f"{measure_a} vs {measure_b} controlling for {covariates}: "
        f"r={result.r:.4f}, p={result.p_value:.4f}, n={n}"
    )
    return result


def run_residual_analyses(df, analyses) -> dict:
    """
    Run ``residual_correlation`` for each analysis definition.

    Returns
    -------
    dict
        Mapping of analysis name to ``ResidualCorrelationResult``.

    Raises
    ------
    ValueError
        If two analyses share a name.
    """
    out = {}
    for analysis in analyses:
        if analysis.name in out:
            raise ValueError(f"Duplicate analysis name: '{analysis.name}'")
        out[analysis.name] = residual_correlation(
            df,
            analysis.measure_a,
            analysis.measure_b,
            covariates=analysis.covariates,
            label=analysis.name,
        )
    return out
