"""
Modeling Functions for the Bike Hire Usage Pipeline.

Fits gradient-boosted trees on the prepared datasets and extracts the
quantities used to interpret them.

Main Components
---------------
Hyperparameter Tuning:
    tune_model_bayes : Bayesian hyperparameter optimization over time-ordered CV splits

Training:
    train_gradient_boosting : Fit (and optionally tune) a GradientBoostingRegressor

Interpretation:
    feature_importance_table : Impurity-based importances, sorted
    partial_dependence_table : Average model response over a feature grid
"""
from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.inspection import partial_dependence
from skopt import BayesSearchCV
from skopt.space import Integer, Real

from . import config
from .splitting import get_cv_splits

DEFAULT_SEARCH_SPACE = {
    'n_estimators': Integer(100, 1000),
    'learning_rate': Real(0.005, 0.2, prior='log-uniform'),
    'max_depth': Integer(2, 8),
    'subsample': Real(0.5, 1.0),
}


def tune_model_bayes(model, param_dist: dict, X, y, cv_splits: list,
                     n_iter: int = 50, n_points: int = 1, n_jobs: int = 4,
                     verbose: int = 1):
    """
    Bayesian hyperparameter optimization with custom time-based splits.

    Uses `skopt.BayesSearchCV` to search `param_dist` under negative MSE,
    fits on (X, y), and returns the fitted search object.

    Parameters
    ----------
    model : sklearn.base.BaseEstimator
    param_dist : dict
        Search space of skopt dimensions.
    X, y : array-like
        Training features and targets.
    cv_splits : list[tuple[np.ndarray, np.ndarray]]
        Output of `get_cv_splits`.
    n_iter : int, default 50
    n_points : int, default 1
    n_jobs : int, default 4
    verbose : int, default 1

    Returns
    -------
    skopt.BayesSearchCV
        The fitted search object. `random_state` is fixed at 42.
    """
    cv = BayesSearchCV(
        estimator=model,
        search_spaces=param_dist,
        n_iter=n_iter,
        n_points=n_points,
        scoring='neg_mean_squared_error',
        cv=cv_splits,
        n_jobs=n_jobs,
        verbose=verbose,
        random_state=42)

    cv.fit(X, y)

    return cv


def train_gradient_boosting(
    train_df: pd.DataFrame,
    test_df: pd.DataFrame,
    feature_cols: List[str],
    target: str = config.TARGET,
    params: Optional[dict] = None,
    tune: bool = config.TUNE_MODELS,
    search_space: Optional[dict] = None,
    n_splits: int = config.N_SPLITS,
    len_split: int = config.LEN_SPLIT,
    n_iter: int = config.N_ITER,
    n_jobs: int = config.N_JOBS,
    verbose: bool = config.VERBOSE,
) -> Tuple[Any, pd.Series]:
    """
    Train a gradient-boosted tree regressor, optionally with Bayesian tuning.

    Parameters
    ----------
    train_df, test_df : pandas.DataFrame
        Feature-engineered partitions from `prepare_datasets`.
    feature_cols : List[str]
        Columns used as model inputs.
    target : str, default config.TARGET
    params : dict, optional
        GradientBoostingRegressor parameters. Defaults to config.GBM_PARAMS.
    tune : bool, default config.TUNE_MODELS
        If True, search `search_space` with `tune_model_bayes` over
        time-ordered CV splits of `train_df` before predicting.
    search_space : dict, optional
        Defaults to DEFAULT_SEARCH_SPACE.

    Returns
    -------
    Tuple[GradientBoostingRegressor, pandas.Series]
        The fitted model and its test predictions (indexed like `test_df`,
        clipped at zero since usage cannot be negative).
    """
    model = GradientBoostingRegressor(**(config.GBM_PARAMS if params is None else params))

    if verbose:
        print(f"\nTraining GBM on {len(train_df)} rows, {len(feature_cols)} features...")

    if tune:
        cv_splits = get_cv_splits(train_df, n_splits=n_splits, len_split=len_split)
        cv_results = tune_model_bayes(
            model, DEFAULT_SEARCH_SPACE if search_space is None else search_space,
            train_df[feature_cols], train_df[target], cv_splits,
            n_iter=n_iter, n_jobs=n_jobs, verbose=int(verbose))
        model = cv_results.best_estimator_
        if verbose:
            print("Best hyperparameters:")
            for param, value in cv_results.best_params_.items():
                print(f"  {param:<20}: {value}")
    else:
        model.fit(train_df[feature_cols], train_df[target])

    preds = np.clip(model.predict(test_df[feature_cols]), a_min=0, a_max=None)
    if verbose:
        print("Training complete.")

    return model, pd.Series(preds, index=test_df.index, name=target)


def feature_importance_table(model, feature_cols: list) -> pd.DataFrame:
    """Feature importances of a fitted tree model, most important first."""
    return (pd.DataFrame({'Feature': feature_cols, 'Importance': model.feature_importances_})
            .sort_values('Importance', ascending=False)
            .reset_index(drop=True))


def partial_dependence_table(model, X: pd.DataFrame, feature: str,
                             grid_resolution: int = 50) -> pd.DataFrame:
    """
    Average model prediction as one feature varies over a grid.

    Parameters
    ----------
    model : fitted estimator
    X : pandas.DataFrame
        Data the dependence is averaged over (usually the training features).
    feature : str
        Column of `X` to vary.
    grid_resolution : int, default 50

    Returns
    -------
    pandas.DataFrame
        Columns `feature` (grid values) and 'partial_dependence'.
    """
    # integer columns must be float for the grid
    result = partial_dependence(model, X.astype(float), [feature],
                                grid_resolution=grid_resolution, kind='average')
    return pd.DataFrame({
        feature: result['grid_values'][0],
        'partial_dependence': result['average'][0],
    })
