"""
Evaluation Functions for the Bike Hire Usage Pipeline.

This module contains functions for computing and displaying forecast metrics.
"""
import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score


def _mape(y_true, y_pred) -> float:
    y_true, y_pred = np.asarray(y_true, dtype=float), np.asarray(y_pred, dtype=float)
    nonzero = y_true != 0
    if not nonzero.any():
        return np.nan
    return float(np.mean(np.abs((y_true[nonzero] - y_pred[nonzero]) / y_true[nonzero])) * 100)


def create_metrics_table(y_true, predictions_dict: dict) -> pd.DataFrame:
    """
    Build a small metrics table (per model) with common regression scores.

    Parameters
    ----------
    y_true : array-like or pandas.Series
        Ground-truth targets.
    predictions_dict : dict[str, array-like]
        For each model name, predictions aligned with `y_true`.

    Returns
    -------
    pandas.DataFrame
        Rows per model with columns 'Model', 'MSE', 'RMSE', 'MAE', 'MAPE', 'R2'.
        Values are **formatted strings** (e.g. "0.45", "12.34%", "0.8765").

    Notes
    -----
    MAPE skips days where `y_true` is zero.
    """
    return pd.DataFrame([{
        'Model': model_name.upper(),
        'MSE': f"{mean_squared_error(y_true, preds):.4f}",
        'RMSE': f"{np.sqrt(mean_squared_error(y_true, preds)):.4f}",
        'MAE': f"{mean_absolute_error(y_true, preds):.4f}",
        'MAPE': f"{_mape(y_true, preds):.2f}%",
        'R2': f"{r2_score(y_true, preds):.4f}",
    } for model_name, preds in predictions_dict.items()],
        columns=['Model', 'MSE', 'RMSE', 'MAE', 'MAPE', 'R2'])


def best_model(y_true, predictions_dict: dict) -> tuple:
    """Return (model_name, mse) of the model with the lowest MSE."""
    best_mse, best_name = float('inf'), None
    for model_name, preds in predictions_dict.items():
        mse = mean_squared_error(y_true, preds)
        if mse < best_mse:
            best_mse, best_name = mse, model_name
    return best_name, best_mse


def display_model_comparison(test_df: pd.DataFrame, predictions_dict: dict, target: str) -> None:
    """
    Print test metrics for all models and the one with the lowest MSE.

    Parameters
    ----------
    test_df : pandas.DataFrame
        Test partition containing the `target` column.
    predictions_dict : dict[str, array-like]
        Mapping model name -> predictions aligned with `test_df`.
    target : str
    """
    print(f"\n{'='*80}\nResults for {target}\n{'='*80}\n")
    print(create_metrics_table(test_df[target], predictions_dict).to_string(index=False))

    name, _ = best_model(test_df[target], predictions_dict)
    if name is not None:
        print(f"\nBest Model Selected: {name.upper()}")
    print('-'*80)


def display_feature_importance(importance_df: pd.DataFrame, model_name: str,
                               target: str, top: int = 10) -> None:
    """Print the `top` rows of a `feature_importance_table`."""
    print(f"\nTop {top} Important Features for {model_name.upper()} - {target}:")
    print(importance_df.head(top).to_string(index=False))
    print()
