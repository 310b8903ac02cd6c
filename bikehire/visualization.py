"""
Visualization Functions for the Bike Hire Usage Pipeline.

Plots of the dock timeline, the usage rate and model interpretation output.
Every function returns the figure and calls `plt.show()` when `show` is True.
"""
import matplotlib.pyplot as plt
import pandas as pd


def plot_dock_timeline(timeline: pd.DataFrame, show: bool = True):
    """
    Plot active stations and active docks over time on twin axes.

    Parameters
    ----------
    timeline : pandas.DataFrame
        Output of `build_dock_timeline` ('date', 'stations', 'docks').
    """
    fig, ax = plt.subplots(figsize=(14, 5))
    ax.plot(timeline['date'], timeline['docks'], color='blue', label='Docks')
    ax.set_ylabel('Active docks')

    ax2 = ax.twinx()
    ax2.plot(timeline['date'], timeline['stations'], color='red', alpha=0.6, label='Stations')
    ax2.set_ylabel('Active stations')

    ax.set_xlabel('Date')
    ax.set_title('Docking network size')
    fig.legend(loc='upper left', bbox_to_anchor=(0.1, 0.9))
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def plot_usage_rate(usage: pd.DataFrame, split_dates=None, show: bool = True):
    """
    Plot raw daily hires and hires per dock.

    Parameters
    ----------
    usage : pandas.DataFrame
        Output of `normalize_usage` ('date', 'hires', 'hires_per_dock').
    split_dates : dict[str, date-like], optional
        Labelled vertical markers, e.g. {'Test start': ..., 'Holdout start': ...}.
    """
    fig, axes = plt.subplots(2, 1, figsize=(14, 8), sharex=True)

    axes[0].plot(usage['date'], usage['hires'], color='blue', alpha=0.7)
    axes[0].set_ylabel('Hires')
    axes[0].set_title('Daily hires')

    axes[1].plot(usage['date'], usage['hires_per_dock'], color='purple', alpha=0.7)
    axes[1].set_ylabel('Hires per dock')
    axes[1].set_title('Daily hires per active dock')
    axes[1].set_xlabel('Date')

    for ax in axes:
        for label, when in (split_dates or {}).items():
            ax.axvline(x=pd.Timestamp(when), color='black', linestyle='-', alpha=0.3)
            ax.text(pd.Timestamp(when), ax.get_ylim()[1], label, rotation=90, verticalalignment='top')
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()
    return fig


def plot_model_comparison(test_df: pd.DataFrame, predictions_dict: dict,
                          target: str, show: bool = True):
    """Plot actual test values against each model's predictions."""
    fig, ax = plt.subplots(figsize=(14, 5))
    ax.plot(test_df['date'], test_df[target], label='Actual', color='blue', alpha=0.7)
    for model_name, preds in predictions_dict.items():
        ax.plot(test_df['date'], preds, label=model_name.upper(), linestyle='--', alpha=0.7)

    ax.set_xlabel('Date')
    ax.set_ylabel(target)
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)
    plt.xticks(rotation=45)
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def plot_partial_dependence(pd_table: pd.DataFrame, show: bool = True):
    """Plot a `partial_dependence_table` (first column is the feature grid)."""
    feature = pd_table.columns[0]
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.plot(pd_table[feature], pd_table['partial_dependence'], color='green')
    ax.set_xlabel(feature)
    ax.set_ylabel('Partial dependence')
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    if show:
        plt.show()
    return fig
