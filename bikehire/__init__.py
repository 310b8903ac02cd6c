"""
Bike Hire Usage Pipeline - Source Package

This package contains the modular components for preparing bike hire data:
- loading: Spreadsheet, lockdown CSV and station API inputs
- stations: Station install/removal event extraction
- timeline: Daily active station and dock counts
- usage: Hires per active dock
- features: Leakage-safe feature engineering (FeatureBuilder)
- splitting: Chronological train/test/holdout splits
- pipeline: End-to-end dataset preparation
- modeling: Gradient-boosted trees and their interpretation
- evaluation: Metrics calculation and display
- visualization: Plotting functions
"""

from .errors import (
    BikeHireError,
    MalformedStationRecord,
    MissingInstallDate,
    UnsortedInputError,
    EmptyPartitionError,
    NotFittedError,
    FeatureBuilderStateError,
    StationFetchError,
)
from .loading import load_hires, load_lockdowns, fetch_station_records, load_station_records
from .stations import (
    EventType,
    StationEvent,
    StationEventSet,
    parse_station_record,
    extract_station_events,
    events_to_frame,
    station_metadata_frame,
)
from .timeline import DailyDockCount, build_dock_timeline, forward_fill_timeline, timeline_records, dock_count_on
from .usage import normalize_usage
from .features import FeatureBuilder, get_feature_columns, align_dataframe_columns
from .splitting import split_by_proportion, split_holdout, get_cv_splits
from .pipeline import PreparedData, prepare_datasets, run
from .modeling import train_gradient_boosting, feature_importance_table, partial_dependence_table
from .evaluation import create_metrics_table, display_model_comparison, display_feature_importance
from .visualization import plot_dock_timeline, plot_usage_rate, plot_model_comparison, plot_partial_dependence

__all__ = [
    # Errors
    'BikeHireError',
    'MalformedStationRecord',
    'MissingInstallDate',
    'UnsortedInputError',
    'EmptyPartitionError',
    'NotFittedError',
    'FeatureBuilderStateError',
    'StationFetchError',
    # Loading
    'load_hires',
    'load_lockdowns',
    'fetch_station_records',
    'load_station_records',
    # Stations
    'EventType',
    'StationEvent',
    'StationEventSet',
    'parse_station_record',
    'extract_station_events',
    'events_to_frame',
    'station_metadata_frame',
    # Timeline
    'DailyDockCount',
    'build_dock_timeline',
    'forward_fill_timeline',
    'timeline_records',
    'dock_count_on',
    # Usage
    'normalize_usage',
    # Features
    'FeatureBuilder',
    'get_feature_columns',
    'align_dataframe_columns',
    # Splitting
    'split_by_proportion',
    'split_holdout',
    'get_cv_splits',
    # Pipeline
    'PreparedData',
    'prepare_datasets',
    'run',
    # Modeling
    'train_gradient_boosting',
    'feature_importance_table',
    'partial_dependence_table',
    # Evaluation
    'create_metrics_table',
    'display_model_comparison',
    'display_feature_importance',
    # Visualization
    'plot_dock_timeline',
    'plot_usage_rate',
    'plot_model_comparison',
    'plot_partial_dependence',
]
