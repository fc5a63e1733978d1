"""
Neighborhood-based nonparametric estimation: loess, bin smoothing and
k-nearest neighbors.
"""

from .errors import InvalidInput, InsufficientData
from .distance import distance, pairwise_distances, rank_neighbors, nearest_neighbors
from .kernels import tricube_weights, bisquare_weights
from .loess import LoessConfig, LoessResult, LoessSmoother, loess, neighborhood_size
from .bin_smooth import BinSmoother
from .knn import KNNConfig, KNNClassifier, KNNRegressor, accuracy_by_k, select_k
from .datasets import (Observation,
                       observations_to_arrays,
                       load_observations,
                       load_digits_27)

__version__ = "0.1.0"
