# AI Mining Engine for heterogeneous mining fleets
# Version: 0.3.0

from ai_engine.core import AIMiningCore
from ai_engine.recommender import RecommendationEngine
from ai_engine.models.neural_network import NeuralNetwork
from ai_engine.reporting import NullReportingSink, ReportingSink

__all__ = [
    'AIMiningCore',
    'RecommendationEngine',
    'NeuralNetwork',
    'NullReportingSink',
    'ReportingSink'
]
