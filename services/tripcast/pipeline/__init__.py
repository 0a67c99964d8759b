"""
Forecast pipeline core.

Stage 1 (fetch + link):      ForecastProcessor, TripLinkRegistry
Stage 2 (analyze + advise):  ClothingAnalyzer
Status bookkeeping:          TripStatus transition table
"""

from services.tripcast.pipeline.clothing_analyzer import ClothingAnalyzer, analyze
from services.tripcast.pipeline.forecast_processor import ForecastProcessor, date_range
from services.tripcast.pipeline.links import TripLinkRegistry
from services.tripcast.pipeline.state import TripStatus, can_transition, is_terminal, transition

__all__ = [
    "ClothingAnalyzer",
    "analyze",
    "ForecastProcessor",
    "date_range",
    "TripLinkRegistry",
    "TripStatus",
    "can_transition",
    "is_terminal",
    "transition",
]
