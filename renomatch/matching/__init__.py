from .engine import MatchingEngine
from .types import Combination, ScoreBreakdown, ScoredContractor

__all__ = ["MatchingEngine", "Combination", "ScoreBreakdown", "ScoredContractor"]
