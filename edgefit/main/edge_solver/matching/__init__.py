"""
Matching module for the edge solver.

Contains the edge table, distance-field scoring and the loop-closure search.
"""

from .edge_table import EdgeTable
from .distance_field import DistanceField
from .edge_matcher import EdgeMatcher
from .loop_search import LoopSearch, LoopResult

__all__ = ['EdgeTable', 'DistanceField', 'EdgeMatcher', 'LoopSearch', 'LoopResult']
