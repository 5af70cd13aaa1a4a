"""
Evaluation Layer - 评估框架

Modules:
    evaluator: 评估器和智能体
    arena: 对战竞技场 (进程内对局循环)
    metrics: 评估指标
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    RuleBasedAgent,
    Evaluator,
    build_observation,
)
from .arena import (
    ArenaConfig,
    MatchResult,
    GameRecorder,
    TournamentResult,
    Arena,
)
from .metrics import MetricsCollector

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "RuleBasedAgent",
    "Evaluator",
    "build_observation",
    # arena
    "ArenaConfig",
    "MatchResult",
    "GameRecorder",
    "TournamentResult",
    "Arena",
    # metrics
    "MetricsCollector",
]
