"""
评估器

智能体定义与智能体表现评估
"""
from typing import Dict, List, Optional, Any, Sequence
from dataclasses import dataclass, field
import numpy as np
import logging

from tienlen.actions import Action, ActionType
from tienlen.cards import Card, cards_to_array

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    first_place_rate: float
    loss_rate: float
    avg_finish_rank: float
    avg_length: float
    games_played: int
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"EvalResult(first_place_rate={self.first_place_rate:.2%}, "
            f"loss_rate={self.loss_rate:.2%}, "
            f"avg_finish_rank={self.avg_finish_rank:.2f}, "
            f"games={self.games_played})"
        )


def build_observation(
    player_id: str,
    hand: Sequence[Card],
    board: Sequence[Card],
    hand_counts: Dict[str, int],
) -> Dict[str, Any]:
    """
    构建智能体观测

    Args:
        player_id: 当前玩家
        hand: 当前玩家手牌
        board: 桌面上的牌
        hand_counts: 各玩家剩余张数

    Returns:
        观测字典
    """
    return {
        "player_id": player_id,
        "hand": cards_to_array(hand),
        "board": cards_to_array(board),
        "hand_counts": dict(hand_counts),
        "is_leading": not board,
    }


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(self, obs: Dict[str, Any], legal_actions: List[Action]) -> Action:
        """选择动作"""
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """随机智能体"""

    def __init__(self, name: str = "random", rng: Optional[np.random.Generator] = None):
        super().__init__(name)
        self.rng = rng if rng is not None else np.random.default_rng()

    def act(self, obs: Dict[str, Any], legal_actions: List[Action]) -> Action:
        if not legal_actions:
            return Action.pass_action()
        idx = self.rng.integers(len(legal_actions))
        return legal_actions[idx]


class RuleBasedAgent(Agent):
    """规则智能体"""

    def __init__(self, name: str = "rule"):
        super().__init__(name)

    def act(self, obs: Dict[str, Any], legal_actions: List[Action]) -> Action:
        if not legal_actions:
            return Action.pass_action()

        # 简单规则: 能出就出最小的，主动出牌时出最小的单张，炸弹留到最后
        non_pass = [a for a in legal_actions if not a.is_pass]
        if not non_pass:
            return legal_actions[0]
        non_bomb = [a for a in non_pass if not a.is_bomb]
        if non_bomb:
            non_pass = non_bomb
        if obs.get("is_leading", False):
            singles = [a for a in non_pass if a.action_type == ActionType.SINGLE]
            if singles:
                return min(singles, key=lambda a: a.max_power)
        return min(non_pass, key=lambda a: (a.max_power, len(a)))


class Evaluator:
    """
    评估器

    让待评估智能体与对手在竞技场中对战
    """

    def __init__(self, config=None):
        from .arena import ArenaConfig
        self.config = config or ArenaConfig()
        self.rng = np.random.default_rng(self.config.seed)

    def evaluate(
        self,
        agent: Agent,
        n_games: int = 100,
        opponents: Optional[List[Agent]] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            n_games: 游戏数量
            opponents: 对手列表，默认 n_players - 1 个随机智能体
            verbose: 是否输出详情

        Returns:
            评估结果
        """
        from .arena import Arena
        from .metrics import MetricsCollector

        if opponents is None:
            opponents = [RandomAgent(f"opp{i + 1}", rng=self.rng) for i in range(self.config.n_players - 1)]

        arena = Arena(self.config)
        collector = MetricsCollector()
        for result in arena.play_match([agent] + list(opponents), n_games):
            collector.add_result(result)

        stats = collector.compute_metrics(agent.name)
        if verbose:
            logger.info(f"{agent.name}: {stats}")
        if not stats:
            return EvalResult(0.0, 0.0, 0.0, 0.0, 0)
        return EvalResult(
            first_place_rate=stats["first_place_rate"],
            loss_rate=stats["loss_rate"],
            avg_finish_rank=stats["avg_finish_rank"],
            avg_length=stats["avg_length"],
            games_played=int(stats["games"]),
        )
