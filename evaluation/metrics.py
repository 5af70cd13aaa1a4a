"""
评估指标

按玩家统计名次、对局长度等指标
"""
from typing import Dict, List, Optional
from collections import defaultdict
import numpy as np

from .arena import MatchResult


class MetricsCollector:
    """
    指标收集器

    收集对局结果并计算指标
    """

    def __init__(self):
        self.results: List[MatchResult] = []
        self._stats: Dict[str, Dict[str, List[float]]] = defaultdict(lambda: defaultdict(list))

    def add_result(self, result: MatchResult):
        """添加对局结果 (截断的对局只计入长度)"""
        self.results.append(result)

        for player in result.turn_order:
            stats = self._stats[player]
            stats["games"].append(1)
            stats["lengths"].append(result.length)
            stats["rounds"].append(result.rounds)

            if result.truncated:
                stats["truncated"].append(1)
                continue

            rank = result.finish_rank(player)
            stats["ranks"].append(rank)
            stats["first_place"].append(1 if rank == 1 else 0)
            stats["losses"].append(1 if player == result.loser else 0)

    def compute_metrics(self, player: Optional[str] = None) -> Dict[str, float]:
        """
        计算指标

        Args:
            player: 指定玩家，None 表示全局

        Returns:
            指标字典，没有数据时为空
        """
        if player is not None:
            stats = self._stats.get(player)
            if not stats:
                return {}

            return {
                "games": len(stats["games"]),
                "first_place_rate": float(np.mean(stats["first_place"])) if stats["first_place"] else 0.0,
                "loss_rate": float(np.mean(stats["losses"])) if stats["losses"] else 0.0,
                "avg_finish_rank": float(np.mean(stats["ranks"])) if stats["ranks"] else 0.0,
                "avg_length": float(np.mean(stats["lengths"])),
                "avg_rounds": float(np.mean(stats["rounds"])),
                "truncated": len(stats["truncated"]),
            }

        n_games = len(self.results)
        if n_games == 0:
            return {}

        lengths = np.array([r.length for r in self.results])
        return {
            "games": n_games,
            "avg_length": float(lengths.mean()),
            "max_length": int(lengths.max()),
            "avg_rounds": float(np.mean([r.rounds for r in self.results])),
            "truncated_rate": float(np.mean([r.truncated for r in self.results])),
        }

    def rank_distribution(self, player: str, n_players: int) -> np.ndarray:
        """
        名次分布

        Returns:
            长度为 n_players 的数组，第 i 位为获得第 i+1 名的比例
        """
        ranks = self._stats[player]["ranks"] if player in self._stats else []
        counts = np.zeros(n_players, dtype=np.float64)
        for rank in ranks:
            counts[int(rank) - 1] += 1
        total = counts.sum()
        return counts / total if total > 0 else counts

    def reset(self):
        self.results.clear()
        self._stats.clear()
