"""
对战竞技场

在进程内驱动 Game: 逐个把智能体的动作送入状态机，消费返回的事件，
并把上一局赢家带入下一局 (上一局赢家先出)
"""
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from itertools import combinations
import numpy as np
import logging

from tienlen.actions import ActionGenerator
from tienlen.config import GameConfig
from tienlen.events import (
    EventHandler,
    GameStarted,
    RoundEnded,
    PlayerFinished,
    GameOver,
)
from tienlen.state import Game

from .evaluator import Agent, build_observation

logger = logging.getLogger(__name__)


@dataclass
class ArenaConfig:
    """
    竞技场配置

    Attributes:
        n_players: 每局人数 (1-4)
        max_steps: 单局最大动作数，超过视为截断
        chop_rules: 是否启用炸弹规则
        seed: 随机种子
    """
    n_players: int = 4
    max_steps: int = 2000
    chop_rules: bool = False
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, d: dict) -> 'ArenaConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass
class MatchResult:
    """对局结果"""
    turn_order: Tuple[str, ...]
    finish_order: Tuple[str, ...]  # 第一名在前
    loser: Optional[str]
    length: int
    rounds: int
    truncated: bool = False

    @property
    def winner(self) -> Optional[str]:
        return self.finish_order[0] if self.finish_order else None

    def finish_rank(self, name: str) -> Optional[int]:
        """名次，最后一名为 len(turn_order)"""
        if name in self.finish_order:
            return self.finish_order.index(name) + 1
        if name == self.loser:
            return len(self.turn_order)
        return None


class GameRecorder(EventHandler):
    """记录一局中的关键事件"""

    def __init__(self):
        self.turn_order: Tuple[str, ...] = ()
        self.finish_order: List[str] = []
        self.rounds = 0
        self.winner: Optional[str] = None

    def on_game_started(self, event: GameStarted) -> None:
        self.turn_order = event.turn_order
        self.finish_order = []
        self.rounds = 0
        self.winner = None

    def on_round_ended(self, event: RoundEnded) -> None:
        self.rounds += 1

    def on_player_finished(self, event: PlayerFinished) -> None:
        self.finish_order.append(event.player_id)

    def on_game_over(self, event: GameOver) -> None:
        self.winner = event.winner_id


@dataclass
class TournamentResult:
    """锦标赛结果"""
    standings: Dict[str, Dict[str, float]]
    total_games: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """按第一名比例排名"""
        return sorted(
            [(name, stats["first_place_rate"]) for name, stats in self.standings.items()],
            key=lambda x: x[1],
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_games} games):"]
        for i, (name, rate) in enumerate(ranking):
            lines.append(f"  {i+1}. {name}: {rate:.2%}")
        return "\n".join(lines)


class Arena:
    """
    对战竞技场

    组织智能体之间的对战
    """

    def __init__(self, config: Optional[ArenaConfig] = None):
        self.config = config or ArenaConfig()
        self.rng = np.random.default_rng(self.config.seed)

    def play_game(
        self,
        game: Game,
        agents: Dict[str, Agent],
        owner_id: str,
        last_winner_id: str = "",
    ) -> MatchResult:
        """
        进行一局

        Args:
            game: 复用的游戏实例
            agents: 名称 -> 智能体
            owner_id: 房主
            last_winner_id: 上一局赢家

        Returns:
            对局结果
        """
        recorder = GameRecorder()
        for agent in agents.values():
            agent.reset()

        for event in game.start(list(agents), owner_id, last_winner_id):
            recorder.dispatch(event)

        length = 0
        while game.is_playing() and length < self.config.max_steps:
            snapshot = game.snapshot()
            player_id = snapshot.active_player_id
            hand = game.hand_of(player_id)

            generator = ActionGenerator(hand)
            legal_actions = generator.generate_responses(snapshot.board, self.config.chop_rules)
            obs = build_observation(player_id, hand, snapshot.board, snapshot.hand_counts)

            action = agents[player_id].act(obs, legal_actions)
            if action.is_pass:
                events = game.pass_turn(player_id)
            else:
                events = game.play_cards(player_id, list(action.indices))

            for event in events:
                recorder.dispatch(event)
            length += 1

        truncated = game.is_playing()
        if truncated:
            logger.warning(f"Game truncated after {length} steps")

        remaining = [uid for uid in recorder.turn_order if uid not in recorder.finish_order]
        loser = remaining[0] if len(remaining) == 1 and not truncated else None

        return MatchResult(
            turn_order=recorder.turn_order,
            finish_order=tuple(recorder.finish_order),
            loser=loser,
            length=length,
            rounds=recorder.rounds,
            truncated=truncated,
        )

    def play_match(
        self,
        agents: List[Agent],
        n_games: int = 1,
    ) -> List[MatchResult]:
        """
        连续进行多局，上一局赢家先出

        Args:
            agents: 入座智能体 (名称唯一)
            n_games: 对局数

        Returns:
            对局结果列表
        """
        seated = {agent.name: agent for agent in agents}
        if len(seated) != len(agents):
            raise ValueError("Agent names must be unique")

        game = Game(
            GameConfig(chop_rules=self.config.chop_rules),
            rng=np.random.default_rng(self.rng.integers(2**32)),
        )
        owner_id = agents[0].name
        last_winner = ""
        results = []

        for game_idx in range(n_games):
            result = self.play_game(game, seated, owner_id, last_winner)
            results.append(result)
            last_winner = result.winner or ""
            logger.debug(f"Game {game_idx + 1}/{n_games}: {result.finish_order} loser={result.loser}")

        return results

    def round_robin(
        self,
        agents: List[Agent],
        games_per_match: int = 10,
    ) -> TournamentResult:
        """
        循环赛

        每种 n_players 人组合都对战 (座次由 Game 随机决定)

        Args:
            agents: 智能体列表
            games_per_match: 每场比赛的对局数

        Returns:
            锦标赛结果
        """
        from .metrics import MetricsCollector

        n_players = min(self.config.n_players, len(agents))
        collector = MetricsCollector()
        all_matches = []

        for combo in combinations(range(len(agents)), n_players):
            match_agents = [agents[i] for i in combo]
            results = self.play_match(match_agents, games_per_match)
            all_matches.extend(results)
            for result in results:
                collector.add_result(result)

        logger.info(f"Round robin finished: {len(all_matches)} games")

        standings = {agent.name: collector.compute_metrics(agent.name) for agent in agents}
        return TournamentResult(
            standings=standings,
            total_games=len(all_matches),
            matches=all_matches,
        )
