"""
游戏状态机

一个 Game 实例对应一张桌子的连续多局:
- IDLE -> start() -> PLAYING -> (N-1 人出完) -> IDLE -> start() ...
- 只由 play_cards / pass_turn 修改，每次返回有序事件列表
- 所有校验先于修改: 抛出异常时状态不变
- 无锁，调用方保证串行调用
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, FrozenSet
from enum import Enum
import logging

import numpy as np

from .cards import Card, NUM_RANKS, NUM_SUITS, new_deck, shuffle_deck, sort_hand, card_power
from .config import GameConfig
from .events import (
    Event,
    GameStarted,
    TurnChanged,
    HandUpdated,
    RoundEnded,
    PlayerFinished,
    GameOver,
)
from .exceptions import (
    InvalidArgumentError,
    InsufficientCardsError,
    NotPlayingError,
    OutOfTurnError,
    UnknownPlayerError,
    EmptySelectionError,
    InvalidIndexError,
    IllegalCombinationError,
    CannotBeatError,
    NoActiveBoardError,
    AlreadyFinishedError,
)
from .rules import RuleEngine

logger = logging.getLogger(__name__)


class Phase(Enum):
    """游戏阶段"""
    IDLE = "idle"        # 未开局 / 已结束
    PLAYING = "playing"  # 出牌阶段


@dataclass(frozen=True)
class Snapshot:
    """
    供旁观者、断线重连使用的状态快照 (不包含任何手牌内容)

    Attributes:
        is_playing: 是否在进行中
        owner_id: 房主
        board: 桌面上的牌
        active_player_id: 当前行动玩家 (无人时为空串)
        player_ids: 出牌顺序
        winners: 已出完的玩家，按名次
        finished_players: 已出完的玩家集合
        hand_counts: 每位玩家剩余张数，(玩家, 张数) 按座次排列
    """
    is_playing: bool
    owner_id: str
    board: Tuple[Card, ...]
    active_player_id: str
    player_ids: Tuple[str, ...]
    winners: Tuple[str, ...]
    finished_players: FrozenSet[str]
    hand_counts: Tuple[Tuple[str, int], ...] = ()


class Game:
    """
    进攻游戏状态机

    手牌、过牌集合、完成集合都只由本对象写入，对外一律返回副本
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            config: 游戏配置
            rng: 随机数生成器，None 时按 config.seed 创建
        """
        self.config = config or GameConfig()
        self._rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self._hands: Dict[str, List[Card]] = {}
        self._turn_order: List[str] = []
        self._current_idx = 0
        self._board: List[Card] = []
        self._last_actor = ""
        self._round_skippers: set = set()
        self._owner_id = ""
        self._phase = Phase.IDLE

        # 按出完顺序排列，_winners[0] 为第一名
        self._winners: List[str] = []
        self._finished: set = set()

    @classmethod
    def from_position(
        cls,
        hands: Dict[str, Sequence[Card]],
        turn_order: Sequence[str],
        leader: Optional[str] = None,
        owner_id: str = "",
        config: Optional[GameConfig] = None,
    ) -> 'Game':
        """
        从指定手牌直接构建进行中的对局 (残局、回放、测试)

        Args:
            hands: 各玩家手牌
            turn_order: 出牌顺序
            leader: 首先出牌的玩家，None 表示 turn_order[0]
            owner_id: 房主
            config: 游戏配置

        Returns:
            PLAYING 阶段的 Game
        """
        if not turn_order:
            raise InvalidArgumentError("no players provided")
        if set(hands) != set(turn_order) or len(set(turn_order)) != len(turn_order):
            raise InvalidArgumentError("hands and turn order must name the same players")
        seen: set = set()
        for uid, cards in hands.items():
            if not cards:
                raise InvalidArgumentError(f"player {uid!r} has an empty hand")
            for card in cards:
                if not (0 <= card.rank < NUM_RANKS and 0 <= card.suit < NUM_SUITS):
                    raise InvalidArgumentError(f"invalid card {card!r}")
                if card in seen:
                    raise InvalidArgumentError(f"card {card} dealt twice")
                seen.add(card)
        leader = turn_order[0] if leader is None else leader
        if leader not in turn_order:
            raise InvalidArgumentError(f"leader {leader!r} is not seated")

        game = cls(config)
        game._owner_id = owner_id
        game._turn_order = list(turn_order)
        for uid in turn_order:
            hand = list(hands[uid])
            sort_hand(hand)
            game._hands[uid] = hand
        game._current_idx = game._turn_order.index(leader)
        game._phase = Phase.PLAYING
        return game

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    def is_playing(self) -> bool:
        return self._phase == Phase.PLAYING

    def has_player(self, user_id: str) -> bool:
        return user_id in self._hands

    def hand_of(self, user_id: str) -> List[Card]:
        """玩家手牌副本，未知玩家返回空列表"""
        return list(self._hands.get(user_id, ()))

    def hands_copy(self) -> Dict[str, Tuple[Card, ...]]:
        return {uid: tuple(hand) for uid, hand in self._hands.items()}

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def turn_order(self) -> Tuple[str, ...]:
        return tuple(self._turn_order)

    @property
    def board(self) -> Tuple[Card, ...]:
        return tuple(self._board)

    @property
    def last_actor(self) -> str:
        return self._last_actor

    @property
    def winners(self) -> Tuple[str, ...]:
        return tuple(self._winners)

    @property
    def finished_players(self) -> FrozenSet[str]:
        return frozenset(self._finished)

    @property
    def round_skippers(self) -> FrozenSet[str]:
        return frozenset(self._round_skippers)

    @property
    def current_player(self) -> str:
        if 0 <= self._current_idx < len(self._turn_order):
            return self._turn_order[self._current_idx]
        return ""

    def snapshot(self) -> Snapshot:
        return Snapshot(
            is_playing=self.is_playing(),
            owner_id=self._owner_id,
            board=tuple(self._board),
            active_player_id=self.current_player,
            player_ids=tuple(self._turn_order),
            winners=tuple(self._winners),
            finished_players=frozenset(self._finished),
            hand_counts=tuple((uid, len(self._hands.get(uid, ()))) for uid in self._turn_order),
        )

    # ------------------------------------------------------------------
    # 开局
    # ------------------------------------------------------------------

    def start(
        self,
        players: Sequence[str],
        owner_id: str,
        last_winner_id: str = "",
        rng: Optional[np.random.Generator] = None,
    ) -> List[Event]:
        """
        开始新的一局

        Args:
            players: 入座玩家
            owner_id: 房主
            last_winner_id: 上一局赢家，在座时由其先出
            rng: 本局使用的随机数生成器，None 时用实例自带的

        Returns:
            [GameStarted, TurnChanged]
        """
        if not players:
            raise InvalidArgumentError("no players provided")
        if len(set(players)) != len(players):
            raise InvalidArgumentError("duplicate player ids")
        hand_size = self.config.hand_size
        if hand_size < 1:
            raise InvalidArgumentError(f"hand size must be positive, got {hand_size}")
        rng = rng if rng is not None else self._rng

        turn_order = [players[i] for i in rng.permutation(len(players))]

        deck = shuffle_deck(new_deck(), rng)
        if len(deck) < len(turn_order) * hand_size:
            raise InsufficientCardsError(f"not enough cards for {len(turn_order)} players")

        hands: Dict[str, List[Card]] = {}
        for i, uid in enumerate(turn_order):
            hand = deck[i * hand_size:(i + 1) * hand_size]
            sort_hand(hand)
            hands[uid] = hand

        if last_winner_id and last_winner_id in turn_order:
            start_idx = turn_order.index(last_winner_id)
        else:
            # 手牌已排序，第一张即最小牌
            start_idx = min(
                (i for i, uid in enumerate(turn_order) if hands[uid]),
                key=lambda i: card_power(hands[turn_order[i]][0]),
                default=0,
            )

        self._owner_id = owner_id
        self._turn_order = turn_order
        self._hands = hands
        self._current_idx = start_idx
        self._board = []
        self._round_skippers = set()
        self._last_actor = ""
        self._winners = []
        self._finished = set()
        self._phase = Phase.PLAYING

        logger.debug(f"Game started: order={turn_order}, leader={turn_order[start_idx]}")

        return [
            GameStarted(hands=self.hands_copy(), turn_order=tuple(turn_order), owner_id=owner_id),
            TurnChanged(active_player_id=turn_order[start_idx], board=()),
        ]

    # ------------------------------------------------------------------
    # 出牌 / 过牌
    # ------------------------------------------------------------------

    def _check_turn(self, player_id: str) -> None:
        if not self.is_playing():
            raise NotPlayingError("match not in progress")
        if not self._turn_order or self._turn_order[self._current_idx] != player_id:
            raise OutOfTurnError(f"not {player_id}'s turn")

    def play_cards(self, player_id: str, indices: Sequence[int]) -> List[Event]:
        """
        出牌

        Args:
            player_id: 出牌玩家
            indices: 所选牌在当前 (已排序) 手牌中的位置

        Returns:
            HandUpdated [, PlayerFinished] [, GameOver | 轮转事件]
        """
        self._check_turn(player_id)
        hand = self._hands.get(player_id)
        if hand is None:
            raise UnknownPlayerError(f"player {player_id} has no hand")
        if not indices:
            raise EmptySelectionError("no cards selected")
        validate_indices(indices, len(hand))

        cards = [hand[i] for i in indices]
        if not RuleEngine.is_valid_set(cards):
            logger.debug(f"{player_id} rejected: illegal combination {cards}")
            raise IllegalCombinationError("invalid card combination")
        if self._board and not RuleEngine.beats(self._board, cards, self.config.chop_rules):
            logger.debug(f"{player_id} rejected: {cards} cannot beat {self._board}")
            raise CannotBeatError("cannot beat current board")

        # 以下开始修改状态
        self._board = cards
        self._last_actor = player_id
        self._round_skippers = set()

        selected = set(indices)
        remaining = [c for i, c in enumerate(hand) if i not in selected]
        sort_hand(remaining)
        self._hands[player_id] = remaining

        events: List[Event] = [HandUpdated(player_id=player_id, hand=tuple(remaining))]

        if not remaining:
            self._winners.append(player_id)
            self._finished.add(player_id)
            events.append(PlayerFinished(player_id=player_id, rank=len(self._winners)))
            logger.debug(f"{player_id} finished in place {len(self._winners)}")

            # 只剩一人 (单人局则为本人出完) 时结束
            if len(self._winners) >= max(len(self._turn_order) - 1, 1):
                self._phase = Phase.IDLE
                events.append(GameOver(winner_id=self._winners[0]))
                logger.debug(f"Game over: finish order={self._winners}")
                return events

        events.extend(self._advance_turn())
        return events

    def pass_turn(self, player_id: str) -> List[Event]:
        """
        过牌

        Args:
            player_id: 过牌玩家

        Returns:
            轮转事件
        """
        self._check_turn(player_id)
        if not self._last_actor:
            raise NoActiveBoardError("no cards on table to pass")
        if player_id in self._finished:
            raise AlreadyFinishedError("player has already finished")

        self._round_skippers.add(player_id)
        return self._advance_turn()

    # ------------------------------------------------------------------
    # 轮转
    # ------------------------------------------------------------------

    def _advance_turn(self) -> List[Event]:
        """
        将行动权交给下一位有效玩家

        跳过已出完和本轮已过牌的玩家；回到最后出牌者且其余人都已过牌时本轮结束
        """
        count = len(self._turn_order)
        if count == 0:
            return []
        origin = self._current_idx

        for step in range(1, count + 1):
            next_idx = (origin + step) % count
            next_id = self._turn_order[next_idx]

            # 最后出牌者可能已出完，此时由其后第一位在局玩家领出
            if next_id == self._last_actor and self._all_others_skipped(next_id):
                self._board = []
                self._round_skippers = set()
                self._last_actor = ""
                self._current_idx = next_idx
                while self._turn_order[self._current_idx] in self._finished:
                    self._current_idx = (self._current_idx + 1) % count
                leader = self._turn_order[self._current_idx]
                logger.debug(f"Round won by {next_id}, {leader} leads")
                return [
                    RoundEnded(winner_id=next_id),
                    TurnChanged(active_player_id=leader, board=()),
                ]

            if next_id in self._finished or next_id in self._round_skippers:
                continue

            self._current_idx = next_idx
            return [TurnChanged(active_player_id=next_id, board=tuple(self._board))]

        # 不变量被破坏时的兜底: 停留在当前玩家，避免卡死
        logger.warning(f"No eligible seat after {self.current_player}, keeping turn")
        return [TurnChanged(active_player_id=self.current_player, board=tuple(self._board))]

    def _all_others_skipped(self, player_id: str) -> bool:
        """除 player_id 外，所有未出完的玩家本轮都已过牌"""
        return all(
            uid in self._round_skippers
            for uid in self._turn_order
            if uid != player_id and uid not in self._finished
        )


def validate_indices(indices: Sequence[int], hand_size: int) -> None:
    """索引必须在手牌范围内且不重复"""
    seen = set()
    for idx in indices:
        if idx < 0 or idx >= hand_size:
            raise InvalidIndexError(f"invalid card index {idx}")
        if idx in seen:
            raise InvalidIndexError(f"duplicate card index {idx}")
        seen.add(idx)
