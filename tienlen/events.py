"""
领域事件定义

游戏状态机每次变更返回一组有序事件，由调用方 (对局循环/传输层) 翻译为外部消息。
事件集合是封闭的: 每个事件都带有 EventType 判别字段，EventHandler 按类型分派。
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Tuple, Union

from .cards import Card


class EventType(Enum):
    """事件类型"""
    GAME_STARTED = "game_started"
    TURN_CHANGED = "turn_changed"
    HAND_UPDATED = "hand_updated"
    ROUND_ENDED = "round_ended"
    PLAYER_FINISHED = "player_finished"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameStarted:
    """
    开局

    Attributes:
        hands: 每位玩家的完整手牌 (只应私发给各自玩家)
        turn_order: 出牌顺序
        owner_id: 房主
    """
    hands: Dict[str, Tuple[Card, ...]]
    turn_order: Tuple[str, ...]
    owner_id: str

    type: ClassVar[EventType] = EventType.GAME_STARTED


@dataclass(frozen=True)
class TurnChanged:
    """轮到 active_player_id 行动，board 为当前桌面 (空表示自由出牌)"""
    active_player_id: str
    board: Tuple[Card, ...]

    type: ClassVar[EventType] = EventType.TURN_CHANGED


@dataclass(frozen=True)
class HandUpdated:
    player_id: str
    hand: Tuple[Card, ...]

    type: ClassVar[EventType] = EventType.HAND_UPDATED


@dataclass(frozen=True)
class RoundEnded:
    winner_id: str

    type: ClassVar[EventType] = EventType.ROUND_ENDED


@dataclass(frozen=True)
class PlayerFinished:
    """玩家出完手牌，rank 为名次 (1 = 第一名)"""
    player_id: str
    rank: int

    type: ClassVar[EventType] = EventType.PLAYER_FINISHED


@dataclass(frozen=True)
class GameOver:
    winner_id: str

    type: ClassVar[EventType] = EventType.GAME_OVER


Event = Union[GameStarted, TurnChanged, HandUpdated, RoundEnded, PlayerFinished, GameOver]

EVENT_CLASSES: Dict[EventType, type] = {
    EventType.GAME_STARTED: GameStarted,
    EventType.TURN_CHANGED: TurnChanged,
    EventType.HAND_UPDATED: HandUpdated,
    EventType.ROUND_ENDED: RoundEnded,
    EventType.PLAYER_FINISHED: PlayerFinished,
    EventType.GAME_OVER: GameOver,
}


class EventHandler:
    """
    事件分派基类

    子类按需覆盖 on_* 钩子；dispatch 对事件集合之外的对象抛出 TypeError
    """

    def dispatch(self, event: Event) -> None:
        event_type = getattr(event, "type", None)
        if not isinstance(event_type, EventType) or not isinstance(event, EVENT_CLASSES[event_type]):
            raise TypeError(f"Unknown event: {event!r}")
        getattr(self, f"on_{event_type.value}")(event)

    def on_game_started(self, event: GameStarted) -> None:
        pass

    def on_turn_changed(self, event: TurnChanged) -> None:
        pass

    def on_hand_updated(self, event: HandUpdated) -> None:
        pass

    def on_round_ended(self, event: RoundEnded) -> None:
        pass

    def on_player_finished(self, event: PlayerFinished) -> None:
        pass

    def on_game_over(self, event: GameOver) -> None:
        pass
