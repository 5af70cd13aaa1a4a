"""
Tiến Lên Core - 纯游戏逻辑 (无 I/O)

Modules:
    cards: 牌定义与编码
    actions: 牌型与动作生成
    rules: 规则引擎
    events: 领域事件
    exceptions: 业务异常
    config: 游戏配置
    state: 游戏状态机
"""
from .cards import (
    Card,
    FULL_DECK,
    HAND_SIZE,
    RANK_TO_STR,
    SUIT_TO_STR,
    new_deck,
    shuffle_deck,
    sort_hand,
    cards_to_array,
    array_to_cards,
    cards_to_str,
    str_to_cards,
)

from .actions import (
    ActionType,
    Action,
    ActionGenerator,
    MIN_STRAIGHT_LEN,
    MIN_PAIR_SEQUENCE_LEN,
)

from .rules import RuleEngine

from .events import (
    EventType,
    Event,
    GameStarted,
    TurnChanged,
    HandUpdated,
    RoundEnded,
    PlayerFinished,
    GameOver,
    EventHandler,
)

from .exceptions import (
    TienLenError,
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

from .config import GameConfig

from .state import (
    Phase,
    Snapshot,
    Game,
)

__all__ = [
    # cards
    "Card",
    "FULL_DECK",
    "HAND_SIZE",
    "RANK_TO_STR",
    "SUIT_TO_STR",
    "new_deck",
    "shuffle_deck",
    "sort_hand",
    "cards_to_array",
    "array_to_cards",
    "cards_to_str",
    "str_to_cards",
    # actions
    "ActionType",
    "Action",
    "ActionGenerator",
    "MIN_STRAIGHT_LEN",
    "MIN_PAIR_SEQUENCE_LEN",
    # rules
    "RuleEngine",
    # events
    "EventType",
    "Event",
    "GameStarted",
    "TurnChanged",
    "HandUpdated",
    "RoundEnded",
    "PlayerFinished",
    "GameOver",
    "EventHandler",
    # exceptions
    "TienLenError",
    "InvalidArgumentError",
    "InsufficientCardsError",
    "NotPlayingError",
    "OutOfTurnError",
    "UnknownPlayerError",
    "EmptySelectionError",
    "InvalidIndexError",
    "IllegalCombinationError",
    "CannotBeatError",
    "NoActiveBoardError",
    "AlreadyFinishedError",
    # config
    "GameConfig",
    # state
    "Phase",
    "Snapshot",
    "Game",
]
