"""
游戏业务异常定义

所有异常都是同步、局部、可恢复的: 抛出时游戏状态保持不变
"""


class TienLenError(ValueError):
    """进攻游戏基础异常类"""
    kind = "error"


class InvalidArgumentError(TienLenError):
    """参数无效 (如玩家列表为空)"""
    kind = "invalid_argument"


class InsufficientCardsError(TienLenError):
    """牌不够发给所有玩家"""
    kind = "insufficient_cards"


class NotPlayingError(TienLenError):
    """游戏未在进行中"""
    kind = "not_playing"


class OutOfTurnError(TienLenError):
    """未轮到该玩家"""
    kind = "out_of_turn"


class UnknownPlayerError(TienLenError):
    """玩家没有手牌"""
    kind = "unknown_player"


class EmptySelectionError(TienLenError):
    """没有选择任何牌"""
    kind = "empty_selection"


class InvalidIndexError(TienLenError):
    """牌索引越界或重复"""
    kind = "invalid_index"


class IllegalCombinationError(TienLenError):
    """不是合法牌型"""
    kind = "illegal_combination"


class CannotBeatError(TienLenError):
    """压不过桌面上的牌"""
    kind = "cannot_beat"


class NoActiveBoardError(TienLenError):
    """桌面为空，不能过牌 (必须出牌)"""
    kind = "no_active_board"


class AlreadyFinishedError(TienLenError):
    """玩家已出完牌"""
    kind = "already_finished"
