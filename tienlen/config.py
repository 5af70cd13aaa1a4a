"""
游戏配置
"""
from dataclasses import dataclass
from typing import Optional

from .cards import HAND_SIZE


@dataclass
class GameConfig:
    """
    游戏配置

    Attributes:
        hand_size: 每位玩家发牌数
        chop_rules: 启用牌型匹配与炸弹规则 (默认只按张数和最大牌比较)
        seed: 随机种子，None 表示系统熵
    """
    hand_size: int = HAND_SIZE
    chop_rules: bool = False
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, d: dict) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)
