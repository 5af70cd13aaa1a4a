"""
牌的定义与编码

进攻 (Tiến Lên) 使用一副 52 张标准牌：
- 点数 rank: 0 ("3") ... 12 ("2")，2 最大
- 花色 suit: 0 (♠) < 1 (♣) < 2 (♦) < 3 (♥)，只在同点数时比较大小
"""
from dataclasses import dataclass
from typing import List, Tuple, Dict, Iterable, Optional
import numpy as np


NUM_RANKS = 13
NUM_SUITS = 4
DECK_SIZE = NUM_RANKS * NUM_SUITS
HAND_SIZE = 13

# 最大点数 (2)，不能进入顺子和连对
TWO_RANK = 12


@dataclass(frozen=True, slots=True)
class Card:
    """
    不可变的牌

    Attributes:
        rank: 点数 0-12 (3 ... 2)
        suit: 花色 0-3 (♠ ♣ ♦ ♥)
    """
    rank: int
    suit: int

    @property
    def power(self) -> int:
        """牌力 = rank * 4 + suit，52 张牌上的严格全序"""
        return self.rank * NUM_SUITS + self.suit

    def __str__(self) -> str:
        return RANK_TO_STR[self.rank] + SUIT_TO_STR[self.suit]


# 点数到显示字符的映射
RANK_TO_STR: Dict[int, str] = {
    0: '3', 1: '4', 2: '5', 3: '6', 4: '7', 5: '8', 6: '9',
    7: '10', 8: 'J', 9: 'Q', 10: 'K', 11: 'A', 12: '2'
}

# 显示字符到点数的映射
STR_TO_RANK: Dict[str, int] = {v: k for k, v in RANK_TO_STR.items()}

# 花色显示
SUIT_TO_STR: Dict[int, str] = {0: '♠', 1: '♣', 2: '♦', 3: '♥'}

# 花色输入字母 (ASCII)
LETTER_TO_SUIT: Dict[str, int] = {'s': 0, 'c': 1, 'd': 2, 'h': 3}


def card_power(card: Card) -> int:
    return card.power


def new_deck() -> List[Card]:
    """按 rank、suit 顺序生成完整的 52 张牌"""
    return [Card(rank, suit) for rank in range(NUM_RANKS) for suit in range(NUM_SUITS)]


# 完整牌组 (52 张，构造顺序)
FULL_DECK: Tuple[Card, ...] = tuple(new_deck())


def shuffle_deck(
    deck: List[Card],
    rng: Optional[np.random.Generator] = None,
) -> List[Card]:
    """
    洗牌，返回新的排列，不修改输入

    Args:
        deck: 牌列表
        rng: 随机数生成器，None 时新建一个 (系统熵种子)

    Returns:
        均匀随机排列后的新列表
    """
    if rng is None:
        rng = np.random.default_rng()
    order = rng.permutation(len(deck))
    return [deck[i] for i in order]


def sort_hand(cards: List[Card]) -> None:
    """按牌力升序原地排序"""
    cards.sort(key=card_power)


def cards_to_array(cards: Iterable[Card]) -> np.ndarray:
    """
    将牌列表转换为 52 维 one-hot 向量

    第 i 维对应 power == i 的牌

    Args:
        cards: 牌列表

    Returns:
        52 维 numpy 数组
    """
    array = np.zeros(DECK_SIZE, dtype=np.float32)
    for card in cards:
        array[card.power] = 1
    return array


def array_to_cards(array: np.ndarray) -> List[Card]:
    """
    将 52 维数组转换回牌列表 (按牌力升序)

    Args:
        array: 52 维 numpy 数组

    Returns:
        牌列表
    """
    powers = np.flatnonzero(np.asarray(array)[:DECK_SIZE] > 0)
    return [Card(int(p) // NUM_SUITS, int(p) % NUM_SUITS) for p in powers]


def cards_to_str(cards: Iterable[Card]) -> str:
    """
    将牌列表转换为可读字符串

    Returns:
        如 "3♠ 4♣ 5♦"
    """
    return ' '.join(str(c) for c in cards)


def str_to_cards(s: str) -> List[Card]:
    """
    将字符串转换为牌列表

    Args:
        s: 空格分隔的牌，点数 + 花色字母，如 "3s 10h Ad 2c"

    Returns:
        牌列表 (保持输入顺序)
    """
    cards = []
    for token in s.split():
        rank_str, suit_str = token[:-1].upper(), token[-1].lower()
        if rank_str not in STR_TO_RANK or suit_str not in LETTER_TO_SUIT:
            raise ValueError(f"Unknown card: {token!r}")
        cards.append(Card(STR_TO_RANK[rank_str], LETTER_TO_SUIT[suit_str]))
    return cards
