"""
规则引擎 - 牌型检测、大小比较

所有方法都是纯函数，无状态
"""
from typing import List, Sequence
from collections import Counter

from .cards import Card, TWO_RANK
from .actions import ActionType, MIN_STRAIGHT_LEN, MIN_PAIR_SEQUENCE_LEN


class RuleEngine:
    """
    进攻规则引擎

    提供牌型检测、大小比较等功能
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def is_consecutive(ranks: List[int]) -> bool:
        """
        检查点数列表是否连续

        Args:
            ranks: 已排序的点数列表

        Returns:
            是否连续
        """
        for i in range(len(ranks) - 1):
            if ranks[i + 1] - ranks[i] != 1:
                return False
        return True

    @staticmethod
    def detect_action_type(cards: Sequence[Card]) -> ActionType:
        """
        检测牌型

        Args:
            cards: 牌列表 (任意顺序)

        Returns:
            牌型枚举值
        """
        if not cards:
            return ActionType.PASS

        n = len(cards)
        counter = Counter(c.rank for c in cards)
        unique_ranks = sorted(counter)

        # 单张
        if n == 1:
            return ActionType.SINGLE

        # 对子 / 三张 / 四张
        if len(counter) == 1:
            if n == 2:
                return ActionType.PAIR
            if n == 3:
                return ActionType.TRIPLE
            if n == 4:
                return ActionType.QUAD
            return ActionType.INVALID

        # 2 不能参与顺子和连对
        if TWO_RANK in counter:
            return ActionType.INVALID

        # 顺子: 点数互不相同且连续
        if len(counter) == n and n >= MIN_STRAIGHT_LEN:
            if RuleEngine.is_consecutive(unique_ranks):
                return ActionType.STRAIGHT
            return ActionType.INVALID

        # 连对: 全部是对子且点数连续
        if n % 2 == 0 and all(v == 2 for v in counter.values()):
            if len(unique_ranks) >= MIN_PAIR_SEQUENCE_LEN and RuleEngine.is_consecutive(unique_ranks):
                return ActionType.PAIR_SEQUENCE

        return ActionType.INVALID

    @staticmethod
    def is_valid_set(cards: Sequence[Card]) -> bool:
        """非空且属于合法牌型"""
        return RuleEngine.detect_action_type(cards) not in (ActionType.PASS, ActionType.INVALID)

    @staticmethod
    def max_power(cards: Sequence[Card]) -> int:
        return max((c.power for c in cards), default=-1)

    @staticmethod
    def can_beat(previous: Sequence[Card], candidate: Sequence[Card]) -> bool:
        """
        同张数比较: 最大牌力严格更大即可压过

        不重新检查牌型，调用方应已用 is_valid_set 验证两边

        Args:
            previous: 桌面上的牌
            candidate: 要出的牌

        Returns:
            是否能压过
        """
        if len(previous) != len(candidate):
            return False
        return RuleEngine.max_power(candidate) > RuleEngine.max_power(previous)

    @staticmethod
    def pair_count(cards: Sequence[Card]) -> int:
        """连对包含的对数，非连对返回 0"""
        if RuleEngine.detect_action_type(cards) != ActionType.PAIR_SEQUENCE:
            return 0
        return len(cards) // 2

    @staticmethod
    def can_chop(previous: Sequence[Card], candidate: Sequence[Card]) -> bool:
        """
        炸弹 ("chặt") 规则

        - 单张 2: 四张 或 3对以上连对 可压
        - 一对 2: 四张 或 4对以上连对 可压
        - 3对连对: 四张 或 4对以上连对 可压
        - 四张: 4对以上连对 可压
        - n对连对 (n>=4): 更长的连对可压

        Args:
            previous: 桌面上的牌
            candidate: 要出的牌

        Returns:
            是否构成炸弹压制
        """
        prev_type = RuleEngine.detect_action_type(previous)
        cand_type = RuleEngine.detect_action_type(candidate)
        cand_pairs = RuleEngine.pair_count(candidate)
        is_quad = cand_type == ActionType.QUAD

        if prev_type == ActionType.SINGLE and previous[0].rank == TWO_RANK:
            return is_quad or cand_pairs >= 3

        if prev_type == ActionType.PAIR and previous[0].rank == TWO_RANK:
            return is_quad or cand_pairs >= 4

        if prev_type == ActionType.QUAD:
            return cand_pairs >= 4

        if prev_type == ActionType.PAIR_SEQUENCE:
            prev_pairs = len(previous) // 2
            if prev_pairs == 3 and is_quad:
                return True
            return cand_pairs >= 4 and cand_pairs > prev_pairs

        return False

    @staticmethod
    def beats(
        previous: Sequence[Card],
        candidate: Sequence[Card],
        chop_rules: bool = False,
    ) -> bool:
        """
        判断 candidate 能否压过 previous

        Args:
            previous: 桌面上的牌
            candidate: 要出的牌
            chop_rules: False 时等同 can_beat；True 时要求同牌型或构成炸弹

        Returns:
            是否能压过
        """
        if not chop_rules:
            return RuleEngine.can_beat(previous, candidate)

        same_type = RuleEngine.detect_action_type(previous) == RuleEngine.detect_action_type(candidate)
        if same_type and RuleEngine.can_beat(previous, candidate):
            return True
        return RuleEngine.can_chop(previous, candidate)
