"""
动作类型定义与动作生成器

进攻的合法牌型: 单张、对子、三张、四张、顺子、连对 (含 PASS 和 INVALID)
"""
from enum import IntEnum
from dataclasses import dataclass
from typing import List, Tuple, Dict, Sequence
from collections import defaultdict
import itertools

from .cards import Card, TWO_RANK


class ActionType(IntEnum):
    """动作/牌型类型"""
    PASS = 0           # 不出 / 过
    SINGLE = 1         # 单张
    PAIR = 2           # 对子
    TRIPLE = 3         # 三张
    QUAD = 4           # 四张 (炸弹)
    STRAIGHT = 5       # 顺子 (至少3张)
    PAIR_SEQUENCE = 6  # 连对 / đôi thông (至少3对)
    INVALID = 7        # 非法牌型


# 顺子/连对的最小长度
MIN_STRAIGHT_LEN = 3       # 顺子至少 3 张
MIN_PAIR_SEQUENCE_LEN = 3  # 连对至少 3 对


@dataclass(frozen=True, slots=True)
class Action:
    """
    不可变动作表示

    Attributes:
        indices: 手牌中的位置 (相对生成时的手牌)
        cards: 对应的牌
        action_type: 动作类型
    """
    indices: Tuple[int, ...]
    cards: Tuple[Card, ...]
    action_type: ActionType

    @classmethod
    def pass_action(cls) -> 'Action':
        """创建 PASS 动作"""
        return cls(indices=(), cards=(), action_type=ActionType.PASS)

    @classmethod
    def from_indices(cls, hand: Sequence[Card], indices: Sequence[int]) -> 'Action':
        """从手牌位置创建动作"""
        from .rules import RuleEngine
        cards = tuple(hand[i] for i in indices)
        return cls(
            indices=tuple(indices),
            cards=cards,
            action_type=RuleEngine.detect_action_type(list(cards)),
        )

    @property
    def is_pass(self) -> bool:
        return self.action_type == ActionType.PASS

    @property
    def is_bomb(self) -> bool:
        return self.action_type == ActionType.QUAD or (
            self.action_type == ActionType.PAIR_SEQUENCE and len(self.cards) >= 6
        )

    @property
    def max_power(self) -> int:
        return max((c.power for c in self.cards), default=-1)

    def __len__(self) -> int:
        return len(self.cards)


class ActionGenerator:
    """
    合法动作生成器

    根据手牌生成所有可能的出牌组合 (以手牌位置表示)
    """

    def __init__(self, hand_cards: Sequence[Card]):
        """
        Args:
            hand_cards: 手牌 (已按牌力排序，位置即出牌索引)
        """
        self.hand = list(hand_cards)
        # rank -> 该点数在手牌中的位置
        self.rank_positions: Dict[int, List[int]] = defaultdict(list)
        for idx, card in enumerate(self.hand):
            self.rank_positions[card.rank].append(idx)

    def _make(self, indices: Sequence[int], action_type: ActionType) -> Action:
        indices = tuple(sorted(indices))
        return Action(
            indices=indices,
            cards=tuple(self.hand[i] for i in indices),
            action_type=action_type,
        )

    def gen_singles(self) -> List[Action]:
        """生成所有单张"""
        return [self._make((i,), ActionType.SINGLE) for i in range(len(self.hand))]

    def gen_groups(self, size: int) -> List[Action]:
        """生成所有同点数组合 (2=对子, 3=三张, 4=四张)"""
        action_type = {2: ActionType.PAIR, 3: ActionType.TRIPLE, 4: ActionType.QUAD}[size]
        actions = []
        for rank in sorted(self.rank_positions):
            for combo in itertools.combinations(self.rank_positions[rank], size):
                actions.append(self._make(combo, action_type))
        return actions

    def _runs(self, min_count: int) -> List[List[int]]:
        """
        找出所有最长的连续点数段 (不含 2)

        Args:
            min_count: 每个点数至少需要的张数

        Returns:
            点数段列表
        """
        ranks = sorted(
            r for r, pos in self.rank_positions.items()
            if r != TWO_RANK and len(pos) >= min_count
        )
        runs: List[List[int]] = []
        for rank in ranks:
            if runs and runs[-1][-1] == rank - 1:
                runs[-1].append(rank)
            else:
                runs.append([rank])
        return runs

    def gen_straights(self) -> List[Action]:
        """生成所有顺子 (每个点数选一张)"""
        actions = []
        for run in self._runs(1):
            for length in range(MIN_STRAIGHT_LEN, len(run) + 1):
                for start in range(len(run) - length + 1):
                    choices = [self.rank_positions[r] for r in run[start:start + length]]
                    for combo in itertools.product(*choices):
                        actions.append(self._make(combo, ActionType.STRAIGHT))
        return actions

    def gen_pair_sequences(self) -> List[Action]:
        """生成所有连对 (每个点数选一对)"""
        actions = []
        for run in self._runs(2):
            for length in range(MIN_PAIR_SEQUENCE_LEN, len(run) + 1):
                for start in range(len(run) - length + 1):
                    choices = [
                        list(itertools.combinations(self.rank_positions[r], 2))
                        for r in run[start:start + length]
                    ]
                    for pairs in itertools.product(*choices):
                        combo = [i for pair in pairs for i in pair]
                        actions.append(self._make(combo, ActionType.PAIR_SEQUENCE))
        return actions

    def generate_all(self) -> List[Action]:
        """
        生成所有主动出牌动作 (不含 PASS)

        Returns:
            动作列表
        """
        actions = self.gen_singles()
        for size in (2, 3, 4):
            actions.extend(self.gen_groups(size))
        actions.extend(self.gen_straights())
        actions.extend(self.gen_pair_sequences())
        return actions

    def generate_responses(
        self,
        board: Sequence[Card],
        chop_rules: bool = False,
    ) -> List[Action]:
        """
        生成跟牌动作

        Args:
            board: 桌面上的牌 (空表示主动出牌)
            chop_rules: 是否启用牌型匹配与炸弹规则

        Returns:
            能打过桌面的动作；跟牌时第一个动作总是 PASS
        """
        if not board:
            return self.generate_all()

        from .rules import RuleEngine

        responses = [Action.pass_action()]
        for action in self.generate_all():
            if RuleEngine.beats(list(board), list(action.cards), chop_rules):
                responses.append(action)
        return responses

