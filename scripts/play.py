#!/usr/bin/env python3
"""
对战脚本

Usage:
    python scripts/play.py                     # 观看 4 个随机 AI 对战
    python scripts/play.py --opponent rule --games 3
    python scripts/play.py --players 2 --seed 7 --chop-rules
"""
import argparse
import logging
import sys
from pathlib import Path
import time

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

import numpy as np

from tienlen.actions import Action, ActionGenerator
from tienlen.cards import cards_to_str
from tienlen.config import GameConfig
from tienlen.events import (
    EventHandler,
    GameStarted,
    TurnChanged,
    RoundEnded,
    PlayerFinished,
    GameOver,
)
from tienlen.state import Game
from evaluation import RandomAgent, RuleBasedAgent, build_observation

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Tiến Lên Play")

    parser.add_argument("--players", type=int, default=4, choices=[1, 2, 3, 4], help="Number of players")
    parser.add_argument(
        "--opponent",
        type=str,
        default="random",
        choices=["random", "rule"],
        help="Agent type",
    )
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--chop-rules", action="store_true", help="Enable bomb/chop rules")
    parser.add_argument("--delay", type=float, default=0.0, help="Delay between moves")
    parser.add_argument("--verbose", action="store_true", help="Show engine debug logs")

    return parser.parse_args()


def action_to_str(action: Action) -> str:
    """动作转字符串"""
    if action.is_pass:
        return "Pass"
    return f"{cards_to_str(action.cards)} ({action.action_type.name.lower()})"


class ConsolePrinter(EventHandler):
    """把事件打印到控制台"""

    def on_game_started(self, event: GameStarted) -> None:
        print(f"座次: {' -> '.join(event.turn_order)}  (房主 {event.owner_id})")

    def on_turn_changed(self, event: TurnChanged) -> None:
        board = cards_to_str(event.board) if event.board else "(空)"
        print(f"  轮到 {event.active_player_id}，桌面: {board}")

    def on_round_ended(self, event: RoundEnded) -> None:
        print(f"  -- {event.winner_id} 赢得本轮 --")

    def on_player_finished(self, event: PlayerFinished) -> None:
        print(f"  *** {event.player_id} 出完，第 {event.rank} 名 ***")

    def on_game_over(self, event: GameOver) -> None:
        print(f"  游戏结束! 胜者: {event.winner_id}")


def create_agents(args, rng: np.random.Generator):
    """创建智能体"""
    agents = []
    for i in range(args.players):
        if args.opponent == "rule":
            agents.append(RuleBasedAgent(f"Rule_{i}"))
        else:
            agents.append(RandomAgent(f"Random_{i}", rng=rng))
    return agents


def watch_game(args):
    """观看 AI 对战"""
    rng = np.random.default_rng(args.seed)
    game = Game(GameConfig(chop_rules=args.chop_rules, seed=args.seed))
    agents = {agent.name: agent for agent in create_agents(args, rng)}
    printer = ConsolePrinter()
    owner_id = next(iter(agents))
    last_winner = ""

    for game_idx in range(args.games):
        print(f"\n{'='*60}")
        print(f"Game {game_idx + 1}/{args.games}")
        print("=" * 60)

        for event in game.start(list(agents), owner_id, last_winner):
            printer.dispatch(event)

        step = 0
        while game.is_playing():
            snapshot = game.snapshot()
            player_id = snapshot.active_player_id
            hand = game.hand_of(player_id)
            print(f"\n[{player_id}] 手牌 ({len(hand)}): {cards_to_str(hand)}")

            legal_actions = ActionGenerator(hand).generate_responses(snapshot.board, args.chop_rules)
            obs = build_observation(player_id, hand, snapshot.board, snapshot.hand_counts)
            action = agents[player_id].act(obs, legal_actions)
            print(f"{player_id} 出牌: {action_to_str(action)}")

            if action.is_pass:
                events = game.pass_turn(player_id)
            else:
                events = game.play_cards(player_id, list(action.indices))
            for event in events:
                printer.dispatch(event)

            step += 1
            if args.delay:
                time.sleep(args.delay)

        snapshot = game.snapshot()
        loser = [uid for uid in snapshot.player_ids if uid not in snapshot.finished_players]
        print("\n" + "=" * 60)
        print(f"名次: {', '.join(snapshot.winners)}" + (f"  最后: {loser[0]}" if loser else ""))
        print(f"总步数: {step}")
        print("=" * 60)
        last_winner = snapshot.winners[0]


def main():
    args = parse_args()
    if args.verbose:
        logging.getLogger("tienlen").setLevel(logging.DEBUG)

    print("=" * 60)
    print("Tiến Lên")
    print("=" * 60)

    watch_game(args)


if __name__ == "__main__":
    main()
