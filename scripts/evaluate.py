#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py --agent rule --games 200
    python scripts/evaluate.py --tournament --games 50 --players 3
"""
import argparse
import logging
import sys
from pathlib import Path
import json

import numpy as np

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from evaluation import (
    ArenaConfig,
    Arena,
    Evaluator,
    RandomAgent,
    RuleBasedAgent,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Tiến Lên Evaluation")

    parser.add_argument("--tournament", action="store_true", help="Run round robin")
    parser.add_argument(
        "--agent",
        type=str,
        default="rule",
        choices=["random", "rule"],
        help="Agent to evaluate",
    )
    parser.add_argument(
        "--opponent",
        type=str,
        default="random",
        choices=["random", "rule"],
        help="Opponent type",
    )
    parser.add_argument("--games", type=int, default=100, help="Number of games")
    parser.add_argument("--players", type=int, default=4, choices=[1, 2, 3, 4])
    parser.add_argument("--chop-rules", action="store_true", help="Enable bomb/chop rules")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def make_agent(kind: str, name: str, rng: np.random.Generator):
    return RuleBasedAgent(name) if kind == "rule" else RandomAgent(name, rng=rng)


def build_config(args) -> ArenaConfig:
    return ArenaConfig(n_players=args.players, chop_rules=args.chop_rules, seed=args.seed)


def evaluate_single(args):
    """评估单个智能体"""
    logger.info(f"Evaluating {args.agent} agent against {args.opponent} opponents")

    rng = np.random.default_rng(args.seed)
    agent = make_agent(args.agent, args.agent, rng)
    opponents = [make_agent(args.opponent, f"{args.opponent}{i + 1}", rng) for i in range(args.players - 1)]

    evaluator = Evaluator(build_config(args))
    result = evaluator.evaluate(agent, n_games=args.games, opponents=opponents, verbose=args.verbose)

    logger.info("=" * 50)
    logger.info("Evaluation Results")
    logger.info("=" * 50)
    logger.info(f"Games played:     {result.games_played}")
    logger.info(f"First place rate: {result.first_place_rate:.2%}")
    logger.info(f"Loss rate:        {result.loss_rate:.2%}")
    logger.info(f"Avg finish rank:  {result.avg_finish_rank:.2f}")
    logger.info(f"Avg game length:  {result.avg_length:.1f}")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "first_place_rate": result.first_place_rate,
                "loss_rate": result.loss_rate,
                "avg_finish_rank": result.avg_finish_rank,
                "avg_length": result.avg_length,
                "games_played": result.games_played,
            }, f, indent=2)

    return result


def run_tournament(args):
    """运行循环赛"""
    rng = np.random.default_rng(args.seed)
    agents = [
        RandomAgent("random_a", rng=rng),
        RandomAgent("random_b", rng=rng),
        RuleBasedAgent("rule_a"),
        RuleBasedAgent("rule_b"),
    ]
    logger.info(f"Running round robin with {len(agents)} agents")

    arena = Arena(build_config(args))
    result = arena.round_robin(agents, games_per_match=args.games)

    logger.info("=" * 50)
    logger.info("Tournament Results")
    logger.info("=" * 50)

    ranking = result.get_ranking()
    for i, (name, rate) in enumerate(ranking):
        logger.info(f"{i+1}. {name}: {rate:.2%}")

    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "rankings": ranking,
                "total_games": result.total_games,
                "standings": result.standings,
            }, f, indent=2)

    return result


def main():
    args = parse_args()

    if args.tournament:
        run_tournament(args)
    else:
        evaluate_single(args)


if __name__ == "__main__":
    main()
