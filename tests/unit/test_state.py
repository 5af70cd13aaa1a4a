"""游戏状态机测试"""
import pytest
import numpy as np

from tienlen.cards import Card, str_to_cards
from tienlen.config import GameConfig
from tienlen.events import (
    GameStarted,
    TurnChanged,
    HandUpdated,
    RoundEnded,
    PlayerFinished,
    GameOver,
)
from tienlen.exceptions import (
    TienLenError,
    InvalidArgumentError,
    InsufficientCardsError,
    NotPlayingError,
    OutOfTurnError,
    EmptySelectionError,
    InvalidIndexError,
    IllegalCombinationError,
    CannotBeatError,
    NoActiveBoardError,
    UnknownPlayerError,
    AlreadyFinishedError,
)
from tienlen.state import Phase, Game, Snapshot, validate_indices


def rigged(hands, leader=None, **config):
    """按给定手牌 (字符串) 构建对局，座次为 dict 顺序"""
    return Game.from_position(
        {uid: str_to_cards(text) for uid, text in hands.items()},
        list(hands),
        leader=leader,
        owner_id=next(iter(hands)),
        config=GameConfig(**config),
    )


def full_state(game):
    """用于比较状态是否被修改"""
    return (
        game.snapshot(),
        {uid: game.hand_of(uid) for uid in game.turn_order},
        game.last_actor,
        game.round_skippers,
    )


class TestPhaseEnum:
    """Phase 枚举测试"""

    def test_phases(self):
        assert Phase.IDLE.value == "idle"
        assert Phase.PLAYING.value == "playing"


class TestNewGame:
    """新建 Game 测试"""

    def test_idle(self):
        game = Game()
        assert not game.is_playing()
        assert game.phase == Phase.IDLE
        assert game.current_player == ""
        assert game.board == ()

    def test_empty_snapshot(self):
        snap = Game().snapshot()
        assert snap.is_playing is False
        assert snap.active_player_id == ""
        assert snap.player_ids == ()


class TestStart:
    """开局测试"""

    @pytest.mark.parametrize("n_players", [1, 2, 3, 4])
    def test_deals_hands(self, n_players):
        game = Game(rng=np.random.default_rng(n_players))
        players = [f"p{i}" for i in range(n_players)]
        events = game.start(players, "p0")

        started = events[0]
        assert isinstance(started, GameStarted)
        assert len(started.hands) == n_players
        assert all(len(hand) == 13 for hand in started.hands.values())
        all_cards = [c for hand in started.hands.values() for c in hand]
        assert len(set(all_cards)) == 13 * n_players
        assert sorted(started.turn_order) == sorted(players)
        assert started.owner_id == "p0"

    def test_events(self):
        game = Game(rng=np.random.default_rng(1))
        events = game.start(["p1", "p2", "p3", "p4"], "p1")
        assert len(events) == 2
        assert isinstance(events[0], GameStarted)
        assert isinstance(events[1], TurnChanged)
        assert events[1].active_player_id == game.current_player
        assert events[1].board == ()

    def test_hands_sorted(self):
        game = Game(rng=np.random.default_rng(2))
        game.start(["a", "b", "c"], "a")
        for uid in game.turn_order:
            powers = [c.power for c in game.hand_of(uid)]
            assert powers == sorted(powers)

    def test_lowest_card_leads(self):
        game = Game(rng=np.random.default_rng(3))
        events = game.start(["p1", "p2", "p3", "p4"], "p1")
        # 四人局发完全部 52 张，3♠ 所在玩家先出
        leader = events[1].active_player_id
        assert Card(0, 0) in game.hand_of(leader)

    def test_lowest_card_leads_two_players(self):
        game = Game(rng=np.random.default_rng(4))
        game.start(["p1", "p2"], "p1")
        lowest = min(
            game.turn_order,
            key=lambda uid: game.hand_of(uid)[0].power,
        )
        assert game.current_player == lowest

    def test_last_winner_leads(self):
        game = Game(rng=np.random.default_rng(5))
        events = game.start(["p1", "p2", "p3", "p4"], "p1", last_winner_id="p3")
        assert events[1].active_player_id == "p3"

    def test_absent_last_winner_ignored(self):
        game = Game(rng=np.random.default_rng(5))
        game.start(["p1", "p2", "p3", "p4"], "p1", last_winner_id="ghost")
        assert Card(0, 0) in game.hand_of(game.current_player)

    def test_deterministic_with_rng(self):
        a, b = Game(), Game()
        a.start(["p1", "p2"], "p1", rng=np.random.default_rng(9))
        b.start(["p1", "p2"], "p1", rng=np.random.default_rng(9))
        assert a.turn_order == b.turn_order
        assert a.hands_copy() == b.hands_copy()

    def test_deterministic_with_config_seed(self):
        a = Game(GameConfig(seed=11))
        b = Game(GameConfig(seed=11))
        a.start(["p1", "p2", "p3"], "p1")
        b.start(["p1", "p2", "p3"], "p1")
        assert a.hands_copy() == b.hands_copy()

    def test_no_players(self):
        game = Game()
        with pytest.raises(InvalidArgumentError):
            game.start([], "p1")
        assert not game.is_playing()

    def test_too_many_players(self):
        game = Game()
        with pytest.raises(InsufficientCardsError):
            game.start(["p1", "p2", "p3", "p4", "p5"], "p1")
        assert not game.is_playing()
        assert game.turn_order == ()

    def test_duplicate_players(self):
        rng = np.random.default_rng(6)
        game = Game(rng=rng)
        before = rng.bit_generator.state
        with pytest.raises(InvalidArgumentError):
            game.start(["a", "a", "b"], "a")
        assert rng.bit_generator.state == before
        assert not game.is_playing()
        assert game.turn_order == ()

    @pytest.mark.parametrize("hand_size", [0, -1])
    def test_non_positive_hand_size(self, hand_size):
        game = Game(GameConfig(hand_size=hand_size))
        with pytest.raises(InvalidArgumentError):
            game.start(["p1", "p2"], "p1")
        assert not game.is_playing()

    def test_restart_resets_state(self):
        game = rigged({"p1": "3s", "p2": "4s 5s"})
        game.play_cards("p1", [0])
        assert not game.is_playing()
        assert game.winners == ("p1",)

        game.start(["p1", "p2"], "p1", last_winner_id="p1", rng=np.random.default_rng(0))
        assert game.is_playing()
        assert game.winners == ()
        assert game.finished_players == frozenset()
        assert game.board == ()
        assert game.last_actor == ""
        assert game.current_player == "p1"


class TestFromPosition:
    """from_position 测试"""

    def test_sorts_hands(self):
        game = rigged({"p1": "2h 3s 9d", "p2": "4s"})
        assert game.hand_of("p1") == str_to_cards("3s 9d 2h")

    def test_leader(self):
        game = rigged({"p1": "3s", "p2": "4s"}, leader="p2")
        assert game.current_player == "p2"

    def test_mismatched_players(self):
        with pytest.raises(InvalidArgumentError):
            Game.from_position({"p1": str_to_cards("3s")}, ["p1", "p2"])

    def test_duplicate_card(self):
        with pytest.raises(InvalidArgumentError):
            Game.from_position(
                {"p1": str_to_cards("3s"), "p2": str_to_cards("3s")},
                ["p1", "p2"],
            )

    def test_empty_hand(self):
        with pytest.raises(InvalidArgumentError):
            Game.from_position({"p1": [], "p2": str_to_cards("4s")}, ["p1", "p2"])

    @pytest.mark.parametrize("card", [Card(13, 0), Card(-1, 0), Card(0, 4), Card(5, -1)])
    def test_card_out_of_range(self, card):
        with pytest.raises(InvalidArgumentError):
            Game.from_position({"p1": [card], "p2": str_to_cards("4s")}, ["p1", "p2"])


class TestPlayCards:
    """出牌测试"""

    def test_play_single(self):
        game = rigged({"p1": "4s 6s", "p2": "5s 7s"})
        events = game.play_cards("p1", [0])

        assert events == [
            HandUpdated(player_id="p1", hand=(Card(3, 0),)),
            TurnChanged(active_player_id="p2", board=(Card(1, 0),)),
        ]
        assert game.board == (Card(1, 0),)
        assert game.last_actor == "p1"
        assert game.current_player == "p2"
        assert game.hand_of("p1") == [Card(3, 0)]

    def test_play_pair(self):
        game = rigged({"p1": "4s 4h 9s", "p2": "5s 7s"})
        game.play_cards("p1", [1, 0])
        assert game.hand_of("p1") == str_to_cards("9s")
        assert set(game.board) == set(str_to_cards("4s 4h"))

    def test_must_beat_board(self):
        game = rigged({"p1": "5s 6s", "p2": "4s 9s"})
        game.play_cards("p1", [0])
        with pytest.raises(CannotBeatError):
            game.play_cards("p2", [0])
        events = game.play_cards("p2", [1])
        assert events[-1] == TurnChanged(active_player_id="p1", board=(Card(6, 0),))

    def test_play_resets_skippers(self):
        game = rigged({"p1": "3s 8s", "p2": "4s 9s", "p3": "5s 10s"})
        game.play_cards("p1", [0])
        game.pass_turn("p2")
        assert game.round_skippers == {"p2"}
        game.play_cards("p3", [0])
        assert game.round_skippers == frozenset()
        assert game.current_player == "p1"

    def test_not_playing(self):
        with pytest.raises(NotPlayingError):
            Game().play_cards("p1", [0])

    def test_out_of_turn(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        with pytest.raises(OutOfTurnError):
            game.play_cards("p2", [0])

    def test_unknown_player_is_out_of_turn(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        with pytest.raises(OutOfTurnError):
            game.play_cards("ghost", [0])

    def test_seated_player_without_hand(self):
        game = rigged({"p1": "3s 4s", "p2": "5s 6s"})
        del game._hands["p1"]
        before = full_state(game)
        with pytest.raises(UnknownPlayerError):
            game.play_cards("p1", [0])
        assert full_state(game) == before

    def test_empty_selection(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        with pytest.raises(EmptySelectionError):
            game.play_cards("p1", [])

    @pytest.mark.parametrize("indices", [[5], [-1], [0, 0]])
    def test_invalid_index(self, indices):
        game = rigged({"p1": "3s 3h", "p2": "4s"})
        with pytest.raises(InvalidIndexError):
            game.play_cards("p1", indices)

    def test_illegal_combination(self):
        game = rigged({"p1": "3s 5h", "p2": "4s"})
        with pytest.raises(IllegalCombinationError):
            game.play_cards("p1", [0, 1])

    @pytest.mark.parametrize("action", [
        lambda g: g.play_cards("p2", [0]),
        lambda g: g.play_cards("p1", []),
        lambda g: g.play_cards("p1", [9]),
        lambda g: g.play_cards("p1", [0, 2]),
        lambda g: g.play_cards("p1", [0]),
    ])
    def test_rejected_play_leaves_state_unchanged(self, action):
        game = rigged({"p1": "3s 4s 6d 9h", "p2": "5s 7s 8s", "p3": "10s Jd Qc"})
        game.play_cards("p1", [2])  # 6♦
        game.play_cards("p2", [1])  # 7♠
        game.pass_turn("p3")
        before = full_state(game)
        with pytest.raises(TienLenError):
            action(game)
        assert full_state(game) == before

    def test_hand_shrinks_and_stays_sorted(self):
        game = rigged({"p1": "3s 5d 7c 9h Jd", "p2": "4s 6s 8s 10s Qs"})
        game.play_cards("p1", [2])
        game.play_cards("p2", [2])
        hand = game.hand_of("p1")
        assert len(hand) == 4
        assert [c.power for c in hand] == sorted(c.power for c in hand)


class TestPass:
    """过牌测试"""

    def test_pass_ends_round_two_players(self):
        game = rigged({"p1": "4s 6s", "p2": "5s 7s"})
        game.play_cards("p1", [0])
        assert game.board == (Card(1, 0),)
        assert game.current_player == "p2"

        events = game.pass_turn("p2")
        assert events == [
            RoundEnded(winner_id="p1"),
            TurnChanged(active_player_id="p1", board=()),
        ]
        assert game.current_player == "p1"
        assert game.board == ()
        assert game.last_actor == ""

    def test_pass_advances_when_others_remain(self):
        game = rigged({"p1": "3s 9s", "p2": "4s 9h", "p3": "5s 9d"})
        game.play_cards("p1", [0])
        events = game.pass_turn("p2")
        assert events == [TurnChanged(active_player_id="p3", board=(Card(0, 0),))]

    def test_skippers_are_skipped(self):
        game = rigged({"p1": "3s 9s", "p2": "4s 9h", "p3": "5s 10d", "p4": "6s Jd"})
        game.play_cards("p1", [0])
        game.pass_turn("p2")
        events = game.pass_turn("p3")
        assert events == [TurnChanged(active_player_id="p4", board=(Card(0, 0),))]
        events = game.pass_turn("p4")
        assert events == [
            RoundEnded(winner_id="p1"),
            TurnChanged(active_player_id="p1", board=()),
        ]

    def test_new_play_gives_skippers_another_chance(self):
        game = rigged({"p1": "3s 9s", "p2": "4s 9h", "p3": "5s 10d"})
        game.play_cards("p1", [0])
        game.pass_turn("p2")
        game.play_cards("p3", [0])
        assert game.current_player == "p1"
        events = game.pass_turn("p1")
        assert events == [TurnChanged(active_player_id="p2", board=(Card(2, 0),))]
        events = game.pass_turn("p2")
        assert events == [
            RoundEnded(winner_id="p3"),
            TurnChanged(active_player_id="p3", board=()),
        ]

    def test_no_active_board(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        before = full_state(game)
        with pytest.raises(NoActiveBoardError):
            game.pass_turn("p1")
        assert full_state(game) == before

    def test_finished_player_cannot_pass(self):
        game = rigged({"p1": "3s 9s", "p2": "4s 9h", "p3": "5s 9d"})
        game.play_cards("p1", [0])
        # 当前座位已出完时不能过牌 (正常轮转不会出现)
        game._finished.add("p2")
        before = full_state(game)
        with pytest.raises(AlreadyFinishedError):
            game.pass_turn("p2")
        assert full_state(game) == before

    def test_not_playing(self):
        with pytest.raises(NotPlayingError):
            Game().pass_turn("p1")

    def test_out_of_turn(self):
        game = rigged({"p1": "3s 5s", "p2": "4s 6s"})
        game.play_cards("p1", [0])
        with pytest.raises(OutOfTurnError):
            game.pass_turn("p1")


class TestFinishing:
    """出完与结束测试"""

    def test_two_player_game_over(self):
        game = rigged({"p1": "3s", "p2": "4s 5s"})
        events = game.play_cards("p1", [0])
        assert events == [
            HandUpdated(player_id="p1", hand=()),
            PlayerFinished(player_id="p1", rank=1),
            GameOver(winner_id="p1"),
        ]
        assert not game.is_playing()
        assert game.winners == ("p1",)
        assert "p2" not in game.winners

    def test_solo_game_over(self):
        game = rigged({"p1": "3s"})
        events = game.play_cards("p1", [0])
        assert isinstance(events[-1], GameOver)
        assert events[-1].winner_id == "p1"
        assert not game.is_playing()

    def test_finisher_skipped_and_game_continues(self):
        game = rigged({"p1": "3s", "p2": "4s 8s", "p3": "5s 9s"})
        events = game.play_cards("p1", [0])
        assert events == [
            HandUpdated(player_id="p1", hand=()),
            PlayerFinished(player_id="p1", rank=1),
            TurnChanged(active_player_id="p2", board=(Card(0, 0),)),
        ]
        assert game.is_playing()
        assert game.finished_players == {"p1"}

    def test_finished_last_actor_round_passes_to_next(self):
        game = rigged({"p1": "3s", "p2": "4s 8s", "p3": "5s 9s"})
        game.play_cards("p1", [0])
        game.pass_turn("p2")
        events = game.pass_turn("p3")
        # p1 已出完，由其下家 p2 领出
        assert events == [
            RoundEnded(winner_id="p1"),
            TurnChanged(active_player_id="p2", board=()),
        ]
        assert game.last_actor == ""

    def test_finish_order_and_game_over(self):
        game = rigged({"p1": "3s", "p2": "4s", "p3": "5s 6s"})
        game.play_cards("p1", [0])
        events = game.play_cards("p2", [0])
        assert events == [
            HandUpdated(player_id="p2", hand=()),
            PlayerFinished(player_id="p2", rank=2),
            GameOver(winner_id="p1"),
        ]
        assert game.winners == ("p1", "p2")
        assert not game.is_playing()
        assert len(game.winners) == len(game.turn_order) - 1

    def test_play_after_game_over(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        game.play_cards("p1", [0])
        with pytest.raises(NotPlayingError):
            game.play_cards("p2", [0])


class TestRotation:
    """轮转测试"""

    def test_skips_finished_players(self):
        game = rigged({"p1": "3s 9s Ks", "p2": "4s", "p3": "5s 10s", "p4": "6s Js"})
        game.play_cards("p1", [0])
        game.play_cards("p2", [0])  # p2 出完
        game.play_cards("p3", [0])
        game.play_cards("p4", [0])
        events = game.play_cards("p1", [0])
        # 跳过 p2
        assert events[-1].active_player_id == "p3"

    def test_round_end_after_all_active_pass(self):
        game = rigged({"p1": "3s 9s", "p2": "4s", "p3": "5s 10s", "p4": "6s Js"})
        game.play_cards("p1", [0])
        game.play_cards("p2", [0])  # p2 出完
        game.play_cards("p3", [0])
        game.pass_turn("p4")
        events = game.pass_turn("p1")
        assert events == [
            RoundEnded(winner_id="p3"),
            TurnChanged(active_player_id="p3", board=()),
        ]

    def test_fallback_keeps_current_player(self):
        game = rigged({"p1": "3s 4s", "p2": "5s 6s"})
        # 人为破坏不变量: 所有人都已过牌且最后出牌者不在座
        game._last_actor = "ghost"
        game._round_skippers = {"p1", "p2"}
        events = game._advance_turn()
        assert events == [TurnChanged(active_player_id="p1", board=())]


class TestQueries:
    """查询测试"""

    def test_has_player(self):
        game = rigged({"p1": "3s", "p2": "4s"})
        assert game.has_player("p1")
        assert not game.has_player("ghost")

    def test_hand_of_is_copy(self):
        game = rigged({"p1": "3s 5s", "p2": "4s"})
        hand = game.hand_of("p1")
        hand.clear()
        assert len(game.hand_of("p1")) == 2

    def test_hand_of_unknown(self):
        assert Game().hand_of("ghost") == []

    def test_snapshot(self):
        game = rigged({"p1": "3s 5s", "p2": "4s 6s"})
        game.play_cards("p1", [0])
        snap = game.snapshot()
        assert isinstance(snap, Snapshot)
        assert snap.is_playing
        assert snap.owner_id == "p1"
        assert snap.board == (Card(0, 0),)
        assert snap.active_player_id == "p2"
        assert snap.player_ids == ("p1", "p2")
        assert snap.winners == ()
        assert snap.hand_counts == (("p1", 1), ("p2", 2))

    def test_snapshot_has_no_hands(self):
        snap = rigged({"p1": "3s", "p2": "4s"}).snapshot()
        assert not hasattr(snap, "hands")

    def test_snapshot_is_hashable(self):
        game = rigged({"p1": "3s 5s", "p2": "4s 6s"})
        snap = game.snapshot()
        assert hash(snap) == hash(game.snapshot())
        assert dict(snap.hand_counts) == {"p1": 2, "p2": 2}

    def test_snapshot_is_detached(self):
        game = rigged({"p1": "3s 5s", "p2": "4s 6s"})
        snap = game.snapshot()
        game.play_cards("p1", [0])
        assert snap.hand_counts == (("p1", 2), ("p2", 2))
        assert snap.board == ()

    def test_queries_idempotent(self):
        game = Game(rng=np.random.default_rng(7))
        game.start(["p1", "p2", "p3"], "p1")
        assert game.snapshot() == game.snapshot()
        for uid in game.turn_order:
            assert game.hand_of(uid) == game.hand_of(uid)

    def test_game_started_hands_are_copies(self):
        game = Game(rng=np.random.default_rng(8))
        events = game.start(["p1", "p2"], "p1")
        events[0].hands["p1"] = ()
        assert len(game.hand_of("p1")) == 13


class TestValidateIndices:
    """validate_indices 测试"""

    def test_ok(self):
        validate_indices([0, 2, 1], 3)

    def test_out_of_range(self):
        with pytest.raises(InvalidIndexError):
            validate_indices([3], 3)

    def test_duplicate(self):
        with pytest.raises(InvalidIndexError):
            validate_indices([1, 1], 3)
