"""Tests for belief tracking and theory of mind."""

import math

import pytest

from src.hanabi.belief import (
    belief_from,
    compute_remaining,
    expected_entropy,
    hand_beliefs,
    knowledge_for,
    probability_dead,
    probability_playable,
    visible_cards,
)
from src.hanabi.deck import DECK_COMPOSITION, create_deck, create_full_deck
from src.hanabi.errors import EmptyBelief, InvalidSlot, InvariantViolation, OverobservedCard
from src.hanabi.game import execute, init_game
from src.hanabi.models import (
    Card,
    CardKnowledge,
    GiveHint,
    PlayCard,
    PublicGameState,
)

from hanabi_helpers import make_game


def card(code: str) -> Card:
    return Card.from_code(code)


class TestComputeRemaining:
    """Tests for remaining-card accounting."""

    def test_nothing_observed(self):
        assert compute_remaining([]) == dict(DECK_COMPOSITION)

    def test_decrements_per_copy(self):
        remaining = compute_remaining([card("R1"), card("R1"), card("M5")])
        assert remaining[card("R1")] == 1
        assert remaining[card("M5")] == 0
        assert remaining[card("B1")] == 3

    def test_entire_deck_leaves_nothing(self):
        remaining = compute_remaining(create_deck(seed=9))
        assert all(count == 0 for count in remaining.values())

    def test_every_prefix_of_a_deck_is_non_negative(self):
        deck = create_deck(seed=21)
        for n in range(0, len(deck) + 1, 7):
            assert min(compute_remaining(deck[:n]).values()) >= 0

    def test_overobserved_card(self):
        with pytest.raises(OverobservedCard) as excinfo:
            compute_remaining([card("Y5"), card("Y5")])
        assert excinfo.value.card == card("Y5")
        assert excinfo.value.composition_count == 1
        assert isinstance(excinfo.value, InvariantViolation)

    def test_does_not_touch_composition(self):
        compute_remaining(create_full_deck())
        assert sum(DECK_COMPOSITION.values()) == 60


class TestBeliefFrom:
    """Tests for single-slot posteriors."""

    def test_uniform_prior(self):
        belief = belief_from([])
        assert math.isclose(sum(belief.probs.values()), 1.0)
        assert math.isclose(belief.probability(card("R1")), 3 / 60)
        assert math.isclose(belief.probability(card("M5")), 1 / 60)
        assert not belief.known

    def test_zero_supply_excluded(self):
        belief = belief_from([card("G5"), card("R1"), card("R1"), card("R1")])
        assert card("G5") not in belief.probs
        assert card("R1") not in belief.probs
        assert math.isclose(sum(belief.probs.values()), 1.0)
        assert math.isclose(belief.probability(card("B1")), 3 / 56)

    def test_probabilities_sum_to_one_across_deck_prefixes(self):
        deck = create_deck(seed=5)
        for n in (0, 10, 30, 59):
            belief = belief_from(deck[:n])
            assert math.isclose(sum(belief.probs.values()), 1.0)
            assert all(p > 0 for p in belief.probs.values())

    def test_single_card_left_is_known(self):
        deck = create_full_deck()
        deck.remove(card("W4"))
        belief = belief_from(deck)
        assert belief.known
        assert belief.probs == {card("W4"): 1.0}
        assert belief.known_color == "white"
        assert belief.known_rank == 4

    def test_hint_knowledge_restricts_support(self):
        knowledge = CardKnowledge()
        knowledge.apply_rank_hint(5, touched=True)
        belief = belief_from([], knowledge)
        assert len(belief.probs) == 6
        assert belief.known_rank == 5
        assert belief.known_color is None
        assert math.isclose(belief.probability(card("M5")), 1 / 6)

    def test_color_and_rank_hints_resolve_identity(self):
        knowledge = CardKnowledge()
        knowledge.apply_color_hint("blue", touched=True)
        knowledge.apply_color_hint("red", touched=False)  # rules out multicolor
        knowledge.apply_rank_hint(3, touched=True)
        belief = belief_from([], knowledge)
        assert belief.known
        assert belief.probs == {card("B3"): 1.0}

    def test_empty_support_is_an_invariant_violation(self):
        knowledge = CardKnowledge()
        knowledge.apply_rank_hint(5, touched=True)
        fives = [Card(color=c, rank=5) for c in ("red", "white", "green", "blue", "yellow", "multicolor")]
        with pytest.raises(EmptyBelief):
            belief_from(fives, knowledge)

    def test_marginals(self):
        belief = belief_from([])
        colors = belief.color_marginals()
        ranks = belief.rank_marginals()
        assert math.isclose(colors["multicolor"], 10 / 60)
        assert math.isclose(ranks[1], 18 / 60)
        assert math.isclose(sum(colors.values()), 1.0)

    def test_json_uses_card_codes(self):
        belief = belief_from([])
        data = belief.model_dump(mode="json")
        assert math.isclose(data["probs"]["R1"], 3 / 60)


class TestVisibleCards:
    """Tests for what an observer can see."""

    def test_excludes_own_hand(self):
        game = make_game([["R1", "B2"], ["G1", "Y1"], ["W1", "W2"]], deck=["B1"])
        visible = visible_cards(game, 0)
        assert sorted(map(str, visible)) == sorted(["G1", "Y1", "W1", "W2"])

    def test_includes_discards_and_played_cards(self):
        game = make_game([["R1", "B2"], ["G1", "Y1"]], deck=["W1", "W2", "W3"])
        execute(game, PlayCard(player=0, slot=0))   # R1 played, draws W1
        execute(game, PlayCard(player=1, slot=1))   # Y1 played, draws W2
        execute(game, PlayCard(player=0, slot=0))   # B2 explodes, draws W3
        visible = [str(c) for c in visible_cards(game, 0)]
        assert "R1" in visible and "Y1" in visible and "B2" in visible
        assert "W1" not in visible  # in player 0's own hand

    def test_multicolor_on_stack_counts_as_itself(self):
        """Three red 1s in view plus a multicolor 1 on the red stack stays consistent."""
        game = make_game(
            [["M1", "B2"], ["R1", "R1"], ["R1", "W2"]],
            deck=["G2", "G3"],
        )
        execute(game, PlayCard(player=0, slot=0), placement=lambda options, state: "red")
        assert game.public.played_stacks["red"] == 1
        for player in range(3):
            knowledge_for(game, player)  # must not over-count red 1s
        remaining = compute_remaining(visible_cards(game, 0))
        assert remaining[card("R1")] == 0
        assert remaining[card("M1")] == 2


class TestKnowledgeFor:
    """Tests for per-observer knowledge snapshots."""

    def test_shape(self):
        game = init_game(3, 5, seed=42)
        knowledge = knowledge_for(game, 1)
        assert knowledge.observer == 1
        assert len(knowledge.own_hand) == 5
        assert set(knowledge.other_hands) == {0, 2}
        assert knowledge.other_hands[0] == game.hands[0]
        assert set(knowledge.theory_of_mind) == {0, 2}
        assert knowledge.info_tokens == 8
        assert knowledge.deck_size == 45

    def test_unhinted_slots_share_a_distribution(self):
        game = init_game(3, 5, seed=42)
        own = knowledge_for(game, 0).own_hand
        assert all(b.probs == own[0].probs for b in own)

    def test_beliefs_match_visible_accounting(self):
        game = init_game(3, 5, seed=3)
        knowledge = knowledge_for(game, 2)
        expected = belief_from(visible_cards(game, 2))
        assert knowledge.own_hand[0].probs == expected.probs

    def test_theory_of_mind_uses_the_other_players_view(self):
        game = init_game(3, 5, seed=17)
        knowledge = knowledge_for(game, 0)
        for other in (1, 2):
            nested = knowledge.theory_of_mind[other]
            assert [b.probs for b in nested] == [b.probs for b in knowledge_for(game, other).own_hand]
            assert [b.probs for b in nested] == [b.probs for b in hand_beliefs(game, other)]

    def test_theory_of_mind_differs_from_own_beliefs(self):
        game = make_game([["R5", "B5"], ["G1", "Y1"], ["W1", "W2"]], deck=["B1"])
        knowledge = knowledge_for(game, 0)
        # Player 1 sees R5 and B5, player 0 does not
        assert card("R5") in knowledge.own_hand[0].probs
        assert card("R5") not in knowledge.theory_of_mind[1][0].probs

    def test_hints_flow_into_own_and_nested_beliefs(self):
        game = make_game([["R1", "B2"], ["G2", "Y1"], ["W1", "W2"]], deck=["B1"])
        execute(game, GiveHint(giver=0, receiver=1, hint_kind="rank", hint_value=2))

        own = knowledge_for(game, 1).own_hand
        assert own[0].known_rank == 2
        assert all(c.rank != 2 for c in own[1].probs)

        nested = knowledge_for(game, 2).theory_of_mind[1]
        assert nested[0].known_rank == 2

    def test_snapshot_is_independent_of_later_actions(self):
        game = init_game(3, 5, seed=2)
        hand_before = list(game.hands[0])
        before = knowledge_for(game, 1)
        execute(game, PlayCard(player=0, slot=0))
        assert before.deck_size == 45
        assert before.other_hands[0] == hand_before
        assert game.hands[0] != hand_before

    def test_unknown_observer(self):
        game = init_game(3, 5, seed=2)
        with pytest.raises(InvalidSlot):
            knowledge_for(game, 3)


class TestDerivedQuantities:
    """Tests for playability, dead-card and entropy helpers."""

    def test_probability_playable_at_start(self):
        belief = belief_from([])
        # Every 1 is playable: 15 ordinary + 3 multicolor
        assert math.isclose(probability_playable(belief, PublicGameState()), 18 / 60)

    def test_probability_dead(self):
        public = PublicGameState()
        public.played_stacks["red"] = 2
        belief = belief_from([])
        # R1 x3 and R2 x2 are dead; no multicolor is dead while stacks are low
        assert math.isclose(probability_dead(belief, public), 5 / 60)

    def test_entropy_drops_with_information(self):
        uninformed = belief_from([])
        informed = belief_from(create_full_deck()[:50])
        assert expected_entropy([informed]) < expected_entropy([uninformed])
        assert expected_entropy([]) == 0.0
