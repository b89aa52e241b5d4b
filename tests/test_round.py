import pytest

from beefykit.round import Rounds, ValidatorSet, threshold

ALICE, BOB, CHARLIE, DAVE = "alice-pub", "bob-pub", "charlie-pub", "dave-pub"
ROUND = (b"\x11" * 32, 5)


def make_rounds(validators=(ALICE, BOB, CHARLIE, DAVE), set_id=7):
    return Rounds(ValidatorSet(validators=list(validators), id=set_id))


def test_threshold_four_validators():
    assert threshold(4) == 3


def test_threshold_zero():
    assert threshold(0) == 0


@pytest.mark.parametrize("n", range(1, 40))
def test_threshold_tolerates_under_a_third_faulty(n):
    t = threshold(n)
    faulty = n - t
    assert 0 < t <= n
    assert 3 * faulty <= n - 1
    assert 3 * (faulty + 1) > n - 1


def test_validator_set_id_and_validators():
    rounds = make_rounds()
    assert rounds.validator_set_id() == 7
    assert rounds.validators() == [ALICE, BOB, CHARLIE, DAVE]


def test_validators_returns_copy():
    rounds = make_rounds()
    rounds.validators().append("mallory-pub")
    assert rounds.validators() == [ALICE, BOB, CHARLIE, DAVE]


def test_duplicate_vote_is_rejected():
    rounds = make_rounds()
    assert rounds.add_vote(ROUND, (ALICE, "alice-sig"))
    assert not rounds.add_vote(ROUND, (ALICE, "alice-sig"))


def test_round_done_at_threshold():
    rounds = make_rounds()
    votes = [(ALICE, "alice-sig"), (BOB, "bob-sig"), (CHARLIE, "charlie-sig")]
    for count, vote in enumerate(votes, start=1):
        rounds.add_vote(ROUND, vote)
        assert rounds.is_done(ROUND) == (count >= threshold(4))


def test_duplicates_do_not_count_towards_threshold():
    rounds = make_rounds()
    for _ in range(5):
        rounds.add_vote(ROUND, (ALICE, "alice-sig"))
    assert not rounds.is_done(ROUND)


def test_unknown_round_not_done():
    rounds = make_rounds()
    assert not rounds.is_done(ROUND)


def test_drop_orders_signatures_by_validator():
    rounds = make_rounds()
    rounds.add_vote(ROUND, (CHARLIE, "charlie-sig"))
    rounds.add_vote(ROUND, (ALICE, "alice-sig"))
    assert rounds.drop(ROUND) == ["alice-sig", None, "charlie-sig", None]


def test_drop_removes_round():
    rounds = make_rounds(validators=(ALICE,))
    rounds.add_vote(ROUND, (ALICE, "alice-sig"))
    assert rounds.is_done(ROUND)
    rounds.drop(ROUND)
    assert not rounds.is_done(ROUND)
    assert rounds.drop(ROUND) is None


def test_drop_unknown_round_returns_none():
    rounds = make_rounds()
    assert rounds.drop(ROUND) is None


def test_rounds_are_independent():
    rounds = make_rounds()
    other = (b"\x22" * 32, 5)
    rounds.add_vote(ROUND, (ALICE, "alice-sig"))
    assert rounds.add_vote(other, (ALICE, "alice-sig"))
    assert rounds.drop(other) == ["alice-sig", None, None, None]
    assert rounds.drop(ROUND) == ["alice-sig", None, None, None]


def test_default_rounds_are_empty():
    rounds = Rounds()
    assert rounds.validators() == []
    assert rounds.validator_set_id() == 0