import copy

from stopgame.game.models import Category
from stopgame.game.scoring import calculate_scores, game_stats, starts_with_letter
from stopgame.game.voting import VotingLedger

from conftest import make_player

ANIMAL = Category('animal', 'Animal')
COR = Category('cor', 'Cor')


def _vote_all(ledger, players, verdicts):
    """verdicts: {(category, target): 'accept'|'reject'} applied by every other player."""
    quorum = len(players) - 1
    for (category, target), vote in verdicts.items():
        for voter in players:
            if voter.id != target:
                ledger.record_vote(category, target, voter.id, vote, quorum)


def _by_player(reports):
    return {r.player_id: r for r in reports}


def test_duplicate_accepted_answers_score_five_and_blank_scores_zero():
    players = [
        make_player('p1', {'animal': 'Ant'}),
        make_player('p2', {'animal': 'ant '}),
        make_player('p3', {'animal': ''}),
    ]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    _vote_all(ledger, players, {('animal', 'p1'): 'accept', ('animal', 'p2'): 'accept'})
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].category_scores == {'animal': 5}
    assert scores['p2'].category_scores == {'animal': 5}
    assert scores['p3'].category_scores == {'animal': 0}


def test_single_answer_is_implicitly_accepted_for_ten():
    players = [make_player('p1', {'animal': 'Ant'}), make_player('p2'), make_player('p3')]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    assert ledger.get('animal', 'p1') is None
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].round_score == 10


def test_unique_accepted_answer_scores_ten_even_with_other_accepted_answers():
    players = [make_player('p1', {'animal': 'Ant'}), make_player('p2', {'animal': 'Alpaca'})]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    _vote_all(ledger, players, {('animal', 'p1'): 'accept', ('animal', 'p2'): 'accept'})
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].round_score == 10
    assert scores['p2'].round_score == 10


def test_duplicate_of_a_rejected_answer_still_scores_ten():
    players = [make_player('p1', {'animal': 'Ant'}), make_player('p2', {'animal': 'Ant'}), make_player('p3')]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    _vote_all(ledger, players, {('animal', 'p1'): 'accept', ('animal', 'p2'): 'reject'})
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].round_score == 10
    assert scores['p2'].round_score == 0


def test_wrong_letter_scores_zero_even_when_accepted():
    players = [make_player('p1', {'animal': 'Bear'}), make_player('p2', {'animal': 'Ant'})]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    _vote_all(ledger, players, {('animal', 'p1'): 'accept', ('animal', 'p2'): 'accept'})
    assert ledger.get('animal', 'p1').verdict == 'accepted'
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].round_score == 0
    assert scores['p2'].round_score == 10


def test_letter_check_is_case_insensitive():
    assert starts_with_letter('ant', 'A')
    assert starts_with_letter('  Ant', 'a')
    assert not starts_with_letter('', 'A')
    assert not starts_with_letter('Bee', 'A')


def test_missing_entry_with_other_answers_scores_five():
    # p2's answer arrived after the ledger was built, so p1 has no entry
    players = [make_player('p1', {'animal': 'Ant'}), make_player('p2')]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    players[1].answers = {'animal': 'Anteater'}
    scores = _by_player(calculate_scores(players, ledger, 'A', [ANIMAL]))
    assert scores['p1'].round_score == 5


def test_round_score_is_sum_of_cells_and_cells_are_known_values():
    players = [
        make_player('p1', {'animal': 'Ant', 'cor': 'Azul'}),
        make_player('p2', {'animal': 'Ant', 'cor': 'Bege'}),
        make_player('p3', {'animal': 'Arara'}),
    ]
    ledger = VotingLedger.from_round(players, [ANIMAL, COR])
    _vote_all(ledger, players, {
        ('animal', 'p1'): 'accept',
        ('animal', 'p2'): 'accept',
        ('animal', 'p3'): 'reject',
        ('cor', 'p1'): 'accept',
        ('cor', 'p2'): 'accept',
    })
    reports = calculate_scores(players, ledger, 'A', [ANIMAL, COR])
    for r in reports:
        assert all(v in (0, 5, 10) for v in r.category_scores.values())
        assert r.round_score == sum(r.category_scores.values())
    scores = _by_player(reports)
    assert scores['p1'].category_scores == {'animal': 5, 'cor': 10}
    assert scores['p2'].category_scores == {'animal': 5, 'cor': 0}
    assert scores['p3'].category_scores == {'animal': 0, 'cor': 0}


def test_scoring_is_idempotent_and_pure():
    players = [make_player('p1', {'animal': 'Ant'}), make_player('p2', {'animal': 'Ant'})]
    ledger = VotingLedger.from_round(players, [ANIMAL])
    _vote_all(ledger, players, {('animal', 'p1'): 'accept', ('animal', 'p2'): 'accept'})
    before = copy.deepcopy(players)
    first = [r.to_dict() for r in calculate_scores(players, ledger, 'A', [ANIMAL])]
    second = [r.to_dict() for r in calculate_scores(players, ledger, 'A', [ANIMAL])]
    assert first == second
    assert players == before
    assert all(p.score == 0 for p in players)


def test_report_payload():
    players = [make_player('p1', {'animal': 'Ant'}, name='Ana')]
    report = calculate_scores(players, VotingLedger(), 'A', [ANIMAL])[0]
    assert report.to_dict() == {
        'playerId': 'p1',
        'playerName': 'Ana',
        'categoryScores': {'animal': 10},
        'roundScore': 10,
    }


def test_game_stats():
    players = [make_player('p1', {'animal': 'Ant', 'cor': ' '}), make_player('p2', {'animal': 'Asno'})]
    players[0].score = 30
    players[1].score = 10
    assert game_stats(players) == {
        'totalPlayers': 2,
        'averageScore': 20,
        'highestScore': 30,
        'completedAnswers': 2,
    }
    assert game_stats([])['totalPlayers'] == 0
