"""
Title directives and sekitori committee tests
"""
from banzuke.boundary import BoundaryExchange
from banzuke.committee import BanzukeCommittee, SekitoriEntry
from banzuke.coordinates import is_legal_rank, slot_to_rank
from banzuke.directives import (
    evaluate_yokozuna_promotion,
    resolve_top_directive,
    satisfies_sanyaku_chain,
)
from banzuke.ranks import Division, Side, Title, makuuchi, ranked

from conftest import make_record


def ozeki_record(wins, **kwargs):
    return make_record(makuuchi(Title.OZEKI), wins, **kwargs)


# =====================================================
# Directives
# =====================================================

class TestYokozunaPromotion:
    """Ozeki -> Yokozuna"""

    def test_double_yusho_promotes(self):
        current = ozeki_record(14, championship=True)
        prior = ozeki_record(13, championship=True, month=11, year=2023)
        promote, bonus = evaluate_yokozuna_promotion(current, [prior])
        assert promote
        assert bonus == 30
        assert resolve_top_directive(current, [prior]).preferred_title == Title.YOKOZUNA

    def test_yusho_and_jun_yusho_promotes(self):
        current = ozeki_record(14, championship=True)
        prior = ozeki_record(13, runner_up=True)
        assert evaluate_yokozuna_promotion(current, [prior]) == (True, 24)

    def test_prior_cycle_below_ozeki_blocks(self):
        current = ozeki_record(15, championship=True)
        prior = make_record(makuuchi(Title.SEKIWAKE), 13, championship=True)
        promote, bonus = evaluate_yokozuna_promotion(current, [prior])
        assert not promote
        assert bonus == 8

    def test_near_miss_bonus(self):
        current = ozeki_record(13, championship=True)
        prior = ozeki_record(13)
        assert evaluate_yokozuna_promotion(current, [prior]) == (False, 14)


class TestOzekiDirectives:
    """Kadoban, demotion and return"""

    def test_winning_ozeki_keeps_title(self):
        directive = resolve_top_directive(ozeki_record(8))
        assert directive.preferred_title == Title.OZEKI
        assert not directive.next_is_probationary

    def test_losing_ozeki_goes_kadoban(self):
        directive = resolve_top_directive(ozeki_record(7))
        assert directive.preferred_title == Title.OZEKI
        assert directive.next_is_probationary

    def test_kadoban_ozeki_losing_again_demoted(self):
        directive = resolve_top_directive(ozeki_record(6), on_probation=True)
        assert directive.preferred_title == Title.SEKIWAKE
        assert directive.next_is_reinstatement

    def test_return_with_ten_wins(self):
        record = make_record(makuuchi(Title.SEKIWAKE), 10)
        directive = resolve_top_directive(record, reinstatement_eligible=True)
        assert directive.preferred_title == Title.OZEKI

    def test_nine_wins_do_not_return(self):
        record = make_record(makuuchi(Title.SEKIWAKE), 9)
        directive = resolve_top_directive(record, reinstatement_eligible=True)
        assert directive.preferred_title is None


class TestSanyakuDirectives:
    """Ozeki chain and Komusubi -> Sekiwake"""

    def test_chain_of_33_promotes(self):
        current = make_record(makuuchi(Title.SEKIWAKE), 12)
        past = [make_record(makuuchi(Title.SEKIWAKE), 11), make_record(makuuchi(Title.KOMUSUBI), 10)]
        assert satisfies_sanyaku_chain(current, past)
        assert resolve_top_directive(current, past).preferred_title == Title.OZEKI

    def test_chain_through_maegashira_fails(self):
        current = make_record(makuuchi(Title.SEKIWAKE), 12)
        past = [make_record(makuuchi(Title.SEKIWAKE), 11), make_record(makuuchi(Title.MAEGASHIRA, 2), 12)]
        assert not satisfies_sanyaku_chain(current, past)

    def test_chain_needs_ten_now(self):
        current = make_record(makuuchi(Title.SEKIWAKE), 9)
        past = [make_record(makuuchi(Title.SEKIWAKE), 12), make_record(makuuchi(Title.SEKIWAKE), 12)]
        assert not satisfies_sanyaku_chain(current, past)

    def test_komusubi_nine_wins(self):
        record = make_record(makuuchi(Title.KOMUSUBI), 9)
        assert resolve_top_directive(record).preferred_title == Title.SEKIWAKE

    def test_yokozuna_stays(self):
        record = make_record(makuuchi(Title.YOKOZUNA), 3, absences=12, losses=0)
        assert resolve_top_directive(record).preferred_title == Title.YOKOZUNA

    def test_below_makuuchi_no_directive(self):
        record = make_record(ranked(Division.JURYO, 1), 12)
        assert resolve_top_directive(record).preferred_title is None


# =====================================================
# Committee
# =====================================================

def _banzuke(overrides=None):
    """Default-layout Makuuchi and full Juryo, everyone 8-7 unless overridden"""
    overrides = overrides or {}
    makuuchi_entries = []
    for slot in range(1, 43):
        rank = slot_to_rank(Division.MAKUUCHI, slot)
        entry_id = f"M{slot:02d}"
        record, past = overrides.get(entry_id, (make_record(rank, 8), []))
        makuuchi_entries.append(SekitoriEntry(id=entry_id, record=record, past_records=past))
    juryo_entries = []
    for slot in range(1, 29):
        rank = slot_to_rank(Division.JURYO, slot)
        juryo_entries.append(SekitoriEntry(id=f"J{slot:02d}", record=make_record(rank, 8)))
    return makuuchi_entries, juryo_entries


class TestBanzukeCommittee:
    """Next Makuuchi/Juryo banzuke"""

    def test_quiet_cycle_fills_every_slot(self):
        makuuchi_entries, juryo_entries = _banzuke()
        decision = BanzukeCommittee().decide(
            makuuchi_entries, juryo_entries, [], BoundaryExchange(), BoundaryExchange()
        )
        makuuchi_ranks = [decision.ranks[e.id] for e in makuuchi_entries]
        juryo_ranks = [decision.ranks[e.id] for e in juryo_entries]
        assert all(r.division == Division.MAKUUCHI for r in makuuchi_ranks)
        assert all(r.division == Division.JURYO for r in juryo_ranks)
        assert len(set(makuuchi_ranks)) == 42
        assert len(set(juryo_ranks)) == 28
        assert all(is_legal_rank(r, decision.layout) for r in makuuchi_ranks)

    def test_double_yusho_ozeki_becomes_yokozuna(self):
        rank = makuuchi(Title.OZEKI, 1, Side.EAST)
        record = make_record(rank, 15, losses=0, championship=True)
        prior = make_record(rank, 14, championship=True, year=2023, month=11)
        makuuchi_entries, juryo_entries = _banzuke({"M03": (record, [prior])})
        decision = BanzukeCommittee().decide(
            makuuchi_entries, juryo_entries, [], BoundaryExchange(), BoundaryExchange()
        )
        assert decision.ranks["M03"].title == Title.YOKOZUNA
        assert decision.layout.yokozuna == 3
        assert decision.layout.ozeki == 1
        assert len(set(decision.ranks[e.id] for e in makuuchi_entries)) == 42

    def test_losing_ozeki_marked_kadoban(self):
        rank = makuuchi(Title.OZEKI, 1, Side.WEST)
        makuuchi_entries, juryo_entries = _banzuke({"M04": (make_record(rank, 5), [])})
        decision = BanzukeCommittee().decide(
            makuuchi_entries, juryo_entries, [], BoundaryExchange(), BoundaryExchange()
        )
        assert decision.ranks["M04"].title == Title.OZEKI
        assert decision.probation["M04"]

    def test_exchange_moves_both_ways(self):
        makuuchi_entries, juryo_entries = _banzuke({
            "M42": (make_record(makuuchi(Title.MAEGASHIRA, 17, Side.WEST), 3), []),
        })
        juryo_entries[0] = SekitoriEntry(id="J01", record=make_record(ranked(Division.JURYO, 1), 13))
        exchange = BoundaryExchange(exchanged_slots=1, promoted_ids=["J01"], demoted_ids=["M42"])
        decision = BanzukeCommittee().decide(
            makuuchi_entries, juryo_entries, [], exchange, BoundaryExchange()
        )
        assert decision.ranks["J01"].division == Division.MAKUUCHI
        assert decision.ranks["M42"].division == Division.JURYO

    def test_makushita_promotee_seated_in_juryo(self):
        makuuchi_entries, juryo_entries = _banzuke()
        juryo_entries[-1] = SekitoriEntry(id="J28", record=make_record(ranked(Division.JURYO, 14, Side.WEST), 2))
        promotee = SekitoriEntry(id="MS01", record=make_record(ranked(Division.MAKUSHITA, 1), 6))
        exchange = BoundaryExchange(exchanged_slots=1, promoted_ids=["MS01"], demoted_ids=["J28"])
        decision = BanzukeCommittee().decide(
            makuuchi_entries, juryo_entries, [promotee], BoundaryExchange(), exchange
        )
        assert decision.ranks["MS01"].division == Division.JURYO
        assert decision.ranks["J28"].division == Division.MAKUSHITA
        assert decision.ranks["J28"].number <= 15
