import asyncio
import random

import pytest

from sentence_studio.services.practice_selector import (select_candidates, PracticeSelectionError,
                                                        RECOMMENDATION_SIZE, NEW_TARGET, REINFORCE_TARGET)

USER_ID = 1


def run(coro):
    return asyncio.run(coro)


def test_never_more_than_ten(source_factory, sentence_factory):
    source = source_factory([sentence_factory(i) for i in range(1, 51)])

    result = run(select_candidates(USER_ID, source, rng=random.Random(1)))

    assert len(result) == RECOMMENDATION_SIZE


def test_only_visible_sentences_with_audio_in_live_categories(source_factory, sentence_factory):
    sentences = (
        [sentence_factory(i) for i in range(1, 4)]
        + [sentence_factory(10, user_id=USER_ID, is_shared=False)]
        + [sentence_factory(20, user_id=2, is_shared=False)]
        + [sentence_factory(30, has_audio=False)]
        + [sentence_factory(40, category_deleted=True)]
    )
    source = source_factory(sentences)

    ids = {row["id"] for row in run(select_candidates(USER_ID, source))}

    assert ids == {1, 2, 3, 10}


def test_no_duplicates_when_pools_overlap(source_factory, sentence_factory):
    sentences = [sentence_factory(i) for i in range(1, 13)]
    counts = {i: 2 for i in range(1, 6)}
    source = source_factory(sentences, counts=counts)

    result = run(select_candidates(USER_ID, source))
    ids = [row["id"] for row in result]

    assert len(ids) == len(set(ids))
    assert len(ids) == 10


def test_no_reinforcement_lookup_without_history(source_factory, sentence_factory):
    source = source_factory([sentence_factory(i) for i in range(1, 30)])

    run(select_candidates(USER_ID, source))

    assert all(call.include_ids is None for call in source.calls)
    assert source.calls[0].limit == NEW_TARGET
    assert source.calls[0].exclude_ids == set()


def test_mix_of_fresh_and_reinforced(source_factory, sentence_factory):
    sentences = [sentence_factory(i) for i in range(1, 41)]
    # 1-5 need reinforcement, 6-10 are well practised
    counts = {**{i: 2 for i in range(1, 6)}, **{i: 4 for i in range(6, 11)}}
    source = source_factory(sentences, counts=counts)

    result = run(select_candidates(USER_ID, source))
    ids = {row["id"] for row in result}

    fresh_call, reinforce_call = source.calls[0], source.calls[1]
    assert fresh_call.exclude_ids == set(range(1, 11))
    assert reinforce_call.include_ids == set(range(1, 6))
    assert reinforce_call.limit == REINFORCE_TARGET

    assert len(ids & set(range(1, 6))) == REINFORCE_TARGET
    assert len(ids - set(range(1, 11))) == NEW_TARGET
    assert not ids & set(range(6, 11))
    # both pools filled the list, so no top-up query
    assert len(source.calls) == 2


def test_supplement_tops_up_from_practised_sentences(source_factory, sentence_factory):
    sentences = [sentence_factory(i) for i in range(1, 13)]
    counts = {i: 5 for i in range(1, 11)}
    source = source_factory(sentences, counts=counts)

    result = run(select_candidates(USER_ID, source))
    ids = [row["id"] for row in result]

    assert len(ids) == 10
    assert len(set(ids)) == 10
    supplement = source.calls[-1]
    assert supplement.limit == 8
    assert supplement.exclude_ids == {11, 12}


def test_small_library_returns_everything_eligible(source_factory, sentence_factory):
    source = source_factory([sentence_factory(i) for i in range(1, 5)])

    result = run(select_candidates(USER_ID, source))

    assert sorted(row["id"] for row in result) == [1, 2, 3, 4]


def test_empty_library_is_not_an_error(source_factory):
    assert run(select_candidates(USER_ID, source_factory([]))) == []


def test_lookup_failure_is_wrapped(source_factory, sentence_factory):
    source = source_factory([sentence_factory(1)], fail=True)

    with pytest.raises(PracticeSelectionError) as exc:
        run(select_candidates(USER_ID, source))

    assert str(exc.value) == "Failed to fetch recommendation"
