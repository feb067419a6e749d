import asyncio
from types import SimpleNamespace

from sqlalchemy.dialects import postgresql

from sentence_studio.repositories.practice_repository import PracticeCandidateRepository
from sentence_studio.services.practice_selector import EligibleFilter


def run(coro):
    return asyncio.run(coro)


def compiled_sql(statement) -> str:
    sql = statement.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True})
    return " ".join(str(sql).split())


def test_practice_counts_grouped_per_sentence(fake_session_factory, fake_result):
    session = fake_session_factory(results=[fake_result(rows=[(1, 2), (5, 1)])])

    counts = run(PracticeCandidateRepository(session).practice_counts(7))

    assert counts == {1: 2, 5: 1}
    sql = compiled_sql(session.executed[0][0])
    assert "count(practice_logs.id)" in sql
    assert "practice_logs.user_id = 7" in sql
    assert "GROUP BY practice_logs.sentence_id" in sql


def test_eligible_query_applies_every_filter(fake_session_factory):
    session = fake_session_factory()
    criteria = EligibleFilter(user_id=5, limit=3, include_ids={3, 2}, exclude_ids={4, 1})

    run(PracticeCandidateRepository(session).find_eligible_sentences(criteria))

    sql = compiled_sql(session.executed[0][0])
    assert "JOIN categories ON sentences.category_id = categories.id" in sql
    assert "sentences.is_shared IS true OR sentences.user_id = 5" in sql
    assert "sentences.audio_url IS NOT NULL" in sql
    assert "categories.deleted_at IS NULL" in sql
    assert "sentences.id IN (2, 3)" in sql
    assert "sentences.id NOT IN (1, 4)" in sql
    assert "ORDER BY random()" in sql
    assert sql.endswith("LIMIT 3")


def test_eligible_query_without_id_filters(fake_session_factory):
    session = fake_session_factory()

    run(PracticeCandidateRepository(session).find_eligible_sentences(EligibleFilter(user_id=5, limit=7)))

    sql = compiled_sql(session.executed[0][0])
    assert " IN (" not in sql
    assert "sentences.audio_url IS NOT NULL" in sql
    assert "categories.deleted_at IS NULL" in sql
    assert sql.endswith("LIMIT 7")


def test_eligible_rows_carry_category(fake_session_factory, fake_result):
    row = SimpleNamespace(id=4, english_text="Thanks a lot", chinese_text=None, difficulty="easy",
                          audio_url="https://cdn.test/tts/4.mp3", category_id=2, category_name="Travel English",
                          category_color="#10b981")
    session = fake_session_factory(results=[fake_result(rows=[row])])

    rows = run(PracticeCandidateRepository(session).find_eligible_sentences(EligibleFilter(user_id=5, limit=7)))

    assert rows == [{
        "id": 4,
        "english_text": "Thanks a lot",
        "chinese_text": None,
        "difficulty": "easy",
        "audio_url": "https://cdn.test/tts/4.mp3",
        "category": {"id": 2, "name": "Travel English", "color": "#10b981"},
    }]
