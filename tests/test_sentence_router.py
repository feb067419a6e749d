from types import SimpleNamespace

from sentence_studio.routers import sentence_router


def listed_sentence(sentence_id=5):
    return SimpleNamespace(id=sentence_id, english_text="See you tomorrow", chinese_text="明天见",
                           category_id=2, user_id=9, difficulty="easy", notes=None, is_shared=True,
                           audio_url=None, created_at=None, updated_at=None)


def test_list_sentences_with_favorite_and_recordings(client, session, fake_result):
    session.results.extend([
        fake_result(11),
        fake_result(rows=[(listed_sentence(), 2, "Travel English", "#10b981", True)]),
        fake_result(rows=[(5, 2)]),
    ])

    response = client.get("/api/sentences", params={"tab": "shared", "page": 2, "limit": 10})

    assert response.status_code == 200
    body = response.json()
    item = body["sentences"][0]
    assert item["category"] == {"id": 2, "name": "Travel English", "color": "#10b981"}
    assert item["is_favorite"] is True
    assert item["recordings_count"] == 2
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 11, "total_pages": 2, "has_more": False}


def test_empty_page_skips_recording_counts(client, session, fake_result):
    session.results.extend([fake_result(0), fake_result(rows=[])])

    response = client.get("/api/sentences", params={"tab": "custom"})

    assert response.status_code == 200
    assert response.json()["sentences"] == []
    assert len(session.executed) == 2


def test_list_rejects_unknown_tab(client):
    assert client.get("/api/sentences", params={"tab": "everything"}).status_code == 422


def test_create_schedules_audio(client, session, fake_result, monkeypatch):
    generated = []

    async def fake_attach(sentence_id, text):
        generated.append((sentence_id, text))
        return True

    monkeypatch.setattr(sentence_router, "attach_sentence_audio", fake_attach)
    session.results.append(fake_result(2))

    response = client.post("/api/sentences", json={"english_text": "Where is the station?", "category_id": 2})

    assert response.status_code == 201
    sentence = response.json()["sentence"]
    assert sentence["is_shared"] is False
    assert generated == [(sentence["id"], "Where is the station?")]


def test_patch_without_audio_url(client):
    response = client.patch("/api/sentences/5", json={})

    assert response.status_code == 400
