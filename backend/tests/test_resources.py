import csv
import io
from datetime import datetime, timedelta

import pytest

from vidanalytica.models.channel import Channel
from vidanalytica.models.idea import Idea
from vidanalytica.models.transcript import Transcript
from vidanalytica.models.video import Video

from conftest import bearer, login, register

CHANNEL_URL = "https://www.youtube.com/@techinsights"


def _add_channel(client, headers, url=CHANNEL_URL):
    response = client.post("/api/channels/", json={"url": url}, headers=headers)
    assert response.status_code == 201
    return response.json()["channel"]


@pytest.fixture
def library(client, db, auth_headers):
    """One channel with three videos, one transcript and three ideas"""
    channel = _add_channel(client, auth_headers)
    start = datetime(2024, 1, 1)
    videos = [
        Video(channel_id=channel["id"], title="The Future of AI", description="AI trends",
              views=1000, likes=50, upload_date=start, transcript_status="completed",
              ideas_status="completed"),
        Video(channel_id=channel["id"], title="Building Web Apps", description="FastAPI tour",
              views=3000, likes=300, upload_date=start + timedelta(days=7)),
        Video(channel_id=channel["id"], title="Cloud Costs", description=None,
              views=0, likes=0, upload_date=start + timedelta(days=14), transcript_status="failed"),
    ]
    db.add_all(videos)
    db.flush()
    transcript = Transcript(
        video_id=videos[0].id, content="Welcome to the future of AI.", status="completed",
        timestamps=[{"start": 0.0, "end": 2.5, "text": "Welcome to the future of AI."}],
    )
    ideas = [
        Idea(video_id=videos[0].id, category="main-concept", title="AI agents",
             description="Agents everywhere", tags=["AI", "Agents"]),
        Idea(video_id=videos[0].id, category="key-takeaway", title="Start small",
             tags=["AI"]),
        Idea(video_id=videos[1].id, category="content-suggestion", title="Follow-up on testing",
             tags=["Web Development"]),
    ]
    db.add(transcript)
    db.add_all(ideas)
    db.commit()
    return {
        "channel": channel,
        "video_ids": [v.id for v in videos],
        "transcript_id": transcript.id,
        "idea_ids": [i.id for i in ideas],
    }


@pytest.fixture
def other_headers(client):
    register(client, email="mallory@example.com", password="secret456", name="Mallory")
    return bearer(login(client, email="mallory@example.com", password="secret456").json()["accessToken"])


def test_resources_require_access_token(client):
    for path in ("/api/channels/", "/api/videos/", "/api/transcripts/", "/api/ideas/",
                 "/api/analytics/dashboard", "/api/settings/"):
        response = client.get(path)
        assert response.status_code == 401, path
        assert response.json()["success"] is False


def test_add_list_and_delete_channel(client, auth_headers):
    channel = _add_channel(client, auth_headers)
    assert channel["handle"] == "@techinsights"
    assert channel["url"] == CHANNEL_URL
    assert channel["status"] == "active"
    assert channel["subscriberCount"] == 0

    listed = client.get("/api/channels/", headers=auth_headers).json()["channels"]
    assert [c["id"] for c in listed] == [channel["id"]]

    deleted = client.delete(f"/api/channels/{channel['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True
    assert client.get("/api/channels/", headers=auth_headers).json()["channels"] == []


def test_add_channel_validates_url_and_duplicates(client, auth_headers):
    bad = client.post("/api/channels/", json={"url": "https://example.com/@someone"}, headers=auth_headers)
    assert bad.status_code == 400

    _add_channel(client, auth_headers)
    duplicate = client.post("/api/channels/", json={"url": "youtube.com/@techinsights"}, headers=auth_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Channel already added"


def test_sync_marks_channel_syncing(client, auth_headers):
    channel = _add_channel(client, auth_headers)
    response = client.post(f"/api/channels/{channel['id']}/sync", headers=auth_headers)
    assert response.status_code == 200
    listed = client.get("/api/channels/", headers=auth_headers).json()["channels"]
    assert listed[0]["status"] == "syncing"


def test_channels_are_private_to_their_owner(client, library, other_headers):
    channel_id = library["channel"]["id"]
    assert client.get("/api/channels/", headers=other_headers).json()["channels"] == []
    assert client.delete(f"/api/channels/{channel_id}", headers=other_headers).status_code == 404
    assert client.get("/api/videos/", headers=other_headers).json()["total"] == 0
    assert client.get(f"/api/transcripts/{library['transcript_id']}", headers=other_headers).status_code == 404


def test_delete_channel_removes_its_content(client, db, auth_headers, library):
    client.delete(f"/api/channels/{library['channel']['id']}", headers=auth_headers)
    assert db.query(Video).count() == 0
    assert db.query(Idea).count() == 0
    assert db.query(Transcript).count() == 0
    assert db.query(Channel).count() == 0


def test_list_videos_filters_and_paginates(client, auth_headers, library):
    everything = client.get("/api/videos/", headers=auth_headers).json()
    assert everything["total"] == 3
    assert everything["totalPages"] == 1
    # Newest upload first
    assert everything["videos"][0]["title"] == "Cloud Costs"

    first_video = next(v for v in everything["videos"] if v["title"] == "The Future of AI")
    assert first_video["transcriptId"] == library["transcript_id"]
    assert first_video["ideasCount"] == 2
    assert first_video["channelName"] == "techinsights"

    completed = client.get("/api/videos/", params={"transcriptStatus": "completed"}, headers=auth_headers).json()
    assert [v["title"] for v in completed["videos"]] == ["The Future of AI"]

    searched = client.get("/api/videos/", params={"search": "fastapi"}, headers=auth_headers).json()
    assert [v["title"] for v in searched["videos"]] == ["Building Web Apps"]

    paged = client.get("/api/videos/", params={"page": 2, "limit": 2}, headers=auth_headers).json()
    assert paged["page"] == 2
    assert paged["totalPages"] == 2
    assert len(paged["videos"]) == 1


def test_request_processing_for_videos(client, auth_headers, library):
    completed_id, pending_id, failed_id = library["video_ids"]

    response = client.post(f"/api/videos/{pending_id}/transcript", headers=auth_headers)
    assert response.status_code == 200

    bulk = client.post(
        "/api/videos/bulk/transcripts",
        json={"videoIds": [completed_id, failed_id]},
        headers=auth_headers,
    )
    assert bulk.status_code == 200
    assert "1 videos" in bulk.json()["message"]

    statuses = {
        v["id"]: v["transcriptStatus"]
        for v in client.get("/api/videos/", headers=auth_headers).json()["videos"]
    }
    assert statuses == {completed_id: "completed", pending_id: "processing", failed_id: "processing"}

    ideas = client.post("/api/videos/bulk/ideas", json={"videoIds": [pending_id]}, headers=auth_headers)
    assert ideas.status_code == 200
    assert client.post("/api/videos/9999/ideas", headers=auth_headers).status_code == 404


def test_transcript_read_and_update(client, auth_headers, library):
    transcript_id = library["transcript_id"]
    listed = client.get("/api/transcripts/", headers=auth_headers).json()
    assert listed["total"] == 1

    detail = client.get(f"/api/transcripts/{transcript_id}", headers=auth_headers).json()["transcript"]
    assert detail["videoTitle"] == "The Future of AI"
    assert detail["timestamps"][0]["text"] == "Welcome to the future of AI."

    updated = client.put(
        f"/api/transcripts/{transcript_id}", json={"content": "Edited text"}, headers=auth_headers
    )
    assert updated.status_code == 200
    detail = client.get(f"/api/transcripts/{transcript_id}", headers=auth_headers).json()["transcript"]
    assert detail["content"] == "Edited text"


def test_ideas_filter_rate_and_favorite(client, auth_headers, library):
    idea_id = library["idea_ids"][0]

    by_category = client.get("/api/ideas/", params={"category": "key-takeaway"}, headers=auth_headers).json()
    assert [i["title"] for i in by_category["ideas"]] == ["Start small"]

    by_tag = client.get("/api/ideas/", params={"tags": "AI"}, headers=auth_headers).json()
    assert by_tag["total"] == 2

    bad_category = client.get("/api/ideas/", params={"category": "nonsense"}, headers=auth_headers)
    assert bad_category.status_code == 400

    assert client.put(f"/api/ideas/{idea_id}/rating", json={"rating": 4}, headers=auth_headers).status_code == 200
    assert client.put(f"/api/ideas/{idea_id}/rating", json={"rating": 9}, headers=auth_headers).status_code == 400

    favorite = client.put(f"/api/ideas/{idea_id}/favorite", json={"isFavorite": True}, headers=auth_headers)
    assert favorite.json()["message"] == "Added to favorites"

    ideas = client.get("/api/ideas/", params={"videoId": library["video_ids"][0]}, headers=auth_headers).json()
    rated = next(i for i in ideas["ideas"] if i["id"] == idea_id)
    assert rated["rating"] == 4
    assert rated["isFavorite"] is True


def test_export_ideas_as_csv(client, auth_headers, library):
    response = client.get("/api/ideas/export", params={"format": "csv"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert len(rows) == 3
    agents = next(r for r in rows if r["title"] == "AI agents")
    assert agents["tags"] == "AI; Agents"
    assert agents["channel_name"] == "techinsights"

    assert client.get("/api/ideas/export", params={"format": "pdf"}, headers=auth_headers).status_code == 400


def test_dashboard_stats_count_owned_content(client, auth_headers, library, other_headers):
    stats = client.get("/api/analytics/dashboard", headers=auth_headers).json()["stats"]
    assert stats == {"totalChannels": 1, "totalVideos": 3, "totalIdeas": 3, "totalTranscripts": 1}

    empty = client.get("/api/analytics/dashboard", headers=other_headers).json()["stats"]
    assert empty == {"totalChannels": 0, "totalVideos": 0, "totalIdeas": 0, "totalTranscripts": 0}


def test_channel_analytics(client, auth_headers, library):
    response = client.get(f"/api/analytics/channels/{library['channel']['id']}", headers=auth_headers)
    assert response.status_code == 200
    analytics = response.json()["analytics"]
    metrics = analytics["metrics"]

    assert metrics["totalVideos"] == 3
    assert metrics["averageViews"] == pytest.approx(4000 / 3, rel=1e-3)
    # (5% + 10%) / 2; the unwatched video is excluded
    assert metrics["engagementRate"] == pytest.approx(7.5)
    # Three uploads over two weeks
    assert metrics["uploadFrequency"] == pytest.approx(1.5)
    assert metrics["transcribedVideos"] == 1
    assert metrics["ideasGenerated"] == 3

    assert [p["date"] for p in analytics["performanceData"]] == ["2024-01-01", "2024-01-08", "2024-01-15"]
    assert analytics["topTopics"][0] == {"topic": "AI", "count": 2, "percentage": 50}


def test_channel_analytics_for_empty_channel(client, auth_headers):
    channel = _add_channel(client, auth_headers)
    analytics = client.get(f"/api/analytics/channels/{channel['id']}", headers=auth_headers).json()["analytics"]
    assert analytics["metrics"]["averageViews"] == 0
    assert analytics["performanceData"] == []
    assert analytics["topTopics"] == []


def test_settings_defaults_and_partial_update(client, auth_headers):
    defaults = client.get("/api/settings/", headers=auth_headers).json()
    assert defaults["autoTranscript"] is True
    assert defaults["defaultExportFormat"] == "txt"

    updated = client.put(
        "/api/settings/",
        json={"autoTranscript": False, "syncFrequency": "weekly"},
        headers=auth_headers,
    ).json()
    assert updated["autoTranscript"] is False
    assert updated["syncFrequency"] == "weekly"
    assert updated["autoIdeas"] is True

    reread = client.get("/api/settings/", headers=auth_headers).json()
    assert reread == updated

    invalid = client.put("/api/settings/", json={"syncFrequency": "yearly"}, headers=auth_headers)
    assert invalid.status_code == 400
