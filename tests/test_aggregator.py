"""Tests for merging multi-backend snapshots."""

from torrent_dashboard import aggregator
from torrent_dashboard.models import AggregateSnapshot

from conftest import make_payload


def _two_backends():
    return make_payload(
        {"clientName": "A", "clientType": "qBittorrent",
         "torrents": [{"id": 1, "dlspeed": 10, "upspeed": 0}]},
        {"clientName": "B", "clientType": "Transmission",
         "torrents": [{"id": 2, "dlspeed": 0, "upspeed": 5}]},
    )


class TestAggregate:
    def test_merges_in_backend_order(self):
        result = aggregator.aggregate(_two_backends())

        assert result is not None
        assert [t.id for t in result.tasks] == ["1", "2"]
        assert [t.client_name for t in result.tasks] == ["A", "B"]
        assert [t.client_type for t in result.tasks] == ["qBittorrent", "Transmission"]
        assert result.snapshot.total_download_speed == 10
        assert result.snapshot.total_upload_speed == 5
        assert result.snapshot.total_tasks == 2
        assert result.snapshot.active_tasks == 2

    def test_preserves_per_backend_order(self):
        payload = make_payload(
            {"clientName": "A", "torrents": [{"hash": "z"}, {"hash": "a"}, {"hash": "m"}]}
        )
        result = aggregator.aggregate(payload)
        assert [t.id for t in result.tasks] == ["z", "a", "m"]

    def test_skips_malformed_blocks(self):
        payload = make_payload(
            {"clientName": "broken", "torrents": {"not": "a list"}},
            "garbage",
            {"clientName": "missing"},
            {"clientName": "ok", "torrents": [{"hash": "h1", "dlspeed": 3}, "junk"]},
        )
        result = aggregator.aggregate(payload)

        assert [t.id for t in result.tasks] == ["h1"]
        assert result.snapshot.total_download_speed == 3

    def test_missing_success_flag_returns_none(self):
        assert aggregator.aggregate({"clients": []}) is None
        assert aggregator.aggregate({"success": False, "clients": []}) is None
        assert aggregator.aggregate(None) is None
        assert aggregator.aggregate(["success"]) is None

    def test_non_list_clients_yields_empty_result(self):
        result = aggregator.aggregate({"success": True, "clients": "nope"})
        assert result.tasks == ()
        assert result.snapshot == AggregateSnapshot()

    def test_non_numeric_speeds_count_as_zero(self):
        payload = make_payload(
            {"clientName": "A", "torrents": [
                {"hash": "1", "dlspeed": "abc", "upspeed": None},
                {"hash": "2", "dlspeed": "7", "upspeed": 2},
            ]}
        )
        result = aggregator.aggregate(payload)
        assert result.snapshot.total_download_speed == 7
        assert result.snapshot.total_upload_speed == 2

    def test_lifetime_totals_pass_through(self):
        payload = make_payload(stats={"totalDownloaded": 1000, "totalUploaded": "2000"})
        result = aggregator.aggregate(payload)
        assert result.snapshot.total_downloaded == 1000
        assert result.snapshot.total_uploaded == 2000

    def test_session_totals_pass_through_from_stats(self):
        payload = make_payload(
            stats={"sessionDownloaded": 300, "sessionUploaded": "40"},
            history=[{"date": "2026-10-19", "downloaded_bytes": 1, "uploaded_bytes": 2}],
        )
        result = aggregator.aggregate(payload)
        assert result.snapshot.session_downloaded == 300
        assert result.snapshot.session_uploaded == 40

    def test_session_totals_from_newest_history_row(self):
        history = [
            {"date": "2026-10-18", "downloaded_bytes": 9, "uploaded_bytes": 9},
            {"date": "2026-10-19", "downloaded_bytes": 100, "uploaded_bytes": "50"},
        ]
        result = aggregator.aggregate(_two_backends() | {"history": history})
        assert result.snapshot.total_download_speed == 10
        assert result.snapshot.session_downloaded == 100
        assert result.snapshot.session_uploaded == 50

    def test_session_totals_missing_are_zero(self):
        result = aggregator.aggregate(make_payload())
        assert result.snapshot.session_downloaded == 0
        assert result.snapshot.session_uploaded == 0

        result = aggregator.aggregate(make_payload(history=[{"date": "2026-10-19"}]))
        assert result.snapshot.session_downloaded == 0
        assert result.snapshot.session_uploaded == 0

    def test_history_and_today_normalized(self):
        result = aggregator.aggregate(make_payload(history=None, downloads="x"))
        assert result.history == ()
        assert result.today_downloads == ()

        history = [{"date": "2026-10-18", "downloaded_bytes": 5}]
        today = [{"item_title": "Ubuntu"}]
        result = aggregator.aggregate(make_payload(history=history, downloads=today))
        assert result.history == tuple(history)
        assert result.today_downloads == tuple(today)

    def test_active_count_uses_backend_states(self):
        payload = make_payload(
            {"clientName": "A", "torrents": [
                {"hash": "1", "state": "stalledDL"},
                {"hash": "2", "state": "pausedUP"},
                {"hash": "3", "state": "error", "upspeed": 1},
            ]}
        )
        result = aggregator.aggregate(payload)
        assert result.snapshot.active_tasks == 2
        assert result.snapshot.total_tasks == 3


class TestNormalizeTask:
    def test_full_record(self):
        raw = {
            "hash": "abc", "name": "Ubuntu", "size": 4500, "progress": 0.75,
            "dlspeed": 10, "upspeed": 2, "ratio": 1.5, "state": "downloading",
            "eta": 512, "downloaded": 3375, "uploaded": 50,
        }
        task = aggregator.normalize_task(raw, "qb", "qBittorrent", 0)
        assert task.id == "abc"
        assert task.name == "Ubuntu"
        assert task.size == 4500
        assert task.progress == 0.75
        assert task.ratio == 1.5
        assert task.eta_s == 512
        assert task.get("downloaded") == 3375
        assert task.get("clientName") == "qb"

    def test_defaults_for_missing_fields(self):
        task = aggregator.normalize_task({}, "qb", "qBittorrent", 3)
        assert task.id == "qb:3"
        assert task.name == ""
        assert task.progress == 0
        assert task.state == "unknown"
        assert task.eta_s is None

    def test_unbounded_eta(self):
        for eta in (-1, 8640000, "n/a", None):
            task = aggregator.normalize_task({"eta": eta}, "qb", "q", 0)
            assert task.eta_s is None

    def test_unknown_backend_names(self):
        result = aggregator.aggregate(make_payload({"torrents": [{"hash": "1"}]}))
        assert result.tasks[0].client_name == "Unknown"
        assert result.tasks[0].client_type == "Unknown"

    def test_raw_fields_reachable(self):
        task = aggregator.normalize_task({"hash": "1", "category": "tv"}, "qb", "q", 0)
        assert task.get("category") == "tv"
        assert task.get("missing", "dflt") == "dflt"
