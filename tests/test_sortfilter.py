from torrent_dashboard import aggregator, sortfilter
from torrent_dashboard.sortfilter import SortConfig, filter_tasks, sort_tasks


TASKS = [
    {"hash": "a", "name": "beta", "progress": 0.5, "dlspeed": 0, "upspeed": 0},
    {"hash": "b", "name": "Alpha", "progress": 0.9, "dlspeed": 5, "upspeed": 0},
    {"hash": "c", "name": "gamma", "dlspeed": 0, "upspeed": 3},
    {"hash": "d", "progress": "0.2", "dlspeed": 0, "upspeed": 0},
]


def _ids(tasks):
    return [t["hash"] for t in tasks]


def test_sort_progress_desc_missing_is_zero():
    assert _ids(sort_tasks(TASKS, "progress", "desc")) == ["b", "a", "d", "c"]


def test_sort_progress_asc():
    assert _ids(sort_tasks(TASKS, "progress", "asc")) == ["c", "d", "a", "b"]


def test_sort_name_case_insensitive_missing_is_empty():
    assert _ids(sort_tasks(TASKS, "name", "asc")) == ["d", "b", "a", "c"]


def test_sort_does_not_mutate_input():
    original = list(TASKS)
    sort_tasks(TASKS, "name", "desc")
    assert TASKS == original


def test_filter_active_preserves_order():
    assert _ids(filter_tasks(TASKS, "active")) == ["b", "c"]


def test_filter_all_passes_everything():
    result = filter_tasks(TASKS, "all")
    assert _ids(result) == ["a", "b", "c", "d"]
    assert result is not TASKS


def test_sort_config_toggle():
    cfg = SortConfig()
    assert cfg == SortConfig("name", "asc")
    cfg = cfg.request("name")
    assert cfg == SortConfig("name", "desc")
    cfg = cfg.request("name")
    assert cfg == SortConfig("name", "asc")
    cfg = cfg.request("name").request("size")
    assert cfg == SortConfig("size", "asc")


def test_view_on_task_objects():
    payload = {"success": True, "clients": [{"clientName": "A", "torrents": TASKS}]}
    tasks = aggregator.aggregate(payload).tasks
    result = sortfilter.view(tasks, "active", SortConfig("dlspeed", "desc"))
    assert [t.id for t in result] == ["b", "c"]

    by_client = sort_tasks(tasks, "clientName")
    assert len(by_client) == 4
