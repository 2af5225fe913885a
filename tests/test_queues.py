import pytest

from loadtools.queues import (
    annotations,
    count_configs,
    create_queue_map,
    log_prefix_fmt,
    queue_selector_from_annotation,
    validate_concurrency_levels,
)


def _config(name, pool=None):
    metadata = {"name": name}
    if pool is not None:
        metadata["annotations"] = {"pool": pool}
    return {"metadata": metadata}


CONFIGS = [
    _config("t1", "pool-a"),
    _config("t2", "pool-b"),
    _config("t3", "pool-a"),
    _config("t4"),
]


def test_annotations_missing():
    assert annotations({}) == {}
    assert annotations(_config("t", "p")) == {"pool": "p"}


def test_selector_reads_annotation():
    select = queue_selector_from_annotation("pool")
    assert select(CONFIGS[0]) == "pool-a"
    assert select(CONFIGS[3]) == ""


def test_create_queue_map_keeps_order():
    queues = create_queue_map(CONFIGS, queue_selector_from_annotation("pool"))
    assert list(queues) == ["pool-a", "pool-b", ""]
    assert [c["metadata"]["name"] for c in queues["pool-a"]] == ["t1", "t3"]
    assert sum(len(v) for v in queues.values()) == len(CONFIGS)


def test_count_configs():
    queues = create_queue_map(CONFIGS, queue_selector_from_annotation("pool"))
    assert count_configs(queues) == {"pool-a": 2, "pool-b": 1, "": 1}


def test_validate_ok():
    queues = create_queue_map(CONFIGS[:3], queue_selector_from_annotation("pool"))
    assert validate_concurrency_levels(queues, {"pool-a": 1, "pool-b": 2}) is None


def test_validate_missing_named_queue():
    queues = create_queue_map(CONFIGS[:3], queue_selector_from_annotation("pool"))
    with pytest.raises(ValueError, match='no concurrency level specified for queue "pool-b"'):
        validate_concurrency_levels(queues, {"pool-a": 1})


def test_validate_missing_global_queue():
    queues = create_queue_map(CONFIGS[3:], queue_selector_from_annotation("pool"))
    with pytest.raises(ValueError, match="no concurrency level specified for global queue"):
        validate_concurrency_levels(queues, {"pool-a": 1})


def test_log_prefix_alignment():
    configs = [_config(f"t{i}", "a") for i in range(12)] + [_config("x", "pool-b")]
    queues = create_queue_map(configs, queue_selector_from_annotation("pool"))
    fmt = log_prefix_fmt(queues)
    prefixes = [
        fmt.format(q_name, index)
        for q_name, items in queues.items()
        for index in range(len(items))
    ]
    assert len({len(p) for p in prefixes}) == 1
    assert fmt.format("pool-b", 10) == "[pool-b 10] "


def test_log_prefix_single_queue():
    queues = create_queue_map([_config("t", "q")], queue_selector_from_annotation("pool"))
    assert log_prefix_fmt(queues).format("q", 0) == "[q 0] "