from datetime import datetime, timedelta, timezone

from semantics_service.pipelines import (
    contributors_pipeline,
    count_contributors,
    count_distinct_labels,
    distinct_labels_pipeline,
    enrich_pipeline,
    loud_pipeline,
    noogle_pipeline,
    paged_window_query,
    parse_when,
    regroup_joined,
    window_start,
)
from semantics_service.schemas import Page

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


def _ops(pipeline):
    return [next(iter(stage)) for stage in pipeline]


def test_paged_window_query_has_no_cutoff():
    q = paged_window_query("en", Page(amount=10, skip=20))
    assert q.filter == {"lang": "en"}
    assert q.sort == {"when": -1}
    assert (q.limit, q.skip) == (10, 20)


def test_enrich_pipeline_holds_back_two_days():
    pipeline = enrich_pipeline("en", Page(amount=13, skip=0), NOW, metadata_collection="metadata2")
    match = pipeline[0]["$match"]
    assert match["lang"] == "en"
    assert match["when"] == {"$lt": NOW - timedelta(days=2)}
    assert _ops(pipeline) == ["$match", "$sort", "$skip", "$limit", "$lookup"]
    assert pipeline[-1]["$lookup"]["from"] == "metadata2"
    assert pipeline[-1]["$lookup"]["as"] == "summary"


def test_loud_pipeline_pages_after_ranking():
    since = window_start(NOW, hours=48)
    pipeline = loud_pipeline("en", Page(amount=5, skip=10), since, max_entries=2000)
    ops = _ops(pipeline)
    assert ops == ["$match", "$limit", "$group", "$match", "$sort", "$skip", "$limit", "$project"]
    assert pipeline[0]["$match"]["when"] == {"$gt": NOW - timedelta(hours=48)}
    assert pipeline[1] == {"$limit": 2000}
    assert pipeline[3] == {"$match": {"_id": {"$ne": None}}}
    assert pipeline[4] == {"$sort": {"count": -1, "_id": 1}}
    assert pipeline[5] == {"$skip": 10}
    assert pipeline[6] == {"$limit": 5}


def test_noogle_pipeline_joins_metadata_and_labels():
    pipeline = noogle_pipeline(
        "it", "salvini", Page(amount=13), metadata_collection="metadata2", labels_collection="labels"
    )
    assert pipeline[0] == {"$match": {"lang": "it", "label": "salvini"}}
    lookups = [stage["$lookup"] for stage in pipeline if "$lookup" in stage]
    assert [(l["from"], l["as"]) for l in lookups] == [("metadata2", "summary"), ("labels", "labels")]
    assert all(l["localField"] == "_id" for l in lookups)


def test_snapshot_gathers_share_the_window():
    since = window_start(NOW, hours=48)
    distinct = distinct_labels_pipeline("en", since, max_entries=60000)
    contributors = contributors_pipeline("en", since, max_entries=60000, metadata_collection="metadata2")
    assert distinct[0] == contributors[0]
    assert distinct[-2] == {"$match": {"_id": {"$ne": None}}}
    assert distinct[-1] == {"$group": {"_id": None, "amount": {"$sum": 1}}}
    assert contributors[-1]["$group"]["profiles"] == {"$addToSet": "$summary.pseudo"}


def test_builders_are_pure():
    page = Page(amount=3)
    assert loud_pipeline("en", page, NOW, max_entries=10) == loud_pipeline("en", page, NOW, max_entries=10)


def test_count_contributors_deduplicates_across_records():
    docs = [{"_id": None, "profiles": [["alice"], ["bob"], ["alice"], ["carol", "bob"], ["alice"]]}]
    assert count_contributors(docs) == 3


def test_count_contributors_degrades_to_zero():
    assert count_contributors(None) == 0
    assert count_contributors([]) == 0
    assert count_contributors([{"_id": None}]) == 0
    assert count_contributors([{"_id": None, "profiles": None}]) == 0
    assert count_contributors([{"_id": None, "profiles": [[], [None]]}]) == 0


def test_count_distinct_labels():
    assert count_distinct_labels([{"_id": None, "amount": 42}]) == 42
    assert count_distinct_labels([]) == 0
    assert count_distinct_labels(None) == 0


def test_regroup_joined_uses_first_label_event():
    doc = {
        "_id": "s1",
        "summary": [{"semanticId": "s1", "source": "page"}],
        "labels": [
            {"semanticId": "s1", "when": "2024-03-01T10:00:00Z", "l": ["a"]},
            {"semanticId": "s1", "when": "2024-03-02T10:00:00Z", "l": ["b"]},
        ],
    }
    base = regroup_joined(doc)
    assert base["l"] == ["a"]
    assert base["summary"] == [{"semanticId": "s1", "source": "page"}]
    assert base["when"] == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_regroup_joined_without_labels():
    assert regroup_joined({"_id": "s1", "summary": [], "labels": []}) is None


def test_parse_when_variants():
    naive = datetime(2024, 1, 1, 0, 0)
    assert parse_when(naive).tzinfo is timezone.utc
    assert parse_when(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert parse_when("not a date") == "not a date"
