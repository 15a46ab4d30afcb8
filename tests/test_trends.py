"""Tests for trending misinformation topics."""

from __future__ import annotations

from saaksh.process.trends import trending_topics


def test_trending_topics_counts_and_averages(make_result):
    results = [
        make_result("a", fake_risk=80, categories=("Fear-mongering", "Clickbait")),
        make_result("b", fake_risk=60, categories=("Fear-mongering",)),
        make_result("c", fake_risk=50, categories=("Clickbait", "Fear-mongering")),
        make_result("d", fake_risk=49, categories=("Fear-mongering", "Loaded language")),
    ]

    topics = trending_topics(results)

    assert [(t.topic, t.count) for t in topics] == [
        ("Fear-mongering", 3),
        ("Clickbait", 2),
    ]
    assert topics[0].average_risk == (80 + 60 + 50) / 3
    assert topics[1].average_risk == 65.0


def test_trending_topics_limit_and_threshold(make_result):
    results = [
        make_result(str(i), fake_risk=90, categories=(f"topic-{i}",))
        for i in range(8)
    ]

    assert len(trending_topics(results)) == 5
    assert len(trending_topics(results, limit=3)) == 3
    assert trending_topics(results, min_fake_risk=95) == []


def test_trending_topics_empty():
    assert trending_topics([]) == []
