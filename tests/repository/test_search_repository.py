"""Tests for ranking and pagination against an in-memory SQLite database."""

import pytest

from graypaper_search.repository.domains import DISCORDS, GRAYPAPER, MESSAGES, PAGES
from graypaper_search.repository.predicates import SearchFilters, build_search_plan
from graypaper_search.schemas.search import SearchMode


def _contents(hits):
    return [hit.row.content for hit in hits.hits]


@pytest.mark.asyncio
async def test_strict_search_returns_only_matching_row(search_repository, content):
    await content.add(
        content.message("Byzantine consensus protocol"),
        content.message("unrelated text"),
    )
    plan = build_search_plan(MESSAGES, "consensus", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan, page=1, page_size=10)

    assert hits.total == 1
    assert _contents(hits) == ["Byzantine consensus protocol"]
    assert hits.hits[0].score > 0
    assert hits.hits[0].similarity is None


@pytest.mark.asyncio
async def test_strict_search_requires_whole_phrase(search_repository, content):
    await content.add(
        content.message("the byzantine consensus layer"),
        content.message("consensus among byzantine nodes"),
    )
    plan = build_search_plan(MESSAGES, "Byzantine Consensus", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan)

    assert _contents(hits) == ["the byzantine consensus layer"]


@pytest.mark.asyncio
async def test_strict_search_matches_secondary_field(search_repository, content):
    await content.add(
        content.message("hello everyone", sender="@davxy:matrix.org"),
        content.message("davxy wrote the bandersnatch code", sender="@bob:matrix.org", minutes=-5),
    )
    plan = build_search_plan(MESSAGES, "davxy", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan)

    assert hits.total == 2
    # a primary field hit outranks a newer secondary field hit
    assert _contents(hits) == ["davxy wrote the bandersnatch code", "hello everyone"]


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", [SearchMode.STRICT, SearchMode.FUZZY])
@pytest.mark.parametrize("query", ["Ökonomie", "ökonomie", "ÖKONOMIE"])
async def test_lexical_match_folds_non_ascii_case(search_repository, content, mode, query):
    await content.add(
        content.message("Über the Ökonomie of validators"),
        content.message("plain ascii text", minutes=5),
    )
    plan = build_search_plan(MESSAGES, query, SearchFilters(), mode)

    hits = await search_repository.search(MESSAGES, plan)

    assert hits.total == 1
    assert _contents(hits) == ["Über the Ökonomie of validators"]


@pytest.mark.asyncio
async def test_greek_symbols_match_either_case(search_repository, content):
    await content.add(
        content.section("State transition", "the posterior state Σ′ is computed from Σ"),
        content.section("Accumulation", "no symbols here"),
    )
    plan = build_search_plan(GRAYPAPER, "σ′", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(GRAYPAPER, plan)

    assert hits.total == 1
    assert hits.hits[0].row.title == "State transition"


@pytest.mark.asyncio
async def test_fuzzy_phrase_outranks_scattered_terms(search_repository, content):
    await content.add(
        content.message("we need byzantine consensus here", minutes=0),
        content.message("byzantine faults happen. later we reach consensus", minutes=10),
        content.message("nothing relevant", minutes=20),
    )
    plan = build_search_plan(MESSAGES, "byzantine consensus", SearchFilters(), SearchMode.FUZZY)

    hits = await search_repository.search(MESSAGES, plan)

    assert hits.total == 2
    assert _contents(hits) == [
        "we need byzantine consensus here",
        "byzantine faults happen. later we reach consensus",
    ]
    assert hits.hits[0].score > hits.hits[1].score


@pytest.mark.asyncio
async def test_fuzzy_search_matches_any_term(search_repository, content):
    await content.add(
        content.section("Safrole", "ticket based block production"),
        content.section("Accumulation", "service state integration"),
        content.section("Preimages", "lookups"),
    )
    plan = build_search_plan(GRAYPAPER, "safrole accumulation", SearchFilters(), SearchMode.FUZZY)

    hits = await search_repository.search(GRAYPAPER, plan)

    assert hits.total == 2
    assert {hit.row.title for hit in hits.hits} == {"Safrole", "Accumulation"}


@pytest.mark.asyncio
async def test_third_page_of_twenty_five(search_repository, content):
    await content.add(*[content.message(f"block {i}", minutes=i) for i in range(25)])
    plan = build_search_plan(MESSAGES, "block", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan, page=3, page_size=10)

    assert hits.total == 25
    assert len(hits.hits) == 5
    assert hits.page == 3
    assert hits.page_size == 10


@pytest.mark.asyncio
async def test_pages_reconstruct_full_match_set(search_repository, content):
    rows = [content.message(f"block {i}", minutes=i % 4) for i in range(23)]
    await content.add(*rows, content.message("unrelated"))
    plan = build_search_plan(MESSAGES, "block", SearchFilters(), SearchMode.FUZZY)

    seen = []
    first = await search_repository.search(MESSAGES, plan, page=1, page_size=7)
    pages = -(-first.total // 7)
    for page_number in range(1, pages + 1):
        hits = await search_repository.search(MESSAGES, plan, page=page_number, page_size=7)
        assert len(hits.hits) <= 7
        assert hits.total == first.total
        seen.extend(hit.row.id for hit in hits.hits)

    assert first.total == 23
    assert len(seen) == len(set(seen)) == 23
    assert set(seen) == {row.id for row in rows}


@pytest.mark.asyncio
async def test_page_past_the_end_is_empty(search_repository, content):
    await content.add(content.message("block"))
    plan = build_search_plan(MESSAGES, "block", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan, page=5, page_size=10)

    assert hits.total == 1
    assert hits.hits == []


@pytest.mark.asyncio
async def test_ordering_is_stable_with_ties(search_repository, content):
    # identical scores and timestamps: identity breaks the tie
    await content.add(*[content.message("same text", minutes=0) for _ in range(5)])
    await content.add(content.message("same text", minutes=1))
    plan = build_search_plan(MESSAGES, "same", SearchFilters(), SearchMode.STRICT)

    first = await search_repository.search(MESSAGES, plan)
    second = await search_repository.search(MESSAGES, plan)

    ids = [hit.row.id for hit in first.hits]
    assert ids == [hit.row.id for hit in second.hits]
    assert ids[0] == 6
    assert ids[1:] == sorted(ids[1:])


@pytest.mark.asyncio
async def test_sender_filter_is_case_sensitive_prefix(search_repository, content):
    await content.add(
        content.message("one", sender="@gav:matrix.org"),
        content.message("two", sender="@Gavin:matrix.org"),
        content.message("three", sender="@bob:matrix.org"),
        content.message("four", sender="x@gav:matrix.org"),
    )
    plan = build_search_plan(MESSAGES, "", SearchFilters(sender="@gav"), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan)

    assert _contents(hits) == ["one"]


@pytest.mark.asyncio
async def test_sender_filter_escapes_regex(search_repository, content):
    await content.add(
        content.message("dot", sender="a.b"),
        content.message("any", sender="axb"),
    )
    plan = build_search_plan(MESSAGES, "", SearchFilters(sender="a.b"), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan)

    assert _contents(hits) == ["dot"]


@pytest.mark.asyncio
async def test_date_range_is_inclusive(search_repository, content):
    await content.add(
        content.message("early block", minutes=-10),
        content.message("start block", minutes=0),
        content.message("end block", minutes=10),
        content.message("late block", minutes=20),
    )
    filters = SearchFilters(date_range=(content.at(0), content.at(10)))
    plan = build_search_plan(MESSAGES, "block", filters, SearchMode.FUZZY)

    hits = await search_repository.search(MESSAGES, plan)

    assert _contents(hits) == ["end block", "start block"]


@pytest.mark.asyncio
async def test_discord_channel_scope(search_repository, content):
    await content.add(
        content.discord("jam implementers call", channel_id="general"),
        content.discord("jam meetup", channel_id="offtopic"),
    )
    plan = build_search_plan(DISCORDS, "jam", SearchFilters(channel_id="general"), SearchMode.FUZZY)

    hits = await search_repository.search(DISCORDS, plan)

    assert _contents(hits) == ["jam implementers call"]


@pytest.mark.asyncio
async def test_message_room_scope(search_repository, content):
    await content.add(
        content.message("jam", room_id="!a:matrix.org"),
        content.message("jam", room_id="!b:matrix.org"),
    )
    plan = build_search_plan(
        MESSAGES, "jam", SearchFilters(channel_id="!b:matrix.org"), SearchMode.STRICT
    )

    hits = await search_repository.search(MESSAGES, plan)

    assert [hit.row.room_id for hit in hits.hits] == ["!b:matrix.org"]


@pytest.mark.asyncio
async def test_site_filter_on_pages(search_repository, content):
    await content.add(
        content.page("JAM prize", "rules", "https://github.com/w3f/jam/1", site="github.com"),
        content.page("JAM docs", "intro", "https://docs.jamcha.in/", site="docs.jamcha.in"),
    )
    plan = build_search_plan(PAGES, "jam", SearchFilters(site="GitHub"), SearchMode.STRICT)

    hits = await search_repository.search(PAGES, plan)

    assert [hit.row.url for hit in hits.hits] == ["https://github.com/w3f/jam/1"]


@pytest.mark.asyncio
async def test_like_wildcards_are_literal(search_repository, content):
    await content.add(
        content.message("100% uptime"),
        content.message("100 blocks"),
    )
    plan = build_search_plan(MESSAGES, "100%", SearchFilters(), SearchMode.STRICT)

    hits = await search_repository.search(MESSAGES, plan)

    assert _contents(hits) == ["100% uptime"]


@pytest.mark.asyncio
async def test_rejects_non_positive_paging(search_repository):
    plan = build_search_plan(MESSAGES, "x", SearchFilters(), SearchMode.STRICT)

    with pytest.raises(ValueError):
        await search_repository.search(MESSAGES, plan, page=0)
    with pytest.raises(ValueError):
        await search_repository.search(MESSAGES, plan, page_size=0)


@pytest.mark.asyncio
async def test_semantic_search_orders_by_similarity(
    sqlite_vec_available, search_repository, content
):
    await content.add(
        content.message("exact", embedding=[1.0, 0.0, 0.0]),
        content.message("orthogonal", embedding=[0.0, 1.0, 0.0]),
        content.message("close", embedding=[0.9, 0.1, 0.0], minutes=5),
        content.message("not embedded yet"),
    )
    plan = build_search_plan(
        MESSAGES,
        "anything",
        SearchFilters(),
        SearchMode.SEMANTIC,
        embedding=[1.0, 0.0, 0.0],
        distance_threshold=0.8,
    )

    hits = await search_repository.search(MESSAGES, plan)

    assert hits.total == 2
    assert _contents(hits) == ["exact", "close"]
    assert hits.hits[0].similarity == pytest.approx(1.0)
    assert 0.2 < hits.hits[1].similarity < 1.0
    assert hits.hits[1].score == hits.hits[1].similarity
