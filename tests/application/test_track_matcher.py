"""Tests for the track waterfall: unique id, exact, fuzzy, unmatched."""

from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import OperationalError

from crosswalk.application.matchers import MatchState, TrackMatcher
from crosswalk.config.settings import MatchingConfig
from crosswalk.domain.entities import EntityKind
from crosswalk.domain.matching import MatchMethod, MatchStatus
from tests.fixtures.catalog import FakeCatalogClient, candidate, make_track


class TestUniqueIdTier:
    async def test_isrc_hit_short_circuits(self, track_matcher, catalog, match_cache):
        """A unique identifier hit is ground truth and skips every search."""
        target = candidate(id="tidal-77", isrc="GBUM71029604")
        catalog.by_unique_id["GBUM71029604"] = target

        result = await track_matcher.run(make_track(isrc="GBUM71029604"))

        assert result.status is MatchStatus.MATCHED
        assert result.method is MatchMethod.UNIQUE_ID
        assert result.confidence == 1.0
        assert result.target == target
        assert catalog.calls == [("lookup_by_unique_id", "GBUM71029604", None)]
        assert await match_cache.get(EntityKind.TRACK, "src-track-1") is not None

    async def test_isrc_miss_falls_through_to_exact(self, track_matcher, catalog):
        catalog.tracks = [candidate()]

        result = await track_matcher.run(make_track(isrc="USXXX0000001"))

        assert result.method is MatchMethod.EXACT
        assert [c[0] for c in catalog.calls] == ["lookup_by_unique_id", "search_tracks"]

    async def test_no_isrc_skips_lookup(self, track_matcher, catalog):
        catalog.tracks = [candidate()]

        await track_matcher.run(make_track())

        assert catalog.calls_to("lookup_by_unique_id") == []


class TestExactTier:
    """Test exact metadata matching."""

    async def test_remaster_suffix_within_two_seconds(self, track_matcher, catalog):
        catalog.tracks = [candidate(name="Let It Be (2021 Remaster)", duration_ms=242000)]

        result = await track_matcher.run(make_track(duration_ms=243000))

        assert result.method is MatchMethod.EXACT
        assert result.confidence == 0.99
        assert catalog.calls == [("search_tracks", "Let It Be The Beatles", 10)]

    async def test_first_exact_candidate_in_search_order_wins(self, track_matcher, catalog):
        catalog.tracks = [
            candidate(id="cover", artists=["Aretha Franklin"]),
            candidate(id="first"),
            candidate(id="second"),
        ]

        result = await track_matcher.run(make_track())

        assert result.target.id == "first"

    async def test_featured_artist_in_title_is_not_an_artist_match(self, track_matcher, catalog):
        title = "Stay (feat. Justin Bieber)"
        target = candidate(name=title, artists=["The Kid LAROI"], duration_ms=141000)
        source = make_track(name=title, artists=["Justin Bieber"], duration_ms=141500)
        catalog.tracks = [target]

        result = await track_matcher.run(source)

        assert not track_matcher.is_exact(source, target)
        assert result.method is not MatchMethod.EXACT

    async def test_missing_duration_is_not_exact(self, track_matcher):
        source = make_track(duration_ms=None)

        assert not track_matcher.is_exact(source, candidate())

    async def test_duration_outside_tolerance_is_not_exact(self, track_matcher):
        assert not track_matcher.is_exact(make_track(), candidate(duration_ms=246000))


class TestFuzzyAndUnmatched:
    async def test_fuzzy_match_above_threshold(self, track_matcher, catalog):
        catalog.tracks = [
            candidate(name="Paranoid Android (Remastered)", artists=["Radiohead"], duration_ms=396000)
        ]
        source = make_track(name="Paranoid Android", artists=["Radiohead"], duration_ms=386000, album=None)

        result = await track_matcher.run(source)

        assert result.method is MatchMethod.FUZZY
        assert result.confidence == pytest.approx(0.5 + 0.3 + 0.1 * (2 / 3) + 0.05)
        assert catalog.calls_to("search_tracks")[1] == (
            "search_tracks",
            "Paranoid Android Radiohead",
            20,
        )

    async def test_empty_search_is_unmatched_without_suggestions(self, track_matcher, catalog):
        result = await track_matcher.run(make_track(isrc=None))

        assert result.status is MatchStatus.UNMATCHED
        assert result.method is MatchMethod.UNMATCHED
        assert result.confidence == 0.0
        assert result.suggestions == ()

    async def test_low_scores_become_top_five_suggestions(self, track_matcher, catalog):
        catalog.tracks = [
            candidate(id=f"weak-{i}", name=f"Yesterday {i}", duration_ms=100000)
            for i in range(7)
        ]
        source = make_track(name="Paranoid Android", artists=["Radiohead"], duration_ms=386000)

        result = await track_matcher.run(source)

        assert result.status is MatchStatus.UNMATCHED
        assert len(result.suggestions) == 5
        assert result.target is None

    async def test_suggestion_limit_is_configurable(self, catalog, match_cache):
        matcher = TrackMatcher(catalog, match_cache, MatchingConfig(suggestion_limit=2))
        catalog.tracks = [candidate(id=str(i), name="Something Else") for i in range(4)]

        result = await matcher.run(make_track(name="Paranoid Android", artists=["Radiohead"]))

        assert len(result.suggestions) == 2


class TestCaching:
    """Test that outcomes are cached and cache hits skip the catalog."""

    @pytest.mark.parametrize(
        ("target", "source_overrides", "method"),
        [
            (candidate(), {}, MatchMethod.EXACT),
            (
                candidate(
                    name="Paranoid Android (Remastered)",
                    artists=["Radiohead"],
                    duration_ms=396000,
                ),
                {
                    "name": "Paranoid Android",
                    "artists": ["Radiohead"],
                    "duration_ms": 386000,
                    "album": None,
                },
                MatchMethod.FUZZY,
            ),
        ],
    )
    async def test_second_run_is_served_from_cache(
        self, track_matcher, catalog, target, source_overrides, method
    ):
        catalog.tracks = [target]
        source = make_track(**source_overrides)
        first = await track_matcher.run(source)
        calls_after_first = len(catalog.calls)

        second = await track_matcher.run(source)

        assert first.method is method
        assert len(catalog.calls) == calls_after_first
        assert second == first

    async def test_unmatched_outcome_is_cached_with_suggestions(self, track_matcher, catalog):
        catalog.tracks = [candidate(id="weak", name="Yesterday", artists=["Someone"])]
        source = make_track(name="Paranoid Android", artists=["Radiohead"])
        first = await track_matcher.run(source)

        catalog.tracks = []
        second = await track_matcher.run(source)

        assert first.status is MatchStatus.UNMATCHED
        assert [s.id for s in first.suggestions] == ["weak"]
        assert second == first

    async def test_cached_isrc_is_reused_for_another_source(self, track_matcher, catalog):
        catalog.by_unique_id["GBUM71029604"] = candidate(id="tidal-77")
        await track_matcher.run(make_track(id="a", isrc="GBUM71029604"))
        catalog.calls.clear()

        result = await track_matcher.run(make_track(id="b", isrc="GBUM71029604"))

        assert result.target.id == "tidal-77"
        assert result.source.id == "b"
        assert catalog.calls == []

    async def test_cache_failures_degrade_to_miss_and_no_op(self, catalog):
        cache = Mock()
        cache.get = AsyncMock(side_effect=OperationalError("select", {}, Exception("locked")))
        cache.get_by_unique_id = AsyncMock(return_value=None)
        cache.put = AsyncMock(side_effect=OperationalError("insert", {}, Exception("locked")))
        catalog.tracks = [candidate()]

        result = await TrackMatcher(catalog, cache).run(make_track())

        assert result.method is MatchMethod.EXACT
        cache.put.assert_awaited_once()


class TestFailuresAndValidation:
    async def test_catalog_failure_is_a_tier_miss(self, match_cache):
        catalog = FakeCatalogClient(failing={"lookup_by_unique_id", "search_tracks"})
        matcher = TrackMatcher(catalog, match_cache)

        result = await matcher.run(make_track(isrc="GBUM71029604"))

        assert result.status is MatchStatus.UNMATCHED
        assert result.suggestions == ()
        assert len(catalog.calls) == 3

    @pytest.mark.parametrize(
        "source",
        [
            make_track(name="   "),
            make_track(artists=[]),
            make_track(artists=["  "]),
        ],
    )
    async def test_malformed_source_is_rejected(self, track_matcher, catalog, match_cache, source):
        result = await track_matcher.run(source)

        assert result.status is MatchStatus.UNMATCHED
        assert result.note == "invalid_source"
        assert catalog.calls == []
        assert (await match_cache.stats()).total_entries == 0


class TestStateMachine:
    def test_track_visits_every_state(self, track_matcher):
        assert track_matcher.next_state(MatchState.CACHE) is MatchState.UNIQUE_ID
        assert track_matcher.next_state(MatchState.FUZZY) is MatchState.UNMATCHED

    def test_unmatched_is_terminal(self, track_matcher):
        with pytest.raises(ValueError):
            track_matcher.next_state(MatchState.UNMATCHED)

    async def test_handlers_are_individually_callable(self, track_matcher, catalog):
        from crosswalk.application.matchers import MatchAttempt

        catalog.tracks = [candidate()]
        attempt = MatchAttempt(source=make_track())

        assert await track_matcher.check_cache(attempt) is None
        assert await track_matcher.match_unique_id(attempt) is None
        assert (await track_matcher.match_exact(attempt)).method is MatchMethod.EXACT


class TestMatchAll:
    """Test batch matching."""

    async def test_results_keep_input_order_and_report_progress(self, track_matcher, catalog):
        catalog.tracks = [candidate()]
        sources = [make_track(id=f"t{i}") for i in range(3)]
        progress: list[tuple[int, int, str]] = []

        results = await track_matcher.match_all(
            sources, on_progress=lambda *args: progress.append(args)
        )

        assert [r.source.id for r in results] == ["t0", "t1", "t2"]
        assert progress == [(i, 3, "The Beatles - Let It Be") for i in (1, 2, 3)]

    async def test_unexpected_error_does_not_abort_batch(self, catalog):
        async def put(entry):
            if entry.source_id == "bad":
                raise RuntimeError("unexpected")

        cache = Mock()
        cache.get = AsyncMock(return_value=None)
        cache.get_by_unique_id = AsyncMock(return_value=None)
        cache.put = AsyncMock(side_effect=put)
        catalog.tracks = [candidate()]

        results = await TrackMatcher(catalog, cache).match_all(
            [make_track(id="ok-1"), make_track(id="bad"), make_track(id="ok-2")]
        )

        assert [r.status for r in results] == [
            MatchStatus.MATCHED,
            MatchStatus.UNMATCHED,
            MatchStatus.MATCHED,
        ]
        assert results[1].note == "error"

    async def test_failing_progress_callback_does_not_abort_batch(self, track_matcher, catalog):
        catalog.tracks = [candidate()]
        seen: list[int] = []

        def on_progress(current, total, label):
            seen.append(current)
            raise RuntimeError("display closed")

        results = await track_matcher.match_all(
            [make_track(id=f"t{i}") for i in range(3)], on_progress=on_progress
        )

        assert [r.status for r in results] == [MatchStatus.MATCHED] * 3
        assert seen == [1, 2, 3]

    async def test_concurrent_batch_keeps_order(self, catalog, match_cache):
        matcher = TrackMatcher(catalog, match_cache, MatchingConfig(concurrency=4))
        catalog.tracks = [candidate()]
        sources = [make_track(id=f"t{i}") for i in range(10)]
        currents: list[int] = []

        results = await matcher.match_all(sources, on_progress=lambda c, t, l: currents.append(c))

        assert [r.source.id for r in results] == [s.id for s in sources]
        assert currents == list(range(1, 11))

    async def test_empty_batch(self, track_matcher):
        assert await track_matcher.match_all([]) == []
