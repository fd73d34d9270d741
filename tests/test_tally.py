from hypothesis import given, strategies as st

from sentiview.chart import render_pie_chart
from sentiview.models import AnalysisResult, TallyState
from sentiview.tally import chart_data, record_result, tally_from_history

result_strategy = st.builds(
    AnalysisResult,
    sentiment=st.sampled_from(["happy", "sad", "mixed"]),
    confidence=st.integers(min_value=0, max_value=100),
    translation=st.text(min_size=1, max_size=10),
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestTallyAggregation:
    def test_record_result_increments_matching_key(self):
        tally = record_result(
            TallyState(), AnalysisResult(sentiment="happy", confidence=92, translation="x")
        )
        assert tally == TallyState(happy=1, sad=0, mixed=0)

    def test_empty_history(self):
        assert tally_from_history([]) == TallyState()

    @given(results=st.lists(result_strategy, max_size=30))
    def test_counts_match_history(self, results):
        tally = tally_from_history(results)
        assert tally.total == len(results)
        for sentiment in ("happy", "sad", "mixed"):
            expected = sum(1 for r in results if r.sentiment == sentiment)
            assert getattr(tally, sentiment) == expected
            assert getattr(tally, sentiment) >= 0

    @given(results=st.lists(result_strategy, min_size=1, max_size=20))
    def test_never_decreases(self, results):
        tally = TallyState()
        for result in results:
            updated = record_result(tally, result)
            assert updated.happy >= tally.happy
            assert updated.sad >= tally.sad
            assert updated.mixed >= tally.mixed
            assert updated.total == tally.total + 1
            tally = updated


class TestChartData:
    def test_fixed_order_with_zeros(self):
        slices = chart_data(TallyState(mixed=2))
        assert [s.name for s in slices] == ["Happy", "Sad", "Mixed"]
        assert [s.value for s in slices] == [0, 0, 2]

    def test_empty_tally_has_three_slices(self):
        assert [s.value for s in chart_data(TallyState())] == [0, 0, 0]


class TestRenderPieChart:
    def test_renders_png(self):
        png = render_pie_chart(TallyState(happy=3, sad=1, mixed=0))
        assert png.startswith(PNG_SIGNATURE)

    def test_renders_empty_tally(self):
        png = render_pie_chart(TallyState())
        assert png.startswith(PNG_SIGNATURE)
