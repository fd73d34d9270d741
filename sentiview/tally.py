from typing import Iterable

from sentiview.models import AnalysisResult, ChartSlice, TallyState

# Chart order is fixed regardless of counts
CHART_ORDER: list[tuple[str, str]] = [
    ("happy", "Happy"),
    ("sad", "Sad"),
    ("mixed", "Mixed"),
]


def record_result(tally: TallyState, result: AnalysisResult) -> TallyState:
    return tally.increment(result.sentiment)


def tally_from_history(results: Iterable[AnalysisResult]) -> TallyState:
    tally = TallyState()
    for result in results:
        tally = record_result(tally, result)
    return tally


def chart_data(tally: TallyState) -> list[ChartSlice]:
    return [ChartSlice(name=label, value=getattr(tally, key)) for key, label in CHART_ORDER]
