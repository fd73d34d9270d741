import io

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from sentiview.models import TallyState
from sentiview.tally import chart_data

COLORS = ["#4ade80", "#f87171", "#fbbf24"]
EMPTY_COLOR = "#e5e7eb"


def render_pie_chart(tally: TallyState, dpi: int = 100) -> bytes:
    """
    Render the sentiment tally as a PNG pie chart.

    All three categories are always drawn in Happy/Sad/Mixed order. Zero-count
    categories become zero-width slices; an all-zero tally draws an empty ring.
    """
    slices = chart_data(tally)
    labels = [s.name for s in slices]
    values = [s.value for s in slices]

    fig, ax = plt.subplots(figsize=(4, 3))
    try:
        if sum(values) == 0:
            ax.pie([1], colors=[EMPTY_COLOR], wedgeprops={"width": 0.4})
            ax.text(0, 0, "No analyses yet", ha="center", va="center", fontsize=9)
        else:
            ax.pie(values, colors=COLORS, startangle=90, counterclock=False)
        ax.legend(
            handles=[plt.Rectangle((0, 0), 1, 1, color=c) for c in COLORS],
            labels=[f"{label} ({value})" for label, value in zip(labels, values)],
            loc="center left",
            bbox_to_anchor=(1.0, 0.5),
            frameon=False,
        )
        ax.set_aspect("equal")
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=dpi)
        return buf.getvalue()
    finally:
        plt.close(fig)
