from typing import Sequence

from tchart.colors import PLAIN, BLUE, Palette
from tchart.histogram import DEFAULT_WIDTH
from tchart.numfmt import count_width, scale_for


class MatchBarRow:
    __slots__ = ("label", "count")

    def __init__(self, label: str):
        self.label = label
        self.count = 0

    def inc_if_matches(self, line: str):
        if self.label in line:
            self.count += 1

    def __repr__(self):
        return f"MatchBarRow({self.label!r}, count={self.count})"


class MatchBar:
    """How many lines contain each of a set of strings."""

    def __init__(self, rows: Sequence[MatchBarRow]):
        self.rows = list(rows)

    @property
    def top(self) -> int:
        return max((row.count for row in self.rows), default=0)

    @property
    def label_width(self) -> int:
        return max((len(row.label) for row in self.rows), default=0)

    @property
    def matches(self) -> int:
        return sum(row.count for row in self.rows)

    def render(self, width: int = DEFAULT_WIDTH, palette: Palette = PLAIN) -> str:
        width_label = self.label_width
        width_count = count_width(self.top)
        scale = scale_for(self.top, width, width_label + width_count)

        out = [f"Matches: {palette.paint(str(self.matches), BLUE)}.\n", scale.header(palette), "\n"]
        for row in self.rows:
            label = f"{row.label:<{width_label}}"
            out.append(f"[{palette.paint(label, BLUE)}] "
                       f"[{scale.count(row.count, width_count, palette)}] "
                       f"{scale.bar(row.count, palette)}\n")
        return "".join(out)

    def __str__(self):
        return self.render()


class CommonTerms:
    """The ``lines`` most frequent terms, fed one at a time with ``observe``."""

    def __init__(self, lines: int = 10):
        self.lines = lines
        self.terms: dict[str, int] = {}

    def observe(self, term: str):
        self.terms[term] = self.terms.get(term, 0) + 1

    def most_common(self) -> list[tuple[str, int]]:
        # sorted() is stable: equal counts keep first-seen order
        ranked = sorted(self.terms.items(), key=lambda item: item[1], reverse=True)
        return ranked[:self.lines]

    def render(self, width: int = DEFAULT_WIDTH, palette: Palette = PLAIN) -> str:
        values = self.most_common()
        if not values:
            return "No data\n"

        top = values[0][1]
        width_label = max(max(len(term) for term, _ in values), 1)
        width_count = count_width(top)
        scale = scale_for(top, width, width_label + width_count)

        out = [scale.header(palette), "\n"]
        for term, count in values:
            label = f"{term:>{width_label}}"
            out.append(f"[{palette.paint(label, BLUE)}] "
                       f"[{scale.count(count, width_count, palette)}] "
                       f"{scale.bar(count, palette)}\n")
        return "".join(out)

    def __str__(self):
        return self.render()
