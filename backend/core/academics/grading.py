from decimal import ROUND_HALF_UP, Decimal

from academics.models import LEVEL_O_LEVEL, LEVEL_UNIVERSITY

# (grade, minimum percentage, points), highest band first.
_SECONDARY_SCALE = (
    ("A", Decimal("80"), Decimal("7")),
    ("B", Decimal("60"), Decimal("5")),
    ("C", Decimal("40"), Decimal("3")),
    ("D", Decimal("20"), Decimal("1")),
    ("F", Decimal("0"), Decimal("0")),
)

_UNIVERSITY_SCALE = (
    ("A+", Decimal("90"), Decimal("4.0")),
    ("A", Decimal("80"), Decimal("3.7")),
    ("B+", Decimal("75"), Decimal("3.3")),
    ("B", Decimal("70"), Decimal("3.0")),
    ("C+", Decimal("65"), Decimal("2.7")),
    ("C", Decimal("60"), Decimal("2.3")),
    ("D", Decimal("50"), Decimal("2.0")),
    ("F", Decimal("0"), Decimal("0")),
)

GRADING_SCALES = {
    LEVEL_UNIVERSITY: _UNIVERSITY_SCALE,
}


def calculate_percentage(raw_marks, max_marks) -> Decimal:
    percentage = Decimal(raw_marks) * Decimal("100") / Decimal(max_marks)
    return percentage.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def calculate_grade(percentage, exam_level: str = LEVEL_O_LEVEL) -> tuple[str, Decimal]:
    scale = GRADING_SCALES.get(exam_level, _SECONDARY_SCALE)
    percentage = Decimal(percentage)
    for grade, minimum, points in scale:
        if percentage >= minimum:
            return grade, points
    return "F", Decimal("0")
