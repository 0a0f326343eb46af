# fibergrade/catalog/grades.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

ABACA = "abaca"
PINA = "pina"
FIBER_TYPES: Tuple[str, ...] = (ABACA, PINA)
FIBER_DISPLAY_NAMES = {ABACA: "Abaca", PINA: "Piña"}

UNKNOWN_GRADE = "Unknown"
NOT_AVAILABLE = "N/A"

PLACEHOLDER_URL = "https://placehold.co/300x300/18181b/{color}/png?text={grade}"
_PLACEHOLDER_COLORS = {ABACA: "4ade80", PINA: "facc15"}


@dataclass(frozen=True)
class GradeDetails:
    description: str
    price: str
    uses: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GradeItem:
    grade: str
    price: str
    image_url: str


@dataclass
class AnalysisResult:
    grade: str
    confidence: float
    description: str
    price: str
    uses: List[str]

    def to_dict(self) -> dict:
        return asdict(self)


ABACA_GRADES: Dict[str, GradeDetails] = {
    "S2": GradeDetails(
        "S2 Abaca is a premium grade known for its exceptional strength and fineness, "
        "making it ideal for high-end textiles and specialty papers.",
        "$2.80 - $3.10",
        ["High-quality textiles", "Specialty papers", "Marine ropes", "Handicrafts", "Automotive components"],
    ),
    "S3": GradeDetails(
        "S3 Abaca is a strong and durable grade, slightly less refined than S2 but still "
        "excellent for demanding applications requiring high strength.",
        "$2.50 - $2.80",
        ["Specialty paper", "Marine cordage", "Strong ropes", "Textile blends"],
    ),
    "H": GradeDetails(
        "H grade Abaca is a standard commercial grade, balancing strength and processing "
        "ease, widely used in various industries.",
        "$1.70 - $2.00",
        ["Industrial twines", "General cordage", "Paper pulp"],
    ),
    "G": GradeDetails(
        "G grade Abaca is a good quality fiber, versatile for various industrial and "
        "handicraft applications, offering a balance of strength and flexibility.",
        "$2.10 - $2.45",
        ["Pulp and paper", "Twine and cordage", "Tea bags", "Handicrafts", "Geo-textiles"],
    ),
    "JK": GradeDetails(
        "JK grade Abaca is a coarser fiber, typically used for durable products where robust "
        "material is needed. It's known for its resistance to saltwater.",
        "$1.65 - $1.95",
        ["Coarse ropes", "Matting", "Sacks", "Fishing nets"],
    ),
    "M1": GradeDetails(
        "M1 Abaca is a medium-grade fiber often used in applications where high tensile "
        "strength is less critical but good overall performance is required.",
        "$1.90 - $2.20",
        ["Ropes and cables", "Paper reinforcement", "Fiberboard", "Craft projects"],
    ),
    "Y1": GradeDetails(
        "Y1 Abaca is a fine and lustrous grade, prized for its aesthetic qualities and used "
        "in premium decorative items.",
        "$2.20 - $2.50",
        ["Decorative textiles", "Fine papers", "Artisan crafts"],
    ),
    "Y2": GradeDetails(
        "Y2 Abaca offers good strength with a softer texture, suitable for applications "
        "needing flexibility and moderate durability.",
        "$1.80 - $2.10",
        ["Lightweight ropes", "Handmade paper", "Bags"],
    ),
    "I": GradeDetails(
        "I grade Abaca is a coarser fiber, valued for its rough texture and high durability "
        "in heavy-duty applications.",
        "$1.60 - $1.90",
        ["Heavy-duty ropes", "Floor mats", "Reinforcement material"],
    ),
    "EF": GradeDetails(
        "EF Abaca is an economy grade, commonly used for basic industrial applications and "
        "when cost-effectiveness is key.",
        "$1.50 - $1.75",
        ["Industrial netting", "Thick ropes", "Reinforcement for composite materials"],
    ),
}

PINA_GRADES: Dict[str, GradeDetails] = {
    "Lino": GradeDetails(
        "Lino Piña is a very fine, translucent fiber known for its delicate texture and high "
        "quality, making it ideal for luxurious fabrics.",
        "$20 - $25 /m",
        ["Luxury garments", "Wedding gowns", "Fine embroidery", "High-end artisanal products"],
    ),
    "Bastos": GradeDetails(
        "Bastos Piña is a coarser, more robust fiber, still elegant but suitable for less "
        "delicate applications where durability is also a factor.",
        "$15 - $20 /m",
        ["Casual wear", "Table linens", "Decorative items", "Handicrafts"],
    ),
    "Seda": GradeDetails(
        "Seda Piña is a blend of Piña and silk fibers, offering the best of both worlds: the "
        "crispness of Piña with the softness and sheen of silk.",
        "$25 - $30 /m",
        ["Premium garments", "Scarves", "Fashion accessories", "Upholstery"],
    ),
    "Jusi": GradeDetails(
        "Jusi is a blend of Piña and Abaca or silk, creating a more affordable yet still "
        "elegant fabric, popular for traditional Filipino attire.",
        "$18 - $22 /m",
        ["Barong Tagalog", "Filipiniana dresses", "Everyday garments", "Crafts"],
    ),
}

CATALOG: Dict[str, Dict[str, GradeDetails]] = {ABACA: ABACA_GRADES, PINA: PINA_GRADES}

GENERIC_ERROR_DESCRIPTION = (
    "Something went wrong while fetching details for this grade. Please try again."
)


def get_fiber_details(fiber_type: str, grade: str) -> GradeDetails:
    if grade == UNKNOWN_GRADE:
        return GradeDetails(
            "The grade of the fiber could not be determined. Please try again with a clearer picture.",
            NOT_AVAILABLE,
            [NOT_AVAILABLE],
        )

    table = CATALOG.get(fiber_type)
    if table is None:
        return GradeDetails(
            f"No details found for fiber type {fiber_type} and grade {grade}.",
            NOT_AVAILABLE,
            [NOT_AVAILABLE],
        )

    details = table.get(grade)
    if details is None:
        name = FIBER_DISPLAY_NAMES[fiber_type]
        return GradeDetails(
            f"No specific details found for {name} grade {grade}.",
            NOT_AVAILABLE,
            [f"General {name.lower()} uses"],
        )
    return details


def placeholder_url(fiber_type: str, grade: str) -> str:
    return PLACEHOLDER_URL.format(color=_PLACEHOLDER_COLORS.get(fiber_type, "4ade80"), grade=grade)


def list_grades(fiber_type: str) -> List[GradeItem]:
    """Default gallery entries for a fiber type, in catalog order."""
    if fiber_type not in CATALOG:
        raise ValueError(f"Unknown fiber type: {fiber_type!r} (expected one of {FIBER_TYPES})")
    return [
        GradeItem(grade=grade, price=details.price, image_url=placeholder_url(fiber_type, grade))
        for grade, details in CATALOG[fiber_type].items()
    ]


def analyze(
    prediction: Tuple[str, float],
    fiber_type: str = ABACA,
    details_fn: Callable[[str, str], GradeDetails] = get_fiber_details,
) -> AnalysisResult:
    """Combine a top prediction with the catalog entry for its grade."""
    grade, confidence = prediction
    try:
        details = details_fn(fiber_type, grade)
    except Exception as e:
        logger.error("Failed to get %s details for grade %s: %s", fiber_type, grade, e)
        details = GradeDetails(GENERIC_ERROR_DESCRIPTION, NOT_AVAILABLE, ["-"])
    return AnalysisResult(
        grade=grade,
        confidence=float(confidence),
        description=details.description,
        price=details.price,
        uses=list(details.uses),
    )
