"""Static lab guidance: safety topics, protocols and incompatibility groups."""

import re
from typing import Dict, FrozenSet, List, Optional, Pattern, Tuple


SAFETY_TOPICS: List[Tuple[Tuple[str, ...], str]] = [
    (("spill",), (
        "**Chemical Spill Response**\n\n"
        "1. Alert people nearby and evacuate the area if needed\n"
        "2. Avoid contact with the spilled material\n"
        "3. Contain the spill if it is safe to do so\n\n"
        "Cleanup:\n"
        "• Wear appropriate PPE (safety goggles, gloves, lab coat)\n"
        "• Use spill kit absorbents suited to the chemical\n"
        "• Dispose of waste according to lab procedures\n\n"
        "Report every spill to the lab safety officer."
    )),
    (("ppe", "protective", "wear"), (
        "**Required PPE**\n\n"
        "Always:\n"
        "• Eye protection: safety goggles or glasses\n"
        "• Lab coat, fully buttoned\n"
        "• Closed-toe shoes and long trousers\n"
        "• Nitrile gloves suited to the chemicals handled\n\n"
        "When required:\n"
        "• Face shield for splash risks\n"
        "• Respirator for volatile or toxic substances\n"
        "• Heat-resistant gloves for hot work\n\n"
        "Check the Safety Data Sheet (SDS) for chemical-specific requirements."
    )),
    (("acid",), (
        "**Acid Handling Safety**\n\n"
        "• Always wear safety goggles, gloves and a lab coat\n"
        "• Work in a fume hood for concentrated or volatile acids\n"
        "• Add acid to water, never water to acid\n"
        "• Store acids away from bases, oxidizers and metals\n"
        "• Keep sodium bicarbonate nearby to neutralize small spills\n\n"
        "For skin contact, rinse with running water for at least 15 minutes."
    )),
    (("base", "alkali", "hydroxide"), (
        "**Base Handling Safety**\n\n"
        "• Always wear safety goggles, gloves and a lab coat\n"
        "• Dissolving solid hydroxides releases heat; add slowly with stirring\n"
        "• Store bases away from acids\n"
        "• Neutralize small spills with a weak acid such as citric acid\n\n"
        "For eye contact, use the eyewash station for at least 15 minutes."
    )),
    (("fire", "emergency", "first aid"), (
        "**Emergency Procedures**\n\n"
        "• Fire: activate the alarm, use the correct extinguisher only if trained, evacuate\n"
        "• Chemical in eyes: eyewash station for 15 minutes, then seek medical help\n"
        "• Chemical on skin: remove contaminated clothing, rinse with water\n"
        "• Inhalation: move to fresh air\n\n"
        "Report every incident to the lab safety officer."
    )),
]

GENERAL_SAFETY = (
    "**Lab Safety Guidelines**\n\n"
    "• Wear safety goggles, a lab coat and gloves at all times\n"
    "• Know where the eyewash, safety shower and fire extinguisher are\n"
    "• Never eat or drink in the lab\n"
    "• Label every container\n"
    "• Consult the Safety Data Sheet (SDS) before using a new chemical\n\n"
    "You can ask about:\n"
    '• "What PPE should I wear?"\n'
    '• "What to do for an acid spill"\n'
    '• "Safety information for sodium hydroxide"'
)

# Subjects that name a hazard family rather than an inventory item
GENERIC_SAFETY_SUBJECTS: FrozenSet[str] = frozenset({
    "acid", "acids", "base", "bases", "alkali", "alkalis", "chemical", "chemicals",
    "solvent", "solvents", "flammables", "corrosives", "oxidizers", "the lab", "lab",
    "spills", "spill", "fire", "glassware", "equipment",
})


PROTOCOLS: Dict[str, Dict[str, object]] = {
    "titration": {
        "title": "Titration Protocol",
        "summary": "Acid-base titration to determine the concentration of an unknown solution.",
        "equipment": ["Burette", "Pipette", "Conical flask", "Magnetic stirrer"],
        "steps": [
            "Rinse the burette with titrant and fill it, noting the initial reading",
            "Pipette a known volume of analyte into the conical flask",
            "Add 2-3 drops of a suitable indicator",
            "Titrate slowly with swirling until the endpoint colour persists",
            "Record the final reading and repeat until results agree within 0.1 ml",
        ],
    },
    "chromatography": {
        "title": "Chromatography Protocol",
        "summary": "Thin-layer or paper chromatography to separate and identify mixture components.",
        "equipment": ["TLC plates", "Developing chamber", "UV lamp"],
        "steps": [
            "Spot the sample about 1 cm above the bottom of the plate",
            "Place the plate in the chamber with solvent below the spot line",
            "Let the solvent front rise, then mark it and dry the plate",
            "Visualize spots under UV light or with a stain",
            "Calculate Rf values and compare with standards",
        ],
    },
    "spectroscopy": {
        "title": "UV-Vis Spectroscopy Protocol",
        "summary": "Absorbance measurement to quantify a solution against a calibration curve.",
        "equipment": ["Spectrophotometer", "Cuvettes"],
        "steps": [
            "Warm up the spectrophotometer for 15 minutes",
            "Blank the instrument with solvent",
            "Measure standards to build a calibration curve",
            "Measure the sample at the same wavelength",
            "Read the concentration from the calibration curve",
        ],
    },
    "distillation": {
        "title": "Simple Distillation Protocol",
        "summary": "Separation of liquids with different boiling points.",
        "equipment": ["Heating mantle", "Round-bottom flask", "Condenser", "Thermometer"],
        "steps": [
            "Assemble the apparatus and clamp every joint",
            "Add boiling chips to the flask, filling it no more than two thirds",
            "Start condenser water flow before heating",
            "Heat gently and collect the fraction at the expected boiling point",
            "Never distill to dryness",
        ],
    },
    "ph": {
        "title": "pH Measurement Protocol",
        "summary": "Calibrated pH meter measurement of aqueous solutions.",
        "equipment": ["pH meter", "Buffer solutions", "Beakers"],
        "steps": [
            "Calibrate the meter with pH 4, 7 and 10 buffers",
            "Rinse the electrode with distilled water between readings",
            "Immerse the electrode and wait for a stable reading",
            "Record the value with the solution temperature",
            "Store the electrode in storage solution afterwards",
        ],
    },
}

PROTOCOL_ALIASES: List[Tuple[Pattern, str]] = [
    (re.compile(r"titrat"), "titration"),
    (re.compile(r"chromatograph|\btlc\b"), "chromatography"),
    (re.compile(r"spectro|uv-vis|absorbance"), "spectroscopy"),
    (re.compile(r"distill"), "distillation"),
    (re.compile(r"\bph\b"), "ph"),
]


def find_protocol(text: str) -> Optional[str]:
    """Protocol key mentioned in the text, if any."""
    text = text.lower()
    for pattern, key in PROTOCOL_ALIASES:
        if pattern.search(text):
            return key
    return None


# Hazard groups and the pairs that must not be stored or mixed together
HAZARD_GROUP_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "acid": ("acid", "corrosive"),
    "base": ("hydroxide", "base", "alkali", "ammonia"),
    "oxidizer": ("oxidiz", "peroxide", "nitrate", "permanganate", "chlorate", "hypochlorite"),
    "flammable": ("flammable", "ethanol", "methanol", "acetone", "ether", "hexane"),
    "water_reactive": ("water-reactive", "water reactive", "sodium metal", "hydride"),
}

INCOMPATIBLE_GROUPS: FrozenSet[FrozenSet[str]] = frozenset({
    frozenset({"acid", "base"}),
    frozenset({"oxidizer", "flammable"}),
    frozenset({"acid", "water_reactive"}),
    frozenset({"oxidizer", "base"}),
})


def hazard_groups(*descriptions: Optional[str]) -> FrozenSet[str]:
    """Hazard groups suggested by names or hazard classes."""
    text = " ".join(d.lower() for d in descriptions if d)
    return frozenset(
        group for group, words in HAZARD_GROUP_KEYWORDS.items()
        if any(word in text for word in words)
    )


def incompatible_pairs(first: FrozenSet[str], second: FrozenSet[str]) -> List[Tuple[str, str]]:
    pairs = []
    for a in sorted(first):
        for b in sorted(second):
            if frozenset({a, b}) in INCOMPATIBLE_GROUPS:
                pairs.append((a, b))
    return pairs
